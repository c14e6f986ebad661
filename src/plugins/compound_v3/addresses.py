"""
Compound V3 Comet市场（按链，每条链一个USDC市场）
"""
from typing import Dict, List, NamedTuple


class CometMarket(NamedTuple):
    comet: str
    base_token: str
    base_token_decimals: int
    base_token_coingecko_id: str
    # 基础代币为美元稳定币时按1美元估算TVL
    stable: bool = True


COMPOUND_V3_MARKETS: Dict[str, CometMarket] = {
    "ethereum": CometMarket(
        comet="0xc3d688B66703497DAA19211EEdff47f25384cdc3",
        base_token="USDC",
        base_token_decimals=6,
        base_token_coingecko_id="usd-coin",
    ),
    "base": CometMarket(
        comet="0xb125E6687d4313864e53df431d5425969c15Eb2F",
        base_token="USDC",
        base_token_decimals=6,
        base_token_coingecko_id="usd-coin",
    ),
    "arbitrum": CometMarket(
        comet="0xA5EDBDD9646f8dFF606d7448e414884C7d905dCA",
        base_token="USDC",
        base_token_decimals=6,
        base_token_coingecko_id="usd-coin",
    ),
    "polygon": CometMarket(
        comet="0xF25212E676D1F7F89Cd72fFEe66158f541246445",
        base_token="USDC",
        base_token_decimals=6,
        base_token_coingecko_id="usd-coin",
    ),
    "optimism": CometMarket(
        comet="0x2e44e174f7D53F0212823acC11C01A11d58c5bCB",
        base_token="USDC",
        base_token_decimals=6,
        base_token_coingecko_id="usd-coin",
    ),
}


def get_supported_compound_chains() -> List[str]:
    return list(COMPOUND_V3_MARKETS)
