"""
Cosmos链与已知denom表

rpc_url 为 REST (LCD) 端点。
"""
from typing import Dict, List

from src.core.models import ChainInfo, Ecosystem, TokenInfo
from src.utils.config import DEFAULT_RPC_URLS

# bech32地址前缀
BECH32_PREFIXES: Dict[str, str] = {
    "osmosis-1": "osmo",
    "cosmoshub-4": "cosmos",
}

COSMOS_CHAINS: List[ChainInfo] = [
    ChainInfo(
        id="osmosis-1",
        name="Osmosis",
        ecosystem=Ecosystem.COSMOS,
        native_chain_id="osmosis-1",
        native_token=TokenInfo(
            symbol="OSMO",
            name="Osmosis",
            decimals=6,
            address="uosmo",
            chain_id="osmosis-1",
            coingecko_id="osmosis",
        ),
        rpc_url=DEFAULT_RPC_URLS["osmosis-1"],
        explorer_url="https://www.mintscan.io/osmosis",
    ),
    ChainInfo(
        id="cosmoshub-4",
        name="Cosmos Hub",
        ecosystem=Ecosystem.COSMOS,
        native_chain_id="cosmoshub-4",
        native_token=TokenInfo(
            symbol="ATOM",
            name="Cosmos Hub",
            decimals=6,
            address="uatom",
            chain_id="cosmoshub-4",
            coingecko_id="cosmos",
        ),
        rpc_url=DEFAULT_RPC_URLS["cosmoshub-4"],
        explorer_url="https://www.mintscan.io/cosmos",
    ),
]

KNOWN_TOKENS: Dict[str, Dict[str, TokenInfo]] = {
    "osmosis-1": {
        "OSMO": TokenInfo(
            symbol="OSMO", name="Osmosis", decimals=6, address="uosmo",
            chain_id="osmosis-1", coingecko_id="osmosis",
        ),
        "ATOM": TokenInfo(
            symbol="ATOM", name="Cosmos Hub", decimals=6,
            address="ibc/27394FB092D2ECCD56123C74F36E4C1F926001CEADA9CA97EA622B25F41E5EB2",
            chain_id="osmosis-1", coingecko_id="cosmos",
        ),
        "USDC": TokenInfo(
            symbol="USDC", name="USD Coin", decimals=6,
            address="ibc/498A0751C798A0D9A389AA3691123DADA57DAA4FE165D5C75085FA758DC7A5C",
            chain_id="osmosis-1", coingecko_id="usd-coin",
        ),
    },
    "cosmoshub-4": {
        "ATOM": TokenInfo(
            symbol="ATOM", name="Cosmos Hub", decimals=6, address="uatom",
            chain_id="cosmoshub-4", coingecko_id="cosmos",
        ),
    },
}
