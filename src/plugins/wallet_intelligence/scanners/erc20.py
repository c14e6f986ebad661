"""
ERC-20 已知代币扫描器
"""
import asyncio
from decimal import Decimal
from typing import List, Optional

from src.chains.evm.chains import KNOWN_TOKENS
from src.core.models import PositionAsset, PositionType, ProtocolPosition
from src.core.registry import PluginContext
from src.core.scanner_types import ProtocolScanner
from src.data_sources.coingecko import CoinGeckoClient
from src.plugins.wallet_intelligence.scanners.pricing import fetch_usd_prices


class Erc20Scanner(ProtocolScanner):
    """扫描已知代币表中的ERC-20余额，只返回非零持仓"""

    protocol_name = "ERC20 Tokens"

    def __init__(self, prices: Optional[CoinGeckoClient] = None):
        self.prices = prices
        self.supported_chains = list(KNOWN_TOKENS)

    async def scan_positions(
        self, chain_id: str, wallet: str, context: PluginContext
    ) -> List[ProtocolPosition]:
        adapter = context.get_chain_adapter_for_chain(chain_id)
        chain = adapter.require_chain(chain_id)
        tokens = [t for t in adapter.known_tokens_for(chain_id) if not adapter.is_native(chain_id, t)]
        if not tokens:
            return []

        balances = await asyncio.gather(
            *(adapter.get_token_balance(chain_id, wallet, token) for token in tokens)
        )
        held = [(t, b) for t, b in zip(tokens, balances) if int(b.balance) > 0]
        if not held:
            return []

        price_map = await fetch_usd_prices(self.prices, [t.coingecko_id or "" for t, _ in held])
        assets = [
            PositionAsset(
                symbol=token.symbol,
                address=token.address,
                balance=balance.balance_formatted,
                balance_usd=float(Decimal(balance.balance_formatted))
                * price_map.get(token.coingecko_id or "", 0.0),
            )
            for token, balance in held
        ]
        return [
            ProtocolPosition(
                protocol=self.protocol_name,
                type=PositionType.ERC20,
                chain_id=chain_id,
                chain_name=chain.name,
                assets=assets,
            )
        ]
