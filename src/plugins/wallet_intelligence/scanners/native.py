"""
原生代币余额扫描器（所有生态）
"""
from decimal import Decimal
from typing import List, Optional

from src.core.models import PositionAsset, PositionType, ProtocolPosition
from src.core.registry import PluginContext
from src.core.scanner_types import ProtocolScanner
from src.data_sources.coingecko import CoinGeckoClient
from src.plugins.wallet_intelligence.scanners.pricing import fetch_usd_prices


class NativeBalanceScanner(ProtocolScanner):
    protocol_name = "Native Tokens"
    supported_chains: List[str] = []

    def __init__(self, prices: Optional[CoinGeckoClient] = None):
        self.prices = prices

    async def scan_positions(
        self, chain_id: str, wallet: str, context: PluginContext
    ) -> List[ProtocolPosition]:
        adapter = context.get_chain_adapter_for_chain(chain_id)
        if not adapter.is_valid_address(chain_id, wallet):
            return []
        chain = adapter.require_chain(chain_id)

        balance = await adapter.get_native_balance(chain_id, wallet)
        if int(balance.balance) == 0:
            return []

        token = chain.native_token
        price_map = await fetch_usd_prices(self.prices, [token.coingecko_id or ""])
        value = float(Decimal(balance.balance_formatted)) * price_map.get(token.coingecko_id or "", 0.0)

        return [
            ProtocolPosition(
                protocol=self.protocol_name,
                type=PositionType.NATIVE,
                chain_id=chain_id,
                chain_name=chain.name,
                assets=[
                    PositionAsset(
                        symbol=token.symbol,
                        address=token.address,
                        balance=balance.balance_formatted,
                        balance_usd=value,
                    )
                ],
            )
        ]
