"""
Polymarket 预测市场持仓扫描器（Polygon）
"""
from typing import List, Optional

from src.core.models import PositionAsset, PositionType, ProtocolPosition
from src.core.registry import PluginContext
from src.core.scanner_types import ProtocolScanner
from src.data_sources.polymarket import PolymarketDataClient


class PolymarketScanner(ProtocolScanner):
    protocol_name = "Polymarket"
    supported_chains = ["polygon"]

    def __init__(self, client: Optional[PolymarketDataClient] = None):
        self.client = client or PolymarketDataClient()

    async def scan_positions(
        self, chain_id: str, wallet: str, context: PluginContext
    ) -> List[ProtocolPosition]:
        chain = context.get_chain_adapter_for_chain(chain_id).require_chain(chain_id)
        positions = await self.client.get_positions(wallet)

        assets = [
            PositionAsset(
                symbol=str(p.get("market") or p.get("outcome") or "Unknown")[:50],
                address=p.get("asset") or "",
                balance=str(p.get("size") or "0"),
                balance_usd=float(p.get("current_value") or 0),
            )
            for p in positions
            if float(p.get("size") or 0) > 0
        ]
        if not assets:
            return []

        return [
            ProtocolPosition(
                protocol=self.protocol_name,
                type=PositionType.PREDICTION_MARKET,
                chain_id=chain_id,
                chain_name=chain.name,
                assets=assets,
            )
        ]
