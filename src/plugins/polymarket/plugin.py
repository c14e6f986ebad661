"""
Polymarket 预测市场插件
"""
from typing import List, Optional

from src.core.models import PolymarketMarketsInput, PolymarketPositionsInput, ToolResult
from src.core.plugin import BasePlugin, ToolDefinition
from src.core.registry import PluginContext
from src.data_sources.polymarket import PolymarketDataClient, PolymarketGammaClient
from src.utils.amounts import format_usd

POLYMARKET_CHAIN = "polygon"


class PolymarketPlugin(BasePlugin):
    """预测市场浏览与持仓查询（只读）"""

    name = "polymarket"
    description = "Polymarket prediction markets: browse events and read positions"
    version = "1.0.0"

    def __init__(
        self,
        gamma: Optional[PolymarketGammaClient] = None,
        data: Optional[PolymarketDataClient] = None,
    ):
        super().__init__()
        self.gamma = gamma or PolymarketGammaClient()
        self.data = data or PolymarketDataClient()

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="defi_polymarket_markets",
                description=(
                    "Browse active Polymarket prediction-market events ordered by volume, with "
                    "outcome prices for each market. Optionally filter by tag (e.g. 'bitcoin', "
                    "'election')."
                ),
                input_model=PolymarketMarketsInput,
                handler=self._markets,
            ),
            ToolDefinition(
                name="defi_polymarket_positions",
                description=(
                    "Get open Polymarket positions for a Polygon wallet: size, average price, "
                    "current value and PnL per outcome."
                ),
                input_model=PolymarketPositionsInput,
                handler=self._positions,
            ),
        ]

    async def _markets(self, params: PolymarketMarketsInput, context: PluginContext) -> ToolResult:
        events = await self.gamma.get_events(tag=params.query, limit=params.limit)
        return self.json_result({"count": len(events), "events": events})

    async def _positions(
        self, params: PolymarketPositionsInput, context: PluginContext
    ) -> ToolResult:
        adapter = context.get_chain_adapter_for_chain(POLYMARKET_CHAIN)
        self.require_valid_address(adapter, POLYMARKET_CHAIN, params.address)

        positions = await self.data.get_positions(params.address)
        total = sum(float(p.get("current_value") or 0) for p in positions)
        return self.json_result(
            {
                "address": params.address,
                "count": len(positions),
                "total_value_usd": format_usd(total),
                "positions": positions,
            }
        )

    async def shutdown(self) -> None:
        await self.gamma.close()
        await self.data.close()
