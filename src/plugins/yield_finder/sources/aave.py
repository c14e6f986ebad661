"""
Aave V3 收益来源
"""
from typing import List, Optional

from src.core.models import RiskLevel, YieldOpportunity
from src.core.registry import PluginContext
from src.core.yield_types import YieldSource, gather_isolated
from src.plugins.lending.addresses import get_supported_lending_chains
from src.plugins.lending.reader import AaveV3Reader


class AaveYieldSource(YieldSource):
    """逐链读取Aave V3储备，单条链失败时该链不产生结果"""

    protocol_name = "Aave V3"

    def __init__(self, reader: Optional[AaveV3Reader] = None):
        self.reader = reader or AaveV3Reader()
        self.supported_chains = get_supported_lending_chains()

    async def get_yield_opportunities(
        self, asset_symbol: str, context: PluginContext
    ) -> List[YieldOpportunity]:
        results = await gather_isolated(
            (self._scan_chain(chain_id, asset_symbol, context) for chain_id in self.supported_chains),
            labels=self.supported_chains,
            event="chain_scan_failed",
        )
        return [opportunity for opportunity in results if opportunity is not None]

    async def _scan_chain(
        self, chain_id: str, asset_symbol: str, context: PluginContext
    ) -> Optional[YieldOpportunity]:
        chain = context.get_chain_adapter_for_chain(chain_id).require_chain(chain_id)
        reserves = await self.reader.get_reserves(chain_id, context)

        wanted = asset_symbol.upper()
        reserve = next(
            (r for r in reserves if r.symbol.upper() == wanted and not r.is_frozen), None
        )
        if reserve is None:
            return None

        return YieldOpportunity(
            protocol=self.protocol_name,
            chain_id=chain_id,
            chain_name=chain.name,
            asset=reserve.symbol,
            asset_address=reserve.address,
            apy=reserve.supply_apy,
            apy_type="variable",
            tvl=reserve.total_supplied_usd,
            asset_price_usd=reserve.price_usd,
            risk_level=RiskLevel.LOW,
            category="lending",
            metadata={
                "borrow_apy": reserve.borrow_apy,
                "utilization": reserve.utilization,
                "ltv": reserve.ltv,
                "liquidation_threshold": reserve.liquidation_threshold,
            },
        )
