"""
Compound V3 收益来源
"""
from typing import List, Optional

from src.core.models import RiskLevel, YieldOpportunity
from src.core.registry import PluginContext
from src.core.yield_types import YieldSource, gather_isolated
from src.plugins.compound_v3 import CompoundV3Reader, get_supported_compound_chains


class CompoundV3YieldSource(YieldSource):
    """每条链只有基础代币可以赚取存款利息，其他资产不发起RPC"""

    protocol_name = "Compound V3"

    def __init__(self, reader: Optional[CompoundV3Reader] = None):
        self.reader = reader or CompoundV3Reader()
        self.supported_chains = get_supported_compound_chains()

    async def get_yield_opportunities(
        self, asset_symbol: str, context: PluginContext
    ) -> List[YieldOpportunity]:
        wanted = asset_symbol.upper()
        chains = [
            chain_id
            for chain_id in self.supported_chains
            if self.reader.get_market_config(chain_id).base_token.upper() == wanted
        ]
        results = await gather_isolated(
            (self._scan_chain(chain_id, context) for chain_id in chains),
            labels=chains,
            event="chain_scan_failed",
        )
        return list(results)

    async def _scan_chain(self, chain_id: str, context: PluginContext) -> YieldOpportunity:
        chain = context.get_chain_adapter_for_chain(chain_id).require_chain(chain_id)
        market = await self.reader.get_market(chain_id, context)

        return YieldOpportunity(
            protocol=self.protocol_name,
            chain_id=chain_id,
            chain_name=chain.name,
            asset=market.base_token,
            asset_address=market.comet,
            apy=market.supply_apr,
            apy_type="variable",
            tvl=market.total_supplied_usd,
            asset_price_usd=market.price_usd,
            risk_level=RiskLevel.LOW,
            category="lending",
            metadata={
                "borrow_apy": market.borrow_apr,
                "utilization": market.utilization,
                "comet": market.comet,
            },
        )
