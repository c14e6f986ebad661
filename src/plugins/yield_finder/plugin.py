"""
收益发现插件

汇总所有已注册收益来源的机会，按风险过滤后按净收益率降序排列。
净收益率 = (持有期毛收益 - 进入成本) / 本金，再按持有天数年化。
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from src.core.models import RISK_ORDER, FindBestYieldInput, ToolResult, YieldOpportunity
from src.core.plugin import BasePlugin, ToolDefinition
from src.core.registry import PluginContext
from src.core.yield_types import gather_isolated
from src.plugins.yield_finder.cost_estimator import EntryCost, EntryCostEstimator
from src.utils.amounts import format_usd

NO_COST = EntryCost(gas_usd=0.0, bridge_usd=0.0)


class YieldFinderPlugin(BasePlugin):
    """跨协议、跨链的最佳收益查找"""

    name = "yield-finder"
    description = "Find the best yield for a token across protocols and chains"
    version = "1.1.0"

    def __init__(self, cost_estimator: Optional[EntryCostEstimator] = None):
        super().__init__()
        self.cost_estimator = cost_estimator

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="defi_find_best_yield",
                description=(
                    "Find the best yield opportunities for a token across all supported protocols "
                    "and chains (Aave V3 and Compound V3 across Ethereum, Base, Arbitrum, Polygon, "
                    "Optimism and Avalanche). Entry costs (approve and supply gas, plus bridging "
                    "when current_chain_id differs) are spread over time_horizon_days and the "
                    "list is ranked by net APY with execution steps. Chains that cannot be "
                    "reached are skipped."
                ),
                input_model=FindBestYieldInput,
                handler=self._find_best_yield,
            )
        ]

    async def _find_best_yield(
        self, params: FindBestYieldInput, context: PluginContext
    ) -> ToolResult:
        sources = context.get_yield_sources()
        batches = await gather_isolated(
            (source.get_yield_opportunities(params.token, context) for source in sources),
            labels=[source.protocol_name for source in sources],
            event="yield_source_failed",
        )
        opportunities = [opportunity for batch in batches for opportunity in batch]

        if not opportunities:
            return self.json_result(
                {
                    "token": params.token,
                    "amount": params.amount,
                    "opportunities_found": 0,
                    "message": (
                        f"No yield opportunities found for {params.token}. Make sure the token "
                        "is listed on a supported lending protocol."
                    ),
                }
            )

        max_risk = RISK_ORDER[params.risk_tolerance]
        eligible = [o for o in opportunities if RISK_ORDER[o.risk_level] <= max_risk]

        costs: Dict[str, EntryCost] = {}
        if self.cost_estimator is not None and eligible:
            costs = await self.cost_estimator.estimate_entry_costs(
                (o.chain_id for o in eligible),
                params.token,
                params.amount,
                params.current_chain_id,
                context,
            )

        scored = [self._describe(o, params, costs.get(o.chain_id, NO_COST)) for o in eligible]
        scored.sort(key=lambda item: item[0], reverse=True)
        ranked = [entry for _, entry in scored]
        return self.json_result(
            {
                "token": params.token,
                "amount": params.amount,
                "current_chain_id": params.current_chain_id or "not specified",
                "risk_tolerance": params.risk_tolerance,
                "time_horizon_days": params.time_horizon_days,
                "opportunities_found": len(ranked),
                "filtered_by_risk": len(opportunities) - len(eligible),
                "best_opportunity": ranked[0] if ranked else None,
                "all_opportunities": ranked,
            }
        )

    @staticmethod
    def net_apy(
        apy: float, amount_usd: Optional[float], entry_cost_usd: float, days: int
    ) -> float:
        """进入成本摊入持有期后的年化收益率；本金无法估值时等于毛APY"""
        if not amount_usd or amount_usd <= 0:
            return apy
        years = days / 365
        gross = amount_usd * apy / 100 * years
        return (gross - entry_cost_usd) / amount_usd * 100 / years

    @classmethod
    def _describe(
        cls, opportunity: YieldOpportunity, params: FindBestYieldInput, cost: EntryCost
    ) -> Tuple[float, Dict[str, Any]]:
        cross_chain = bool(params.current_chain_id) and params.current_chain_id != opportunity.chain_id
        amount = float(Decimal(params.amount))
        yearly = amount * opportunity.apy / 100
        years = params.time_horizon_days / 365

        amount_usd = None
        if opportunity.asset_price_usd is not None:
            amount_usd = amount * opportunity.asset_price_usd
        net_apy = cls.net_apy(opportunity.apy, amount_usd, cost.total_usd, params.time_horizon_days)

        steps = []
        if cross_chain:
            steps.append(
                f"Bridge {params.amount} {params.token} from {params.current_chain_id} "
                f"to {opportunity.chain_id}"
            )
        supply = (
            f"Supply {params.amount} {params.token} to {opportunity.protocol} on {opportunity.chain_id}"
        )
        if opportunity.protocol == "Aave V3":
            supply += " (use defi_lending_supply_tx)"
        steps.append(supply)

        gross_yield_usd = amount_usd * opportunity.apy / 100 * years if amount_usd else None
        return net_apy, {
            "protocol": opportunity.protocol,
            "chain_id": opportunity.chain_id,
            "chain_name": opportunity.chain_name,
            "asset": opportunity.asset,
            "asset_address": opportunity.asset_address,
            "category": opportunity.category,
            "risk_level": opportunity.risk_level,
            "gross_apy": f"{opportunity.apy:.2f}%",
            "net_apy": f"{net_apy:.2f}%",
            "apy_type": opportunity.apy_type,
            "tvl": format_usd(opportunity.tvl) if opportunity.tvl is not None else None,
            "cross_chain": cross_chain,
            "gas_cost_usd": format_usd(cost.gas_usd),
            "bridge_cost_usd": format_usd(cost.bridge_usd),
            "total_entry_cost_usd": format_usd(cost.total_usd),
            "estimated_yearly_yield": f"{yearly:.4f} {params.token}",
            "estimated_gross_yield_usd": (
                format_usd(gross_yield_usd) if gross_yield_usd is not None else None
            ),
            "estimated_net_yield_usd": (
                format_usd(gross_yield_usd - cost.total_usd) if gross_yield_usd is not None else None
            ),
            "execution_steps": steps,
            "metadata": opportunity.metadata,
        }
