"""
进入成本估算

gas成本 = 当前gas价格 * 操作的gas用量 * 原生代币USD价格。
RPC或价格不可用时使用按链的经验值；跨链成本来自LI.FI跨链报价，不可用时计为0。
"""
import asyncio
from typing import Dict, Iterable, NamedTuple, Optional

from src.core.models import Ecosystem
from src.core.registry import PluginContext
from src.data_sources.coingecko import CoinGeckoClient
from src.plugins.swap.aggregators import LiFiAggregator
from src.utils.amounts import parse_token_amount
from src.utils.exceptions import DataSourceError, DefiToolError
from src.utils.logger import get_logger

logger = get_logger(__name__)

GAS_UNITS: Dict[str, int] = {
    "erc20_approve": 50_000,
    "lending_supply": 250_000,
    "lending_withdraw": 300_000,
}
DEFAULT_GAS_UNITS = 250_000

# 单次操作的经验gas成本（USD）
FALLBACK_GAS_COST_USD: Dict[str, float] = {
    "ethereum": 5.0,
    "polygon": 0.01,
    "arbitrum": 0.10,
    "base": 0.01,
    "optimism": 0.05,
    "avalanche": 0.10,
}
DEFAULT_FALLBACK_GAS_COST_USD = 0.5

ENTRY_OPERATIONS = ("erc20_approve", "lending_supply")


class EntryCost(NamedTuple):
    gas_usd: float
    bridge_usd: float

    @property
    def total_usd(self) -> float:
        return self.gas_usd + self.bridge_usd


class EntryCostEstimator:
    """估算把资金存入某条链上协议的一次性成本"""

    def __init__(
        self,
        prices: Optional[CoinGeckoClient] = None,
        bridge: Optional[LiFiAggregator] = None,
    ):
        self.prices = prices
        self.bridge = bridge

    @staticmethod
    def fallback_gas_cost_usd(chain_id: str, operations: Iterable[str]) -> float:
        per_operation = FALLBACK_GAS_COST_USD.get(chain_id, DEFAULT_FALLBACK_GAS_COST_USD)
        return per_operation * len(list(operations))

    async def estimate_gas_cost_usd(
        self, chain_id: str, operations: Iterable[str], context: PluginContext
    ) -> float:
        operations = list(operations)
        fallback = self.fallback_gas_cost_usd(chain_id, operations)
        adapter = context.get_chain_adapter_for_chain(chain_id)
        chain = adapter.require_chain(chain_id)
        coingecko_id = chain.native_token.coingecko_id
        if adapter.ecosystem != Ecosystem.EVM or self.prices is None or not coingecko_id:
            return fallback

        try:
            gas_price, quotes = await asyncio.gather(
                adapter.get_gas_price(chain_id),
                self.prices.get_prices_by_ids([coingecko_id]),
            )
        except DataSourceError as e:
            logger.warning("gas_cost_fallback", chain_id=chain_id, error=str(e))
            return fallback

        native_price = (quotes.get(coingecko_id) or {}).get("usd")
        if native_price is None:
            logger.warning("gas_cost_fallback", chain_id=chain_id, error="native price missing")
            return fallback

        units = sum(GAS_UNITS.get(op, DEFAULT_GAS_UNITS) for op in operations)
        return gas_price * units / 10**18 * float(native_price)

    async def estimate_bridge_cost_usd(
        self,
        token_symbol: str,
        amount: str,
        from_chain_id: str,
        to_chain_id: str,
        context: PluginContext,
    ) -> float:
        if from_chain_id == to_chain_id or self.bridge is None:
            return 0.0
        if not (self.bridge.supports(from_chain_id) and self.bridge.supports(to_chain_id)):
            return 0.0

        try:
            src_token, dst_token = await asyncio.gather(
                context.get_chain_adapter_for_chain(from_chain_id).resolve_token(
                    from_chain_id, token_symbol
                ),
                context.get_chain_adapter_for_chain(to_chain_id).resolve_token(
                    to_chain_id, token_symbol
                ),
            )
            if src_token is None or dst_token is None:
                return 0.0
            return await self.bridge.get_bridge_cost_usd(
                src_token,
                dst_token,
                parse_token_amount(amount, src_token.decimals),
                from_chain_id,
                to_chain_id,
            )
        except (DataSourceError, DefiToolError) as e:
            logger.warning(
                "bridge_cost_unavailable", from_chain=from_chain_id, to_chain=to_chain_id, error=str(e)
            )
            return 0.0

    async def estimate_entry_costs(
        self,
        chain_ids: Iterable[str],
        token_symbol: str,
        amount: str,
        current_chain_id: Optional[str],
        context: PluginContext,
    ) -> Dict[str, EntryCost]:
        """按目标链估算 approve + supply 的gas与（需要时）跨链成本"""
        targets = list(dict.fromkeys(chain_ids))

        async def for_chain(chain_id: str) -> EntryCost:
            gas, bridge = await asyncio.gather(
                self.estimate_gas_cost_usd(chain_id, ENTRY_OPERATIONS, context),
                self.estimate_bridge_cost_usd(
                    token_symbol, amount, current_chain_id or chain_id, chain_id, context
                ),
            )
            return EntryCost(gas_usd=gas, bridge_usd=bridge)

        costs = await asyncio.gather(*(for_chain(chain_id) for chain_id in targets))
        return dict(zip(targets, costs))
