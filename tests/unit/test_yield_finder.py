"""
收益发现插件单元测试
"""
import json
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.chains.evm.chains import KNOWN_TOKENS as EVM_TOKENS
from src.core.models import RiskLevel, YieldOpportunity
from src.core.yield_types import YieldSource, gather_isolated
from src.data_sources.coingecko import CoinGeckoClient
from src.plugins.compound_v3 import COMPOUND_V3_MARKETS, CompoundV3Reader
from src.plugins.compound_v3.reader import CometMarketState, parse_market
from src.plugins.lending.reader import AaveReserve
from src.plugins.swap.aggregators import LiFiAggregator
from src.plugins.yield_finder import (
    AaveYieldSource,
    CompoundV3YieldSource,
    EntryCostEstimator,
    YieldFinderPlugin,
)
from src.server.router import ToolRouter
from src.utils.exceptions import AggregatorError, DataSourceError


def make_reserve(symbol: str, apy: float, tvl: float = 1_000_000.0, frozen: bool = False) -> AaveReserve:
    return AaveReserve(
        symbol=symbol,
        address="0x" + "11" * 20,
        decimals=6,
        supply_apy=apy,
        borrow_apy=apy + 2,
        total_supplied=tvl,
        total_borrowed=tvl / 2,
        available_liquidity=tvl / 2,
        utilization=50.0,
        price_usd=1.0,
        total_supplied_usd=tvl,
        ltv=75.0,
        liquidation_threshold=78.0,
        can_collateral=True,
        can_borrow=True,
        is_frozen=frozen,
        liquidity_index=10**27,
        variable_borrow_index=10**27,
    )


class StubReader:
    """按链返回预设储备；failing中的链抛出DataSourceError"""

    def __init__(self, reserves: Dict[str, List[AaveReserve]], failing=()):
        self.reserves = reserves
        self.failing = set(failing)
        self.calls: List[str] = []

    async def get_reserves(self, chain_id, context):
        self.calls.append(chain_id)
        if chain_id in self.failing:
            raise DataSourceError(f"rpc:{chain_id}", "connection refused")
        return self.reserves.get(chain_id, [])


class StaticSource(YieldSource):
    def __init__(self, name: str, opportunities: List[YieldOpportunity]):
        self.protocol_name = name
        self.opportunities = opportunities

    async def get_yield_opportunities(self, asset_symbol, context):
        return [o for o in self.opportunities if o.asset == asset_symbol.upper()]


class BrokenSource(YieldSource):
    protocol_name = "Broken"

    async def get_yield_opportunities(self, asset_symbol, context):
        raise RuntimeError("indexer offline")


def comet_state(chain_id: str, supply_apr: float) -> CometMarketState:
    return CometMarketState(
        chain_id=chain_id,
        comet=COMPOUND_V3_MARKETS[chain_id].comet,
        base_token="USDC",
        supply_apr=supply_apr,
        borrow_apr=supply_apr + 1.5,
        total_supplied=2_000_000.0,
        total_borrowed=1_500_000.0,
        utilization=75.0,
        price_usd=1.0,
        total_supplied_usd=2_000_000.0,
    )


class StubCometReader(CompoundV3Reader):
    """按链返回预设市场快照；failing中的链抛出DataSourceError"""

    def __init__(self, rates: Optional[Dict[str, float]] = None, failing=()):
        self.rates = rates or {}
        self.failing = set(failing)
        self.calls: List[str] = []

    async def get_market(self, chain_id, context):
        self.calls.append(chain_id)
        if chain_id in self.failing:
            raise DataSourceError(f"rpc:{chain_id}", "connection refused")
        return comet_state(chain_id, self.rates.get(chain_id, 4.0))


def opportunity(
    protocol: str, chain_id: str, apy: float, risk: RiskLevel, price: Optional[float] = None
) -> YieldOpportunity:
    return YieldOpportunity(
        protocol=protocol,
        chain_id=chain_id,
        chain_name=chain_id.title(),
        asset="USDC",
        asset_address="0x" + "22" * 20,
        apy=apy,
        risk_level=risk,
        asset_price_usd=price,
    )


class TestGatherIsolated:
    @pytest.mark.asyncio
    async def test_failures_dropped_order_kept(self):
        async def ok(value):
            return value

        async def fail():
            raise ValueError("boom")

        results = await gather_isolated([ok(1), fail(), ok(3)], labels=["a", "b", "c"])
        assert results == [1, 3]

    @pytest.mark.asyncio
    async def test_all_failed(self):
        async def fail():
            raise DataSourceError("x", "down")

        assert await gather_isolated([fail(), fail()]) == []


class TestAaveYieldSource:
    """Aave收益来源测试"""

    @pytest.mark.asyncio
    async def test_failing_chain_is_skipped(self, registry_factory, evm_adapter):
        reader = StubReader(
            {
                "ethereum": [make_reserve("USDC", 4.1)],
                "base": [make_reserve("USDC", 5.2), make_reserve("WETH", 1.9)],
                "arbitrum": [make_reserve("usdc", 3.3)],
            },
            failing={"polygon"},
        )
        source = AaveYieldSource(reader)
        registry = await registry_factory([evm_adapter], yield_sources=[source])

        opportunities = await source.get_yield_opportunities("USDC", registry.get_plugin_context())

        assert sorted(o.chain_id for o in opportunities) == ["arbitrum", "base", "ethereum"]
        assert "polygon" in reader.calls
        base = next(o for o in opportunities if o.chain_id == "base")
        assert base.apy == 5.2
        assert base.risk_level == RiskLevel.LOW
        assert base.metadata["borrow_apy"] == pytest.approx(7.2)

    @pytest.mark.asyncio
    async def test_frozen_reserve_ignored(self, registry_factory, evm_adapter):
        reader = StubReader({"ethereum": [make_reserve("USDC", 9.9, frozen=True)]})
        source = AaveYieldSource(reader)
        registry = await registry_factory([evm_adapter], yield_sources=[source])

        assert await source.get_yield_opportunities("USDC", registry.get_plugin_context()) == []

    @pytest.mark.asyncio
    async def test_every_chain_failing(self, registry_factory, evm_adapter):
        source = AaveYieldSource(StubReader({}, failing=source_chains()))
        registry = await registry_factory([evm_adapter], yield_sources=[source])

        assert await source.get_yield_opportunities("USDC", registry.get_plugin_context()) == []


def source_chains():
    return AaveYieldSource(StubReader({})).supported_chains


class TestYieldFinderPlugin:
    """defi_find_best_yield 测试"""

    @pytest.mark.asyncio
    async def test_partial_chain_failure_still_returns(self, registry_factory, evm_adapter):
        reader = StubReader(
            {
                "ethereum": [make_reserve("USDC", 4.1)],
                "base": [make_reserve("USDC", 5.2)],
                "optimism": [make_reserve("USDC", 4.8)],
            },
            failing={"arbitrum", "avalanche"},
        )
        registry = await registry_factory(
            [evm_adapter], [YieldFinderPlugin()], yield_sources=[AaveYieldSource(reader)]
        )
        router = ToolRouter(registry)

        result = await router.call("defi_find_best_yield", {"token": "USDC", "amount": "1000"})

        assert result.is_error is False
        payload = json.loads(result.text)
        assert payload["opportunities_found"] == 3
        assert [o["chain_id"] for o in payload["all_opportunities"]] == [
            "base",
            "optimism",
            "ethereum",
        ]
        best = payload["best_opportunity"]
        assert best["gross_apy"] == "5.20%"
        assert best["net_apy"] == "5.20%"
        assert best["total_entry_cost_usd"] == "$0.00"
        assert best["estimated_yearly_yield"] == "52.0000 USDC"
        assert best["cross_chain"] is False

    @pytest.mark.asyncio
    async def test_risk_filter_and_cross_chain_steps(self, registry_factory, evm_adapter):
        source = StaticSource(
            "Mixed",
            [
                opportunity("Safe", "ethereum", 3.0, RiskLevel.LOW),
                opportunity("Degen", "base", 40.0, RiskLevel.HIGH),
                opportunity("Middle", "arbitrum", 6.0, RiskLevel.MEDIUM),
            ],
        )
        registry = await registry_factory(
            [evm_adapter], [YieldFinderPlugin()], yield_sources=[source]
        )
        router = ToolRouter(registry)

        result = await router.call(
            "defi_find_best_yield",
            {"token": "usdc", "amount": "500", "current_chain_id": "ethereum", "risk_tolerance": "low"},
        )

        payload = json.loads(result.text)
        assert payload["opportunities_found"] == 1
        assert payload["filtered_by_risk"] == 2
        best = payload["best_opportunity"]
        assert best["protocol"] == "Safe"
        assert best["cross_chain"] is False
        assert len(best["execution_steps"]) == 1

        result = await router.call(
            "defi_find_best_yield",
            {"token": "usdc", "amount": "500", "current_chain_id": "ethereum"},
        )
        best = json.loads(result.text)["best_opportunity"]
        assert best["protocol"] == "Middle"
        assert best["cross_chain"] is True
        assert best["execution_steps"][0].startswith("Bridge 500 usdc from ethereum to arbitrum")

    @pytest.mark.asyncio
    async def test_failing_source_isolated(self, registry_factory, evm_adapter):
        good = StaticSource("Good", [opportunity("Good", "base", 2.5, RiskLevel.LOW)])
        registry = await registry_factory(
            [evm_adapter], [YieldFinderPlugin()], yield_sources=[BrokenSource(), good]
        )
        router = ToolRouter(registry)

        result = await router.call("defi_find_best_yield", {"token": "USDC", "amount": "1"})

        payload = json.loads(result.text)
        assert payload["opportunities_found"] == 1
        assert payload["best_opportunity"]["protocol"] == "Good"

    @pytest.mark.asyncio
    async def test_nothing_found(self, registry_factory, evm_adapter):
        registry = await registry_factory(
            [evm_adapter], [YieldFinderPlugin()], yield_sources=[BrokenSource()]
        )
        router = ToolRouter(registry)

        result = await router.call("defi_find_best_yield", {"token": "XYZ", "amount": "1"})

        assert result.is_error is False
        payload = json.loads(result.text)
        assert payload["opportunities_found"] == 0
        assert "XYZ" in payload["message"]

    @pytest.mark.asyncio
    async def test_all_filtered_by_risk(self, registry_factory, evm_adapter):
        source = StaticSource("Degen", [opportunity("Degen", "base", 40.0, RiskLevel.HIGH)])
        registry = await registry_factory(
            [evm_adapter], [YieldFinderPlugin()], yield_sources=[source]
        )
        router = ToolRouter(registry)

        result = await router.call(
            "defi_find_best_yield", {"token": "USDC", "amount": "1", "risk_tolerance": "medium"}
        )

        payload = json.loads(result.text)
        assert payload["opportunities_found"] == 0
        assert payload["filtered_by_risk"] == 1
        assert payload["best_opportunity"] is None


class TestCompoundV3YieldSource:
    """Compound V3收益来源测试"""

    def test_parse_market(self):
        market = COMPOUND_V3_MARKETS["base"]
        state = parse_market(
            "base",
            market,
            utilization=9 * 10**17,
            total_supply=3_000_000 * 10**6,
            total_borrow=2_700_000 * 10**6,
            supply_rate=1_585_489_599,
            borrow_rate=2_219_685_438,
        )
        assert state.utilization == pytest.approx(90.0)
        assert state.supply_apr == pytest.approx(5.0, rel=1e-6)
        assert state.borrow_apr == pytest.approx(7.0, rel=1e-6)
        assert state.total_supplied == 3_000_000
        assert state.total_supplied_usd == 3_000_000
        assert state.comet == market.comet

    @pytest.mark.asyncio
    async def test_base_token_markets(self, registry_factory, evm_adapter):
        reader = StubCometReader(rates={"base": 6.1, "arbitrum": 4.4}, failing={"polygon"})
        source = CompoundV3YieldSource(reader)
        registry = await registry_factory([evm_adapter], yield_sources=[source])

        opportunities = await source.get_yield_opportunities("usdc", registry.get_plugin_context())

        assert sorted(reader.calls) == sorted(COMPOUND_V3_MARKETS)
        assert sorted(o.chain_id for o in opportunities) == ["arbitrum", "base", "ethereum", "optimism"]
        base = next(o for o in opportunities if o.chain_id == "base")
        assert base.protocol == "Compound V3"
        assert base.apy == 6.1
        assert base.asset_address == COMPOUND_V3_MARKETS["base"].comet
        assert base.asset_price_usd == 1.0
        assert base.tvl == 2_000_000.0
        assert base.metadata["utilization"] == 75.0

    @pytest.mark.asyncio
    async def test_other_assets_need_no_rpc(self, registry_factory, evm_adapter):
        reader = StubCometReader()
        source = CompoundV3YieldSource(reader)
        registry = await registry_factory([evm_adapter], yield_sources=[source])

        assert await source.get_yield_opportunities("WETH", registry.get_plugin_context()) == []
        assert reader.calls == []


def price_client(prices):
    client = MagicMock(spec=CoinGeckoClient)
    client.get_prices_by_ids = AsyncMock(
        return_value={cg_id: {"usd": usd} for cg_id, usd in prices.items()}
    )
    return client


def bridge_quoter(cost=None, error=None):
    bridge = MagicMock(spec=LiFiAggregator)
    bridge.supports.return_value = True
    bridge.get_bridge_cost_usd = AsyncMock(return_value=cost, side_effect=error)
    return bridge


class TestEntryCostEstimator:
    """进入成本估算测试"""

    @pytest.mark.asyncio
    async def test_gas_cost_from_gas_price(self, registry_factory, evm_adapter):
        evm_adapter.gas_prices = {"ethereum": 20 * 10**9}
        registry = await registry_factory([evm_adapter])
        estimator = EntryCostEstimator(prices=price_client({"ethereum": 2000.0}))

        cost = await estimator.estimate_gas_cost_usd(
            "ethereum", ["erc20_approve", "lending_supply"], registry.get_plugin_context()
        )

        # 20 gwei * 300000 gas * $2000
        assert cost == pytest.approx(12.0)

    @pytest.mark.asyncio
    async def test_rpc_failure_uses_fallback(self, registry_factory, evm_adapter):
        evm_adapter.failing_chains = {"ethereum"}
        registry = await registry_factory([evm_adapter])
        estimator = EntryCostEstimator(prices=price_client({"ethereum": 2000.0}))

        cost = await estimator.estimate_gas_cost_usd(
            "ethereum", ["erc20_approve", "lending_supply"], registry.get_plugin_context()
        )

        assert cost == pytest.approx(10.0)

    @pytest.mark.asyncio
    async def test_missing_native_price_uses_fallback(self, registry_factory, evm_adapter):
        evm_adapter.gas_prices = {"base": 10**7}
        registry = await registry_factory([evm_adapter])
        estimator = EntryCostEstimator(prices=price_client({}))

        cost = await estimator.estimate_gas_cost_usd(
            "base", ["lending_supply"], registry.get_plugin_context()
        )

        assert cost == pytest.approx(0.01)

    @pytest.mark.asyncio
    async def test_bridge_cost_only_for_other_chains(self, registry_factory, evm_adapter):
        registry = await registry_factory([evm_adapter])
        bridge = bridge_quoter(cost=3.5)
        estimator = EntryCostEstimator(prices=price_client({"ethereum": 2000.0}), bridge=bridge)

        costs = await estimator.estimate_entry_costs(
            ["base", "ethereum", "base"], "USDC", "1000", "ethereum", registry.get_plugin_context()
        )

        assert set(costs) == {"base", "ethereum"}
        assert costs["base"].bridge_usd == 3.5
        assert costs["ethereum"].bridge_usd == 0.0
        bridge.get_bridge_cost_usd.assert_awaited_once_with(
            EVM_TOKENS["ethereum"]["USDC"], EVM_TOKENS["base"]["USDC"], 1_000_000_000, "ethereum", "base"
        )

    @pytest.mark.asyncio
    async def test_bridge_failure_counts_as_zero(self, registry_factory, evm_adapter):
        registry = await registry_factory([evm_adapter])
        estimator = EntryCostEstimator(bridge=bridge_quoter(error=AggregatorError("li.fi", "HTTP 500")))

        cost = await estimator.estimate_bridge_cost_usd(
            "USDC", "1000", "ethereum", "base", registry.get_plugin_context()
        )

        assert cost == 0.0


class TestNetApyRanking:
    """按净收益率排序"""

    @staticmethod
    async def build_router(registry_factory, evm_adapter):
        # 以太坊主网gas昂贵，Base几乎免费
        evm_adapter.gas_prices = {"ethereum": 50 * 10**9, "base": 10**7}
        source = StaticSource(
            "Lending",
            [
                opportunity("Lending", "ethereum", 5.0, RiskLevel.LOW, price=1.0),
                opportunity("Lending", "base", 4.8, RiskLevel.LOW, price=1.0),
            ],
        )
        estimator = EntryCostEstimator(prices=price_client({"ethereum": 3000.0}))
        registry = await registry_factory(
            [evm_adapter], [YieldFinderPlugin(cost_estimator=estimator)], yield_sources=[source]
        )
        return ToolRouter(registry)

    def test_net_apy_formula(self):
        # 1000美元、30天、毛APY 12%，进入成本5美元
        net = YieldFinderPlugin.net_apy(12.0, 1000.0, 5.0, 30)
        assert net == pytest.approx(12.0 - 5.0 / 1000 * 100 * 365 / 30)
        assert YieldFinderPlugin.net_apy(12.0, None, 5.0, 30) == 12.0

    @pytest.mark.asyncio
    async def test_cheap_chain_outranks_higher_gross_apy(self, registry_factory, evm_adapter):
        router = await self.build_router(registry_factory, evm_adapter)

        result = await router.call(
            "defi_find_best_yield", {"token": "USDC", "amount": "1000", "time_horizon_days": 30}
        )

        payload = json.loads(result.text)
        assert payload["time_horizon_days"] == 30
        assert [o["chain_id"] for o in payload["all_opportunities"]] == ["base", "ethereum"]
        best, mainnet = payload["all_opportunities"]
        assert best["gross_apy"] == "4.80%"
        assert best["total_entry_cost_usd"] == "$0.01"
        # 50 gwei * 300000 gas * $3000 = $45
        assert mainnet["gas_cost_usd"] == "$45.00"
        assert mainnet["estimated_net_yield_usd"].startswith("-$")
        assert mainnet["net_apy"].startswith("-")

    @pytest.mark.asyncio
    async def test_large_long_position_favours_gross_apy(self, registry_factory, evm_adapter):
        router = await self.build_router(registry_factory, evm_adapter)

        result = await router.call(
            "defi_find_best_yield", {"token": "USDC", "amount": "1000000"}
        )

        payload = json.loads(result.text)
        assert payload["time_horizon_days"] == 365
        best = payload["best_opportunity"]
        assert best["chain_id"] == "ethereum"
        assert best["estimated_gross_yield_usd"] == "$50,000.00"
        assert best["estimated_net_yield_usd"] == "$49,955.00"

    @pytest.mark.asyncio
    async def test_time_horizon_validated(self, registry_factory, evm_adapter):
        router = await self.build_router(registry_factory, evm_adapter)

        result = await router.call(
            "defi_find_best_yield", {"token": "USDC", "amount": "1", "time_horizon_days": 0}
        )

        assert result.is_error is True
        assert "time_horizon_days" in result.text
