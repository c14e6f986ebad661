"""
功能插件

build_components 组装默认的插件、收益来源与钱包扫描器。
共享的HTTP客户端由持有它的插件在shutdown时关闭。
"""
from typing import List, NamedTuple

from src.core.plugin import DefiPlugin
from src.core.scanner_types import ProtocolScanner
from src.core.yield_types import YieldSource
from src.data_sources.coingecko import CoinGeckoClient
from src.data_sources.polymarket import PolymarketDataClient, PolymarketGammaClient
from src.plugins.balances import BalancesPlugin
from src.plugins.compound_v3 import CompoundV3Reader
from src.plugins.lending import AaveV3Reader, LendingPlugin
from src.plugins.polymarket import PolymarketPlugin
from src.plugins.swap import SwapPlugin
from src.plugins.swap.aggregators import JupiterAggregator, LiFiAggregator, SkipGoAggregator
from src.plugins.token_info import TokenInfoPlugin
from src.plugins.wallet_intelligence import (
    AaveV3Scanner,
    CompoundV3Scanner,
    Erc20Scanner,
    NativeBalanceScanner,
    PolymarketScanner,
    WalletIntelligencePlugin,
)
from src.plugins.yield_finder import (
    AaveYieldSource,
    CompoundV3YieldSource,
    EntryCostEstimator,
    YieldFinderPlugin,
)
from src.utils.config import AppConfig


class Components(NamedTuple):
    plugins: List[DefiPlugin]
    yield_sources: List[YieldSource]
    scanners: List[ProtocolScanner]


def build_components(app_config: AppConfig, coingecko_api_type: str = "demo") -> Components:
    """按配置构建默认组件"""
    timeout = app_config.request_timeout
    coingecko = CoinGeckoClient(
        api_key=app_config.get_api_key("coingecko"),
        api_type=coingecko_api_type,
        timeout=timeout,
    )
    polymarket_data = PolymarketDataClient(timeout=timeout)
    aave = AaveV3Reader()
    compound = CompoundV3Reader()
    lifi = LiFiAggregator(timeout=timeout, api_key=app_config.get_api_key("lifi"))

    plugins: List[DefiPlugin] = [
        BalancesPlugin(),
        TokenInfoPlugin(coingecko=coingecko),
        SwapPlugin(
            [
                JupiterAggregator(timeout=timeout, api_key=app_config.get_api_key("jupiter")),
                SkipGoAggregator(timeout=timeout),
                lifi,
            ]
        ),
        LendingPlugin(reader=aave),
        YieldFinderPlugin(cost_estimator=EntryCostEstimator(prices=coingecko, bridge=lifi)),
        WalletIntelligencePlugin(),
        PolymarketPlugin(gamma=PolymarketGammaClient(timeout=timeout), data=polymarket_data),
    ]
    yield_sources: List[YieldSource] = [
        AaveYieldSource(reader=aave),
        CompoundV3YieldSource(reader=compound),
    ]
    scanners: List[ProtocolScanner] = [
        NativeBalanceScanner(prices=coingecko),
        Erc20Scanner(prices=coingecko),
        AaveV3Scanner(reader=aave),
        CompoundV3Scanner(reader=compound, prices=coingecko),
        PolymarketScanner(client=polymarket_data),
    ]
    return Components(plugins, yield_sources, scanners)


__all__ = ["Components", "build_components"]
