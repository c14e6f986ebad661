"""收益发现插件"""
from src.plugins.yield_finder.cost_estimator import EntryCost, EntryCostEstimator
from src.plugins.yield_finder.plugin import YieldFinderPlugin
from src.plugins.yield_finder.sources import AaveYieldSource, CompoundV3YieldSource

__all__ = [
    "YieldFinderPlugin",
    "EntryCost",
    "EntryCostEstimator",
    "AaveYieldSource",
    "CompoundV3YieldSource",
]
