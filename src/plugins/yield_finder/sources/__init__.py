"""收益来源实现"""
from src.plugins.yield_finder.sources.aave import AaveYieldSource
from src.plugins.yield_finder.sources.compound import CompoundV3YieldSource

__all__ = ["AaveYieldSource", "CompoundV3YieldSource"]
