"""兑换聚合器"""
from .base import SwapAggregator
from .jupiter import JupiterAggregator
from .lifi import LiFiAggregator
from .skip import SkipGoAggregator

__all__ = ["SwapAggregator", "JupiterAggregator", "SkipGoAggregator", "LiFiAggregator"]
