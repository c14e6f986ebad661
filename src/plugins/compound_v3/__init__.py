"""Compound V3（Comet）链上读取"""
from .addresses import COMPOUND_V3_MARKETS, CometMarket, get_supported_compound_chains
from .reader import CometAccount, CometMarketState, CompoundV3Reader

__all__ = [
    "COMPOUND_V3_MARKETS",
    "CometMarket",
    "get_supported_compound_chains",
    "CometAccount",
    "CometMarketState",
    "CompoundV3Reader",
]
