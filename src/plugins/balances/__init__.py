"""余额插件"""
from .plugin import BalancesPlugin

__all__ = ["BalancesPlugin"]
