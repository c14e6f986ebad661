"""兑换插件"""
from .plugin import SwapPlugin

__all__ = ["SwapPlugin"]
