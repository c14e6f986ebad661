"""Polymarket插件"""
from src.plugins.polymarket.plugin import PolymarketPlugin

__all__ = ["PolymarketPlugin"]
