"""Polymarket数据源"""
from .client import PolymarketDataClient, PolymarketGammaClient

__all__ = ["PolymarketGammaClient", "PolymarketDataClient"]
