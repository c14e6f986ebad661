"""CoinGecko数据源"""
from .client import PLATFORM_MAP, CoinGeckoClient

__all__ = ["CoinGeckoClient", "PLATFORM_MAP"]
