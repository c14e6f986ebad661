"""Cosmos链适配器"""
from .adapter import CosmosChainAdapter
from .chains import COSMOS_CHAINS

__all__ = ["CosmosChainAdapter", "COSMOS_CHAINS"]
