"""Solana链适配器"""
from .adapter import SolanaChainAdapter
from .chains import NATIVE_SOL_MINT, SOLANA_CHAINS

__all__ = ["SolanaChainAdapter", "SOLANA_CHAINS", "NATIVE_SOL_MINT"]
