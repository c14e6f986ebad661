"""EVM链适配器"""
from .adapter import EvmChainAdapter
from .chains import EVM_CHAINS, NATIVE_TOKEN_ADDRESS

__all__ = ["EvmChainAdapter", "EVM_CHAINS", "NATIVE_TOKEN_ADDRESS"]
