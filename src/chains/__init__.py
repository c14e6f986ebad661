"""
链适配器模块
"""
from typing import List

from src.chains.base import ChainAdapter
from src.chains.cosmos import COSMOS_CHAINS, CosmosChainAdapter
from src.chains.evm import EVM_CHAINS, EvmChainAdapter
from src.chains.solana import SOLANA_CHAINS, SolanaChainAdapter
from src.utils.config import AppConfig


def build_chain_adapters(app_config: AppConfig) -> List[ChainAdapter]:
    """按配置构建三个生态的适配器（EVM, Solana, Cosmos顺序）"""
    return [
        EvmChainAdapter(EVM_CHAINS, app_config.rpc_urls, app_config.request_timeout),
        SolanaChainAdapter(SOLANA_CHAINS, app_config.rpc_urls, app_config.request_timeout),
        CosmosChainAdapter(COSMOS_CHAINS, app_config.rpc_urls, app_config.request_timeout),
    ]


__all__ = [
    "ChainAdapter",
    "EvmChainAdapter",
    "SolanaChainAdapter",
    "CosmosChainAdapter",
    "build_chain_adapters",
]
