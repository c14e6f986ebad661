"""钱包情报插件"""
from src.plugins.wallet_intelligence.plugin import WalletIntelligencePlugin
from src.plugins.wallet_intelligence.scanners import (
    AaveV3Scanner,
    CompoundV3Scanner,
    Erc20Scanner,
    NativeBalanceScanner,
    PolymarketScanner,
)

__all__ = [
    "WalletIntelligencePlugin",
    "NativeBalanceScanner",
    "Erc20Scanner",
    "AaveV3Scanner",
    "CompoundV3Scanner",
    "PolymarketScanner",
]
