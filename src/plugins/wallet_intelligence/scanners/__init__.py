"""钱包持仓扫描器实现"""
from src.plugins.wallet_intelligence.scanners.aave import AaveV3Scanner
from src.plugins.wallet_intelligence.scanners.compound import CompoundV3Scanner
from src.plugins.wallet_intelligence.scanners.erc20 import Erc20Scanner
from src.plugins.wallet_intelligence.scanners.native import NativeBalanceScanner
from src.plugins.wallet_intelligence.scanners.polymarket import PolymarketScanner

__all__ = [
    "NativeBalanceScanner",
    "Erc20Scanner",
    "AaveV3Scanner",
    "CompoundV3Scanner",
    "PolymarketScanner",
]
