"""借贷插件（Aave V3）"""
from .plugin import LendingPlugin
from .reader import AaveV3Reader

__all__ = ["LendingPlugin", "AaveV3Reader"]
