"""代币信息插件"""
from .plugin import TokenInfoPlugin

__all__ = ["TokenInfoPlugin"]
