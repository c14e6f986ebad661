"""
钱包持仓扫描器契约
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

from src.core.models import ProtocolPosition

if TYPE_CHECKING:
    from src.core.registry import PluginContext


class ProtocolScanner(ABC):
    """
    协议持仓扫描器

    实现该接口并在启动时注册到Registry，defi_wallet_scan会自动发现它。
    supported_chains 为空表示支持所有地址有效的链。
    """

    protocol_name: str = ""
    supported_chains: List[str] = []

    def supports_chain(self, chain_id: str) -> bool:
        return not self.supported_chains or chain_id in self.supported_chains

    @abstractmethod
    async def scan_positions(
        self, chain_id: str, wallet: str, context: "PluginContext"
    ) -> List[ProtocolPosition]:
        """扫描钱包在某条链上的协议持仓"""
