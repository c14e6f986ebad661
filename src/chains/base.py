"""
链适配器抽象基类

每个生态（EVM / Solana / Cosmos）一个实现，对插件暴露统一接口。
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from src.core.models import Balance, ChainInfo, Ecosystem, TokenInfo
from src.utils.exceptions import UnsupportedChainError
from src.utils.logger import get_logger

logger = get_logger(__name__)

# 已知代币表：chain_id -> SYMBOL -> TokenInfo
KnownTokens = Mapping[str, Mapping[str, TokenInfo]]


class ChainAdapter(ABC):
    """链适配器基类"""

    ecosystem: Ecosystem

    def __init__(
        self,
        chains: Sequence[ChainInfo],
        rpc_urls: Optional[Mapping[str, str]] = None,
        timeout: float = 10.0,
        known_tokens: Optional[KnownTokens] = None,
    ):
        """
        初始化适配器

        Args:
            chains: 本适配器负责的链（静态表）
            rpc_urls: RPC端点覆盖（chain_id -> url），未配置时使用链表中的默认值
            timeout: 单次请求超时（秒）
            known_tokens: 已知代币表
        """
        self._chains: Dict[str, ChainInfo] = {}
        for chain in chains:
            url = (rpc_urls or {}).get(chain.id)
            if url and url != chain.rpc_url:
                chain = chain.model_copy(update={"rpc_url": url})
            self._chains[chain.id] = chain
        self.timeout = timeout
        self._known_tokens = known_tokens or {}

    # ==================== 静态查询 ====================

    def get_supported_chains(self) -> List[ChainInfo]:
        return list(self._chains.values())

    def get_chain(self, chain_id: str) -> Optional[ChainInfo]:
        return self._chains.get(chain_id)

    def require_chain(self, chain_id: str) -> ChainInfo:
        """获取链信息，不属于本适配器时抛出UnsupportedChainError"""
        chain = self._chains.get(chain_id)
        if chain is None:
            raise UnsupportedChainError(chain_id, list(self._chains))
        return chain

    def find_known_token(self, chain_id: str, symbol_or_address: str) -> Optional[TokenInfo]:
        """在原生代币与已知代币表中查找（按符号或地址）"""
        chain = self.require_chain(chain_id)
        native = chain.native_token
        if symbol_or_address.upper() == native.symbol.upper() or self._same_address(
            symbol_or_address, native.address
        ):
            return native

        known = self._known_tokens.get(chain_id, {})
        by_symbol = known.get(symbol_or_address.upper())
        if by_symbol is not None:
            return by_symbol
        for token in known.values():
            if self._same_address(symbol_or_address, token.address):
                return token
        return None

    def known_tokens_for(self, chain_id: str) -> List[TokenInfo]:
        return list(self._known_tokens.get(chain_id, {}).values())

    def is_native(self, chain_id: str, token: TokenInfo) -> bool:
        return self._same_address(token.address, self.require_chain(chain_id).native_token.address)

    @staticmethod
    def _same_address(a: str, b: str) -> bool:
        return a == b

    # ==================== 生态相关 ====================

    @abstractmethod
    def is_valid_address(self, chain_id: str, address: str) -> bool:
        """地址格式校验（纯函数，不产生网络请求）"""

    @abstractmethod
    async def get_native_balance(self, chain_id: str, address: str) -> Balance:
        """获取原生代币余额"""

    @abstractmethod
    async def get_token_balance(self, chain_id: str, address: str, token: TokenInfo) -> Balance:
        """获取单个已解析代币的余额"""

    @abstractmethod
    async def resolve_token(self, chain_id: str, symbol_or_address: str) -> Optional[TokenInfo]:
        """
        将符号或地址解析为代币信息

        Returns:
            TokenInfo；确定不存在时返回None（网络失败会抛出异常）
        """

    async def get_token_balances(
        self, chain_id: str, address: str, tokens: Sequence[str]
    ) -> List[Balance]:
        """
        批量获取代币余额

        先并发解析所有代币，无法解析的条目被忽略并记录警告；
        已解析代币的余额并发获取，结果保持输入顺序。

        Args:
            chain_id: 链ID
            address: 钱包地址
            tokens: 代币符号或地址

        Returns:
            余额列表
        """
        self.require_chain(chain_id)
        resolved = await asyncio.gather(*(self.resolve_token(chain_id, t) for t in tokens))

        found: List[Tuple[str, TokenInfo]] = []
        for query, token in zip(tokens, resolved):
            if token is None:
                logger.warning("token_unresolved", chain_id=chain_id, token=query)
                continue
            found.append((query, token))

        return list(
            await asyncio.gather(
                *(self.get_token_balance(chain_id, address, token) for _, token in found)
            )
        )

    async def close(self) -> None:
        """释放网络客户端"""
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} chains={list(self._chains)}>"
