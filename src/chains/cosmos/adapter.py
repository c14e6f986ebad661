"""
Cosmos链适配器（LCD REST over httpx）
"""
from typing import Dict, Mapping, Optional, Sequence

import httpx
from bech32 import bech32_decode

from src.chains.base import ChainAdapter, KnownTokens
from src.chains.cosmos.chains import BECH32_PREFIXES, COSMOS_CHAINS, KNOWN_TOKENS
from src.core.models import Balance, ChainInfo, Ecosystem, TokenInfo
from src.data_sources.base import BaseDataSource
from src.utils.exceptions import DataSourceNotFoundError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class CosmosLcdClient(BaseDataSource):
    """Cosmos LCD REST客户端"""

    def __init__(
        self,
        chain_id: str,
        lcd_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            name=f"lcd:{chain_id}",
            base_url=lcd_url,
            timeout=timeout,
            transport=transport,
        )

    async def get_balance(self, address: str, denom: str) -> int:
        """查询地址某个denom的余额，账户不存在时为0"""
        try:
            data = await self.fetch(
                f"/cosmos/bank/v1beta1/balances/{address}/by_denom",
                params={"denom": denom},
            )
        except DataSourceNotFoundError:
            return 0
        balance = data.get("balance") or {}
        return int(balance.get("amount") or 0)


class CosmosChainAdapter(ChainAdapter):
    """Cosmos生态适配器"""

    ecosystem = Ecosystem.COSMOS

    def __init__(
        self,
        chains: Sequence[ChainInfo] = COSMOS_CHAINS,
        rpc_urls: Optional[Mapping[str, str]] = None,
        timeout: float = 10.0,
        known_tokens: KnownTokens = KNOWN_TOKENS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(chains, rpc_urls, timeout, known_tokens)
        self._transport = transport
        self._clients: Dict[str, CosmosLcdClient] = {}

    def lcd(self, chain_id: str) -> CosmosLcdClient:
        chain = self.require_chain(chain_id)
        if chain_id not in self._clients:
            self._clients[chain_id] = CosmosLcdClient(
                chain_id, chain.rpc_url, self.timeout, self._transport
            )
        return self._clients[chain_id]

    def is_valid_address(self, chain_id: str, address: str) -> bool:
        """合法bech32编码，且前缀与该链一致（未登记前缀的链只要求前缀非空）"""
        self.require_chain(chain_id)
        if not isinstance(address, str) or not address:
            return False
        prefix, data = bech32_decode(address)
        if not prefix or data is None:
            return False
        expected = BECH32_PREFIXES.get(chain_id)
        return expected is None or prefix == expected

    async def get_native_balance(self, chain_id: str, address: str) -> Balance:
        chain = self.require_chain(chain_id)
        raw = await self.lcd(chain_id).get_balance(address, chain.native_token.address)
        return Balance.from_raw(chain.native_token, raw)

    async def get_token_balance(self, chain_id: str, address: str, token: TokenInfo) -> Balance:
        if self.is_native(chain_id, token):
            return await self.get_native_balance(chain_id, address)
        raw = await self.lcd(chain_id).get_balance(address, token.address)
        return Balance.from_raw(token, raw)

    async def resolve_token(self, chain_id: str, symbol_or_address: str) -> Optional[TokenInfo]:
        # denom元数据只来自静态表
        return self.find_known_token(chain_id, symbol_or_address)

    async def close(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()


__all__ = ["CosmosChainAdapter", "CosmosLcdClient"]
