"""
Solana链适配器（JSON-RPC over httpx）
"""
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import base58
import httpx

from src.chains.base import ChainAdapter, KnownTokens
from src.chains.solana.chains import KNOWN_TOKENS, NATIVE_SOL_MINT, SOLANA_CHAINS
from src.core.models import Balance, ChainInfo, Ecosystem, TokenInfo
from src.data_sources.base import BaseDataSource
from src.utils.exceptions import DataSourceError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class SolanaRpcClient(BaseDataSource):
    """Solana JSON-RPC客户端"""

    def __init__(
        self,
        chain_id: str,
        rpc_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            name=f"rpc:{chain_id}",
            base_url=rpc_url,
            timeout=timeout,
            transport=transport,
        )
        self._request_id = 0

    def _get_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Accept": "application/json"}

    async def call(self, method: str, params: List[Any]) -> Any:
        """
        调用JSON-RPC方法

        Raises:
            DataSourceError: 传输失败或RPC返回error
        """
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        body = await self.fetch("", method="POST", json_body=payload)

        if "error" in body:
            error = body["error"]
            raise DataSourceError(
                self.name, f"{method} failed: {error.get('message', error)}"
            )
        return body.get("result")


class SolanaChainAdapter(ChainAdapter):
    """Solana生态适配器"""

    ecosystem = Ecosystem.SOLANA

    def __init__(
        self,
        chains: Sequence[ChainInfo] = SOLANA_CHAINS,
        rpc_urls: Optional[Mapping[str, str]] = None,
        timeout: float = 10.0,
        known_tokens: KnownTokens = KNOWN_TOKENS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(chains, rpc_urls, timeout, known_tokens)
        self._transport = transport
        self._clients: Dict[str, SolanaRpcClient] = {}
        # (chain_id, mint) -> decimals
        self._mint_decimals: Dict[Tuple[str, str], int] = {}

    def rpc(self, chain_id: str) -> SolanaRpcClient:
        chain = self.require_chain(chain_id)
        if chain_id not in self._clients:
            self._clients[chain_id] = SolanaRpcClient(
                chain_id, chain.rpc_url, self.timeout, self._transport
            )
        return self._clients[chain_id]

    def is_valid_address(self, chain_id: str, address: str) -> bool:
        """base58解码后为32字节公钥"""
        self.require_chain(chain_id)
        if not isinstance(address, str) or not address:
            return False
        try:
            return len(base58.b58decode(address)) == 32
        except ValueError:
            return False

    async def get_native_balance(self, chain_id: str, address: str) -> Balance:
        chain = self.require_chain(chain_id)
        result = await self.rpc(chain_id).call(
            "getBalance", [address, {"commitment": "confirmed"}]
        )
        return Balance.from_raw(chain.native_token, result["value"])

    async def get_token_balance(self, chain_id: str, address: str, token: TokenInfo) -> Balance:
        if self.is_native(chain_id, token):
            return await self.get_native_balance(chain_id, address)

        result = await self.rpc(chain_id).call(
            "getTokenAccountsByOwner",
            [address, {"mint": token.address}, {"encoding": "jsonParsed", "commitment": "confirmed"}],
        )
        # 没有代币账户即余额为0
        total = 0
        for account in result.get("value", []):
            info = account["account"]["data"]["parsed"]["info"]
            total += int(info["tokenAmount"]["amount"])
        return Balance.from_raw(token, total)

    async def _get_mint_decimals(self, chain_id: str, mint: str) -> Optional[int]:
        cached = self._mint_decimals.get((chain_id, mint))
        if cached is not None:
            return cached

        result = await self.rpc(chain_id).call(
            "getAccountInfo", [mint, {"encoding": "jsonParsed"}]
        )
        value = (result or {}).get("value")
        if not value:
            return None
        data = value.get("data")
        if not isinstance(data, dict) or data.get("parsed", {}).get("type") != "mint":
            return None

        decimals = int(data["parsed"]["info"]["decimals"])
        self._mint_decimals[(chain_id, mint)] = decimals
        return decimals

    async def resolve_token(self, chain_id: str, symbol_or_address: str) -> Optional[TokenInfo]:
        known = self.find_known_token(chain_id, symbol_or_address)
        if known is not None:
            return known
        if not self.is_valid_address(chain_id, symbol_or_address):
            return None

        decimals = await self._get_mint_decimals(chain_id, symbol_or_address)
        if decimals is None:
            logger.info("spl_mint_not_found", chain_id=chain_id, mint=symbol_or_address)
            return None

        short = symbol_or_address[:6]
        return TokenInfo(
            symbol=short,
            name=short,
            decimals=decimals,
            address=symbol_or_address,
            chain_id=chain_id,
        )

    async def close(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()


__all__ = ["SolanaChainAdapter", "SolanaRpcClient", "NATIVE_SOL_MINT"]
