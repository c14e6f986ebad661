"""
EVM链适配器（web3.py AsyncWeb3）
"""
import asyncio
from typing import Any, Awaitable, Dict, List, Mapping, Optional, Sequence, Tuple

from eth_utils import is_address, to_checksum_address
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from src.chains.base import ChainAdapter, KnownTokens
from src.chains.evm.chains import EVM_CHAINS, KNOWN_TOKENS, NATIVE_TOKEN_ADDRESS
from src.core.models import Balance, ChainInfo, Ecosystem, TokenInfo
from src.utils.exceptions import DataSourceError
from src.utils.logger import get_logger

logger = get_logger(__name__)

ERC20_ABI: List[Dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


class EvmChainAdapter(ChainAdapter):
    """EVM生态适配器"""

    ecosystem = Ecosystem.EVM

    def __init__(
        self,
        chains: Sequence[ChainInfo] = EVM_CHAINS,
        rpc_urls: Optional[Mapping[str, str]] = None,
        timeout: float = 10.0,
        known_tokens: KnownTokens = KNOWN_TOKENS,
    ):
        super().__init__(chains, rpc_urls, timeout, known_tokens)
        self._web3: Dict[str, AsyncWeb3] = {}
        # (chain_id, checksum_address) -> TokenInfo
        self._metadata_cache: Dict[Tuple[str, str], TokenInfo] = {}

    def get_web3(self, chain_id: str) -> AsyncWeb3:
        """获取链的AsyncWeb3实例（懒加载）"""
        chain = self.require_chain(chain_id)
        if chain_id not in self._web3:
            self._web3[chain_id] = AsyncWeb3(
                AsyncHTTPProvider(chain.rpc_url, request_kwargs={"timeout": self.timeout})
            )
        return self._web3[chain_id]

    def is_valid_address(self, chain_id: str, address: str) -> bool:
        self.require_chain(chain_id)
        return isinstance(address, str) and is_address(address)

    @staticmethod
    def _same_address(a: str, b: str) -> bool:
        return a.lower() == b.lower()

    async def rpc_call(self, chain_id: str, call: Awaitable[Any]) -> Any:
        """执行RPC调用，传输层失败统一转换为DataSourceError"""
        try:
            return await call
        except (ContractLogicError, BadFunctionCallOutput):
            raise
        except Exception as e:
            raise DataSourceError(f"rpc:{chain_id}", f"{type(e).__name__}: {e}") from e

    async def get_native_balance(self, chain_id: str, address: str) -> Balance:
        chain = self.require_chain(chain_id)
        w3 = self.get_web3(chain_id)
        wei = await self.rpc_call(chain_id, w3.eth.get_balance(to_checksum_address(address)))
        return Balance.from_raw(chain.native_token, wei)

    async def get_gas_price(self, chain_id: str) -> int:
        """当前gas价格（wei）"""
        w3 = self.get_web3(chain_id)
        return await self.rpc_call(chain_id, w3.eth.gas_price)

    async def _erc20_balance(self, chain_id: str, token_address: str, owner: str) -> int:
        contract = self.get_web3(chain_id).eth.contract(
            address=to_checksum_address(token_address), abi=ERC20_ABI
        )
        return await self.rpc_call(
            chain_id, contract.functions.balanceOf(to_checksum_address(owner)).call()
        )

    async def _read_erc20_metadata(self, chain_id: str, token_address: str) -> Tuple[str, str, int]:
        contract = self.get_web3(chain_id).eth.contract(
            address=to_checksum_address(token_address), abi=ERC20_ABI
        )
        symbol, name, decimals = await asyncio.gather(
            self.rpc_call(chain_id, contract.functions.symbol().call()),
            self.rpc_call(chain_id, contract.functions.name().call()),
            self.rpc_call(chain_id, contract.functions.decimals().call()),
        )
        return symbol, name, int(decimals)

    async def get_token_balance(self, chain_id: str, address: str, token: TokenInfo) -> Balance:
        if self.is_native(chain_id, token):
            return await self.get_native_balance(chain_id, address)
        raw = await self._erc20_balance(chain_id, token.address, address)
        return Balance.from_raw(token, raw)

    async def resolve_token(self, chain_id: str, symbol_or_address: str) -> Optional[TokenInfo]:
        known = self.find_known_token(chain_id, symbol_or_address)
        if known is not None:
            return known
        if not is_address(symbol_or_address):
            return None

        checksum = to_checksum_address(symbol_or_address)
        cached = self._metadata_cache.get((chain_id, checksum))
        if cached is not None:
            return cached

        try:
            symbol, name, decimals = await self._read_erc20_metadata(chain_id, checksum)
        except (ContractLogicError, BadFunctionCallOutput) as e:
            logger.info("erc20_metadata_unavailable", chain_id=chain_id, token=checksum, error=str(e))
            return None

        token = TokenInfo(
            symbol=symbol, name=name, decimals=decimals, address=checksum, chain_id=chain_id
        )
        self._metadata_cache[(chain_id, checksum)] = token
        return token

    def build_erc20_approve(self, chain_id: str, token_address: str, spender: str, amount: int) -> str:
        """编码ERC-20 approve调用数据"""
        contract = self.get_web3(chain_id).eth.contract(
            address=to_checksum_address(token_address), abi=ERC20_ABI
        )
        return contract.encode_abi("approve", args=[to_checksum_address(spender), amount])

    async def close(self) -> None:
        for w3 in self._web3.values():
            await w3.provider.disconnect()
        self._web3.clear()


__all__ = ["EvmChainAdapter", "ERC20_ABI", "NATIVE_TOKEN_ADDRESS"]
