"""
Pytest配置和共享fixtures
"""
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

import pytest

from src.chains.base import ChainAdapter
from src.chains.cosmos.chains import COSMOS_CHAINS
from src.chains.cosmos.chains import KNOWN_TOKENS as COSMOS_TOKENS
from src.chains.evm.chains import EVM_CHAINS
from src.chains.evm.chains import KNOWN_TOKENS as EVM_TOKENS
from src.chains.solana.chains import KNOWN_TOKENS as SOLANA_TOKENS
from src.chains.solana.chains import SOLANA_CHAINS
from src.core.models import Balance, ChainInfo, Ecosystem, TokenInfo
from src.core.registry import Registry
from src.middleware import global_error_aggregator
from src.utils.config import AppConfig
from src.utils.exceptions import DataSourceError


# ==================== Pytest Markers ====================

def pytest_configure(config):
    """注册自定义markers"""
    config.addinivalue_line("markers", "live: marks tests that call real APIs")


# ==================== 测试用链适配器 ====================


class FakeChainAdapter(ChainAdapter):
    """
    内存链适配器

    余额按 (chain_id, token_address) 配置，gas价格按chain_id配置；
    failing_chains 中的链在任何网络调用时抛出DataSourceError。
    network_calls 记录发生过的"网络"调用次数。
    """

    def __init__(
        self,
        ecosystem: Ecosystem,
        chains: Sequence[ChainInfo],
        known_tokens: Optional[Mapping[str, Mapping[str, TokenInfo]]] = None,
        address_check: Callable[[str], bool] = lambda a: bool(a),
        balances: Optional[Dict[Tuple[str, str], int]] = None,
        failing_chains: Iterable[str] = (),
    ):
        self.ecosystem = ecosystem
        super().__init__(chains, known_tokens=known_tokens)
        self._address_check = address_check
        self.balances = balances or {}
        self.gas_prices: Dict[str, int] = {}
        self.failing_chains = set(failing_chains)
        self.network_calls = 0

    def is_valid_address(self, chain_id: str, address: str) -> bool:
        self.require_chain(chain_id)
        return self._address_check(address)

    def _touch(self, chain_id: str) -> None:
        self.network_calls += 1
        if chain_id in self.failing_chains:
            raise DataSourceError(f"rpc:{chain_id}", "connection refused")

    async def get_native_balance(self, chain_id: str, address: str) -> Balance:
        chain = self.require_chain(chain_id)
        self._touch(chain_id)
        raw = self.balances.get((chain_id, chain.native_token.address), 0)
        return Balance.from_raw(chain.native_token, raw)

    async def get_token_balance(self, chain_id: str, address: str, token: TokenInfo) -> Balance:
        self.require_chain(chain_id)
        self._touch(chain_id)
        return Balance.from_raw(token, self.balances.get((chain_id, token.address), 0))

    async def resolve_token(self, chain_id: str, symbol_or_address: str) -> Optional[TokenInfo]:
        return self.find_known_token(chain_id, symbol_or_address)

    async def get_gas_price(self, chain_id: str) -> int:
        self.require_chain(chain_id)
        self._touch(chain_id)
        return self.gas_prices.get(chain_id, 0)


@pytest.fixture
def fake_adapter_cls():
    return FakeChainAdapter


@pytest.fixture
def evm_adapter():
    """EVM链（地址以0x开头即有效）"""
    return FakeChainAdapter(
        Ecosystem.EVM,
        EVM_CHAINS,
        EVM_TOKENS,
        address_check=lambda a: a.startswith("0x") and len(a) == 42,
    )


@pytest.fixture
def solana_adapter():
    return FakeChainAdapter(
        Ecosystem.SOLANA,
        SOLANA_CHAINS,
        SOLANA_TOKENS,
        address_check=lambda a: 32 <= len(a) <= 44 and not a.startswith("0x"),
    )


@pytest.fixture
def cosmos_adapter():
    return FakeChainAdapter(
        Ecosystem.COSMOS,
        COSMOS_CHAINS,
        COSMOS_TOKENS,
        address_check=lambda a: a.startswith(("osmo1", "cosmos1")),
    )


@pytest.fixture
def app_config():
    return AppConfig(default_slippage_bps=50)


@pytest.fixture
def registry_factory(app_config):
    """构建并初始化Registry的工厂"""

    async def factory(adapters, plugins=(), yield_sources=(), scanners=()):
        return await Registry.create(app_config, adapters, plugins, yield_sources, scanners)

    return factory


@pytest.fixture(autouse=True)
def clear_error_aggregator():
    """避免测试间共享错误记录"""
    global_error_aggregator.clear()
    yield
    global_error_aggregator.clear()
