"""
链适配器单元测试
"""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import base58
import httpx
import pytest
from bech32 import bech32_encode, convertbits
from web3.exceptions import ContractLogicError

from src.chains.cosmos import CosmosChainAdapter
from src.chains.evm import EvmChainAdapter
from src.chains.solana import SolanaChainAdapter
from src.chains.solana.chains import NATIVE_SOL_MINT
from src.utils.exceptions import DataSourceError, UnsupportedChainError

SOLANA_WALLET = base58.b58encode(bytes(range(1, 33))).decode()
SOLANA_MINT = base58.b58encode(bytes(range(40, 72))).decode()
OSMO_WALLET = bech32_encode("osmo", convertbits(bytes(20), 8, 5))
COSMOS_WALLET = bech32_encode("cosmos", convertbits(bytes(20), 8, 5))
EVM_WALLET = "0x" + "ab" * 20
EVM_TOKEN = "0x" + "cd" * 20


def rpc_transport(results, requests):
    """按JSON-RPC方法名返回预设result的MockTransport"""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        result = results[body["method"]]
        if isinstance(result, dict) and "error" in result:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], **result})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    return httpx.MockTransport(handler)


class TestSolanaChainAdapter:
    """Solana适配器测试"""

    def test_address_validation_is_pure(self):
        requests = []
        adapter = SolanaChainAdapter(transport=rpc_transport({}, requests))

        assert adapter.is_valid_address("solana-mainnet", SOLANA_WALLET) is True
        assert adapter.is_valid_address("solana-mainnet", EVM_WALLET) is False
        assert adapter.is_valid_address("solana-mainnet", "not-base58-0OIl") is False
        assert adapter.is_valid_address("solana-mainnet", "") is False
        assert requests == []

    def test_address_validation_rejects_foreign_chain(self):
        adapter = SolanaChainAdapter(transport=rpc_transport({}, []))
        with pytest.raises(UnsupportedChainError):
            adapter.is_valid_address("no-such-chain", SOLANA_WALLET)
        with pytest.raises(UnsupportedChainError):
            adapter.is_valid_address("base", SOLANA_WALLET)

    @pytest.mark.asyncio
    async def test_native_balance(self):
        requests = []
        adapter = SolanaChainAdapter(
            transport=rpc_transport({"getBalance": {"context": {"slot": 1}, "value": 2_500_000_000}}, requests)
        )

        balance = await adapter.get_native_balance("solana-mainnet", SOLANA_WALLET)

        assert balance.symbol == "SOL"
        assert balance.balance == "2500000000"
        assert balance.balance_formatted == "2.5"
        assert requests[0]["params"][0] == SOLANA_WALLET
        await adapter.close()

    @pytest.mark.asyncio
    async def test_token_balance_sums_accounts(self):
        def account(amount):
            return {"account": {"data": {"parsed": {"info": {"tokenAmount": {"amount": amount}}}}}}

        requests = []
        adapter = SolanaChainAdapter(
            transport=rpc_transport(
                {"getTokenAccountsByOwner": {"value": [account("1000000"), account("500000")]}},
                requests,
            )
        )
        usdc = await adapter.resolve_token("solana-mainnet", "usdc")

        balance = await adapter.get_token_balance("solana-mainnet", SOLANA_WALLET, usdc)

        assert balance.balance_formatted == "1.5"
        assert requests[0]["params"][1] == {"mint": usdc.address}

    @pytest.mark.asyncio
    async def test_token_balance_without_accounts_is_zero(self):
        adapter = SolanaChainAdapter(
            transport=rpc_transport({"getTokenAccountsByOwner": {"value": []}}, [])
        )
        usdc = await adapter.resolve_token("solana-mainnet", "USDC")
        balance = await adapter.get_token_balance("solana-mainnet", SOLANA_WALLET, usdc)
        assert balance.balance == "0"

    @pytest.mark.asyncio
    async def test_resolve_unknown_mint_reads_decimals_once(self):
        requests = []
        mint_info = {
            "value": {"data": {"parsed": {"type": "mint", "info": {"decimals": 8}}}}
        }
        adapter = SolanaChainAdapter(transport=rpc_transport({"getAccountInfo": mint_info}, requests))

        first = await adapter.resolve_token("solana-mainnet", SOLANA_MINT)
        second = await adapter.resolve_token("solana-mainnet", SOLANA_MINT)

        assert first.decimals == 8
        assert first.address == SOLANA_MINT
        assert second == first
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_resolve_missing_account(self):
        adapter = SolanaChainAdapter(transport=rpc_transport({"getAccountInfo": {"value": None}}, []))
        assert await adapter.resolve_token("solana-mainnet", SOLANA_MINT) is None
        assert await adapter.resolve_token("solana-mainnet", "NOPE") is None

    @pytest.mark.asyncio
    async def test_native_mint_resolves_to_sol(self):
        adapter = SolanaChainAdapter(transport=rpc_transport({}, []))
        token = await adapter.resolve_token("solana-mainnet", NATIVE_SOL_MINT)
        assert token.symbol == "SOL"

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self):
        adapter = SolanaChainAdapter(
            transport=rpc_transport({"getBalance": {"error": {"code": -32602, "message": "Invalid param"}}}, [])
        )
        with pytest.raises(DataSourceError, match="Invalid param"):
            await adapter.get_native_balance("solana-mainnet", SOLANA_WALLET)

    @pytest.mark.asyncio
    async def test_unknown_chain(self):
        adapter = SolanaChainAdapter(transport=rpc_transport({}, []))
        with pytest.raises(UnsupportedChainError):
            await adapter.get_native_balance("solana-devnet", SOLANA_WALLET)


class TestCosmosChainAdapter:
    """Cosmos适配器测试"""

    @staticmethod
    def lcd_transport(amounts, requests):
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            denom = request.url.params["denom"]
            if denom not in amounts:
                return httpx.Response(404, json={"code": 5, "message": "not found"})
            return httpx.Response(200, json={"balance": {"denom": denom, "amount": amounts[denom]}})

        return httpx.MockTransport(handler)

    def test_address_prefix_must_match_chain(self):
        adapter = CosmosChainAdapter(transport=self.lcd_transport({}, []))

        assert adapter.is_valid_address("osmosis-1", OSMO_WALLET) is True
        assert adapter.is_valid_address("osmosis-1", COSMOS_WALLET) is False
        assert adapter.is_valid_address("cosmoshub-4", COSMOS_WALLET) is True
        assert adapter.is_valid_address("cosmoshub-4", EVM_WALLET) is False
        # 校验和错误
        tampered = OSMO_WALLET[:-1] + ("p" if OSMO_WALLET[-1] == "q" else "q")
        assert adapter.is_valid_address("osmosis-1", tampered) is False

    def test_address_validation_rejects_foreign_chain(self):
        adapter = CosmosChainAdapter(transport=self.lcd_transport({}, []))
        with pytest.raises(UnsupportedChainError):
            adapter.is_valid_address("no-such-chain", OSMO_WALLET)

    @pytest.mark.asyncio
    async def test_native_balance(self):
        requests = []
        adapter = CosmosChainAdapter(transport=self.lcd_transport({"uosmo": "1500000"}, requests))

        balance = await adapter.get_native_balance("osmosis-1", OSMO_WALLET)

        assert balance.symbol == "OSMO"
        assert balance.balance_formatted == "1.5"
        assert requests[0].url.path == f"/cosmos/bank/v1beta1/balances/{OSMO_WALLET}/by_denom"
        await adapter.close()

    @pytest.mark.asyncio
    async def test_missing_account_is_zero(self):
        adapter = CosmosChainAdapter(transport=self.lcd_transport({}, []))
        balance = await adapter.get_native_balance("cosmoshub-4", COSMOS_WALLET)
        assert balance.balance == "0"

    @pytest.mark.asyncio
    async def test_ibc_token_balance(self):
        adapter = CosmosChainAdapter(transport=self.lcd_transport({}, []))
        atom = await adapter.resolve_token("osmosis-1", "ATOM")
        assert atom.address.startswith("ibc/")

        adapter = CosmosChainAdapter(transport=self.lcd_transport({atom.address: "42"}, []))
        balance = await adapter.get_token_balance("osmosis-1", OSMO_WALLET, atom)
        assert balance.balance == "42"

    @pytest.mark.asyncio
    async def test_unknown_denom_unresolved(self):
        adapter = CosmosChainAdapter(transport=self.lcd_transport({}, []))
        assert await adapter.resolve_token("osmosis-1", "factory/osmo1xyz/foo") is None


class TestEvmChainAdapter:
    """EVM适配器测试（合约读取被替换）"""

    def test_address_validation(self):
        adapter = EvmChainAdapter()
        assert adapter.is_valid_address("base", EVM_WALLET) is True
        assert adapter.is_valid_address("base", "0x1234") is False
        assert adapter.is_valid_address("base", SOLANA_WALLET) is False

    def test_address_validation_rejects_foreign_chain(self):
        adapter = EvmChainAdapter()
        with pytest.raises(UnsupportedChainError):
            adapter.is_valid_address("no-such-chain", EVM_WALLET)
        with pytest.raises(UnsupportedChainError):
            adapter.is_valid_address("solana-mainnet", EVM_WALLET)

    @pytest.mark.asyncio
    async def test_known_token_needs_no_rpc(self):
        adapter = EvmChainAdapter()
        with patch.object(adapter, "_read_erc20_metadata", new=AsyncMock()) as metadata:
            usdc = await adapter.resolve_token("base", "usdc")
            eth = await adapter.resolve_token("base", "ETH")
        assert usdc.decimals == 6
        assert eth.symbol == "ETH"
        metadata.assert_not_called()

    @pytest.mark.asyncio
    async def test_resolve_by_address_reads_metadata_once(self):
        adapter = EvmChainAdapter()
        with patch.object(
            adapter, "_read_erc20_metadata", new=AsyncMock(return_value=("FOO", "Foo Token", 18))
        ) as metadata:
            first = await adapter.resolve_token("base", EVM_TOKEN)
            second = await adapter.resolve_token("base", EVM_TOKEN.upper().replace("0X", "0x"))

        assert first.symbol == "FOO"
        assert first.address.lower() == EVM_TOKEN
        assert first.address != EVM_TOKEN
        assert second == first
        metadata.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_contract_unresolved(self):
        adapter = EvmChainAdapter()
        with patch.object(
            adapter,
            "_read_erc20_metadata",
            new=AsyncMock(side_effect=ContractLogicError("execution reverted")),
        ):
            assert await adapter.resolve_token("base", EVM_TOKEN) is None
        assert await adapter.resolve_token("base", "NOTATOKEN") is None

    @pytest.mark.asyncio
    async def test_token_balance(self):
        adapter = EvmChainAdapter()
        usdc = await adapter.resolve_token("base", "USDC")
        with patch.object(adapter, "_erc20_balance", new=AsyncMock(return_value=12_345_678)):
            balance = await adapter.get_token_balance("base", EVM_WALLET, usdc)
        assert balance.balance_formatted == "12.345678"

    @pytest.mark.asyncio
    async def test_rpc_failure_wrapped(self):
        adapter = EvmChainAdapter()

        async def broken():
            raise ConnectionError("connection refused")

        with pytest.raises(DataSourceError, match="rpc:base"):
            await adapter.rpc_call("base", broken())

    @pytest.mark.asyncio
    async def test_gas_price(self):
        adapter = EvmChainAdapter()

        async def gas_price():
            return 3_000_000_000

        web3 = SimpleNamespace(eth=SimpleNamespace(gas_price=gas_price()))
        with patch.object(adapter, "get_web3", return_value=web3):
            assert await adapter.get_gas_price("base") == 3_000_000_000

    @pytest.mark.asyncio
    async def test_gas_price_failure_wrapped(self):
        adapter = EvmChainAdapter()

        async def gas_price():
            raise TimeoutError("read timed out")

        web3 = SimpleNamespace(eth=SimpleNamespace(gas_price=gas_price()))
        with patch.object(adapter, "get_web3", return_value=web3):
            with pytest.raises(DataSourceError, match="rpc:ethereum"):
                await adapter.get_gas_price("ethereum")

    def test_rpc_override(self):
        adapter = EvmChainAdapter(rpc_urls={"base": "http://localhost:8545"})
        assert adapter.get_chain("base").rpc_url == "http://localhost:8545"
        assert adapter.get_chain("ethereum").rpc_url != "http://localhost:8545"
