"""
借贷插件（Aave V3）
"""
from typing import List, Optional

from src.chains.evm.chains import CHAIN_ID_MAP
from src.core.models import (
    Ecosystem,
    LendingMarketsInput,
    LendingPositionInput,
    LendingSupplyTxInput,
    ToolResult,
    UnsignedTransaction,
)
from src.core.plugin import BasePlugin, ToolDefinition
from src.core.registry import PluginContext
from src.plugins.lending.addresses import get_supported_lending_chains
from src.plugins.lending.reader import AaveV3Reader
from src.utils.amounts import format_usd, parse_token_amount
from src.utils.exceptions import InvalidInputError, TokenNotFoundError


class LendingPlugin(BasePlugin):
    """Aave V3 市场、持仓与存款交易构建"""

    name = "lending"
    description = "Aave V3 lending protocol: markets, positions and supply transactions"
    version = "1.0.0"

    def __init__(self, reader: Optional[AaveV3Reader] = None):
        super().__init__()
        self.reader = reader or AaveV3Reader()

    def get_tools(self) -> List[ToolDefinition]:
        chains = ", ".join(get_supported_lending_chains())
        return [
            ToolDefinition(
                name="defi_lending_markets",
                description=(
                    "List Aave V3 lending markets on a chain with supply APY, borrow APY, total "
                    f"liquidity and utilization. Supported chains: {chains}."
                ),
                input_model=LendingMarketsInput,
                handler=self._markets,
            ),
            ToolDefinition(
                name="defi_lending_position",
                description=(
                    "Get a user's Aave V3 position: supplied and borrowed assets, health factor "
                    "and available borrows."
                ),
                input_model=LendingPositionInput,
                handler=self._position,
            ),
            ToolDefinition(
                name="defi_lending_supply_tx",
                description=(
                    "Build unsigned transactions to supply a token to Aave V3: an ERC-20 approval "
                    "for the pool followed by Pool.supply. Nothing is signed or sent."
                ),
                input_model=LendingSupplyTxInput,
                handler=self._supply_tx,
            ),
        ]

    async def _markets(self, params: LendingMarketsInput, context: PluginContext) -> ToolResult:
        reserves = await self.reader.get_reserves(params.chain_id, context)
        chain = context.get_chain_adapter_for_chain(params.chain_id).require_chain(params.chain_id)

        markets = [
            {
                "asset": r.symbol,
                "address": r.address,
                "supply_apy": f"{r.supply_apy:.2f}%",
                "borrow_apy": f"{r.borrow_apy:.2f}%",
                "total_supplied": f"{r.total_supplied:.2f} {r.symbol}",
                "total_supplied_usd": format_usd(r.total_supplied_usd),
                "available_liquidity": f"{r.available_liquidity:.2f} {r.symbol}",
                "utilization": f"{r.utilization:.1f}%",
                "can_collateral": r.can_collateral,
                "can_borrow": r.can_borrow,
                "ltv": f"{r.ltv}%",
                "liquidation_threshold": f"{r.liquidation_threshold}%",
                "is_frozen": r.is_frozen,
            }
            for r in reserves
        ]
        return self.json_result(
            {
                "chain": chain.name,
                "protocol": self.reader.protocol,
                "markets_count": len(markets),
                "markets": markets,
            }
        )

    async def _position(self, params: LendingPositionInput, context: PluginContext) -> ToolResult:
        adapter = context.get_chain_adapter_for_chain(params.chain_id)
        self.require_valid_address(adapter, params.chain_id, params.user_address)

        account = await self.reader.get_account_data(params.chain_id, params.user_address, context)
        reserves = await self.reader.get_user_reserves(params.chain_id, params.user_address, context)

        return self.json_result(
            {
                "chain_id": params.chain_id,
                "protocol": self.reader.protocol,
                "address": params.user_address,
                "account": account,
                "supplied": [r for r in reserves if r.supplied > 0],
                "borrowed": [r for r in reserves if r.borrowed > 0],
            }
        )

    async def _supply_tx(self, params: LendingSupplyTxInput, context: PluginContext) -> ToolResult:
        adapter = context.get_chain_adapter_for_chain(params.chain_id)
        self.require_valid_address(adapter, params.chain_id, params.user_address)

        token = await adapter.resolve_token(params.chain_id, params.token)
        if token is None:
            raise TokenNotFoundError(params.token, params.chain_id)
        if adapter.is_native(params.chain_id, token):
            raise InvalidInputError(
                f"Native {token.symbol} cannot be supplied directly; supply the wrapped token instead"
            )

        amount = parse_token_amount(params.amount, token.decimals)
        supply = self.reader.encode_supply(
            params.chain_id, token.address, amount, params.user_address, context
        )
        numeric_chain_id = CHAIN_ID_MAP[params.chain_id]

        approve = UnsignedTransaction(
            chain_id=params.chain_id,
            ecosystem=Ecosystem.EVM,
            raw={
                "to": token.address,
                "data": adapter.build_erc20_approve(
                    params.chain_id, token.address, supply["to"], amount
                ),
                "value": "0x0",
                "chain_id": numeric_chain_id,
            },
            description=f"Approve {params.amount} {token.symbol} for the Aave V3 pool",
        )
        deposit = UnsignedTransaction(
            chain_id=params.chain_id,
            ecosystem=Ecosystem.EVM,
            raw={**supply, "value": "0x0", "chain_id": numeric_chain_id},
            description=f"Supply {params.amount} {token.symbol} to Aave V3 on {params.chain_id}",
        )
        return self.json_result({"transactions": [approve, deposit]})
