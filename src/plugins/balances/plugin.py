"""
余额插件
"""
from typing import List

from src.core.models import GetBalancesInput, ToolResult
from src.core.plugin import BasePlugin, ToolDefinition
from src.core.registry import PluginContext


class BalancesPlugin(BasePlugin):
    """跨链钱包余额查询"""

    name = "balances"
    description = "Wallet balance lookups across chains"
    version = "1.0.0"

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="defi_get_balances",
                description=(
                    "Get token balances for a wallet address on a specific chain. The native "
                    "token balance (ETH, SOL, ATOM, ...) is always returned first, followed by "
                    "any requested tokens (symbols or addresses)."
                ),
                input_model=GetBalancesInput,
                handler=self._get_balances,
            )
        ]

    async def _get_balances(self, params: GetBalancesInput, context: PluginContext) -> ToolResult:
        adapter = context.get_chain_adapter_for_chain(params.chain_id)
        self.require_valid_address(adapter, params.chain_id, params.address)

        balances = [await adapter.get_native_balance(params.chain_id, params.address)]
        if params.tokens:
            balances.extend(
                await adapter.get_token_balances(params.chain_id, params.address, params.tokens)
            )
        return self.json_result(balances)
