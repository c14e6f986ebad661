"""
兑换插件：报价与未签名交易构建
"""
from typing import Dict, List, Sequence, Tuple

from src.core.models import (
    ChainInfo,
    SwapBuildTxInput,
    SwapQuoteInput,
    SwapRequest,
    TokenInfo,
    ToolResult,
)
from src.core.plugin import BasePlugin, ToolDefinition
from src.core.registry import PluginContext
from src.plugins.swap.aggregators.base import SwapAggregator
from src.utils.exceptions import InvalidInputError, TokenNotFoundError, UnsupportedChainError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class SwapPlugin(BasePlugin):
    """通过DEX聚合器获取兑换报价并构建未签名交易"""

    name = "swap"
    description = "Token swap quotes and unsigned transaction building via DEX aggregators"
    version = "1.0.0"

    def __init__(self, aggregators: Sequence[SwapAggregator]):
        super().__init__()
        self.aggregators = list(aggregators)
        self._index: Dict[str, SwapAggregator] = {}
        for aggregator in self.aggregators:
            for chain_id in aggregator.supported_chain_ids:
                # 同一条链先注册者优先
                self._index.setdefault(chain_id, aggregator)

    def get_aggregator_for_chain(self, chain_id: str) -> SwapAggregator:
        aggregator = self._index.get(chain_id)
        if aggregator is None:
            raise UnsupportedChainError(chain_id, list(self._index))
        return aggregator

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="defi_swap_quote",
                description=(
                    "Get a swap quote for exchanging one token for another on a specific chain. "
                    "Returns expected output amount, minimum output after slippage, price impact "
                    "and routing. Does NOT execute any transaction."
                ),
                input_model=SwapQuoteInput,
                handler=self._swap_quote,
            ),
            ToolDefinition(
                name="defi_swap_build_tx",
                description=(
                    "Build an unsigned swap transaction. Returns transaction data that must be "
                    "signed by the user's wallet. This tool never handles private keys or signs "
                    "transactions."
                ),
                input_model=SwapBuildTxInput,
                handler=self._swap_build_tx,
            ),
        ]

    async def _prepare(
        self, params: SwapQuoteInput, context: PluginContext, user_address: str = ""
    ) -> Tuple[SwapAggregator, SwapRequest, ChainInfo]:
        adapter = context.get_chain_adapter_for_chain(params.chain_id)
        chain = adapter.require_chain(params.chain_id)
        aggregator = self.get_aggregator_for_chain(params.chain_id)

        if user_address:
            self.require_valid_address(adapter, params.chain_id, user_address)

        src = await self._resolve(adapter, params.chain_id, params.src_token)
        dst = await self._resolve(adapter, params.chain_id, params.dst_token)
        if src.same_token(dst):
            raise InvalidInputError("Source and destination tokens must differ")

        request = SwapRequest(
            chain_id=params.chain_id,
            src_token=src,
            dst_token=dst,
            amount=params.amount,
            slippage_bps=params.slippage_bps or context.config.default_slippage_bps,
            user_address=user_address,
        )
        return aggregator, request, chain

    @staticmethod
    async def _resolve(adapter, chain_id: str, token: str) -> TokenInfo:
        resolved = await adapter.resolve_token(chain_id, token)
        if resolved is None:
            raise TokenNotFoundError(token, chain_id)
        return resolved

    async def _swap_quote(self, params: SwapQuoteInput, context: PluginContext) -> ToolResult:
        aggregator, request, chain = await self._prepare(params, context)
        quote = await aggregator.get_quote(request, chain)
        logger.info(
            "swap_quoted",
            chain_id=chain.id,
            aggregator=aggregator.name,
            src=request.src_token.symbol,
            dst=request.dst_token.symbol,
        )
        return self.json_result(quote)

    async def _swap_build_tx(self, params: SwapBuildTxInput, context: PluginContext) -> ToolResult:
        aggregator, request, chain = await self._prepare(params, context, params.user_address)
        tx = await aggregator.build_transaction(request, chain)
        return self.json_result(tx)

    async def shutdown(self) -> None:
        for aggregator in self.aggregators:
            await aggregator.close()
