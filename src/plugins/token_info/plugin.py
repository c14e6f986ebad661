"""
代币信息插件：元数据与USD价格
"""
import asyncio
from typing import List, Optional

from src.core.models import TokenInfo, TokenInfoInput, TokenPriceInput, TokenRef, ToolResult
from src.core.plugin import BasePlugin, ToolDefinition
from src.core.registry import PluginContext
from src.data_sources.coingecko import CoinGeckoClient
from src.utils.exceptions import TokenNotFoundError


class TokenInfoPlugin(BasePlugin):
    """代币元数据与价格查询"""

    name = "token-info"
    description = "Token metadata and price lookups"
    version = "1.0.0"

    def __init__(self, coingecko: Optional[CoinGeckoClient] = None, api_type: str = "demo"):
        super().__init__()
        self._coingecko = coingecko
        self._api_type = api_type

    async def initialize(self, context: PluginContext) -> None:
        await super().initialize(context)
        if self._coingecko is None:
            self._coingecko = CoinGeckoClient(
                api_key=context.config.get_api_key("coingecko"),
                api_type=self._api_type,
                timeout=context.config.request_timeout,
            )

    @property
    def coingecko(self) -> CoinGeckoClient:
        return self._coingecko

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="defi_token_info",
                description=(
                    "Get token details including name, symbol, decimals and contract address. "
                    "Accepts a token symbol (e.g. 'USDC') or contract address."
                ),
                input_model=TokenInfoInput,
                handler=self._token_info,
            ),
            ToolDefinition(
                name="defi_token_price",
                description=(
                    "Get current USD price, 24h change and market cap for 1-20 tokens. Pass an "
                    "array of { chain_id, token } objects. Every token must resolve or the whole "
                    "call fails."
                ),
                input_model=TokenPriceInput,
                handler=self._token_price,
            ),
        ]

    @staticmethod
    async def _resolve(ref: TokenRef, context: PluginContext) -> TokenInfo:
        adapter = context.get_chain_adapter_for_chain(ref.chain_id)
        token = await adapter.resolve_token(ref.chain_id, ref.token)
        if token is None:
            raise TokenNotFoundError(ref.token, ref.chain_id)
        return token

    async def _token_info(self, params: TokenInfoInput, context: PluginContext) -> ToolResult:
        token = await self._resolve(TokenRef(chain_id=params.chain_id, token=params.token), context)
        return self.json_result(token)

    async def _token_price(self, params: TokenPriceInput, context: PluginContext) -> ToolResult:
        # 解析是强制的：任何一个代币无法解析则整个调用失败
        tokens = await asyncio.gather(*(self._resolve(ref, context) for ref in params.tokens))
        prices = await self.coingecko.get_token_prices(tokens)

        priced = {(p.token.chain_id, p.token.address) for p in prices}
        missing = [
            f"{t.symbol} ({t.chain_id})" for t in tokens if (t.chain_id, t.address) not in priced
        ]
        return self.json_result({"prices": prices, "unpriced": missing})

    async def shutdown(self) -> None:
        if self._coingecko is not None:
            await self._coingecko.close()
