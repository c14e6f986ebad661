"""
兑换聚合器基类
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from src.core.models import ChainInfo, SwapQuote, SwapRequest, UnsignedTransaction
from src.data_sources.base import BaseDataSource
from src.utils.amounts import apply_slippage, parse_token_amount
from src.utils.exceptions import AggregatorError, DataSourceError, InvalidInputError


class SwapAggregator(BaseDataSource, ABC):
    """
    兑换聚合器

    子类声明 supported_chain_ids，并实现报价与交易构建。
    任何提供者或传输层失败都以 AggregatorError 抛出。
    """

    supported_chain_ids: List[str] = []

    def __init__(
        self,
        name: str,
        base_url: str,
        timeout: float = 10.0,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            name=name,
            base_url=base_url,
            timeout=timeout,
            api_key=api_key,
            transport=transport,
        )

    def supports(self, chain_id: str) -> bool:
        return chain_id in self.supported_chain_ids

    @abstractmethod
    async def get_quote(self, request: SwapRequest, chain: ChainInfo) -> SwapQuote:
        """获取报价"""

    @abstractmethod
    async def build_transaction(
        self, request: SwapRequest, chain: ChainInfo
    ) -> UnsignedTransaction:
        """构建未签名交易（总是重新获取报价）"""

    async def _request(
        self,
        endpoint: str,
        params: Optional[Dict] = None,
        method: str = "GET",
        json_body: Optional[Any] = None,
    ) -> Any:
        try:
            return await self.fetch(endpoint, params=params, method=method, json_body=json_body)
        except DataSourceError as e:
            raise AggregatorError(self.name, e.message) from e

    @staticmethod
    def raw_amount_in(request: SwapRequest) -> int:
        """可读数量按卖出代币精度转换为最小单位"""
        raw = parse_token_amount(request.amount, request.src_token.decimals)
        if raw <= 0:
            raise InvalidInputError(
                f'Amount "{request.amount}" is below the smallest unit of {request.src_token.symbol}'
            )
        return raw

    @staticmethod
    def minimum_amount_out(
        amount_out: int, slippage_bps: int, provider_minimum: Optional[Any] = None
    ) -> int:
        """优先使用提供者给出的最小到账数量，否则按滑点计算；不超过amount_out"""
        if provider_minimum not in (None, ""):
            minimum = int(provider_minimum)
        else:
            minimum = apply_slippage(amount_out, slippage_bps)
        return min(minimum, amount_out)

    def unexpected(self, data: Any, error: Exception) -> AggregatorError:
        return AggregatorError(
            self.name, f"Unexpected response ({type(error).__name__}: {error}): {str(data)[:200]}"
        )
