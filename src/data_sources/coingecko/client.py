"""
CoinGecko API客户端
"""
import asyncio
from typing import Any, Dict, List, Optional, Sequence

import httpx

from src.core.models import TokenInfo, TokenPrice
from src.data_sources.base import BaseDataSource
from src.utils.exceptions import DataSourceNotFoundError
from src.utils.logger import get_logger

logger = get_logger(__name__)

# 各链在CoinGecko中的平台ID
PLATFORM_MAP: Dict[str, str] = {
    "ethereum": "ethereum",
    "base": "base",
    "arbitrum": "arbitrum-one",
    "polygon": "polygon-pos",
    "optimism": "optimistic-ethereum",
    "avalanche": "avalanche",
    "bsc": "binance-smart-chain",
    "solana-mainnet": "solana",
    "osmosis-1": "osmosis",
    "cosmoshub-4": "cosmos",
}


class CoinGeckoClient(BaseDataSource):
    """CoinGecko API客户端"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_type: str = "demo",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Demo API: api.coingecko.com + x-cg-demo-api-key
        # Pro API: pro-api.coingecko.com + x-cg-pro-api-key
        self._api_type = (api_type or "demo").lower()
        if api_key and self._api_type == "pro":
            base_url = "https://pro-api.coingecko.com/api/v3"
        else:
            base_url = "https://api.coingecko.com/api/v3"

        super().__init__(
            name="coingecko",
            base_url=base_url,
            timeout=timeout,
            api_key=api_key,
            transport=transport,
        )

    def _get_headers(self) -> Dict[str, str]:
        """构建请求头"""
        headers = {"accept": "application/json"}
        if self.api_key:
            if self._api_type == "pro":
                headers["x-cg-pro-api-key"] = self.api_key
            else:
                headers["x-cg-demo-api-key"] = self.api_key
        return headers

    async def get_prices_by_ids(self, coingecko_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        """
        按CoinGecko ID批量获取价格

        Args:
            coingecko_ids: 资产ID列表，如 ["ethereum", "usd-coin"]

        Returns:
            {id: {"usd": ..., "usd_24h_change": ..., ...}}
        """
        if not coingecko_ids:
            return {}
        return await self.fetch(
            "/simple/price",
            params={
                "ids": ",".join(dict.fromkeys(coingecko_ids)),
                "vs_currencies": "usd",
                "include_24hr_change": "true",
                "include_market_cap": "true",
                "include_24hr_vol": "true",
            },
        )

    async def get_price_by_contract(
        self, chain_id: str, contract_address: str
    ) -> Optional[Dict[str, Any]]:
        """按 (平台, 合约地址) 获取价格，平台未知或无报价时返回None"""
        platform = PLATFORM_MAP.get(chain_id)
        if platform is None:
            return None
        try:
            data = await self.fetch(
                f"/simple/token_price/{platform}",
                params={
                    "contract_addresses": contract_address,
                    "vs_currencies": "usd",
                    "include_24hr_change": "true",
                    "include_market_cap": "true",
                    "include_24hr_vol": "true",
                },
            )
        except DataSourceNotFoundError:
            return None
        return data.get(contract_address.lower()) or data.get(contract_address)

    async def get_token_prices(self, tokens: Sequence[TokenInfo]) -> List[TokenPrice]:
        """
        获取一组已解析代币的价格

        有coingecko_id的代币批量按ID查询，其余按合约地址查询。
        按合约地址的查询并发进行。没有报价的代币被忽略，结果保持输入顺序。
        """
        by_id = await self.get_prices_by_ids([t.coingecko_id for t in tokens if t.coingecko_id])

        async def quote_for(token: TokenInfo) -> Optional[Dict[str, Any]]:
            if token.coingecko_id:
                return by_id.get(token.coingecko_id)
            return await self.get_price_by_contract(token.chain_id, token.address)

        quotes = await asyncio.gather(*(quote_for(t) for t in tokens))

        prices: List[TokenPrice] = []
        for token, quote in zip(tokens, quotes):
            if not quote or quote.get("usd") is None:
                logger.warning(
                    "token_price_unavailable", chain_id=token.chain_id, token=token.symbol
                )
                continue

            prices.append(
                TokenPrice(
                    token=token,
                    price_usd=quote["usd"],
                    price_change_24h=quote.get("usd_24h_change"),
                    market_cap=quote.get("usd_market_cap"),
                    volume_24h=quote.get("usd_24h_vol"),
                )
            )
        return prices
