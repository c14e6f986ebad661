"""
Polymarket REST客户端（Gamma市场API + Data持仓API）
"""
from typing import Any, Dict, List, Optional

import httpx

from src.data_sources.base import BaseDataSource
from src.utils.logger import get_logger

logger = get_logger(__name__)

GAMMA_API = "https://gamma-api.polymarket.com"
DATA_API = "https://data-api.polymarket.com"


class PolymarketGammaClient(BaseDataSource):
    """Gamma API：事件与市场"""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            name="polymarket_gamma",
            base_url=GAMMA_API,
            timeout=timeout,
            transport=transport,
        )

    async def get_events(self, tag: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
        """
        获取活跃事件（按成交量降序）

        Args:
            tag: 标签过滤，如 bitcoin
            limit: 返回数量

        Returns:
            事件列表，每个事件包含其下的市场
        """
        params: Dict[str, Any] = {
            "active": "true",
            "closed": "false",
            "limit": limit,
            "order": "volume",
            "ascending": "false",
        }
        if tag:
            params["tag"] = tag

        events = await self.fetch("/events", params=params)
        return [self._transform_event(e) for e in events or []]

    @staticmethod
    def _transform_event(event: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": event.get("id"),
            "title": event.get("title"),
            "slug": event.get("slug"),
            "end_date": event.get("endDate"),
            "active": event.get("active"),
            "volume": event.get("volume"),
            "liquidity": event.get("liquidity"),
            "markets": [
                {
                    "id": m.get("id"),
                    "question": m.get("question"),
                    "condition_id": m.get("conditionId"),
                    "outcomes": m.get("outcomes"),
                    "outcome_prices": m.get("outcomePrices"),
                    "clob_token_ids": m.get("clobTokenIds"),
                    "volume": m.get("volume"),
                    "liquidity": m.get("liquidity"),
                    "active": m.get("active"),
                }
                for m in event.get("markets") or []
            ],
        }


class PolymarketDataClient(BaseDataSource):
    """Data API：用户持仓"""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            name="polymarket_data",
            base_url=DATA_API,
            timeout=timeout,
            transport=transport,
        )

    async def get_positions(self, address: str) -> List[Dict[str, Any]]:
        """获取钱包的预测市场持仓"""
        positions = await self.fetch("/positions", params={"user": address.lower()})
        if not isinstance(positions, list):
            return []

        return [
            {
                "market": p.get("title") or (p.get("market") or {}).get("question"),
                "outcome": p.get("outcome"),
                "size": p.get("size"),
                "avg_price": p.get("avgPrice"),
                "current_price": p.get("curPrice"),
                "initial_value": p.get("initialValue"),
                "current_value": p.get("currentValue"),
                "cash_pnl": p.get("cashPnl"),
                "percent_pnl": p.get("percentPnl"),
                "asset": p.get("asset"),
            }
            for p in positions
        ]
