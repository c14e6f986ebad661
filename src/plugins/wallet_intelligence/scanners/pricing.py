"""
扫描器共用的USD定价
"""
from typing import Dict, Iterable, Optional

from src.data_sources.coingecko import CoinGeckoClient
from src.utils.exceptions import DataSourceError
from src.utils.logger import get_logger

logger = get_logger(__name__)


async def fetch_usd_prices(
    client: Optional[CoinGeckoClient], coingecko_ids: Iterable[str]
) -> Dict[str, float]:
    """
    按CoinGecko ID获取USD价格

    价格只用于估值，失败时返回空表，持仓仍按0美元计入。
    """
    ids = [i for i in dict.fromkeys(coingecko_ids) if i]
    if client is None or not ids:
        return {}
    try:
        data = await client.get_prices_by_ids(ids)
    except DataSourceError as e:
        logger.warning("position_pricing_failed", ids=ids, error=str(e))
        return {}
    return {
        cg_id: float(quote["usd"])
        for cg_id, quote in data.items()
        if isinstance(quote, dict) and quote.get("usd") is not None
    }
