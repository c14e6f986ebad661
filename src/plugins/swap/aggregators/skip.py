"""
Skip Go聚合器（Cosmos）
"""
from typing import Any, Dict, Optional

import httpx

from src.core.models import ChainInfo, Ecosystem, SwapQuote, SwapRequest, UnsignedTransaction
from src.plugins.swap.aggregators.base import SwapAggregator
from src.utils.amounts import format_token_amount

SKIP_API = "https://api.skip.build"


def _operation_label(op: Dict[str, Any]) -> str:
    swap = op.get("swap")
    if isinstance(swap, dict):
        for key in ("swap_in", "swap_out"):
            venue = (swap.get(key) or {}).get("swap_venue") or {}
            if venue.get("name"):
                return venue["name"]
        return "swap"
    return next(iter(op), "transfer")


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class SkipGoAggregator(SwapAggregator):
    """Skip Go fungible API v2"""

    supported_chain_ids = ["osmosis-1", "cosmoshub-4"]

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("skip-go", SKIP_API, timeout, None, transport)

    def _route_body(self, request: SwapRequest, chain: ChainInfo) -> Dict[str, Any]:
        cosmos_chain_id = str(chain.native_chain_id)
        return {
            "amount_in": str(self.raw_amount_in(request)),
            "source_asset_denom": request.src_token.address,
            "source_asset_chain_id": cosmos_chain_id,
            "dest_asset_denom": request.dst_token.address,
            "dest_asset_chain_id": cosmos_chain_id,
            "allow_multi_tx": False,
            "smart_relay": False,
        }

    def _to_quote(self, request: SwapRequest, data: Dict[str, Any]) -> SwapQuote:
        try:
            amount_out = int(data["amount_out"])
            route = [_operation_label(op) for op in data.get("operations") or []]
            fees = data.get("estimated_fees") or []
            return SwapQuote(
                src_token=request.src_token,
                dst_token=request.dst_token,
                amount_in=str(int(data.get("amount_in") or self.raw_amount_in(request))),
                amount_out=str(amount_out),
                minimum_amount_out=str(self.minimum_amount_out(amount_out, request.slippage_bps)),
                price_impact=_optional_str(data.get("swap_price_impact_percent")),
                estimated_gas=fees[0].get("amount") if fees else None,
                route=route or [self.name],
                aggregator=self.name,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise self.unexpected(data, e)

    async def get_quote(self, request: SwapRequest, chain: ChainInfo) -> SwapQuote:
        data = await self._request(
            "/v2/fungible/route", method="POST", json_body=self._route_body(request, chain)
        )
        return self._to_quote(request, data)

    async def build_transaction(
        self, request: SwapRequest, chain: ChainInfo
    ) -> UnsignedTransaction:
        quote = await self.get_quote(request, chain)

        body = self._route_body(request, chain)
        body["chain_ids_to_addresses"] = {str(chain.native_chain_id): request.user_address}
        body["slippage_tolerance_percent"] = str(request.slippage_bps / 100)

        data = await self._request("/v2/fungible/msgs_direct", method="POST", json_body=body)
        msgs = data.get("msgs") if isinstance(data, dict) else None
        if not msgs:
            raise self.unexpected(data, KeyError("msgs"))

        return UnsignedTransaction(
            chain_id=chain.id,
            ecosystem=Ecosystem.COSMOS,
            raw={"msgs": msgs, "memo": "Swap via Skip Go"},
            description=(
                f"Swap {request.amount} {request.src_token.symbol} for ~"
                f"{format_token_amount(quote.amount_out, request.dst_token.decimals)} "
                f"{request.dst_token.symbol} via Skip Go on {chain.name}"
            ),
            estimated_gas=quote.estimated_gas,
        )
