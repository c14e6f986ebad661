"""
Jupiter聚合器（Solana）
"""
from typing import Any, Dict, Optional

import httpx

from src.core.models import ChainInfo, Ecosystem, SwapQuote, SwapRequest, UnsignedTransaction
from src.plugins.swap.aggregators.base import SwapAggregator
from src.utils.amounts import format_token_amount

JUPITER_API = "https://api.jup.ag"


class JupiterAggregator(SwapAggregator):
    """Jupiter Swap API v1"""

    supported_chain_ids = ["solana-mainnet"]

    def __init__(
        self,
        timeout: float = 10.0,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("jupiter", JUPITER_API, timeout, api_key, transport)

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def _fetch_quote(self, request: SwapRequest) -> Dict[str, Any]:
        return await self._request(
            "/swap/v1/quote",
            params={
                "inputMint": request.src_token.address,
                "outputMint": request.dst_token.address,
                "amount": str(self.raw_amount_in(request)),
                "slippageBps": request.slippage_bps,
                "restrictIntermediateTokens": "true",
            },
        )

    def _to_quote(self, request: SwapRequest, data: Dict[str, Any]) -> SwapQuote:
        try:
            amount_out = int(data["outAmount"])
            minimum = self.minimum_amount_out(
                amount_out, request.slippage_bps, data.get("otherAmountThreshold")
            )
            route = [
                (step.get("swapInfo") or {}).get("label") or "unknown"
                for step in data.get("routePlan") or []
            ]
            return SwapQuote(
                src_token=request.src_token,
                dst_token=request.dst_token,
                amount_in=str(int(data["inAmount"])),
                amount_out=str(amount_out),
                minimum_amount_out=str(minimum),
                price_impact=str(data.get("priceImpactPct")) if data.get("priceImpactPct") is not None else None,
                route=route,
                aggregator=self.name,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise self.unexpected(data, e)

    async def get_quote(self, request: SwapRequest, chain: ChainInfo) -> SwapQuote:
        data = await self._fetch_quote(request)
        return self._to_quote(request, data)

    async def build_transaction(
        self, request: SwapRequest, chain: ChainInfo
    ) -> UnsignedTransaction:
        quote_data = await self._fetch_quote(request)
        quote = self._to_quote(request, quote_data)

        swap = await self._request(
            "/swap/v1/swap",
            method="POST",
            json_body={
                "quoteResponse": quote_data,
                "userPublicKey": request.user_address,
                "wrapAndUnwrapSol": True,
                "dynamicComputeUnitLimit": True,
                "prioritizationFeeLamports": "auto",
            },
        )
        serialized = swap.get("swapTransaction") if isinstance(swap, dict) else None
        if not serialized:
            raise self.unexpected(swap, KeyError("swapTransaction"))

        return UnsignedTransaction(
            chain_id=chain.id,
            ecosystem=Ecosystem.SOLANA,
            raw={
                "serialized_transaction": serialized,
                "encoding": "base64",
                "last_valid_block_height": swap.get("lastValidBlockHeight"),
            },
            description=(
                f"Swap {format_token_amount(quote.amount_in, request.src_token.decimals)} "
                f"{request.src_token.symbol} for ~"
                f"{format_token_amount(quote.amount_out, request.dst_token.decimals)} "
                f"{request.dst_token.symbol} via Jupiter on {chain.name}"
            ),
            estimated_gas=str(swap["computeUnitLimit"]) if swap.get("computeUnitLimit") else None,
        )
