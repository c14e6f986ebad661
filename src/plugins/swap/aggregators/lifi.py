"""
LI.FI聚合器（EVM同链兑换，另提供跨链成本估算）
"""
from typing import Any, Dict, Optional

import httpx

from src.chains.evm.chains import CHAIN_ID_MAP
from src.core.models import (
    ChainInfo,
    Ecosystem,
    SwapQuote,
    SwapRequest,
    TokenInfo,
    UnsignedTransaction,
)
from src.plugins.swap.aggregators.base import SwapAggregator
from src.utils.amounts import format_token_amount

LIFI_API = "https://li.quest/v1"

# LI.FI的报价接口要求非零的fromAddress
QUOTE_PLACEHOLDER_ADDRESS = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
BRIDGE_QUOTE_SLIPPAGE = 0.005


class LiFiAggregator(SwapAggregator):
    """LI.FI quote API"""

    supported_chain_ids = list(CHAIN_ID_MAP)

    def __init__(
        self,
        timeout: float = 10.0,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("li.fi", LIFI_API, timeout, api_key, transport)

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-lifi-api-key"] = self.api_key
        return headers

    async def _fetch_quote(self, request: SwapRequest, chain: ChainInfo) -> Dict[str, Any]:
        numeric_chain_id = CHAIN_ID_MAP[chain.id]
        return await self._request(
            "/quote",
            params={
                "fromChain": numeric_chain_id,
                "toChain": numeric_chain_id,
                "fromToken": request.src_token.address,
                "toToken": request.dst_token.address,
                "fromAmount": str(self.raw_amount_in(request)),
                "fromAddress": request.user_address or QUOTE_PLACEHOLDER_ADDRESS,
                "slippage": request.slippage_bps / 10_000,
            },
        )

    def _to_quote(self, request: SwapRequest, data: Dict[str, Any]) -> SwapQuote:
        try:
            estimate = data["estimate"]
            amount_out = int(estimate["toAmount"])
            gas_costs = estimate.get("gasCosts") or []
            tool = (data.get("toolDetails") or {}).get("name") or data.get("tool") or self.name
            return SwapQuote(
                src_token=request.src_token,
                dst_token=request.dst_token,
                amount_in=str(int(estimate["fromAmount"])),
                amount_out=str(amount_out),
                minimum_amount_out=str(
                    self.minimum_amount_out(
                        amount_out, request.slippage_bps, estimate.get("toAmountMin")
                    )
                ),
                estimated_gas=gas_costs[0].get("estimate") if gas_costs else None,
                route=[tool],
                aggregator=self.name,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise self.unexpected(data, e)

    async def get_quote(self, request: SwapRequest, chain: ChainInfo) -> SwapQuote:
        data = await self._fetch_quote(request, chain)
        return self._to_quote(request, data)

    async def build_transaction(
        self, request: SwapRequest, chain: ChainInfo
    ) -> UnsignedTransaction:
        data = await self._fetch_quote(request, chain)
        quote = self._to_quote(request, data)

        tx = data.get("transactionRequest")
        if not isinstance(tx, dict) or not tx.get("to"):
            raise self.unexpected(data, KeyError("transactionRequest"))

        return UnsignedTransaction(
            chain_id=chain.id,
            ecosystem=Ecosystem.EVM,
            raw={
                "to": tx["to"],
                "data": tx.get("data"),
                "value": tx.get("value", "0x0"),
                "gas_limit": tx.get("gasLimit"),
                "gas_price": tx.get("gasPrice"),
                "chain_id": CHAIN_ID_MAP[chain.id],
            },
            description=(
                f"Swap {format_token_amount(quote.amount_in, request.src_token.decimals)} "
                f"{request.src_token.symbol} for ~"
                f"{format_token_amount(quote.amount_out, request.dst_token.decimals)} "
                f"{request.dst_token.symbol} via LI.FI on {chain.name}"
            ),
            estimated_gas=quote.estimated_gas,
        )

    async def get_bridge_cost_usd(
        self,
        src_token: TokenInfo,
        dst_token: TokenInfo,
        raw_amount: int,
        from_chain_id: str,
        to_chain_id: str,
    ) -> float:
        """跨链报价中gas与手续费的美元合计"""
        data = await self._request(
            "/quote",
            params={
                "fromChain": CHAIN_ID_MAP[from_chain_id],
                "toChain": CHAIN_ID_MAP[to_chain_id],
                "fromToken": src_token.address,
                "toToken": dst_token.address,
                "fromAmount": str(raw_amount),
                "fromAddress": QUOTE_PLACEHOLDER_ADDRESS,
                "slippage": BRIDGE_QUOTE_SLIPPAGE,
            },
        )
        try:
            estimate = data["estimate"]
            costs = (estimate.get("gasCosts") or []) + (estimate.get("feeCosts") or [])
            return sum(float(cost.get("amountUSD") or 0) for cost in costs)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise self.unexpected(data, e)
