"""
Compound V3 链上读取器

利率按当前利用率从Comet合约读取，供收益来源与钱包扫描器共用。
"""
import asyncio
from typing import Any, List, Optional, Tuple

from eth_utils import to_checksum_address
from pydantic import BaseModel

from src.chains.evm.adapter import EvmChainAdapter
from src.core.models import Ecosystem
from src.core.registry import PluginContext
from src.plugins.compound_v3.abi import COMET_ABI
from src.plugins.compound_v3.addresses import COMPOUND_V3_MARKETS, CometMarket
from src.utils.amounts import per_second_rate_to_apr
from src.utils.exceptions import UnsupportedChainError


class CometMarketState(BaseModel):
    """Comet市场快照"""

    chain_id: str
    comet: str
    base_token: str
    supply_apr: float
    borrow_apr: float
    total_supplied: float
    total_borrowed: float
    utilization: float
    price_usd: Optional[float]
    total_supplied_usd: Optional[float]


class CometAccount(BaseModel):
    supplied: float
    borrowed: float


def parse_market(
    chain_id: str,
    market: CometMarket,
    utilization: int,
    total_supply: int,
    total_borrow: int,
    supply_rate: int,
    borrow_rate: int,
) -> CometMarketState:
    """将Comet读数转换为市场快照（利用率为1e18定点数）"""
    scale = 10**market.base_token_decimals
    supplied = int(total_supply) / scale
    price = 1.0 if market.stable else None
    return CometMarketState(
        chain_id=chain_id,
        comet=market.comet,
        base_token=market.base_token,
        supply_apr=per_second_rate_to_apr(supply_rate),
        borrow_apr=per_second_rate_to_apr(borrow_rate),
        total_supplied=supplied,
        total_borrowed=int(total_borrow) / scale,
        utilization=int(utilization) / 10**16,
        price_usd=price,
        total_supplied_usd=supplied * price if price is not None else None,
    )


class CompoundV3Reader:
    """Compound V3 读取器（无状态，按调用解析链适配器）"""

    protocol = "Compound V3"

    @staticmethod
    def supported_chains() -> List[str]:
        return list(COMPOUND_V3_MARKETS)

    @staticmethod
    def get_market_config(chain_id: str) -> Optional[CometMarket]:
        return COMPOUND_V3_MARKETS.get(chain_id)

    def _resolve(
        self, chain_id: str, context: PluginContext
    ) -> Tuple[EvmChainAdapter, CometMarket, Any]:
        market = COMPOUND_V3_MARKETS.get(chain_id)
        if market is None:
            raise UnsupportedChainError(chain_id, self.supported_chains())
        adapter = context.get_chain_adapter_for_chain(chain_id)
        if adapter.ecosystem != Ecosystem.EVM:
            raise UnsupportedChainError(chain_id, self.supported_chains())
        comet = adapter.get_web3(chain_id).eth.contract(
            address=to_checksum_address(market.comet), abi=COMET_ABI
        )
        return adapter, market, comet

    async def get_market(self, chain_id: str, context: PluginContext) -> CometMarketState:
        adapter, market, comet = self._resolve(chain_id, context)
        utilization, total_supply, total_borrow = await asyncio.gather(
            adapter.rpc_call(chain_id, comet.functions.getUtilization().call()),
            adapter.rpc_call(chain_id, comet.functions.totalSupply().call()),
            adapter.rpc_call(chain_id, comet.functions.totalBorrow().call()),
        )
        supply_rate, borrow_rate = await asyncio.gather(
            adapter.rpc_call(chain_id, comet.functions.getSupplyRate(utilization).call()),
            adapter.rpc_call(chain_id, comet.functions.getBorrowRate(utilization).call()),
        )
        return parse_market(
            chain_id, market, utilization, total_supply, total_borrow, supply_rate, borrow_rate
        )

    async def get_account(self, chain_id: str, user: str, context: PluginContext) -> CometAccount:
        """用户的基础代币存款与借款（可读数量）"""
        adapter, market, comet = self._resolve(chain_id, context)
        owner = to_checksum_address(user)
        supplied, borrowed = await asyncio.gather(
            adapter.rpc_call(chain_id, comet.functions.balanceOf(owner).call()),
            adapter.rpc_call(chain_id, comet.functions.borrowBalanceOf(owner).call()),
        )
        scale = 10**market.base_token_decimals
        return CometAccount(supplied=int(supplied) / scale, borrowed=int(borrowed) / scale)
