"""
Aave V3 链上读取器

通过UiPoolDataProvider一次读取全部储备数据，结果被收益来源、钱包扫描器与借贷插件共用。
"""
from typing import Any, Dict, List, Optional, Tuple

from eth_utils import to_checksum_address
from pydantic import BaseModel

from src.chains.evm.adapter import EvmChainAdapter
from src.core.models import Ecosystem
from src.core.registry import PluginContext
from src.plugins.lending.abi import (
    ACCOUNT_DATA_FIELDS,
    BASE_CURRENCY_FIELDS,
    POOL_ABI,
    RESERVE_DATA_FIELDS,
    UI_POOL_DATA_PROVIDER_ABI,
    USER_RESERVE_FIELDS,
    as_dict,
)
from src.plugins.lending.addresses import AAVE_V3_ADDRESSES, AaveV3Addresses
from src.utils.amounts import ray_to_apy
from src.utils.exceptions import UnsupportedChainError

RAY = 10**27


class AaveReserve(BaseModel):
    """Aave储备（市场）"""

    symbol: str
    address: str
    decimals: int
    supply_apy: float
    borrow_apy: float
    total_supplied: float
    total_borrowed: float
    available_liquidity: float
    utilization: float
    price_usd: float
    total_supplied_usd: float
    ltv: float
    liquidation_threshold: float
    can_collateral: bool
    can_borrow: bool
    is_frozen: bool
    liquidity_index: int
    variable_borrow_index: int


class AaveUserReserve(BaseModel):
    symbol: str
    address: str
    supplied: float
    supplied_usd: float
    borrowed: float
    borrowed_usd: float
    supply_apy: float
    borrow_apy: float
    collateral_enabled: bool


class AaveAccountData(BaseModel):
    """getUserAccountData（基础货币为USD，8位小数）"""

    total_collateral_usd: float
    total_debt_usd: float
    available_borrows_usd: float
    liquidation_threshold: float
    ltv: float
    health_factor: Optional[float]


def _scaled(value: int, decimals: int) -> float:
    return int(value) / 10**decimals


def parse_reserves(raw_reserves: List[Any], raw_base_currency: Any) -> List[AaveReserve]:
    """
    将getReservesData的解码结果转换为AaveReserve（仅保留活跃且未暂停的储备）

    Args:
        raw_reserves: 储备元组列表
        raw_base_currency: 基础货币信息元组

    Returns:
        AaveReserve列表
    """
    base = as_dict(BASE_CURRENCY_FIELDS, raw_base_currency)
    ref_unit = int(base["marketReferenceCurrencyUnit"]) or 1
    ref_price_usd = int(base["marketReferenceCurrencyPriceInUsd"]) / 10 ** int(
        base["networkBaseTokenPriceDecimals"]
    )

    reserves = []
    for row in raw_reserves:
        r = as_dict(RESERVE_DATA_FIELDS, row)
        if not r["isActive"] or r["isPaused"]:
            continue

        decimals = int(r["decimals"])
        available = _scaled(r["availableLiquidity"], decimals)
        variable_debt = _scaled(
            int(r["totalScaledVariableDebt"]) * int(r["variableBorrowIndex"]) // RAY, decimals
        )
        stable_debt = _scaled(r["totalPrincipalStableDebt"], decimals)
        borrowed = variable_debt + stable_debt
        supplied = available + borrowed
        price_usd = int(r["priceInMarketReferenceCurrency"]) / ref_unit * ref_price_usd

        reserves.append(
            AaveReserve(
                symbol=r["symbol"],
                address=r["underlyingAsset"],
                decimals=decimals,
                supply_apy=ray_to_apy(r["liquidityRate"]),
                borrow_apy=ray_to_apy(r["variableBorrowRate"]),
                total_supplied=supplied,
                total_borrowed=borrowed,
                available_liquidity=available,
                utilization=round(borrowed / supplied * 100, 2) if supplied > 0 else 0.0,
                price_usd=price_usd,
                total_supplied_usd=supplied * price_usd,
                ltv=int(r["baseLTVasCollateral"]) / 100,
                liquidation_threshold=int(r["reserveLiquidationThreshold"]) / 100,
                can_collateral=bool(r["usageAsCollateralEnabled"]),
                can_borrow=bool(r["borrowingEnabled"]),
                is_frozen=bool(r["isFrozen"]),
                liquidity_index=int(r["liquidityIndex"]),
                variable_borrow_index=int(r["variableBorrowIndex"]),
            )
        )
    return reserves


def parse_user_reserves(
    raw_user_reserves: List[Any], reserves: List[AaveReserve]
) -> List[AaveUserReserve]:
    """合并用户储备与市场数据，只保留有存款或借款的储备"""
    by_address = {r.address.lower(): r for r in reserves}
    positions = []
    for row in raw_user_reserves:
        u = as_dict(USER_RESERVE_FIELDS, row)
        reserve = by_address.get(str(u["underlyingAsset"]).lower())
        if reserve is None:
            continue

        supplied_raw = int(u["scaledATokenBalance"]) * reserve.liquidity_index // RAY
        borrowed_raw = int(u["scaledVariableDebt"]) * reserve.variable_borrow_index // RAY + int(
            u["principalStableDebt"]
        )
        if supplied_raw == 0 and borrowed_raw == 0:
            continue

        supplied = _scaled(supplied_raw, reserve.decimals)
        borrowed = _scaled(borrowed_raw, reserve.decimals)
        positions.append(
            AaveUserReserve(
                symbol=reserve.symbol,
                address=reserve.address,
                supplied=supplied,
                supplied_usd=supplied * reserve.price_usd,
                borrowed=borrowed,
                borrowed_usd=borrowed * reserve.price_usd,
                supply_apy=reserve.supply_apy,
                borrow_apy=reserve.borrow_apy,
                collateral_enabled=bool(u["usageAsCollateralEnabledOnUser"]),
            )
        )
    return positions


def parse_account_data(raw: Any) -> AaveAccountData:
    a = as_dict(ACCOUNT_DATA_FIELDS, raw)
    health = int(a["healthFactor"])
    return AaveAccountData(
        total_collateral_usd=int(a["totalCollateralBase"]) / 1e8,
        total_debt_usd=int(a["totalDebtBase"]) / 1e8,
        available_borrows_usd=int(a["availableBorrowsBase"]) / 1e8,
        liquidation_threshold=int(a["currentLiquidationThreshold"]) / 100,
        ltv=int(a["ltv"]) / 100,
        # 无借款时健康因子为uint256最大值
        health_factor=None if health >= 2**255 else health / 1e18,
    )


class AaveV3Reader:
    """Aave V3 读取器（无状态，按调用解析链适配器）"""

    protocol = "Aave V3"

    @staticmethod
    def supported_chains() -> List[str]:
        return list(AAVE_V3_ADDRESSES)

    def _resolve(
        self, chain_id: str, context: PluginContext
    ) -> Tuple[EvmChainAdapter, AaveV3Addresses]:
        addresses = AAVE_V3_ADDRESSES.get(chain_id)
        if addresses is None:
            raise UnsupportedChainError(chain_id, self.supported_chains())
        adapter = context.get_chain_adapter_for_chain(chain_id)
        if adapter.ecosystem != Ecosystem.EVM:
            raise UnsupportedChainError(chain_id, self.supported_chains())
        return adapter, addresses

    async def _read_reserves_raw(self, chain_id: str, context: PluginContext) -> Tuple[Any, Any]:
        adapter, addresses = self._resolve(chain_id, context)
        provider = adapter.get_web3(chain_id).eth.contract(
            address=to_checksum_address(addresses.ui_pool_data_provider),
            abi=UI_POOL_DATA_PROVIDER_ABI,
        )
        call = provider.functions.getReservesData(
            to_checksum_address(addresses.pool_addresses_provider)
        ).call()
        return await adapter.rpc_call(chain_id, call)

    async def get_reserves(self, chain_id: str, context: PluginContext) -> List[AaveReserve]:
        reserves, base_currency = await self._read_reserves_raw(chain_id, context)
        return parse_reserves(reserves, base_currency)

    async def get_user_reserves(
        self, chain_id: str, user: str, context: PluginContext
    ) -> List[AaveUserReserve]:
        adapter, addresses = self._resolve(chain_id, context)
        provider = adapter.get_web3(chain_id).eth.contract(
            address=to_checksum_address(addresses.ui_pool_data_provider),
            abi=UI_POOL_DATA_PROVIDER_ABI,
        )
        raw_user, _ = await adapter.rpc_call(
            chain_id,
            provider.functions.getUserReservesData(
                to_checksum_address(addresses.pool_addresses_provider),
                to_checksum_address(user),
            ).call(),
        )
        reserves = await self.get_reserves(chain_id, context)
        return parse_user_reserves(raw_user, reserves)

    async def get_account_data(
        self, chain_id: str, user: str, context: PluginContext
    ) -> AaveAccountData:
        adapter, addresses = self._resolve(chain_id, context)
        pool = adapter.get_web3(chain_id).eth.contract(
            address=to_checksum_address(addresses.pool), abi=POOL_ABI
        )
        raw = await adapter.rpc_call(
            chain_id, pool.functions.getUserAccountData(to_checksum_address(user)).call()
        )
        return parse_account_data(raw)

    def encode_supply(
        self, chain_id: str, asset: str, amount: int, on_behalf_of: str, context: PluginContext
    ) -> Dict[str, Any]:
        """编码Pool.supply调用，返回 {to, data}"""
        adapter, addresses = self._resolve(chain_id, context)
        pool = adapter.get_web3(chain_id).eth.contract(
            address=to_checksum_address(addresses.pool), abi=POOL_ABI
        )
        data = pool.encode_abi(
            "supply",
            args=[to_checksum_address(asset), amount, to_checksum_address(on_behalf_of), 0],
        )
        return {"to": to_checksum_address(addresses.pool), "data": data}
