"""
Aave V3 最小ABI片段（链上读取与交易构建）
"""
from typing import Any, Dict, List


def _fields(spec: str) -> List[Dict[str, str]]:
    """'name:type, ...' -> ABI components"""
    components = []
    for item in spec.split(","):
        name, type_ = item.strip().split(":")
        components.append({"name": name, "type": type_})
    return components


RESERVE_DATA_FIELDS = _fields(
    "underlyingAsset:address, name:string, symbol:string, decimals:uint256, "
    "baseLTVasCollateral:uint256, reserveLiquidationThreshold:uint256, "
    "reserveLiquidationBonus:uint256, reserveFactor:uint256, usageAsCollateralEnabled:bool, "
    "borrowingEnabled:bool, stableBorrowRateEnabled:bool, isActive:bool, isFrozen:bool, "
    "liquidityIndex:uint128, variableBorrowIndex:uint128, liquidityRate:uint128, "
    "variableBorrowRate:uint128, stableBorrowRate:uint128, lastUpdateTimestamp:uint40, "
    "aTokenAddress:address, stableDebtTokenAddress:address, variableDebtTokenAddress:address, "
    "interestRateStrategyAddress:address, availableLiquidity:uint256, "
    "totalPrincipalStableDebt:uint256, averageStableRate:uint256, "
    "stableDebtLastUpdateTimestamp:uint256, totalScaledVariableDebt:uint256, "
    "priceInMarketReferenceCurrency:uint256, priceOracle:address, variableRateSlope1:uint256, "
    "variableRateSlope2:uint256, stableRateSlope1:uint256, stableRateSlope2:uint256, "
    "baseStableBorrowRate:uint256, baseVariableBorrowRate:uint256, optimalUsageRatio:uint256, "
    "isPaused:bool, isSiloedBorrowing:bool, accruedToTreasury:uint128, unbacked:uint128, "
    "isolationModeTotalDebt:uint128, flashLoanEnabled:bool, debtCeiling:uint256, "
    "debtCeilingDecimals:uint256, eModeCategoryId:uint8, borrowCap:uint256, supplyCap:uint256, "
    "eModeLtv:uint16, eModeLiquidationThreshold:uint16, eModeLiquidationBonus:uint16, "
    "eModePriceSource:address, eModeLabel:string, borrowableInIsolation:bool"
)

BASE_CURRENCY_FIELDS = _fields(
    "marketReferenceCurrencyUnit:uint256, marketReferenceCurrencyPriceInUsd:int256, "
    "networkBaseTokenPriceInUsd:int256, networkBaseTokenPriceDecimals:uint8"
)

USER_RESERVE_FIELDS = _fields(
    "underlyingAsset:address, scaledATokenBalance:uint256, usageAsCollateralEnabledOnUser:bool, "
    "stableBorrowRate:uint256, scaledVariableDebt:uint256, principalStableDebt:uint256, "
    "stableBorrowLastUpdateTimestamp:uint256"
)

ACCOUNT_DATA_FIELDS = _fields(
    "totalCollateralBase:uint256, totalDebtBase:uint256, availableBorrowsBase:uint256, "
    "currentLiquidationThreshold:uint256, ltv:uint256, healthFactor:uint256"
)

UI_POOL_DATA_PROVIDER_ABI: List[Dict[str, Any]] = [
    {
        "name": "getReservesData",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "provider", "type": "address"}],
        "outputs": [
            {"name": "", "type": "tuple[]", "components": RESERVE_DATA_FIELDS},
            {"name": "", "type": "tuple", "components": BASE_CURRENCY_FIELDS},
        ],
    },
    {
        "name": "getUserReservesData",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "provider", "type": "address"},
            {"name": "user", "type": "address"},
        ],
        "outputs": [
            {"name": "", "type": "tuple[]", "components": USER_RESERVE_FIELDS},
            {"name": "", "type": "uint8"},
        ],
    },
]

POOL_ABI: List[Dict[str, Any]] = [
    {
        "name": "supply",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "onBehalfOf", "type": "address"},
            {"name": "referralCode", "type": "uint16"},
        ],
        "outputs": [],
    },
    {
        "name": "getUserAccountData",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "user", "type": "address"}],
        "outputs": ACCOUNT_DATA_FIELDS,
    },
]


def as_dict(fields: List[Dict[str, str]], row: Any) -> Dict[str, Any]:
    """按ABI字段名将解码后的元组转换为字典"""
    if isinstance(row, dict):
        return dict(row)
    return {f["name"]: value for f, value in zip(fields, row)}
