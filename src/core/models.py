"""
核心数据模型 - Pydantic定义
"""
import json
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.utils.amounts import format_token_amount


# ==================== 枚举类型 ====================


class Ecosystem(StrEnum):
    """链生态"""

    EVM = "evm"
    SOLANA = "solana"
    COSMOS = "cosmos"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


RISK_ORDER = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


class PositionType(StrEnum):
    LENDING_SUPPLY = "lending-supply"
    LENDING_BORROW = "lending-borrow"
    NATIVE = "native"
    ERC20 = "erc20"
    PREDICTION_MARKET = "prediction-market"


# ==================== 链与代币 ====================


class TokenInfo(BaseModel):
    """代币元信息"""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., description="代币符号，如 USDC")
    name: str = Field(..., description="代币名称")
    decimals: int = Field(..., ge=0, description="精度（最小单位位数）")
    address: str = Field(..., description="合约地址(EVM) / mint地址(Solana) / denom(Cosmos)")
    chain_id: str = Field(..., description="所属链ID")
    coingecko_id: Optional[str] = Field(default=None, description="CoinGecko资产ID")
    logo_url: Optional[str] = None

    def same_token(self, other: "TokenInfo") -> bool:
        """(chain_id, address) 相同即为同一代币；EVM地址不区分大小写"""
        if self.chain_id != other.chain_id:
            return False
        if self.address.startswith("0x"):
            return self.address.lower() == other.address.lower()
        return self.address == other.address


class ChainInfo(BaseModel):
    """链身份记录（注册后不可变）"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="全局唯一链ID，如 solana-mainnet")
    name: str
    ecosystem: Ecosystem
    native_chain_id: Union[int, str] = Field(..., description="生态原生链标识")
    native_token: TokenInfo
    rpc_url: str
    explorer_url: Optional[str] = None

    @model_validator(mode="after")
    def native_token_on_chain(self) -> "ChainInfo":
        if self.native_token.chain_id != self.id:
            raise ValueError(
                f"native token of chain {self.id} references chain {self.native_token.chain_id}"
            )
        return self

    def summary(self) -> Dict[str, Any]:
        """defi_get_chains 输出的摘要"""
        return {
            "id": self.id,
            "name": self.name,
            "ecosystem": self.ecosystem.value,
            "native_chain_id": self.native_chain_id,
            "native_token": self.native_token.symbol,
            "explorer": self.explorer_url,
        }


class Balance(BaseModel):
    """单个代币在单条链上的余额"""

    symbol: str
    address: str
    chain_id: str
    decimals: int = Field(..., ge=0)
    balance: str = Field(..., description="原始整数数量")
    balance_formatted: str = Field(..., description="balance / 10^decimals")

    @classmethod
    def from_raw(cls, token: TokenInfo, raw: Union[int, str]) -> "Balance":
        raw_int = int(raw)
        return cls(
            symbol=token.symbol,
            address=token.address,
            chain_id=token.chain_id,
            decimals=token.decimals,
            balance=str(raw_int),
            balance_formatted=format_token_amount(raw_int, token.decimals),
        )


class TokenPrice(BaseModel):
    """代币USD价格"""

    token: TokenInfo
    price_usd: float
    price_change_24h: Optional[float] = None
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = None
    last_updated: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )


# ==================== 兑换 ====================


class SwapRequest(BaseModel):
    """已解析代币的兑换请求"""

    chain_id: str
    src_token: TokenInfo
    dst_token: TokenInfo
    amount: str = Field(..., description="可读数量，如 1.5")
    slippage_bps: int = Field(..., ge=0, le=10_000)
    user_address: str = ""


class SwapQuote(BaseModel):
    """兑换报价（仅对产生它的请求有效）"""

    src_token: TokenInfo
    dst_token: TokenInfo
    amount_in: str = Field(..., description="原始整数数量")
    amount_out: str = Field(..., description="原始整数数量")
    minimum_amount_out: str = Field(..., description="按滑点计算后的最小到账原始数量")
    amount_in_formatted: Optional[str] = None
    amount_out_formatted: Optional[str] = None
    price_impact: Optional[str] = None
    estimated_gas: Optional[str] = None
    route: List[str] = Field(default_factory=list, description="按执行顺序排列的路由")
    aggregator: str

    @model_validator(mode="after")
    def minimum_not_above_out(self) -> "SwapQuote":
        if int(self.minimum_amount_out) > int(self.amount_out):
            raise ValueError(
                f"minimum_amount_out {self.minimum_amount_out} exceeds amount_out {self.amount_out}"
            )
        return self

    @model_validator(mode="after")
    def fill_formatted(self) -> "SwapQuote":
        if self.amount_in_formatted is None:
            self.amount_in_formatted = format_token_amount(self.amount_in, self.src_token.decimals)
        if self.amount_out_formatted is None:
            self.amount_out_formatted = format_token_amount(self.amount_out, self.dst_token.decimals)
        return self


class UnsignedTransaction(BaseModel):
    """未签名交易，核心层从不签名或广播"""

    chain_id: str
    ecosystem: Ecosystem
    raw: Dict[str, Any] = Field(..., description="生态相关的交易载荷")
    description: str
    estimated_gas: Optional[str] = None


# ==================== 收益与持仓 ====================


class YieldOpportunity(BaseModel):
    """收益机会"""

    protocol: str
    chain_id: str
    chain_name: str
    asset: str
    asset_address: str
    apy: float = Field(..., description="年化收益率（百分比）")
    apy_type: Literal["variable", "stable", "fixed"] = "variable"
    tvl: Optional[float] = Field(default=None, description="USD")
    asset_price_usd: Optional[float] = Field(default=None, description="用于把进入成本折算为收益率")
    risk_level: RiskLevel = RiskLevel.MEDIUM
    category: str = "lending"
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PositionAsset(BaseModel):
    symbol: str
    address: str
    balance: str
    balance_usd: float = 0.0
    apy: Optional[float] = None
    is_debt: bool = False


class ProtocolPosition(BaseModel):
    """钱包在某协议上的持仓"""

    protocol: str
    type: PositionType
    chain_id: str
    chain_name: str
    assets: List[PositionAsset] = Field(default_factory=list)
    total_value_usd: float = 0.0
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def total_from_assets(self) -> "ProtocolPosition":
        if self.assets and not self.total_value_usd:
            self.total_value_usd = sum(
                -abs(a.balance_usd) if a.is_debt else a.balance_usd for a in self.assets
            )
        return self


# ==================== 工具结果信封 ====================


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """统一的工具返回信封 {content: [...], isError}"""

    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent]
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def json(cls, data: Any) -> "ToolResult":
        """将领域对象序列化为格式化JSON文本"""
        return cls(content=[TextContent(text=_dump_json(data))])

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(content=[TextContent(text=message)], is_error=True)

    @property
    def text(self) -> str:
        return "\n".join(c.text for c in self.content)

    def to_envelope(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, dict):
        return {k: _to_jsonable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_to_jsonable(v) for v in data]
    return data


def _dump_json(data: Any) -> str:
    return json.dumps(_to_jsonable(data), indent=2, ensure_ascii=False, default=str)


# ==================== 工具输入模型 ====================


ChainIdField = Field(
    ..., description='链ID，如 "ethereum", "base", "solana-mainnet", "osmosis-1"'
)


def _check_amount(v: str) -> str:
    try:
        value = Decimal(v)
    except InvalidOperation:
        raise ValueError(f'"{v}" is not a decimal amount')
    if not value.is_finite() or value <= 0:
        raise ValueError(f'amount must be a positive number, got "{v}"')
    return v


class GetChainsInput(BaseModel):
    """defi_get_chains 输入参数（无）"""


class GetBalancesInput(BaseModel):
    """defi_get_balances 输入参数"""

    chain_id: str = ChainIdField
    address: str = Field(..., description="钱包地址")
    tokens: Optional[List[str]] = Field(
        default=None,
        description="要查询的代币地址或符号；为空时只返回原生代币余额",
    )


class TokenInfoInput(BaseModel):
    """defi_token_info 输入参数"""

    chain_id: str = ChainIdField
    token: str = Field(..., description='代币符号（如 "USDC"）或合约地址')


class TokenRef(BaseModel):
    chain_id: str = ChainIdField
    token: str = Field(..., description="代币符号或地址")


class TokenPriceInput(BaseModel):
    """defi_token_price 输入参数"""

    tokens: List[TokenRef] = Field(..., min_length=1, max_length=20)


class SwapQuoteInput(BaseModel):
    """defi_swap_quote 输入参数"""

    chain_id: str = ChainIdField
    src_token: str = Field(..., description="卖出代币符号或地址")
    dst_token: str = Field(..., description="买入代币符号或地址")
    amount: str = Field(..., description='可读数量，如 "1.5"')
    slippage_bps: Optional[int] = Field(
        default=None, ge=1, le=5000, description="滑点容忍度（基点，50 = 0.5%），默认使用全局配置"
    )

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: str) -> str:
        return _check_amount(v)


class SwapBuildTxInput(SwapQuoteInput):
    """defi_swap_build_tx 输入参数"""

    user_address: str = Field(..., description="签名并发送该交易的钱包地址")


class LendingMarketsInput(BaseModel):
    """defi_lending_markets 输入参数"""

    chain_id: str = ChainIdField


class LendingPositionInput(BaseModel):
    """defi_lending_position 输入参数"""

    chain_id: str = ChainIdField
    user_address: str = Field(..., description="用户钱包地址")


class LendingSupplyTxInput(BaseModel):
    """defi_lending_supply_tx 输入参数"""

    chain_id: str = ChainIdField
    token: str = Field(..., description="存入的代币符号或地址")
    amount: str = Field(..., description='可读数量，如 "100"')
    user_address: str = Field(..., description="存款钱包地址")

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: str) -> str:
        return _check_amount(v)


class FindBestYieldInput(BaseModel):
    """defi_find_best_yield 输入参数"""

    token: str = Field(..., description='代币符号，如 "USDC", "DAI"')
    amount: str = Field(..., description='计划存入的数量，如 "10000"')
    current_chain_id: Optional[str] = Field(
        default=None, description="资金当前所在链，用于标注是否需要跨链"
    )
    risk_tolerance: RiskLevel = Field(default=RiskLevel.MEDIUM, description="风险容忍度")
    time_horizon_days: int = Field(
        default=365, ge=1, le=3650, description="持有天数，用于把进入成本摊入净收益率"
    )

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: str) -> str:
        return _check_amount(v)


class WalletScanInput(BaseModel):
    """defi_wallet_scan 输入参数"""

    address: str = Field(..., description="要扫描的钱包地址")
    chain_ids: Optional[List[str]] = Field(
        default=None, description="指定扫描的链；为空时扫描该地址有效的所有链"
    )
    protocols: Optional[List[str]] = Field(
        default=None, description='指定扫描的协议，如 "Aave V3"；为空时扫描全部'
    )


class PolymarketMarketsInput(BaseModel):
    """defi_polymarket_markets 输入参数"""

    query: Optional[str] = Field(default=None, description="按标签过滤，如 bitcoin, election")
    limit: int = Field(default=10, ge=1, le=50, description="返回的事件数量")


class PolymarketPositionsInput(BaseModel):
    """defi_polymarket_positions 输入参数"""

    address: str = Field(..., description="Polygon钱包地址")
