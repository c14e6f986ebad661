"""
代币数量换算工具

原始数量（最小单位整数）与可读小数字符串之间的精确转换，全程不经过浮点数。
"""
from decimal import Decimal, InvalidOperation
from typing import Union

from src.utils.exceptions import InvalidInputError


def format_token_amount(raw: Union[int, str], decimals: int) -> str:
    """
    将原始整数数量格式化为小数字符串

    Args:
        raw: 最小单位数量，如 "1500000"
        decimals: 代币精度，如 6

    Returns:
        去掉末尾0的小数字符串，如 "1.5"
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    value = int(raw)
    if decimals == 0:
        return str(value)

    negative = value < 0
    digits = str(abs(value)).rjust(decimals + 1, "0")
    int_part = digits[:-decimals]
    frac_part = digits[-decimals:].rstrip("0")

    formatted = f"{int_part}.{frac_part}" if frac_part else int_part
    return f"-{formatted}" if negative else formatted


def parse_token_amount(amount: str, decimals: int) -> int:
    """
    将可读小数字符串转换为最小单位整数

    超出精度的小数位被截断（向零取整）。

    Args:
        amount: 可读数量，如 "1.5"
        decimals: 代币精度

    Returns:
        最小单位整数

    Raises:
        InvalidInputError: 数量不是合法的非负小数
    """
    text = str(amount).strip()
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise InvalidInputError(f'Invalid amount "{amount}": not a decimal number')

    if not value.is_finite():
        raise InvalidInputError(f'Invalid amount "{amount}": not a finite number')
    if value < 0:
        raise InvalidInputError(f'Invalid amount "{amount}": must not be negative')

    int_part, _, frac_part = format(value, "f").partition(".")
    frac_part = frac_part[:decimals].ljust(decimals, "0")
    return int(int_part + frac_part)


def apply_slippage(amount_out: int, slippage_bps: int) -> int:
    """按滑点（基点）计算最小到账数量"""
    if not 0 <= slippage_bps <= 10_000:
        raise InvalidInputError(f"slippage_bps must be within 0..10000, got {slippage_bps}")
    return amount_out * (10_000 - slippage_bps) // 10_000


def ray_to_apy(ray_rate: int) -> float:
    """Aave ray利率（1e27）转换为年化百分比（不做舍入，仅在展示时格式化）"""
    return float(Decimal(int(ray_rate)) * 100 / Decimal(10**27))


SECONDS_PER_YEAR = 31_536_000


def per_second_rate_to_apr(rate: int) -> float:
    """Compound V3每秒利率（1e18）转换为年化百分比（按365天单利）"""
    return float(Decimal(int(rate)) * SECONDS_PER_YEAR * 100 / Decimal(10**18))


def format_usd(value: float) -> str:
    """格式化美元金额"""
    if value < 0:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"
