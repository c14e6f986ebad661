"""
代币数量换算单元测试
"""
import pytest

from src.utils.amounts import (
    apply_slippage,
    format_token_amount,
    format_usd,
    parse_token_amount,
    per_second_rate_to_apr,
    ray_to_apy,
)
from src.utils.exceptions import InvalidInputError


class TestFormatTokenAmount:
    """原始数量 -> 可读字符串"""

    def test_formats_with_decimals(self):
        assert format_token_amount(1_500_000, 6) == "1.5"
        assert format_token_amount("1000000000", 9) == "1"

    def test_small_values_keep_leading_zeros(self):
        assert format_token_amount(1, 18) == "0.000000000000000001"

    def test_zero_decimals(self):
        assert format_token_amount(42, 0) == "42"

    def test_zero(self):
        assert format_token_amount(0, 6) == "0"

    def test_negative_decimals_rejected(self):
        with pytest.raises(ValueError):
            format_token_amount(1, -1)

    def test_round_trip_without_precision_loss(self):
        """18位精度的大数往返不丢精度"""
        raw = 123456789012345678901234567
        assert parse_token_amount(format_token_amount(raw, 18), 18) == raw


class TestParseTokenAmount:
    """可读字符串 -> 原始数量"""

    def test_parses_decimal(self):
        assert parse_token_amount("1.5", 6) == 1_500_000

    def test_truncates_extra_precision(self):
        assert parse_token_amount("0.1234567", 6) == 123456

    def test_integer_input(self):
        assert parse_token_amount("10", 18) == 10 * 10**18

    def test_scientific_notation(self):
        assert parse_token_amount("1e-6", 6) == 1

    @pytest.mark.parametrize("bad", ["abc", "-1", "NaN", "Infinity"])
    def test_invalid_amounts(self, bad):
        with pytest.raises(InvalidInputError):
            parse_token_amount(bad, 6)


class TestSlippageAndRates:
    def test_apply_slippage(self):
        assert apply_slippage(1_000_000, 50) == 995_000
        assert apply_slippage(999, 0) == 999

    def test_apply_slippage_bounds(self):
        with pytest.raises(InvalidInputError):
            apply_slippage(100, 10_001)

    def test_ray_to_apy(self):
        # 3.5% = 0.035 * 1e27
        assert ray_to_apy(35 * 10**24) == pytest.approx(3.5)
        assert ray_to_apy(0) == 0

    def test_ray_to_apy_keeps_precision(self):
        assert ray_to_apy(34567 * 10**21) == pytest.approx(3.4567)
        # 相差不足0.01个百分点的两个利率仍可区分
        assert ray_to_apy(52_049 * 10**21) > ray_to_apy(52_041 * 10**21)

    def test_per_second_rate_to_apr(self):
        # 5% / 31536000秒 * 1e18
        assert per_second_rate_to_apr(1_585_489_599) == pytest.approx(5.0, rel=1e-6)
        assert per_second_rate_to_apr(0) == 0

    def test_format_usd(self):
        assert format_usd(1234567.891) == "$1,234,567.89"
        assert format_usd(-3.5) == "-$3.50"
