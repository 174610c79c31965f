"""
tests/unit/test_math.py - Tests for core/math.py

Critical tests for:
- No-float enforcement
- uint256 overflow fails fast
- Loan fee rounding
- Constant-product pricing and sqrtPriceX96
"""

import pytest
from decimal import Decimal

from core.constants import ErrorCode, Q96, UINT256_MAX
from core.exceptions import ArithmeticOverflow, InvalidParameters
from core.math import (
    amount_after_fee,
    checked_add,
    checked_sub,
    compute_loan_fee,
    constant_product_out,
    is_amount,
    mul_div,
    mul_div_rounding_up,
    safe_int,
    sqrt_price_x96,
)


class TestSafeInt:
    def test_int_passthrough(self):
        assert safe_int(1003) == 1003

    def test_string_and_decimal(self):
        assert safe_int("1000000000000000000") == 10**18
        assert safe_int(Decimal("42")) == 42

    def test_float_rejected(self):
        with pytest.raises(InvalidParameters) as exc:
            safe_int(1.5)
        assert exc.value.code == ErrorCode.AMOUNT_NOT_POSITIVE

    def test_bool_rejected(self):
        with pytest.raises(InvalidParameters):
            safe_int(True)

    def test_fractional_string_rejected(self):
        with pytest.raises(InvalidParameters):
            safe_int("1.5")

    def test_garbage_rejected(self):
        with pytest.raises(InvalidParameters):
            safe_int("abc")

    def test_is_amount(self):
        assert is_amount(0)
        assert is_amount(10**30)
        assert not is_amount(-1)
        assert not is_amount(1.0)
        assert not is_amount(False)


class TestCheckedArithmetic:
    def test_add_at_boundary(self):
        assert checked_add(UINT256_MAX - 1, 1) == UINT256_MAX

    def test_add_overflow(self):
        with pytest.raises(ArithmeticOverflow) as exc:
            checked_add(UINT256_MAX, 1)
        assert exc.value.code == ErrorCode.ARITHMETIC_OVERFLOW

    def test_sub_underflow(self):
        with pytest.raises(ArithmeticOverflow):
            checked_sub(1, 2)
        assert checked_sub(5, 5) == 0

    def test_mul_div_intermediate_may_exceed(self):
        # a * b exceeds uint256 but the quotient fits
        assert mul_div(2**200, 2**100, 2**100) == 2**200

    def test_mul_div_zero_denominator(self):
        with pytest.raises(ArithmeticOverflow):
            mul_div(1, 1, 0)

    def test_rounding_up(self):
        assert mul_div_rounding_up(10, 1, 3) == 4
        assert mul_div_rounding_up(9, 1, 3) == 3


class TestLoanFee:
    def test_scenario_fee(self):
        assert compute_loan_fee(1000, 3000) == 3

    def test_rounds_up(self):
        # 1 * 500 / 1e6 is a fraction of a unit -> 1
        assert compute_loan_fee(1, 500) == 1
        assert compute_loan_fee(1001, 3000) == 4

    def test_zero_amount(self):
        assert compute_loan_fee(0, 3000) == 0

    @pytest.mark.parametrize("fee_tier", [100, 500, 3000, 10000])
    def test_exact_multiples(self, fee_tier):
        assert compute_loan_fee(1_000_000, fee_tier) == fee_tier


class TestConstantProduct:
    def test_fee_deducted_from_input(self):
        assert amount_after_fee(1_000_000, 3000) == 997_000

    def test_output_below_reserve(self):
        out = constant_product_out(10**18, 10**21, 2 * 10**12, 3000)
        assert 0 < out < 2 * 10**12
        # ~1994 USDC at price 2000 after 0.3% fee and impact
        assert 1_990_000_000 < out < 2_000_000_000

    def test_empty_reserve(self):
        assert constant_product_out(100, 0, 100, 3000) == 0
        assert constant_product_out(100, 100, 0, 3000) == 0


class TestSqrtPrice:
    def test_unit_price(self):
        assert sqrt_price_x96(10**18, 10**18) == Q96

    def test_price_four(self):
        assert sqrt_price_x96(1, 4) == 2 * Q96

    def test_empty_reserve0(self):
        with pytest.raises(ArithmeticOverflow):
            sqrt_price_x96(0, 1)
