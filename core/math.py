"""
core/math.py - Integer arithmetic for amounts and prices.

CRITICAL: No float allowed in amounts, fees or prices.
All monetary values are int (smallest unit). uint256 bounds are
enforced: overflow fails fast, it never wraps.
"""

from decimal import Decimal
from math import isqrt

from core.constants import (
    ErrorCode,
    FEE_DENOMINATOR,
    Q96,
    UINT256_MAX,
)
from core.exceptions import ArithmeticOverflow, InvalidParameters


# =============================================================================
# SAFE CONVERSIONS (NO FLOAT)
# =============================================================================

def is_amount(value: object) -> bool:
    """True for a plain non-negative int (bool and float excluded)."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def safe_int(value: int | str | Decimal, field_name: str = "amount") -> int:
    """
    Convert value to int.

    Raises InvalidParameters if a float is passed or the value is not integral.
    """
    if isinstance(value, float):
        raise InvalidParameters(
            ErrorCode.AMOUNT_NOT_POSITIVE,
            "Float values are not allowed. Use int, str, or Decimal.",
            {"field": field_name, "value": value},
        )
    if isinstance(value, bool):
        raise InvalidParameters(
            ErrorCode.AMOUNT_NOT_POSITIVE,
            f"Boolean is not an amount: {field_name}",
            {"field": field_name},
        )
    if isinstance(value, int):
        return value

    try:
        as_decimal = Decimal(str(value).strip())
    except ArithmeticError as e:
        raise InvalidParameters(
            ErrorCode.AMOUNT_NOT_POSITIVE,
            f"Cannot convert {field_name} to int: {value}",
            {"field": field_name, "value": str(value), "error": str(e)},
        )

    if as_decimal != as_decimal.to_integral_value():
        raise InvalidParameters(
            ErrorCode.AMOUNT_NOT_POSITIVE,
            f"{field_name} must be integral: {value}",
            {"field": field_name, "value": str(value)},
        )
    return int(as_decimal)


# =============================================================================
# CHECKED uint256 ARITHMETIC
# =============================================================================

def checked_add(a: int, b: int) -> int:
    """a + b, raising ArithmeticOverflow past UINT256_MAX."""
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflow(
            "uint256 addition overflow",
            {"a": str(a), "b": str(b)},
        )
    return result


def checked_sub(a: int, b: int) -> int:
    """a - b, raising ArithmeticOverflow below zero."""
    if b > a:
        raise ArithmeticOverflow(
            "uint256 subtraction underflow",
            {"a": str(a), "b": str(b)},
        )
    return a - b


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator); only the result must fit uint256."""
    if denominator == 0:
        raise ArithmeticOverflow("Division by zero", {"a": str(a), "b": str(b)})
    result = (a * b) // denominator
    if result > UINT256_MAX:
        raise ArithmeticOverflow("mul_div result overflow", {"a": str(a), "b": str(b)})
    return result


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)."""
    result = mul_div(a, b, denominator)
    if (a * b) % denominator:
        result = checked_add(result, 1)
    return result


# =============================================================================
# FEES AND PRICES
# =============================================================================

def compute_loan_fee(amount: int, fee_tier: int) -> int:
    """
    Flash loan fee for a pool fee tier, rounded up.

    Example: compute_loan_fee(1000, 3000) -> 3
    """
    return mul_div_rounding_up(amount, fee_tier, FEE_DENOMINATOR)


def amount_after_fee(amount_in: int, fee_tier: int) -> int:
    """Input remaining after the swap fee is deducted."""
    return mul_div(amount_in, FEE_DENOMINATOR - fee_tier, FEE_DENOMINATOR)


def constant_product_out(amount_in: int, reserve_in: int, reserve_out: int, fee_tier: int) -> int:
    """Output of an x*y=k swap with the fee taken from the input."""
    if reserve_in <= 0 or reserve_out <= 0:
        return 0
    in_after_fee = amount_after_fee(amount_in, fee_tier)
    return mul_div(in_after_fee, reserve_out, reserve_in + in_after_fee)


def sqrt_price_x96(reserve0: int, reserve1: int) -> int:
    """
    sqrt(reserve1 / reserve0) as Q64.96.

    Price is token1 per token0, matching the V3 convention.
    """
    if reserve0 <= 0:
        raise ArithmeticOverflow("sqrt price with empty reserve0", {"reserve0": reserve0})
    return isqrt((reserve1 * Q96 * Q96) // reserve0)
