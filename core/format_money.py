# PATH: core/format_money.py
"""
Amount formatting for display.

No float money. Ledger amounts are int in the asset's smallest unit;
this module renders them as decimal strings and parses decimal strings
back to int, exactly.
"""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

from core.constants import ErrorCode
from core.exceptions import InvalidParameters


def format_units(amount: int, decimals: int = 18) -> str:
    """
    Render a smallest-unit amount as a decimal string.

    Trailing zeros are trimmed, but at least one fractional digit is kept.

    Example:
        >>> format_units(1_500_000_000_000_000_000)
        '1.5'
        >>> format_units(1003, decimals=0)
        '1003'
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"amount must be int, got {type(amount).__name__}")
    if decimals == 0:
        return str(amount)

    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"


def parse_units(value: Union[str, int, Decimal], decimals: int = 18) -> int:
    """
    Parse a decimal amount into smallest units.

    Rejects floats and any value with more fractional digits than the
    asset supports.

    Example:
        >>> parse_units("0.5")
        500000000000000000
    """
    if isinstance(value, float):
        raise InvalidParameters(
            ErrorCode.AMOUNT_NOT_POSITIVE,
            "float amounts are not accepted",
            {"value": repr(value)},
        )
    if isinstance(value, bool):
        raise InvalidParameters(ErrorCode.AMOUNT_NOT_POSITIVE, "bool is not an amount", {"value": value})

    try:
        dec_value = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidParameters(
            ErrorCode.AMOUNT_NOT_POSITIVE,
            f"not a decimal amount: {value!r}",
            {"value": str(value)},
        )

    with localcontext() as ctx:
        ctx.prec = 100
        scaled = dec_value.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise InvalidParameters(
                ErrorCode.AMOUNT_NOT_POSITIVE,
                f"{value} has more than {decimals} decimal places",
                {"value": str(value), "decimals": decimals},
            )
        return int(scaled)
