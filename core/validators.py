# PATH: core/validators.py
"""
Trade request validation for flasharb.

CONTRACT:
- validate_trade_request() raises InvalidParameters with a specific
  ErrorCode, or returns the request unchanged.
- Checks run in a fixed order; the first failure wins.
- No side effects: nothing is resolved, borrowed or logged here.

Check order:
  1. trade_id == 0                  -> TRADE_ID_ZERO
  2. trade_id outside uint48        -> TRADE_ID_OUT_OF_RANGE
  3. trade_asset None / zero        -> TRADE_ASSET_NULL
  4. trade_asset not an address     -> TRADE_ASSET_INVALID
  5. trade_asset == base asset      -> TRADE_ASSET_IS_BASE
  6. principal_amount <= 0          -> PRINCIPAL_NOT_POSITIVE
"""

from core.constants import ErrorCode, TRADE_ID_MAX
from core.exceptions import InvalidParameters
from core.models import TradeRequest, is_address, is_null_address, normalize_address


def validate_trade_id(trade_id: object) -> int:
    if not isinstance(trade_id, int) or isinstance(trade_id, bool):
        raise InvalidParameters(
            ErrorCode.TRADE_ID_OUT_OF_RANGE,
            f"Trade id must be an integer, got {type(trade_id).__name__}",
            {"trade_id": repr(trade_id)},
        )
    if trade_id == 0:
        raise InvalidParameters(
            ErrorCode.TRADE_ID_ZERO,
            "Trade id must be non-zero",
            {"trade_id": trade_id},
        )
    if trade_id < 0 or trade_id > TRADE_ID_MAX:
        raise InvalidParameters(
            ErrorCode.TRADE_ID_OUT_OF_RANGE,
            f"Trade id {trade_id} does not fit in 48 bits",
            {"trade_id": trade_id},
        )
    return trade_id


def validate_trade_asset(trade_asset: object, base_asset: str) -> str:
    if trade_asset is None or is_null_address(trade_asset):
        raise InvalidParameters(
            ErrorCode.TRADE_ASSET_NULL,
            "Trade asset must not be the null asset",
            {"trade_asset": trade_asset},
        )
    if not is_address(trade_asset):
        raise InvalidParameters(
            ErrorCode.TRADE_ASSET_INVALID,
            f"Trade asset is not an address: {trade_asset!r}",
            {"trade_asset": repr(trade_asset)},
        )
    normalized = normalize_address(trade_asset)
    if normalized == normalize_address(base_asset):
        raise InvalidParameters(
            ErrorCode.TRADE_ASSET_IS_BASE,
            "Trade asset must differ from the base asset",
            {"trade_asset": normalized},
        )
    return normalized


def validate_positive_amount(
    amount: object,
    code: ErrorCode = ErrorCode.AMOUNT_NOT_POSITIVE,
    field_name: str = "amount",
) -> int:
    """Amounts are plain ints > 0. Floats and bools are rejected."""
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidParameters(
            code,
            f"{field_name} must be a positive integer, got {amount!r}",
            {"field": field_name, "value": repr(amount)},
        )
    return amount


def validate_trade_request(request: TradeRequest, base_asset: str) -> TradeRequest:
    """
    Reject malformed trade requests before any external effect.

    Args:
        request: Caller-supplied request
        base_asset: The coordinator's base asset

    Returns:
        The same request object

    Raises:
        InvalidParameters: with the first failing check's ErrorCode
    """
    validate_trade_id(request.trade_id)
    validate_trade_asset(request.trade_asset, base_asset)
    validate_positive_amount(
        request.principal_amount,
        ErrorCode.PRINCIPAL_NOT_POSITIVE,
        "principal_amount",
    )
    return request
