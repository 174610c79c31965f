"""
core/trade_id.py - Trade identifier convention.

TRADE_ID CONTRACT
=================
Trade ids are opaque uint48 values to the coordinator. It only requires
them to be non-zero and to fit in 48 bits.

The discovery side encodes correlation data as decimal digits:

  {tag:2}{YYMMDD}{minute_of_day:4}
  Example: tag=7, 2026-01-22, 14:26 -> 7_260122_0866 -> 72601220866

Largest value 99_991231_1439 < 2**48, so every composed id is valid.
describe_trade_id() never raises; ids that do not follow the
convention come back with valid=False.
=================
"""

from datetime import date
from typing import Any, Dict

from core.constants import TRADE_ID_MAX

MINUTES_PER_DAY = 1440


def compose_trade_id(tag: int, day: date, minute_of_day: int) -> int:
    """
    Compose a trade id from process tag, calendar date and minute bucket.

    Raises ValueError for out-of-range components.
    """
    if not 0 <= tag <= 99:
        raise ValueError(f"Process tag must be 0-99, got {tag}")
    if not 0 <= minute_of_day < MINUTES_PER_DAY:
        raise ValueError(f"Minute of day must be 0-1439, got {minute_of_day}")
    if not 2000 <= day.year <= 2099:
        raise ValueError(f"Year must be 2000-2099, got {day.year}")

    trade_id = int(f"{tag:02d}{day:%y%m%d}{minute_of_day:04d}")
    if trade_id == 0:
        raise ValueError("Composed trade id is zero")
    return trade_id


def describe_trade_id(trade_id: int) -> Dict[str, Any]:
    """
    Best-effort parse of a trade id.

    Returns dict with:
        valid: bool           - follows the decimal convention
        raw: int              - original input
        tag: int | None
        date: str | None      - ISO date
        minute_of_day: int | None
        time: str | None      - "HH:MM"
    """
    result: Dict[str, Any] = {
        "raw": trade_id,
        "valid": False,
        "tag": None,
        "date": None,
        "minute_of_day": None,
        "time": None,
    }

    if trade_id <= 0 or trade_id > TRADE_ID_MAX:
        result["error"] = "outside uint48 / zero"
        return result

    digits = str(trade_id)
    if len(digits) > 12:
        result["error"] = "more than 12 digits"
        return result
    digits = digits.zfill(12)

    tag = int(digits[0:2])
    minute = int(digits[8:12])
    try:
        day = date(2000 + int(digits[2:4]), int(digits[4:6]), int(digits[6:8]))
    except ValueError:
        result["error"] = "date component invalid"
        return result

    if minute >= MINUTES_PER_DAY:
        result["error"] = "minute component invalid"
        return result

    result.update({
        "valid": True,
        "tag": tag,
        "date": day.isoformat(),
        "minute_of_day": minute,
        "time": f"{minute // 60:02d}:{minute % 60:02d}",
    })
    return result
