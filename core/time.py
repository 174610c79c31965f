# PATH: core/time.py
"""
Time utilities for flasharb.

Swap deadlines are unix seconds, like block.timestamp.
"""

import time
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], int]


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Get current UTC datetime as ISO string."""
    return now_utc().isoformat()


def now_s() -> int:
    """Get current Unix timestamp in whole seconds."""
    return int(time.time())


def deadline_from_offset(start_s: int, offset_s: int) -> int:
    """Absolute deadline for both swap legs of one trade."""
    return start_s + offset_s


def is_expired(deadline_s: int, current_s: int) -> bool:
    """
    True once the deadline has passed.

    The deadline second itself is still valid.
    """
    return current_s > deadline_s
