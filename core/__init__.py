"""
core - Core utilities and models for flasharb.

This package contains:
- constants.py: Enums, error codes and protocol constants
- exceptions.py: Typed exceptions with error codes
- models.py: Data models (TradeRequest, PoolIdentity, StepRecord, ...)
- validators.py: Trade request validation
- auth.py: Access policy for privileged operations
- math.py: Checked integer arithmetic (no float)
- time.py: Clock and deadline helpers
- trade_id.py: Trade identifier convention
- logging.py: Structured JSON logging
"""

from core.constants import (
    ErrorCode,
    LegSide,
    NULL_ASSET,
    Operation,
    TradeStep,
    V3_FEE_TIERS,
)
from core.exceptions import (
    ArithmeticOverflow,
    FlashArbError,
    InvalidParameters,
    PoolNotFound,
    SwapFailed,
    Unauthorized,
    UnprofitableTrade,
)
from core.logging import get_logger, setup_logging
from core.models import (
    PoolHandle,
    PoolIdentity,
    StepRecord,
    SwapLeg,
    TradeContext,
    TradeRequest,
)

__all__ = [
    # Constants
    "ErrorCode",
    "LegSide",
    "NULL_ASSET",
    "Operation",
    "TradeStep",
    "V3_FEE_TIERS",
    # Exceptions
    "ArithmeticOverflow",
    "FlashArbError",
    "InvalidParameters",
    "PoolNotFound",
    "SwapFailed",
    "Unauthorized",
    "UnprofitableTrade",
    # Models
    "PoolHandle",
    "PoolIdentity",
    "StepRecord",
    "SwapLeg",
    "TradeContext",
    "TradeRequest",
    # Logging
    "get_logger",
    "setup_logging",
]
