# PATH: core/constants.py
"""
Constants for flasharb.

Contains enums, fixed protocol values and defaults.
Config values go to config/*.yaml.
"""

from enum import Enum
from typing import Final, List

# =============================================================================
# PROTOCOL CONSTANTS
# =============================================================================

# V3 fee tiers (in hundredths of a bip)
V3_FEE_TIERS: List[int] = [100, 500, 3000, 10000]

# Fee tiers are expressed over this denominator (3000 = 0.3%)
FEE_DENOMINATOR: Final[int] = 1_000_000

# Balances and amounts are uint256 on-chain
UINT256_MAX: Final[int] = 2**256 - 1

# Trade identifiers are uint48
TRADE_ID_BITS: Final[int] = 48
TRADE_ID_MAX: Final[int] = 2**TRADE_ID_BITS - 1

NULL_ASSET: Final[str] = "0x0000000000000000000000000000000000000000"

# Q64.96 fixed point (sqrtPriceX96)
Q96: Final[int] = 2**96

# Timing defaults
DEFAULT_DEADLINE_OFFSET_SECONDS: Final[int] = 120


class TradeStep(str, Enum):
    """Step names carried by StepRecord."""
    INITIATED = "initiated"
    BORROWED = "borrowed"
    BUY_SUCCEEDED = "buy_succeeded"
    BUY_FAILED = "buy_failed"
    SELL_SUCCEEDED = "sell_succeeded"
    SELL_FAILED = "sell_failed"
    COMPLETED = "completed"
    REVERTED_FOR_LOSS = "reverted_for_loss"
    REJECTED = "rejected"
    ABORTED = "aborted"


# A trade's record stream ends with exactly one of these
TERMINAL_STEPS: Final[frozenset] = frozenset([
    TradeStep.BUY_FAILED,
    TradeStep.SELL_FAILED,
    TradeStep.COMPLETED,
    TradeStep.REVERTED_FOR_LOSS,
    TradeStep.REJECTED,
    TradeStep.ABORTED,
])


class LegSide(str, Enum):
    """Swap leg direction relative to the base asset."""
    BUY = "buy"
    SELL = "sell"


class Operation(str, Enum):
    """Privileged coordinator operations."""
    START_TRADE = "START_TRADE"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"


class ErrorCode(str, Enum):
    """
    Error codes carried by FlashArbError.

    Grouped by the component that raises them.
    """
    # Parameter validation
    TRADE_ID_ZERO = "TRADE_ID_ZERO"
    TRADE_ID_OUT_OF_RANGE = "TRADE_ID_OUT_OF_RANGE"
    TRADE_ASSET_NULL = "TRADE_ASSET_NULL"
    TRADE_ASSET_INVALID = "TRADE_ASSET_INVALID"
    TRADE_ASSET_IS_BASE = "TRADE_ASSET_IS_BASE"
    PRINCIPAL_NOT_POSITIVE = "PRINCIPAL_NOT_POSITIVE"
    AMOUNT_NOT_POSITIVE = "AMOUNT_NOT_POSITIVE"
    LOAN_ASSET_NOT_IN_POOL = "LOAN_ASSET_NOT_IN_POOL"

    # Pool resolution
    POOL_NOT_FOUND = "POOL_NOT_FOUND"

    # Access
    UNAUTHORIZED = "UNAUTHORIZED"

    # Swap legs
    INSUFFICIENT_OUTPUT = "INSUFFICIENT_OUTPUT"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    PRICE_LIMIT_BREACHED = "PRICE_LIMIT_BREACHED"
    UNKNOWN_VENUE = "UNKNOWN_VENUE"
    VENUE_ERROR = "VENUE_ERROR"

    # Profit gate / arithmetic
    UNPROFITABLE_TRADE = "UNPROFITABLE_TRADE"
    ARITHMETIC_OVERFLOW = "ARITHMETIC_OVERFLOW"

    # Loan source / ledger
    INSUFFICIENT_LIQUIDITY = "INSUFFICIENT_LIQUIDITY"
    LOAN_NOT_REPAID = "LOAN_NOT_REPAID"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INSUFFICIENT_ALLOWANCE = "INSUFFICIENT_ALLOWANCE"

    # State machine
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # Infrastructure / config
    INFRA_RPC_ERROR = "INFRA_RPC_ERROR"
    INFRA_TIMEOUT = "INFRA_TIMEOUT"
    CONFIG_ERROR = "CONFIG_ERROR"

    UNKNOWN = "UNKNOWN"
