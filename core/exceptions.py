# PATH: core/exceptions.py
"""
Typed exceptions for flasharb.

Every error carries an ErrorCode, a message and a details dict.
Errors raised before the loan bracket opens never touch the reserve;
errors raised inside it close the bracket unrepaid.
"""

from typing import Optional

from core.constants import ErrorCode, LegSide


class FlashArbError(Exception):
    """Base exception for flasharb."""

    def __init__(
        self,
        message: str = "",
        code: ErrorCode = ErrorCode.UNKNOWN,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "error_code": self.code.value,
            "error_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidParameters(FlashArbError):
    """Trade request or operation argument failed validation."""

    def __init__(self, code: ErrorCode, message: str, details: Optional[dict] = None):
        super().__init__(message, code, details)

    @property
    def reason(self) -> ErrorCode:
        return self.code


class PoolNotFound(FlashArbError):
    """No pool registered for the pair and fee tier."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.POOL_NOT_FOUND, details)


class Unauthorized(FlashArbError):
    """Caller is not allowed to perform the operation."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.UNAUTHORIZED, details)


class SwapFailed(FlashArbError):
    """
    A venue rejected one leg of the trade.

    amount_out is what the venue reported it would have delivered
    (non-zero only for INSUFFICIENT_OUTPUT).
    """

    def __init__(
        self,
        leg: LegSide,
        code: ErrorCode,
        message: str,
        amount_out: int = 0,
        details: Optional[dict] = None,
    ):
        details = dict(details or {})
        details.setdefault("leg", leg.value)
        details.setdefault("amount_out", amount_out)
        super().__init__(message, code, details)
        self.leg = leg
        self.amount_out = amount_out

    @property
    def reason(self) -> ErrorCode:
        return self.code


class UnprofitableTrade(FlashArbError):
    """Sell proceeds do not strictly exceed principal + fee."""

    def __init__(self, final_proceeds: int, amount_owed: int):
        super().__init__(
            f"Proceeds {final_proceeds} do not exceed amount owed {amount_owed}",
            ErrorCode.UNPROFITABLE_TRADE,
            {"final_proceeds": final_proceeds, "amount_owed": amount_owed},
        )
        self.final_proceeds = final_proceeds
        self.amount_owed = amount_owed


class ArithmeticOverflow(FlashArbError):
    """uint256 arithmetic would wrap."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.ARITHMETIC_OVERFLOW, details)


class LedgerError(FlashArbError):
    """Balance or allowance check failed on the ledger."""
    pass


class InsufficientBalance(LedgerError):
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.INSUFFICIENT_BALANCE, details)


class InsufficientAllowance(LedgerError):
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.INSUFFICIENT_ALLOWANCE, details)


class InsufficientLiquidity(FlashArbError):
    """Loan pool cannot supply the requested principal."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.INSUFFICIENT_LIQUIDITY, details)


class LoanNotRepaid(FlashArbError):
    """Loan bracket closed without principal + fee returned."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.LOAN_NOT_REPAID, details)


class InfraError(FlashArbError):
    """Infrastructure-related errors (RPC, timeouts)."""
    pass


class ConfigError(FlashArbError):
    """Configuration file missing or malformed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.CONFIG_ERROR, details)
