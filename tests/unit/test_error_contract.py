# PATH: tests/unit/test_error_contract.py
"""
Unit tests for the exception contract.

Every FlashArbError carries code, message and details; str() gives
"[CODE] message"; to_dict() is JSON-ready.
"""

import json
import unittest

from core.constants import ErrorCode, LegSide
from core.exceptions import (
    ArithmeticOverflow,
    ConfigError,
    FlashArbError,
    InfraError,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientLiquidity,
    InvalidParameters,
    LedgerError,
    LoanNotRepaid,
    PoolNotFound,
    SwapFailed,
    Unauthorized,
    UnprofitableTrade,
)


class TestFlashArbError(unittest.TestCase):

    def test_defaults(self):
        e = FlashArbError()
        self.assertEqual(e.code, ErrorCode.UNKNOWN)
        self.assertEqual(e.details, {})

    def test_str_format(self):
        e = PoolNotFound("no WETH/USDC 100 pool")
        self.assertEqual(str(e), "[POOL_NOT_FOUND] no WETH/USDC 100 pool")

    def test_to_dict_is_json_ready(self):
        e = InsufficientBalance("short", {"holder": "0xabc", "needed": 5})
        data = json.loads(json.dumps(e.to_dict()))
        self.assertEqual(data["error_code"], "INSUFFICIENT_BALANCE")
        self.assertEqual(data["error_type"], "InsufficientBalance")
        self.assertEqual(data["details"]["needed"], 5)

    def test_infra_error_code_passed_through(self):
        e = InfraError("all endpoints failed", ErrorCode.INFRA_RPC_ERROR)
        self.assertEqual(e.code, ErrorCode.INFRA_RPC_ERROR)


class TestFixedCodes(unittest.TestCase):
    """Subclasses pin their own ErrorCode."""

    CASES = [
        (lambda: PoolNotFound("x"), ErrorCode.POOL_NOT_FOUND),
        (lambda: Unauthorized("x"), ErrorCode.UNAUTHORIZED),
        (lambda: ArithmeticOverflow("x"), ErrorCode.ARITHMETIC_OVERFLOW),
        (lambda: InsufficientBalance("x"), ErrorCode.INSUFFICIENT_BALANCE),
        (lambda: InsufficientAllowance("x"), ErrorCode.INSUFFICIENT_ALLOWANCE),
        (lambda: InsufficientLiquidity("x"), ErrorCode.INSUFFICIENT_LIQUIDITY),
        (lambda: LoanNotRepaid("x"), ErrorCode.LOAN_NOT_REPAID),
        (lambda: ConfigError("x"), ErrorCode.CONFIG_ERROR),
        (lambda: UnprofitableTrade(1003, 1003), ErrorCode.UNPROFITABLE_TRADE),
    ]

    def test_codes(self):
        for factory, code in self.CASES:
            e = factory()
            with self.subTest(error=type(e).__name__):
                self.assertEqual(e.code, code)
                self.assertIsInstance(e, FlashArbError)

    def test_ledger_errors_share_base(self):
        self.assertTrue(issubclass(InsufficientBalance, LedgerError))
        self.assertTrue(issubclass(InsufficientAllowance, LedgerError))


class TestReasonCarryingErrors(unittest.TestCase):

    def test_invalid_parameters_reason(self):
        e = InvalidParameters(ErrorCode.TRADE_ID_ZERO, "trade id must be non-zero")
        self.assertEqual(e.reason, ErrorCode.TRADE_ID_ZERO)
        self.assertEqual(str(e), "[TRADE_ID_ZERO] trade id must be non-zero")

    def test_swap_failed_details(self):
        e = SwapFailed(LegSide.SELL, ErrorCode.INSUFFICIENT_OUTPUT, "too little", amount_out=999)
        self.assertEqual(e.reason, ErrorCode.INSUFFICIENT_OUTPUT)
        self.assertEqual(e.leg, LegSide.SELL)
        self.assertEqual(e.details, {"leg": "sell", "amount_out": 999})

    def test_swap_failed_keeps_caller_details(self):
        e = SwapFailed(LegSide.BUY, ErrorCode.VENUE_ERROR, "boom", details={"venue": "alpha"})
        self.assertEqual(e.details["venue"], "alpha")
        self.assertEqual(e.amount_out, 0)

    def test_unprofitable_amounts(self):
        e = UnprofitableTrade(1000, 1003)
        self.assertEqual(e.details, {"final_proceeds": 1000, "amount_owed": 1003})
        self.assertIn("1003", e.message)


if __name__ == "__main__":
    unittest.main()
