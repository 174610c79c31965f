"""
execution/profit_gate.py - Commit/abort decision.

GATE CONTRACT:
  amount_owed = principal + fee         (uint256, overflow fails fast)
  final_proceeds <= amount_owed  -> ABORT   (break-even is a loss)
  final_proceeds >  amount_owed  -> COMMIT
"""

from enum import Enum

from core.math import checked_add


class GateDecision(str, Enum):
    COMMIT = "COMMIT"
    ABORT = "ABORT"


def compute_amount_owed(principal: int, fee: int) -> int:
    return checked_add(principal, fee)


def decide(final_proceeds: int, amount_owed: int) -> GateDecision:
    if final_proceeds <= amount_owed:
        return GateDecision.ABORT
    return GateDecision.COMMIT
