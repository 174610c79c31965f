# PATH: execution/state_machine.py
"""
Trade state machine.

TRADE STATE CONTRACT:
=====================

States (TradeState):
  RECEIVED       -> request accepted for processing
  VALIDATED      -> parameters passed validation
  POOL_RESOLVED  -> loan pool resolved to a handle
  BORROWED       -> loan funds delivered
  BOUGHT         -> buy leg filled
  SOLD           -> sell leg filled
  COMMITTED      -> loan repaid, surplus retained (terminal)
  ABORTED        -> bracket closed unrepaid, all effects undone (terminal)
  REJECTED       -> failed before the loan bracket opened (terminal)

Transitions:
  RECEIVED      -> VALIDATED | REJECTED
  VALIDATED     -> POOL_RESOLVED | REJECTED
  POOL_RESOLVED -> BORROWED | ABORTED
  BORROWED      -> BOUGHT | ABORTED
  BOUGHT        -> SOLD | ABORTED
  SOLD          -> COMMITTED | ABORTED

=====================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from core.constants import ErrorCode
from core.exceptions import FlashArbError


class TradeState(str, Enum):
    """Trade lifecycle states."""
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    POOL_RESOLVED = "POOL_RESOLVED"
    BORROWED = "BORROWED"
    BOUGHT = "BOUGHT"
    SOLD = "SOLD"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"
    REJECTED = "REJECTED"


VALID_TRANSITIONS: Dict[TradeState, List[TradeState]] = {
    TradeState.RECEIVED: [TradeState.VALIDATED, TradeState.REJECTED],
    TradeState.VALIDATED: [TradeState.POOL_RESOLVED, TradeState.REJECTED],
    TradeState.POOL_RESOLVED: [TradeState.BORROWED, TradeState.ABORTED],
    TradeState.BORROWED: [TradeState.BOUGHT, TradeState.ABORTED],
    TradeState.BOUGHT: [TradeState.SOLD, TradeState.ABORTED],
    TradeState.SOLD: [TradeState.COMMITTED, TradeState.ABORTED],
    TradeState.COMMITTED: [],  # Terminal state
    TradeState.ABORTED: [],  # Terminal state
    TradeState.REJECTED: [],  # Terminal state
}


@dataclass
class StateTransition:
    """Record of a state transition."""
    from_state: TradeState
    to_state: TradeState
    timestamp: str = ""
    reason: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()


class InvalidTransitionError(FlashArbError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.INVALID_TRANSITION, details)


@dataclass
class TradeStateMachine:
    """
    State machine for one trade attempt.

    Tracks current state and transition history.
    """
    trade_id: int
    state: TradeState = TradeState.RECEIVED
    history: List[StateTransition] = field(default_factory=list)

    def can_transition_to(self, new_state: TradeState) -> bool:
        return new_state in VALID_TRANSITIONS.get(self.state, [])

    def transition_to(self, new_state: TradeState, reason: str = "") -> StateTransition:
        """
        Raises InvalidTransitionError if transition is not valid.
        """
        if not self.can_transition_to(new_state):
            raise InvalidTransitionError(
                f"Cannot transition from {self.state.value} to {new_state.value}. "
                f"Valid transitions: {[s.value for s in VALID_TRANSITIONS.get(self.state, [])]}",
                {"trade_id": self.trade_id},
            )

        transition = StateTransition(
            from_state=self.state,
            to_state=new_state,
            reason=reason,
        )
        self.history.append(transition)
        self.state = new_state
        return transition

    def abort(self, reason: str = "") -> Optional[StateTransition]:
        """Move to ABORTED unless already terminal."""
        if self.is_terminal:
            return None
        return self.transition_to(TradeState.ABORTED, reason=reason)

    @property
    def is_terminal(self) -> bool:
        return len(VALID_TRANSITIONS.get(self.state, [])) == 0

    @property
    def is_success(self) -> bool:
        return self.state == TradeState.COMMITTED

    @property
    def path(self) -> List[str]:
        """States visited, in order."""
        if not self.history:
            return [self.state.value]
        return [self.history[0].from_state.value] + [t.to_state.value for t in self.history]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trade_id": self.trade_id,
            "state": self.state.value,
            "is_terminal": self.is_terminal,
            "is_success": self.is_success,
            "history": [
                {
                    "from_state": t.from_state.value,
                    "to_state": t.to_state.value,
                    "timestamp": t.timestamp,
                    "reason": t.reason,
                }
                for t in self.history
            ],
        }
