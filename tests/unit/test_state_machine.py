# PATH: tests/unit/test_state_machine.py
"""
Unit tests for the trade state machine.
"""

import unittest

from core.constants import ErrorCode
from execution.state_machine import (
    InvalidTransitionError,
    TradeState,
    TradeStateMachine,
    VALID_TRANSITIONS,
)


class TestTransitions(unittest.TestCase):

    def test_happy_path(self):
        sm = TradeStateMachine(trade_id=1)
        for state in (
            TradeState.VALIDATED,
            TradeState.POOL_RESOLVED,
            TradeState.BORROWED,
            TradeState.BOUGHT,
            TradeState.SOLD,
            TradeState.COMMITTED,
        ):
            sm.transition_to(state)
        self.assertTrue(sm.is_success)
        self.assertTrue(sm.is_terminal)
        self.assertEqual(sm.path[0], "RECEIVED")
        self.assertEqual(sm.path[-1], "COMMITTED")

    def test_cannot_skip_borrow(self):
        sm = TradeStateMachine(trade_id=1)
        sm.transition_to(TradeState.VALIDATED)
        sm.transition_to(TradeState.POOL_RESOLVED)
        with self.assertRaises(InvalidTransitionError) as ctx:
            sm.transition_to(TradeState.BOUGHT)
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_TRANSITION)

    def test_reject_only_before_borrow(self):
        sm = TradeStateMachine(trade_id=1)
        self.assertTrue(sm.can_transition_to(TradeState.REJECTED))
        sm.transition_to(TradeState.VALIDATED)
        sm.transition_to(TradeState.POOL_RESOLVED)
        self.assertFalse(sm.can_transition_to(TradeState.REJECTED))

    def test_abort_from_bought(self):
        sm = TradeStateMachine(trade_id=1)
        for state in (TradeState.VALIDATED, TradeState.POOL_RESOLVED, TradeState.BORROWED, TradeState.BOUGHT):
            sm.transition_to(state)
        transition = sm.abort(reason="UNPROFITABLE_TRADE")
        self.assertEqual(transition.reason, "UNPROFITABLE_TRADE")
        self.assertEqual(sm.state, TradeState.ABORTED)

    def test_abort_when_terminal_is_noop(self):
        sm = TradeStateMachine(trade_id=1)
        sm.transition_to(TradeState.REJECTED)
        self.assertIsNone(sm.abort())
        self.assertEqual(sm.state, TradeState.REJECTED)

    def test_terminal_states_have_no_exits(self):
        for state in (TradeState.COMMITTED, TradeState.ABORTED, TradeState.REJECTED):
            self.assertEqual(VALID_TRANSITIONS[state], [])

    def test_to_dict(self):
        sm = TradeStateMachine(trade_id=42)
        sm.transition_to(TradeState.VALIDATED)
        data = sm.to_dict()
        self.assertEqual(data["trade_id"], 42)
        self.assertEqual(data["state"], "VALIDATED")
        self.assertEqual(len(data["history"]), 1)


if __name__ == "__main__":
    unittest.main()
