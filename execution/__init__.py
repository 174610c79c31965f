# PATH: execution/__init__.py
"""
Execution layer.

This package contains the trade execution components:
- loan: Flash loan bracket (LoanSource, FlashLoanPool)
- swap: One directional swap leg (SwapExecutor)
- profit_gate: Commit/abort decision
- state_machine: Trade state machine with transitions
- event_log: Append-only step records
- simulator: Pre-trade dry run
- coordinator: TradeCoordinator, the atomic arbitrage flow
- config / bootstrap: Engine config and sandbox wiring
"""

from execution.state_machine import (
    TradeState,
    TradeStateMachine,
    StateTransition,
    InvalidTransitionError,
    VALID_TRANSITIONS,
)
from execution.loan import FlashLoanPool, Loan, LoanSource
from execution.swap import SwapExecutor
from execution.profit_gate import GateDecision, compute_amount_owed, decide
from execution.event_log import EventLog
from execution.simulator import SimulationBlocker, SimulationResult, simulate_trade
from execution.coordinator import TradeCoordinator, TradeResult
from execution.config import EngineConfig, load_engine_config
from execution.bootstrap import Sandbox, build_sandbox

__all__ = [
    # State machine
    "TradeState",
    "TradeStateMachine",
    "StateTransition",
    "InvalidTransitionError",
    "VALID_TRANSITIONS",
    # Loan / swap / gate
    "FlashLoanPool",
    "Loan",
    "LoanSource",
    "SwapExecutor",
    "GateDecision",
    "compute_amount_owed",
    "decide",
    # Records
    "EventLog",
    # Simulator
    "SimulationBlocker",
    "SimulationResult",
    "simulate_trade",
    # Coordinator
    "TradeCoordinator",
    "TradeResult",
    # Config
    "EngineConfig",
    "load_engine_config",
    "Sandbox",
    "build_sandbox",
]
