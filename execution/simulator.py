# PATH: execution/simulator.py
"""
Pre-trade simulation.

PRE-TRADE SIMULATION CONTRACT:
==============================

Purpose:
  Before submitting a trade, price both legs against current venue
  reserves to see whether the attempt would commit. Read-only: no
  ledger mutation, no step records.

Interface:
  simulate_trade(request, base_asset, resolver, venues) -> SimulationResult
    - passed: bool
    - fee, amount_owed
    - expected_bought, expected_proceeds, expected_profit
    - blockers: List[str]

Blocking criteria:
  - INVALID_PARAMETERS: request fails validation
  - POOL_NOT_FOUND: no loan pool for (base, trade asset, fee tier)
  - UNKNOWN_VENUE: buy or sell venue not registered
  - SLIPPAGE_EXCEEDED: expected buy output < min_acceptable_output
  - NOT_PROFITABLE: expected proceeds <= amount owed

A passing simulation is advisory. Reserves can move before execution.
==============================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.exceptions import FlashArbError, InvalidParameters, PoolNotFound
from core.logging import get_logger
from core.math import compute_loan_fee
from core.models import TradeRequest, normalize_address
from core.validators import validate_trade_request
from dex.pool_key import PoolKeyResolver
from dex.venues import VenueRegistry
from execution.profit_gate import GateDecision, compute_amount_owed, decide

logger = get_logger(__name__)


class SimulationBlocker:
    """Standard simulation blocker codes."""
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    POOL_NOT_FOUND = "POOL_NOT_FOUND"
    UNKNOWN_VENUE = "UNKNOWN_VENUE"
    SLIPPAGE_EXCEEDED = "SLIPPAGE_EXCEEDED"
    NOT_PROFITABLE = "NOT_PROFITABLE"
    ARITHMETIC = "ARITHMETIC"


@dataclass
class SimulationResult:
    """Result of pre-trade simulation."""
    passed: bool
    trade_id: int = 0
    fee: int = 0
    amount_owed: int = 0
    expected_bought: int = 0
    expected_proceeds: int = 0
    blockers: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def expected_profit(self) -> int:
        return self.expected_proceeds - self.amount_owed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "trade_id": self.trade_id,
            "fee": str(self.fee),
            "amount_owed": str(self.amount_owed),
            "expected_bought": str(self.expected_bought),
            "expected_proceeds": str(self.expected_proceeds),
            "expected_profit": str(self.expected_profit),
            "blockers": self.blockers,
            "reason": self.reason,
        }


def simulate_trade(
    request: TradeRequest,
    base_asset: str,
    resolver: PoolKeyResolver,
    venues: VenueRegistry,
) -> SimulationResult:
    """
    Simulate a trade request.

    Stops at the first structural blocker (validation, pool, venues);
    otherwise prices both legs and reports every economic blocker.
    """
    result = SimulationResult(passed=False, trade_id=getattr(request, "trade_id", 0))

    try:
        validate_trade_request(request, base_asset)
        pool = resolver.resolve(base_asset, request.trade_asset, request.loan_fee_tier)
    except InvalidParameters as e:
        return _blocked(result, SimulationBlocker.INVALID_PARAMETERS, e)
    except PoolNotFound as e:
        return _blocked(result, SimulationBlocker.POOL_NOT_FOUND, e)

    buy_venue = venues.get(request.buy_venue)
    sell_venue = venues.get(request.sell_venue)
    missing = [name for name, v in ((request.buy_venue, buy_venue), (request.sell_venue, sell_venue)) if v is None]
    if missing:
        result.blockers.append(SimulationBlocker.UNKNOWN_VENUE)
        result.reason = f"Unknown venue(s): {', '.join(missing)}"
        return result

    base = normalize_address(base_asset)
    trade_asset = normalize_address(request.trade_asset)

    try:
        result.fee = compute_loan_fee(request.principal_amount, pool.identity.fee)
        result.amount_owed = compute_amount_owed(request.principal_amount, result.fee)
        result.expected_bought = buy_venue.quote(base, trade_asset, request.buy_fee_tier, request.principal_amount)
        result.expected_proceeds = sell_venue.quote(trade_asset, base, request.sell_fee_tier, result.expected_bought)
    except FlashArbError as e:
        return _blocked(result, SimulationBlocker.ARITHMETIC, e)

    if result.expected_bought < request.min_acceptable_output:
        result.blockers.append(SimulationBlocker.SLIPPAGE_EXCEEDED)
    if decide(result.expected_proceeds, result.amount_owed) is GateDecision.ABORT:
        result.blockers.append(SimulationBlocker.NOT_PROFITABLE)

    result.passed = not result.blockers
    logger.info(
        "Trade simulated",
        extra={"context": {"trade_id": result.trade_id, "passed": result.passed, "blockers": result.blockers}},
    )
    return result


def _blocked(result: SimulationResult, blocker: str, error: FlashArbError) -> SimulationResult:
    result.blockers.append(blocker)
    result.reason = str(error)
    return result
