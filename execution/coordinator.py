"""
execution/coordinator.py - Atomic flash-loan arbitrage coordinator.

EXECUTION CONTRACT:
===================

execute(caller, request) -> TradeResult

  0. Access policy        Unauthorized raised, nothing recorded
  1. Validate             InvalidParameters  -> REJECTED
  2. Resolve loan pool    PoolNotFound       -> REJECTED
  3. "initiated" record, open the loan bracket
  4. "borrowed" record (principal, fee, amount owed)
  5. Buy leg              SwapFailed -> "buy_failed", ABORTED
  6. Sell leg             SwapFailed -> "sell_failed", ABORTED
                          (shortfall below amount owed goes to the gate)
  7. Profit gate          ABORT -> "reverted_for_loss", ABORTED
  8. Repay amount owed, bracket closes, "completed", COMMITTED

Any other failure inside the bracket -> "aborted", ABORTED.
Every ABORTED attempt leaves the ledger exactly as it was before step 3.
No retries; each call is an independent attempt.
===================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from chains.ledger import Ledger
from core.auth import AccessPolicy
from core.constants import ErrorCode, LegSide, Operation, TradeStep
from core.exceptions import FlashArbError, InvalidParameters, PoolNotFound, SwapFailed, UnprofitableTrade
from core.logging import get_logger, log_error, log_step
from core.models import StepRecord, SwapLeg, TradeContext, TradeRequest, normalize_address
from core.time import Clock, deadline_from_offset, now_s
from core.validators import validate_positive_amount, validate_trade_request
from dex.pool_key import PoolKeyResolver
from execution.event_log import EventLog
from execution.loan import Loan, LoanSource
from execution.profit_gate import GateDecision, compute_amount_owed, decide
from execution.simulator import SimulationResult, simulate_trade
from execution.state_machine import TradeState, TradeStateMachine
from execution.swap import SwapExecutor

logger = get_logger(__name__)


@dataclass
class TradeResult:
    """Outcome of one trade attempt."""
    trade_id: int
    state: TradeState
    principal: int = 0
    fee: int = 0
    amount_owed: int = 0
    bought_amount: int = 0
    final_proceeds: int = 0
    error: Optional[FlashArbError] = None
    records: List[StepRecord] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.state == TradeState.COMMITTED

    @property
    def net_profit(self) -> int:
        """Surplus retained; zero unless committed."""
        if not self.is_success:
            return 0
        return self.final_proceeds - self.amount_owed

    @property
    def steps(self) -> List[TradeStep]:
        return [r.step for r in self.records]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trade_id": self.trade_id,
            "state": self.state.value,
            "is_success": self.is_success,
            "principal": str(self.principal),
            "fee": str(self.fee),
            "amount_owed": str(self.amount_owed),
            "bought_amount": str(self.bought_amount),
            "final_proceeds": str(self.final_proceeds),
            "net_profit": str(self.net_profit),
            "error": self.error.to_dict() if self.error else None,
            "records": [r.to_dict() for r in self.records],
        }


class TradeCoordinator:
    """
    Runs trade attempts against one base-asset reserve.

    The coordinator holds no locks; serialization comes from the
    ledger's atomic bracket opened by the loan source.
    """

    def __init__(
        self,
        base_asset: str,
        account: str,
        ledger: Ledger,
        resolver: PoolKeyResolver,
        loan_source: LoanSource,
        swap_executor: SwapExecutor,
        policy: AccessPolicy,
        event_log: Optional[EventLog] = None,
        clock: Optional[Clock] = None,
    ):
        self.base_asset = normalize_address(base_asset)
        self.account = _holder(account)
        self.ledger = ledger
        self.resolver = resolver
        self.loan_source = loan_source
        self.swap_executor = swap_executor
        self.policy = policy
        self.event_log = event_log if event_log is not None else EventLog()
        self.clock = clock or now_s

    # ------------------------------------------------------------------
    # Reserve
    # ------------------------------------------------------------------

    def base_balance(self) -> int:
        return self.ledger.balance_of(self.account, self.base_asset)

    def deposit(self, caller: str, amount: int) -> int:
        """Move base asset from the caller into the reserve. Returns new balance."""
        self.policy.require(caller, Operation.DEPOSIT)
        validate_positive_amount(amount)
        self.ledger.transfer(_holder(caller), self.account, self.base_asset, amount)
        logger.info("Deposit", extra={"context": {"amount": amount, "balance": self.base_balance()}})
        return self.base_balance()

    def withdraw(self, caller: str, amount: int) -> int:
        """Move base asset from the reserve to the caller. Returns new balance."""
        self.policy.require(caller, Operation.WITHDRAW)
        validate_positive_amount(amount)
        self.ledger.transfer(self.account, _holder(caller), self.base_asset, amount)
        logger.info("Withdraw", extra={"context": {"amount": amount, "balance": self.base_balance()}})
        return self.base_balance()

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    def simulate(self, request: TradeRequest) -> SimulationResult:
        """Dry run against current venue reserves. No state change, no records."""
        return simulate_trade(
            request,
            base_asset=self.base_asset,
            resolver=self.resolver,
            venues=self.swap_executor.venues,
        )

    def execute(self, caller: str, request: TradeRequest) -> TradeResult:
        """
        Run one trade attempt.

        Raises:
            Unauthorized: caller is not the initiator (nothing recorded)

        Returns:
            TradeResult in state COMMITTED, ABORTED or REJECTED
        """
        self.policy.require(caller, Operation.START_TRADE)

        start = len(self.event_log)
        sm = TradeStateMachine(trade_id=request.trade_id)

        try:
            validate_trade_request(request, self.base_asset)
            sm.transition_to(TradeState.VALIDATED)
            pool = self.resolver.resolve(self.base_asset, request.trade_asset, request.loan_fee_tier)
            sm.transition_to(TradeState.POOL_RESOLVED)
        except (InvalidParameters, PoolNotFound) as e:
            sm.transition_to(TradeState.REJECTED, reason=e.code.value)
            self._record(request.trade_id, TradeStep.REJECTED, error_code=e.code.value, message=e.message)
            return self._result(sm, start, error=e)

        trade_asset = normalize_address(request.trade_asset)
        deadline = deadline_from_offset(self.clock(), request.deadline_offset)
        buy_leg = SwapLeg(
            side=LegSide.BUY,
            venue=request.buy_venue,
            asset_in=self.base_asset,
            asset_out=trade_asset,
            fee_tier=request.buy_fee_tier,
            price_limit=request.price_limit_buy,
        )
        sell_leg = SwapLeg(
            side=LegSide.SELL,
            venue=request.sell_venue,
            asset_in=trade_asset,
            asset_out=self.base_asset,
            fee_tier=request.sell_fee_tier,
            price_limit=request.price_limit_sell,
        )

        self._record(
            request.trade_id,
            TradeStep.INITIATED,
            principal=request.principal_amount,
            trade_asset=trade_asset,
            loan_pool=pool.address,
            buy_venue=request.buy_venue,
            sell_venue=request.sell_venue,
            deadline=deadline,
        )

        context: Optional[TradeContext] = None

        def on_funds(loan: Loan) -> TradeContext:
            nonlocal context
            context = TradeContext(
                request=request,
                pool=pool,
                borrowed_asset=loan.asset,
                borrowed_amount=loan.amount,
                fee=loan.fee,
                amount_owed=compute_amount_owed(loan.amount, loan.fee),
                buy_leg=buy_leg,
                sell_leg=sell_leg,
                deadline=deadline,
            )
            return self._run_legs(sm, context, loan)

        try:
            self.loan_source.borrow(pool, self.base_asset, request.principal_amount, self.account, on_funds)
        except FlashArbError as e:
            log_error(logger, e.code.value, e.message, trade_id=request.trade_id, state=sm.state.value)
            if not sm.is_terminal:
                sm.abort(reason=e.code.value)
                self._record(request.trade_id, TradeStep.ABORTED, error_code=e.code.value, message=e.message)
            return self._result(sm, start, context=context, error=e)

        sm.transition_to(TradeState.COMMITTED)
        self._record(
            request.trade_id,
            TradeStep.COMPLETED,
            final_proceeds=context.final_proceeds,
            amount_owed=context.amount_owed,
            net_profit=context.net_profit,
        )
        return self._result(sm, start, context=context)

    def _run_legs(self, sm: TradeStateMachine, ctx: TradeContext, loan: Loan) -> TradeContext:
        """Everything between borrow and repay. Raising closes the bracket unrepaid."""
        trade_id = ctx.trade_id

        sm.transition_to(TradeState.BORROWED)
        self._record(
            trade_id,
            TradeStep.BORROWED,
            principal=ctx.borrowed_amount,
            fee=ctx.fee,
            amount_owed=ctx.amount_owed,
        )

        try:
            ctx.bought_amount = self.swap_executor.swap(
                self.account,
                ctx.buy_leg,
                ctx.borrowed_amount,
                ctx.request.min_acceptable_output,
                ctx.deadline,
            )
        except SwapFailed as e:
            sm.abort(reason=e.code.value)
            self._record(trade_id, TradeStep.BUY_FAILED, **_failure_payload(e))
            raise

        sm.transition_to(TradeState.BOUGHT)
        self._record(
            trade_id,
            TradeStep.BUY_SUCCEEDED,
            amount_in=ctx.borrowed_amount,
            amount_out=ctx.bought_amount,
        )

        try:
            ctx.final_proceeds = self.swap_executor.swap(
                self.account,
                ctx.sell_leg,
                ctx.bought_amount,
                ctx.amount_owed,
                ctx.deadline,
            )
        except SwapFailed as e:
            if e.code != ErrorCode.INSUFFICIENT_OUTPUT:
                sm.abort(reason=e.code.value)
                self._record(trade_id, TradeStep.SELL_FAILED, **_failure_payload(e))
                raise
            # Floor was the amount owed and nothing was delivered: always a loss,
            # whatever output the venue reports
            self._revert_for_loss(sm, ctx, min(e.amount_out, ctx.amount_owed))

        sm.transition_to(TradeState.SOLD)
        self._record(
            trade_id,
            TradeStep.SELL_SUCCEEDED,
            amount_in=ctx.bought_amount,
            amount_out=ctx.final_proceeds,
        )

        if decide(ctx.final_proceeds, ctx.amount_owed) is GateDecision.ABORT:
            self._revert_for_loss(sm, ctx, ctx.final_proceeds)

        self.loan_source.repay(loan, ctx.amount_owed)
        return ctx

    def _revert_for_loss(self, sm: TradeStateMachine, ctx: TradeContext, final_proceeds: int) -> None:
        """Record the loss and raise; the loan bracket closes unrepaid."""
        ctx.final_proceeds = final_proceeds
        sm.abort(reason=ErrorCode.UNPROFITABLE_TRADE.value)
        self._record(
            ctx.trade_id,
            TradeStep.REVERTED_FOR_LOSS,
            final_proceeds=final_proceeds,
            amount_owed=ctx.amount_owed,
        )
        raise UnprofitableTrade(final_proceeds, ctx.amount_owed)

    def _record(self, trade_id: int, step: TradeStep, **payload: Any) -> StepRecord:
        log_step(logger, trade_id, step.value, **payload)
        return self.event_log.append(trade_id, step, **payload)

    def _result(
        self,
        sm: TradeStateMachine,
        start: int,
        context: Optional[TradeContext] = None,
        error: Optional[FlashArbError] = None,
    ) -> TradeResult:
        result = TradeResult(
            trade_id=sm.trade_id,
            state=sm.state,
            error=error,
            records=self.event_log.records(sm.trade_id, since=start),
        )
        if context is not None:
            result.principal = context.borrowed_amount
            result.fee = context.fee
            result.amount_owed = context.amount_owed
            result.bought_amount = context.bought_amount
            result.final_proceeds = context.final_proceeds
        return result


def _holder(caller: str) -> str:
    return caller.strip().lower()


def _failure_payload(error: SwapFailed) -> Dict[str, Any]:
    return {
        "error_code": error.code.value,
        "message": error.message,
        "venue": error.details.get("venue"),
        "amount_out": error.amount_out,
    }
