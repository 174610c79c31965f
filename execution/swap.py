"""
execution/swap.py - One directional swap leg.

Every failure surfaces as SwapFailed(leg, code). No retries.
The venue allowance is set to exactly amount_in before the call and
reset to zero afterwards, success or not.
"""

from typing import Optional

from chains.ledger import Ledger
from core.constants import ErrorCode
from core.exceptions import SwapFailed
from core.logging import get_logger
from core.models import SwapLeg
from core.time import Clock, is_expired, now_s
from dex.venues import SwapResult, VenueRegistry

logger = get_logger(__name__)


class SwapExecutor:
    """Executes swap legs against named venues."""

    def __init__(self, ledger: Ledger, venues: VenueRegistry, clock: Optional[Clock] = None):
        self.ledger = ledger
        self.venues = venues
        self.clock = clock or now_s

    def swap(
        self,
        trader: str,
        leg: SwapLeg,
        amount_in: int,
        min_amount_out: int,
        deadline: int,
    ) -> int:
        """
        Swap amount_in of leg.asset_in for leg.asset_out.

        Args:
            trader: Account paying the input and receiving the output
            leg: Venue, assets, fee tier and price limit
            amount_in: Exact input amount
            min_amount_out: Slippage floor
            deadline: Unix seconds; the swap fails once now > deadline

        Returns:
            Actual output amount

        Raises:
            SwapFailed: unknown venue, deadline, or any venue rejection
        """
        venue = self.venues.get(leg.venue)
        if venue is None:
            raise SwapFailed(leg.side, ErrorCode.UNKNOWN_VENUE, f"Unknown venue: {leg.venue!r}")

        now = self.clock()
        if is_expired(deadline, now):
            raise SwapFailed(
                leg.side,
                ErrorCode.DEADLINE_EXCEEDED,
                f"Deadline {deadline} passed at {now}",
                details={"venue": leg.venue},
            )

        self.ledger.approve(trader, venue.spender, leg.asset_in, amount_in)
        try:
            result = venue.swap(
                payer=trader,
                recipient=trader,
                asset_in=leg.asset_in,
                asset_out=leg.asset_out,
                fee_tier=leg.fee_tier,
                amount_in=amount_in,
                min_amount_out=min_amount_out,
                price_limit=leg.price_limit,
                deadline=deadline,
                now=now,
            )
        except SwapFailed:
            raise
        except Exception as e:
            raise SwapFailed(
                leg.side,
                ErrorCode.VENUE_ERROR,
                f"{leg.venue} raised: {e}",
                details={"venue": leg.venue},
            ) from e
        finally:
            self.ledger.approve(trader, venue.spender, leg.asset_in, 0)

        return self._unwrap(leg, result, amount_in, min_amount_out)

    def _unwrap(self, leg: SwapLeg, result: SwapResult, amount_in: int, min_amount_out: int) -> int:
        if not result.ok:
            logger.warning(
                f"{leg.side.value} leg rejected by {leg.venue}: {result.message}",
                extra={"context": {"error_code": result.error.value, "amount_in": amount_in, "min_amount_out": min_amount_out}},
            )
            raise SwapFailed(
                leg.side,
                result.error,
                result.message,
                amount_out=result.amount_out,
                details={"venue": leg.venue},
            )

        if result.amount_out < min_amount_out:
            raise SwapFailed(
                leg.side,
                ErrorCode.INSUFFICIENT_OUTPUT,
                f"{leg.venue} delivered {result.amount_out} < floor {min_amount_out}",
                amount_out=result.amount_out,
                details={"venue": leg.venue},
            )

        logger.info(
            f"{leg.side.value} leg filled on {leg.venue}",
            extra={"context": {"amount_in": amount_in, "amount_out": result.amount_out}},
        )
        return result.amount_out
