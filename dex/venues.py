"""
dex/venues.py - Trading venues.

VENUE CONTRACT:
===============
  quote(asset_in, asset_out, fee_tier, amount_in) -> int      (read-only)
  swap(payer, recipient, asset_in, asset_out, fee_tier,
       amount_in, min_amount_out, price_limit, deadline, now) -> SwapResult

swap() never raises for venue-level rejections; it returns
SwapResult.failure(code, ...) and leaves state untouched. Input is
pulled from the payer with transfer_from(spender=venue.spender), so the
payer must approve the exact amount first.

Rejection codes:
  DEADLINE_EXCEEDED     now > deadline
  VENUE_ERROR           no pool, no liquidity, allowance/balance shortfall
  PRICE_LIMIT_BREACHED  post-swap sqrtPriceX96 crosses a non-zero limit
  INSUFFICIENT_OUTPUT   output below min_amount_out (amount_out reported)
===============
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from chains.ledger import Ledger
from core.constants import ErrorCode
from core.exceptions import LedgerError
from core.logging import get_logger
from core.math import constant_product_out, sqrt_price_x96
from core.models import PoolIdentity, normalize_address
from core.time import is_expired
from dex.pool_registry import PoolRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class SwapResult:
    """Ok(amount_out) | Err(code, message, amount_out)."""
    amount_out: int = 0
    error: Optional[ErrorCode] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, amount_out: int) -> "SwapResult":
        return cls(amount_out=amount_out)

    @classmethod
    def failure(cls, error: ErrorCode, message: str, amount_out: int = 0) -> "SwapResult":
        return cls(amount_out=amount_out, error=error, message=message)


class Venue(ABC):
    """A named exchange that can fill one directional swap."""

    def __init__(self, name: str, spender: Optional[str] = None):
        self.name = name
        self.spender = spender or name

    @abstractmethod
    def quote(self, asset_in: str, asset_out: str, fee_tier: int, amount_in: int) -> int:
        ...

    @abstractmethod
    def swap(
        self,
        payer: str,
        recipient: str,
        asset_in: str,
        asset_out: str,
        fee_tier: int,
        amount_in: int,
        min_amount_out: int,
        price_limit: int,
        deadline: int,
        now: int,
    ) -> SwapResult:
        ...


class ConstantProductVenue(Venue):
    """
    x*y=k venue whose pool reserves live on the ledger.

    Each pool's reserves are the ledger balances held by its address,
    so swaps roll back with the enclosing atomic bracket.
    """

    def __init__(
        self,
        name: str,
        ledger: Ledger,
        registry: PoolRegistry,
        spender: Optional[str] = None,
    ):
        super().__init__(name, spender)
        self.ledger = ledger
        self.registry = registry

    def reserves(self, identity: PoolIdentity) -> tuple[int, int]:
        """(reserve0, reserve1) of a registered pool; (0, 0) if unknown."""
        address = self.registry.lookup(identity)
        if address is None:
            return 0, 0
        return (
            self.ledger.balance_of(address, identity.token0),
            self.ledger.balance_of(address, identity.token1),
        )

    def quote(self, asset_in: str, asset_out: str, fee_tier: int, amount_in: int) -> int:
        identity = PoolIdentity.of(asset_in, asset_out, fee_tier)
        reserve0, reserve1 = self.reserves(identity)
        if normalize_address(asset_in) == identity.token0:
            return constant_product_out(amount_in, reserve0, reserve1, fee_tier)
        return constant_product_out(amount_in, reserve1, reserve0, fee_tier)

    def swap(
        self,
        payer: str,
        recipient: str,
        asset_in: str,
        asset_out: str,
        fee_tier: int,
        amount_in: int,
        min_amount_out: int,
        price_limit: int,
        deadline: int,
        now: int,
    ) -> SwapResult:
        if is_expired(deadline, now):
            return SwapResult.failure(
                ErrorCode.DEADLINE_EXCEEDED,
                f"Transaction too old: now {now} > deadline {deadline}",
            )

        identity = PoolIdentity.of(asset_in, asset_out, fee_tier)
        pool = self.registry.lookup(identity)
        if pool is None:
            return SwapResult.failure(ErrorCode.VENUE_ERROR, f"{self.name} has no pool {identity.key}")

        asset_in = normalize_address(asset_in)
        asset_out = normalize_address(asset_out)
        zero_for_one = asset_in == identity.token0
        reserve_in = self.ledger.balance_of(pool, asset_in)
        reserve_out = self.ledger.balance_of(pool, asset_out)

        amount_out = constant_product_out(amount_in, reserve_in, reserve_out, fee_tier)
        if amount_out <= 0 or amount_out >= reserve_out:
            return SwapResult.failure(ErrorCode.VENUE_ERROR, f"{self.name} pool {pool} lacks liquidity")

        if price_limit:
            if zero_for_one:
                price_after = sqrt_price_x96(reserve_in + amount_in, reserve_out - amount_out)
                breached = price_after < price_limit
            else:
                price_after = sqrt_price_x96(reserve_out - amount_out, reserve_in + amount_in)
                breached = price_after > price_limit
            if breached:
                return SwapResult.failure(
                    ErrorCode.PRICE_LIMIT_BREACHED,
                    f"sqrtPriceX96 {price_after} crosses limit {price_limit}",
                )

        if amount_out < min_amount_out:
            return SwapResult.failure(
                ErrorCode.INSUFFICIENT_OUTPUT,
                f"Too little received: {amount_out} < {min_amount_out}",
                amount_out=amount_out,
            )

        try:
            with self.ledger.atomic():
                self.ledger.transfer_from(self.spender, payer, pool, asset_in, amount_in)
                self.ledger.transfer(pool, recipient, asset_out, amount_out)
        except LedgerError as e:
            return SwapResult.failure(ErrorCode.VENUE_ERROR, e.message)

        logger.debug(
            f"{self.name} swap filled",
            extra={"context": {"pool": pool, "amount_in": amount_in, "amount_out": amount_out}},
        )
        return SwapResult.success(amount_out)


class VenueRegistry:
    """Venues by name."""

    def __init__(self, venues: Optional[Dict[str, Venue]] = None):
        self._venues: Dict[str, Venue] = dict(venues or {})

    def add(self, venue: Venue) -> Venue:
        self._venues[venue.name] = venue
        return venue

    def get(self, name: str) -> Optional[Venue]:
        return self._venues.get(name)

    def names(self) -> list[str]:
        return sorted(self._venues)

    def __iter__(self) -> Iterator[Venue]:
        return iter(self._venues.values())

    def __len__(self) -> int:
        return len(self._venues)
