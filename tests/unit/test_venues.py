"""
tests/unit/test_venues.py - Constant-product venue rejections and fills.
"""

import pytest

from chains.ledger import Ledger
from core.constants import ErrorCode
from core.math import sqrt_price_x96
from dex.pool_registry import PoolRegistry
from dex.venues import ConstantProductVenue, SwapResult, VenueRegistry

BASE = "0x1111111111111111111111111111111111111111"   # token0
TRADE = "0x2222222222222222222222222222222222222222"  # token1
POOL = "0x5555555555555555555555555555555555555555"


@pytest.fixture
def ledger():
    ledger = Ledger()
    ledger.mint(POOL, BASE, 1_000_000)
    ledger.mint(POOL, TRADE, 2_000_000)
    ledger.mint("trader", BASE, 10_000)
    return ledger


@pytest.fixture
def venue(ledger):
    registry = PoolRegistry()
    registry.register(BASE, TRADE, 3000, POOL)
    return ConstantProductVenue("alpha", ledger, registry)


def swap(venue, **overrides):
    kwargs = dict(
        payer="trader",
        recipient="trader",
        asset_in=BASE,
        asset_out=TRADE,
        fee_tier=3000,
        amount_in=1000,
        min_amount_out=0,
        price_limit=0,
        deadline=100,
        now=50,
    )
    kwargs.update(overrides)
    return venue.swap(**kwargs)


class TestSwapResult:
    def test_success(self):
        result = SwapResult.success(5)
        assert result.ok
        assert result.amount_out == 5

    def test_failure(self):
        result = SwapResult.failure(ErrorCode.VENUE_ERROR, "nope")
        assert not result.ok


class TestConstantProductVenue:
    def test_fill_matches_quote(self, ledger, venue):
        expected = venue.quote(BASE, TRADE, 3000, 1000)
        ledger.approve("trader", venue.spender, BASE, 1000)

        result = swap(venue)

        assert result.ok
        assert result.amount_out == expected
        assert ledger.balance_of("trader", TRADE) == expected
        assert ledger.balance_of("trader", BASE) == 9_000
        assert ledger.balance_of(POOL, BASE) == 1_001_000

    def test_reverse_direction(self, ledger, venue):
        ledger.mint("trader", TRADE, 2000)
        ledger.approve("trader", venue.spender, TRADE, 2000)
        result = swap(venue, asset_in=TRADE, asset_out=BASE, amount_in=2000)
        assert result.ok
        assert 0 < result.amount_out < 1000

    def test_deadline(self, ledger, venue):
        result = swap(venue, deadline=49, now=50)
        assert result.error == ErrorCode.DEADLINE_EXCEEDED

    def test_deadline_inclusive(self, ledger, venue):
        ledger.approve("trader", venue.spender, BASE, 1000)
        assert swap(venue, deadline=50, now=50).ok

    def test_no_pool(self, venue):
        result = swap(venue, fee_tier=500)
        assert result.error == ErrorCode.VENUE_ERROR

    def test_insufficient_output_reports_amount(self, ledger, venue):
        expected = venue.quote(BASE, TRADE, 3000, 1000)
        before = ledger.snapshot()

        result = swap(venue, min_amount_out=expected + 1)

        assert result.error == ErrorCode.INSUFFICIENT_OUTPUT
        assert result.amount_out == expected
        assert ledger.snapshot() == before

    def test_price_limit_breached(self, ledger, venue):
        current = sqrt_price_x96(1_000_000, 2_000_000)
        ledger.approve("trader", venue.spender, BASE, 1000)
        result = swap(venue, price_limit=current)
        assert result.error == ErrorCode.PRICE_LIMIT_BREACHED

    def test_price_limit_respected(self, ledger, venue):
        ledger.approve("trader", venue.spender, BASE, 1000)
        assert swap(venue, price_limit=1).ok

    def test_missing_allowance_is_venue_error(self, ledger, venue):
        before = ledger.snapshot()
        result = swap(venue)
        assert result.error == ErrorCode.VENUE_ERROR
        assert ledger.snapshot() == before

    def test_drained_pool(self, ledger):
        registry = PoolRegistry()
        registry.register(BASE, TRADE, 3000, "0x" + "6" * 40)
        empty = ConstantProductVenue("empty", ledger, registry)
        assert swap(empty).error == ErrorCode.VENUE_ERROR


class TestVenueRegistry:
    def test_add_and_get(self, venue):
        registry = VenueRegistry()
        registry.add(venue)
        assert registry.get("alpha") is venue
        assert registry.get("beta") is None
        assert registry.names() == ["alpha"]
        assert len(registry) == 1
