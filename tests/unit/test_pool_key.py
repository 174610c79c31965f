"""
tests/unit/test_pool_key.py - Pool identity ordering and resolution.
"""

import pytest

from core.constants import NULL_ASSET
from core.exceptions import PoolNotFound
from core.models import PoolIdentity
from dex.pool_key import PoolKeyResolver, pool_identity
from dex.pool_registry import PoolRegistry

LOW = "0x0000000000000000000000000000000000000001"
HIGH = "0xf000000000000000000000000000000000000000"
POOL = "0x3333333333333333333333333333333333333333"


@pytest.fixture
def resolver():
    registry = PoolRegistry()
    registry.register(HIGH, LOW, 3000, POOL)
    return PoolKeyResolver(registry)


class TestPoolIdentity:
    def test_orders_by_numeric_value(self):
        identity = pool_identity(HIGH, LOW, 500)
        assert identity.token0 == LOW
        assert identity.token1 == HIGH

    def test_order_independent(self):
        assert pool_identity(LOW, HIGH, 500) == pool_identity(HIGH, LOW, 500)

    def test_case_insensitive(self):
        upper = "0xABCDEF0000000000000000000000000000000000"
        assert pool_identity(upper, LOW, 500) == pool_identity(upper.lower(), LOW, 500)

    def test_fee_distinguishes(self):
        assert pool_identity(LOW, HIGH, 500) != pool_identity(LOW, HIGH, 3000)

    def test_same_asset_rejected(self):
        with pytest.raises(ValueError):
            pool_identity(LOW, LOW, 500)

    def test_other(self):
        identity = PoolIdentity.of(LOW, HIGH, 100)
        assert identity.other(LOW) == HIGH
        assert identity.other(HIGH) == LOW
        with pytest.raises(ValueError):
            identity.other(POOL)


class TestResolver:
    def test_resolve_both_orders(self, resolver):
        a = resolver.resolve(LOW, HIGH, 3000)
        b = resolver.resolve(HIGH, LOW, 3000)
        assert a == b
        assert a.address == POOL
        assert a.identity.fee == 3000

    def test_unregistered_fee_tier(self, resolver):
        with pytest.raises(PoolNotFound) as exc:
            resolver.resolve(LOW, HIGH, 500)
        assert exc.value.details["fee"] == 500

    def test_null_pool_address(self):
        registry = PoolRegistry()
        registry.register(LOW, HIGH, 100, NULL_ASSET)
        with pytest.raises(PoolNotFound):
            PoolKeyResolver(registry).resolve(LOW, HIGH, 100)

    def test_same_asset_is_pool_not_found(self, resolver):
        with pytest.raises(PoolNotFound):
            resolver.resolve(LOW, LOW, 3000)

    def test_missing_fee_is_pool_not_found(self, resolver):
        with pytest.raises(PoolNotFound) as exc:
            resolver.resolve(LOW, HIGH, None)
        assert isinstance(exc.value.__cause__, TypeError)
