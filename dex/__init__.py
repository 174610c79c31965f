"""
dex/ - Pools and trading venues.

Modules:
- pool_registry: Identity -> address registry, factory discovery, code checks
- pool_key: Canonical pool identity and PoolKeyResolver
- venues: Venue contract, ConstantProductVenue, VenueRegistry
"""

from dex.pool_key import PoolKeyResolver, pool_identity
from dex.pool_registry import PoolEntry, PoolRegistry, discover_pools, verify_deployed
from dex.venues import ConstantProductVenue, SwapResult, Venue, VenueRegistry

__all__ = [
    "PoolKeyResolver",
    "pool_identity",
    "PoolEntry",
    "PoolRegistry",
    "discover_pools",
    "verify_deployed",
    "ConstantProductVenue",
    "SwapResult",
    "Venue",
    "VenueRegistry",
]
