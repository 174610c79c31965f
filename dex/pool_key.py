"""
dex/pool_key.py - Canonical pool identity and resolution.

ORDERING CONTRACT:
  pool_identity(A, B, fee) == pool_identity(B, A, fee)
  token0 is the asset with the lower numeric address value.
The ordering is applied once, here, before every lookup.
"""

from core.constants import NULL_ASSET
from core.exceptions import PoolNotFound
from core.logging import get_logger
from core.models import PoolHandle, PoolIdentity
from dex.pool_registry import PoolRegistry

logger = get_logger(__name__)


def pool_identity(asset_a: str, asset_b: str, fee: int) -> PoolIdentity:
    """Order-independent identity for a pair plus fee tier."""
    return PoolIdentity.of(asset_a, asset_b, fee)


class PoolKeyResolver:
    """Resolves a pair and fee tier to a registered pool handle."""

    def __init__(self, registry: PoolRegistry):
        self.registry = registry

    def identity(self, asset_a: str, asset_b: str, fee: int) -> PoolIdentity:
        return pool_identity(asset_a, asset_b, fee)

    def resolve(self, asset_a: str, asset_b: str, fee: int) -> PoolHandle:
        """
        Raises:
            PoolNotFound: identity not registered or mapped to the null address
        """
        try:
            identity = pool_identity(asset_a, asset_b, fee)
        except (TypeError, ValueError) as e:
            raise PoolNotFound(str(e), {"asset_a": asset_a, "asset_b": asset_b, "fee": fee}) from e

        address = self.registry.lookup(identity)
        if address is None or address == NULL_ASSET:
            raise PoolNotFound(
                f"No pool registered for {identity.key}",
                identity.to_dict(),
            )

        logger.debug("Pool resolved", extra={"context": {"pool": address, **identity.to_dict()}})
        return PoolHandle(identity=identity, address=address)
