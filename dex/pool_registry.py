"""
dex/pool_registry.py - Registry of deployed pools.

Maps canonical PoolIdentity -> pool address.

Pipeline (maintenance, off the trade path):
1. Load pools from engine.yaml (symbols resolved to addresses)
2. Optionally discover more via a V3 factory getPool() call
3. Verify each address has deployed code; drop the ones that do not
"""

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional

from chains.providers import RPCProvider
from core.constants import NULL_ASSET
from core.exceptions import ConfigError
from core.logging import get_logger
from core.models import PoolIdentity, normalize_address

logger = get_logger(__name__)


# =============================================================================
# ABI ENCODING
# =============================================================================

# getPool(address,address,uint24)
SELECTOR_GET_POOL = "0x1698ee82"


def encode_get_pool(token_a: str, token_b: str, fee: int) -> str:
    """Encode V3 factory getPool(address,address,uint24) call data."""
    token_a_padded = token_a[2:].lower().zfill(64)
    token_b_padded = token_b[2:].lower().zfill(64)
    fee_padded = hex(fee)[2:].zfill(64)
    return f"{SELECTOR_GET_POOL}{token_a_padded}{token_b_padded}{fee_padded}"


def decode_address(hex_result: str | None) -> str:
    """Decode an address word from eth_call output."""
    if not hex_result or hex_result == "0x":
        return NULL_ASSET
    clean = hex_result[2:] if hex_result.startswith("0x") else hex_result
    return "0x" + clean.zfill(64)[-40:].lower()


# =============================================================================
# REGISTRY
# =============================================================================

@dataclass(frozen=True)
class PoolEntry:
    identity: PoolIdentity
    address: str

    def to_dict(self) -> dict:
        return {**self.identity.to_dict(), "address": self.address}


class PoolRegistry:
    """In-memory identity -> address map."""

    def __init__(self, entries: Iterable[PoolEntry] = ()):
        self._pools: dict[PoolIdentity, str] = {}
        for entry in entries:
            self._pools[entry.identity] = entry.address

    def register(self, token_a: str, token_b: str, fee: int, address: str) -> PoolEntry:
        identity = PoolIdentity.of(token_a, token_b, fee)
        entry = PoolEntry(identity=identity, address=normalize_address(address))
        self._pools[identity] = entry.address
        return entry

    def lookup(self, identity: PoolIdentity) -> Optional[str]:
        return self._pools.get(identity)

    def remove(self, identity: PoolIdentity) -> None:
        self._pools.pop(identity, None)

    def entries(self) -> list[PoolEntry]:
        return [PoolEntry(identity=i, address=a) for i, a in self._pools.items()]

    def __iter__(self) -> Iterator[PoolEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._pools)

    def __contains__(self, identity: object) -> bool:
        return identity in self._pools

    @classmethod
    def from_config(cls, pools: list[dict[str, Any]], tokens: dict[str, str]) -> "PoolRegistry":
        """
        Build from config entries.

        Each entry: {token_a, token_b, fee, address}; token fields may be
        symbols from the tokens map or raw addresses.
        """
        registry = cls()
        for index, pool in enumerate(pools):
            try:
                registry.register(
                    resolve_token(pool["token_a"], tokens),
                    resolve_token(pool["token_b"], tokens),
                    int(pool["fee"]),
                    pool["address"],
                )
            except (KeyError, ValueError) as e:
                raise ConfigError(
                    f"Invalid pool entry #{index}: {e}",
                    {"entry": pool},
                )
        return registry


def resolve_token(value: str, tokens: dict[str, str]) -> str:
    """Symbol -> address via the tokens map; addresses pass through."""
    if value in tokens:
        return normalize_address(tokens[value])
    return normalize_address(value)


# =============================================================================
# ON-CHAIN MAINTENANCE
# =============================================================================

async def discover_pools(
    provider: RPCProvider,
    factory: str,
    pairs: list[tuple[str, str]],
    fee_tiers: list[int],
    registry: PoolRegistry | None = None,
) -> PoolRegistry:
    """
    Ask a V3 factory for each pair/fee tier and register non-zero answers.
    """
    registry = registry if registry is not None else PoolRegistry()

    for token_a, token_b in pairs:
        identity_pair = PoolIdentity.of(token_a, token_b, 0)
        for fee in fee_tiers:
            call_data = encode_get_pool(identity_pair.token0, identity_pair.token1, fee)
            response = await provider.eth_call(factory, call_data)
            address = decode_address(response.result)
            if address == NULL_ASSET:
                logger.debug(
                    "No pool at fee tier",
                    extra={"context": {"token0": identity_pair.token0, "token1": identity_pair.token1, "fee": fee}},
                )
                continue
            registry.register(token_a, token_b, fee, address)

    logger.info(f"Discovered {len(registry)} pools", extra={"context": {"factory": factory}})
    return registry


async def verify_deployed(provider: RPCProvider, registry: PoolRegistry) -> list[PoolEntry]:
    """
    Drop registry entries whose address has no deployed code.

    Returns the removed entries.
    """
    removed = []
    for entry in registry.entries():
        if not await provider.has_code(entry.address):
            registry.remove(entry.identity)
            removed.append(entry)
            logger.warning(
                "Pool has no deployed code",
                extra={"context": entry.to_dict()},
            )
    return removed
