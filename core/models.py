# PATH: core/models.py
"""
Core data models for flasharb.

All monetary values are int in the asset's smallest unit. NO FLOATS.

ASSET CONTRACT
==============
Assets are 20-byte addresses: "0x" + 40 hex chars, stored lowercase.
Ordering between assets is the numeric order of the address value,
the same order a V3 factory uses for token0/token1.
==============
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from core.constants import (
    DEFAULT_DEADLINE_OFFSET_SECONDS,
    LegSide,
    NULL_ASSET,
    TradeStep,
)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(value: str) -> str:
    """
    Normalize an address to lowercase hex.

    Raises ValueError if value is not a 20-byte hex address.
    """
    if not isinstance(value, str):
        raise ValueError(f"Address must be a string, got {type(value).__name__}")
    normalized = value.strip().lower()
    if not ADDRESS_PATTERN.match(normalized):
        raise ValueError(f"Invalid address: {value!r}")
    return normalized


def is_address(value: object) -> bool:
    return isinstance(value, str) and ADDRESS_PATTERN.match(value.strip().lower()) is not None


def is_null_address(value: Optional[str]) -> bool:
    """True for None or the zero address."""
    if value is None:
        return True
    return is_address(value) and int(value, 16) == 0


def address_sort_key(value: str) -> int:
    """Total order over assets: numeric address value."""
    return int(normalize_address(value), 16)


# =============================================================================
# TRADE REQUEST
# =============================================================================

@dataclass(frozen=True)
class TradeRequest:
    """
    Caller-supplied trade intent.

    Immutable once submitted. Validation happens in core.validators,
    not here, so malformed requests can still be represented and rejected.
    """
    trade_id: int
    trade_asset: Optional[str]
    principal_amount: int
    min_acceptable_output: int
    loan_fee_tier: int
    buy_fee_tier: int
    sell_fee_tier: int
    buy_venue: str
    sell_venue: str
    price_limit_buy: int = 0
    price_limit_sell: int = 0
    deadline_offset: int = DEFAULT_DEADLINE_OFFSET_SECONDS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trade_id": self.trade_id,
            "trade_asset": self.trade_asset,
            "principal_amount": str(self.principal_amount),
            "min_acceptable_output": str(self.min_acceptable_output),
            "loan_fee_tier": self.loan_fee_tier,
            "buy_fee_tier": self.buy_fee_tier,
            "sell_fee_tier": self.sell_fee_tier,
            "buy_venue": self.buy_venue,
            "sell_venue": self.sell_venue,
            "price_limit_buy": str(self.price_limit_buy),
            "price_limit_sell": str(self.price_limit_sell),
            "deadline_offset": self.deadline_offset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TradeRequest":
        """Build from a dict; string amounts are accepted (JSON/YAML)."""
        return cls(
            trade_id=int(data["trade_id"]),
            trade_asset=data.get("trade_asset"),
            principal_amount=int(data["principal_amount"]),
            min_acceptable_output=int(data.get("min_acceptable_output", 0)),
            loan_fee_tier=int(data["loan_fee_tier"]),
            buy_fee_tier=int(data["buy_fee_tier"]),
            sell_fee_tier=int(data["sell_fee_tier"]),
            buy_venue=data["buy_venue"],
            sell_venue=data["sell_venue"],
            price_limit_buy=int(data.get("price_limit_buy", 0)),
            price_limit_sell=int(data.get("price_limit_sell", 0)),
            deadline_offset=int(data.get("deadline_offset", DEFAULT_DEADLINE_OFFSET_SECONDS)),
        )


# =============================================================================
# POOLS
# =============================================================================

@dataclass(frozen=True)
class PoolIdentity:
    """
    Canonical pool identity: token0 < token1 plus fee tier.

    Use PoolIdentity.of() so the ordering is always applied.
    """
    token0: str
    token1: str
    fee: int

    @classmethod
    def of(cls, asset_a: str, asset_b: str, fee: int) -> "PoolIdentity":
        a = normalize_address(asset_a)
        b = normalize_address(asset_b)
        if a == b:
            raise ValueError(f"Pool needs two distinct assets, got {a} twice")
        if int(a, 16) > int(b, 16):
            a, b = b, a
        return cls(token0=a, token1=b, fee=int(fee))

    def contains(self, asset: str) -> bool:
        return normalize_address(asset) in (self.token0, self.token1)

    def other(self, asset: str) -> str:
        """The pool's asset that is not `asset`."""
        normalized = normalize_address(asset)
        if normalized == self.token0:
            return self.token1
        if normalized == self.token1:
            return self.token0
        raise ValueError(f"{asset} is not in pool {self.key}")

    @property
    def key(self) -> str:
        return f"{self.token0}/{self.token1}/{self.fee}"

    def to_dict(self) -> Dict[str, Any]:
        return {"token0": self.token0, "token1": self.token1, "fee": self.fee}


@dataclass(frozen=True)
class PoolHandle:
    """A resolved pool: identity plus deployed address."""
    identity: PoolIdentity
    address: str

    def to_dict(self) -> Dict[str, Any]:
        return {**self.identity.to_dict(), "address": self.address}


# =============================================================================
# SWAP LEGS AND TRADE CONTEXT
# =============================================================================

@dataclass(frozen=True)
class SwapLeg:
    """One directional exchange on a named venue."""
    side: LegSide
    venue: str
    asset_in: str
    asset_out: str
    fee_tier: int
    price_limit: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "side": self.side.value,
            "venue": self.venue,
            "asset_in": self.asset_in,
            "asset_out": self.asset_out,
            "fee_tier": self.fee_tier,
            "price_limit": str(self.price_limit),
        }


@dataclass
class TradeContext:
    """
    State threaded through one in-flight trade.

    Created at borrow time, owned by a single coordinator invocation,
    discarded when the trade finishes.
    """
    request: TradeRequest
    pool: PoolHandle
    borrowed_asset: str
    borrowed_amount: int
    fee: int
    amount_owed: int
    buy_leg: SwapLeg
    sell_leg: SwapLeg
    deadline: int
    bought_amount: int = 0
    final_proceeds: int = 0

    @property
    def trade_id(self) -> int:
        return self.request.trade_id

    @property
    def net_profit(self) -> int:
        return self.final_proceeds - self.amount_owed


# =============================================================================
# STEP RECORDS
# =============================================================================

@dataclass(frozen=True)
class StepRecord:
    """One observation in the append-only event stream."""
    trade_id: int
    step: TradeStep
    payload: Dict[str, Any] = field(default_factory=dict)
    sequence: int = 0
    timestamp: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "timestamp": self.timestamp,
            "trade_id": self.trade_id,
            "step": self.step.value,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepRecord":
        return cls(
            trade_id=int(data["trade_id"]),
            step=TradeStep(data["step"]),
            payload=dict(data.get("payload") or {}),
            sequence=int(data.get("sequence", 0)),
            timestamp=data.get("timestamp", ""),
        )


__all__ = [
    "NULL_ASSET",
    "normalize_address",
    "is_address",
    "is_null_address",
    "address_sort_key",
    "TradeRequest",
    "PoolIdentity",
    "PoolHandle",
    "SwapLeg",
    "TradeContext",
    "StepRecord",
]
