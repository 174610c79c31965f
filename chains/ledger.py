"""
chains/ledger.py - Balance ledger and atomic execution substrate.

LEDGER CONTRACT:
================
- Balances and spending allowances per (holder, asset), uint256 ints.
- Every mutation holds one re-entrant lock: a single global ordering of
  state-mutating operations.
- atomic() holds the lock for the whole block and snapshots state on
  entry. If the block raises, balances and allowances are restored to
  the snapshot and the exception propagates. Nested brackets restore
  to their own snapshot.
================
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

from core.exceptions import InsufficientAllowance, InsufficientBalance
from core.logging import get_logger
from core.math import checked_add, checked_sub, is_amount

logger = get_logger(__name__)

BalanceKey = Tuple[str, str]
AllowanceKey = Tuple[str, str, str]


class Ledger:
    """In-process ledger with all-or-nothing brackets."""

    def __init__(self):
        self._balances: Dict[BalanceKey, int] = {}
        self._allowances: Dict[AllowanceKey, int] = {}
        self._lock = threading.RLock()
        self._depth = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def balance_of(self, holder: str, asset: str) -> int:
        return self._balances.get((holder, asset), 0)

    def allowance(self, owner: str, spender: str, asset: str) -> int:
        return self._allowances.get((owner, spender, asset), 0)

    def snapshot(self) -> Dict[BalanceKey, int]:
        """Copy of all non-zero balances."""
        with self._lock:
            return {k: v for k, v in self._balances.items() if v}

    @property
    def in_atomic(self) -> bool:
        return self._depth > 0

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def mint(self, holder: str, asset: str, amount: int) -> None:
        """Create balance out of nothing (bootstrap and tests only)."""
        with self._lock:
            key = (holder, asset)
            self._balances[key] = checked_add(self._balances.get(key, 0), amount)

    def transfer(self, sender: str, recipient: str, asset: str, amount: int) -> None:
        if not is_amount(amount):
            raise ValueError(f"Transfer amount must be a non-negative int, got {amount!r}")
        with self._lock:
            available = self.balance_of(sender, asset)
            if available < amount:
                raise InsufficientBalance(
                    f"{sender} holds {available} of {asset}, needs {amount}",
                    {"holder": sender, "asset": asset, "available": available, "required": amount},
                )
            self._balances[(sender, asset)] = checked_sub(available, amount)
            self._balances[(recipient, asset)] = checked_add(self.balance_of(recipient, asset), amount)

    def approve(self, owner: str, spender: str, asset: str, amount: int) -> None:
        """Set (not add to) the spender's allowance."""
        if not is_amount(amount):
            raise ValueError(f"Allowance must be a non-negative int, got {amount!r}")
        with self._lock:
            if amount == 0:
                self._allowances.pop((owner, spender, asset), None)
            else:
                self._allowances[(owner, spender, asset)] = amount

    def transfer_from(self, spender: str, owner: str, recipient: str, asset: str, amount: int) -> None:
        with self._lock:
            allowed = self.allowance(owner, spender, asset)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{spender} may spend {allowed} of {owner}'s {asset}, needs {amount}",
                    {"owner": owner, "spender": spender, "asset": asset, "allowed": allowed, "required": amount},
                )
            self.transfer(owner, recipient, asset, amount)
            self.approve(owner, spender, asset, checked_sub(allowed, amount))

    # ------------------------------------------------------------------
    # Atomic bracket
    # ------------------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator["Ledger"]:
        """
        All-or-nothing block.

        Usage:
            with ledger.atomic():
                ledger.transfer(...)
                raise SomeError()   # every transfer above is undone
        """
        with self._lock:
            balances = dict(self._balances)
            allowances = dict(self._allowances)
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._balances = balances
                self._allowances = allowances
                logger.debug("Atomic bracket rolled back", extra={"context": {"depth": self._depth}})
                raise
            finally:
                self._depth -= 1
