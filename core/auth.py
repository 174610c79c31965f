"""
core/auth.py - Access policy for privileged coordinator operations.

The policy is a pure predicate over (caller, operation). Checking it has
no side effects; require() only raises.
"""

from dataclasses import dataclass, field
from typing import FrozenSet

from core.constants import Operation
from core.exceptions import Unauthorized


def _same_identity(a: str, b: str) -> bool:
    return a.strip().lower() == b.strip().lower()


@dataclass(frozen=True)
class AccessPolicy:
    """Single designated initiator allowed to run the listed operations."""
    initiator: str
    operations: FrozenSet[Operation] = field(default_factory=lambda: frozenset(Operation))

    def is_allowed(self, caller: str | None, operation: Operation) -> bool:
        if not caller or operation not in self.operations:
            return False
        return _same_identity(caller, self.initiator)

    def require(self, caller: str | None, operation: Operation) -> None:
        if not self.is_allowed(caller, operation):
            raise Unauthorized(
                f"{caller!r} may not perform {operation.value}",
                {"caller": caller, "operation": operation.value},
            )
