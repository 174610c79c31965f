"""
execution/event_log.py - Append-only step record stream.

EVENT LOG CONTRACT:
===================
- append() assigns a monotonically increasing sequence number and a
  UTC timestamp; records are never edited or removed.
- Order within a trade is the order steps actually executed.
- Records are kept outside the ledger, so they survive rollbacks.
- With a path, every record is also written as one JSON line, and
  EventLog.load() rebuilds the stream after a restart.
- incomplete_trades() lists trade ids whose latest record is not a
  terminal step (interrupted attempts to reconcile).
===================
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from core.constants import TERMINAL_STEPS, TradeStep
from core.logging import get_logger
from core.models import StepRecord
from core.time import now_iso

logger = get_logger(__name__)

Observer = Callable[[StepRecord], None]


class EventLog:
    """Append-only StepRecord store with optional JSON-lines persistence."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._records: List[StepRecord] = []
        self._observers: List[Observer] = []

        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[StepRecord]:
        return iter(list(self._records))

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def append(self, trade_id: int, step: TradeStep, **payload: Any) -> StepRecord:
        record = StepRecord(
            trade_id=trade_id,
            step=step,
            payload=payload,
            sequence=len(self._records) + 1,
            timestamp=now_iso(),
        )
        self._records.append(record)

        if self.path:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record.to_dict(), default=str) + "\n")

        for observer in list(self._observers):
            try:
                observer(record)
            except Exception:
                logger.exception(
                    "Step observer failed",
                    extra={"context": {"trade_id": trade_id, "step": step.value}},
                )

        return record

    def records(self, trade_id: Optional[int] = None, since: int = 0) -> List[StepRecord]:
        """
        Records in append order.

        Args:
            trade_id: Only this trade's records (None = all)
            since: Skip the first `since` records of the whole log
        """
        selected = self._records[since:]
        if trade_id is None:
            return list(selected)
        return [r for r in selected if r.trade_id == trade_id]

    def last_step(self, trade_id: int) -> Optional[TradeStep]:
        for record in reversed(self._records):
            if record.trade_id == trade_id:
                return record.step
        return None

    def incomplete_trades(self) -> List[int]:
        """Trade ids whose latest record is not terminal."""
        latest: Dict[int, TradeStep] = {}
        for record in self._records:
            latest[record.trade_id] = record.step
        return [trade_id for trade_id, step in latest.items() if step not in TERMINAL_STEPS]

    @classmethod
    def load(cls, path: Path) -> "EventLog":
        """
        Rebuild a log from its JSON-lines file and keep appending to it.

        Missing file gives an empty log. Blank lines are skipped.
        """
        log = cls(path=None)
        path = Path(path)
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        log._records.append(StepRecord.from_dict(json.loads(line)))
        log.path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        return log
