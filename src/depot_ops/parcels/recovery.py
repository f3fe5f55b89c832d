from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .ledger import ParcelLedger
from .model import ParcelScanEntry


@dataclass(frozen=True)
class RecoveryState:
    entry_id: str
    barcode: str
    is_recovered: bool
    recovery_date: Optional[date]


class RecoveryTracker:
    """Recovered/missing semantics over ``ParcelLedger.toggle_recovered``."""

    def __init__(self, ledger: ParcelLedger):
        self._ledger = ledger

    def mark_recovered(self, entry_id: str, *, notes: Optional[str] = None) -> ParcelScanEntry:
        return self._ledger.toggle_recovered(entry_id, True, notes=notes)

    def mark_missing(self, entry_id: str) -> ParcelScanEntry:
        return self._ledger.toggle_recovered(entry_id, False)

    def toggle(self, entry_id: str) -> ParcelScanEntry:
        current = self._ledger.get(entry_id)
        return self._ledger.toggle_recovered(entry_id, not current.is_recovered)

    def snapshot(self, date_added: date) -> tuple[RecoveryState, ...]:
        """Frozen recovery state of the entries logged on ``date_added``.

        Read-only: report imports take this at a point in time and never write back.
        """

        return tuple(
            RecoveryState(
                entry_id=e.id,
                barcode=e.barcode,
                is_recovered=e.is_recovered,
                recovery_date=e.recovery_date,
            )
            for e in self._ledger.list_entries(date_added=date_added)
            if e.barcode
        )
