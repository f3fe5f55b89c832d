from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import NewParcelScan, ParcelScanEntry


class ParcelRepository(Protocol):
    """Persistence for missing-parcel scan entries.

    There is no delete: entries are corrected or recovered, never removed.
    """

    def list_entries(
        self,
        *,
        date_added: Optional[date] = None,
        courier_id: Optional[str] = None,
        round_id: Optional[str] = None,
    ) -> Sequence[ParcelScanEntry]:
        raise NotImplementedError

    def get_by_id(self, entry_id: str) -> Optional[ParcelScanEntry]:
        raise NotImplementedError

    def create_many(self, entries: Sequence[NewParcelScan]) -> Sequence[ParcelScanEntry]:
        """Insert all entries in one unit of work and return the stored rows."""

        raise NotImplementedError

    def update_fields(self, entry_id: str, fields: dict) -> Optional[ParcelScanEntry]:
        """Partial update; returns the stored row or None when the id is unknown."""

        raise NotImplementedError
