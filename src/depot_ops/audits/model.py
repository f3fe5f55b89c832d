from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class MissortedParcel:
    barcode: str
    client_id: Optional[int] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class CageAuditEntry:
    """One physical cage audit: a round's cage checked for parcels in the wrong place."""

    id: str
    date: date
    team_member_id: str
    sub_depot_id: int
    round_id: str
    drop_number: int = 0
    total_parcels_in_cage: int = 0
    total_missorts_found: int = 0
    notes: Optional[str] = None
    missorted_parcels: tuple[MissortedParcel, ...] = field(default_factory=tuple)
