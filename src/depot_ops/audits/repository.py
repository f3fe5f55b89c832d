from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import CageAuditEntry


class CageAuditRepository(Protocol):
    def list_for_date(self, audit_date: date, *, sub_depot_id: Optional[int] = None) -> Sequence[CageAuditEntry]:
        raise NotImplementedError
