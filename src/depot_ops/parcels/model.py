from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import format_display_date, parse_iso_date, parse_timestamp
from ..core.enums import ScanType
from ..core.exceptions import ValidationError

DETAIL_FIELDS = ("cfwd_courier_id", "misrouted_du_id", "rejected_courier_id")

# Columns an edit may touch; everything else in a patch is ignored.
EDITABLE_FIELDS = (
    "round_id",
    "drop_number",
    "sub_depot_id",
    "courier_id",
    "barcode",
    "sorter_team_member_id",
    "client_id",
    "time_scanned",
    "scan_type",
    "cfwd_courier_id",
    "misrouted_du_id",
    "rejected_courier_id",
    "is_recovered",
    "recovery_date",
    "recovery_notes",
    "notes",
)


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class NewParcelScan:
    """A candidate missing-parcel entry, as typed by the operator or imported."""

    barcode: str
    round_id: str
    courier_id: str
    sorter_team_member_id: str
    client_id: int
    drop_number: int = 0
    sub_depot_id: int = 0
    time_scanned: Optional[datetime] = None
    scan_type: ScanType = ScanType.STANDARD
    cfwd_courier_id: Optional[str] = None
    misrouted_du_id: Optional[str] = None
    rejected_courier_id: Optional[str] = None
    is_recovered: bool = False
    recovery_date: Optional[date] = None
    recovery_notes: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict) -> "NewParcelScan":
        """Build from a loosely-typed JSON object; bad values become empty and fail validation later."""

        time_scanned = None
        if data.get("time_scanned"):
            try:
                time_scanned = parse_timestamp(data["time_scanned"])
            except ValueError:
                time_scanned = None

        try:
            scan_type = ScanType(data.get("scan_type") or ScanType.STANDARD.value)
        except ValueError:
            scan_type = ScanType.STANDARD

        recovery_date = data.get("recovery_date")
        if isinstance(recovery_date, str):
            try:
                recovery_date = parse_iso_date(recovery_date[:10]) if recovery_date else None
            except ValueError:
                recovery_date = None

        return cls(
            barcode=str(data.get("barcode") or ""),
            round_id=_to_text(data.get("round_id")) or "",
            courier_id=_to_text(data.get("courier_id")) or "",
            sorter_team_member_id=_to_text(data.get("sorter_team_member_id")) or "",
            client_id=_to_int(data.get("client_id")),
            drop_number=_to_int(data.get("drop_number")),
            sub_depot_id=_to_int(data.get("sub_depot_id")),
            time_scanned=time_scanned,
            scan_type=scan_type,
            cfwd_courier_id=_to_text(data.get("cfwd_courier_id")),
            misrouted_du_id=_to_text(data.get("misrouted_du_id")),
            rejected_courier_id=_to_text(data.get("rejected_courier_id")),
            is_recovered=bool(data.get("is_recovered", False)),
            recovery_date=recovery_date or None,
            recovery_notes=_to_text(data.get("recovery_notes")),
            notes=_to_text(data.get("notes")),
        )


@dataclass(frozen=True)
class ParcelScanEntry:
    """Domain entity: one missing-parcel scan record in the ledger."""

    id: str
    barcode: str
    round_id: str
    drop_number: int
    sub_depot_id: int
    courier_id: str
    sorter_team_member_id: str
    client_id: int
    time_scanned: datetime
    scan_type: ScanType
    cfwd_courier_id: Optional[str] = None
    misrouted_du_id: Optional[str] = None
    rejected_courier_id: Optional[str] = None
    is_recovered: bool = False
    recovery_date: Optional[date] = None
    recovery_notes: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def date_added(self) -> Optional[date]:
        """Calendar day the entry was logged; reports group on this, not on time_scanned."""
        return self.created_at.date() if self.created_at else None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["scan_type"] = self.scan_type.value
        d["time_scanned"] = self.time_scanned.isoformat() if self.time_scanned else None
        d["recovery_date"] = self.recovery_date.isoformat() if self.recovery_date else None
        d["created_at"] = self.created_at.isoformat() if self.created_at else None
        d["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        d["dateAdded"] = format_display_date(self.date_added) if self.date_added else None
        return d


@dataclass(frozen=True)
class ParcelLogRow:
    """Read-model: a ledger entry joined with registry display names."""

    entry: ParcelScanEntry
    client_name: Optional[str]
    courier_name: Optional[str]
    sorter_name: Optional[str]

    def to_dict(self) -> dict:
        d = self.entry.to_dict()
        d.update(client_name=self.client_name, courier_name=self.courier_name, sorter_name=self.sorter_name)
        return d


def coerce_patch(body: dict) -> dict:
    """Keep allowed columns and coerce JSON values to column types."""

    patch: dict[str, Any] = {}
    for key, value in (body or {}).items():
        if key not in EDITABLE_FIELDS:
            continue
        if key in ("drop_number", "sub_depot_id", "client_id"):
            patch[key] = None if value is None else _to_int(value)
        elif key == "is_recovered":
            patch[key] = bool(value)
        elif key == "scan_type":
            try:
                patch[key] = ScanType(value)
            except ValueError:
                raise ValidationError(f"Unknown scan type: {value}")
        elif key == "time_scanned":
            try:
                patch[key] = parse_timestamp(value) if value else None
            except ValueError:
                raise ValidationError("time_scanned must be an ISO timestamp")
        elif key == "recovery_date":
            if isinstance(value, str) and value:
                patch[key] = parse_iso_date(value[:10])
            else:
                patch[key] = value or None
        elif key in DETAIL_FIELDS or key in ("round_id", "courier_id", "sorter_team_member_id", "recovery_notes", "notes"):
            patch[key] = _to_text(value)
        else:
            patch[key] = value
    return patch
