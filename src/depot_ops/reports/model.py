from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import format_display_date, parse_timestamp
from ..core.enums import PeriodType
from ..core.exceptions import ValidationError


def daily_missort_key(report_date: date, sub_depot_id: Optional[int] = None) -> str:
    key = f"DMS-{report_date.isoformat()}"
    return f"{key}-{sub_depot_id}" if sub_depot_id is not None else key


def cage_return_key(report_date: date, sub_depot_id: int) -> str:
    return f"{report_date.isoformat()}-{sub_depot_id}"


def duc_key(report_date: date) -> str:
    return f"DUC-{report_date.isoformat()}"


def iso_week_label(day: date) -> str:
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def weekly_missing_key(week_start: date) -> str:
    return f"WMS-{iso_week_label(week_start)}"


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


# Daily missort summary

@dataclass(frozen=True)
class MissortByClient:
    client_id: Optional[int]
    client_name: str
    count: int


@dataclass(frozen=True)
class MissortByRound:
    round_id: str
    sub_depot_id: int
    sub_depot_name: Optional[str]
    count: int


@dataclass(frozen=True)
class MissortSummary:
    """Computed, not yet submitted."""

    date: date
    sub_depot_id: Optional[int]
    total_missorts: int
    by_client: tuple[MissortByClient, ...]
    by_round: tuple[MissortByRound, ...]

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "sub_depot_id": self.sub_depot_id,
            "total_missorts": self.total_missorts,
            "missorts_by_client": [asdict(c) for c in self.by_client],
            "missorts_by_round": [asdict(r) for r in self.by_round],
        }


@dataclass(frozen=True)
class DailyMissortSummaryReport:
    id: str
    date: date
    sub_depot_id: Optional[int]
    total_missorts: int
    missorts_by_client: tuple[MissortByClient, ...]
    missorts_by_round: tuple[MissortByRound, ...]
    submitted_by_team_member_id: str
    submitted_by_name: Optional[str] = None
    notes: Optional[str] = None
    submitted_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "sub_depot_id": self.sub_depot_id,
            "total_missorts": self.total_missorts,
            "missorts_by_client": [asdict(c) for c in self.missorts_by_client],
            "missorts_by_round": [asdict(r) for r in self.missorts_by_round],
            "submitted_by_team_member_id": self.submitted_by_team_member_id,
            "submitted_by_name": self.submitted_by_name,
            "notes": self.notes,
            "submitted_at": _iso(self.submitted_at),
        }


# Cage return

@dataclass
class RoundCourierPair:
    round_id: str
    courier_id: str
    courier_name: Optional[str] = None
    not_returned: bool = False


@dataclass(frozen=True)
class NonReturnedCage:
    round_id: str
    courier_id: str
    courier_name: Optional[str] = None


@dataclass
class CageReturnSheet:
    """Editable checklist of (round, courier) pairs for one date and sub-depot."""

    date: date
    sub_depot_id: int
    pairs: list[RoundCourierPair] = field(default_factory=list)
    notes: Optional[str] = None
    submitted_by_team_member_id: Optional[str] = None

    @property
    def key(self) -> str:
        return cage_return_key(self.date, self.sub_depot_id)

    def find(self, round_id: str, courier_id: str) -> Optional[RoundCourierPair]:
        for p in self.pairs:
            if p.round_id == str(round_id) and p.courier_id == courier_id:
                return p
        return None

    def mark(self, round_id: str, courier_id: str, not_returned: bool = True) -> RoundCourierPair:
        pair = self.find(round_id, courier_id)
        if pair is None:
            raise KeyError(f"No courier {courier_id} on round {round_id} for this sheet")
        pair.not_returned = bool(not_returned)
        return pair

    def non_returned(self) -> tuple[NonReturnedCage, ...]:
        return tuple(
            NonReturnedCage(round_id=p.round_id, courier_id=p.courier_id, courier_name=p.courier_name)
            for p in self.pairs
            if p.not_returned
        )

    def to_dict(self) -> dict:
        return {
            "id": self.key,
            "date": self.date.isoformat(),
            "displayDate": format_display_date(self.date),
            "sub_depot_id": self.sub_depot_id,
            "pairs": [asdict(p) for p in self.pairs],
            "notes": self.notes,
            "submitted_by_team_member_id": self.submitted_by_team_member_id,
        }


@dataclass(frozen=True)
class CageReturnReport:
    id: str
    date: date
    sub_depot_id: int
    non_returned_cages: tuple[NonReturnedCage, ...]
    submitted_by_team_member_id: str
    submitted_by_name: Optional[str] = None
    notes: Optional[str] = None
    submitted_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "sub_depot_id": self.sub_depot_id,
            "non_returned_cages": [asdict(c) for c in self.non_returned_cages],
            "submitted_by_team_member_id": self.submitted_by_team_member_id,
            "submitted_by_name": self.submitted_by_name,
            "notes": self.notes,
            "submitted_at": _iso(self.submitted_at),
        }


# DUC final report

@dataclass(frozen=True)
class MissingParcelDetail:
    scan_entry_id: str
    barcode: str
    courier_id: str
    courier_name: Optional[str]
    round_id: str
    drop_number: int
    sub_depot_id: int
    sub_depot_name: Optional[str]
    sorter_team_member_id: str
    sorter_name: Optional[str]
    time_scanned: Optional[datetime]
    is_recovered: bool
    client_id: int
    client_name: Optional[str]

    @classmethod
    def from_dict(cls, data: dict) -> "MissingParcelDetail":
        if not isinstance(data, dict):
            raise TypeError(f"Expected a parcel object, got {type(data).__name__}")
        d = {k: data.get(k) for k in cls.__dataclass_fields__}
        if d["time_scanned"]:
            d["time_scanned"] = parse_timestamp(d["time_scanned"])
        d["is_recovered"] = bool(d["is_recovered"])
        return cls(**d)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["time_scanned"] = _iso(self.time_scanned)
        return d


@dataclass(frozen=True)
class MissingParcelsSummary:
    total_missing: int
    unrecovered: int
    recovery_rate: int
    parcels: tuple[MissingParcelDetail, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "MissingParcelsSummary":
        return cls(
            total_missing=int(data.get("total_missing") or 0),
            unrecovered=int(data.get("unrecovered") or 0),
            recovery_rate=int(data.get("recovery_rate") or 0),
            parcels=tuple(MissingParcelDetail.from_dict(p) for p in data.get("parcels") or []),
        )

    def to_dict(self) -> dict:
        return {
            "total_missing": self.total_missing,
            "unrecovered": self.unrecovered,
            "recovery_rate": self.recovery_rate,
            "parcels": [p.to_dict() for p in self.parcels],
        }


@dataclass(frozen=True)
class FailedRound:
    round_id: str
    sub_depot_id: int
    drop_number: int
    comments: Optional[str] = None


@dataclass(frozen=True)
class SegregatedParcel:
    barcode: str
    client_id: int
    client_name: Optional[str]
    count: int


@dataclass
class DUCReportDraft:
    """Operator-filled DUC form. Rows are raw and get cleaned on submission."""

    date: date
    submitted_by_team_member_id: Optional[str] = None
    sub_depot_id: Optional[int] = None
    failed_rounds: list[dict] = field(default_factory=list)
    total_returns: int = 0
    segregated_parcels: list[dict] = field(default_factory=list)
    notes: Optional[str] = None
    missing_parcels_summary: Optional[MissingParcelsSummary] = None
    summary_imported: bool = False

    @property
    def key(self) -> str:
        return duc_key(self.date)

    def import_summary(self, summary: MissingParcelsSummary) -> None:
        self.missing_parcels_summary = summary
        self.summary_imported = True

    def to_dict(self) -> dict:
        return {
            "id": self.key,
            "date": self.date.isoformat(),
            "submitted_by_team_member_id": self.submitted_by_team_member_id,
            "sub_depot_id": self.sub_depot_id,
            "failed_rounds": list(self.failed_rounds),
            "total_returns": self.total_returns,
            "segregated_parcels": list(self.segregated_parcels),
            "notes": self.notes,
            "missing_parcels_summary": (
                self.missing_parcels_summary.to_dict() if self.missing_parcels_summary else None
            ),
            "summary_imported": self.summary_imported,
        }


@dataclass(frozen=True)
class DUCFinalReport:
    id: str
    date: date
    submitted_by_team_member_id: str
    failed_rounds: tuple[FailedRound, ...]
    total_returns: int
    segregated_parcels: tuple[SegregatedParcel, ...]
    missing_parcels_summary: MissingParcelsSummary
    sub_depot_id: Optional[int] = None
    submitted_by_name: Optional[str] = None
    notes: Optional[str] = None
    submitted_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "sub_depot_id": self.sub_depot_id,
            "submitted_by_team_member_id": self.submitted_by_team_member_id,
            "submitted_by_name": self.submitted_by_name,
            "failed_rounds": [asdict(r) for r in self.failed_rounds],
            "total_returns": self.total_returns,
            "segregated_parcels": [asdict(p) for p in self.segregated_parcels],
            "missing_parcels_summary": self.missing_parcels_summary.to_dict(),
            "notes": self.notes,
            "submitted_at": _iso(self.submitted_at),
        }


# Courier stats

@dataclass(frozen=True)
class CourierMissingStats:
    courier_id: str
    courier_name: str
    rounds: tuple[str, ...]
    total_missing: int
    unrecovered: int
    recovered: int
    recovery_rate: int

    def to_dict(self) -> dict:
        d = asdict(self)
        d["rounds"] = list(self.rounds)
        return d


# Reporting periods

@dataclass(frozen=True)
class ReportPeriod:
    """An inclusive date range: one day, one ISO week (Mon-Sun) or one calendar month."""

    kind: PeriodType
    start: date
    end: date

    @classmethod
    def for_day(cls, day: date) -> "ReportPeriod":
        return cls(PeriodType.DAY, day, day)

    @classmethod
    def for_week(cls, iso_week: str) -> "ReportPeriod":
        try:
            year, week = str(iso_week).strip().upper().split("-W")
            start = date.fromisocalendar(int(year), int(week), 1)
        except ValueError:
            raise ValidationError(f"Expected an ISO week like 2026-W10, got {iso_week!r}")
        return cls(PeriodType.WEEK, start, start + timedelta(days=6))

    @classmethod
    def for_month(cls, month: str) -> "ReportPeriod":
        try:
            start = datetime.strptime(str(month).strip(), "%Y-%m").date()
        except ValueError:
            raise ValidationError(f"Expected a month like 2026-03, got {month!r}")
        next_month = (start.replace(day=28) + timedelta(days=4)).replace(day=1)
        return cls(PeriodType.MONTH, start, next_month - timedelta(days=1))

    @property
    def label(self) -> str:
        if self.kind == PeriodType.WEEK:
            return iso_week_label(self.start)
        if self.kind == PeriodType.MONTH:
            return self.start.strftime("%Y-%m")
        return self.start.isoformat()

    def contains(self, day: Optional[date]) -> bool:
        return day is not None and self.start <= day <= self.end

    def to_dict(self) -> dict:
        return {
            "period_type": self.kind.value,
            "label": self.label,
            "start_date": self.start.isoformat(),
            "end_date": self.end.isoformat(),
        }


def client_league_key(period: ReportPeriod) -> str:
    return f"CML-{period.kind.value}-{period.label}"


# Weekly missing summary

@dataclass(frozen=True)
class MissingByClient:
    client_id: int
    client_name: str
    count: int


@dataclass(frozen=True)
class WeeklyParcelDetail:
    scan_entry_id: str
    barcode: str
    sorter_id: str
    sorter_name: str
    client_id: int
    client_name: str
    round_id: str
    sub_depot_id: int
    sub_depot_name: str
    date_added: Optional[date]

    @classmethod
    def from_dict(cls, data: dict) -> "WeeklyParcelDetail":
        if not isinstance(data, dict):
            raise TypeError(f"Expected a parcel object, got {type(data).__name__}")
        d = {k: data.get(k) for k in cls.__dataclass_fields__}
        if d["date_added"] and not isinstance(d["date_added"], date):
            d["date_added"] = date.fromisoformat(str(d["date_added"])[:10])
        return cls(**d)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["date_added"] = _iso(self.date_added)
        return d


@dataclass(frozen=True)
class WeeklyMissingSummary:
    """Computed, not yet saved."""

    week: ReportPeriod
    total_missing: int
    missing_by_client: tuple[MissingByClient, ...]
    parcels: tuple[WeeklyParcelDetail, ...]

    def to_dict(self) -> dict:
        return {
            "week": self.week.label,
            "week_start_date": self.week.start.isoformat(),
            "week_end_date": self.week.end.isoformat(),
            "total_missing": self.total_missing,
            "missing_by_client": [asdict(c) for c in self.missing_by_client],
            "parcels_summary": [p.to_dict() for p in self.parcels],
        }


@dataclass(frozen=True)
class WeeklyMissingSummaryReport:
    id: str
    week_start_date: date
    week_end_date: date
    total_missing: int
    missing_by_client: tuple[MissingByClient, ...]
    parcels_summary: tuple[WeeklyParcelDetail, ...]
    generated_by_team_member_id: str
    generated_by_name: Optional[str] = None
    notes: Optional[str] = None
    generated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "week_start_date": self.week_start_date.isoformat(),
            "week_end_date": self.week_end_date.isoformat(),
            "total_missing": self.total_missing,
            "missing_by_client": [asdict(c) for c in self.missing_by_client],
            "parcels_summary": [p.to_dict() for p in self.parcels_summary],
            "generated_by_team_member_id": self.generated_by_team_member_id,
            "generated_by_name": self.generated_by_name,
            "notes": self.notes,
            "generated_at": _iso(self.generated_at),
        }


# Client missing league

@dataclass(frozen=True)
class ClientLeagueRow:
    rank: int
    client_id: int
    client_name: str
    total_missing: int


@dataclass(frozen=True)
class ClientMissingLeague:
    period: ReportPeriod
    clients: tuple[ClientLeagueRow, ...]

    def to_dict(self) -> dict:
        d = self.period.to_dict()
        d["clients"] = [asdict(c) for c in self.clients]
        return d


@dataclass(frozen=True)
class ClientMissingLeagueReport:
    id: str
    period_type: PeriodType
    start_date: date
    end_date: date
    clients: tuple[ClientLeagueRow, ...]
    generated_by: str = "System"
    generated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "period_type": self.period_type.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "clients": [asdict(c) for c in self.clients],
            "generated_by": self.generated_by,
            "generated_at": _iso(self.generated_at),
        }
