from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..audits.repository import CageAuditRepository
from ..common.datetime_utils import now_local
from ..common.validators import is_present
from ..core.exceptions import ValidationError
from ..parcels.ledger import ParcelLedger
from ..registries.service import RegistryService
from . import aggregator
from .model import (
    CageReturnReport,
    CageReturnSheet,
    ClientMissingLeague,
    ClientMissingLeagueReport,
    CourierMissingStats,
    DailyMissortSummaryReport,
    DUCFinalReport,
    DUCReportDraft,
    FailedRound,
    MissingParcelsSummary,
    MissortSummary,
    ReportPeriod,
    SegregatedParcel,
    WeeklyMissingSummary,
    WeeklyMissingSummaryReport,
    client_league_key,
    daily_missort_key,
    weekly_missing_key,
)
from .repository import (
    CageReturnReportRepository,
    ClientLeagueReportRepository,
    DailyMissortReportRepository,
    DUCReportRepository,
    WeeklyMissingReportRepository,
)

logger = logging.getLogger(__name__)


def _to_int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class ReconciliationService:
    """Builds the depot reports from the ledger and commits them as dated snapshots.

    Reads never mutate the ledger; a save only upserts the snapshot under
    its natural key.
    """

    def __init__(
        self,
        ledger: ParcelLedger,
        registries: RegistryService,
        audits: CageAuditRepository,
        missort_reports: DailyMissortReportRepository,
        cage_reports: CageReturnReportRepository,
        duc_reports: DUCReportRepository,
        *,
        weekly_reports: WeeklyMissingReportRepository,
        league_reports: ClientLeagueReportRepository,
        clock: Callable[[], datetime] = now_local,
    ):
        self._ledger = ledger
        self._registries = registries
        self._audits = audits
        self._missort_reports = missort_reports
        self._cage_reports = cage_reports
        self._duc_reports = duc_reports
        self._weekly_reports = weekly_reports
        self._league_reports = league_reports
        self._clock = clock

    def _submitter(self, submitted_by: Optional[str], message: str) -> tuple[str, str]:
        who = (submitted_by or "").strip()
        if not who:
            raise ValidationError(message)
        member = self._registries.team_member(who)
        return who, member.name if member else who

    # Daily missort summary
    def generate_missort_summary(self, report_date: date, *, sub_depot_id: Optional[int] = None) -> MissortSummary:
        audits = self._audits.list_for_date(report_date, sub_depot_id=sub_depot_id)
        return aggregator.summarize_missorts(
            audits, self._registries, report_date=report_date, sub_depot_id=sub_depot_id
        )

    def save_missort_summary(
        self,
        summary: Optional[MissortSummary],
        *,
        submitted_by: Optional[str],
        notes: Optional[str] = None,
    ) -> DailyMissortSummaryReport:
        if summary is None:
            raise ValidationError("Please generate a summary first.")
        who, name = self._submitter(submitted_by, "Submitted By name is required to save the report.")

        report = DailyMissortSummaryReport(
            id=daily_missort_key(summary.date, summary.sub_depot_id),
            date=summary.date,
            sub_depot_id=summary.sub_depot_id,
            total_missorts=summary.total_missorts,
            missorts_by_client=summary.by_client,
            missorts_by_round=summary.by_round,
            submitted_by_team_member_id=who,
            submitted_by_name=name,
            notes=(notes or "").strip() or None,
            submitted_at=self._clock(),
        )
        saved = self._missort_reports.upsert_daily_missort(report)
        logger.info("Daily missort summary %s saved (%d missorts)", saved.id, saved.total_missorts)
        return saved

    def list_missort_reports(self) -> Sequence[DailyMissortSummaryReport]:
        return self._missort_reports.list_daily_missort()

    # Cage return
    def open_cage_return_sheet(self, report_date: date, sub_depot_id: int) -> CageReturnSheet:
        """Pairs for the day, with the checked state of any saved report re-applied."""

        if not is_present(sub_depot_id):
            raise ValidationError("Date and Sub Depot are required.")
        pairs = aggregator.cage_return_pairs(
            self._ledger.snapshot(), self._registries, report_date=report_date, sub_depot_id=sub_depot_id
        )
        sheet = CageReturnSheet(date=report_date, sub_depot_id=int(sub_depot_id), pairs=pairs)

        existing = self._cage_reports.get_cage_return(sheet.key)
        if existing is not None:
            flagged = {(c.round_id, c.courier_id) for c in existing.non_returned_cages}
            for pair in sheet.pairs:
                pair.not_returned = (pair.round_id, pair.courier_id) in flagged
            sheet.notes = existing.notes
            sheet.submitted_by_team_member_id = existing.submitted_by_team_member_id
        return sheet

    def save_cage_return_sheet(self, sheet: CageReturnSheet) -> CageReturnReport:
        who, name = self._submitter(
            sheet.submitted_by_team_member_id, 'Date, Sub Depot, and "Submitted By" name are required.'
        )
        report = CageReturnReport(
            id=sheet.key,
            date=sheet.date,
            sub_depot_id=sheet.sub_depot_id,
            non_returned_cages=sheet.non_returned(),
            submitted_by_team_member_id=who,
            submitted_by_name=name,
            notes=(sheet.notes or "").strip() or None,
            submitted_at=self._clock(),
        )
        saved = self._cage_reports.upsert_cage_return(report)
        logger.info("Cage return report %s saved (%d not returned)", saved.id, len(saved.non_returned_cages))
        return saved

    def list_cage_return_reports(self, *, report_date: Optional[date] = None) -> Sequence[CageReturnReport]:
        return self._cage_reports.list_cage_returns(report_date=report_date)

    # DUC final report
    def import_missing_summary(self, report_date: date) -> MissingParcelsSummary:
        return aggregator.summarize_missing_parcels(
            self._ledger.snapshot(), self._registries, report_date=report_date
        )

    def open_duc_draft(self, report_date: date) -> DUCReportDraft:
        existing = self._duc_reports.get_duc(DUCReportDraft(date=report_date).key)
        if existing is None:
            return DUCReportDraft(date=report_date)
        return DUCReportDraft(
            date=report_date,
            submitted_by_team_member_id=existing.submitted_by_team_member_id,
            sub_depot_id=existing.sub_depot_id,
            failed_rounds=[
                {"round_id": r.round_id, "comments": r.comments} for r in existing.failed_rounds
            ],
            total_returns=existing.total_returns,
            segregated_parcels=[
                {"barcode": p.barcode, "client_name": p.client_name, "count": p.count}
                for p in existing.segregated_parcels
            ],
            notes=existing.notes,
            missing_parcels_summary=existing.missing_parcels_summary,
            summary_imported=True,
        )

    def _failed_rounds(self, rows: Sequence[dict]) -> tuple[FailedRound, ...]:
        out = []
        for row in rows:
            round_id = str(row.get("round_id") or "").strip()
            if not round_id:
                continue
            rnd = self._registries.round(round_id)
            out.append(
                FailedRound(
                    round_id=round_id,
                    sub_depot_id=rnd.sub_depot_id if rnd else 0,
                    drop_number=rnd.drop_number if rnd else 0,
                    comments=(row.get("comments") or "").strip() or None,
                )
            )
        return tuple(out)

    def _segregated(self, rows: Sequence[dict]) -> tuple[SegregatedParcel, ...]:
        out = []
        for row in rows:
            barcode = str(row.get("barcode") or "").strip()
            client = self._registries.client_by_name(row.get("client_name") or "")
            count = _to_int(row.get("count"))
            if not barcode or client is None or count <= 0:
                continue
            out.append(SegregatedParcel(barcode=barcode, client_id=client.id, client_name=client.name, count=count))
        return tuple(out)

    def submit_duc_report(self, draft: DUCReportDraft) -> DUCFinalReport:
        who, name = self._submitter(draft.submitted_by_team_member_id, "Report Date and Submitted By name are required.")
        if not draft.summary_imported:
            raise ValidationError("Please import the missing parcels summary before submitting.")
        summary = self.import_missing_summary(draft.date)

        report = DUCFinalReport(
            id=draft.key,
            date=draft.date,
            sub_depot_id=draft.sub_depot_id,
            submitted_by_team_member_id=who,
            submitted_by_name=name,
            failed_rounds=self._failed_rounds(draft.failed_rounds),
            total_returns=max(_to_int(draft.total_returns), 0),
            segregated_parcels=self._segregated(draft.segregated_parcels),
            missing_parcels_summary=summary,
            notes=(draft.notes or "").strip() or None,
            submitted_at=self._clock(),
        )
        saved = self._duc_reports.upsert_duc(report)
        logger.info(
            "DUC final report %s saved (missing=%d unrecovered=%d)",
            saved.id, saved.missing_parcels_summary.total_missing, saved.missing_parcels_summary.unrecovered,
        )
        return saved

    def list_duc_reports(self) -> Sequence[DUCFinalReport]:
        return self._duc_reports.list_duc()

    # Courier stats
    def courier_stats(self, report_date: date) -> list[CourierMissingStats]:
        return aggregator.courier_missing_stats(self._ledger.snapshot(), self._registries, report_date=report_date)

    # Weekly missing summary
    def generate_weekly_missing_summary(self, iso_week: str) -> WeeklyMissingSummary:
        return aggregator.summarize_weekly_missing(
            self._ledger.snapshot(), self._registries, week=ReportPeriod.for_week(iso_week)
        )

    def save_weekly_missing_summary(
        self,
        summary: Optional[WeeklyMissingSummary],
        *,
        submitted_by: Optional[str],
        notes: Optional[str] = None,
    ) -> WeeklyMissingSummaryReport:
        if summary is None:
            raise ValidationError("Please generate a report first.")
        who, name = self._submitter(submitted_by, "Please enter 'Submitted By' name.")

        report = WeeklyMissingSummaryReport(
            id=weekly_missing_key(summary.week.start),
            week_start_date=summary.week.start,
            week_end_date=summary.week.end,
            total_missing=summary.total_missing,
            missing_by_client=summary.missing_by_client,
            parcels_summary=summary.parcels,
            generated_by_team_member_id=who,
            generated_by_name=name,
            notes=(notes or "").strip() or None,
            generated_at=self._clock(),
        )
        saved = self._weekly_reports.upsert_weekly_missing(report)
        logger.info("Weekly missing summary %s saved (%d missing)", saved.id, saved.total_missing)
        return saved

    def list_weekly_missing_reports(self) -> Sequence[WeeklyMissingSummaryReport]:
        return self._weekly_reports.list_weekly_missing()

    # Client missing league
    def generate_client_league(self, period: ReportPeriod) -> ClientMissingLeague:
        return aggregator.client_missing_league(self._ledger.snapshot(), self._registries, period=period)

    def save_client_league(
        self, league: Optional[ClientMissingLeague], *, generated_by: Optional[str] = None
    ) -> ClientMissingLeagueReport:
        if league is None:
            raise ValidationError("Please generate a report first.")
        report = ClientMissingLeagueReport(
            id=client_league_key(league.period),
            period_type=league.period.kind,
            start_date=league.period.start,
            end_date=league.period.end,
            clients=league.clients,
            generated_by=(generated_by or "").strip() or "System",
            generated_at=self._clock(),
        )
        saved = self._league_reports.upsert_client_league(report)
        logger.info("Client missing league %s saved (%d clients)", saved.id, len(saved.clients))
        return saved

    def list_client_league_reports(self) -> Sequence[ClientMissingLeagueReport]:
        return self._league_reports.list_client_league()
