from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import PeriodType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, dump_json, fetchall, fetchone, load_json
from .model import (
    CageReturnReport,
    ClientLeagueRow,
    ClientMissingLeagueReport,
    DailyMissortSummaryReport,
    DUCFinalReport,
    FailedRound,
    MissingByClient,
    MissingParcelsSummary,
    MissortByClient,
    MissortByRound,
    NonReturnedCage,
    SegregatedParcel,
    WeeklyMissingSummaryReport,
    WeeklyParcelDetail,
)
from .repository import (
    CageReturnReportRepository,
    ClientLeagueReportRepository,
    DailyMissortReportRepository,
    DUCReportRepository,
    WeeklyMissingReportRepository,
)


def _missing_summary_from_json(raw) -> MissingParcelsSummary:
    return MissingParcelsSummary.from_dict(load_json(raw, {}) or {})


class MySQLDailyMissortReportRepository(DailyMissortReportRepository):
    _SELECT = """
        SELECT id, report_date, sub_depot_id, total_missorts, missorts_by_client, missorts_by_round,
               submitted_by_team_member_id, submitted_by_name, notes, submitted_at
        FROM daily_missort_summary_reports
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _row(r: dict) -> DailyMissortSummaryReport:
        return DailyMissortSummaryReport(
            id=r["id"],
            date=r["report_date"],
            sub_depot_id=int(r["sub_depot_id"]) if r.get("sub_depot_id") is not None else None,
            total_missorts=int(r.get("total_missorts") or 0),
            missorts_by_client=tuple(MissortByClient(**c) for c in load_json(r.get("missorts_by_client"), [])),
            missorts_by_round=tuple(MissortByRound(**x) for x in load_json(r.get("missorts_by_round"), [])),
            submitted_by_team_member_id=r.get("submitted_by_team_member_id") or "",
            submitted_by_name=r.get("submitted_by_name"),
            notes=r.get("notes"),
            submitted_at=r.get("submitted_at"),
        )

    def get_daily_missort(self, report_id: str) -> Optional[DailyMissortSummaryReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._SELECT + " WHERE id=%s", (report_id,))
            r = fetchone(cur)
            return self._row(r) if r else None

    def list_daily_missort(self) -> Sequence[DailyMissortSummaryReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._SELECT + " ORDER BY report_date DESC, id")
            return [self._row(r) for r in fetchall(cur)]

    def upsert_daily_missort(self, report: DailyMissortSummaryReport) -> DailyMissortSummaryReport:
        d = report.to_dict()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO daily_missort_summary_reports(
                    id, report_date, sub_depot_id, total_missorts, missorts_by_client, missorts_by_round,
                    submitted_by_team_member_id, submitted_by_name, notes, submitted_at
                ) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    total_missorts=VALUES(total_missorts),
                    missorts_by_client=VALUES(missorts_by_client),
                    missorts_by_round=VALUES(missorts_by_round),
                    submitted_by_team_member_id=VALUES(submitted_by_team_member_id),
                    submitted_by_name=VALUES(submitted_by_name),
                    notes=VALUES(notes),
                    submitted_at=VALUES(submitted_at)
                """,
                (
                    report.id, report.date, report.sub_depot_id, report.total_missorts,
                    dump_json(d["missorts_by_client"]), dump_json(d["missorts_by_round"]),
                    report.submitted_by_team_member_id, report.submitted_by_name, report.notes,
                    report.submitted_at,
                ),
            )
        return report


class MySQLCageReturnReportRepository(CageReturnReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, rows: list[dict]) -> list[CageReturnReport]:
        if not rows:
            return []
        ids = [r["id"] for r in rows]
        placeholders = ",".join(["%s"] * len(ids))
        cur.execute(
            f"""
            SELECT report_id, round_id, courier_id, courier_name, not_returned
            FROM cage_return_report_rows
            WHERE report_id IN ({placeholders})
            ORDER BY position
            """,
            tuple(ids),
        )
        cages: dict[str, list[NonReturnedCage]] = {}
        for c in fetchall(cur):
            if not as_bool(c.get("not_returned")):
                continue
            cages.setdefault(c["report_id"], []).append(
                NonReturnedCage(round_id=str(c["round_id"]), courier_id=c["courier_id"], courier_name=c.get("courier_name"))
            )
        return [
            CageReturnReport(
                id=r["id"],
                date=r["report_date"],
                sub_depot_id=int(r["sub_depot_id"]),
                non_returned_cages=tuple(cages.get(r["id"], [])),
                submitted_by_team_member_id=r.get("submitted_by_team_member_id") or "",
                submitted_by_name=r.get("submitted_by_name"),
                notes=r.get("notes"),
                submitted_at=r.get("submitted_at"),
            )
            for r in rows
        ]

    _SELECT = """
        SELECT id, report_date, sub_depot_id, submitted_by_team_member_id, submitted_by_name, notes, submitted_at
        FROM cage_return_reports
    """

    def get_cage_return(self, report_id: str) -> Optional[CageReturnReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._SELECT + " WHERE id=%s", (report_id,))
            found = self._load(cur, fetchall(cur))
            return found[0] if found else None

    def list_cage_returns(self, *, report_date: Optional[date] = None) -> Sequence[CageReturnReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            if report_date is not None:
                cur.execute(self._SELECT + " WHERE report_date=%s ORDER BY sub_depot_id", (report_date,))
            else:
                cur.execute(self._SELECT + " ORDER BY report_date DESC, sub_depot_id")
            return self._load(cur, fetchall(cur))

    def upsert_cage_return(self, report: CageReturnReport) -> CageReturnReport:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO cage_return_reports(
                    id, report_date, sub_depot_id, submitted_by_team_member_id, submitted_by_name, notes, submitted_at
                ) VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    submitted_by_team_member_id=VALUES(submitted_by_team_member_id),
                    submitted_by_name=VALUES(submitted_by_name),
                    notes=VALUES(notes),
                    submitted_at=VALUES(submitted_at)
                """,
                (
                    report.id, report.date, report.sub_depot_id, report.submitted_by_team_member_id,
                    report.submitted_by_name, report.notes, report.submitted_at,
                ),
            )
            cur.execute("DELETE FROM cage_return_report_rows WHERE report_id=%s", (report.id,))
            for position, cage in enumerate(report.non_returned_cages):
                cur.execute(
                    """
                    INSERT INTO cage_return_report_rows(report_id, position, round_id, courier_id, courier_name, not_returned)
                    VALUES(%s,%s,%s,%s,%s,1)
                    """,
                    (report.id, position, cage.round_id, cage.courier_id, cage.courier_name),
                )
        return report


class MySQLDUCReportRepository(DUCReportRepository):
    _SELECT = """
        SELECT id, report_date, sub_depot_id, submitted_by_team_member_id, submitted_by_name,
               total_returns, missing_parcels_summary, notes, submitted_at
        FROM duc_final_reports
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, rows: list[dict]) -> list[DUCFinalReport]:
        if not rows:
            return []
        ids = [r["id"] for r in rows]
        placeholders = ",".join(["%s"] * len(ids))

        cur.execute(
            f"""
            SELECT report_id, round_id, sub_depot_id, drop_number, comments
            FROM duc_failed_rounds WHERE report_id IN ({placeholders}) ORDER BY id
            """,
            tuple(ids),
        )
        failed: dict[str, list[FailedRound]] = {}
        for f in fetchall(cur):
            failed.setdefault(f["report_id"], []).append(
                FailedRound(
                    round_id=str(f["round_id"]),
                    sub_depot_id=int(f.get("sub_depot_id") or 0),
                    drop_number=int(f.get("drop_number") or 0),
                    comments=f.get("comments"),
                )
            )

        cur.execute(
            f"""
            SELECT report_id, barcode, client_id, client_name, count
            FROM duc_segregated_parcels WHERE report_id IN ({placeholders}) ORDER BY id
            """,
            tuple(ids),
        )
        segregated: dict[str, list[SegregatedParcel]] = {}
        for s in fetchall(cur):
            segregated.setdefault(s["report_id"], []).append(
                SegregatedParcel(
                    barcode=s["barcode"],
                    client_id=int(s["client_id"]),
                    client_name=s.get("client_name"),
                    count=int(s.get("count") or 0),
                )
            )

        return [
            DUCFinalReport(
                id=r["id"],
                date=r["report_date"],
                sub_depot_id=int(r["sub_depot_id"]) if r.get("sub_depot_id") is not None else None,
                submitted_by_team_member_id=r.get("submitted_by_team_member_id") or "",
                submitted_by_name=r.get("submitted_by_name"),
                failed_rounds=tuple(failed.get(r["id"], [])),
                total_returns=int(r.get("total_returns") or 0),
                segregated_parcels=tuple(segregated.get(r["id"], [])),
                missing_parcels_summary=_missing_summary_from_json(r.get("missing_parcels_summary")),
                notes=r.get("notes"),
                submitted_at=r.get("submitted_at"),
            )
            for r in rows
        ]

    def get_duc(self, report_id: str) -> Optional[DUCFinalReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._SELECT + " WHERE id=%s", (report_id,))
            found = self._load(cur, fetchall(cur))
            return found[0] if found else None

    def list_duc(self) -> Sequence[DUCFinalReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._SELECT + " ORDER BY report_date DESC")
            return self._load(cur, fetchall(cur))

    def upsert_duc(self, report: DUCFinalReport) -> DUCFinalReport:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO duc_final_reports(
                    id, report_date, sub_depot_id, submitted_by_team_member_id, submitted_by_name,
                    total_returns, missing_parcels_summary, notes, submitted_at
                ) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    sub_depot_id=VALUES(sub_depot_id),
                    submitted_by_team_member_id=VALUES(submitted_by_team_member_id),
                    submitted_by_name=VALUES(submitted_by_name),
                    total_returns=VALUES(total_returns),
                    missing_parcels_summary=VALUES(missing_parcels_summary),
                    notes=VALUES(notes),
                    submitted_at=VALUES(submitted_at)
                """,
                (
                    report.id, report.date, report.sub_depot_id, report.submitted_by_team_member_id,
                    report.submitted_by_name, report.total_returns,
                    dump_json(report.missing_parcels_summary.to_dict()), report.notes, report.submitted_at,
                ),
            )
            cur.execute("DELETE FROM duc_failed_rounds WHERE report_id=%s", (report.id,))
            for fr in report.failed_rounds:
                cur.execute(
                    "INSERT INTO duc_failed_rounds(report_id, round_id, sub_depot_id, drop_number, comments) VALUES(%s,%s,%s,%s,%s)",
                    (report.id, fr.round_id, fr.sub_depot_id, fr.drop_number, fr.comments),
                )
            cur.execute("DELETE FROM duc_segregated_parcels WHERE report_id=%s", (report.id,))
            for sp in report.segregated_parcels:
                cur.execute(
                    "INSERT INTO duc_segregated_parcels(report_id, barcode, client_id, client_name, count) VALUES(%s,%s,%s,%s,%s)",
                    (report.id, sp.barcode, sp.client_id, sp.client_name, sp.count),
                )
        return report


class MySQLWeeklyMissingReportRepository(WeeklyMissingReportRepository):
    _SELECT = """
        SELECT id, week_start_date, week_end_date, total_missing, missing_by_client, parcels_summary,
               generated_by_team_member_id, generated_by_name, notes, generated_at
        FROM weekly_missing_summary_reports
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _row(r: dict) -> WeeklyMissingSummaryReport:
        return WeeklyMissingSummaryReport(
            id=r["id"],
            week_start_date=r["week_start_date"],
            week_end_date=r["week_end_date"],
            total_missing=int(r.get("total_missing") or 0),
            missing_by_client=tuple(MissingByClient(**c) for c in load_json(r.get("missing_by_client"), [])),
            parcels_summary=tuple(WeeklyParcelDetail.from_dict(p) for p in load_json(r.get("parcels_summary"), [])),
            generated_by_team_member_id=r.get("generated_by_team_member_id") or "",
            generated_by_name=r.get("generated_by_name"),
            notes=r.get("notes"),
            generated_at=r.get("generated_at"),
        )

    def get_weekly_missing(self, report_id: str) -> Optional[WeeklyMissingSummaryReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._SELECT + " WHERE id=%s", (report_id,))
            r = fetchone(cur)
            return self._row(r) if r else None

    def list_weekly_missing(self) -> Sequence[WeeklyMissingSummaryReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._SELECT + " ORDER BY week_start_date DESC")
            return [self._row(r) for r in fetchall(cur)]

    def upsert_weekly_missing(self, report: WeeklyMissingSummaryReport) -> WeeklyMissingSummaryReport:
        d = report.to_dict()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO weekly_missing_summary_reports(
                    id, week_start_date, week_end_date, total_missing, missing_by_client, parcels_summary,
                    generated_by_team_member_id, generated_by_name, notes, generated_at
                ) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    total_missing=VALUES(total_missing),
                    missing_by_client=VALUES(missing_by_client),
                    parcels_summary=VALUES(parcels_summary),
                    generated_by_team_member_id=VALUES(generated_by_team_member_id),
                    generated_by_name=VALUES(generated_by_name),
                    notes=VALUES(notes),
                    generated_at=VALUES(generated_at)
                """,
                (
                    report.id, report.week_start_date, report.week_end_date, report.total_missing,
                    dump_json(d["missing_by_client"]), dump_json(d["parcels_summary"]),
                    report.generated_by_team_member_id, report.generated_by_name, report.notes,
                    report.generated_at,
                ),
            )
        return report


class MySQLClientLeagueReportRepository(ClientLeagueReportRepository):
    _SELECT = """
        SELECT id, period_type, start_date, end_date, clients, generated_by, generated_at
        FROM client_missing_league_reports
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _row(r: dict) -> ClientMissingLeagueReport:
        return ClientMissingLeagueReport(
            id=r["id"],
            period_type=PeriodType(r["period_type"]),
            start_date=r["start_date"],
            end_date=r["end_date"],
            clients=tuple(ClientLeagueRow(**c) for c in load_json(r.get("clients"), [])),
            generated_by=r.get("generated_by") or "System",
            generated_at=r.get("generated_at"),
        )

    def get_client_league(self, report_id: str) -> Optional[ClientMissingLeagueReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._SELECT + " WHERE id=%s", (report_id,))
            r = fetchone(cur)
            return self._row(r) if r else None

    def list_client_league(self) -> Sequence[ClientMissingLeagueReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._SELECT + " ORDER BY start_date DESC, period_type")
            return [self._row(r) for r in fetchall(cur)]

    def upsert_client_league(self, report: ClientMissingLeagueReport) -> ClientMissingLeagueReport:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO client_missing_league_reports(
                    id, period_type, start_date, end_date, clients, generated_by, generated_at
                ) VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    clients=VALUES(clients),
                    generated_by=VALUES(generated_by),
                    generated_at=VALUES(generated_at)
                """,
                (
                    report.id, report.period_type.value, report.start_date, report.end_date,
                    dump_json(report.to_dict()["clients"]), report.generated_by, report.generated_at,
                ),
            )
        return report
