from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .audits.mysql_cage_audit_repository import MySQLCageAuditRepository
from .audits.repository import CageAuditRepository
from .core.constants import DEFAULT_CARRIER_SLUG, DEFAULT_REFRESH_COOLDOWN_SECONDS, DEFAULT_TRACKING_MAX_WORKERS
from .database.connection import DBConfig, DatabaseConnection
from .escalation.gate import EscalationGate
from .escalation.session_store import ChecklistSessionStore
from .parcels.factory import ScanTypeRuleFactory
from .parcels.ledger import ParcelLedger
from .parcels.mysql_parcel_repository import MySQLParcelRepository
from .parcels.recovery import RecoveryTracker
from .parcels.repository import ParcelRepository
from .parcels.workflow import MissingParcelWorkflow
from .registries.mysql_registry_repository import MySQLRegistryRepository
from .registries.repository import RegistryRepository
from .registries.service import RegistryService
from .reports.mysql_report_repository import (
    MySQLCageReturnReportRepository,
    MySQLClientLeagueReportRepository,
    MySQLDailyMissortReportRepository,
    MySQLDUCReportRepository,
    MySQLWeeklyMissingReportRepository,
)
from .reports.repository import (
    CageReturnReportRepository,
    ClientLeagueReportRepository,
    DailyMissortReportRepository,
    DUCReportRepository,
    WeeklyMissingReportRepository,
)
from .reports.service import ReconciliationService
from .tracking.client import DEFAULT_BASE_URL, AfterShipClient
from .tracking.service import TrackingRefresher


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    registries_repo: RegistryRepository
    parcels_repo: ParcelRepository
    audits_repo: CageAuditRepository
    missort_reports_repo: DailyMissortReportRepository
    cage_reports_repo: CageReturnReportRepository
    duc_reports_repo: DUCReportRepository
    weekly_reports_repo: WeeklyMissingReportRepository
    league_reports_repo: ClientLeagueReportRepository

    registry_service: RegistryService
    parcel_ledger: ParcelLedger
    checklist_sessions: ChecklistSessionStore
    parcel_workflow: MissingParcelWorkflow
    recovery_tracker: RecoveryTracker
    tracking_refresher: TrackingRefresher
    reconciliation_service: ReconciliationService


def assemble(
    *,
    registries_repo: RegistryRepository,
    parcels_repo: ParcelRepository,
    audits_repo: CageAuditRepository,
    missort_reports_repo: DailyMissortReportRepository,
    cage_reports_repo: CageReturnReportRepository,
    duc_reports_repo: DUCReportRepository,
    weekly_reports_repo: WeeklyMissingReportRepository,
    league_reports_repo: ClientLeagueReportRepository,
    tracking_client: AfterShipClient,
    tracking_cooldown_seconds: float = DEFAULT_REFRESH_COOLDOWN_SECONDS,
    tracking_max_workers: int = DEFAULT_TRACKING_MAX_WORKERS,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over the given repositories (MySQL in the app, in-memory fakes in tests)."""

    registry_service = RegistryService(registries_repo)
    parcel_ledger = ParcelLedger(parcels_repo, registry_service, rule_factory=ScanTypeRuleFactory())
    checklist_sessions = ChecklistSessionStore()
    gate = EscalationGate(registry_service, checklist_sessions)
    parcel_workflow = MissingParcelWorkflow(parcel_ledger, gate)
    recovery_tracker = RecoveryTracker(parcel_ledger)
    tracking_refresher = TrackingRefresher(
        tracking_client,
        cooldown_seconds=tracking_cooldown_seconds,
        max_workers=tracking_max_workers,
    )
    reconciliation_service = ReconciliationService(
        parcel_ledger,
        registry_service,
        audits_repo,
        missort_reports_repo,
        cage_reports_repo,
        duc_reports_repo,
        weekly_reports=weekly_reports_repo,
        league_reports=league_reports_repo,
    )

    return Container(
        conn=conn,
        registries_repo=registries_repo,
        parcels_repo=parcels_repo,
        audits_repo=audits_repo,
        missort_reports_repo=missort_reports_repo,
        cage_reports_repo=cage_reports_repo,
        duc_reports_repo=duc_reports_repo,
        weekly_reports_repo=weekly_reports_repo,
        league_reports_repo=league_reports_repo,
        registry_service=registry_service,
        parcel_ledger=parcel_ledger,
        checklist_sessions=checklist_sessions,
        parcel_workflow=parcel_workflow,
        recovery_tracker=recovery_tracker,
        tracking_refresher=tracking_refresher,
        reconciliation_service=reconciliation_service,
    )


def build_container(*, db_config: dict, settings=None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    tracking_client = AfterShipClient(
        str(getattr(settings, "AFTERSHIP_API_KEY", "") or ""),
        slug=getattr(settings, "AFTERSHIP_SLUG", DEFAULT_CARRIER_SLUG),
        base_url=getattr(settings, "AFTERSHIP_BASE_URL", DEFAULT_BASE_URL),
    )

    return assemble(
        registries_repo=MySQLRegistryRepository(conn),
        parcels_repo=MySQLParcelRepository(conn),
        audits_repo=MySQLCageAuditRepository(conn),
        missort_reports_repo=MySQLDailyMissortReportRepository(conn),
        cage_reports_repo=MySQLCageReturnReportRepository(conn),
        duc_reports_repo=MySQLDUCReportRepository(conn),
        weekly_reports_repo=MySQLWeeklyMissingReportRepository(conn),
        league_reports_repo=MySQLClientLeagueReportRepository(conn),
        tracking_client=tracking_client,
        tracking_cooldown_seconds=float(
            getattr(settings, "TRACKING_REFRESH_COOLDOWN_SECONDS", DEFAULT_REFRESH_COOLDOWN_SECONDS)
        ),
        tracking_max_workers=int(getattr(settings, "TRACKING_MAX_WORKERS", DEFAULT_TRACKING_MAX_WORKERS)),
        conn=conn,
    )
