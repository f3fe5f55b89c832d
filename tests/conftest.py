from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

import pytest

from depot_ops.audits.model import CageAuditEntry
from depot_ops.container import assemble
from depot_ops.escalation.gate import EscalationGate
from depot_ops.escalation.session_store import ChecklistSessionStore
from depot_ops.parcels.ledger import ParcelLedger
from depot_ops.parcels.model import NewParcelScan, ParcelScanEntry
from depot_ops.parcels.workflow import MissingParcelWorkflow
from depot_ops.registries.model import Client, Courier, DeliveryUnit, Round, SubDepot, TeamMember
from depot_ops.registries.service import RegistryService
from depot_ops.tracking.client import TrackingStatus

DAY = date(2026, 3, 2)
NOW = datetime(2026, 3, 2, 9, 30)

AMAZON = 1
ASOS = 2


class InMemoryRegistries:
    def __init__(self):
        self.delivery_units = [DeliveryUnit(id="EDM", name="Edmonton DUC")]
        self.sub_depots = [
            SubDepot(id=71, name="Edmonton 71", delivery_unit_id="EDM"),
            SubDepot(id=62, name="Edmonton 62", delivery_unit_id="EDM"),
        ]
        self.rounds = [
            Round(id="1", sub_depot_id=71, drop_number=12),
            Round(id="2", sub_depot_id=71, drop_number=15),
            Round(id="3", sub_depot_id=62, drop_number=9),
        ]
        self.couriers = [Courier(id="C001", name="John Smith"), Courier(id="C002", name="Priya Patel")]
        self.clients = [
            Client(id=AMAZON, name="Amazon"),
            Client(id=ASOS, name="ASOS", is_high_priority=True),
        ]
        self.team = [TeamMember(id="TM001", name="Alex Morgan", position="Sorter", sub_depot_id=71)]

    def list_clients(self):
        return list(self.clients)

    def list_couriers(self):
        return list(self.couriers)

    def list_rounds(self):
        return list(self.rounds)

    def list_sub_depots(self):
        return list(self.sub_depots)

    def list_team_members(self):
        return list(self.team)

    def list_delivery_units(self):
        return list(self.delivery_units)


class InMemoryParcels:
    def __init__(self, *, now: datetime = NOW):
        self.rows: dict[str, ParcelScanEntry] = {}
        self.now = now
        self.list_calls = 0
        self.create_calls = 0
        self.fail_next_write = False
        self._seq = 0

    def _maybe_fail(self):
        if self.fail_next_write:
            self.fail_next_write = False
            raise RuntimeError("database unavailable")

    def list_entries(self, *, date_added=None, courier_id=None, round_id=None):
        self.list_calls += 1
        return [
            e for e in self.rows.values()
            if (date_added is None or e.date_added == date_added)
            and (not courier_id or e.courier_id == courier_id)
            and (not round_id or e.round_id == round_id)
        ]

    def get_by_id(self, entry_id: str) -> Optional[ParcelScanEntry]:
        return self.rows.get(entry_id)

    def create_many(self, entries: Sequence[NewParcelScan]) -> Sequence[ParcelScanEntry]:
        self.create_calls += 1
        self._maybe_fail()
        out = []
        for p in entries:
            self._seq += 1
            entry = ParcelScanEntry(
                id=f"p-{self._seq}",
                barcode=p.barcode,
                round_id=p.round_id,
                drop_number=p.drop_number,
                sub_depot_id=p.sub_depot_id,
                courier_id=p.courier_id,
                sorter_team_member_id=p.sorter_team_member_id,
                client_id=p.client_id,
                time_scanned=p.time_scanned,
                scan_type=p.scan_type,
                cfwd_courier_id=p.cfwd_courier_id,
                misrouted_du_id=p.misrouted_du_id,
                rejected_courier_id=p.rejected_courier_id,
                is_recovered=p.is_recovered,
                recovery_date=p.recovery_date,
                recovery_notes=p.recovery_notes,
                notes=p.notes,
                created_at=self.now,
                updated_at=self.now,
            )
            self.rows[entry.id] = entry
            out.append(entry)
        return out

    def update_fields(self, entry_id: str, fields: dict) -> Optional[ParcelScanEntry]:
        self._maybe_fail()
        current = self.rows.get(entry_id)
        if current is None:
            return None
        updated = replace(current, **fields, updated_at=self.now)
        self.rows[entry_id] = updated
        return updated


class InMemoryCageAudits:
    def __init__(self, audits: Sequence[CageAuditEntry] = ()):
        self.audits = list(audits)

    def list_for_date(self, audit_date, *, sub_depot_id=None):
        return [
            a for a in self.audits
            if a.date == audit_date and (sub_depot_id is None or a.sub_depot_id == sub_depot_id)
        ]


class InMemoryReports:
    """Stands in for every report repository."""

    def __init__(self):
        self.missort: dict = {}
        self.cage: dict = {}
        self.duc: dict = {}
        self.weekly: dict = {}
        self.league: dict = {}

    def get_daily_missort(self, report_id):
        return self.missort.get(report_id)

    def list_daily_missort(self):
        return list(self.missort.values())

    def upsert_daily_missort(self, report):
        self.missort[report.id] = report
        return report

    def get_cage_return(self, report_id):
        return self.cage.get(report_id)

    def list_cage_returns(self, *, report_date=None):
        return [r for r in self.cage.values() if report_date is None or r.date == report_date]

    def upsert_cage_return(self, report):
        self.cage[report.id] = report
        return report

    def get_duc(self, report_id):
        return self.duc.get(report_id)

    def list_duc(self):
        return list(self.duc.values())

    def upsert_duc(self, report):
        self.duc[report.id] = report
        return report

    def get_weekly_missing(self, report_id):
        return self.weekly.get(report_id)

    def list_weekly_missing(self):
        return list(self.weekly.values())

    def upsert_weekly_missing(self, report):
        self.weekly[report.id] = report
        return report

    def get_client_league(self, report_id):
        return self.league.get(report_id)

    def list_client_league(self):
        return list(self.league.values())

    def upsert_client_league(self, report):
        self.league[report.id] = report
        return report


class FakeTrackingClient:
    def __init__(self, statuses: Optional[dict] = None, failing: Sequence[str] = ()):
        self.statuses = statuses or {}
        self.failing = set(failing)
        self.calls: list[str] = []

    def get_or_create_status(self, barcode: str) -> TrackingStatus:
        self.calls.append(barcode)
        if barcode in self.failing:
            raise RuntimeError(f"carrier down for {barcode}")
        return self.statuses.get(barcode, TrackingStatus(tag="InTransit", subtag_message="On its way"))


def make_scan(**overrides) -> NewParcelScan:
    data = dict(
        barcode="H00AB12CD34EF56G",
        round_id="1",
        courier_id="C001",
        sorter_team_member_id="TM001",
        client_id=AMAZON,
        drop_number=12,
        sub_depot_id=71,
        time_scanned=NOW,
    )
    data.update(overrides)
    return NewParcelScan(**data)


@pytest.fixture
def registries_repo():
    return InMemoryRegistries()


@pytest.fixture
def registries(registries_repo):
    return RegistryService(registries_repo)


@pytest.fixture
def parcels_repo():
    return InMemoryParcels()


@pytest.fixture
def ledger(parcels_repo, registries):
    return ParcelLedger(parcels_repo, registries, clock=lambda: NOW)


@pytest.fixture
def sessions():
    return ChecklistSessionStore()


@pytest.fixture
def workflow(ledger, registries, sessions):
    return MissingParcelWorkflow(ledger, EscalationGate(registries, sessions))


@pytest.fixture
def reports_repo():
    return InMemoryReports()


@pytest.fixture
def audits_repo():
    return InMemoryCageAudits()


@pytest.fixture
def tracking_client():
    return FakeTrackingClient()


@pytest.fixture
def container(registries_repo, parcels_repo, audits_repo, reports_repo, tracking_client):
    return assemble(
        registries_repo=registries_repo,
        parcels_repo=parcels_repo,
        audits_repo=audits_repo,
        missort_reports_repo=reports_repo,
        cage_reports_repo=reports_repo,
        duc_reports_repo=reports_repo,
        weekly_reports_repo=reports_repo,
        league_reports_repo=reports_repo,
        tracking_client=tracking_client,
        tracking_max_workers=2,
    )


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from depot_ops.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()
