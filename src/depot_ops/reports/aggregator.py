"""Rollups over ledger snapshots, cage audits and registries.

Every function here is pure: same inputs, same numbers. Nothing is written.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..audits.model import CageAuditEntry
from ..common.datetime_utils import format_display_date
from ..core.exceptions import ValidationError
from ..parcels.model import ParcelScanEntry
from ..registries.service import RegistryService
from .model import (
    ClientLeagueRow,
    ClientMissingLeague,
    CourierMissingStats,
    MissingByClient,
    MissingParcelDetail,
    MissingParcelsSummary,
    MissortByClient,
    MissortByRound,
    MissortSummary,
    ReportPeriod,
    RoundCourierPair,
    WeeklyMissingSummary,
    WeeklyParcelDetail,
)


def recovery_rate(total_missing: int, unrecovered: int) -> int:
    """Percentage recovered, rounded half up; 0 when nothing is missing."""
    denominator = max(total_missing, 1)
    recovered = max(total_missing - unrecovered, 0)
    return (200 * recovered + denominator) // (2 * denominator)


def _rank(groups: Iterable) -> tuple:
    # sorted() is stable, so equal counts keep encounter order.
    return tuple(sorted(groups, key=lambda g: g.count, reverse=True))


def summarize_missorts(
    audits: Sequence[CageAuditEntry],
    registries: RegistryService,
    *,
    report_date: date,
    sub_depot_id: Optional[int] = None,
) -> MissortSummary:
    scoped = [
        a for a in audits
        if a.date == report_date and (sub_depot_id is None or a.sub_depot_id == int(sub_depot_id))
    ]
    if not scoped:
        raise ValidationError("No cage audits found for the selected date/sub-depot to generate a summary.")

    by_client: dict[Optional[int], list] = {}
    by_round: dict[str, list] = {}
    total = 0
    for audit in scoped:
        sub_depot = registries.sub_depot(audit.sub_depot_id)
        for parcel in audit.missorted_parcels:
            total += 1

            if parcel.client_id not in by_client:
                client = registries.client(parcel.client_id)
                by_client[parcel.client_id] = [client.name if client else str(parcel.client_id), 0]
            by_client[parcel.client_id][1] += 1

            round_key = f"{audit.round_id}-{audit.sub_depot_id}"
            if round_key not in by_round:
                by_round[round_key] = [audit, sub_depot.name if sub_depot else None, 0]
            by_round[round_key][2] += 1

    return MissortSummary(
        date=report_date,
        sub_depot_id=sub_depot_id,
        total_missorts=total,
        by_client=_rank(
            MissortByClient(client_id=cid, client_name=name, count=count)
            for cid, (name, count) in by_client.items()
        ),
        by_round=_rank(
            MissortByRound(round_id=a.round_id, sub_depot_id=a.sub_depot_id, sub_depot_name=name, count=count)
            for a, name, count in by_round.values()
        ),
    )


def cage_return_pairs(
    entries: Iterable[ParcelScanEntry],
    registries: RegistryService,
    *,
    report_date: date,
    sub_depot_id: int,
) -> list[RoundCourierPair]:
    """Distinct (round, courier) pairs from the day's missing-parcel log.

    Rounds follow registry order; couriers within a round follow log order.
    """

    day = [
        e for e in entries
        if e.date_added == report_date and e.sub_depot_id == int(sub_depot_id) and e.courier_id
    ]

    pairs: list[RoundCourierPair] = []
    for rnd in registries.rounds(sub_depot_id=int(sub_depot_id)):
        seen: list[str] = []
        for e in day:
            if e.round_id == rnd.id and e.courier_id not in seen:
                seen.append(e.courier_id)
        for courier_id in seen:
            courier = registries.courier(courier_id)
            pairs.append(
                RoundCourierPair(
                    round_id=rnd.id,
                    courier_id=courier_id,
                    courier_name=courier.name if courier else courier_id,
                )
            )
    return pairs


def summarize_missing_parcels(
    entries: Iterable[ParcelScanEntry],
    registries: RegistryService,
    *,
    report_date: date,
) -> MissingParcelsSummary:
    day = [e for e in entries if e.date_added == report_date and e.barcode]
    unrecovered = sum(1 for e in day if not e.is_recovered)

    details = []
    for e in day:
        courier = registries.courier(e.courier_id)
        sub_depot = registries.sub_depot(e.sub_depot_id)
        sorter = registries.team_member(e.sorter_team_member_id)
        client = registries.client(e.client_id)
        details.append(
            MissingParcelDetail(
                scan_entry_id=e.id,
                barcode=e.barcode,
                courier_id=e.courier_id,
                courier_name=courier.name if courier else None,
                round_id=e.round_id,
                drop_number=e.drop_number,
                sub_depot_id=e.sub_depot_id,
                sub_depot_name=sub_depot.name if sub_depot else None,
                sorter_team_member_id=e.sorter_team_member_id,
                sorter_name=sorter.name if sorter else None,
                time_scanned=e.time_scanned,
                is_recovered=e.is_recovered,
                client_id=e.client_id,
                client_name=client.name if client else None,
            )
        )

    return MissingParcelsSummary(
        total_missing=len(day),
        unrecovered=unrecovered,
        recovery_rate=recovery_rate(len(day), unrecovered),
        parcels=tuple(details),
    )


def courier_missing_stats(
    entries: Iterable[ParcelScanEntry],
    registries: RegistryService,
    *,
    report_date: date,
) -> list[CourierMissingStats]:
    grouped: dict[str, list[ParcelScanEntry]] = {}
    for e in entries:
        if e.date_added == report_date and e.courier_id:
            grouped.setdefault(e.courier_id, []).append(e)

    stats = []
    for courier_id, parcels in grouped.items():
        courier = registries.courier(courier_id)
        rounds: list[str] = []
        for p in parcels:
            if p.round_id not in rounds:
                rounds.append(p.round_id)
        unrecovered = sum(1 for p in parcels if not p.is_recovered)
        stats.append(
            CourierMissingStats(
                courier_id=courier_id,
                courier_name=courier.name if courier else courier_id,
                rounds=tuple(rounds),
                total_missing=len(parcels),
                unrecovered=unrecovered,
                recovered=len(parcels) - unrecovered,
                recovery_rate=recovery_rate(len(parcels), unrecovered),
            )
        )

    stats.sort(key=lambda s: (s.unrecovered, s.total_missing), reverse=True)
    return stats


def _client_name(registries: RegistryService, client_id) -> str:
    client = registries.client(client_id)
    return client.name if client else str(client_id)


def summarize_weekly_missing(
    entries: Iterable[ParcelScanEntry],
    registries: RegistryService,
    *,
    week: ReportPeriod,
) -> WeeklyMissingSummary:
    """Missing parcels logged Monday-Sunday, per client (ranked) and per parcel with its sorter."""

    in_week = [e for e in entries if week.contains(e.date_added)]
    if not in_week:
        raise ValidationError(
            f"No missing parcels found for the week of "
            f"{format_display_date(week.start)} - {format_display_date(week.end)}."
        )

    counts: dict[int, int] = {}
    details = []
    for e in in_week:
        counts[e.client_id] = counts.get(e.client_id, 0) + 1
        sorter = registries.team_member(e.sorter_team_member_id)
        sub_depot = registries.sub_depot(e.sub_depot_id)
        details.append(
            WeeklyParcelDetail(
                scan_entry_id=e.id,
                barcode=e.barcode,
                sorter_id=e.sorter_team_member_id,
                sorter_name=sorter.name if sorter else e.sorter_team_member_id,
                client_id=e.client_id,
                client_name=_client_name(registries, e.client_id),
                round_id=e.round_id,
                sub_depot_id=e.sub_depot_id,
                sub_depot_name=sub_depot.name if sub_depot else str(e.sub_depot_id),
                date_added=e.date_added,
            )
        )

    return WeeklyMissingSummary(
        week=week,
        total_missing=len(in_week),
        missing_by_client=_rank(
            MissingByClient(client_id=cid, client_name=_client_name(registries, cid), count=count)
            for cid, count in counts.items()
        ),
        parcels=tuple(details),
    )


def client_missing_league(
    entries: Iterable[ParcelScanEntry],
    registries: RegistryService,
    *,
    period: ReportPeriod,
) -> ClientMissingLeague:
    """Clients ranked by parcels gone missing in the period; rank 1 is the worst."""

    counts: dict[int, int] = {}
    for e in entries:
        if period.contains(e.date_added) and e.client_id:
            counts[e.client_id] = counts.get(e.client_id, 0) + 1
    if not counts:
        raise ValidationError("No missing parcel data found for the selected period.")

    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ClientMissingLeague(
        period=period,
        clients=tuple(
            ClientLeagueRow(
                rank=position,
                client_id=cid,
                client_name=_client_name(registries, cid),
                total_missing=total,
            )
            for position, (cid, total) in enumerate(ordered, start=1)
        ),
    )
