from datetime import date, datetime

import pytest

from conftest import AMAZON, ASOS, DAY, make_scan
from depot_ops.audits.model import CageAuditEntry, MissortedParcel
from depot_ops.core.exceptions import ValidationError
from depot_ops.reports import aggregator
from depot_ops.reports.model import ReportPeriod


def _audit(audit_id, round_id, sub_depot_id, *client_ids, audit_date=DAY):
    return CageAuditEntry(
        id=audit_id,
        date=audit_date,
        team_member_id="TM001",
        sub_depot_id=sub_depot_id,
        round_id=round_id,
        total_missorts_found=len(client_ids),
        missorted_parcels=tuple(MissortedParcel(barcode=f"MS{i:014d}", client_id=c) for i, c in enumerate(client_ids)),
    )


@pytest.mark.parametrize(
    "total, unrecovered, expected",
    [
        (0, 0, 0),
        (4, 0, 100),
        (4, 4, 0),
        (3, 1, 67),
        (8, 7, 13),
        (2, 1, 50),
    ],
)
def test_recovery_rate(total, unrecovered, expected):
    assert aggregator.recovery_rate(total, unrecovered) == expected


def test_missort_summary_ranks_clients_and_rounds(registries):
    audits = [
        _audit("a1", "1", 71, AMAZON, ASOS),
        _audit("a2", "2", 71, ASOS, ASOS, 99),
        _audit("a3", "3", 62, AMAZON),
        _audit("old", "1", 71, AMAZON, audit_date=date(2026, 3, 1)),
    ]

    summary = aggregator.summarize_missorts(audits, registries, report_date=DAY)

    assert summary.total_missorts == 6
    assert [(c.client_name, c.count) for c in summary.by_client] == [("ASOS", 3), ("Amazon", 2), ("99", 1)]
    assert [(r.round_id, r.sub_depot_id, r.count) for r in summary.by_round] == [("2", 71, 3), ("1", 71, 2), ("3", 62, 1)]
    assert summary.by_round[0].sub_depot_name == "Edmonton 71"


def test_missort_summary_ties_keep_encounter_order(registries):
    audits = [_audit("a1", "2", 71, AMAZON), _audit("a2", "1", 71, ASOS)]

    summary = aggregator.summarize_missorts(audits, registries, report_date=DAY)

    assert [c.client_id for c in summary.by_client] == [AMAZON, ASOS]
    assert [r.round_id for r in summary.by_round] == ["2", "1"]


def test_missort_summary_scoped_to_sub_depot(registries):
    audits = [_audit("a1", "1", 71, AMAZON), _audit("a2", "3", 62, ASOS)]

    summary = aggregator.summarize_missorts(audits, registries, report_date=DAY, sub_depot_id=62)

    assert summary.total_missorts == 1
    assert summary.by_client[0].client_name == "ASOS"


def test_missort_summary_without_audits_is_an_error(registries):
    with pytest.raises(ValidationError):
        aggregator.summarize_missorts([], registries, report_date=DAY)


def test_cage_return_pairs_follow_registry_then_log_order(ledger, registries):
    ledger.append(
        [
            make_scan(round_id="2", courier_id="C002"),
            make_scan(barcode="H00AB12CD34EF56H", round_id="1", courier_id="C002"),
            make_scan(barcode="H00AB12CD34EF56J", round_id="1", courier_id="C001"),
            make_scan(barcode="H00AB12CD34EF56K", round_id="1", courier_id="C002"),
            make_scan(barcode="H00AB12CD34EF56L", round_id="3", courier_id="C001", sub_depot_id=62),
        ]
    )

    pairs = aggregator.cage_return_pairs(ledger.snapshot(), registries, report_date=DAY, sub_depot_id=71)

    assert [(p.round_id, p.courier_id) for p in pairs] == [("1", "C002"), ("1", "C001"), ("2", "C002")]
    assert all(p.not_returned is False for p in pairs)
    assert pairs[1].courier_name == "John Smith"


def test_missing_summary_counts_the_day(ledger, registries):
    created = ledger.append(
        [
            make_scan(),
            make_scan(barcode="H00AB12CD34EF56H", is_recovered=True),
            make_scan(barcode="H00AB12CD34EF56J"),
        ]
    ).persisted

    summary = aggregator.summarize_missing_parcels(ledger.snapshot(), registries, report_date=DAY)

    assert summary.total_missing == 3
    assert summary.unrecovered == 2
    assert summary.recovery_rate == 33
    assert {p.scan_entry_id for p in summary.parcels} == {e.id for e in created}
    assert summary.parcels[0].client_name == "Amazon"


def test_missing_summary_for_empty_day(registries):
    summary = aggregator.summarize_missing_parcels([], registries, report_date=DAY)
    assert (summary.total_missing, summary.unrecovered, summary.recovery_rate) == (0, 0, 0)


def test_courier_stats_sorted_by_unrecovered_then_total(ledger, registries):
    ledger.append(
        [
            make_scan(courier_id="C001", is_recovered=True),
            make_scan(barcode="H00AB12CD34EF56H", courier_id="C001", round_id="2"),
            make_scan(barcode="H00AB12CD34EF56J", courier_id="C002"),
            make_scan(barcode="H00AB12CD34EF56K", courier_id="C002"),
        ]
    )

    stats = aggregator.courier_missing_stats(ledger.snapshot(), registries, report_date=DAY)

    assert [s.courier_id for s in stats] == ["C002", "C001"]
    c001 = stats[1]
    assert set(c001.rounds) == {"1", "2"}
    assert (c001.total_missing, c001.unrecovered, c001.recovered, c001.recovery_rate) == (2, 1, 1, 50)


def _log_on(ledger, parcels_repo, day, *scans):
    parcels_repo.now = datetime.combine(day, datetime.min.time()).replace(hour=9)
    return ledger.append(list(scans)).persisted


def test_week_and_month_periods():
    week = ReportPeriod.for_week("2026-W10")
    assert (week.start, week.end, week.label) == (date(2026, 3, 2), date(2026, 3, 8), "2026-W10")

    february = ReportPeriod.for_month("2026-02")
    assert (february.start, february.end) == (date(2026, 2, 1), date(2026, 2, 28))
    assert ReportPeriod.for_month("2026-12").end == date(2026, 12, 31)


@pytest.mark.parametrize("bad", ["2026-10", "W10", "2026-W54", ""])
def test_malformed_week_is_rejected(bad):
    with pytest.raises(ValidationError):
        ReportPeriod.for_week(bad)


def test_weekly_summary_ranks_clients_and_names_sorters(ledger, parcels_repo, registries):
    _log_on(ledger, parcels_repo, DAY, make_scan(client_id=AMAZON))
    _log_on(
        ledger,
        parcels_repo,
        date(2026, 3, 8),
        make_scan(barcode="H00AB12CD34EF56H", client_id=ASOS),
        make_scan(barcode="H00AB12CD34EF56J", client_id=ASOS),
    )
    _log_on(ledger, parcels_repo, date(2026, 3, 9), make_scan(barcode="H00AB12CD34EF56K", client_id=AMAZON))

    summary = aggregator.summarize_weekly_missing(
        ledger.snapshot(), registries, week=ReportPeriod.for_week("2026-W10")
    )

    assert summary.total_missing == 3
    assert [(c.client_name, c.count) for c in summary.missing_by_client] == [("ASOS", 2), ("Amazon", 1)]
    assert {p.barcode for p in summary.parcels} == {"H00AB12CD34EF56G", "H00AB12CD34EF56H", "H00AB12CD34EF56J"}
    assert {p.sorter_name for p in summary.parcels} == {"Alex Morgan"}
    assert summary.parcels[0].sub_depot_name == "Edmonton 71"


def test_weekly_summary_for_a_quiet_week_is_an_error(ledger, registries):
    ledger.append([make_scan()])

    with pytest.raises(ValidationError, match="09/03/2026 - 15/03/2026"):
        aggregator.summarize_weekly_missing(ledger.snapshot(), registries, week=ReportPeriod.for_week("2026-W11"))


def test_client_league_ranks_within_the_period(ledger, parcels_repo, registries):
    _log_on(ledger, parcels_repo, DAY, make_scan(client_id=AMAZON))
    _log_on(
        ledger,
        parcels_repo,
        date(2026, 3, 20),
        make_scan(barcode="H00AB12CD34EF56H", client_id=ASOS),
        make_scan(barcode="H00AB12CD34EF56J", client_id=ASOS),
    )
    _log_on(ledger, parcels_repo, date(2026, 4, 1), make_scan(barcode="H00AB12CD34EF56K", client_id=AMAZON))

    league = aggregator.client_missing_league(ledger.snapshot(), registries, period=ReportPeriod.for_month("2026-03"))

    assert [(r.rank, r.client_name, r.total_missing) for r in league.clients] == [(1, "ASOS", 2), (2, "Amazon", 1)]

    week = aggregator.client_missing_league(ledger.snapshot(), registries, period=ReportPeriod.for_week("2026-W10"))
    assert [(r.rank, r.client_id) for r in week.clients] == [(1, AMAZON)]


def test_client_league_without_data_is_an_error(registries):
    with pytest.raises(ValidationError, match="selected period"):
        aggregator.client_missing_league([], registries, period=ReportPeriod.for_day(DAY))
