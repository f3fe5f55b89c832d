import pytest

from conftest import AMAZON, DAY, NOW, make_scan
from depot_ops.core.enums import ScanType
from depot_ops.core.exceptions import NotFoundError, ValidationError
from depot_ops.parcels.recovery import RecoveryTracker


def test_append_persists_only_valid_rows_in_one_call(ledger, parcels_repo):
    batch = [
        make_scan(),
        make_scan(barcode="SHORT123"),
        make_scan(barcode="H00AB12CD34EF56H", courier_id="C999"),
        make_scan(barcode="H00AB12CD34EF56J", sorter_team_member_id=""),
        make_scan(barcode="H00AB12CD34EF56K", client_id=0),
    ]

    result = ledger.append(batch)

    assert len(result.persisted) == 1
    assert result.skipped == 4
    assert parcels_repo.create_calls == 1
    for entry in result.persisted:
        assert len(entry.barcode) == 16
        assert entry.round_id and entry.courier_id and entry.sorter_team_member_id and entry.client_id


def test_append_with_nothing_valid_skips_the_database(ledger, parcels_repo):
    result = ledger.append([make_scan(barcode=""), make_scan(round_id="99")])

    assert result.persisted == []
    assert result.skipped == 2
    assert parcels_repo.create_calls == 0


def test_append_normalizes_barcode_and_defaults(ledger):
    entry = ledger.append([make_scan(barcode="  h00ab12cd34ef56g ", time_scanned=None)]).persisted[0]

    assert entry.barcode == "H00AB12CD34EF56G"
    assert entry.time_scanned == NOW
    assert entry.scan_type == ScanType.STANDARD
    assert entry.is_recovered is False
    assert entry.recovery_date is None


def test_append_clears_detail_fields_that_do_not_match_scan_type(ledger):
    entry = ledger.append(
        [make_scan(scan_type=ScanType.CARRY_FORWARD, cfwd_courier_id="C002", misrouted_du_id="EDM", rejected_courier_id="C001")]
    ).persisted[0]

    assert entry.cfwd_courier_id == "C002"
    assert entry.misrouted_du_id is None
    assert entry.rejected_courier_id is None

    standard = ledger.append([make_scan(barcode="H00AB12CD34EF56H", misrouted_du_id="EDM")]).persisted[0]
    assert standard.misrouted_du_id is None


def test_recovered_on_input_gets_a_recovery_date(ledger):
    entry = ledger.append([make_scan(is_recovered=True)]).persisted[0]
    assert entry.recovery_date == NOW.date()


def test_toggle_recovered_round_trip(ledger):
    entry = ledger.append([make_scan()]).persisted[0]

    recovered = ledger.toggle_recovered(entry.id, True)
    assert recovered.is_recovered is True
    assert recovered.recovery_date == NOW.date()

    missing = ledger.toggle_recovered(entry.id, False)
    assert missing.is_recovered is False
    assert missing.recovery_date is None


def test_toggle_unknown_entry_raises(ledger):
    with pytest.raises(NotFoundError):
        ledger.toggle_recovered("nope", True)


def test_edit_rejects_short_barcode_and_leaves_entry(ledger):
    entry = ledger.append([make_scan()]).persisted[0]

    with pytest.raises(ValidationError):
        ledger.edit(entry.id, {"barcode": "ABC"})

    assert ledger.get(entry.id).barcode == entry.barcode


def test_edit_to_new_scan_type_clears_old_detail(ledger):
    entry = ledger.append([make_scan(scan_type=ScanType.CARRY_FORWARD, cfwd_courier_id="C002")]).persisted[0]

    edited = ledger.edit(entry.id, {"scan_type": ScanType.MISROUTED, "misrouted_du_id": "EDM"})

    assert edited.scan_type == ScanType.MISROUTED
    assert edited.misrouted_du_id == "EDM"
    assert edited.cfwd_courier_id is None


def test_edit_recovery_flag_keeps_date_consistent(ledger):
    entry = ledger.append([make_scan()]).persisted[0]

    edited = ledger.edit(entry.id, {"is_recovered": True, "notes": "found behind cage 4"})
    assert edited.recovery_date == NOW.date()
    assert edited.notes == "found behind cage 4"

    edited = ledger.edit(entry.id, {"is_recovered": False})
    assert edited.recovery_date is None


def test_mutations_upsert_the_store_without_refetching(ledger, parcels_repo):
    first = ledger.append([make_scan()]).persisted[0]
    ledger.list_entries()
    calls = parcels_repo.list_calls

    second = ledger.append([make_scan(barcode="H00AB12CD34EF56H")]).persisted[0]
    ledger.edit(first.id, {"notes": "checked"})
    ledger.toggle_recovered(second.id, True)

    entries = {e.id: e for e in ledger.list_entries(date_added=DAY)}
    assert parcels_repo.list_calls == calls
    assert entries[first.id].notes == "checked"
    assert entries[second.id].is_recovered is True


def test_failed_write_leaves_store_unchanged(ledger, parcels_repo):
    kept = ledger.append([make_scan()]).persisted[0]
    parcels_repo.fail_next_write = True

    with pytest.raises(RuntimeError):
        ledger.append([make_scan(barcode="H00AB12CD34EF56H")])

    assert [e.id for e in ledger.list_entries()] == [kept.id]


def test_list_filters(ledger):
    ledger.append(
        [
            make_scan(),
            make_scan(barcode="H00AB12CD34EF56H", courier_id="C002", round_id="2"),
        ]
    )

    assert len(ledger.list_entries(courier_id="C002")) == 1
    assert len(ledger.list_entries(round_id="1")) == 1
    assert ledger.list_entries(date_added=DAY.replace(day=3)) == []


def test_additional_details_only_returns_entries_with_details(ledger):
    ledger.append(
        [
            make_scan(),
            make_scan(barcode="H00AB12CD34EF56H", scan_type=ScanType.REJECTED, rejected_courier_id="C002"),
            make_scan(barcode="H00AB12CD34EF56J", scan_type=ScanType.MISROUTED, misrouted_du_id="EDM"),
        ]
    )

    details = ledger.additional_details(DAY)

    assert sorted(e.barcode for e in details) == ["H00AB12CD34EF56H", "H00AB12CD34EF56J"]


def test_scan_type_detail_is_required_and_must_exist(ledger):
    result = ledger.append(
        [
            make_scan(scan_type=ScanType.MISROUTED),
            make_scan(barcode="H00AB12CD34EF56H", scan_type=ScanType.REJECTED, rejected_courier_id="C999"),
            make_scan(barcode="H00AB12CD34EF56J", scan_type=ScanType.CARRY_FORWARD, cfwd_courier_id=" "),
            make_scan(barcode="H00AB12CD34EF56K", scan_type=ScanType.MISROUTED, misrouted_du_id="ZZZ"),
        ]
    )

    assert result.persisted == []
    assert result.skipped == 4


def test_single_validate_names_the_missing_detail(ledger):
    with pytest.raises(ValidationError, match="Misrouted delivery unit is required"):
        ledger.validate(make_scan(scan_type=ScanType.MISROUTED))

    with pytest.raises(ValidationError, match="Rejecting courier C999 does not exist"):
        ledger.validate(make_scan(scan_type=ScanType.REJECTED, rejected_courier_id="C999"))


def test_edit_to_a_detail_scan_type_needs_the_detail(ledger):
    entry = ledger.append([make_scan()]).persisted[0]

    with pytest.raises(ValidationError, match="Carry-forward courier is required"):
        ledger.edit(entry.id, {"scan_type": ScanType.CARRY_FORWARD})

    assert ledger.get(entry.id).scan_type == ScanType.STANDARD


def test_log_rows_join_registry_names(ledger):
    entry = ledger.append([make_scan(client_id=AMAZON)]).persisted[0]

    row = ledger.log_rows([entry])[0].to_dict()

    assert row["client_name"] == "Amazon"
    assert row["courier_name"] == "John Smith"
    assert row["sorter_name"] == "Alex Morgan"
    assert row["dateAdded"] == "02/03/2026"


def test_recovery_tracker_toggle_and_snapshot(ledger):
    tracker = RecoveryTracker(ledger)
    entry = ledger.append([make_scan()]).persisted[0]

    assert tracker.toggle(entry.id).is_recovered is True
    snapshot = tracker.snapshot(DAY)
    assert tracker.toggle(entry.id).is_recovered is False

    # Taken before the second toggle, so it still says recovered.
    assert snapshot[0].is_recovered is True
    assert tracker.mark_recovered(entry.id, notes="van").recovery_notes == "van"
    assert tracker.mark_missing(entry.id).recovery_date is None
