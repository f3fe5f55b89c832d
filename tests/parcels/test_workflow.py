import pytest

from conftest import AMAZON, ASOS, make_scan
from depot_ops.core.enums import ChecklistPhase
from depot_ops.core.exceptions import ChecklistError, ValidationError


def test_amazon_entry_bypasses_checklist(workflow, ledger, sessions):
    outcome = workflow.add_entry("wf", make_scan(client_id=AMAZON))

    assert outcome.executed is True
    assert outcome.session is None
    assert ledger.get(outcome.result.id).client_id == AMAZON
    assert sessions.get("wf") is None


def test_asos_entry_waits_for_five_yes_answers(workflow, ledger):
    outcome = workflow.add_entry("wf", make_scan(client_id=ASOS))

    assert outcome.executed is False
    session = outcome.session
    assert session.step == 0
    assert ledger.list_entries() == []

    workflow.answer("wf", False)
    assert session.step == 0
    assert "check cages" in session.alert
    assert ledger.list_entries() == []

    for _ in range(5):
        workflow.answer("wf", True)

    assert session.phase == ChecklistPhase.COMPLETED
    saved = ledger.list_entries()
    assert len(saved) == 1
    assert saved[0].client_id == ASOS
    assert session.result.id == saved[0].id


def test_cancelled_checklist_never_persists(workflow, ledger):
    workflow.add_entry("wf", make_scan(client_id=ASOS))
    workflow.answer("wf", True)

    session = workflow.cancel("wf")

    assert session.phase == ChecklistPhase.ABORTED
    assert ledger.list_entries() == []


def test_recovered_high_priority_parcel_is_not_gated(workflow):
    outcome = workflow.add_entry("wf", make_scan(client_id=ASOS, is_recovered=True))
    assert outcome.executed is True


def test_invalid_entry_fails_before_any_checklist(workflow, sessions, parcels_repo):
    with pytest.raises(ValidationError):
        workflow.add_entry("wf", make_scan(client_id=ASOS, barcode="TOO-SHORT"))

    assert sessions.get("wf") is None
    assert parcels_repo.create_calls == 0


def test_second_gated_add_while_active_is_refused(workflow):
    workflow.add_entry("wf", make_scan(client_id=ASOS))

    with pytest.raises(ChecklistError):
        workflow.add_entry("wf", make_scan(client_id=ASOS, barcode="H00AB12CD34EF56H"))


def test_answer_without_session_raises(workflow):
    with pytest.raises(ChecklistError):
        workflow.answer("nobody", True)


def test_edit_moving_parcel_to_high_priority_client_is_gated(workflow, ledger):
    entry = workflow.add_entry("wf", make_scan(client_id=AMAZON)).result

    outcome = workflow.edit_entry("wf", entry.id, {"client_id": ASOS})

    assert outcome.executed is False
    assert ledger.get(entry.id).client_id == AMAZON
    for _ in range(5):
        workflow.answer("wf", True)
    assert ledger.get(entry.id).client_id == ASOS


def test_edit_of_recovered_high_priority_parcel_runs_immediately(workflow, ledger):
    entry = workflow.add_entry("wf", make_scan(client_id=ASOS, is_recovered=True)).result

    outcome = workflow.edit_entry("wf", entry.id, {"notes": "left at reception"})

    assert outcome.executed is True
    assert ledger.get(entry.id).notes == "left at reception"


def test_plain_edit_ignores_unknown_columns(workflow, ledger):
    entry = workflow.add_entry("wf", make_scan()).result

    outcome = workflow.edit_entry("wf", entry.id, {"drop_number": "20", "id": "hijack"})

    assert outcome.executed is True
    assert outcome.result.id == entry.id
    assert outcome.result.drop_number == 20


def test_batch_import_is_never_gated(workflow, sessions):
    result = workflow.add_batch([make_scan(client_id=ASOS), make_scan(barcode="BAD")])

    assert len(result.persisted) == 1
    assert result.skipped == 1
    assert sessions.get("default") is None


def test_entry_invalidated_while_checklist_open_is_a_validation_error(workflow, ledger, registries, registries_repo):
    workflow.add_entry("wf", make_scan(client_id=ASOS, courier_id="C002"))
    registries_repo.couriers = [c for c in registries_repo.couriers if c.id != "C002"]
    registries.reload()

    for _ in range(4):
        workflow.answer("wf", True)
    with pytest.raises(ValidationError, match="Courier C002 does not exist"):
        workflow.answer("wf", True)

    assert ledger.list_entries() == []
    assert workflow.current("wf").phase == ChecklistPhase.COMPLETED
