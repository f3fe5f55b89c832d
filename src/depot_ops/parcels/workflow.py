from __future__ import annotations

from typing import Optional, Sequence

from ..core.exceptions import ValidationError
from ..escalation.checklist import EscalationSession
from ..escalation.gate import EscalationGate, GateOutcome
from .ledger import AppendResult, ParcelLedger
from .model import NewParcelScan, coerce_patch


class MissingParcelWorkflow:
    """Routes operator adds and edits through the escalation gate.

    A high-priority client's unrecovered parcel is only written once its
    checklist completes. Everything else goes straight to the ledger.
    """

    def __init__(self, ledger: ParcelLedger, gate: EscalationGate):
        self._ledger = ledger
        self._gate = gate

    def add_entry(self, workflow_id: str, candidate: NewParcelScan) -> GateOutcome:
        entry = self._ledger.validate(candidate)

        def persist():
            persisted = self._ledger.append([entry]).persisted
            if not persisted:
                # Registries can change while the checklist is open.
                errors = self._ledger.validation_errors(entry)
                raise ValidationError(" ".join(errors) or "Parcel could not be saved.")
            return persisted[0]

        return self._gate.guard(
            workflow_id,
            persist,
            client_ids=[entry.client_id],
            is_recovered=entry.is_recovered,
            subject={"action": "add", "barcode": entry.barcode, "client_id": entry.client_id},
        )

    def add_batch(self, candidates: Sequence[NewParcelScan]) -> AppendResult:
        """Bulk import. Never gated; invalid rows are counted as skipped."""
        return self._ledger.append(candidates)

    def edit_entry(self, workflow_id: str, entry_id: str, body: dict) -> GateOutcome:
        patch = coerce_patch(body)
        current = self._ledger.get(entry_id)
        merged = self._ledger.check_edit(entry_id, patch)

        return self._gate.guard(
            workflow_id,
            lambda: self._ledger.edit(entry_id, patch),
            client_ids=[current.client_id, merged.client_id],
            is_recovered=current.is_recovered,
            subject={"action": "edit", "entry_id": entry_id, "barcode": merged.barcode, "client_id": merged.client_id},
        )

    def answer(self, workflow_id: str, yes: bool) -> EscalationSession:
        session = self._gate.sessions.require(workflow_id)
        session.answer(yes)
        return session

    def cancel(self, workflow_id: str) -> EscalationSession:
        session = self._gate.sessions.require(workflow_id)
        session.cancel()
        return session

    def current(self, workflow_id: str) -> Optional[EscalationSession]:
        return self._gate.sessions.get(workflow_id)
