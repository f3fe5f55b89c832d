from __future__ import annotations

import threading
from typing import Optional

from ..core.exceptions import ChecklistError
from .checklist import EscalationSession


class ChecklistSessionStore:
    """In-memory sessions keyed by workflow id; at most one Active per workflow."""

    def __init__(self):
        self._sessions: dict[str, EscalationSession] = {}
        self._lock = threading.Lock()

    def open(self, workflow_id: str, session: EscalationSession) -> EscalationSession:
        with self._lock:
            existing = self._sessions.get(workflow_id)
            if existing is not None and existing.is_active:
                raise ChecklistError(f"Workflow {workflow_id} already has an active checklist")
            self._sessions[workflow_id] = session.open()
            return session

    def get(self, workflow_id: str) -> Optional[EscalationSession]:
        with self._lock:
            return self._sessions.get(workflow_id)

    def require(self, workflow_id: str) -> EscalationSession:
        session = self.get(workflow_id)
        if session is None:
            raise ChecklistError(f"Workflow {workflow_id} has no checklist")
        return session
