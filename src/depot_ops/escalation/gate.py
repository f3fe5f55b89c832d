from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from ..registries.service import RegistryService
from .checklist import EscalationSession
from .model import HIGH_PRIORITY_CHECKLIST, Checklist
from .session_store import ChecklistSessionStore


@dataclass(frozen=True)
class GateOutcome:
    """Either the action ran (``executed``) or a checklist now guards it."""

    executed: bool
    result: Any = None
    session: Optional[EscalationSession] = None


class EscalationGate:
    def __init__(
        self,
        registries: RegistryService,
        sessions: ChecklistSessionStore,
        checklist: Checklist = HIGH_PRIORITY_CHECKLIST,
    ):
        self._registries = registries
        self._sessions = sessions
        self._checklist = checklist

    @property
    def sessions(self) -> ChecklistSessionStore:
        return self._sessions

    def requires_checklist(self, client_ids: Iterable, *, is_recovered: bool) -> bool:
        if is_recovered:
            return False
        return any(self._registries.is_high_priority(cid) for cid in client_ids if cid)

    def guard(
        self,
        workflow_id: str,
        action: Callable[[], Any],
        *,
        client_ids: Iterable,
        is_recovered: bool,
        subject: Optional[dict] = None,
    ) -> GateOutcome:
        if not self.requires_checklist(client_ids, is_recovered=is_recovered):
            return GateOutcome(executed=True, result=action())
        session = EscalationSession(self._checklist, action, subject=subject)
        self._sessions.open(workflow_id, session)
        return GateOutcome(executed=False, session=session)
