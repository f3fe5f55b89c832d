"""Escalation checklist: pure state transitions plus a session that owns the deferred action."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Callable, Optional

from ..core.enums import ChecklistAnswer
from ..core.exceptions import ChecklistError
from .model import Aborted, Active, Checklist, ChecklistState, Completed, Idle

logger = logging.getLogger(__name__)


def is_terminal(state: ChecklistState) -> bool:
    return isinstance(state, (Completed, Aborted))


def start(state: ChecklistState) -> ChecklistState:
    if not isinstance(state, Idle):
        raise ChecklistError(f"Checklist cannot start from {state.phase.value}")
    return Active(step=0)


def answer(state: ChecklistState, checklist: Checklist, reply: ChecklistAnswer) -> ChecklistState:
    if not isinstance(state, Active):
        raise ChecklistError(f"Checklist is {state.phase.value}; no question to answer")
    if reply == ChecklistAnswer.NO:
        return Active(step=state.step, alert=checklist.no_alerts[state.step])
    if state.step + 1 >= checklist.size:
        return Completed()
    return Active(step=state.step + 1)


def cancel(state: ChecklistState) -> ChecklistState:
    if is_terminal(state):
        raise ChecklistError(f"Checklist is already {state.phase.value}")
    return Aborted()


class EscalationSession:
    """One run of a checklist guarding a single deferred action.

    The action runs at most once, and only when the last question is
    answered "Yes". If it raises, the session stays Completed and the
    error reaches the caller.
    """

    def __init__(
        self,
        checklist: Checklist,
        action: Callable[[], Any],
        *,
        subject: Optional[dict] = None,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or str(uuid.uuid4())
        self.checklist = checklist
        self.subject = dict(subject or {})
        self.state: ChecklistState = Idle()
        self.result: Any = None
        self._action: Optional[Callable[[], Any]] = action
        self._lock = threading.Lock()

    @property
    def phase(self):
        return self.state.phase

    @property
    def is_active(self) -> bool:
        return isinstance(self.state, Active)

    @property
    def step(self) -> Optional[int]:
        return self.state.step if isinstance(self.state, Active) else None

    @property
    def question(self) -> Optional[str]:
        step = self.step
        return None if step is None else self.checklist.questions[step]

    @property
    def alert(self) -> Optional[str]:
        return self.state.alert if isinstance(self.state, Active) else None

    def open(self) -> "EscalationSession":
        self.state = start(self.state)
        logger.info("Checklist %s opened (%s)", self.id, self.subject.get("barcode", "-"))
        return self

    def answer(self, yes: bool) -> Any:
        with self._lock:
            self.state = answer(self.state, self.checklist, ChecklistAnswer.YES if yes else ChecklistAnswer.NO)
            if not isinstance(self.state, Completed):
                return None
            action, self._action = self._action, None

        logger.info("Checklist %s completed", self.id)
        if action is not None:
            self.result = action()
        return self.result

    def cancel(self) -> None:
        with self._lock:
            self.state = cancel(self.state)
            self._action = None
        logger.info("Checklist %s aborted", self.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "phase": self.phase.value,
            "step": self.step,
            "total_steps": self.checklist.size,
            "question": self.question,
            "alert": self.alert,
            "subject": self.subject,
        }
