from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from ..core.enums import ChecklistPhase


@dataclass(frozen=True)
class Checklist:
    """Ordered yes/no questions, each with the alert shown when answered "No"."""

    questions: tuple[str, ...]
    no_alerts: tuple[str, ...]

    def __post_init__(self):
        if not self.questions:
            raise ValueError("A checklist needs at least one question")
        if len(self.questions) != len(self.no_alerts):
            raise ValueError("Every question needs exactly one alert")

    @property
    def size(self) -> int:
        return len(self.questions)


HIGH_PRIORITY_CHECKLIST = Checklist(
    questions=(
        "This is a high value client. Have you checked the cages either side?",
        "Have you asked the courier to check their vehicle?",
        "Have you completed a vehicle search?",
        "Has CCTV been viewed?",
        "Are you sure you want to mark this parcel as missing?",
    ),
    no_alerts=(
        "Please check cages before approving this missing parcel.",
        "Please ask the courier to check their vehicle before approving this missing parcel.",
        "Please check the courier's vehicle before approving this missing parcel.",
        "Please view CCTV before approving this missing parcel.",
        "",
    ),
)


@dataclass(frozen=True)
class Idle:
    phase: ClassVar[ChecklistPhase] = ChecklistPhase.IDLE


@dataclass(frozen=True)
class Active:
    step: int
    alert: Optional[str] = None
    phase: ClassVar[ChecklistPhase] = ChecklistPhase.ACTIVE


@dataclass(frozen=True)
class Completed:
    phase: ClassVar[ChecklistPhase] = ChecklistPhase.COMPLETED


@dataclass(frozen=True)
class Aborted:
    phase: ClassVar[ChecklistPhase] = ChecklistPhase.ABORTED


ChecklistState = Union[Idle, Active, Completed, Aborted]
