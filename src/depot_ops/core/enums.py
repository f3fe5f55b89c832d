from __future__ import annotations

from enum import Enum


class ScanType(str, Enum):
    """How a missing parcel was last scanned."""

    STANDARD = "Standard"
    MISROUTED = "Misrouted"
    REJECTED = "Rejected"
    CARRY_FORWARD = "CarryForward"


class ChecklistAnswer(str, Enum):
    YES = "yes"
    NO = "no"


class ChecklistPhase(str, Enum):
    """Phases of an escalation checklist session."""

    IDLE = "IDLE"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"


class PeriodType(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
