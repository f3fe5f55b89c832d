from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DeliveryUnit:
    id: str
    name: str


@dataclass(frozen=True)
class SubDepot:
    id: int
    name: str
    delivery_unit_id: str


@dataclass(frozen=True)
class Round:
    id: str
    sub_depot_id: int
    drop_number: int
    round_name: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Courier:
    id: str
    name: str
    telephone: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Client:
    """A parcel sender. ``is_high_priority`` decides whether missing parcels need escalation."""

    id: int
    name: str
    is_high_priority: bool = False
    code: Optional[str] = None


@dataclass(frozen=True)
class TeamMember:
    id: str
    name: str
    position: Optional[str] = None
    sub_depot_id: Optional[int] = None
    is_active: bool = True
