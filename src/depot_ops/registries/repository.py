from __future__ import annotations

from typing import Protocol, Sequence

from .model import Client, Courier, DeliveryUnit, Round, SubDepot, TeamMember


class RegistryRepository(Protocol):
    """Read-only access to the reference tables owned by the setup screens.

    Each table is fetched as an independent flat list and joined by primary key in memory.
    """

    def list_clients(self) -> Sequence[Client]:
        raise NotImplementedError

    def list_couriers(self) -> Sequence[Courier]:
        raise NotImplementedError

    def list_rounds(self) -> Sequence[Round]:
        raise NotImplementedError

    def list_sub_depots(self) -> Sequence[SubDepot]:
        raise NotImplementedError

    def list_team_members(self) -> Sequence[TeamMember]:
        raise NotImplementedError

    def list_delivery_units(self) -> Sequence[DeliveryUnit]:
        raise NotImplementedError
