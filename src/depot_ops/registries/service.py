from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .model import Client, Courier, DeliveryUnit, Round, SubDepot, TeamMember
from .repository import RegistryRepository

logger = logging.getLogger(__name__)


@dataclass
class _Snapshot:
    clients: dict[int, Client] = field(default_factory=dict)
    couriers: dict[str, Courier] = field(default_factory=dict)
    rounds: dict[str, Round] = field(default_factory=dict)
    sub_depots: dict[int, SubDepot] = field(default_factory=dict)
    team: dict[str, TeamMember] = field(default_factory=dict)
    delivery_units: dict[str, DeliveryUnit] = field(default_factory=dict)


class RegistryService:
    """Process-wide, id-keyed view over the reference registries.

    Loaded lazily on first use; ``reload()`` re-reads every list.
    """

    def __init__(self, registries: RegistryRepository):
        self._registries = registries
        self._snapshot: Optional[_Snapshot] = None

    def reload(self) -> None:
        r = self._registries
        self._snapshot = _Snapshot(
            clients={c.id: c for c in r.list_clients()},
            couriers={c.id: c for c in r.list_couriers()},
            rounds={x.id: x for x in r.list_rounds()},
            sub_depots={s.id: s for s in r.list_sub_depots()},
            team={t.id: t for t in r.list_team_members()},
            delivery_units={d.id: d for d in r.list_delivery_units()},
        )
        s = self._snapshot
        logger.info(
            "Registries loaded: clients=%d couriers=%d rounds=%d sub_depots=%d team=%d",
            len(s.clients), len(s.couriers), len(s.rounds), len(s.sub_depots), len(s.team),
        )

    @property
    def _s(self) -> _Snapshot:
        if self._snapshot is None:
            self.reload()
        return self._snapshot  # type: ignore[return-value]

    # Lookups
    def client(self, client_id) -> Optional[Client]:
        try:
            return self._s.clients.get(int(client_id))
        except (TypeError, ValueError):
            return None

    def client_by_name(self, name: str) -> Optional[Client]:
        wanted = (name or "").strip().lower()
        for c in self._s.clients.values():
            if c.name.lower() == wanted:
                return c
        return None

    def courier(self, courier_id) -> Optional[Courier]:
        return self._s.couriers.get(str(courier_id)) if courier_id else None

    def round(self, round_id) -> Optional[Round]:
        return self._s.rounds.get(str(round_id)) if round_id else None

    def sub_depot(self, sub_depot_id) -> Optional[SubDepot]:
        try:
            return self._s.sub_depots.get(int(sub_depot_id))
        except (TypeError, ValueError):
            return None

    def team_member(self, member_id) -> Optional[TeamMember]:
        return self._s.team.get(str(member_id)) if member_id else None

    def delivery_unit(self, du_id) -> Optional[DeliveryUnit]:
        return self._s.delivery_units.get(str(du_id)) if du_id else None

    def is_high_priority(self, client_id) -> bool:
        c = self.client(client_id)
        return bool(c and c.is_high_priority)

    # Lists (registry order)
    def clients(self) -> Sequence[Client]:
        return list(self._s.clients.values())

    def couriers(self) -> Sequence[Courier]:
        return list(self._s.couriers.values())

    def rounds(self, *, sub_depot_id: Optional[int] = None) -> Sequence[Round]:
        rounds = list(self._s.rounds.values())
        if sub_depot_id is not None:
            rounds = [r for r in rounds if r.sub_depot_id == int(sub_depot_id)]
        return rounds

    def sub_depots(self) -> Sequence[SubDepot]:
        return list(self._s.sub_depots.values())

    def team(self) -> Sequence[TeamMember]:
        return list(self._s.team.values())

    def delivery_units(self) -> Sequence[DeliveryUnit]:
        return list(self._s.delivery_units.values())
