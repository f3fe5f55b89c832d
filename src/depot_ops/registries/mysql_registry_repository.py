from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall
from .model import Client, Courier, DeliveryUnit, Round, SubDepot, TeamMember
from .repository import RegistryRepository


class MySQLRegistryRepository(RegistryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, sql: str) -> list[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql)
            return fetchall(cur)

    def list_clients(self) -> Sequence[Client]:
        rows = self._select("SELECT id, name, code, is_high_priority FROM clients ORDER BY name")
        return [
            Client(
                id=int(r["id"]),
                name=r["name"],
                code=r.get("code"),
                is_high_priority=as_bool(r.get("is_high_priority")),
            )
            for r in rows
        ]

    def list_couriers(self) -> Sequence[Courier]:
        rows = self._select("SELECT id, name, telephone, is_active FROM couriers ORDER BY id")
        return [
            Courier(
                id=r["id"],
                name=r["name"],
                telephone=r.get("telephone"),
                is_active=as_bool(r.get("is_active")),
            )
            for r in rows
        ]

    def list_rounds(self) -> Sequence[Round]:
        rows = self._select(
            "SELECT id, sub_depot_id, drop_number, round_name, is_active FROM rounds ORDER BY sub_depot_id, drop_number, id"
        )
        return [
            Round(
                id=str(r["id"]),
                sub_depot_id=int(r["sub_depot_id"]),
                drop_number=int(r.get("drop_number") or 0),
                round_name=r.get("round_name"),
                is_active=as_bool(r.get("is_active")),
            )
            for r in rows
        ]

    def list_sub_depots(self) -> Sequence[SubDepot]:
        rows = self._select("SELECT id, name, delivery_unit_id FROM sub_depots ORDER BY id")
        return [SubDepot(id=int(r["id"]), name=r["name"], delivery_unit_id=r["delivery_unit_id"]) for r in rows]

    def list_team_members(self) -> Sequence[TeamMember]:
        rows = self._select("SELECT id, name, position, sub_depot_id, is_active FROM team_members ORDER BY name")
        return [
            TeamMember(
                id=r["id"],
                name=r["name"],
                position=r.get("position"),
                sub_depot_id=int(r["sub_depot_id"]) if r.get("sub_depot_id") is not None else None,
                is_active=as_bool(r.get("is_active")),
            )
            for r in rows
        ]

    def list_delivery_units(self) -> Sequence[DeliveryUnit]:
        rows = self._select("SELECT id, name FROM delivery_units ORDER BY id")
        return [DeliveryUnit(id=r["id"], name=r["name"]) for r in rows]
