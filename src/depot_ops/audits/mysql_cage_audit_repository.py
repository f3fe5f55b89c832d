from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import CageAuditEntry, MissortedParcel
from .repository import CageAuditRepository


class MySQLCageAuditRepository(CageAuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_date(self, audit_date: date, *, sub_depot_id: Optional[int] = None) -> Sequence[CageAuditEntry]:
        sql = """
            SELECT id, audit_date, team_member_id, sub_depot_id, round_id, drop_number,
                   total_parcels_in_cage, total_missorts_found, notes
            FROM cage_audits
            WHERE audit_date=%s
        """
        params: list[object] = [audit_date]
        if sub_depot_id is not None:
            sql += " AND sub_depot_id=%s"
            params.append(sub_depot_id)
        sql += " ORDER BY created_at, id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            audits = fetchall(cur)
            if not audits:
                return []

            ids = [a["id"] for a in audits]
            placeholders = ",".join(["%s"] * len(ids))
            cur.execute(
                f"""
                SELECT cage_audit_id, barcode, client_id, reason
                FROM missorted_parcels
                WHERE cage_audit_id IN ({placeholders})
                ORDER BY id
                """,
                tuple(ids),
            )
            parcels: dict[str, list[MissortedParcel]] = {}
            for r in fetchall(cur):
                parcels.setdefault(r["cage_audit_id"], []).append(
                    MissortedParcel(
                        barcode=r["barcode"],
                        client_id=int(r["client_id"]) if r.get("client_id") is not None else None,
                        reason=r.get("reason"),
                    )
                )

        return [
            CageAuditEntry(
                id=a["id"],
                date=a["audit_date"],
                team_member_id=a.get("team_member_id") or "",
                sub_depot_id=int(a["sub_depot_id"]),
                round_id=str(a["round_id"]),
                drop_number=int(a.get("drop_number") or 0),
                total_parcels_in_cage=int(a.get("total_parcels_in_cage") or 0),
                total_missorts_found=int(a.get("total_missorts_found") or 0),
                notes=a.get("notes"),
                missorted_parcels=tuple(parcels.get(a["id"], [])),
            )
            for a in audits
        ]
