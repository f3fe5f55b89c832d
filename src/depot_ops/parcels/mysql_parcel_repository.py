from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from ..core.enums import ScanType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import EDITABLE_FIELDS, NewParcelScan, ParcelScanEntry
from .repository import ParcelRepository

_COLUMNS = """
    id, round_id, drop_number, sub_depot_id, courier_id, barcode, sorter_team_member_id,
    client_id, time_scanned, scan_type, cfwd_courier_id, misrouted_du_id, rejected_courier_id,
    is_recovered, recovery_date, recovery_notes, notes, created_at, updated_at
"""


def _row_to_entry(r: dict) -> ParcelScanEntry:
    return ParcelScanEntry(
        id=r["id"],
        barcode=r["barcode"],
        round_id=str(r["round_id"]),
        drop_number=int(r.get("drop_number") or 0),
        sub_depot_id=int(r.get("sub_depot_id") or 0),
        courier_id=r.get("courier_id") or "",
        sorter_team_member_id=r.get("sorter_team_member_id") or "",
        client_id=int(r.get("client_id") or 0),
        time_scanned=r["time_scanned"],
        scan_type=ScanType(r["scan_type"]),
        cfwd_courier_id=r.get("cfwd_courier_id"),
        misrouted_du_id=r.get("misrouted_du_id"),
        rejected_courier_id=r.get("rejected_courier_id"),
        is_recovered=as_bool(r.get("is_recovered")),
        recovery_date=r.get("recovery_date"),
        recovery_notes=r.get("recovery_notes"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _db_value(value):
    if isinstance(value, ScanType):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


class MySQLParcelRepository(ParcelRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_entries(
        self,
        *,
        date_added: Optional[date] = None,
        courier_id: Optional[str] = None,
        round_id: Optional[str] = None,
    ) -> Sequence[ParcelScanEntry]:
        clauses: list[str] = []
        params: list[object] = []
        if courier_id:
            clauses.append("courier_id=%s")
            params.append(courier_id)
        if round_id:
            clauses.append("round_id=%s")
            params.append(round_id)
        if date_added:
            clauses.append("DATE(created_at)=%s")
            params.append(date_added)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM parcel_scan_entries {where} ORDER BY created_at DESC",
                tuple(params),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def get_by_id(self, entry_id: str) -> Optional[ParcelScanEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM parcel_scan_entries WHERE id=%s", (entry_id,))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def create_many(self, entries: Sequence[NewParcelScan]) -> Sequence[ParcelScanEntry]:
        if not entries:
            return []

        ids: list[str] = []
        with db_cursor(self._conn_factory) as (_, cur):
            for p in entries:
                entry_id = str(uuid.uuid4())
                cur.execute(
                    """
                    INSERT INTO parcel_scan_entries(
                        id, round_id, drop_number, sub_depot_id, courier_id, barcode, sorter_team_member_id,
                        client_id, time_scanned, scan_type, cfwd_courier_id, misrouted_du_id,
                        rejected_courier_id, is_recovered, recovery_date, recovery_notes, notes
                    ) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        entry_id, p.round_id, p.drop_number, p.sub_depot_id, p.courier_id, p.barcode,
                        p.sorter_team_member_id, p.client_id, p.time_scanned, p.scan_type.value,
                        p.cfwd_courier_id, p.misrouted_du_id, p.rejected_courier_id,
                        int(p.is_recovered), p.recovery_date, p.recovery_notes, p.notes,
                    ),
                )
                ids.append(entry_id)

            placeholders = ",".join(["%s"] * len(ids))
            cur.execute(f"SELECT {_COLUMNS} FROM parcel_scan_entries WHERE id IN ({placeholders})", tuple(ids))
            by_id = {r["id"]: _row_to_entry(r) for r in fetchall(cur)}

        return [by_id[i] for i in ids if i in by_id]

    def update_fields(self, entry_id: str, fields: dict) -> Optional[ParcelScanEntry]:
        sets: list[str] = []
        params: list[object] = []
        for key, value in fields.items():
            if key not in EDITABLE_FIELDS:
                continue
            sets.append(f"{key}=%s")
            params.append(_db_value(value))
        if not sets:
            return self.get_by_id(entry_id)

        params.append(entry_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE parcel_scan_entries SET {', '.join(sets)}, updated_at=NOW() WHERE id=%s",
                tuple(params),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM parcel_scan_entries WHERE id=%s", (entry_id,))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None
