from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import is_present, is_valid_barcode, normalize_barcode
from ..core.constants import BARCODE_LENGTH
from ..core.exceptions import NotFoundError, ValidationError
from ..registries.service import RegistryService
from .factory import ScanTypeRuleFactory
from .model import DETAIL_FIELDS, NewParcelScan, ParcelLogRow, ParcelScanEntry
from .repository import ParcelRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppendResult:
    persisted: Sequence[ParcelScanEntry]
    submitted: int

    @property
    def skipped(self) -> int:
        return self.submitted - len(self.persisted)


class ParcelLedger:
    """Append/mutate store of missing-parcel scan entries.

    Keeps a normalized store keyed by id. Every mutation upserts the row the
    repository returns, so the list is never refetched after a write.
    """

    def __init__(
        self,
        parcels: ParcelRepository,
        registries: RegistryService,
        *,
        rule_factory: ScanTypeRuleFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._parcels = parcels
        self._registries = registries
        self._rules = rule_factory or ScanTypeRuleFactory()
        self._clock = clock
        self._store: dict[str, ParcelScanEntry] = {}
        self._loaded = False

    # Store
    def refresh(self) -> None:
        self._store = {e.id: e for e in self._parcels.list_entries()}
        self._loaded = True

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.refresh()

    def _upsert(self, entry: ParcelScanEntry) -> ParcelScanEntry:
        self._store[entry.id] = entry
        return entry

    def get(self, entry_id: str) -> ParcelScanEntry:
        self._ensure_loaded()
        entry = self._store.get(entry_id)
        if entry is None:
            entry = self._parcels.get_by_id(entry_id)
            if entry is None:
                raise NotFoundError(f"Parcel scan entry {entry_id} not found")
            self._upsert(entry)
        return entry

    def list_entries(
        self,
        *,
        date_added: Optional[date] = None,
        courier_id: Optional[str] = None,
        round_id: Optional[str] = None,
    ) -> list[ParcelScanEntry]:
        self._ensure_loaded()
        out = [
            e
            for e in self._store.values()
            if (date_added is None or e.date_added == date_added)
            and (not courier_id or e.courier_id == courier_id)
            and (not round_id or e.round_id == str(round_id))
        ]
        out.sort(key=lambda e: e.created_at or datetime.min, reverse=True)
        return out

    def snapshot(self) -> tuple[ParcelScanEntry, ...]:
        """Immutable view of the current ledger state for report builders."""
        self._ensure_loaded()
        return tuple(self._store.values())

    def log_rows(self, entries: Iterable[ParcelScanEntry]) -> list[ParcelLogRow]:
        rows: list[ParcelLogRow] = []
        for e in entries:
            client = self._registries.client(e.client_id)
            courier = self._registries.courier(e.courier_id)
            sorter = self._registries.team_member(e.sorter_team_member_id)
            rows.append(
                ParcelLogRow(
                    entry=e,
                    client_name=client.name if client else None,
                    courier_name=courier.name if courier else None,
                    sorter_name=sorter.name if sorter else None,
                )
            )
        return rows

    def additional_details(self, date_added: date) -> list[ParcelScanEntry]:
        """Entries logged on ``date_added`` that carry carry-forward, misroute or rejection details."""
        return [
            e
            for e in self.list_entries(date_added=date_added)
            if self._rules.for_scan_type(e.scan_type).has_details(e)
        ]

    # Validation
    def prepare(self, candidate: NewParcelScan) -> NewParcelScan:
        """Apply input defaults and keep only the detail field matching the scan type."""

        fields = {name: getattr(candidate, name) for name in DETAIL_FIELDS}
        fields = self._rules.for_scan_type(candidate.scan_type).normalize(fields)

        recovery_date = candidate.recovery_date
        if candidate.is_recovered and recovery_date is None:
            recovery_date = self._clock().date()
        if not candidate.is_recovered:
            recovery_date = None

        return replace(
            candidate,
            barcode=normalize_barcode(candidate.barcode),
            time_scanned=candidate.time_scanned or self._clock(),
            recovery_date=recovery_date,
            **fields,
        )

    def validation_errors(self, candidate) -> list[str]:
        errors: list[str] = []
        if not is_valid_barcode(candidate.barcode):
            errors.append(f"Barcode must be {BARCODE_LENGTH} letters or digits.")

        checks = (
            ("round_id", "Round", self._registries.round),
            ("courier_id", "Courier", self._registries.courier),
            ("sorter_team_member_id", "Sorter", self._registries.team_member),
            ("client_id", "Client", self._registries.client),
        )
        for attr, label, lookup in checks:
            value = getattr(candidate, attr)
            if not is_present(value):
                errors.append(f"{label} is required.")
            elif lookup(value) is None:
                errors.append(f"{label} {value} does not exist.")
        errors.extend(self._rules.for_scan_type(candidate.scan_type).validation_errors(candidate, self._registries))
        return errors

    def validate(self, candidate: NewParcelScan) -> NewParcelScan:
        """Single-record validation: raises before anything is persisted."""
        prepared = self.prepare(candidate)
        errors = self.validation_errors(prepared)
        if errors:
            raise ValidationError(" ".join(errors))
        return prepared

    # Mutations
    def append(self, candidates: Sequence[NewParcelScan]) -> AppendResult:
        """Persist the valid subset of ``candidates`` in one batch call.

        Invalid rows are dropped, not reported as errors; the caller reads
        ``AppendResult.skipped``.
        """

        valid: list[NewParcelScan] = []
        for c in candidates:
            prepared = self.prepare(c)
            errors = self.validation_errors(prepared)
            if errors:
                logger.debug("Skipping parcel %r: %s", prepared.barcode, " ".join(errors))
                continue
            valid.append(prepared)

        persisted: Sequence[ParcelScanEntry] = []
        if valid:
            persisted = self._parcels.create_many(valid)
            self._ensure_loaded()
            for e in persisted:
                self._upsert(e)

        result = AppendResult(persisted=list(persisted), submitted=len(candidates))
        logger.info("Missing parcels appended: persisted=%d skipped=%d", len(result.persisted), result.skipped)
        return result

    def merged_with(self, entry_id: str, patch: dict) -> tuple[ParcelScanEntry, dict]:
        """Return (current entry, full field update) after scan-type and recovery normalization."""

        current = self.get(entry_id)
        fields = dict(patch)
        if "barcode" in fields:
            fields["barcode"] = normalize_barcode(fields["barcode"])

        scan_type = fields.get("scan_type") or current.scan_type
        if "scan_type" in fields or any(k in fields for k in DETAIL_FIELDS):
            details = {k: fields.get(k, getattr(current, k)) for k in DETAIL_FIELDS}
            fields.update(self._rules.for_scan_type(scan_type).normalize(details))

        if "is_recovered" in fields:
            if fields["is_recovered"]:
                fields["recovery_date"] = fields.get("recovery_date") or current.recovery_date or self._clock().date()
            else:
                fields["recovery_date"] = None
        elif "recovery_date" in fields:
            # recovery_date follows is_recovered, never the other way round.
            fields.pop("recovery_date")

        return current, fields

    def _checked_fields(self, entry_id: str, patch: dict) -> dict:
        if not patch:
            raise ValidationError("No fields provided for update")
        current, fields = self.merged_with(entry_id, patch)
        errors = self.validation_errors(replace(current, **fields))
        if errors:
            raise ValidationError(" ".join(errors))
        return fields

    def check_edit(self, entry_id: str, patch: dict) -> ParcelScanEntry:
        """Validate an edit without applying it; returns the entry as it would be stored."""
        return replace(self.get(entry_id), **self._checked_fields(entry_id, patch))

    def edit(self, entry_id: str, patch: dict) -> ParcelScanEntry:
        """Apply a partial correction to one entry.

        Escalation is the caller's job: a patch that moves an unrecovered
        parcel onto a high-priority client must come through the workflow.
        """

        fields = self._checked_fields(entry_id, patch)
        updated = self._parcels.update_fields(entry_id, fields)
        if updated is None:
            raise NotFoundError(f"Parcel scan entry {entry_id} not found")
        logger.info("Parcel %s edited (%s)", entry_id, ", ".join(sorted(fields)))
        return self._upsert(updated)

    def toggle_recovered(self, entry_id: str, recovered: bool, *, notes: Optional[str] = None) -> ParcelScanEntry:
        self.get(entry_id)
        fields: dict = {
            "is_recovered": bool(recovered),
            "recovery_date": self._clock().date() if recovered else None,
        }
        if notes is not None:
            fields["recovery_notes"] = notes
        updated = self._parcels.update_fields(entry_id, fields)
        if updated is None:
            raise NotFoundError(f"Parcel scan entry {entry_id} not found")
        logger.info("Parcel %s marked %s", entry_id, "recovered" if recovered else "missing")
        return self._upsert(updated)
