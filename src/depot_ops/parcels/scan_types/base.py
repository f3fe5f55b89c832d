from __future__ import annotations

from abc import ABC
from typing import Optional

from ..model import DETAIL_FIELDS


class ScanTypeRule(ABC):
    """Strategy Pattern: which optional detail field a scan type carries.

    Every other detail field is cleared so an entry only ever holds the
    field set consistent with its scan type. The kept field is required
    and must name a known registry row.
    """

    detail_field: Optional[str] = None
    detail_label: str = ""
    # RegistryService method that resolves the detail id.
    registry_lookup: Optional[str] = None

    def normalize(self, fields: dict) -> dict:
        out = dict(fields)
        for name in DETAIL_FIELDS:
            if name != self.detail_field:
                out[name] = None
        return out

    def has_details(self, entry) -> bool:
        if not self.detail_field:
            return False
        value = getattr(entry, self.detail_field, None)
        return bool(value and str(value).strip())

    def validation_errors(self, candidate, registries) -> list[str]:
        if not self.detail_field:
            return []
        if not self.has_details(candidate):
            return [f"{self.detail_label} is required."]
        value = getattr(candidate, self.detail_field)
        if getattr(registries, self.registry_lookup)(value) is None:
            return [f"{self.detail_label} {value} does not exist."]
        return []
