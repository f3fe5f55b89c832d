from __future__ import annotations

from .base import ScanTypeRule


class RejectedRule(ScanTypeRule):
    """Parcel refused by a courier."""

    detail_field = "rejected_courier_id"
    detail_label = "Rejecting courier"
    registry_lookup = "courier"
