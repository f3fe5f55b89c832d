from __future__ import annotations

from .base import ScanTypeRule


class CarryForwardRule(ScanTypeRule):
    """Parcel kept by a courier for a later attempt."""

    detail_field = "cfwd_courier_id"
    detail_label = "Carry-forward courier"
    registry_lookup = "courier"
