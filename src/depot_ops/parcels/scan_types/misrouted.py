from __future__ import annotations

from .base import ScanTypeRule


class MisroutedRule(ScanTypeRule):
    """Parcel sent to the wrong delivery unit."""

    detail_field = "misrouted_du_id"
    detail_label = "Misrouted delivery unit"
    registry_lookup = "delivery_unit"
