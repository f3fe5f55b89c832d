from __future__ import annotations

from .base import ScanTypeRule


class StandardRule(ScanTypeRule):
    """Plain missing parcel; no detail field."""

    detail_field = None
