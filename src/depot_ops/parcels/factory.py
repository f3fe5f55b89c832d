from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import ScanType
from .scan_types.base import ScanTypeRule
from .scan_types.carry_forward import CarryForwardRule
from .scan_types.misrouted import MisroutedRule
from .scan_types.rejected import RejectedRule
from .scan_types.standard import StandardRule


@dataclass
class ScanTypeRuleFactory:
    """Factory Pattern: choose the detail-field rule for a scan type."""

    def for_scan_type(self, scan_type: ScanType) -> ScanTypeRule:
        if scan_type == ScanType.CARRY_FORWARD:
            return CarryForwardRule()
        if scan_type == ScanType.MISROUTED:
            return MisroutedRule()
        if scan_type == ScanType.REJECTED:
            return RejectedRule()
        return StandardRule()
