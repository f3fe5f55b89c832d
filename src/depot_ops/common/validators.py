from __future__ import annotations

import re
from typing import Optional

from ..core.constants import BARCODE_LENGTH

_BARCODE_RE = re.compile(rf"^[A-Z0-9]{{{BARCODE_LENGTH}}}$")


def normalize_barcode(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def is_valid_barcode(value: Optional[str]) -> bool:
    return bool(value) and _BARCODE_RE.match(value) is not None


def is_present(value) -> bool:
    """Foreign keys are present when non-empty text or a non-zero number."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return value != 0
