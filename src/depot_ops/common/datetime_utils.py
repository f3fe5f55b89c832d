from __future__ import annotations

from datetime import date, datetime

from ..core.constants import DISPLAY_DATE_FORMAT


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_display_date(value: str) -> date:
    """Parse DD/MM/YYYY (the log's dateAdded format) into date."""
    return datetime.strptime(value, DISPLAY_DATE_FORMAT).date()


def format_display_date(value: date) -> str:
    return value.strftime(DISPLAY_DATE_FORMAT)


def parse_timestamp(value) -> datetime:
    """Accept datetime or ISO-8601 text (a trailing 'Z' is allowed)."""
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def today_local() -> date:
    return now_local().date()
