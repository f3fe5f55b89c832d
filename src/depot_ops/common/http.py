from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import ChecklistError, NotFoundError, ValidationError
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)


def ok(data: Any, status: int = 200, **extra):
    body = {"data": data, "status": status}
    body.update(extra)
    return jsonify(body), status


def fail(message: str, status: int):
    return jsonify({"error": message, "status": status}), status


def handle_error(exc: Exception, action: str):
    """Map domain errors to status codes; anything unexpected is logged and hidden."""

    if isinstance(exc, ValidationError):
        return fail(str(exc), 400)
    if isinstance(exc, NotFoundError):
        return fail(str(exc), 404)
    if isinstance(exc, ChecklistError):
        return fail(str(exc), 409)
    logger.exception("Unexpected error while trying to %s", action)
    return fail(f"Failed to {action}", 500)


def json_body(default: Any = None) -> Any:
    data = request.get_json(silent=True)
    return default if data is None else data


def query_date(name: str = "date", *, required: bool = True) -> Optional[date]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        if required:
            raise ValidationError(f"Query parameter '{name}' is required (YYYY-MM-DD)")
        return None
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"Query parameter '{name}' must be YYYY-MM-DD")


def body_date(data: dict, name: str = "date") -> date:
    raw = str((data or {}).get(name) or "").strip()
    try:
        return parse_iso_date(raw[:10])
    except ValueError:
        raise ValidationError(f"'{name}' is required (YYYY-MM-DD)")
