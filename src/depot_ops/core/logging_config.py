from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | int = "INFO") -> None:
    """Configure root logging once for the process.

    Safe to call more than once; later calls only adjust the level.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not any(getattr(h, "_depot_ops", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._depot_ops = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level)

    # urllib3 is chatty at DEBUG when the tracking client retries.
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
