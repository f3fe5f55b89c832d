from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from ..common.validators import is_valid_barcode
from ..core.constants import DEFAULT_REFRESH_COOLDOWN_SECONDS, DEFAULT_TRACKING_MAX_WORKERS
from ..parcels.model import ParcelScanEntry
from .client import AfterShipClient, TrackingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParcelTracking:
    """Last known carrier status for one parcel. ``error`` is set when the last fetch failed."""

    parcel_id: str
    barcode: str
    status: Optional[TrackingStatus] = None
    error: Optional[str] = None
    checked_at: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "parcel_id": self.parcel_id,
            "barcode": self.barcode,
            "status": self.status.tag if self.status else None,
            "note": self.status.subtag_message if self.status else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class RefreshReport:
    refreshed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    throttled: bool = False
    retry_after: float = 0.0

    def to_dict(self) -> dict:
        return {
            "refreshed": list(self.refreshed),
            "failed": list(self.failed),
            "throttled": self.throttled,
            "retry_after": round(self.retry_after, 1),
        }


class TrackingRefresher:
    """Best-effort tracking status per parcel.

    Fetches run on a thread pool and are joined all-settled. ``auto_check``
    touches each parcel once per session; ``refresh_all`` is the manual
    button and honours the cooldown between presses.
    """

    def __init__(
        self,
        client: AfterShipClient,
        *,
        cooldown_seconds: float = DEFAULT_REFRESH_COOLDOWN_SECONDS,
        max_workers: int = DEFAULT_TRACKING_MAX_WORKERS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._cooldown = cooldown_seconds
        self._max_workers = max_workers
        self._clock = clock
        self._lock = threading.Lock()
        self._processed: set[str] = set()
        self._last_manual: Optional[float] = None
        self._statuses: dict[str, ParcelTracking] = {}

    def status_for(self, parcel_id: str) -> Optional[ParcelTracking]:
        return self._statuses.get(parcel_id)

    def statuses(self) -> dict[str, ParcelTracking]:
        return dict(self._statuses)

    @staticmethod
    def _eligible(entries: Iterable[ParcelScanEntry]) -> list[ParcelScanEntry]:
        return [e for e in entries if e.id and is_valid_barcode(e.barcode)]

    def auto_check(self, entries: Iterable[ParcelScanEntry]) -> RefreshReport:
        with self._lock:
            targets = [e for e in self._eligible(entries) if e.id not in self._processed]
            self._processed.update(e.id for e in targets)
        return self._run(targets)

    def refresh_all(self, entries: Iterable[ParcelScanEntry]) -> RefreshReport:
        with self._lock:
            now = self._clock()
            if self._last_manual is not None and now - self._last_manual < self._cooldown:
                wait = self._cooldown - (now - self._last_manual)
                logger.info("Tracking refresh throttled; retry in %.0fs", wait)
                return RefreshReport(throttled=True, retry_after=wait)
            self._last_manual = now
            targets = self._eligible(entries)
            self._processed = {e.id for e in targets}
        return self._run(targets)

    def _fetch(self, entry: ParcelScanEntry) -> ParcelTracking:
        status = self._client.get_or_create_status(entry.barcode)
        return ParcelTracking(parcel_id=entry.id, barcode=entry.barcode, status=status, checked_at=self._clock())

    def _run(self, targets: list[ParcelScanEntry]) -> RefreshReport:
        if not targets:
            return RefreshReport()

        refreshed: list[str] = []
        failed: list[str] = []
        workers = max(1, min(self._max_workers, len(targets)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(self._fetch, e): e for e in targets}
            for future in as_completed(futures):
                entry = futures[future]
                try:
                    self._statuses[entry.id] = future.result()
                    refreshed.append(entry.id)
                except Exception as exc:
                    logger.warning("Tracking refresh failed for %s: %s", entry.barcode, exc)
                    self._statuses[entry.id] = ParcelTracking(
                        parcel_id=entry.id, barcode=entry.barcode, error=str(exc), checked_at=self._clock()
                    )
                    failed.append(entry.id)

        logger.info("Tracking refreshed: ok=%d failed=%d", len(refreshed), len(failed))
        return RefreshReport(refreshed=refreshed, failed=failed)
