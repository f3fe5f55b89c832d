from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from ..core.constants import DEFAULT_CARRIER_SLUG
from ..core.exceptions import TrackingError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.aftership.com/v4"


@dataclass(frozen=True)
class TrackingStatus:
    tag: str
    subtag_message: str


PENDING = TrackingStatus(tag="Pending", subtag_message="Awaiting carrier information")


class AfterShipClient:
    """Lookup-or-create tracking status for one barcode on one carrier slug."""

    def __init__(
        self,
        api_key: str,
        *,
        slug: str = DEFAULT_CARRIER_SLUG,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.slug = slug
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session: requests.Session = session or requests.Session()

    @property
    def _headers(self) -> dict:
        return {"as-api-key": self.api_key, "Content-Type": "application/json"}

    def get_tracking(self, barcode: str) -> Optional[dict]:
        url = f"{self.base_url}/trackings/{self.slug}/{barcode}"
        try:
            response = self.session.get(url, headers=self._headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TrackingError(f"Tracking lookup failed for {barcode}: {exc}") from exc
        if response.status_code == 404:
            return None
        if not response.ok:
            raise TrackingError(f"Tracking lookup failed for {barcode}: status={response.status_code}")
        return (response.json().get("data") or {}).get("tracking")

    def create_tracking(self, barcode: str) -> dict:
        payload = {"tracking": {"tracking_number": barcode, "slug": self.slug}}
        try:
            response = self.session.post(
                f"{self.base_url}/trackings", json=payload, headers=self._headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise TrackingError(f"Tracking create failed for {barcode}: {exc}") from exc
        if not response.ok:
            raise TrackingError(f"Tracking create failed for {barcode}: status={response.status_code}")
        return response.json()

    def get_or_create_status(self, barcode: str) -> TrackingStatus:
        """Look the barcode up; on 404 register it and look again.

        A tracking that was just created but is not visible yet reads as ``PENDING``.
        """

        tracking = self.get_tracking(barcode)
        if tracking is None:
            logger.debug("Tracking %s not found; creating it", barcode)
            self.create_tracking(barcode)
            tracking = self.get_tracking(barcode)
            if tracking is None:
                return PENDING
        return TrackingStatus(tag=tracking.get("tag") or "", subtag_message=tracking.get("subtag_message") or "")
