"""EMPOST carrier adapter — HTTP client for the EMPOST shipment API.

Every request carries a bounded timeout. Transport failures, timeouts and
non-2xx responses are returned as ``{"error": ...}`` results so callers can
log them and move on.
"""

import os
from datetime import datetime

import requests
import structlog

from logistics.carrier.port import CarrierPort

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class EmpostCarrier(CarrierPort):
    def __init__(self, base_url: str, token: str | None = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_environment(cls):
        base_url = os.environ.get("EMPOST_API_URL")
        if not base_url:
            raise ValueError("EMPOST_API_URL must be set when CARRIER_ADAPTER=empost")
        return cls(
            base_url=base_url,
            token=os.environ.get("EMPOST_API_TOKEN"),
            timeout=float(os.environ.get("CARRIER_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
        )

    def _request(self, method: str, path: str, body: dict) -> dict:
        url = f"{self.base_url}{path}"
        logger.debug("Calling carrier API", method=method, url=url)
        try:
            response = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.exceptions.Timeout:
            return {"error": f"Timed out after {self.timeout}s"}
        except requests.exceptions.RequestException as exc:
            return {"error": str(exc)}

        if not response.ok:
            return {"error": f"HTTP {response.status_code}: {response.text[:500]}"}
        try:
            return response.json()
        except ValueError:
            return {}

    def create_shipment(self, payload: dict) -> dict:
        result = self._request("POST", "/api/v1/shipment/create", payload)
        if "error" in result:
            return {"uhawb": None, "tracking_number": payload.get("trackingNumber"), "error": result["error"]}

        data = result.get("data") or result
        return {"uhawb": data.get("uhawb"), "tracking_number": payload.get("trackingNumber")}

    def update_status(self, tracking_number, status, delivery_date: datetime | None = None, notes=None) -> dict:
        body = {"trackingNumber": tracking_number, "status": status}
        if delivery_date is not None:
            body["deliveryDate"] = delivery_date.isoformat()
        if notes:
            body["notes"] = notes

        result = self._request("PUT", "/api/v1/shipment/status", body)
        if "error" in result:
            return {"updated": False, "status": status, "error": result["error"]}
        return {"updated": True, "status": status}
