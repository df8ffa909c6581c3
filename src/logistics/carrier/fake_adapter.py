"""Fake carrier adapter — deterministic carrier for testing and development.

Issues mock UHAWB ids and records every call so tests can assert what was
sent. Configurable success/failure behavior for integration testing.
"""

from uuid import uuid4

from logistics.carrier.port import CarrierPort


class FakeCarrier(CarrierPort):
    """Fake carrier that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.raise_on_call = False
        self.shipments = []
        self.status_updates = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Carrier unavailable",
        raise_on_call: bool = False,
    ):
        """Configure the fake carrier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_on_call = raise_on_call

    def _check_connection(self):
        if self.raise_on_call:
            raise ConnectionError(self.failure_reason)

    def create_shipment(self, payload: dict) -> dict:
        self._check_connection()
        self.shipments.append(payload)
        if not self.should_succeed:
            return {"uhawb": None, "tracking_number": payload.get("trackingNumber"), "error": self.failure_reason}

        return {
            "uhawb": f"UHAWB-{uuid4().hex[:10].upper()}",
            "tracking_number": payload.get("trackingNumber"),
        }

    def update_status(self, tracking_number, status, delivery_date=None, notes=None) -> dict:
        self._check_connection()
        self.status_updates.append(
            {
                "tracking_number": tracking_number,
                "status": status,
                "delivery_date": delivery_date,
                "notes": notes,
            }
        )
        if not self.should_succeed:
            return {"updated": False, "status": status, "error": self.failure_reason}
        return {"updated": True, "status": status}
