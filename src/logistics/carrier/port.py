"""Carrier port — abstract interface for the third-party shipment API.

Sync code programs against the port; adapters are swapped via configuration.
Adapters report carrier-side failures in the returned dict under ``error``
rather than raising.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class CarrierPort(ABC):
    """Abstract interface for carrier adapters."""

    @abstractmethod
    def create_shipment(self, payload: dict) -> dict:
        """Register a shipment with the carrier.

        Returns:
            dict with keys: uhawb, tracking_number (or error)
        """
        ...

    @abstractmethod
    def update_status(
        self,
        tracking_number: str,
        status: str,
        delivery_date: datetime | None = None,
        notes: str | None = None,
    ) -> dict:
        """Push a status change for a shipment.

        Returns:
            dict with keys: updated (bool), status (or error)
        """
        ...
