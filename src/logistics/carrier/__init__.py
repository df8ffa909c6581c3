"""Carrier adapter abstraction — the shipment/invoice API that mirrors local state."""

import os

_carrier_instance = None


def get_carrier():
    """Return the configured carrier adapter (singleton).

    Uses FakeCarrier by default. Set CARRIER_ADAPTER=empost to talk to the
    EMPOST API.
    """
    global _carrier_instance
    if _carrier_instance is None:
        adapter = os.environ.get("CARRIER_ADAPTER", "fake")
        if adapter == "fake":
            from logistics.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier()
        elif adapter == "empost":
            from logistics.carrier.empost_adapter import EmpostCarrier

            _carrier_instance = EmpostCarrier.from_environment()
        else:
            raise ValueError(f"Unknown carrier adapter: {adapter}")
    return _carrier_instance


def reset_carrier():
    """Reset the carrier singleton (useful for testing)."""
    global _carrier_instance
    _carrier_instance = None
