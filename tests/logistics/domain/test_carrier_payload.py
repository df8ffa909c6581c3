"""Tests for the carrier shipment payload."""

from datetime import UTC, datetime

from logistics.carrier.payload import build_shipment_payload, estimate_dimensions
from logistics.invoice_request.invoice_request import InvoiceRequest, Verification


def _make_request(**overrides):
    defaults = {
        "invoice_number": "INV-000777",
        "tracking_code": "PHL1AB2CD34EF5G",
        "service_code": "PH_TO_UAE",
        "customer_name": "Maria Santos",
        "customer_phone": "+639171234567",
        "receiver_name": "Ahmed Khan",
        "receiver_phone": "+971501234567",
        "receiver_address": "Al Barsha 1",
        "shipment_type": "NON_DOCUMENT",
        "number_of_boxes": 2,
        "booking_snapshot": {
            "sender": {"country": "Philippines", "city": "Manila"},
            "receiver": {"country": "United Arab Emirates", "city": "Dubai"},
        },
    }
    defaults.update(overrides)
    return InvoiceRequest.create(**defaults)


class TestEstimateDimensions:
    def test_minimum_ten_cm(self):
        assert estimate_dimensions(0.1)["length"] == 10
        assert estimate_dimensions(0)["length"] == 10

    def test_rounded_up_to_ten_cm(self):
        # cube root of 27000 g is 30
        assert estimate_dimensions(27)["length"] == 30
        # cube root of 28000 g is ~30.4
        assert estimate_dimensions(28)["length"] == 40


class TestBuildShipmentPayload:
    def test_international_shipment(self):
        payload = build_shipment_payload(_make_request())
        assert payload["trackingNumber"] == "PHL1AB2CD34EF5G"
        assert payload["uhawb"] == "N/A"
        assert payload["sender"]["countryCode"] == "PH"
        assert payload["receiver"]["countryCode"] == "AE"
        assert payload["details"]["shippingType"] == "INT"
        assert payload["details"]["deliveryCharges"]["currencyCode"] == "AED"
        assert payload["items"] == [
            {"description": "NON_DOCUMENT", "countryOfOrigin": "PH", "quantity": 2, "hsCode": "N/A"}
        ]

    def test_domestic_when_countries_match(self):
        ir = _make_request(
            booking_snapshot={"sender": {"country": "UAE"}, "receiver": {"country": "Dubai"}},
        )
        assert build_shipment_payload(ir)["details"]["shippingType"] == "DOM"

    def test_route_countries_are_the_fallback(self):
        ir = _make_request(service_code="UAE_TO_PH", booking_snapshot={})
        payload = build_shipment_payload(ir)
        assert payload["sender"]["countryCode"] == "AE"
        assert payload["receiver"]["countryCode"] == "PH"

    def test_weight_floor(self):
        payload = build_shipment_payload(_make_request(weight=0.0))
        assert payload["details"]["weight"]["value"] == 0.1

    def test_chargeable_weight_preferred(self):
        ir = _make_request(weight=3.0, verification=Verification(chargeable_weight=12.5))
        assert build_shipment_payload(ir)["details"]["weight"]["value"] == 12.5

    def test_pickup_date_is_iso(self):
        pickup = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)
        payload = build_shipment_payload(_make_request(), pickup_date=pickup)
        assert payload["details"]["pickupDate"] == "2026-03-01T09:30:00+00:00"
