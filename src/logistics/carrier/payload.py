"""Carrier shipment payload built from an invoice request.

Country names typed by customers are mapped to ISO codes here, at the
boundary; the route's own countries are the fallback.
"""

import math
from datetime import UTC, datetime

from logistics.routes import ROUTE_COUNTRIES, Route, country_code, route_for

NOT_AVAILABLE = "N/A"
MIN_WEIGHT_KG = 0.1
CURRENCY = "AED"
HS_CODE_PLACEHOLDER = "N/A"


def estimate_dimensions(weight_kg: float) -> dict:
    """Cube edge in cm for ``weight_kg`` at water density, in 10 cm steps, min 10 cm."""
    side = 10
    if weight_kg and weight_kg > 0:
        side = max(10, math.ceil(math.pow(weight_kg * 1000, 1 / 3) / 10) * 10)
    return {"length": side, "width": side, "height": side, "unit": "CM"}


def _chargeable_weight(ir) -> float:
    weight = None
    if ir.verification is not None and ir.verification.chargeable_weight is not None:
        weight = ir.verification.chargeable_weight
    elif ir.weight is not None:
        weight = ir.weight
    return max(weight or 0.0, MIN_WEIGHT_KG)


def _party(snapshot: dict, key: str) -> dict:
    party = (snapshot or {}).get(key)
    return party if isinstance(party, dict) else {}


def build_shipment_payload(ir, pickup_date: datetime | None = None) -> dict:
    route = route_for(ir.service_code) or Route.PH_TO_UAE
    default_origin, default_destination = ROUTE_COUNTRIES[route]

    sender = _party(ir.booking_snapshot, "sender")
    receiver = _party(ir.booking_snapshot, "receiver")
    origin_country = country_code(sender.get("country"), default_origin)
    destination_country = country_code(receiver.get("country"), default_destination)

    weight = _chargeable_weight(ir)
    description = ir.shipment_type or NOT_AVAILABLE

    return {
        "trackingNumber": ir.tracking_code,
        "uhawb": NOT_AVAILABLE,
        "sender": {
            "name": ir.customer_name or NOT_AVAILABLE,
            "email": ir.customer_email or NOT_AVAILABLE,
            "phone": ir.customer_phone or NOT_AVAILABLE,
            "countryCode": origin_country,
            "city": sender.get("city") or NOT_AVAILABLE,
            "line1": sender.get("address") or ir.origin_place or NOT_AVAILABLE,
        },
        "receiver": {
            "name": ir.receiver_name or NOT_AVAILABLE,
            "email": receiver.get("email") or NOT_AVAILABLE,
            "phone": ir.receiver_phone or NOT_AVAILABLE,
            "countryCode": destination_country,
            "city": receiver.get("city") or NOT_AVAILABLE,
            "line1": ir.receiver_address or ir.destination_place or NOT_AVAILABLE,
        },
        "details": {
            "weight": {"unit": "KG", "value": weight},
            "declaredWeight": {"unit": "KG", "value": weight},
            "deliveryCharges": {
                "currencyCode": CURRENCY,
                "amount": ir.total_amount or ir.invoice_amount or 0.0,
            },
            "pickupDate": (pickup_date or datetime.now(UTC)).isoformat(),
            "shippingType": "DOM" if origin_country == destination_country else "INT",
            "productCategory": description,
            "productType": NOT_AVAILABLE,
            "descriptionOfGoods": ir.listed_commodities or description,
            "dimensions": estimate_dimensions(weight),
            "numberOfPieces": ir.number_of_boxes or 1,
        },
        "items": [
            {
                "description": description,
                "countryOfOrigin": origin_country,
                "quantity": ir.number_of_boxes or 1,
                "hsCode": HS_CODE_PLACEHOLDER,
            }
        ],
    }
