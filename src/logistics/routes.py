"""Route (service) codes and the boundary mapping tables around them.

The lifecycle works with an explicit route code. Free text (a booking's
``service`` label, a country name typed by a customer) is converted here,
once, at the edge.
"""

import re
from enum import Enum


class Route(Enum):
    PH_TO_UAE = "PH_TO_UAE"
    UAE_TO_PH = "UAE_TO_PH"


# UAE_TO_PINAS is the historical name of the UAE -> Philippines service
_UAE_TO_PH_ALIASES = ("UAE_TO_PH", "UAE_TO_PINAS")

# Explicit country name -> ISO 3166 alpha-2 table used for carrier payloads
COUNTRY_CODES = {
    "uae": "AE",
    "ae": "AE",
    "united arab emirates": "AE",
    "dubai": "AE",
    "abu dhabi": "AE",
    "sharjah": "AE",
    "philippines": "PH",
    "ph": "PH",
    "pinas": "PH",
    "manila": "PH",
}

# Origin/destination countries implied by each route
ROUTE_COUNTRIES = {
    Route.PH_TO_UAE: ("PH", "AE"),
    Route.UAE_TO_PH: ("AE", "PH"),
}


def normalize_service_code(value: str | None) -> str:
    """Normalize a free-text service label into a service code.

    ``"ph-to-uae"`` becomes ``PH_TO_UAE``; anything starting with a known
    route name collapses onto that route; other labels are kept in their
    normalized (upper snake case) form.
    """
    if not value:
        return ""
    normalized = re.sub(r"[\s-]+", "_", str(value).strip().upper())
    for route in Route:
        if normalized.startswith(route.value):
            return route.value
    return normalized


def is_ph_to_uae(service_code: str | None) -> bool:
    return Route.PH_TO_UAE.value in (service_code or "").upper()


def is_uae_to_ph(service_code: str | None) -> bool:
    code = (service_code or "").upper()
    return any(alias in code for alias in _UAE_TO_PH_ALIASES)


def route_for(service_code: str | None) -> Route | None:
    """Resolve a service code to a Route, or None for unrecognised codes."""
    if is_ph_to_uae(service_code):
        return Route.PH_TO_UAE
    if is_uae_to_ph(service_code):
        return Route.UAE_TO_PH
    return None


def country_code(name: str | None, default: str) -> str:
    """Map a country (or well-known city) name to its ISO code."""
    if not name or name.strip() in ("", "N/A"):
        return default
    return COUNTRY_CODES.get(name.strip().lower(), default)
