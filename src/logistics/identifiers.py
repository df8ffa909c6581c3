"""AWB tracking numbers and invoice numbers.

Candidates are checked against the store before use (tracking and invoice
fields are each queried under every spelling they have had). That check only
avoids collisions in the common case: two writers can still pick the same
candidate between check and insert, so the unique fields on InvoiceRequest
remain the authority and callers regenerate on a unique-constraint conflict.
"""

import secrets
import string
import time
from collections.abc import Callable

import structlog
from protean.utils.globals import current_domain
from protean.utils.query import Q

from logistics.routes import Route, is_ph_to_uae

logger = structlog.get_logger(__name__)

# L = letter, D = digit, e.g. PHL2VN3KT28US9H
AWB_PATTERN = "LLLDLLDLLDDLLDL"
PH_TO_UAE_PREFIX = "PHL"
INVOICE_PREFIX = "INV-"
MAX_ATTEMPTS = 100


def _timestamp_suffix() -> str:
    return str(time.time_ns() // 1_000_000)[-6:]


def generate_awb_number(prefix: str = "") -> str:
    """Generate a 15 character AWB; a prefix replaces the leading characters."""
    chars = [
        secrets.choice(string.ascii_uppercase) if slot == "L" else secrets.choice(string.digits)
        for slot in AWB_PATTERN
    ]
    return prefix + "".join(chars[len(prefix) :])


def generate_invoice_number() -> str:
    return f"{INVOICE_PREFIX}{secrets.randbelow(1_000_000):06d}"


def prefix_for(route_hint: Route | str | None) -> str:
    """AWB prefix for a route: PH -> UAE shipments carry ``PHL``."""
    if isinstance(route_hint, Route):
        route_hint = route_hint.value
    return PH_TO_UAE_PREFIX if is_ph_to_uae(route_hint) else ""


def tracking_number_in_use(candidate: str) -> bool:
    """Whether any invoice request or booking already holds this tracking number."""
    from logistics.booking.booking import Booking
    from logistics.invoice_request.invoice_request import InvoiceRequest

    requests = current_domain.repository_for(InvoiceRequest)._dao.query.filter(
        Q(tracking_code=candidate) | Q(awb_number=candidate)
    )
    if requests.count() > 0:
        return True
    return current_domain.repository_for(Booking)._dao.query.filter(awb=candidate).count() > 0


def invoice_number_in_use(candidate: str) -> bool:
    """Whether any invoice request or issued invoice already holds this number."""
    from logistics.invoice.invoice import Invoice
    from logistics.invoice_request.invoice_request import InvoiceRequest

    requests = current_domain.repository_for(InvoiceRequest)._dao.query.filter(
        Q(invoice_number=candidate) | Q(invoice_id=candidate)
    )
    if requests.count() > 0:
        return True
    return current_domain.repository_for(Invoice)._dao.query.filter(invoice_number=candidate).count() > 0


def _generate_unique(
    kind: str,
    generate: Callable[[], str],
    in_use: Callable[[str], bool],
    max_attempts: int,
) -> str:
    candidate = generate()
    for attempt in range(1, max_attempts + 1):
        if not in_use(candidate):
            return candidate
        if attempt < max_attempts:
            candidate = generate()

    fallback = candidate + _timestamp_suffix()
    logger.warning(
        "identifier_fallback_used",
        kind=kind,
        attempts=max_attempts,
        identifier=fallback,
    )
    return fallback


def generate_unique_tracking_number(
    route_hint: Route | str | None = None,
    in_use: Callable[[str], bool] | None = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """Generate an AWB not yet present in the store.

    After ``max_attempts`` collisions the last candidate is suffixed with a
    timestamp fragment and accepted; the result is then longer than 15
    characters but still unique in practice.
    """
    prefix = prefix_for(route_hint)
    return _generate_unique(
        "tracking_number",
        lambda: generate_awb_number(prefix),
        in_use or tracking_number_in_use,
        max_attempts,
    )


def generate_unique_invoice_number(
    in_use: Callable[[str], bool] | None = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """Generate an ``INV-NNNNNN`` number not yet present in the store."""
    return _generate_unique(
        "invoice_number",
        generate_invoice_number,
        in_use or invoice_number_in_use,
        max_attempts,
    )
