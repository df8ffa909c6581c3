"""Booking → InvoiceRequest conversion.

Builds the invoice request a reviewed booking turns into and persists it
together with the booking's back-reference. Identifiers are pre-checked by
the generator, but the unique fields on InvoiceRequest decide: a conflict
raised by the repository triggers regeneration, up to ``CONFLICT_RETRIES``
times.
"""

import structlog
from protean.exceptions import InvalidStateError, ValidationError
from protean.utils.globals import current_domain
from protean.utils.query import Q

from logistics.booking.booking import Booking
from logistics.identifiers import (
    generate_unique_invoice_number,
    generate_unique_tracking_number,
)
from logistics.invoice_request.invoice_request import InvoiceRequest, ShipmentType, Verification
from logistics.routes import normalize_service_code

logger = structlog.get_logger(__name__)

CONFLICT_RETRIES = 3

DOCUMENT_KEYWORDS = ("document", "documents", "paper", "papers", "letter", "letters", "file", "files")

_IDENTIFIER_FIELDS = {"tracking_code", "invoice_number"}


# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------
def commodity_label(item: dict) -> str:
    return item.get("commodity") or item.get("name") or item.get("description") or ""


def shipment_type_for(items: list[dict]) -> str:
    """DOCUMENT when any item reads like paperwork, else NON_DOCUMENT."""
    for item in items:
        label = commodity_label(item).lower()
        if any(keyword in label for keyword in DOCUMENT_KEYWORDS):
            return ShipmentType.DOCUMENT.value
    return ShipmentType.NON_DOCUMENT.value


def listed_commodities(items: list[dict]) -> str:
    entries = []
    for item in items:
        label = commodity_label(item)
        qty = item.get("qty") or item.get("quantity")
        entry = f"{label} (Qty: {qty})" if qty else label
        if entry:
            entries.append(entry)
    return ", ".join(entries)


def _decimal(value) -> float | None:
    try:
        return round(float(value), 2)
    except (TypeError, ValueError):
        return None


def verification_boxes(booking) -> list[dict]:
    """Boxes pre-filled for operations from the booking's boxes or items."""
    if booking.boxes:
        source = booking.boxes
    else:
        source = booking.items or []

    boxes = []
    for index, entry in enumerate(source, start=1):
        boxes.append(
            {
                "items": entry.get("items") or commodity_label(entry) or f"Item {index}",
                "length": _decimal(entry.get("length")),
                "width": _decimal(entry.get("width")),
                "height": _decimal(entry.get("height")),
                "vm": _decimal(entry.get("vm") or entry.get("volume")),
            }
        )
    return boxes


def _place(explicit: str | None, party) -> str:
    if explicit:
        return explicit
    if party is None:
        return ""
    return party.address or party.country or ""


def build_invoice_request(booking, invoice_number: str, tracking_code: str) -> InvoiceRequest:
    """Derive a SUBMITTED invoice request from a reviewed booking."""
    sender = booking.sender
    receiver = booking.receiver
    items = booking.items or []
    boxes = verification_boxes(booking)
    commodities = listed_commodities(items)
    number_of_boxes = booking.number_of_boxes or len(boxes) or len(items) or 1
    destination_place = _place(booking.destination_place, receiver)

    return InvoiceRequest.create(
        invoice_number=invoice_number,
        tracking_code=tracking_code,
        service_code=normalize_service_code(booking.service or booking.service_code),
        booking_id=str(booking.id),
        booking_snapshot=booking.snapshot(),
        customer_name=sender.display_name if sender else "",
        customer_phone=sender.phone if sender else None,
        customer_email=sender.email if sender else None,
        receiver_name=receiver.display_name if receiver else "",
        receiver_phone=receiver.phone if receiver else None,
        receiver_company=receiver.company if receiver else None,
        receiver_address=(receiver.address if receiver else None) or destination_place,
        origin_place=_place(booking.origin_place, sender),
        destination_place=destination_place,
        shipment_type=shipment_type_for(items),
        listed_commodities=commodities,
        number_of_boxes=number_of_boxes,
        boxes=boxes,
        weight=booking.weight,
        insured=bool(booking.insured),
        declared_amount=booking.declared_amount,
        is_leviable=True,
        notes=booking.notes or "",
        verification=Verification(
            listed_commodities=commodities,
            boxes=boxes,
            number_of_boxes=number_of_boxes,
        ),
    )


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------
def _claimed_by_invoice_request(tracking_code: str) -> bool:
    query = current_domain.repository_for(InvoiceRequest)._dao.query
    return query.filter(Q(tracking_code=tracking_code) | Q(awb_number=tracking_code)).count() > 0


def tracking_code_for(booking, reuse_booking_awb: bool = True) -> str:
    """The booking's own AWB when still free, otherwise a fresh one."""
    service_code = normalize_service_code(booking.service or booking.service_code)
    awb = (booking.awb or "").strip()
    if reuse_booking_awb and awb:
        if not _claimed_by_invoice_request(awb):
            return awb
        logger.warning(
            "Booking AWB already claimed, generating a new one",
            booking_id=str(booking.id),
            awb=awb,
        )
    return generate_unique_tracking_number(service_code)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------
def _assert_not_converted(booking) -> None:
    if booking.is_converted:
        raise InvalidStateError(
            f"Booking {booking.id} was already converted to invoice request {booking.converted_to_invoice_request_id}"
        )

    # Re-read the stored booking right before writing
    stored = current_domain.repository_for(Booking)._dao.query.filter(id=str(booking.id)).all().first
    if stored is not None and stored.converted_to_invoice_request_id:
        raise InvalidStateError(
            f"Booking {booking.id} was already converted to invoice request {stored.converted_to_invoice_request_id}"
        )


def convert_booking(booking) -> InvoiceRequest:
    """Create the booking's invoice request and link it back. Runs once per booking."""
    _assert_not_converted(booking)

    ir_repo = current_domain.repository_for(InvoiceRequest)
    reuse_booking_awb = True
    for attempt in range(CONFLICT_RETRIES + 1):
        ir = build_invoice_request(
            booking,
            invoice_number=generate_unique_invoice_number(),
            tracking_code=tracking_code_for(booking, reuse_booking_awb),
        )
        try:
            ir_repo.add(ir)
            break
        except ValidationError as exc:
            conflicts = _IDENTIFIER_FIELDS & set(exc.messages)
            if "booking_id" in exc.messages:
                raise InvalidStateError(f"Booking {booking.id} already has an invoice request") from exc
            if not conflicts or attempt == CONFLICT_RETRIES:
                raise
            logger.warning(
                "Identifier conflict on insert, regenerating",
                booking_id=str(booking.id),
                fields=sorted(conflicts),
                attempt=attempt + 1,
            )
            reuse_booking_awb = False

    booking.link_invoice_request(str(ir.id))
    current_domain.repository_for(Booking).add(booking)

    logger.info(
        "Booking converted to invoice request",
        booking_id=str(booking.id),
        invoice_request_id=str(ir.id),
        invoice_number=ir.invoice_number,
        tracking_code=ir.tracking_code,
        service_code=ir.service_code,
    )
    return ir
