"""Booking aggregate (CQRS) — a customer's shipment intent.

A booking is reviewed exactly once. A reviewed booking owns at most one
invoice request; the back-reference ``converted_to_invoice_request_id`` is
set when the request is created and never changes afterwards.

State Machine:
    NOT_REVIEWED → REVIEWED
    NOT_REVIEWED → REJECTED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import InvalidStateError, ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Dict,
    Float,
    Identifier,
    Integer,
    List,
    String,
    Text,
    ValueObject,
)

from logistics.booking.events import BookingConverted, BookingRejected, BookingReviewed, BookingSubmitted
from logistics.domain import logistics
from logistics.routes import normalize_service_code


class ReviewStatus(Enum):
    NOT_REVIEWED = "not_reviewed"
    REVIEWED = "reviewed"
    REJECTED = "rejected"


# Payloads that never leave the booking: excluded from every snapshot
IDENTITY_DOCUMENT_FIELDS = ("identity_documents", "images", "selfie")

_TRUE_STRINGS = {"true", "1", "yes", "y"}
_FALSE_STRINGS = {"false", "0", "no", "n", ""}


def coerce_flag(value) -> bool:
    """Interpret the many ways a yes/no flag arrives from booking forms."""
    if value is None:
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return bool(value)


@logistics.value_object(part_of="Booking")
class Party:
    """Sender or receiver contact and address block."""

    first_name = String(max_length=100)
    last_name = String(max_length=100)
    full_name = String(max_length=200)
    email = String(max_length=254)
    phone = String(max_length=50)
    company = String(max_length=200)
    address = String(max_length=500)
    city = String(max_length=100)
    country = String(max_length=100)
    delivery_option = String(max_length=50)

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}".strip()
        return self.full_name or ""


@logistics.aggregate
class Booking:
    sender = ValueObject(Party)
    receiver = ValueObject(Party)
    items = List()  # [{commodity, name, description, qty, length, width, height, weight}]
    boxes = List()  # [{items, length, width, height, vm}]
    service = String(max_length=100)
    service_code = String(max_length=50)
    awb = String(max_length=50)
    weight = Float(min_value=0.0)
    number_of_boxes = Integer(min_value=0)
    origin_place = String(max_length=500)
    destination_place = String(max_length=500)
    insured = Boolean(default=False)
    declared_amount = Float(min_value=0.0)
    notes = Text()
    otp = String(max_length=20)
    identity_documents = Dict()
    images = List()
    selfie = Text()
    review_status = String(
        max_length=20,
        choices=ReviewStatus,
        default=ReviewStatus.NOT_REVIEWED.value,
    )
    reviewed_by = String(max_length=100)
    reviewed_at = DateTime()
    rejection_reason = String(max_length=500)
    converted_to_invoice_request_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def submit(cls, **data):
        """Record a new customer booking in ``not_reviewed`` state."""
        now = datetime.now(UTC)
        data.setdefault("created_at", now)
        data["updated_at"] = now
        data["insured"] = coerce_flag(data.get("insured"))
        if not data.get("service_code"):
            data["service_code"] = normalize_service_code(data.get("service"))

        booking = cls(**data)
        booking.raise_(
            BookingSubmitted(
                booking_id=str(booking.id),
                service_code=booking.service_code or "",
                awb=booking.awb or "",
                submitted_at=now,
            )
        )
        return booking

    @property
    def is_converted(self) -> bool:
        return bool(self.converted_to_invoice_request_id)

    def review(self, reviewed_by: str | None = None) -> bool:
        """Mark the booking reviewed. Returns False if it already was."""
        current = ReviewStatus(self.review_status)
        if current == ReviewStatus.REVIEWED:
            return False
        if current == ReviewStatus.REJECTED:
            raise ValidationError({"review_status": ["A rejected booking cannot be reviewed"]})

        now = datetime.now(UTC)
        self.review_status = ReviewStatus.REVIEWED.value
        self.reviewed_by = reviewed_by
        self.reviewed_at = now
        self.updated_at = now
        self.raise_(
            BookingReviewed(
                booking_id=str(self.id),
                reviewed_by=reviewed_by or "",
                reviewed_at=now,
            )
        )
        return True

    def reject(self, reviewed_by: str | None, reason: str | None) -> None:
        """Reject the booking; a reason is mandatory."""
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["A reason is required when rejecting a booking"]})
        if ReviewStatus(self.review_status) != ReviewStatus.NOT_REVIEWED:
            raise ValidationError({"review_status": [f"Cannot reject a booking that is {self.review_status}"]})

        now = datetime.now(UTC)
        self.review_status = ReviewStatus.REJECTED.value
        self.reviewed_by = reviewed_by
        self.reviewed_at = now
        self.rejection_reason = reason.strip()
        self.updated_at = now
        self.raise_(
            BookingRejected(
                booking_id=str(self.id),
                reviewed_by=reviewed_by or "",
                reason=self.rejection_reason,
                rejected_at=now,
            )
        )

    def link_invoice_request(self, invoice_request_id: str) -> None:
        """Point the booking at its invoice request. Allowed once."""
        if self.is_converted:
            raise InvalidStateError(
                f"Booking {self.id} was already converted to invoice request {self.converted_to_invoice_request_id}"
            )
        if ReviewStatus(self.review_status) != ReviewStatus.REVIEWED:
            raise ValidationError({"review_status": ["Only reviewed bookings can be converted"]})

        now = datetime.now(UTC)
        self.converted_to_invoice_request_id = invoice_request_id
        self.updated_at = now
        self.raise_(
            BookingConverted(
                booking_id=str(self.id),
                invoice_request_id=invoice_request_id,
                converted_at=now,
            )
        )

    def assign_awb(self, awb: str) -> None:
        if self.awb:
            raise ValidationError({"awb": ["Booking already has an AWB"]})
        self.awb = awb
        self.updated_at = datetime.now(UTC)

    def snapshot(self) -> dict:
        """Full copy of the booking for audit, minus identity documents."""
        data = self.to_dict()
        for field_name in IDENTITY_DOCUMENT_FIELDS:
            data.pop(field_name, None)
        data.pop("_version", None)
        return data
