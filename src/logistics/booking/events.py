"""Booking domain events."""

from protean.fields import DateTime, Identifier, String

from logistics.domain import logistics


@logistics.event(part_of="Booking")
class BookingSubmitted:
    """A customer submitted a shipment booking."""

    __version__ = 1

    booking_id = Identifier(required=True)
    service_code = String()
    awb = String()
    submitted_at = DateTime(required=True)


@logistics.event(part_of="Booking")
class BookingReviewed:
    """Operations accepted the booking for processing."""

    __version__ = 1

    booking_id = Identifier(required=True)
    reviewed_by = String()
    reviewed_at = DateTime(required=True)


@logistics.event(part_of="Booking")
class BookingRejected:
    """Operations rejected the booking."""

    __version__ = 1

    booking_id = Identifier(required=True)
    reviewed_by = String()
    reason = String(required=True, max_length=500)
    rejected_at = DateTime(required=True)


@logistics.event(part_of="Booking")
class BookingConverted:
    """The reviewed booking now has its invoice request."""

    __version__ = 1

    booking_id = Identifier(required=True)
    invoice_request_id = Identifier(required=True)
    converted_at = DateTime(required=True)
