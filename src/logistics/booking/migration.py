"""Bulk conversion of reviewed bookings that never got an invoice request.

Bookings reviewed before conversion was wired into the review flow (or whose
conversion failed) are picked up here. Each booking is converted through
``ReviewBooking`` in its own unit of work, so one failure does not stop the
batch.
"""

import structlog
from protean import handle
from protean.exceptions import InvalidStateError, ObjectNotFoundError, ValidationError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from logistics.booking.booking import Booking, ReviewStatus
from logistics.domain import logistics

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Booking")
class ConvertReviewedBookings:
    reviewed_by = String(max_length=100)
    limit = Integer(min_value=1)


def unconverted_reviewed_bookings(limit: int | None = None) -> list:
    query = (
        current_domain.repository_for(Booking)
        ._dao.query.filter(
            review_status=ReviewStatus.REVIEWED.value,
            converted_to_invoice_request_id__isnull=True,
        )
        .order_by("created_at")
        .limit(limit)
    )
    return query.all().items


@logistics.command_handler(part_of=Booking)
class ConvertReviewedBookingsHandler:
    @handle(ConvertReviewedBookings)
    def convert_reviewed_bookings(self, command):
        from logistics.booking.review import ReviewBooking

        bookings = unconverted_reviewed_bookings(command.limit)
        logger.info("Found reviewed bookings without invoice requests", count=len(bookings))

        summary = {"converted": 0, "skipped": 0, "failed": 0, "results": []}
        for booking in bookings:
            booking_id = str(booking.id)
            try:
                ir_id = current_domain.process(
                    ReviewBooking(booking_id=booking_id, reviewed_by=command.reviewed_by or booking.reviewed_by),
                    asynchronous=False,
                )
                summary["converted"] += 1
                summary["results"].append({"booking_id": booking_id, "invoice_request_id": ir_id})
            except InvalidStateError as exc:
                summary["skipped"] += 1
                summary["results"].append({"booking_id": booking_id, "skipped": str(exc)})
                logger.info("Booking already converted, skipping", booking_id=booking_id)
            except (ValidationError, ObjectNotFoundError) as exc:
                summary["failed"] += 1
                summary["results"].append({"booking_id": booking_id, "error": str(exc)})
                logger.warning("Failed to convert reviewed booking", booking_id=booking_id, error=str(exc))

        logger.info(
            "Reviewed booking conversion complete",
            converted=summary["converted"],
            skipped=summary["skipped"],
            failed=summary["failed"],
        )
        return summary
