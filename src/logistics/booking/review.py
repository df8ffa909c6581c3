"""Booking review — command and handler.

Reviewing a booking converts it into an invoice request in the same unit of
work: either both are stored or neither is.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from logistics.booking.booking import Booking
from logistics.domain import logistics
from logistics.invoice_request.conversion import convert_booking


@logistics.command(part_of="Booking")
class ReviewBooking:
    booking_id = Identifier(required=True)
    reviewed_by = String(max_length=100)


@logistics.command_handler(part_of=Booking)
class ReviewBookingHandler:
    @handle(ReviewBooking)
    def review_booking(self, command):
        booking = current_domain.repository_for(Booking).get(command.booking_id)
        booking.review(command.reviewed_by)
        ir = convert_booking(booking)
        return str(ir.id)
