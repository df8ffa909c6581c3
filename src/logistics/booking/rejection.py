"""Booking rejection — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from logistics.booking.booking import Booking
from logistics.domain import logistics


@logistics.command(part_of="Booking")
class RejectBooking:
    booking_id = Identifier(required=True)
    reviewed_by = String(max_length=100)
    reason = String(max_length=500)


@logistics.command_handler(part_of=Booking)
class RejectBookingHandler:
    @handle(RejectBooking)
    def reject_booking(self, command):
        repo = current_domain.repository_for(Booking)
        booking = repo.get(command.booking_id)
        booking.reject(command.reviewed_by, command.reason)
        repo.add(booking)
