"""Booking submission — command and handler."""

import json

from protean import handle
from protean.fields import Dict, Float, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.reflection import declared_fields

from logistics.booking.booking import Booking, Party
from logistics.domain import logistics


@logistics.command(part_of="Booking")
class SubmitBooking:
    """Record a customer's shipment booking."""

    sender = Dict()
    receiver = Dict()
    items = Text()  # JSON list of item dicts
    boxes = Text()  # JSON list of box dicts
    service = String(max_length=100)
    service_code = String(max_length=50)
    awb = String(max_length=50)
    weight = Float()
    number_of_boxes = Integer()
    origin_place = String(max_length=500)
    destination_place = String(max_length=500)
    insured = String(max_length=10)  # true/false/yes/no/1/0
    declared_amount = Float()
    notes = Text()
    otp = String(max_length=20)
    identity_documents = Dict()
    selfie = Text()


def _json_list(value) -> list:
    if not value:
        return []
    parsed = json.loads(value) if isinstance(value, str) else value
    return list(parsed or [])


def _party(data: dict | None) -> Party | None:
    if not data:
        return None
    known = {name: data.get(name) for name in declared_fields(Party) if data.get(name) is not None}
    return Party(**known)


@logistics.command_handler(part_of=Booking)
class SubmitBookingHandler:
    @handle(SubmitBooking)
    def submit_booking(self, command):
        booking = Booking.submit(
            sender=_party(command.sender),
            receiver=_party(command.receiver),
            items=_json_list(command.items),
            boxes=_json_list(command.boxes),
            service=command.service,
            service_code=command.service_code,
            awb=command.awb,
            weight=command.weight,
            number_of_boxes=command.number_of_boxes,
            origin_place=command.origin_place,
            destination_place=command.destination_place,
            insured=command.insured,
            declared_amount=command.declared_amount,
            notes=command.notes,
            otp=command.otp,
            identity_documents=command.identity_documents or {},
            selfie=command.selfie,
        )
        current_domain.repository_for(Booking).add(booking)
        return str(booking.id)
