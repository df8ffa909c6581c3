"""Operations verification — commands and handlers.

Numeric inputs are declared loosely on the commands: the rules engine owns
the required / non-negative checks so every failure carries the same
field-level messages regardless of entry point.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.invoice_request.invoice_request import InvoiceRequest


@logistics.command(part_of="InvoiceRequest")
class SubmitVerification:
    invoice_request_id = Identifier(required=True)
    actual_weight = Float()
    volumetric_weight = Float()
    chargeable_weight = Float()
    total_kg = Float()
    total_vm = Float()
    number_of_boxes = Integer()
    shipment_classification = String(max_length=20)
    declared_value = Float()
    service_code = String(max_length=50)
    listed_commodities = Text()
    boxes = Text()  # JSON list of box dicts
    verified_by = String(max_length=100)


@logistics.command(part_of="InvoiceRequest")
class CompleteVerification:
    invoice_request_id = Identifier(required=True)
    verified_by = String(max_length=100)
    verification_notes = Text()


_MEASUREMENT_FIELDS = (
    "actual_weight",
    "volumetric_weight",
    "chargeable_weight",
    "total_kg",
    "total_vm",
    "number_of_boxes",
    "shipment_classification",
    "declared_value",
    "service_code",
    "listed_commodities",
)


def verification_data(command) -> dict:
    data = {name: getattr(command, name) for name in _MEASUREMENT_FIELDS if getattr(command, name) is not None}
    if command.boxes:
        data["boxes"] = json.loads(command.boxes) if isinstance(command.boxes, str) else command.boxes
    return data


@logistics.command_handler(part_of=InvoiceRequest)
class VerificationHandler:
    @handle(SubmitVerification)
    def submit_verification(self, command):
        repo = current_domain.repository_for(InvoiceRequest)
        ir = repo.get(command.invoice_request_id)
        ir.submit_verification(verification_data(command), verified_by=command.verified_by)
        repo.add(ir)

    @handle(CompleteVerification)
    def complete_verification(self, command):
        repo = current_domain.repository_for(InvoiceRequest)
        ir = repo.get(command.invoice_request_id)
        ir.complete_verification(command.verified_by, command.verification_notes)
        repo.add(ir)
