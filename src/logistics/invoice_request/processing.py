"""Invoice request status changes — commands and handlers."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.invoice_request.invoice_request import InvoiceRequest


@logistics.command(part_of="InvoiceRequest")
class StartProcessing:
    invoice_request_id = Identifier(required=True)


@logistics.command(part_of="InvoiceRequest")
class UpdateInvoiceRequestStatus:
    """Move the request to another status. COMPLETED goes through CompleteInvoice."""

    invoice_request_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    delivery_status = String(max_length=20)


@logistics.command(part_of="InvoiceRequest")
class UpdateDeliveryStatus:
    invoice_request_id = Identifier(required=True)
    delivery_status = String(required=True, max_length=20)
    notes = Text()


@logistics.command(part_of="InvoiceRequest")
class CancelInvoiceRequest:
    invoice_request_id = Identifier(required=True)
    reason = String(max_length=500)


@logistics.command_handler(part_of=InvoiceRequest)
class InvoiceRequestProcessingHandler:
    @handle(StartProcessing)
    def start_processing(self, command):
        repo = current_domain.repository_for(InvoiceRequest)
        ir = repo.get(command.invoice_request_id)
        ir.start_processing()
        repo.add(ir)

    @handle(UpdateInvoiceRequestStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(InvoiceRequest)
        ir = repo.get(command.invoice_request_id)
        ir.change_status(command.status)
        if command.delivery_status:
            ir.change_delivery_status(command.delivery_status)
        repo.add(ir)

    @handle(UpdateDeliveryStatus)
    def update_delivery_status(self, command):
        repo = current_domain.repository_for(InvoiceRequest)
        ir = repo.get(command.invoice_request_id)
        ir.change_delivery_status(command.delivery_status, command.notes)
        repo.add(ir)

    @handle(CancelInvoiceRequest)
    def cancel(self, command):
        repo = current_domain.repository_for(InvoiceRequest)
        ir = repo.get(command.invoice_request_id)
        ir.cancel(command.reason)
        repo.add(ir)
