"""Finance completion — command and handler.

Completing an invoice request issues the Invoice, opens a Collection when
there is a positive amount to collect, and creates the DeliveryAssignment,
all in the same unit of work as the status change.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain

from logistics.collection.collection import DEFAULT_DUE_DAYS, Collection
from logistics.delivery_assignment.reinitiation import reinitiate_delivery_assignment
from logistics.domain import logistics
from logistics.invoice.invoice import Invoice
from logistics.invoice_request.invoice_request import InvoiceRequest

logger = structlog.get_logger(__name__)


@logistics.command(part_of="InvoiceRequest")
class CompleteInvoice:
    invoice_request_id = Identifier(required=True)
    invoice_amount = Float(min_value=0.0)
    total_amount = Float(min_value=0.0)
    total_amount_cod = Float(min_value=0.0)
    tax_invoice = Float(min_value=0.0)


@logistics.command_handler(part_of=InvoiceRequest)
class CompleteInvoiceHandler:
    @handle(CompleteInvoice)
    def complete_invoice(self, command):
        repo = current_domain.repository_for(InvoiceRequest)
        ir = repo.get(command.invoice_request_id)
        ir.complete(
            invoice_amount=command.invoice_amount,
            total_amount=command.total_amount,
            total_amount_cod=command.total_amount_cod,
            tax_invoice=command.tax_invoice,
        )
        repo.add(ir)

        invoice = Invoice.issue(
            invoice_number=ir.invoice_number,
            invoice_request_id=str(ir.id),
            tracking_code=ir.tracking_code,
            client_name=ir.customer_name,
            amount=ir.invoice_amount,
        )
        current_domain.repository_for(Invoice).add(invoice)

        if ir.invoice_amount and ir.invoice_amount > 0:
            collection = Collection.open(
                invoice_id=ir.invoice_number,
                invoice_request_id=str(ir.id),
                amount=ir.invoice_amount,
                client_name=ir.customer_name,
                due_days=int(getattr(current_domain, "COLLECTION_DUE_DAYS", DEFAULT_DUE_DAYS)),
            )
            current_domain.repository_for(Collection).add(collection)
        else:
            logger.info("No invoice amount, collection not opened", invoice_request_id=str(ir.id))

        reinitiate_delivery_assignment(ir)

        logger.info(
            "Invoice request completed",
            invoice_request_id=str(ir.id),
            invoice_number=ir.invoice_number,
            invoice_amount=ir.invoice_amount,
        )
        return str(ir.id)
