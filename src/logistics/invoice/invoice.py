"""Invoice aggregate — the issued financial document.

Invoices are issued once per invoice request when finance completes it.
No process deletes them; the retention sweeper counts them before and
after every pass to prove it.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, Identifier, String

from logistics.domain import logistics


@logistics.event(part_of="Invoice")
class InvoiceIssued:
    __version__ = 1

    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    invoice_request_id = Identifier(required=True)
    amount = Float()
    issued_at = DateTime(required=True)


@logistics.aggregate
class Invoice:
    invoice_number = String(required=True, max_length=50)
    invoice_request_id = Identifier(required=True, unique=True)
    tracking_code = String(max_length=50)
    client_name = String(max_length=200)
    amount = Float(default=0.0)
    issued_at = DateTime()

    @classmethod
    def issue(
        cls,
        invoice_number: str,
        invoice_request_id: str,
        tracking_code: str | None = None,
        client_name: str | None = None,
        amount: float | None = None,
    ):
        now = datetime.now(UTC)
        invoice = cls(
            invoice_number=invoice_number,
            invoice_request_id=invoice_request_id,
            tracking_code=tracking_code,
            client_name=client_name,
            amount=amount or 0.0,
            issued_at=now,
        )
        invoice.raise_(
            InvoiceIssued(
                invoice_id=str(invoice.id),
                invoice_number=invoice_number,
                invoice_request_id=invoice_request_id,
                amount=invoice.amount,
                issued_at=now,
            )
        )
        return invoice
