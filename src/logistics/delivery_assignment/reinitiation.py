"""Create or refresh the delivery assignment for a completed invoice request.

Amount priority: total_amount_cod > tax_invoice > total_amount > invoice_amount.
A zero or missing amount leaves the store untouched and is logged.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from logistics.delivery_assignment.delivery_assignment import (
    DEFAULT_QR_EXPIRY_HOURS,
    DeliveryAssignment,
)
from logistics.domain import logistics
from logistics.invoice_request.invoice_request import InvoiceRequest, InvoiceRequestStatus

logger = structlog.get_logger(__name__)

DEFAULT_FRONTEND_URL = "http://localhost:3000"


def resolve_amount(ir) -> float | None:
    for value in (ir.total_amount_cod, ir.tax_invoice, ir.total_amount):
        if value is not None and value > 0:
            return value
    return ir.invoice_amount


def reinitiate_delivery_assignment(ir) -> DeliveryAssignment | None:
    """Refresh the request's assignment, or issue one if none exists."""
    amount = resolve_amount(ir)
    if amount is None or amount <= 0:
        logger.warning(
            "delivery_assignment_skipped",
            invoice_request_id=str(ir.id),
            reason="Amount is zero or missing",
        )
        return None

    repo = current_domain.repository_for(DeliveryAssignment)
    existing = repo._dao.query.filter(invoice_request_id=str(ir.id)).all().first
    if existing:
        existing.refresh(
            amount=amount,
            delivery_address=ir.receiver_address,
            receiver_name=ir.receiver_name,
            receiver_phone=ir.receiver_phone,
        )
        repo.add(existing)
        logger.info(
            "delivery_assignment_refreshed",
            invoice_request_id=str(ir.id),
            assignment_id=existing.assignment_id,
            amount=existing.amount,
        )
        return existing

    if not ir.tracking_code:
        logger.warning(
            "delivery_assignment_skipped",
            invoice_request_id=str(ir.id),
            reason="AWB number missing",
        )
        return None

    assignment = DeliveryAssignment.issue(
        assignment_id=ir.tracking_code,
        invoice_request_id=str(ir.id),
        invoice_number=ir.invoice_number,
        amount=amount,
        cod=bool(ir.total_amount_cod and ir.total_amount_cod > 0),
        frontend_url=getattr(current_domain, "FRONTEND_URL", DEFAULT_FRONTEND_URL),
        qr_expiry_hours=int(getattr(current_domain, "QR_EXPIRY_HOURS", DEFAULT_QR_EXPIRY_HOURS)),
        delivery_address=ir.receiver_address,
        receiver_name=ir.receiver_name,
        receiver_phone=ir.receiver_phone,
    )
    repo.add(assignment)
    logger.info(
        "delivery_assignment_issued",
        invoice_request_id=str(ir.id),
        assignment_id=assignment.assignment_id,
        delivery_type=assignment.delivery_type,
        amount=assignment.amount,
    )
    return assignment


@logistics.command(part_of="DeliveryAssignment")
class ReinitiateDeliveryAssignment:
    """Re-apply a completed request's latest invoice values to its assignment."""

    invoice_request_id = Identifier(required=True)


@logistics.command_handler(part_of=DeliveryAssignment)
class ReinitiateDeliveryAssignmentHandler:
    @handle(ReinitiateDeliveryAssignment)
    def reinitiate(self, command):
        ir = current_domain.repository_for(InvoiceRequest).get(command.invoice_request_id)
        if InvoiceRequestStatus(ir.status) != InvoiceRequestStatus.COMPLETED:
            raise ValidationError({"status": ["Delivery assignments are only issued for completed requests"]})
        assignment = reinitiate_delivery_assignment(ir)
        return str(assignment.id) if assignment else None
