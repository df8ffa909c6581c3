"""Carrier sync — mirrors invoice request changes to the carrier API.

Runs after the originating transition has been committed. Nothing here may
fail that transition: every carrier error (error result, exception,
timeout) is logged as ``carrier_sync_failed`` and dropped. The carrier
shipment is created at most once per invoice request; a request whose
``empost_uhawb`` is already set is never sent again.
"""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from logistics.carrier import get_carrier
from logistics.carrier.payload import build_shipment_payload
from logistics.domain import logistics
from logistics.invoice_request.events import (
    DeliveryStatusChanged,
    InvoiceRequestCancelled,
    InvoiceRequestCompleted,
    InvoiceRequestStatusChanged,
    InvoiceRequestVerified,
    VerificationSubmitted,
)
from logistics.invoice_request.invoice_request import DeliveryStatus, InvoiceRequest, InvoiceRequestStatus

logger = structlog.get_logger(__name__)


def ensure_carrier_shipment(invoice_request_id: str) -> str | None:
    """Create the carrier shipment unless one exists. Returns the carrier id."""
    repo = current_domain.repository_for(InvoiceRequest)
    ir = repo.get(invoice_request_id)
    if ir.has_carrier_shipment:
        logger.info(
            "Carrier shipment already exists",
            invoice_request_id=invoice_request_id,
            empost_uhawb=ir.empost_uhawb,
        )
        return ir.empost_uhawb

    result = get_carrier().create_shipment(build_shipment_payload(ir))
    if result.get("error") or not result.get("uhawb"):
        logger.warning(
            "carrier_sync_failed",
            operation="create_shipment",
            invoice_request_id=invoice_request_id,
            tracking_code=ir.tracking_code,
            error=result.get("error") or "No UHAWB returned",
        )
        return None

    ir.record_carrier_shipment(result["uhawb"])
    repo.add(ir)
    logger.info(
        "Carrier shipment created",
        invoice_request_id=invoice_request_id,
        tracking_code=ir.tracking_code,
        empost_uhawb=ir.empost_uhawb,
    )
    return ir.empost_uhawb


def push_status(tracking_code: str, status: str, notes: str | None = None) -> bool:
    delivery_date = datetime.now(UTC) if status == DeliveryStatus.DELIVERED.value else None
    result = get_carrier().update_status(tracking_code, status, delivery_date=delivery_date, notes=notes)
    if result.get("error"):
        logger.warning(
            "carrier_sync_failed",
            operation="update_status",
            tracking_code=tracking_code,
            status=status,
            error=result["error"],
        )
        return False
    logger.info("Carrier status updated", tracking_code=tracking_code, status=status)
    return True


@logistics.event_handler(part_of=InvoiceRequest)
class CarrierSyncHandler:
    """Best-effort carrier updates for invoice request transitions."""

    def _safely(self, operation: str, fn, *args, **context) -> None:
        try:
            fn(*args)
        except Exception as exc:
            logger.error(
                "carrier_sync_failed",
                operation=operation,
                error=str(exc),
                error_type=type(exc).__name__,
                **context,
            )

    @handle(VerificationSubmitted)
    def on_verification_submitted(self, event: VerificationSubmitted) -> None:
        self._safely(
            "create_shipment",
            ensure_carrier_shipment,
            str(event.invoice_request_id),
            invoice_request_id=str(event.invoice_request_id),
        )

    @handle(InvoiceRequestVerified)
    def on_verified(self, event: InvoiceRequestVerified) -> None:
        self._safely(
            "create_shipment",
            ensure_carrier_shipment,
            str(event.invoice_request_id),
            invoice_request_id=str(event.invoice_request_id),
        )

    @handle(InvoiceRequestStatusChanged)
    def on_status_changed(self, event: InvoiceRequestStatusChanged) -> None:
        self._safely(
            "update_status",
            push_status,
            event.tracking_code,
            event.new_status,
            tracking_code=event.tracking_code,
        )

    @handle(DeliveryStatusChanged)
    def on_delivery_status_changed(self, event: DeliveryStatusChanged) -> None:
        self._safely(
            "update_status",
            push_status,
            event.tracking_code,
            event.new_delivery_status,
            event.notes,
            tracking_code=event.tracking_code,
        )

    @handle(InvoiceRequestCompleted)
    def on_completed(self, event: InvoiceRequestCompleted) -> None:
        self._safely(
            "update_status",
            push_status,
            event.tracking_code,
            InvoiceRequestStatus.COMPLETED.value,
            tracking_code=event.tracking_code,
        )

    @handle(InvoiceRequestCancelled)
    def on_cancelled(self, event: InvoiceRequestCancelled) -> None:
        self._safely(
            "update_status",
            push_status,
            event.tracking_code,
            InvoiceRequestStatus.CANCELLED.value,
            tracking_code=event.tracking_code,
        )
