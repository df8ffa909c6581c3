"""Invoice request summary — cache-backed read model.

Lives in the domain's ``default`` cache (memory locally, Redis in
production) with the cache's TTL. Every invoice request event rewrites the
entry from the aggregate; cancellation evicts it. ``summary_for`` reads
through the cache and repopulates it on a miss.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.invoice_request.events import (
    CarrierShipmentRecorded,
    DeliveryStatusChanged,
    InvoiceRequestCancelled,
    InvoiceRequestCompleted,
    InvoiceRequestCreated,
    InvoiceRequestStatusChanged,
    InvoiceRequestVerified,
    VerificationSubmitted,
)
from logistics.invoice_request.invoice_request import InvoiceRequest, InvoiceRequestStatus


@logistics.projection(cache="default")
class InvoiceRequestSummary:
    invoice_request_id: Identifier(identifier=True, required=True)
    invoice_number: String(required=True)
    tracking_code: String(required=True)
    service_code: String()
    status: String(required=True)
    delivery_status: String()
    customer_name: String()
    receiver_name: String()
    shipment_type: String()
    chargeable_weight: Float()
    weight_type: String()
    invoice_amount: Float()
    has_carrier_shipment: Boolean(default=False)
    created_at: DateTime()
    updated_at: DateTime()


def _cache_key(invoice_request_id) -> str:
    return f"invoice_request_summary:::{invoice_request_id}"


def _build(ir: InvoiceRequest) -> InvoiceRequestSummary:
    verification = ir.verification
    return InvoiceRequestSummary(
        invoice_request_id=str(ir.id),
        invoice_number=ir.invoice_number,
        tracking_code=ir.tracking_code,
        service_code=ir.service_code,
        status=ir.status,
        delivery_status=ir.delivery_status,
        customer_name=ir.customer_name,
        receiver_name=ir.receiver_name,
        shipment_type=ir.shipment_type,
        chargeable_weight=verification.chargeable_weight if verification else None,
        weight_type=verification.weight_type if verification else None,
        invoice_amount=ir.invoice_amount,
        has_carrier_shipment=ir.has_carrier_shipment,
        created_at=ir.created_at,
        updated_at=ir.updated_at,
    )


def refresh_summary(invoice_request_id) -> InvoiceRequestSummary:
    ir = current_domain.repository_for(InvoiceRequest).get(invoice_request_id)
    summary = _build(ir)
    current_domain.cache_for(InvoiceRequestSummary).add(summary)
    return summary


def evict_summary(invoice_request_id) -> None:
    cache = current_domain.cache_for(InvoiceRequestSummary)
    key = _cache_key(invoice_request_id)
    if cache.get(key) is not None:
        cache.remove_by_key(key)


def summary_for(invoice_request_id) -> InvoiceRequestSummary:
    """Cached summary, rebuilt from the aggregate on a miss.

    Raises ``ObjectNotFoundError`` when the invoice request does not exist.
    Cancelled requests are served from the aggregate without being cached.
    """
    cached = current_domain.cache_for(InvoiceRequestSummary).get(_cache_key(invoice_request_id))
    if cached is not None:
        return cached

    ir = current_domain.repository_for(InvoiceRequest).get(invoice_request_id)
    summary = _build(ir)
    if ir.status != InvoiceRequestStatus.CANCELLED.value:
        current_domain.cache_for(InvoiceRequestSummary).add(summary)
    return summary


@logistics.projector(projector_for=InvoiceRequestSummary, aggregates=[InvoiceRequest])
class InvoiceRequestSummaryProjector:
    def _refresh(self, event):
        try:
            refresh_summary(event.invoice_request_id)
        except ObjectNotFoundError:
            evict_summary(event.invoice_request_id)

    @on(InvoiceRequestCreated)
    def on_created(self, event):
        self._refresh(event)

    @on(VerificationSubmitted)
    def on_verification_submitted(self, event):
        self._refresh(event)

    @on(InvoiceRequestVerified)
    def on_verified(self, event):
        self._refresh(event)

    @on(InvoiceRequestStatusChanged)
    def on_status_changed(self, event):
        self._refresh(event)

    @on(DeliveryStatusChanged)
    def on_delivery_status_changed(self, event):
        self._refresh(event)

    @on(InvoiceRequestCompleted)
    def on_completed(self, event):
        self._refresh(event)

    @on(CarrierShipmentRecorded)
    def on_carrier_shipment_recorded(self, event):
        self._refresh(event)

    @on(InvoiceRequestCancelled)
    def on_cancelled(self, event):
        evict_summary(event.invoice_request_id)
