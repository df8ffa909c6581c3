"""Invoice request domain events.

Every status or delivery-status change produces an event; the carrier sync
handler and the summary projector both key off these.
"""

from protean.fields import DateTime, Float, Identifier, String

from logistics.domain import logistics


@logistics.event(part_of="InvoiceRequest")
class InvoiceRequestCreated:
    """A reviewed booking was converted into an invoice request."""

    __version__ = 1

    invoice_request_id = Identifier(required=True)
    booking_id = Identifier()
    invoice_number = String(required=True)
    tracking_code = String(required=True)
    service_code = String()
    shipment_type = String()
    customer_name = String()
    created_at = DateTime(required=True)


@logistics.event(part_of="InvoiceRequest")
class VerificationSubmitted:
    """Operations recorded measured weights and classification."""

    __version__ = 1

    invoice_request_id = Identifier(required=True)
    tracking_code = String(required=True)
    chargeable_weight = Float(required=True)
    weight_type = String(required=True)
    shipment_classification = String()
    verified_at = DateTime(required=True)


@logistics.event(part_of="InvoiceRequest")
class InvoiceRequestVerified:
    """Operations completed verification; the request awaits finance."""

    __version__ = 1

    invoice_request_id = Identifier(required=True)
    tracking_code = String(required=True)
    verified_by = String()
    verified_at = DateTime(required=True)


@logistics.event(part_of="InvoiceRequest")
class InvoiceRequestStatusChanged:
    __version__ = 1

    invoice_request_id = Identifier(required=True)
    tracking_code = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    delivery_status = String()
    changed_at = DateTime(required=True)


@logistics.event(part_of="InvoiceRequest")
class DeliveryStatusChanged:
    __version__ = 1

    invoice_request_id = Identifier(required=True)
    tracking_code = String(required=True)
    previous_delivery_status = String()
    new_delivery_status = String(required=True)
    notes = String()
    changed_at = DateTime(required=True)


@logistics.event(part_of="InvoiceRequest")
class InvoiceRequestCompleted:
    """Finance generated the invoice."""

    __version__ = 1

    invoice_request_id = Identifier(required=True)
    tracking_code = String(required=True)
    invoice_number = String(required=True)
    invoice_amount = Float()
    delivery_status = String()
    completed_at = DateTime(required=True)


@logistics.event(part_of="InvoiceRequest")
class InvoiceRequestCancelled:
    __version__ = 1

    invoice_request_id = Identifier(required=True)
    tracking_code = String(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


@logistics.event(part_of="InvoiceRequest")
class CarrierShipmentRecorded:
    """The carrier accepted the shipment and returned its own id."""

    __version__ = 1

    invoice_request_id = Identifier(required=True)
    tracking_code = String(required=True)
    empost_uhawb = String(required=True)
    recorded_at = DateTime(required=True)
