"""FastAPI endpoints for the Logistics domain."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from logistics.api.schemas import (
    AssignTrackingNumbersRequest,
    BookingIdResponse,
    CancelInvoiceRequestRequest,
    CompleteInvoiceRequest,
    CompleteVerificationRequest,
    ConvertReviewedBookingsRequest,
    InvoiceRequestIdResponse,
    InvoiceRequestSummaryResponse,
    RejectBookingRequest,
    ReviewBookingRequest,
    RunRetentionRequest,
    StatusResponse,
    SubmitBookingRequest,
    SubmitVerificationRequest,
    UpdateDeliveryStatusRequest,
    UpdateStatusRequest,
)
from logistics.booking.migration import ConvertReviewedBookings
from logistics.booking.rejection import RejectBooking
from logistics.booking.review import ReviewBooking
from logistics.booking.submission import SubmitBooking
from logistics.booking.tracking_backfill import AssignMissingTrackingNumbers
from logistics.delivery_assignment.reinitiation import ReinitiateDeliveryAssignment
from logistics.invoice_request.completion import CompleteInvoice
from logistics.invoice_request.processing import (
    CancelInvoiceRequest,
    StartProcessing,
    UpdateDeliveryStatus,
    UpdateInvoiceRequestStatus,
)
from logistics.invoice_request.verification import CompleteVerification, SubmitVerification
from logistics.projections.invoice_request_summary import summary_for
from logistics.retention.cleanup import RunRetentionCleanup
from logistics.retention.sweeper import get_sweeper

booking_router = APIRouter(prefix="/bookings", tags=["bookings"])
invoice_request_router = APIRouter(prefix="/invoice-requests", tags=["invoice-requests"])
retention_router = APIRouter(prefix="/retention", tags=["retention"])


# --- Booking endpoints ---


@booking_router.post("", status_code=201, response_model=BookingIdResponse)
async def submit_booking(body: SubmitBookingRequest) -> BookingIdResponse:
    fields = {
        "sender": body.sender.model_dump(exclude_none=True) if body.sender else None,
        "receiver": body.receiver.model_dump(exclude_none=True) if body.receiver else None,
        "items": json.dumps(body.items),
        "boxes": json.dumps(body.boxes),
        "service": body.service,
        "service_code": body.service_code,
        "awb": body.awb,
        "weight": body.weight,
        "number_of_boxes": body.number_of_boxes,
        "origin_place": body.origin_place,
        "destination_place": body.destination_place,
        "insured": str(body.insured).lower() if body.insured is not None else None,
        "declared_amount": body.declared_amount,
        "notes": body.notes,
        "otp": body.otp,
        "identity_documents": body.identity_documents,
        "selfie": body.selfie,
    }
    # Dict fields reject None
    command = SubmitBooking(**{name: value for name, value in fields.items() if value is not None})
    result = current_domain.process(command, asynchronous=False)
    return BookingIdResponse(booking_id=result)


@booking_router.put("/{booking_id}/review", response_model=InvoiceRequestIdResponse)
async def review_booking(booking_id: str, body: ReviewBookingRequest) -> InvoiceRequestIdResponse:
    command = ReviewBooking(booking_id=booking_id, reviewed_by=body.reviewed_by)
    result = current_domain.process(command, asynchronous=False)
    return InvoiceRequestIdResponse(invoice_request_id=result)


@booking_router.put("/{booking_id}/reject", response_model=StatusResponse)
async def reject_booking(booking_id: str, body: RejectBookingRequest) -> StatusResponse:
    command = RejectBooking(booking_id=booking_id, reviewed_by=body.reviewed_by, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@booking_router.post("/convert-reviewed")
async def convert_reviewed_bookings(body: ConvertReviewedBookingsRequest) -> dict:
    command = ConvertReviewedBookings(reviewed_by=body.reviewed_by, limit=body.limit)
    return current_domain.process(command, asynchronous=False)


@booking_router.post("/assign-tracking-numbers")
async def assign_tracking_numbers(body: AssignTrackingNumbersRequest) -> dict:
    command = AssignMissingTrackingNumbers(limit=body.limit)
    return current_domain.process(command, asynchronous=False)


# --- Invoice request endpoints ---


@invoice_request_router.put("/{invoice_request_id}/start", response_model=StatusResponse)
async def start_processing(invoice_request_id: str) -> StatusResponse:
    current_domain.process(StartProcessing(invoice_request_id=invoice_request_id), asynchronous=False)
    return StatusResponse()


@invoice_request_router.put("/{invoice_request_id}/verification", response_model=StatusResponse)
async def submit_verification(invoice_request_id: str, body: SubmitVerificationRequest) -> StatusResponse:
    command = SubmitVerification(
        invoice_request_id=invoice_request_id,
        actual_weight=body.actual_weight,
        volumetric_weight=body.volumetric_weight,
        chargeable_weight=body.chargeable_weight,
        total_kg=body.total_kg,
        total_vm=body.total_vm,
        number_of_boxes=body.number_of_boxes,
        shipment_classification=body.shipment_classification,
        declared_value=body.declared_value,
        service_code=body.service_code,
        listed_commodities=body.listed_commodities,
        boxes=json.dumps(body.boxes) if body.boxes is not None else None,
        verified_by=body.verified_by,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@invoice_request_router.put("/{invoice_request_id}/complete-verification", response_model=StatusResponse)
async def complete_verification(invoice_request_id: str, body: CompleteVerificationRequest) -> StatusResponse:
    command = CompleteVerification(
        invoice_request_id=invoice_request_id,
        verified_by=body.verified_by,
        verification_notes=body.verification_notes,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@invoice_request_router.put("/{invoice_request_id}/complete", response_model=StatusResponse)
async def complete_invoice(invoice_request_id: str, body: CompleteInvoiceRequest) -> StatusResponse:
    command = CompleteInvoice(
        invoice_request_id=invoice_request_id,
        invoice_amount=body.invoice_amount,
        total_amount=body.total_amount,
        total_amount_cod=body.total_amount_cod,
        tax_invoice=body.tax_invoice,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@invoice_request_router.put("/{invoice_request_id}/status", response_model=StatusResponse)
async def update_status(invoice_request_id: str, body: UpdateStatusRequest) -> StatusResponse:
    command = UpdateInvoiceRequestStatus(
        invoice_request_id=invoice_request_id,
        status=body.status,
        delivery_status=body.delivery_status,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@invoice_request_router.put("/{invoice_request_id}/delivery-status", response_model=StatusResponse)
async def update_delivery_status(invoice_request_id: str, body: UpdateDeliveryStatusRequest) -> StatusResponse:
    command = UpdateDeliveryStatus(
        invoice_request_id=invoice_request_id,
        delivery_status=body.delivery_status,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@invoice_request_router.put("/{invoice_request_id}/cancel", response_model=StatusResponse)
async def cancel_invoice_request(invoice_request_id: str, body: CancelInvoiceRequestRequest) -> StatusResponse:
    command = CancelInvoiceRequest(invoice_request_id=invoice_request_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@invoice_request_router.put("/{invoice_request_id}/delivery-assignment", response_model=StatusResponse)
async def reinitiate_delivery_assignment(invoice_request_id: str) -> StatusResponse:
    command = ReinitiateDeliveryAssignment(invoice_request_id=invoice_request_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@invoice_request_router.get("/{invoice_request_id}/summary", response_model=InvoiceRequestSummaryResponse)
async def get_summary(invoice_request_id: str) -> InvoiceRequestSummaryResponse:
    summary = summary_for(invoice_request_id)
    return InvoiceRequestSummaryResponse(
        invoice_request_id=str(summary.invoice_request_id),
        invoice_number=summary.invoice_number,
        tracking_code=summary.tracking_code,
        service_code=summary.service_code,
        status=summary.status,
        delivery_status=summary.delivery_status,
        customer_name=summary.customer_name,
        receiver_name=summary.receiver_name,
        shipment_type=summary.shipment_type,
        chargeable_weight=summary.chargeable_weight,
        weight_type=summary.weight_type,
        invoice_amount=summary.invoice_amount,
        has_carrier_shipment=bool(summary.has_carrier_shipment),
    )


# --- Retention endpoints ---


@retention_router.post("/run")
async def run_retention(body: RunRetentionRequest) -> dict:
    result = current_domain.process(RunRetentionCleanup(dry_run=body.dry_run), asynchronous=False)
    if result is None:
        return {"skipped": True, "reason": "Retention cleanup already running"}
    return result


@retention_router.get("/stats")
async def retention_stats() -> dict:
    return get_sweeper().get_stats()
