"""Pydantic request/response schemas for the Logistics API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# --- Booking Request Schemas ---


class PartySchema(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    delivery_option: str | None = None


class SubmitBookingRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "sender": {
                        "first_name": "Maria",
                        "last_name": "Santos",
                        "phone": "+639171234567",
                        "address": "12 Rizal St",
                        "city": "Manila",
                        "country": "Philippines",
                    },
                    "receiver": {
                        "first_name": "Ahmed",
                        "last_name": "Khan",
                        "phone": "+971501234567",
                        "address": "Al Barsha 1",
                        "city": "Dubai",
                        "country": "United Arab Emirates",
                    },
                    "items": [{"commodity": "Clothes", "quantity": 3}],
                    "service": "PH to UAE",
                    "number_of_boxes": 1,
                    "insured": "no",
                }
            ]
        }
    }

    sender: PartySchema | None = None
    receiver: PartySchema | None = None
    items: list[dict[str, Any]] = Field(default_factory=list)
    boxes: list[dict[str, Any]] = Field(default_factory=list)
    service: str | None = Field(None, max_length=100)
    service_code: str | None = Field(None, max_length=50)
    awb: str | None = Field(None, max_length=50)
    weight: float | None = None
    number_of_boxes: int | None = None
    origin_place: str | None = None
    destination_place: str | None = None
    insured: bool | str | None = None
    declared_amount: float | None = None
    notes: str | None = None
    otp: str | None = Field(None, max_length=20)
    identity_documents: dict[str, Any] | None = None
    selfie: str | None = None


class ReviewBookingRequest(BaseModel):
    reviewed_by: str | None = Field(None, max_length=100)


class RejectBookingRequest(BaseModel):
    reviewed_by: str | None = Field(None, max_length=100)
    reason: str | None = Field(None, max_length=500)


class ConvertReviewedBookingsRequest(BaseModel):
    reviewed_by: str | None = Field(None, max_length=100)
    limit: int | None = Field(None, ge=1)


class AssignTrackingNumbersRequest(BaseModel):
    limit: int | None = Field(None, ge=1)


# --- Invoice Request Schemas ---


class SubmitVerificationRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "actual_weight": 12.5,
                    "volumetric_weight": 10.0,
                    "number_of_boxes": 1,
                    "shipment_classification": "GENERAL",
                    "boxes": [{"length": 50, "width": 40, "height": 30, "weight": 12.5}],
                    "verified_by": "ops-manila-01",
                }
            ]
        }
    }

    actual_weight: float | None = None
    volumetric_weight: float | None = None
    chargeable_weight: float | None = None
    total_kg: float | None = None
    total_vm: float | None = None
    number_of_boxes: int | None = None
    shipment_classification: str | None = Field(None, max_length=20)
    declared_value: float | None = None
    service_code: str | None = Field(None, max_length=50)
    listed_commodities: str | None = None
    boxes: list[dict[str, Any]] | None = None
    verified_by: str | None = Field(None, max_length=100)


class CompleteVerificationRequest(BaseModel):
    verified_by: str | None = Field(None, max_length=100)
    verification_notes: str | None = None


class CompleteInvoiceRequest(BaseModel):
    invoice_amount: float | None = Field(None, ge=0)
    total_amount: float | None = Field(None, ge=0)
    total_amount_cod: float | None = Field(None, ge=0)
    tax_invoice: float | None = Field(None, ge=0)


class UpdateStatusRequest(BaseModel):
    status: str = Field(..., max_length=20)
    delivery_status: str | None = Field(None, max_length=20)


class UpdateDeliveryStatusRequest(BaseModel):
    delivery_status: str = Field(..., max_length=20)
    notes: str | None = None


class CancelInvoiceRequestRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class RunRetentionRequest(BaseModel):
    dry_run: bool = False


# --- Response Schemas ---


class BookingIdResponse(BaseModel):
    booking_id: str


class InvoiceRequestIdResponse(BaseModel):
    invoice_request_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class InvoiceRequestSummaryResponse(BaseModel):
    invoice_request_id: str
    invoice_number: str
    tracking_code: str
    service_code: str | None = None
    status: str
    delivery_status: str | None = None
    customer_name: str | None = None
    receiver_name: str | None = None
    shipment_type: str | None = None
    chargeable_weight: float | None = None
    weight_type: str | None = None
    invoice_amount: float | None = None
    has_carrier_shipment: bool = False
