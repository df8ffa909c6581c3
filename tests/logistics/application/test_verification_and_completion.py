"""Application tests for verification, completion and status handling.

Completing a request issues the invoice, opens the collection and creates
the delivery assignment in the same unit of work.
"""

import json

import pytest
from logistics.booking.review import ReviewBooking
from logistics.booking.submission import SubmitBooking
from logistics.collection.collection import Collection
from logistics.delivery_assignment.delivery_assignment import DeliveryAssignment
from logistics.delivery_assignment.reinitiation import ReinitiateDeliveryAssignment
from logistics.invoice.invoice import Invoice
from logistics.invoice_request.completion import CompleteInvoice
from logistics.invoice_request.invoice_request import InvoiceRequest
from logistics.invoice_request.processing import (
    CancelInvoiceRequest,
    StartProcessing,
    UpdateDeliveryStatus,
    UpdateInvoiceRequestStatus,
)
from logistics.invoice_request.verification import CompleteVerification, SubmitVerification
from protean import current_domain
from protean.exceptions import ValidationError


def _create_request(service="uae-to-ph", insured=None, **overrides):
    data = {
        "sender": {"full_name": "Fatima Ali"},
        "receiver": {"first_name": "Jose", "last_name": "Rizal", "address": "Quezon City"},
        "items": json.dumps([{"commodity": "Clothes", "qty": 4}]),
        "service": service,
        "weight": 8.0,
        "insured": insured,
    }
    data.update(overrides)
    booking_id = current_domain.process(SubmitBooking(**data), asynchronous=False)
    return current_domain.process(ReviewBooking(booking_id=booking_id), asynchronous=False)


def _verify(ir_id, **measurements):
    data = {"actual_weight": 12, "volumetric_weight": 20, "shipment_classification": "FLOWMIC"}
    data.update(measurements)
    current_domain.process(SubmitVerification(invoice_request_id=ir_id, verified_by="ops-1", **data), asynchronous=False)
    current_domain.process(CompleteVerification(invoice_request_id=ir_id, verified_by="ops-1"), asynchronous=False)


def _get(ir_id):
    return current_domain.repository_for(InvoiceRequest).get(ir_id)


def _assignment_for(ir_id):
    return current_domain.repository_for(DeliveryAssignment)._dao.query.filter(invoice_request_id=ir_id).all().first


class TestSubmitVerification:
    def test_weights_derived_and_status_kept(self):
        ir_id = _create_request()
        current_domain.process(
            SubmitVerification(invoice_request_id=ir_id, actual_weight=12, volumetric_weight=20, shipment_classification="flowmic"),
            asynchronous=False,
        )
        ir = _get(ir_id)
        assert ir.status == "SUBMITTED"
        assert ir.verification.chargeable_weight == 20
        assert ir.verification.weight_type == "VOLUMETRIC"
        assert ir.verification.shipment_classification == "FLOWMIC"

    def test_invalid_classification_rejected(self):
        ir_id = _create_request()
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                SubmitVerification(invoice_request_id=ir_id, actual_weight=12, volumetric_weight=20, shipment_classification="GENERAL"),
                asynchronous=False,
            )
        assert "shipment_classification" in exc.value.messages
        assert _get(ir_id).verification.chargeable_weight is None

    def test_insured_booking_requires_declared_value(self):
        ir_id = _create_request(insured="yes")
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                SubmitVerification(invoice_request_id=ir_id, actual_weight=5, volumetric_weight=4, shipment_classification="COMMERCIAL"),
                asynchronous=False,
            )
        assert "declared_value" in exc.value.messages

    def test_boxes_accepted_as_json(self):
        ir_id = _create_request(service="ph-to-uae")
        current_domain.process(
            SubmitVerification(
                invoice_request_id=ir_id,
                actual_weight=3,
                volumetric_weight=2,
                boxes=json.dumps([{"items": "Clothes", "classification": "FLOWMIC"}]),
            ),
            asynchronous=False,
        )
        ir = _get(ir_id)
        assert ir.verification.shipment_classification == "GENERAL"
        assert ir.verification.boxes[0]["classification"] == "GENERAL"

    def test_completion_requires_submitted_verification(self):
        ir_id = _create_request()
        with pytest.raises(ValidationError) as exc:
            current_domain.process(CompleteVerification(invoice_request_id=ir_id), asynchronous=False)
        assert "verification" in exc.value.messages


class TestCompleteInvoice:
    def test_downstream_records_created(self):
        ir_id = _create_request()
        _verify(ir_id)

        current_domain.process(CompleteInvoice(invoice_request_id=ir_id, invoice_amount=850.0, total_amount=900.0), asynchronous=False)

        ir = _get(ir_id)
        assert ir.status == "COMPLETED"
        assert ir.invoice_generated_at is not None

        invoice = current_domain.repository_for(Invoice)._dao.query.filter(invoice_request_id=ir_id).all().first
        assert invoice.invoice_number == ir.invoice_number
        assert invoice.amount == 850.0

        collection = current_domain.repository_for(Collection)._dao.query.filter(invoice_request_id=ir_id).all().first
        assert collection.amount == 850.0
        assert collection.status == "not_paid"

        assignment = _assignment_for(ir_id)
        assert assignment.assignment_id == ir.tracking_code
        assert assignment.amount == 900.0
        assert assignment.delivery_type == "PREPAID"
        assert assignment.receiver_name == "Jose Rizal"

    def test_cod_assignment(self):
        ir_id = _create_request()
        _verify(ir_id)
        current_domain.process(CompleteInvoice(invoice_request_id=ir_id, invoice_amount=500.0, total_amount_cod=520.0), asynchronous=False)
        assignment = _assignment_for(ir_id)
        assert assignment.delivery_type == "COD"
        assert assignment.amount == 520.0

    def test_zero_amount_skips_collection_and_assignment(self):
        ir_id = _create_request()
        _verify(ir_id)
        current_domain.process(CompleteInvoice(invoice_request_id=ir_id, invoice_amount=0.0), asynchronous=False)

        assert _get(ir_id).status == "COMPLETED"
        assert current_domain.repository_for(Invoice)._dao.query.all().total == 1
        assert current_domain.repository_for(Collection)._dao.query.all().total == 0
        assert _assignment_for(ir_id) is None

    def test_unverified_request_cannot_complete(self):
        ir_id = _create_request()
        with pytest.raises(ValidationError):
            current_domain.process(CompleteInvoice(invoice_request_id=ir_id, invoice_amount=100.0), asynchronous=False)
        assert current_domain.repository_for(Invoice)._dao.query.all().total == 0

    def test_reinitiate_refreshes_existing_assignment(self):
        ir_id = _create_request()
        _verify(ir_id)
        current_domain.process(CompleteInvoice(invoice_request_id=ir_id, total_amount=300.0), asynchronous=False)
        original = _assignment_for(ir_id)

        repo = current_domain.repository_for(InvoiceRequest)
        ir = repo.get(ir_id)
        ir.tax_invoice = 350.0
        repo.add(ir)
        current_domain.process(ReinitiateDeliveryAssignment(invoice_request_id=ir_id), asynchronous=False)

        refreshed = _assignment_for(ir_id)
        assert refreshed.id == original.id
        assert refreshed.amount == 350.0
        assert refreshed.qr_code == original.qr_code

    def test_reinitiate_requires_completed_request(self):
        ir_id = _create_request()
        with pytest.raises(ValidationError):
            current_domain.process(ReinitiateDeliveryAssignment(invoice_request_id=ir_id), asynchronous=False)


class TestStatusCommands:
    def test_start_processing(self):
        ir_id = _create_request()
        current_domain.process(StartProcessing(invoice_request_id=ir_id), asynchronous=False)
        assert _get(ir_id).status == "IN_PROGRESS"

    def test_invalid_status_change(self):
        ir_id = _create_request()
        with pytest.raises(ValidationError) as exc:
            current_domain.process(UpdateInvoiceRequestStatus(invoice_request_id=ir_id, status="DRAFT"), asynchronous=False)
        assert exc.value.messages["status"] == ["Cannot transition from SUBMITTED to DRAFT"]

    def test_delivery_status_update(self):
        ir_id = _create_request()
        current_domain.process(
            UpdateDeliveryStatus(invoice_request_id=ir_id, delivery_status="IN_TRANSIT", notes="Left Manila hub"),
            asynchronous=False,
        )
        ir = _get(ir_id)
        assert ir.delivery_status == "IN_TRANSIT"
        assert ir.notes == "Left Manila hub"

    def test_cancel(self):
        ir_id = _create_request()
        current_domain.process(CancelInvoiceRequest(invoice_request_id=ir_id, reason="Customer request"), asynchronous=False)
        ir = _get(ir_id)
        assert ir.status == "CANCELLED"
        assert ir.cancellation_reason == "Customer request"

    def test_cancelled_request_is_terminal(self):
        ir_id = _create_request()
        current_domain.process(CancelInvoiceRequest(invoice_request_id=ir_id), asynchronous=False)
        with pytest.raises(ValidationError):
            current_domain.process(StartProcessing(invoice_request_id=ir_id), asynchronous=False)
