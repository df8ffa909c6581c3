"""Application tests for booking submission, review and conversion.

A reviewed booking becomes exactly one SUBMITTED invoice request carrying
freshly generated identifiers and the booking's derived shipment data.
"""

import json
import re
from unittest.mock import patch

import pytest
from logistics.booking.booking import Booking, ReviewStatus
from logistics.booking.rejection import RejectBooking
from logistics.booking.review import ReviewBooking
from logistics.booking.submission import SubmitBooking
from logistics.invoice_request.conversion import convert_booking
from logistics.invoice_request.invoice_request import InvoiceRequest
from protean import current_domain
from protean.exceptions import InvalidStateError, ValidationError


def _submit_booking(**overrides):
    data = {
        "sender": {"first_name": "Maria", "last_name": "Santos", "phone": "+639171234567", "country": "Philippines"},
        "receiver": {"full_name": "Ahmed Khan", "phone": "+971501234567", "address": "Al Barsha 1, Dubai"},
        "items": json.dumps([{"commodity": "Electronics", "qty": 2}]),
        "service": "ph-to-uae",
        "weight": 10.0,
    }
    data.update(overrides)
    return current_domain.process(SubmitBooking(**data), asynchronous=False)


def _review(booking_id, reviewed_by="ops-1"):
    return current_domain.process(ReviewBooking(booking_id=booking_id, reviewed_by=reviewed_by), asynchronous=False)


class TestSubmitBooking:
    def test_booking_stored_not_reviewed(self):
        booking_id = _submit_booking()
        booking = current_domain.repository_for(Booking).get(booking_id)
        assert booking.review_status == ReviewStatus.NOT_REVIEWED.value
        assert booking.service_code == "PH_TO_UAE"
        assert booking.items == [{"commodity": "Electronics", "qty": 2}]
        assert booking.sender.display_name == "Maria Santos"


class TestReviewConvertsBooking:
    def test_ph_to_uae_conversion(self):
        booking_id = _submit_booking()
        ir_id = _review(booking_id)

        ir = current_domain.repository_for(InvoiceRequest).get(ir_id)
        assert ir.status == "SUBMITTED"
        assert ir.delivery_status == "PENDING"
        assert ir.service_code == "PH_TO_UAE"
        assert ir.shipment_type == "NON_DOCUMENT"
        assert re.fullmatch(r"PHL[A-Z0-9]{12}", ir.tracking_code)
        assert ir.awb_number == ir.tracking_code
        assert re.fullmatch(r"INV-\d{6}", ir.invoice_number)
        assert ir.invoice_id == ir.invoice_number
        assert ir.customer_name == "Maria Santos"
        assert ir.receiver_name == "Ahmed Khan"
        assert str(ir.booking_id) == booking_id

    def test_booking_is_linked_and_reviewed(self):
        booking_id = _submit_booking()
        ir_id = _review(booking_id)

        booking = current_domain.repository_for(Booking).get(booking_id)
        assert booking.review_status == ReviewStatus.REVIEWED.value
        assert booking.reviewed_by == "ops-1"
        assert booking.converted_to_invoice_request_id == ir_id

    def test_second_conversion_is_refused(self):
        booking_id = _submit_booking()
        _review(booking_id)

        with pytest.raises(InvalidStateError):
            _review(booking_id)

        matches = current_domain.repository_for(InvoiceRequest)._dao.query.filter(booking_id=booking_id).all()
        assert matches.total == 1

    def test_booking_awb_is_reused_when_free(self):
        booking_id = _submit_booking(awb="PHL1AB2CD34EF5G")
        ir = current_domain.repository_for(InvoiceRequest).get(_review(booking_id))
        assert ir.tracking_code == "PHL1AB2CD34EF5G"

    def test_claimed_booking_awb_is_replaced(self):
        first = current_domain.repository_for(InvoiceRequest).get(_review(_submit_booking(awb="PHL1AB2CD34EF5G")))
        second = current_domain.repository_for(InvoiceRequest).get(_review(_submit_booking(awb="PHL1AB2CD34EF5G")))
        assert first.tracking_code == "PHL1AB2CD34EF5G"
        assert second.tracking_code != first.tracking_code
        assert second.tracking_code.startswith("PHL")

    def test_document_shipment(self):
        booking_id = _submit_booking(items=json.dumps([{"commodity": "Passport documents"}]))
        ir = current_domain.repository_for(InvoiceRequest).get(_review(booking_id))
        assert ir.shipment_type == "DOCUMENT"

    def test_uae_to_ph_awb_has_no_prefix(self):
        booking_id = _submit_booking(service="uae-to-ph")
        ir = current_domain.repository_for(InvoiceRequest).get(_review(booking_id))
        assert ir.service_code == "UAE_TO_PH"
        assert len(ir.tracking_code) == 15
        assert not ir.tracking_code.startswith("PHL")


class TestRejectBooking:
    def test_reject_with_reason(self):
        booking_id = _submit_booking()
        current_domain.process(
            RejectBooking(booking_id=booking_id, reviewed_by="ops-1", reason="Prohibited items"),
            asynchronous=False,
        )
        booking = current_domain.repository_for(Booking).get(booking_id)
        assert booking.review_status == ReviewStatus.REJECTED.value

    def test_reason_required(self):
        booking_id = _submit_booking()
        with pytest.raises(ValidationError) as exc:
            current_domain.process(RejectBooking(booking_id=booking_id, reason="  "), asynchronous=False)
        assert "reason" in exc.value.messages

    def test_rejected_booking_cannot_be_converted(self):
        booking_id = _submit_booking()
        current_domain.process(RejectBooking(booking_id=booking_id, reason="Duplicate"), asynchronous=False)
        with pytest.raises(ValidationError):
            _review(booking_id)
        assert current_domain.repository_for(InvoiceRequest)._dao.query.all().total == 0


class TestConversionGuards:
    def test_tracking_code_conflict_on_insert_regenerates(self):
        existing = current_domain.repository_for(InvoiceRequest).get(_review(_submit_booking())).tracking_code
        booking_id = _submit_booking()

        with patch("logistics.identifiers.tracking_number_in_use", return_value=False):
            with patch("logistics.identifiers.generate_awb_number", side_effect=[existing, "PHL0NEWCODE0001"]):
                ir = current_domain.repository_for(InvoiceRequest).get(_review(booking_id))

        assert ir.tracking_code == "PHL0NEWCODE0001"
        holders = current_domain.repository_for(InvoiceRequest)._dao.query.filter(tracking_code=existing).all()
        assert holders.total == 1

    def test_stale_booking_is_not_converted_twice(self):
        booking_id = _submit_booking()
        stale = current_domain.repository_for(Booking).get(booking_id)
        _review(booking_id)

        assert not stale.is_converted
        with pytest.raises(InvalidStateError):
            convert_booking(stale)

        matches = current_domain.repository_for(InvoiceRequest)._dao.query.filter(booking_id=booking_id).all()
        assert matches.total == 1

    def test_duplicate_booking_id_on_insert_is_invalid_state(self):
        booking_id = _submit_booking()
        stale = current_domain.repository_for(Booking).get(booking_id)
        _review(booking_id)

        with patch("logistics.invoice_request.conversion._assert_not_converted"):
            with pytest.raises(InvalidStateError, match="already has an invoice request"):
                convert_booking(stale)

        matches = current_domain.repository_for(InvoiceRequest)._dao.query.filter(booking_id=booking_id).all()
        assert matches.total == 1
