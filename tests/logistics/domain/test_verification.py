"""Tests for verification submission on the InvoiceRequest aggregate."""

import pytest
from logistics.invoice_request.events import VerificationSubmitted
from logistics.invoice_request.invoice_request import InvoiceRequest, Verification
from protean.exceptions import ValidationError


def _make_request(service_code="UAE_TO_PH", insured=False, **overrides):
    return InvoiceRequest.create(
        invoice_number="INV-000456",
        tracking_code="ABC1DE2FG34HI5J",
        service_code=service_code,
        insured=insured,
        verification=Verification(
            listed_commodities="Clothes (Qty: 3)",
            boxes=[{"items": "Clothes", "length": 40.0}],
            number_of_boxes=1,
        ),
        **overrides,
    )


class TestSubmitVerification:
    def test_stores_measurements(self):
        ir = _make_request()
        ir.submit_verification(
            {
                "actual_weight": 12,
                "volumetric_weight": 20,
                "shipment_classification": "commercial",
                "number_of_boxes": 2,
            },
            verified_by="ops-1",
        )
        v = ir.verification
        assert v.chargeable_weight == 20
        assert v.weight_type == "VOLUMETRIC"
        assert v.shipment_classification == "COMMERCIAL"
        assert v.number_of_boxes == 2
        assert v.verified_by == "ops-1"
        assert v.verified_at is not None
        assert ir.weight == 20
        assert isinstance(ir._events[-1], VerificationSubmitted)

    def test_status_unchanged(self):
        ir = _make_request()
        ir.submit_verification({"actual_weight": 1, "volumetric_weight": 1, "shipment_classification": "FLOWMIC"})
        assert ir.status == "SUBMITTED"

    def test_keeps_prefilled_commodities_and_boxes(self):
        ir = _make_request()
        ir.submit_verification({"actual_weight": 1, "volumetric_weight": 1, "shipment_classification": "FLOWMIC"})
        assert ir.verification.listed_commodities == "Clothes (Qty: 3)"
        assert ir.verification.boxes[0]["items"] == "Clothes"

    def test_ph_to_uae_forces_general_everywhere(self):
        ir = _make_request(service_code="PH_TO_UAE")
        ir.submit_verification(
            {
                "actual_weight": 5,
                "volumetric_weight": 4,
                "shipment_classification": "COMMERCIAL",
                "boxes": [{"classification": "FLOWMIC"}],
            }
        )
        assert ir.verification.shipment_classification == "GENERAL"
        assert ir.verification.boxes[0]["classification"] == "GENERAL"

    def test_service_code_override(self):
        ir = _make_request(service_code="UAE_TO_PH")
        ir.submit_verification({"actual_weight": 5, "volumetric_weight": 4, "service_code": "ph-to-uae"})
        assert ir.service_code == "PH_TO_UAE"
        assert ir.verification.shipment_classification == "GENERAL"

    def test_invalid_uae_to_ph_classification_leaves_request_untouched(self):
        ir = _make_request()
        with pytest.raises(ValidationError):
            ir.submit_verification({"actual_weight": 5, "volumetric_weight": 4, "shipment_classification": "GENERAL"})
        assert ir.verification.chargeable_weight is None
        assert not ir.is_verification_submitted

    def test_insured_booking_requires_declared_value(self):
        ir = _make_request(insured=True)
        with pytest.raises(ValidationError) as exc:
            ir.submit_verification(
                {"actual_weight": 5, "volumetric_weight": 4, "shipment_classification": "FLOWMIC", "insured": False}
            )
        assert "declared_value" in exc.value.messages

    def test_insured_booking_with_declared_value(self):
        ir = _make_request(insured=True)
        ir.submit_verification(
            {"actual_weight": 5, "volumetric_weight": 4, "shipment_classification": "FLOWMIC", "declared_value": 300}
        )
        assert ir.verification.declared_value == 300
        assert ir.verification.insured is True
        assert ir.declared_amount == 300

    def test_resubmission_replaces_measurements(self):
        ir = _make_request()
        ir.submit_verification({"actual_weight": 5, "volumetric_weight": 4, "shipment_classification": "FLOWMIC"})
        ir.submit_verification({"actual_weight": 7, "volumetric_weight": 9, "shipment_classification": "FLOWMIC"})
        assert ir.verification.chargeable_weight == 9

    def test_not_allowed_after_verified(self):
        ir = _make_request()
        ir.submit_verification({"actual_weight": 5, "volumetric_weight": 4, "shipment_classification": "FLOWMIC"})
        ir.complete_verification("ops-1", "Checked at hub")
        with pytest.raises(ValidationError):
            ir.submit_verification({"actual_weight": 5, "volumetric_weight": 4, "shipment_classification": "FLOWMIC"})

    def test_complete_verification_keeps_measurements(self):
        ir = _make_request()
        ir.submit_verification(
            {"actual_weight": 5, "volumetric_weight": 4, "shipment_classification": "FLOWMIC"}, verified_by="ops-1"
        )
        ir.complete_verification(None, "Checked at hub")
        assert ir.verification.chargeable_weight == 5
        assert ir.verification.verified_by == "ops-1"
        assert ir.verification.verification_notes == "Checked at hub"
