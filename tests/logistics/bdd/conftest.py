"""Shared BDD fixtures and step definitions for the Logistics domain."""

import pytest
from logistics.invoice_request.events import (
    DeliveryStatusChanged,
    InvoiceRequestCancelled,
    InvoiceRequestCompleted,
    InvoiceRequestStatusChanged,
    InvoiceRequestVerified,
    VerificationSubmitted,
)
from logistics.invoice_request.invoice_request import InvoiceRequest, Verification
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

# Map event name strings to classes for dynamic lookup in Then steps
_INVOICE_REQUEST_EVENT_CLASSES = {
    "InvoiceRequestStatusChanged": InvoiceRequestStatusChanged,
    "VerificationSubmitted": VerificationSubmitted,
    "InvoiceRequestVerified": InvoiceRequestVerified,
    "InvoiceRequestCompleted": InvoiceRequestCompleted,
    "InvoiceRequestCancelled": InvoiceRequestCancelled,
    "DeliveryStatusChanged": DeliveryStatusChanged,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def _new_request(service_code, insured=False):
    ir = InvoiceRequest.create(
        invoice_number="INV-000321",
        tracking_code="PHL4QR5ST67UV8W",
        service_code=service_code,
        insured=insured,
        customer_name="Maria Santos",
        verification=Verification(boxes=[], number_of_boxes=1),
    )
    ir._events.clear()
    return ir


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a submitted "{service_code}" invoice request'), target_fixture="invoice_request")
def submitted_request(service_code):
    return _new_request(service_code)


@given(parsers.cfparse('an insured "{service_code}" invoice request'), target_fixture="invoice_request")
def insured_request(service_code):
    return _new_request(service_code, insured=True)


@given("the invoice request is in progress", target_fixture="invoice_request")
def in_progress_request(invoice_request):
    invoice_request.start_processing()
    invoice_request._events.clear()
    return invoice_request


@given("verification was submitted", target_fixture="invoice_request")
def verification_submitted(invoice_request):
    invoice_request.submit_verification(
        {"actual_weight": 10, "volumetric_weight": 8, "shipment_classification": "FLOWMIC"}
    )
    invoice_request._events.clear()
    return invoice_request


@given("the invoice request is verified", target_fixture="invoice_request")
def verified_request(invoice_request):
    invoice_request.complete_verification("ops-1")
    invoice_request._events.clear()
    return invoice_request


@given("the invoice request is cancelled", target_fixture="invoice_request")
def cancelled_request(invoice_request):
    invoice_request.cancel("Customer request")
    invoice_request._events.clear()
    return invoice_request


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the invoice request status is "{status}"'))
def status_is(invoice_request, status):
    assert invoice_request.status == status


@then(parsers.cfparse('the delivery status is "{delivery_status}"'))
def delivery_status_is(invoice_request, delivery_status):
    assert invoice_request.delivery_status == delivery_status


@then("the action fails with a validation error")
def action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse('the error is reported on "{field}"'))
def error_on_field(error, field):
    assert field in error["exc"].messages


@then(parsers.cfparse("a {event_type} event is raised"))
def event_raised(invoice_request, event_type):
    event_cls = _INVOICE_REQUEST_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in invoice_request._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in invoice_request._events]}"


@then("no event is raised")
def no_event(invoice_request):
    assert invoice_request._events == []
