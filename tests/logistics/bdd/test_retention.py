"""BDD tests for the retention sweeper."""

from datetime import UTC, datetime, timedelta

import pytest
from logistics.booking.booking import Booking
from logistics.invoice.invoice import Invoice
from logistics.invoice_request.invoice_request import InvoiceRequest
from logistics.retention.sweeper import RetentionSweeper
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/retention.feature")

NOW = datetime(2026, 3, 10, 16, 45, tzinfo=UTC)


@pytest.fixture()
def sweeper():
    return RetentionSweeper(clock=lambda: NOW)


def _store_request(age):
    ir = InvoiceRequest.create(
        invoice_number="INV-000777",
        tracking_code="PHL7XY8ZA90BC1D",
        service_code="PH_TO_UAE",
        created_at=NOW - timedelta(days=age),
    )
    current_domain.repository_for(InvoiceRequest).add(ir)
    return ir


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("an invoice request created {age:d} days ago"))
def _(age):
    _store_request(age)


@given(parsers.cfparse('a "{review_status}" booking created {age:d} days ago'), target_fixture="booking_id")
def _(review_status, age):
    booking = Booking.submit(service_code="UAE_TO_PH", created_at=NOW - timedelta(days=age))
    booking.review_status = review_status
    current_domain.repository_for(Booking).add(booking)
    return str(booking.id)


@given(parsers.cfparse("an invoice issued for a request created {age:d} days ago"))
def _(age):
    ir = _store_request(age)
    invoice = Invoice.issue(ir.invoice_number, str(ir.id), tracking_code=ir.tracking_code, amount=450.0)
    current_domain.repository_for(Invoice).add(invoice)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the retention cleanup runs", target_fixture="stats")
def _(sweeper):
    return sweeper.run_cleanup()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("{deleted:d} invoice requests are deleted"))
def _(stats, deleted):
    assert stats["invoice_requests"] == deleted


@then(parsers.cfparse('{deleted:d} "{category}" records are deleted'))
def _(stats, deleted, category):
    assert stats[category] == deleted


@then("the booking still exists")
def _(booking_id):
    assert current_domain.repository_for(Booking)._dao.query.filter(id=booking_id).count() == 1


@then("the invoice count is unchanged")
def _(stats):
    assert stats["invoices_before"] == stats["invoices_after"] == 1
