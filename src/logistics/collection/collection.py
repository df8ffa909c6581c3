"""Collection aggregate — an outstanding receivable for a completed invoice.

State Machine:
    NOT_PAID → PAID
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String

from logistics.domain import logistics

DEFAULT_DUE_DAYS = 30


class CollectionStatus(Enum):
    NOT_PAID = "not_paid"
    PAID = "paid"


@logistics.event(part_of="Collection")
class CollectionCreated:
    """A receivable was opened for a completed invoice request."""

    __version__ = 1

    collection_id = Identifier(required=True)
    invoice_id = String(required=True)
    invoice_request_id = Identifier(required=True)
    amount = Float(required=True)
    due_date = DateTime(required=True)


@logistics.aggregate
class Collection:
    invoice_id = String(required=True, max_length=50)
    invoice_request_id = Identifier(required=True, unique=True)
    client_name = String(max_length=200)
    amount = Float(required=True, min_value=0.0)
    due_date = DateTime(required=True)
    status = String(
        max_length=20,
        choices=CollectionStatus,
        default=CollectionStatus.NOT_PAID.value,
    )
    created_at = DateTime()

    @classmethod
    def open(
        cls,
        invoice_id: str,
        invoice_request_id: str,
        amount: float,
        client_name: str | None = None,
        due_days: int = DEFAULT_DUE_DAYS,
    ):
        """Open a receivable due ``due_days`` from now. Amount must be positive."""
        if not amount or amount <= 0:
            raise ValidationError({"amount": ["Collection amount must be greater than 0"]})

        now = datetime.now(UTC)
        collection = cls(
            invoice_id=invoice_id,
            invoice_request_id=invoice_request_id,
            client_name=client_name,
            amount=amount,
            due_date=now + timedelta(days=due_days),
            created_at=now,
        )
        collection.raise_(
            CollectionCreated(
                collection_id=str(collection.id),
                invoice_id=invoice_id,
                invoice_request_id=invoice_request_id,
                amount=amount,
                due_date=collection.due_date,
            )
        )
        return collection
