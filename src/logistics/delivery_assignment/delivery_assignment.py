"""DeliveryAssignment aggregate — driver handoff for a completed invoice.

Carries what the driver needs at the door: address, receiver contact,
amount to collect and a QR payment handle. ``assignment_id`` is the
shipment's AWB.

State Machine:
    NOT_DELIVERED → DELIVERED
"""

import secrets
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from logistics.domain import logistics

NOT_AVAILABLE = "N/A"
DEFAULT_QR_EXPIRY_HOURS = 24


class DeliveryType(Enum):
    COD = "COD"
    PREPAID = "PREPAID"


class AssignmentStatus(Enum):
    NOT_DELIVERED = "NOT_DELIVERED"
    DELIVERED = "DELIVERED"


@logistics.event(part_of="DeliveryAssignment")
class DeliveryAssignmentIssued:
    __version__ = 1

    delivery_assignment_id = Identifier(required=True)
    assignment_id = String(required=True)
    invoice_request_id = Identifier(required=True)
    amount = Float(required=True)
    delivery_type = String(required=True)
    issued_at = DateTime(required=True)


@logistics.event(part_of="DeliveryAssignment")
class DeliveryAssignmentRefreshed:
    __version__ = 1

    delivery_assignment_id = Identifier(required=True)
    invoice_request_id = Identifier(required=True)
    amount = Float(required=True)
    refreshed_at = DateTime(required=True)


@logistics.aggregate
class DeliveryAssignment:
    assignment_id = String(required=True, max_length=50)
    invoice_request_id = Identifier(required=True, unique=True)
    invoice_number = String(max_length=50)
    amount = Float(required=True, min_value=0.0)
    delivery_type = String(max_length=20, choices=DeliveryType, default=DeliveryType.PREPAID.value)
    delivery_address = String(max_length=500, default=NOT_AVAILABLE)
    receiver_name = String(max_length=200, default=NOT_AVAILABLE)
    receiver_phone = String(max_length=50, default=NOT_AVAILABLE)
    delivery_instructions = String(max_length=500)
    qr_code = String(max_length=64)
    qr_url = String(max_length=500)
    qr_expires_at = DateTime()
    driver_id = Identifier()
    status = String(
        max_length=20,
        choices=AssignmentStatus,
        default=AssignmentStatus.NOT_DELIVERED.value,
    )
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def issue(
        cls,
        assignment_id: str,
        invoice_request_id: str,
        amount: float,
        cod: bool,
        frontend_url: str,
        qr_expiry_hours: int = DEFAULT_QR_EXPIRY_HOURS,
        invoice_number: str | None = None,
        delivery_address: str | None = None,
        receiver_name: str | None = None,
        receiver_phone: str | None = None,
    ):
        """Create an assignment with a fresh QR payment handle."""
        now = datetime.now(UTC)
        qr_code = secrets.token_hex(16)
        assignment = cls(
            assignment_id=assignment_id,
            invoice_request_id=invoice_request_id,
            invoice_number=invoice_number,
            amount=round(amount, 2),
            delivery_type=(DeliveryType.COD if cod else DeliveryType.PREPAID).value,
            delivery_address=delivery_address or NOT_AVAILABLE,
            receiver_name=receiver_name or NOT_AVAILABLE,
            receiver_phone=receiver_phone or NOT_AVAILABLE,
            delivery_instructions="Please contact customer for delivery details",
            qr_code=qr_code,
            qr_url=f"{frontend_url.rstrip('/')}/qr-payment/{qr_code}",
            qr_expires_at=now + timedelta(hours=qr_expiry_hours),
            created_at=now,
            updated_at=now,
        )
        assignment.raise_(
            DeliveryAssignmentIssued(
                delivery_assignment_id=str(assignment.id),
                assignment_id=assignment_id,
                invoice_request_id=invoice_request_id,
                amount=assignment.amount,
                delivery_type=assignment.delivery_type,
                issued_at=now,
            )
        )
        return assignment

    def refresh(
        self,
        amount: float,
        delivery_address: str | None = None,
        receiver_name: str | None = None,
        receiver_phone: str | None = None,
    ) -> None:
        """Apply the latest invoice values. Driver and QR handle are kept."""
        now = datetime.now(UTC)
        self.amount = round(amount, 2)
        self.delivery_address = delivery_address or self.delivery_address or NOT_AVAILABLE
        self.receiver_name = receiver_name or self.receiver_name or NOT_AVAILABLE
        self.receiver_phone = receiver_phone or self.receiver_phone or NOT_AVAILABLE
        self.updated_at = now
        self.raise_(
            DeliveryAssignmentRefreshed(
                delivery_assignment_id=str(self.id),
                invoice_request_id=str(self.invoice_request_id),
                amount=self.amount,
                refreshed_at=now,
            )
        )
