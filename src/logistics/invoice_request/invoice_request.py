"""InvoiceRequest aggregate (CQRS) — the operational record of an accepted shipment.

An invoice request is born from a reviewed booking and carries the shipment
through operations verification and finance completion. ``tracking_code``
and ``invoice_number`` are unique across the store and never change after
creation; ``awb_number`` and ``invoice_id`` mirror them for readers that
still use the older names.

State Machine:
    DRAFT → SUBMITTED → IN_PROGRESS → VERIFIED → COMPLETED
    SUBMITTED → VERIFIED
    {DRAFT, SUBMITTED, IN_PROGRESS, VERIFIED} → CANCELLED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Dict,
    Float,
    Identifier,
    Integer,
    List,
    String,
    Text,
    ValueObject,
)

from logistics.domain import logistics
from logistics.invoice_request.events import (
    CarrierShipmentRecorded,
    DeliveryStatusChanged,
    InvoiceRequestCancelled,
    InvoiceRequestCompleted,
    InvoiceRequestCreated,
    InvoiceRequestStatusChanged,
    InvoiceRequestVerified,
    VerificationSubmitted,
)
from logistics.routes import normalize_service_code, route_for
from logistics.rules import normalize_boxes, validate_verification


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class InvoiceRequestStatus(Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    VERIFIED = "VERIFIED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class DeliveryStatus(Enum):
    PENDING = "PENDING"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class ShipmentType(Enum):
    DOCUMENT = "DOCUMENT"
    NON_DOCUMENT = "NON_DOCUMENT"


_VALID_TRANSITIONS = {
    InvoiceRequestStatus.DRAFT: {InvoiceRequestStatus.SUBMITTED, InvoiceRequestStatus.CANCELLED},
    InvoiceRequestStatus.SUBMITTED: {
        InvoiceRequestStatus.IN_PROGRESS,
        InvoiceRequestStatus.VERIFIED,
        InvoiceRequestStatus.CANCELLED,
    },
    InvoiceRequestStatus.IN_PROGRESS: {InvoiceRequestStatus.VERIFIED, InvoiceRequestStatus.CANCELLED},
    InvoiceRequestStatus.VERIFIED: {InvoiceRequestStatus.COMPLETED, InvoiceRequestStatus.CANCELLED},
    InvoiceRequestStatus.COMPLETED: set(),  # terminal
    InvoiceRequestStatus.CANCELLED: set(),  # terminal
}

_VERIFIABLE_STATUSES = {InvoiceRequestStatus.SUBMITTED, InvoiceRequestStatus.IN_PROGRESS}

# Carrier id placeholder written by older imports
NO_CARRIER_ID = "N/A"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@logistics.value_object(part_of="InvoiceRequest")
class Verification:
    """Measurements entered by operations."""

    actual_weight = Float(min_value=0.0)
    volumetric_weight = Float(min_value=0.0)
    chargeable_weight = Float(min_value=0.0)
    weight_type = String(max_length=20)
    total_kg = Float(min_value=0.0)
    total_vm = Float(min_value=0.0)
    shipment_classification = String(max_length=20)
    declared_value = Float(min_value=0.0)
    insured = Boolean(default=False)
    number_of_boxes = Integer(min_value=1, default=1)
    boxes = List()
    listed_commodities = Text()
    verified_by = String(max_length=100)
    verified_at = DateTime()
    verification_notes = Text()


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@logistics.aggregate
class InvoiceRequest:
    invoice_number = String(required=True, max_length=50, unique=True)
    invoice_id = String(max_length=50)
    tracking_code = String(required=True, max_length=50, unique=True)
    awb_number = String(max_length=50)
    service_code = String(max_length=50)
    status = String(
        max_length=20,
        choices=InvoiceRequestStatus,
        default=InvoiceRequestStatus.DRAFT.value,
    )
    delivery_status = String(
        max_length=20,
        choices=DeliveryStatus,
        default=DeliveryStatus.PENDING.value,
    )

    booking_id = Identifier(unique=True)
    booking_snapshot = Dict()

    customer_name = String(max_length=200)
    customer_phone = String(max_length=50)
    customer_email = String(max_length=254)
    receiver_name = String(max_length=200)
    receiver_phone = String(max_length=50)
    receiver_company = String(max_length=200)
    receiver_address = String(max_length=500)
    origin_place = String(max_length=500)
    destination_place = String(max_length=500)
    shipment_type = String(max_length=20, choices=ShipmentType)
    listed_commodities = Text()
    number_of_boxes = Integer(min_value=1, default=1)
    boxes = List()
    weight = Float(min_value=0.0)
    insured = Boolean(default=False)
    declared_amount = Float(min_value=0.0)
    is_leviable = Boolean(default=True)
    notes = Text()

    verification = ValueObject(Verification)
    empost_uhawb = String(max_length=100)

    invoice_amount = Float(min_value=0.0)
    total_amount = Float(min_value=0.0)
    total_amount_cod = Float(min_value=0.0)
    tax_invoice = Float(min_value=0.0)
    invoice_generated_at = DateTime()
    cancellation_reason = String(max_length=500)

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, invoice_number: str, tracking_code: str, **data):
        """Create a submitted invoice request with both identifiers assigned."""
        now = datetime.now(UTC)
        data.setdefault("status", InvoiceRequestStatus.SUBMITTED.value)
        data.setdefault("delivery_status", DeliveryStatus.PENDING.value)
        data.setdefault("created_at", now)
        data["updated_at"] = now
        data["service_code"] = normalize_service_code(data.get("service_code"))

        ir = cls(
            invoice_number=invoice_number,
            invoice_id=invoice_number,
            tracking_code=tracking_code,
            awb_number=tracking_code,
            **data,
        )
        ir.raise_(
            InvoiceRequestCreated(
                invoice_request_id=str(ir.id),
                booking_id=str(ir.booking_id) if ir.booking_id else None,
                invoice_number=invoice_number,
                tracking_code=tracking_code,
                service_code=ir.service_code,
                shipment_type=ir.shipment_type,
                customer_name=ir.customer_name,
                created_at=now,
            )
        )
        return ir

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------
    @property
    def route(self):
        return route_for(self.service_code)

    @property
    def has_carrier_shipment(self) -> bool:
        return self.empost_uhawb not in (None, "", NO_CARRIER_ID)

    @property
    def is_verification_submitted(self) -> bool:
        return self.verification is not None and self.verification.chargeable_weight is not None

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[InvoiceRequestStatus(self.status)]

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: InvoiceRequestStatus) -> None:
        current = InvoiceRequestStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _move_to(self, target_status: InvoiceRequestStatus, now: datetime) -> str:
        previous = self.status
        self.status = target_status.value
        self.updated_at = now
        self.raise_(
            InvoiceRequestStatusChanged(
                invoice_request_id=str(self.id),
                tracking_code=self.tracking_code,
                previous_status=previous,
                new_status=target_status.value,
                delivery_status=self.delivery_status,
                changed_at=now,
            )
        )
        return previous

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def start_processing(self) -> None:
        """Operations picked up the request."""
        self._assert_can_transition(InvoiceRequestStatus.IN_PROGRESS)
        self._move_to(InvoiceRequestStatus.IN_PROGRESS, datetime.now(UTC))

    def submit_verification(self, data: dict, verified_by: str | None = None) -> None:
        """Validate measured data against the route rules and store it.

        Status is unchanged. The insured flag comes from the source booking,
        never from ``data``. A ``service_code`` in ``data`` replaces the
        request's route before the rules run.
        """
        current = InvoiceRequestStatus(self.status)
        if current not in _VERIFIABLE_STATUSES:
            raise ValidationError({"status": [f"Cannot submit verification while {current.value}"]})

        service_code = normalize_service_code(data.get("service_code")) or self.service_code
        measurements = validate_verification(service_code, data, bool(self.insured))

        now = datetime.now(UTC)
        previous = self.verification
        if data.get("boxes") is not None:
            boxes = measurements.boxes
        else:
            boxes = normalize_boxes(service_code, previous.boxes if previous else None)
        self.service_code = service_code
        self.verification = Verification(
            actual_weight=measurements.actual_weight,
            volumetric_weight=measurements.volumetric_weight,
            chargeable_weight=measurements.chargeable_weight,
            weight_type=measurements.weight_type,
            total_kg=measurements.total_kg,
            total_vm=measurements.total_vm,
            shipment_classification=measurements.shipment_classification,
            declared_value=measurements.declared_value,
            insured=bool(self.insured),
            number_of_boxes=measurements.number_of_boxes,
            boxes=boxes,
            listed_commodities=data.get("listed_commodities", previous.listed_commodities if previous else None),
            verified_by=verified_by or (previous.verified_by if previous else None),
            verified_at=now,
            verification_notes=previous.verification_notes if previous else None,
        )
        self.weight = measurements.chargeable_weight
        if measurements.declared_value is not None:
            self.declared_amount = measurements.declared_value
        self.updated_at = now
        self.raise_(
            VerificationSubmitted(
                invoice_request_id=str(self.id),
                tracking_code=self.tracking_code,
                chargeable_weight=measurements.chargeable_weight,
                weight_type=measurements.weight_type,
                shipment_classification=measurements.shipment_classification,
                verified_at=now,
            )
        )

    def complete_verification(self, verified_by: str | None = None, notes: str | None = None) -> None:
        """Operations signed off on the verification; the request goes to finance."""
        if not self.is_verification_submitted:
            raise ValidationError({"verification": ["Verification details must be submitted first"]})
        self._assert_can_transition(InvoiceRequestStatus.VERIFIED)

        now = datetime.now(UTC)
        current = self.verification
        values = {name: getattr(current, name) for name in current.to_dict()}
        values.update(
            verified_by=verified_by or current.verified_by,
            verified_at=now,
            verification_notes=notes if notes is not None else current.verification_notes,
        )
        self.verification = Verification(**values)
        self._move_to(InvoiceRequestStatus.VERIFIED, now)
        self.raise_(
            InvoiceRequestVerified(
                invoice_request_id=str(self.id),
                tracking_code=self.tracking_code,
                verified_by=self.verification.verified_by or "",
                verified_at=now,
            )
        )

    def complete(
        self,
        invoice_amount: float | None = None,
        total_amount: float | None = None,
        total_amount_cod: float | None = None,
        tax_invoice: float | None = None,
    ) -> None:
        """Finance generated the invoice."""
        self._assert_can_transition(InvoiceRequestStatus.COMPLETED)

        now = datetime.now(UTC)
        if invoice_amount is not None:
            self.invoice_amount = invoice_amount
        if total_amount is not None:
            self.total_amount = total_amount
        if total_amount_cod is not None:
            self.total_amount_cod = total_amount_cod
        if tax_invoice is not None:
            self.tax_invoice = tax_invoice
        self.invoice_generated_at = now
        self.status = InvoiceRequestStatus.COMPLETED.value
        self.updated_at = now
        self.raise_(
            InvoiceRequestCompleted(
                invoice_request_id=str(self.id),
                tracking_code=self.tracking_code,
                invoice_number=self.invoice_number,
                invoice_amount=self.invoice_amount,
                delivery_status=self.delivery_status,
                completed_at=now,
            )
        )

    def change_status(self, new_status: str) -> bool:
        """Validated status change. Returns False when nothing changed."""
        try:
            target = InvoiceRequestStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown status {new_status}"]}) from None

        if target.value == self.status:
            return False
        if target == InvoiceRequestStatus.COMPLETED:
            raise ValidationError({"status": ["Use invoice completion to mark a request COMPLETED"]})
        if target == InvoiceRequestStatus.CANCELLED:
            self.cancel()
            return True
        if target == InvoiceRequestStatus.VERIFIED:
            self.complete_verification()
            return True

        self._assert_can_transition(target)
        self._move_to(target, datetime.now(UTC))
        return True

    def change_delivery_status(self, new_delivery_status: str, notes: str | None = None) -> bool:
        """Record a delivery progress update. Returns False when nothing changed."""
        try:
            target = DeliveryStatus(new_delivery_status)
        except ValueError:
            raise ValidationError({"delivery_status": [f"Unknown delivery status {new_delivery_status}"]}) from None

        now = datetime.now(UTC)
        if notes:
            self.notes = notes
            self.updated_at = now
        if target.value == self.delivery_status:
            return False

        previous = self.delivery_status
        self.delivery_status = target.value
        self.updated_at = now
        self.raise_(
            DeliveryStatusChanged(
                invoice_request_id=str(self.id),
                tracking_code=self.tracking_code,
                previous_delivery_status=previous,
                new_delivery_status=target.value,
                notes=notes,
                changed_at=now,
            )
        )
        return True

    def cancel(self, reason: str | None = None) -> None:
        self._assert_can_transition(InvoiceRequestStatus.CANCELLED)
        now = datetime.now(UTC)
        previous = self.status
        self.status = InvoiceRequestStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now
        self.raise_(
            InvoiceRequestCancelled(
                invoice_request_id=str(self.id),
                tracking_code=self.tracking_code,
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )

    def record_carrier_shipment(self, uhawb: str) -> None:
        """Store the carrier's id for this shipment. Set at most once."""
        if self.has_carrier_shipment:
            raise ValidationError({"empost_uhawb": ["Carrier shipment already recorded"]})
        if not uhawb or uhawb == NO_CARRIER_ID:
            raise ValidationError({"empost_uhawb": ["Carrier id is required"]})

        now = datetime.now(UTC)
        self.empost_uhawb = uhawb
        self.updated_at = now
        self.raise_(
            CarrierShipmentRecorded(
                invoice_request_id=str(self.id),
                tracking_code=self.tracking_code,
                empost_uhawb=uhawb,
                recorded_at=now,
            )
        )
