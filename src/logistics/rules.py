"""Classification and weight rules applied during operations verification.

Pure functions: nothing here touches the store. Every failure is reported as
a Protean ``ValidationError`` keyed by the offending field so the API can
surface it verbatim.

Route rules:
    PH_TO_UAE   classification is always GENERAL, boxes included
    UAE_TO_PH   classification must be FLOWMIC or COMMERCIAL; an insured
                shipment needs a declared value greater than zero
    other       classification is optional and stored normalized
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from protean.exceptions import ValidationError

from logistics.routes import is_ph_to_uae, is_uae_to_ph


class WeightType(Enum):
    ACTUAL = "ACTUAL"
    VOLUMETRIC = "VOLUMETRIC"


class ShipmentClassification(Enum):
    GENERAL = "GENERAL"
    FLOWMIC = "FLOWMIC"
    COMMERCIAL = "COMMERCIAL"


UAE_TO_PH_CLASSIFICATIONS = {ShipmentClassification.FLOWMIC.value, ShipmentClassification.COMMERCIAL.value}

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class WeightDerivation:
    chargeable: float
    weight_type: str


@dataclass(frozen=True)
class VerifiedMeasurements:
    """Validated, normalized verification input ready to be stored."""

    actual_weight: float
    volumetric_weight: float
    chargeable_weight: float
    weight_type: str
    total_kg: float
    total_vm: float
    number_of_boxes: int
    shipment_classification: str | None
    declared_value: float | None
    boxes: list[dict]


def derive_weight(actual: float, volumetric: float, override: float | None = None) -> WeightDerivation:
    """Chargeable weight is the override when positive, else the heavier weight."""
    if override is not None and override > 0:
        chargeable = override
    else:
        chargeable = max(actual, volumetric)
    weight_type = WeightType.ACTUAL if actual >= volumetric else WeightType.VOLUMETRIC
    return WeightDerivation(chargeable=chargeable, weight_type=weight_type.value)


def normalize_classification(value: Any) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip().upper()
    return normalized or None


def validate_classification(
    route_code: str | None,
    proposed: Any,
    is_insured: bool = False,
    declared_value: float | None = None,
) -> str | None:
    """Return the classification to store for ``route_code`` or raise.

    For UAE_TO_PH the classification and the insured declared-value rule are
    checked independently and reported together.
    """
    if is_ph_to_uae(route_code):
        return ShipmentClassification.GENERAL.value

    classification = normalize_classification(proposed)
    if not is_uae_to_ph(route_code):
        return classification

    errors: dict[str, list[str]] = {}
    if classification is None:
        errors["shipment_classification"] = [
            "shipment_classification is required for UAE_TO_PH shipments (must be FLOWMIC or COMMERCIAL)"
        ]
    elif classification not in UAE_TO_PH_CLASSIFICATIONS:
        errors["shipment_classification"] = [
            "For UAE_TO_PH shipments, shipment_classification must be either FLOWMIC or COMMERCIAL"
        ]
    if is_insured and not (declared_value and declared_value > 0):
        errors["declared_value"] = ["declared_value is required and must be greater than 0 when the shipment is insured"]
    if errors:
        raise ValidationError(errors)
    return classification


def parse_non_negative(field: str, value: Any, required: bool = True) -> float | None:
    """Parse ``value`` as a finite number >= 0."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError({field: [f"{field} is required"]})
        return None
    if isinstance(value, bool):
        raise ValidationError({field: [f"{field} must be a non-negative number"]})
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError({field: [f"{field} must be a non-negative number"]}) from None
    if not math.isfinite(number) or number < 0:
        raise ValidationError({field: [f"{field} must be a non-negative number"]})
    return number


def parse_box_count(value: Any) -> int:
    """Parse the number of boxes; absent means a single box.

    Fractions are truncated and trailing text after the leading digits is
    ignored, so ``"2.5"`` and ``"3 boxes"`` read as 2 and 3.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1
    if isinstance(value, bool):
        count = 0
    elif isinstance(value, (int, float)):
        count = int(value) if math.isfinite(value) else 0
    else:
        match = _LEADING_INTEGER.match(str(value))
        count = int(match.group(1)) if match else 0
    if count < 1:
        raise ValidationError({"number_of_boxes": ["number_of_boxes must be a number greater than or equal to 1"]})
    return count


def normalize_boxes(route_code: str | None, boxes: list[dict] | None) -> list[dict]:
    """Normalize per-box classification; PH_TO_UAE boxes are always GENERAL."""
    normalized = []
    for box in boxes or []:
        box = dict(box)
        if is_ph_to_uae(route_code):
            classification = ShipmentClassification.GENERAL.value
        else:
            classification = normalize_classification(box.get("classification"))
        box["classification"] = classification
        box["shipment_classification"] = classification
        normalized.append(box)
    return normalized


def validate_verification(route_code: str | None, data: dict, is_insured: bool) -> VerifiedMeasurements:
    """Validate a verification submission and derive the stored measurements.

    ``is_insured`` must come from the source booking: the form's own
    ``insured`` value is not trusted for the declared-value rule. All field
    errors are collected and raised together.
    """
    errors: dict[str, list[str]] = {}
    values: dict[str, Any] = {}

    def collect(key, parse, *args):
        try:
            values[key] = parse(*args)
        except ValidationError as exc:
            for field, messages in exc.messages.items():
                errors.setdefault(field, []).extend(messages)

    collect("actual_weight", parse_non_negative, "actual_weight", data.get("actual_weight"))
    collect("volumetric_weight", parse_non_negative, "volumetric_weight", data.get("volumetric_weight"))
    collect("chargeable_weight", parse_non_negative, "chargeable_weight", data.get("chargeable_weight"), False)
    collect("total_kg", parse_non_negative, "total_kg", data.get("total_kg"), False)
    collect("total_vm", parse_non_negative, "total_vm", data.get("total_vm"), False)
    collect("declared_value", parse_non_negative, "declared_value", data.get("declared_value"), False)
    collect("number_of_boxes", parse_box_count, data.get("number_of_boxes"))
    collect(
        "shipment_classification",
        validate_classification,
        route_code,
        data.get("shipment_classification"),
        is_insured,
        values.get("declared_value"),
    )
    if errors:
        raise ValidationError(errors)

    actual = values["actual_weight"]
    volumetric = values["volumetric_weight"]
    weight = derive_weight(actual, volumetric, values["chargeable_weight"])
    if weight.chargeable < max(actual, volumetric):
        raise ValidationError(
            {"chargeable_weight": ["chargeable_weight cannot be less than the actual or volumetric weight"]}
        )

    return VerifiedMeasurements(
        actual_weight=actual,
        volumetric_weight=volumetric,
        chargeable_weight=weight.chargeable,
        weight_type=weight.weight_type,
        total_kg=values["total_kg"] if values["total_kg"] is not None else actual,
        total_vm=values["total_vm"] if values["total_vm"] is not None else volumetric,
        number_of_boxes=values["number_of_boxes"],
        shipment_classification=values["shipment_classification"],
        declared_value=values["declared_value"],
        boxes=normalize_boxes(route_code, data.get("boxes")),
    )
