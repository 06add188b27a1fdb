"""Raw request input to ``MeasurementSet``."""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import FieldProblem, ValidationError
from .types import MeasurementSet

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"

# (attribute, accepted input keys in precedence order, integer field)
MEASUREMENT_FIELDS: Tuple[Tuple[str, Tuple[str, ...], bool], ...] = (
    ("pregnancies", ("Pregnancies", "pregnancies"), True),
    ("glucose", ("Glucose", "glucose"), False),
    ("blood_pressure", ("BloodPressure", "blood_pressure"), False),
    ("skin_thickness", ("SkinThickness", "skin_thickness"), False),
    ("insulin", ("Insulin", "insulin"), False),
    ("bmi", ("BMI", "bmi"), False),
    ("diabetes_pedigree_function", ("DiabetesPedigreeFunction", "diabetes_pedigree_function"), False),
    ("age", ("Age", "age"), True),
)


def _lookup(raw: Mapping[str, Any], keys: Tuple[str, ...]) -> Optional[Any]:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _coerce_number(value: Any) -> Optional[float]:
    """Parse a finite float from a number or numeric string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except (ValueError, OverflowError):
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def normalize_measurements(raw: Mapping[str, Any]) -> MeasurementSet:
    """Validate and coerce raw input into a ``MeasurementSet``.

    All eight measurements are required and must be non-negative numbers or
    numeric strings. Integer fields are truncated toward zero. Every offending
    field is reported in a single ``ValidationError``; nothing is defaulted to
    zero. A missing or blank ``name`` becomes ``"Unknown"``.
    """
    if not isinstance(raw, Mapping):
        raise ValidationError([FieldProblem(field="body", problem="not_object")])

    problems: List[FieldProblem] = []
    values: Dict[str, Any] = {}

    for attr, keys, is_int in MEASUREMENT_FIELDS:
        field_name = keys[0]
        raw_value = _lookup(raw, keys)
        if raw_value is None:
            problems.append(FieldProblem(field=field_name, problem="missing"))
            continue
        number = _coerce_number(raw_value)
        if number is None:
            problems.append(FieldProblem(field=field_name, problem="not_numeric"))
            continue
        if number < 0:
            problems.append(FieldProblem(field=field_name, problem="negative"))
            continue
        values[attr] = int(number) if is_int else number

    if problems:
        logger.info("Rejected measurement input: %s", [p.field for p in problems])
        raise ValidationError(problems)

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        name = UNKNOWN_NAME

    return MeasurementSet(name=name.strip(), **values)
