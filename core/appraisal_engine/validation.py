"""
Input checks for the Appraisal Engine

The engine never fails on in-range values. These checks decide which
comparables are malformed and must be skipped, and whether the subject
vehicle can be valued at all.
"""

import math
from numbers import Real
from typing import List

from .models import Comparable, SubjectVehicle, VehicleCondition


# =============================================================================
# Configuration Constants
# =============================================================================

MIN_MODEL_YEAR = 1900
MAX_MODEL_YEAR = 2100


class InvalidSubjectVehicleError(ValueError):
    """The subject vehicle cannot be used as a valuation baseline."""

    def __init__(self, reasons: List[str]):
        self.reasons = list(reasons)
        super().__init__("Invalid subject vehicle: " + "; ".join(self.reasons))


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _check_year(year, errors: List[str]) -> None:
    if not isinstance(year, int) or isinstance(year, bool):
        errors.append(f"year must be an integer: {year!r}")
    elif not MIN_MODEL_YEAR <= year <= MAX_MODEL_YEAR:
        errors.append(f"year out of range: {year}")


def _check_mileage(mileage, errors: List[str]) -> None:
    if not _is_number(mileage):
        errors.append(f"mileage must be a finite number: {mileage!r}")
    elif mileage < 0:
        errors.append("mileage must be non-negative")


def _check_condition(condition, errors: List[str]) -> None:
    if not isinstance(condition, VehicleCondition):
        errors.append(f"Invalid condition: {condition!r}")


def _check_equipment(equipment, errors: List[str]) -> None:
    for feature in equipment:
        if not isinstance(feature, str):
            errors.append(f"equipment names must be strings: {feature!r}")


def validate_subject(subject: SubjectVehicle) -> List[str]:
    """
    Validate the subject vehicle.

    Returns:
        List of problems (empty when valid)
    """
    errors: List[str] = []
    _check_year(subject.year, errors)
    _check_mileage(subject.mileage, errors)
    _check_condition(subject.condition, errors)
    _check_equipment(subject.equipment, errors)
    return errors


def validate_comparable(comparable: Comparable) -> List[str]:
    """
    Validate one comparable listing.

    Returns:
        List of problems (empty when valid)
    """
    errors: List[str] = []

    if not _is_number(comparable.list_price):
        errors.append(f"list_price must be a finite number: {comparable.list_price!r}")
    elif comparable.list_price < 0:
        errors.append("list_price must be non-negative")

    _check_year(comparable.year, errors)
    _check_mileage(comparable.mileage, errors)

    if not _is_number(comparable.distance_from_subject):
        errors.append(
            f"distance_from_subject must be a finite number: {comparable.distance_from_subject!r}"
        )
    elif comparable.distance_from_subject < 0:
        errors.append("distance_from_subject must be non-negative")

    _check_condition(comparable.condition, errors)
    _check_equipment(comparable.equipment, errors)
    return errors
