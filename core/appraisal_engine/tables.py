"""
Valuation tables for the Appraisal Engine

Standard equipment values, depreciation tiers and condition multipliers.
These are configuration data: the engines look values up here and never
hard-code them. ValuationSettings bundles them so callers can override any
table without touching engine code.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from .models import VehicleCondition


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# Standard dollar value of common equipment features
STANDARD_EQUIPMENT_VALUES: Dict[str, float] = {
    # Technology
    "Navigation": 1200,
    "Premium Audio": 800,
    "Head-Up Display": 900,
    "Wireless Charging": 200,
    "Apple CarPlay": 300,
    "Android Auto": 300,
    # Comfort
    "Sunroof": 1200,
    "Panoramic Sunroof": 1500,
    "Leather Seats": 1000,
    "Heated Seats": 500,
    "Ventilated Seats": 600,
    "Memory Seats": 400,
    "Power Seats": 500,
    "Heated Steering Wheel": 200,
    "Keyless Entry": 300,
    "Remote Start": 300,
    "Power Liftgate": 500,
    "Rain-Sensing Wipers": 200,
    "Dual-Zone Climate": 400,
    "Tri-Zone Climate": 600,
    # Safety
    "Backup Camera": 400,
    "Blind Spot Monitoring": 600,
    "Adaptive Cruise Control": 800,
    "Parking Sensors": 400,
    "Lane Departure Warning": 500,
    "Automatic Emergency Braking": 700,
    # Performance
    "Sport Package": 1500,
    "Tow Package": 700,
    "All-Wheel Drive": 2000,
    # Appearance
    "Premium Wheels": 800,
}

# Value used for features missing from the table
DEFAULT_EQUIPMENT_VALUE = 500.0

# Per-mile depreciation by vehicle age: (max age in years, $ per mile)
# The last tier has no upper bound.
DEPRECIATION_TIERS: Tuple[Tuple[Optional[int], float], ...] = (
    (3, 0.25),
    (7, 0.15),
    (None, 0.05),
)

# Price multiplier keyed by the comparable's own condition
CONDITION_MULTIPLIERS: Dict[VehicleCondition, float] = {
    VehicleCondition.EXCELLENT: 1.05,
    VehicleCondition.GOOD: 1.00,
    VehicleCondition.FAIR: 0.95,
    VehicleCondition.POOR: 0.85,
}

# Awarded on an exact model-year match, on top of the absent age penalty
EXACT_YEAR_BONUS = 0.0


@dataclass(frozen=True)
class ValuationSettings:
    """
    Tables and tunables used by every engine.

    Immutable: derive variants with with_equipment_overrides() or
    dataclasses.replace().
    """
    equipment_values: Mapping[str, float] = field(
        default_factory=lambda: dict(STANDARD_EQUIPMENT_VALUES)
    )
    default_equipment_value: float = DEFAULT_EQUIPMENT_VALUE
    depreciation_tiers: Tuple[Tuple[Optional[int], float], ...] = DEPRECIATION_TIERS
    condition_multipliers: Mapping[VehicleCondition, float] = field(
        default_factory=lambda: dict(CONDITION_MULTIPLIERS)
    )
    exact_year_bonus: float = EXACT_YEAR_BONUS

    def equipment_value(self, feature: str) -> float:
        """
        Standard value of a feature.

        Exact name first, then case-insensitive, then the default value.
        """
        if feature in self.equipment_values:
            return float(self.equipment_values[feature])
        wanted = feature.strip().lower()
        for name, value in self.equipment_values.items():
            if name.lower() == wanted:
                return float(value)
        return float(self.default_equipment_value)

    def depreciation_rate(self, vehicle_age: int) -> float:
        """Dollars per mile for a vehicle of the given age."""
        for max_age, rate in self.depreciation_tiers:
            if max_age is None or vehicle_age <= max_age:
                return rate
        # Tiers without an open-ended last entry fall back to the oldest rate
        return self.depreciation_tiers[-1][1]

    def condition_multiplier(self, condition: VehicleCondition) -> float:
        return float(self.condition_multipliers.get(condition, 1.0))

    def with_equipment_overrides(self, overrides: Mapping[str, float]) -> "ValuationSettings":
        """Copy of these settings with custom equipment values layered on top."""
        merged = dict(self.equipment_values)
        merged.update({name: float(value) for name, value in overrides.items()})
        return replace(self, equipment_values=merged)


def load_equipment_values(path) -> Dict[str, float]:
    """
    Load custom equipment values from a JSON object of name -> dollars.

    Raises:
        ValueError: if the file is not a JSON object of non-negative numbers
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Equipment values file must contain a JSON object: {path}")

    values: Dict[str, float] = {}
    for name, value in raw.items():
        try:
            amount = float(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid value for equipment '{name}': {value}") from e
        if amount < 0:
            raise ValueError(f"Equipment value for '{name}' must be non-negative")
        values[str(name)] = amount

    logger.info("Loaded %d custom equipment values from %s", len(values), path)
    return values
