"""
Price Adjustment Engine for the Appraisal Engine

Normalises a comparable's list price to what it would be if it shared the
subject vehicle's mileage, equipment and condition:
- Mileage (age-tiered depreciation rate per mile)
- Equipment (standard feature values)
- Condition (multiplier keyed by the comparable's own condition)
"""

import logging
from typing import List, Optional

from utils.formatting import format_currency, format_number, format_signed_currency

from .models import (
    Comparable,
    ConditionAdjustment,
    EquipmentAdjustment,
    EquipmentAdjustmentType,
    MileageAdjustment,
    PriceAdjustments,
    SubjectVehicle,
)
from .tables import ValuationSettings


logger = logging.getLogger(__name__)


class PriceAdjustmentEngine:
    """
    Calculates itemised price adjustments for one comparable.

    Pipeline order:
    1. MILEAGE - (comparable miles - subject miles) x rate
    2. EQUIPMENT - +value per missing feature, -value per extra feature
    3. CONDITION - multiplier on the mileage/equipment-adjusted price
    """

    def __init__(
        self,
        settings: Optional[ValuationSettings] = None,
        valuation_year: Optional[int] = None,
    ):
        """
        Initialize price adjustment engine.

        Args:
            settings: Valuation tables (default: standard settings)
            valuation_year: Year vehicle age is measured from
                (default: the subject vehicle's model year)
        """
        self._settings = settings or ValuationSettings()
        self._valuation_year = valuation_year

    def adjust(
        self,
        comparable: Comparable,
        subject: SubjectVehicle,
    ) -> PriceAdjustments:
        """
        Perform all adjustments for a comparable.

        Args:
            comparable: The comparable listing
            subject: The vehicle being appraised

        Returns:
            PriceAdjustments with adjusted price clamped at zero
        """
        mileage = self.calculate_mileage_adjustment(comparable, subject)
        equipment = self.calculate_equipment_adjustments(comparable, subject)
        equipment_total = sum(adj.amount for adj in equipment)

        condition = self.calculate_condition_adjustment(
            comparable,
            base_price=comparable.list_price + mileage.adjustment_amount + equipment_total,
        )

        adjusted_price = (
            comparable.list_price
            + mileage.adjustment_amount
            + equipment_total
            + condition.adjustment_amount
        )
        if adjusted_price < 0:
            logger.warning(
                "Adjusted price for %s clamped to zero (raw %.2f)",
                comparable.id or comparable.description,
                adjusted_price,
            )
            adjusted_price = 0.0

        return PriceAdjustments(
            list_price=comparable.list_price,
            mileage_adjustment=mileage,
            equipment_adjustments=equipment,
            condition_adjustment=condition,
            adjusted_price=adjusted_price,
        )

    def vehicle_age(self, comparable: Comparable, subject: SubjectVehicle) -> int:
        """Comparable age in years at the valuation year, never negative."""
        reference_year = self._valuation_year if self._valuation_year is not None else subject.year
        return max(reference_year - comparable.year, 0)

    def calculate_mileage_adjustment(
        self,
        comparable: Comparable,
        subject: SubjectVehicle,
    ) -> MileageAdjustment:
        """
        Mileage adjustment using the age-tiered depreciation rate.

        Higher-mileage comparables are adjusted up to the value they would
        have at the subject's mileage; lower-mileage ones are adjusted down.
        """
        difference = comparable.mileage - subject.mileage
        age = self.vehicle_age(comparable, subject)
        rate = self._settings.depreciation_rate(age)

        if difference == 0:
            return MileageAdjustment(
                mileage_difference=0,
                vehicle_age=age,
                depreciation_rate=rate,
                adjustment_amount=0.0,
                explanation="Mileage matches subject vehicle, no adjustment",
            )

        amount = difference * rate
        direction = "higher" if difference > 0 else "lower"
        return MileageAdjustment(
            mileage_difference=difference,
            vehicle_age=age,
            depreciation_rate=rate,
            adjustment_amount=amount,
            explanation=(
                f"Comparable has {format_number(abs(difference))} miles {direction} "
                f"than subject vehicle. Using ${rate:.2f}/mile rate "
                f"({age} year{'s' if age != 1 else ''} old). "
                f"Adjustment: {format_signed_currency(amount)}"
            ),
        )

    def calculate_equipment_adjustments(
        self,
        comparable: Comparable,
        subject: SubjectVehicle,
    ) -> List[EquipmentAdjustment]:
        """
        Itemised equipment adjustments.

        Names compare case-insensitively; the subject's spelling is kept for
        missing features and the comparable's for extras.
        """
        subject_features = {f.strip().lower(): f.strip() for f in subject.equipment if f.strip()}
        comparable_features = {f.strip().lower(): f.strip() for f in comparable.equipment if f.strip()}

        adjustments = []

        for key in sorted(subject_features):
            if key in comparable_features:
                continue
            feature = subject_features[key]
            value = self._settings.equipment_value(feature)
            adjustments.append(EquipmentAdjustment(
                feature=feature,
                type=EquipmentAdjustmentType.MISSING,
                value=value,
                explanation=(
                    f"Comparable missing {feature} (subject vehicle has it): "
                    f"+{format_currency(value)}"
                ),
            ))

        for key in sorted(comparable_features):
            if key in subject_features:
                continue
            feature = comparable_features[key]
            value = self._settings.equipment_value(feature)
            adjustments.append(EquipmentAdjustment(
                feature=feature,
                type=EquipmentAdjustmentType.EXTRA,
                value=value,
                explanation=(
                    f"Comparable has extra {feature} (subject vehicle doesn't): "
                    f"-{format_currency(value)}"
                ),
            ))

        return adjustments

    def calculate_condition_adjustment(
        self,
        comparable: Comparable,
        base_price: float,
    ) -> ConditionAdjustment:
        """
        Condition adjustment on the mileage/equipment-adjusted price.

        amount = base_price x (multiplier - 1)
        """
        multiplier = self._settings.condition_multiplier(comparable.condition)
        amount = base_price * (multiplier - 1)

        if multiplier == 1.0:
            explanation = f"{comparable.condition.value} condition (1.00x), no adjustment"
        else:
            explanation = (
                f"{comparable.condition.value} condition ({multiplier:.2f}x) applied to "
                f"{format_currency(base_price)}: {format_signed_currency(amount)}"
            )

        return ConditionAdjustment(
            condition=comparable.condition,
            multiplier=multiplier,
            base_price=base_price,
            adjustment_amount=amount,
            explanation=explanation,
        )
