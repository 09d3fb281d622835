"""
Quality Score Engine for the Appraisal Engine

Scores how relevant a comparable listing is to the subject vehicle:
- Distance from the subject (miles)
- Model-year difference
- Mileage difference
- Equipment match

Scoring starts at a base of 100 and applies penalties and bonuses. Scores
have no ceiling; they are clamped at zero only when used as weights.
"""

from typing import Optional

from utils.formatting import format_number, format_percent

from .models import (
    Comparable,
    QualityScoreBreakdown,
    QualityScoreExplanations,
    SubjectVehicle,
    normalise_equipment,
)
from .tables import ValuationSettings


# =============================================================================
# Configuration Constants
# =============================================================================

BASE_SCORE = 100.0

# Distance
DISTANCE_THRESHOLD_MILES = 100
DISTANCE_PENALTY_PER_MILE = 0.1
MAX_DISTANCE_PENALTY = 20.0

# Age
AGE_PENALTY_PER_YEAR = 2.0
MAX_AGE_PENALTY = 10.0

# Mileage: (max fractional difference, bonus, penalty)
MILEAGE_BANDS = (
    (0.20, 10.0, 0.0),
    (0.40, 0.0, 5.0),
    (0.60, 0.0, 10.0),
)
MILEAGE_OUTLIER_PENALTY = 15.0

# Equipment
EQUIPMENT_MATCH_BONUS = 15.0
EQUIPMENT_MISSING_PENALTY = 10.0
EQUIPMENT_EXTRA_BONUS = 5.0


class QualityScoreEngine:
    """
    Scores one comparable against the subject vehicle.

    Stateless apart from its settings; safe to share across threads.
    """

    def __init__(self, settings: Optional[ValuationSettings] = None):
        """
        Initialize quality score engine.

        Args:
            settings: Valuation tables (default: standard settings)
        """
        self._settings = settings or ValuationSettings()

    def score(
        self,
        comparable: Comparable,
        subject: SubjectVehicle,
    ) -> QualityScoreBreakdown:
        """
        Calculate the quality score breakdown for a comparable.

        Args:
            comparable: The comparable listing
            subject: The vehicle being appraised

        Returns:
            QualityScoreBreakdown with raw (unclamped) components
        """
        distance_penalty, distance_text = self._distance_factor(comparable.distance_from_subject)
        age_penalty, age_bonus, age_text = self._age_factor(comparable.year, subject.year)
        mileage_penalty, mileage_bonus, mileage_text = self._mileage_factor(
            comparable.mileage, subject.mileage
        )
        equipment_penalty, equipment_bonus, equipment_text = self._equipment_factor(
            comparable.equipment, subject.equipment
        )

        return QualityScoreBreakdown(
            base_score=BASE_SCORE,
            distance_penalty=distance_penalty,
            age_penalty=age_penalty,
            age_bonus=age_bonus,
            mileage_penalty=mileage_penalty,
            mileage_bonus=mileage_bonus,
            equipment_penalty=equipment_penalty,
            equipment_bonus=equipment_bonus,
            explanations=QualityScoreExplanations(
                distance=distance_text,
                age=age_text,
                mileage=mileage_text,
                equipment=equipment_text,
            ),
        )

    def _distance_factor(self, distance: float) -> tuple[float, str]:
        """
        Distance penalty.

        No penalty within 100 miles, 0.1 point per mile beyond, max 20.
        """
        if distance <= DISTANCE_THRESHOLD_MILES:
            return 0.0, (
                f"Distance: {distance:.0f} miles "
                f"(within {DISTANCE_THRESHOLD_MILES} mile threshold, no penalty)"
            )

        excess = distance - DISTANCE_THRESHOLD_MILES
        penalty = min(excess * DISTANCE_PENALTY_PER_MILE, MAX_DISTANCE_PENALTY)
        return penalty, (
            f"Distance: {distance:.0f} miles "
            f"({excess:.0f} miles over threshold, -{penalty:.1f} points)"
        )

    def _age_factor(self, comparable_year: int, subject_year: int) -> tuple[float, float, str]:
        """
        Age penalty or exact-match bonus.

        2 points per year of difference, max 10.
        """
        difference = abs(comparable_year - subject_year)

        if difference == 0:
            bonus = self._settings.exact_year_bonus
            if bonus:
                return 0.0, bonus, f"Age: Exact match ({comparable_year}, +{bonus:.1f} points)"
            return 0.0, 0.0, f"Age: Exact match ({comparable_year}), no adjustment"

        penalty = min(difference * AGE_PENALTY_PER_YEAR, MAX_AGE_PENALTY)
        direction = "newer" if comparable_year > subject_year else "older"
        plural = "s" if difference > 1 else ""
        return penalty, 0.0, (
            f"Age: {difference} year{plural} {direction} "
            f"({comparable_year} vs {subject_year}, -{penalty:.1f} points)"
        )

    def _mileage_factor(self, comparable_mileage: int, subject_mileage: int) -> tuple[float, float, str]:
        """
        Mileage bonus or penalty by percentage difference.

        <=20%: +10, <=40%: -5, <=60%: -10, >60%: -15
        """
        if subject_mileage <= 0:
            return 0.0, 0.0, "Mileage: Subject vehicle has 0 miles, no adjustment"

        fraction = abs(comparable_mileage - subject_mileage) / subject_mileage
        readings = (
            f"{format_number(comparable_mileage)} vs {format_number(subject_mileage)}, "
            f"{format_percent(fraction * 100)} difference"
        )

        for index, (max_fraction, bonus, penalty) in enumerate(MILEAGE_BANDS):
            if fraction <= max_fraction:
                break
        else:
            index, bonus, penalty = len(MILEAGE_BANDS), 0.0, MILEAGE_OUTLIER_PENALTY

        if bonus:
            return 0.0, bonus, f"Mileage: {readings} (within 20%, +{bonus:.1f} points)"

        band = ("20-40%", "40-60%", ">60%")[index - 1]
        direction = "higher" if comparable_mileage > subject_mileage else "lower"
        return penalty, 0.0, f"Mileage: {readings} ({band} {direction}, -{penalty:.1f} points)"

    def _equipment_factor(self, comparable_equipment, subject_equipment) -> tuple[float, float, str]:
        """
        Equipment penalty and bonus.

        Identical sets: +15 flat. Otherwise -10 per missing subject feature
        and +5 per extra comparable feature, both uncapped.
        """
        subject_keys = normalise_equipment(subject_equipment)
        comparable_keys = normalise_equipment(comparable_equipment)

        missing = subject_keys - comparable_keys
        extra = comparable_keys - subject_keys

        if not missing and not extra:
            return 0.0, EQUIPMENT_MATCH_BONUS, (
                f"Equipment: Perfect match (all {len(subject_keys)} features, "
                f"+{EQUIPMENT_MATCH_BONUS:.1f} points)"
            )

        penalty = len(missing) * EQUIPMENT_MISSING_PENALTY
        bonus = len(extra) * EQUIPMENT_EXTRA_BONUS

        parts = []
        if missing:
            parts.append(f"{len(missing)} missing (-{penalty:.1f} points)")
        if extra:
            parts.append(f"{len(extra)} extra (+{bonus:.1f} points)")
        return penalty, bonus, f"Equipment: {', '.join(parts)}"
