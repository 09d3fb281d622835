"""
Confidence Estimator for the Appraisal Engine

Confidence (0-95) combines:
- Base level from comparable count
- Quality consistency (population std-dev of quality scores)
- Price consistency (coefficient of variation of adjusted prices)
"""

import math
from typing import Sequence

from .models import ConfidenceFactors


# =============================================================================
# Configuration Constants
# =============================================================================

# Base confidence by comparable count (counts above 5 follow a curve)
BASE_CONFIDENCE_BY_COUNT = {
    0: 0.0,
    1: 20.0,
    2: 40.0,
    3: 65.0,
    4: 65.0,
    5: 80.0,
}
MAX_CONFIDENCE = 95.0

# Above 5 comparables the base closes a fixed share of the gap to the cap
# with each extra comparable: 80 + 15 * (1 - 0.8 ** (n - 5))
BASE_CURVE_DECAY = 0.8

# Quality score standard deviation: (upper bound, bonus)
QUALITY_CONSISTENCY_BANDS = ((10.0, 20.0), (20.0, 10.0))

# Adjusted price coefficient of variation: (upper bound, bonus)
PRICE_CONSISTENCY_BANDS = ((0.15, 20.0), (0.25, 10.0))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean (0 for no values)."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_std_dev(values: Sequence[float]) -> float:
    """Population standard deviation (0 for fewer than two values)."""
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    return math.sqrt(mean([(v - avg) ** 2 for v in values]))


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Std-dev divided by mean (0 when the mean is not positive)."""
    avg = mean(values)
    if avg <= 0:
        return 0.0
    return population_std_dev(values) / avg


class ConfidenceEstimator:
    """
    Derives a 0-95 confidence level for a market value.
    """

    def base_confidence(self, count: int) -> float:
        """
        Base confidence from comparable count.

        1: 20, 2: 40, 3-4: 65, 5: 80, then rising towards 95.
        """
        if count <= 0:
            return 0.0
        if count in BASE_CONFIDENCE_BY_COUNT:
            return BASE_CONFIDENCE_BY_COUNT[count]
        gap = MAX_CONFIDENCE - BASE_CONFIDENCE_BY_COUNT[5]
        return BASE_CONFIDENCE_BY_COUNT[5] + gap * (1 - BASE_CURVE_DECAY ** (count - 5))

    def estimate(
        self,
        comparables_count: int,
        quality_scores: Sequence[float],
        adjusted_prices: Sequence[float],
    ) -> tuple[int, ConfidenceFactors]:
        """
        Calculate confidence level and its contributing factors.

        Args:
            comparables_count: Number of comparables in the analysis
            quality_scores: Quality score per comparable
            adjusted_prices: Adjusted price per comparable

        Returns:
            Tuple of (confidence level 0-95, ConfidenceFactors)
        """
        if comparables_count <= 0:
            return 0, ConfidenceFactors(
                comparable_count=0,
                quality_score_variance=0.0,
                price_variance=0.0,
            )

        quality_std_dev = population_std_dev(quality_scores)
        price_cv = coefficient_of_variation(adjusted_prices)

        confidence = self.base_confidence(comparables_count)
        confidence += self._band_bonus(quality_std_dev, QUALITY_CONSISTENCY_BANDS)
        confidence += self._band_bonus(price_cv, PRICE_CONSISTENCY_BANDS)

        level = int(round(min(max(confidence, 0.0), MAX_CONFIDENCE)))

        return level, ConfidenceFactors(
            comparable_count=comparables_count,
            quality_score_variance=quality_std_dev,
            price_variance=price_cv,
        )

    @staticmethod
    def _band_bonus(value: float, bands) -> float:
        """Bonus of the first band whose upper bound exceeds the value."""
        if not math.isfinite(value):
            return 0.0
        for upper, bonus in bands:
            if value < upper:
                return bonus
        return 0.0
