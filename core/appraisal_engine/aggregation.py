"""
Market Value Aggregator for the Appraisal Engine

Market Value = Σ(Adjusted Price x Quality Score) / Σ(Quality Scores)

Quality scores are clamped at zero before weighting. When every weight is
zero the aggregator falls back to the unweighted mean instead of dividing
by zero. Every step is recorded for audit and report rendering.
"""

import logging
import math
from typing import List, Optional, Sequence

from utils.formatting import format_currency, format_number

from .models import (
    CalculationStep,
    MarketValueCalculation,
    ReferenceComparison,
    ScoredComparable,
    WeightedComparable,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# A calculated value this far above the reference flags it as undervalued
UNDERVALUED_THRESHOLD_PERCENT = 20.0

WEIGHTING_QUALITY = "quality-weighted"
WEIGHTING_UNWEIGHTED = "unweighted-fallback"


class MarketValueAggregator:
    """
    Combines scored comparables into one market value with a trace.
    """

    def aggregate(
        self,
        comparables: Sequence[ScoredComparable],
    ) -> Optional[MarketValueCalculation]:
        """
        Calculate the quality-weighted market value.

        Args:
            comparables: Scored and adjusted comparables

        Returns:
            MarketValueCalculation, or None when there are no comparables
        """
        if not comparables:
            return None

        weighted = [
            WeightedComparable(
                label=c.label,
                list_price=c.comparable.list_price,
                adjusted_price=c.adjusted_price,
                quality_score=c.quality_score,
                weight=c.quality.weight,
                weighted_value=c.adjusted_price * c.quality.weight,
            )
            for c in comparables
        ]

        total_weighted_value = sum(w.weighted_value for w in weighted)
        total_weight = sum(w.weight for w in weighted)

        if total_weight > 0:
            final_value = total_weighted_value / total_weight
            weighting = WEIGHTING_QUALITY
        else:
            logger.warning(
                "All %d quality scores clamp to zero; using unweighted mean",
                len(weighted),
            )
            final_value = sum(w.adjusted_price for w in weighted) / len(weighted)
            weighting = WEIGHTING_UNWEIGHTED

        final_value = float(round(final_value))
        steps = self._build_steps(weighted, total_weighted_value, total_weight, final_value, weighting)

        return MarketValueCalculation(
            comparables=weighted,
            total_weighted_value=total_weighted_value,
            total_weight=total_weight,
            final_value=final_value,
            weighting=weighting,
            steps=steps,
        )

    def compare_to_reference(
        self,
        market_value: Optional[float],
        reference_value: Optional[float],
    ) -> ReferenceComparison:
        """
        Compare the calculated value with a reference valuation.

        difference = market value - reference
        percentage = difference / reference x 100 (None if reference is 0)
        undervalued = difference > 0 and |percentage| > 20

        A non-finite reference value counts as no reference.
        """
        if reference_value is not None and not math.isfinite(reference_value):
            logger.warning("Ignoring non-finite reference value: %r", reference_value)
            reference_value = None

        if market_value is None or reference_value is None:
            return ReferenceComparison(
                reference_value=reference_value,
                value_difference=None,
                value_difference_percentage=None,
                is_undervalued=False,
            )

        difference = market_value - reference_value
        percentage = None
        if reference_value != 0:
            percentage = difference / reference_value * 100

        is_undervalued = (
            difference > 0
            and percentage is not None
            and abs(percentage) > UNDERVALUED_THRESHOLD_PERCENT
        )

        return ReferenceComparison(
            reference_value=reference_value,
            value_difference=difference,
            value_difference_percentage=percentage,
            is_undervalued=is_undervalued,
        )

    def _build_steps(
        self,
        weighted: List[WeightedComparable],
        total_weighted_value: float,
        total_weight: float,
        final_value: float,
        weighting: str,
    ) -> List[CalculationStep]:
        """Ordered narrative of the calculation."""
        steps = [
            CalculationStep(
                step=1,
                description="List comparable vehicles with adjusted prices and quality scores",
                calculation="\n".join(
                    f"{w.label}: {format_currency(w.adjusted_price)} at quality {w.quality_score:.1f}"
                    for w in weighted
                ),
                result=float(len(weighted)),
            ),
            CalculationStep(
                step=2,
                description="Calculate weighted values (Adjusted Price × Quality Score)",
                calculation="\n".join(
                    f"{w.label}: {format_currency(w.adjusted_price)} × {w.weight:.1f} = "
                    f"{format_number(w.weighted_value, 2)}"
                    for w in weighted
                ),
                result=0.0,
            ),
            CalculationStep(
                step=3,
                description="Sum all weighted values",
                calculation=(
                    " + ".join(format_number(w.weighted_value, 2) for w in weighted)
                    + f" = {format_number(total_weighted_value, 2)}"
                ),
                result=total_weighted_value,
            ),
            CalculationStep(
                step=4,
                description="Sum all quality scores (weights)",
                calculation=(
                    " + ".join(f"{w.weight:.1f}" for w in weighted)
                    + f" = {total_weight:.1f}"
                ),
                result=total_weight,
            ),
        ]

        if weighting == WEIGHTING_QUALITY:
            steps.append(CalculationStep(
                step=5,
                description="Calculate quality-weighted average (Market Value)",
                calculation=(
                    f"{format_number(total_weighted_value, 2)} ÷ {total_weight:.1f} = "
                    f"{format_currency(final_value)}"
                ),
                result=final_value,
            ))
        else:
            total_price = sum(w.adjusted_price for w in weighted)
            steps.append(CalculationStep(
                step=5,
                description=(
                    "Total weight is zero; calculate unweighted average of adjusted prices "
                    "(Market Value)"
                ),
                calculation=(
                    f"{format_number(total_price, 2)} ÷ {len(weighted)} = "
                    f"{format_currency(final_value)}"
                ),
                result=final_value,
            ))

        return steps
