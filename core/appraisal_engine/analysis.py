"""
Market Analysis pipeline for the Appraisal Engine

Implements the single entry point that runs every engine:
1. VALIDATE - skip malformed comparables, reject an unusable subject
2. SCORE - quality score per comparable
3. ADJUST - normalised price per comparable
4. AGGREGATE - quality-weighted market value and trace
5. CONFIDENCE - 0-95 confidence level
6. COMPARE - difference against an optional reference value

The pipeline is a pure function of its inputs: no caching, no counters,
no clock.
"""

import logging
from typing import Iterable, List, Optional

from .adjustments import PriceAdjustmentEngine
from .aggregation import MarketValueAggregator
from .confidence import ConfidenceEstimator
from .models import (
    Comparable,
    MarketAnalysis,
    ScoredComparable,
    SkippedComparable,
    SubjectVehicle,
)
from .quality import QualityScoreEngine
from .tables import ValuationSettings
from .validation import InvalidSubjectVehicleError, validate_comparable, validate_subject


logger = logging.getLogger(__name__)


def comparable_label(comparable: Comparable, index: int) -> str:
    """Trace label, e.g. "Comparable 2 (2019 Honda Accord)"."""
    name = comparable.id or comparable.description
    return f"Comparable {index + 1} ({name})" if name else f"Comparable {index + 1}"


class MarketAnalysisEngine:
    """
    Complete valuation pipeline for a subject vehicle and its comparables.
    """

    def __init__(
        self,
        settings: Optional[ValuationSettings] = None,
        valuation_year: Optional[int] = None,
    ):
        """
        Initialize market analysis engine.

        Args:
            settings: Valuation tables (default: standard settings)
            valuation_year: Year vehicle age is measured from for
                depreciation (default: the subject vehicle's model year)
        """
        self._settings = settings or ValuationSettings()
        self._quality = QualityScoreEngine(self._settings)
        self._adjustments = PriceAdjustmentEngine(self._settings, valuation_year=valuation_year)
        self._aggregator = MarketValueAggregator()
        self._confidence = ConfidenceEstimator()

    @property
    def settings(self) -> ValuationSettings:
        return self._settings

    def analyze(
        self,
        subject: SubjectVehicle,
        comparables: Iterable[Comparable],
        reference_value: Optional[float] = None,
    ) -> MarketAnalysis:
        """
        Perform complete market analysis.

        Args:
            subject: The vehicle being appraised
            comparables: Comparable listings
            reference_value: Existing valuation to compare against (optional)

        Returns:
            MarketAnalysis; calculated_market_value is None with no usable
            comparables

        Raises:
            InvalidSubjectVehicleError: if the subject cannot be valued
        """
        subject_errors = validate_subject(subject)
        if subject_errors:
            raise InvalidSubjectVehicleError(subject_errors)

        scored, skipped = self.score_comparables(subject, comparables)

        # Aggregate and estimate confidence
        calculation = self._aggregator.aggregate(scored)
        market_value = calculation.final_value if calculation is not None else None

        confidence_level, confidence_factors = self._confidence.estimate(
            comparables_count=len(scored),
            quality_scores=[c.quality_score for c in scored],
            adjusted_prices=[c.adjusted_price for c in scored],
        )

        comparison = self._aggregator.compare_to_reference(market_value, reference_value)

        logger.debug(
            "Market analysis for %s: %d comparables (%d skipped), value=%s, confidence=%d",
            subject.description,
            len(scored),
            len(skipped),
            market_value,
            confidence_level,
        )

        return MarketAnalysis(
            subject=subject,
            comparables_count=len(scored),
            comparables=scored,
            calculated_market_value=market_value,
            confidence_level=confidence_level,
            confidence_factors=confidence_factors,
            reference_value=comparison.reference_value,
            value_difference=comparison.value_difference,
            value_difference_percentage=comparison.value_difference_percentage,
            is_undervalued=comparison.is_undervalued,
            calculation_breakdown=calculation,
            skipped_comparables=skipped,
        )

    def score_comparables(
        self,
        subject: SubjectVehicle,
        comparables: Iterable[Comparable],
    ) -> tuple[List[ScoredComparable], List[SkippedComparable]]:
        """
        Score and adjust every well-formed comparable.

        Malformed comparables are skipped and reported, never raised.
        """
        scored: List[ScoredComparable] = []
        skipped: List[SkippedComparable] = []

        for index, comparable in enumerate(comparables):
            label = comparable_label(comparable, index)
            errors = validate_comparable(comparable)
            if errors:
                logger.warning("Skipping %s: %s", label, "; ".join(errors))
                skipped.append(SkippedComparable(index=index, label=label, reasons=errors))
                continue

            scored.append(ScoredComparable(
                comparable=comparable,
                label=label,
                quality=self._quality.score(comparable, subject),
                adjustments=self._adjustments.adjust(comparable, subject),
            ))

        return scored, skipped


def compute_market_analysis(
    subject_vehicle: SubjectVehicle,
    comparables: Iterable[Comparable],
    reference_value: Optional[float] = None,
    *,
    settings: Optional[ValuationSettings] = None,
    valuation_year: Optional[int] = None,
) -> MarketAnalysis:
    """
    Compute the market analysis for a subject vehicle.

    Args:
        subject_vehicle: The vehicle being appraised
        comparables: Comparable listings
        reference_value: Existing valuation to compare against (optional)
        settings: Valuation tables (default: standard settings)
        valuation_year: Year vehicle age is measured from for depreciation

    Returns:
        A fresh MarketAnalysis
    """
    engine = MarketAnalysisEngine(settings=settings, valuation_year=valuation_year)
    return engine.analyze(subject_vehicle, comparables, reference_value)
