"""
Vehicle Appraisal - Core Business Logic

This module provides the valuation pipeline:
1. Quality Scoring (relevance of each comparable)
2. Price Adjustment (mileage / equipment / condition normalisation)
3. Market Value Aggregation (quality-weighted average)
4. Confidence Estimation (count and spread)
"""

from .appraisal_engine import (
    VehicleCondition,
    SubjectVehicle,
    Comparable,
    QualityScoreBreakdown,
    PriceAdjustments,
    ScoredComparable,
    MarketValueCalculation,
    ConfidenceFactors,
    SkippedComparable,
    MarketAnalysis,
    ValuationSettings,
    QualityScoreEngine,
    PriceAdjustmentEngine,
    MarketValueAggregator,
    ConfidenceEstimator,
    MarketAnalysisEngine,
    InvalidSubjectVehicleError,
    compute_market_analysis,
)

__all__ = [
    "VehicleCondition",
    "SubjectVehicle",
    "Comparable",
    "QualityScoreBreakdown",
    "PriceAdjustments",
    "ScoredComparable",
    "MarketValueCalculation",
    "ConfidenceFactors",
    "SkippedComparable",
    "MarketAnalysis",
    "ValuationSettings",
    "QualityScoreEngine",
    "PriceAdjustmentEngine",
    "MarketValueAggregator",
    "ConfidenceEstimator",
    "MarketAnalysisEngine",
    "InvalidSubjectVehicleError",
    "compute_market_analysis",
]
