"""
Appraisal Engine v1.0

Valuation of a damaged vehicle against user-supplied comparable listings:
quality scoring, price normalisation, quality-weighted market value and
confidence rating.
"""

from .models import (
    VehicleCondition,
    EquipmentAdjustmentType,
    SubjectVehicle,
    Comparable,
    QualityScoreBreakdown,
    MileageAdjustment,
    EquipmentAdjustment,
    ConditionAdjustment,
    PriceAdjustments,
    ScoredComparable,
    CalculationStep,
    WeightedComparable,
    MarketValueCalculation,
    ReferenceComparison,
    ConfidenceFactors,
    SkippedComparable,
    MarketAnalysis,
)
from .tables import ValuationSettings, load_equipment_values
from .quality import QualityScoreEngine
from .adjustments import PriceAdjustmentEngine
from .aggregation import MarketValueAggregator
from .confidence import ConfidenceEstimator
from .validation import InvalidSubjectVehicleError
from .analysis import MarketAnalysisEngine, compute_market_analysis

__all__ = [
    # Models
    "VehicleCondition",
    "EquipmentAdjustmentType",
    "SubjectVehicle",
    "Comparable",
    "QualityScoreBreakdown",
    "MileageAdjustment",
    "EquipmentAdjustment",
    "ConditionAdjustment",
    "PriceAdjustments",
    "ScoredComparable",
    "CalculationStep",
    "WeightedComparable",
    "MarketValueCalculation",
    "ReferenceComparison",
    "ConfidenceFactors",
    "SkippedComparable",
    "MarketAnalysis",
    # Configuration
    "ValuationSettings",
    "load_equipment_values",
    # Engines
    "QualityScoreEngine",
    "PriceAdjustmentEngine",
    "MarketValueAggregator",
    "ConfidenceEstimator",
    "MarketAnalysisEngine",
    "compute_market_analysis",
    "InvalidSubjectVehicleError",
]

__version__ = "1.0"
