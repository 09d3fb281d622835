"""
Data models for the Appraisal Engine

Defines the subject vehicle, comparable listings and every intermediate
and final result produced by the valuation pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional


class VehicleCondition(Enum):
    """
    Physical condition rating of a vehicle.

    Drives the condition multiplier applied to comparable prices.
    """
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"

    @classmethod
    def from_string(cls, value: str) -> Optional["VehicleCondition"]:
        """Convert string to VehicleCondition, case-insensitive."""
        normalised = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalised:
                return member
        return None


class EquipmentAdjustmentType(Enum):
    """
    Direction of an equipment difference.

    missing: subject has the feature, comparable does not (price goes up)
    extra: comparable has the feature, subject does not (price goes down)
    """
    MISSING = "missing"
    EXTRA = "extra"


def normalise_equipment(features) -> FrozenSet[str]:
    """Case-insensitive, whitespace-trimmed feature keys."""
    return frozenset(f.strip().lower() for f in features if f and f.strip())


def _feature_set(features) -> FrozenSet[str]:
    # A bare string is one feature name, not a set of characters
    if isinstance(features, str):
        return frozenset({features})
    return frozenset(features)


@dataclass(frozen=True)
class SubjectVehicle:
    """
    The damaged vehicle being appraised.

    Produced by the document extraction pipeline; never mutated here.
    """
    year: int
    make: str
    model: str
    mileage: int
    equipment: FrozenSet[str] = field(default_factory=frozenset)
    condition: VehicleCondition = VehicleCondition.GOOD

    def __post_init__(self):
        # Accept any iterable of feature names
        object.__setattr__(self, "equipment", _feature_set(self.equipment))

    @property
    def description(self) -> str:
        """Year, make and model as one string."""
        return f"{self.year} {self.make} {self.model}".strip()


@dataclass(frozen=True)
class Comparable:
    """
    A third-party listing used as a market reference point.

    distance_from_subject is already computed by the caller (miles).
    """
    list_price: float
    year: int
    make: str
    model: str
    mileage: int
    distance_from_subject: float
    equipment: FrozenSet[str] = field(default_factory=frozenset)
    condition: VehicleCondition = VehicleCondition.GOOD

    # Optional identification for traces and skip reports
    id: str = ""
    source: str = ""

    def __post_init__(self):
        object.__setattr__(self, "equipment", _feature_set(self.equipment))

    @property
    def description(self) -> str:
        """Year, make and model as one string."""
        return f"{self.year} {self.make} {self.model}".strip()


# =============================================================================
# Quality score
# =============================================================================

@dataclass(frozen=True)
class QualityScoreExplanations:
    """Human-readable explanation for each scoring factor."""
    distance: str = ""
    age: str = ""
    mileage: str = ""
    equipment: str = ""


@dataclass(frozen=True)
class QualityScoreBreakdown:
    """
    Named components of a comparable's quality score.

    Penalties are stored as positive magnitudes and subtracted; bonuses are
    added. final_score is the raw, unclamped sum for display.
    """
    base_score: float
    distance_penalty: float = 0.0
    age_penalty: float = 0.0
    age_bonus: float = 0.0
    mileage_penalty: float = 0.0
    mileage_bonus: float = 0.0
    equipment_penalty: float = 0.0
    equipment_bonus: float = 0.0
    explanations: QualityScoreExplanations = field(default_factory=QualityScoreExplanations)

    @property
    def final_score(self) -> float:
        """Base score plus all bonuses minus all penalties."""
        return (
            self.base_score
            - self.distance_penalty
            - self.age_penalty
            + self.age_bonus
            - self.mileage_penalty
            + self.mileage_bonus
            - self.equipment_penalty
            + self.equipment_bonus
        )

    @property
    def weight(self) -> float:
        """Score used for weighting: never negative."""
        return max(self.final_score, 0.0)

    def to_dict(self) -> dict:
        return {
            "base_score": self.base_score,
            "distance_penalty": self.distance_penalty,
            "age_penalty": self.age_penalty,
            "age_bonus": self.age_bonus,
            "mileage_penalty": self.mileage_penalty,
            "mileage_bonus": self.mileage_bonus,
            "equipment_penalty": self.equipment_penalty,
            "equipment_bonus": self.equipment_bonus,
            "final_score": self.final_score,
            "explanations": {
                "distance": self.explanations.distance,
                "age": self.explanations.age,
                "mileage": self.explanations.mileage,
                "equipment": self.explanations.equipment,
            },
        }


# =============================================================================
# Price adjustments
# =============================================================================

@dataclass(frozen=True)
class MileageAdjustment:
    """Mileage normalisation to the subject's odometer reading."""
    mileage_difference: int
    vehicle_age: int
    depreciation_rate: float
    adjustment_amount: float
    explanation: str = ""


@dataclass(frozen=True)
class EquipmentAdjustment:
    """One itemised equipment difference."""
    feature: str
    type: EquipmentAdjustmentType
    value: float
    explanation: str = ""

    @property
    def amount(self) -> float:
        """Signed dollar effect on the comparable's price."""
        return self.value if self.type == EquipmentAdjustmentType.MISSING else -self.value


@dataclass(frozen=True)
class ConditionAdjustment:
    """Condition multiplier applied after mileage and equipment."""
    condition: VehicleCondition
    multiplier: float
    base_price: float
    adjustment_amount: float
    explanation: str = ""


@dataclass(frozen=True)
class PriceAdjustments:
    """Itemised adjustments and the resulting normalised price."""
    list_price: float
    mileage_adjustment: MileageAdjustment
    equipment_adjustments: List[EquipmentAdjustment]
    condition_adjustment: ConditionAdjustment
    adjusted_price: float

    @property
    def equipment_total(self) -> float:
        return sum(adj.amount for adj in self.equipment_adjustments)

    @property
    def total_adjustment(self) -> float:
        return self.adjusted_price - self.list_price

    def to_dict(self) -> dict:
        return {
            "list_price": self.list_price,
            "mileage_adjustment": {
                "mileage_difference": self.mileage_adjustment.mileage_difference,
                "vehicle_age": self.mileage_adjustment.vehicle_age,
                "depreciation_rate": self.mileage_adjustment.depreciation_rate,
                "adjustment_amount": self.mileage_adjustment.adjustment_amount,
                "explanation": self.mileage_adjustment.explanation,
            },
            "equipment_adjustments": [
                {
                    "feature": adj.feature,
                    "type": adj.type.value,
                    "value": adj.value,
                    "amount": adj.amount,
                    "explanation": adj.explanation,
                }
                for adj in self.equipment_adjustments
            ],
            "condition_adjustment": {
                "condition": self.condition_adjustment.condition.value,
                "multiplier": self.condition_adjustment.multiplier,
                "adjustment_amount": self.condition_adjustment.adjustment_amount,
                "explanation": self.condition_adjustment.explanation,
            },
            "total_adjustment": self.total_adjustment,
            "adjusted_price": self.adjusted_price,
        }


@dataclass(frozen=True)
class ScoredComparable:
    """
    A comparable after scoring and adjustment.

    The input Comparable is left untouched; this pairs it with its results.
    """
    comparable: Comparable
    label: str
    quality: QualityScoreBreakdown
    adjustments: PriceAdjustments

    @property
    def quality_score(self) -> float:
        return self.quality.final_score

    @property
    def adjusted_price(self) -> float:
        return self.adjustments.adjusted_price

    def to_dict(self) -> dict:
        comp = self.comparable
        return {
            "label": self.label,
            "id": comp.id,
            "year": comp.year,
            "make": comp.make,
            "model": comp.model,
            "mileage": comp.mileage,
            "distance_from_subject": comp.distance_from_subject,
            "condition": comp.condition.value,
            "equipment": sorted(comp.equipment),
            "list_price": comp.list_price,
            "quality_score": self.quality_score,
            "quality_score_breakdown": self.quality.to_dict(),
            "adjustments": self.adjustments.to_dict(),
            "adjusted_price": self.adjusted_price,
        }


# =============================================================================
# Aggregation and confidence
# =============================================================================

@dataclass(frozen=True)
class CalculationStep:
    """One narrative step of the market value trace."""
    step: int
    description: str
    calculation: str
    result: float

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "description": self.description,
            "calculation": self.calculation,
            "result": self.result,
        }


@dataclass(frozen=True)
class WeightedComparable:
    """Per-comparable contribution to the weighted average."""
    label: str
    list_price: float
    adjusted_price: float
    quality_score: float
    weight: float
    weighted_value: float

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "list_price": self.list_price,
            "adjusted_price": self.adjusted_price,
            "quality_score": self.quality_score,
            "weight": self.weight,
            "weighted_value": self.weighted_value,
        }


@dataclass(frozen=True)
class MarketValueCalculation:
    """
    Itemised calculation trace of the market value.

    weighting is "quality-weighted" normally, "unweighted-fallback" when
    every quality score clamped to zero.
    """
    comparables: List[WeightedComparable]
    total_weighted_value: float
    total_weight: float
    final_value: float
    weighting: str
    steps: List[CalculationStep] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "comparables": [c.to_dict() for c in self.comparables],
            "total_weighted_value": self.total_weighted_value,
            "total_weight": self.total_weight,
            "final_value": self.final_value,
            "weighting": self.weighting,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class ReferenceComparison:
    """Calculated value against an existing third-party valuation."""
    reference_value: Optional[float]
    value_difference: Optional[float]
    value_difference_percentage: Optional[float]
    is_undervalued: bool


@dataclass(frozen=True)
class ConfidenceFactors:
    """Statistics the confidence level was derived from."""
    comparable_count: int
    quality_score_variance: float  # population standard deviation
    price_variance: float  # coefficient of variation

    def to_dict(self) -> dict:
        return {
            "comparable_count": self.comparable_count,
            "quality_score_variance": self.quality_score_variance,
            "price_variance": self.price_variance,
        }


@dataclass(frozen=True)
class SkippedComparable:
    """A comparable left out of the analysis and why."""
    index: int
    label: str
    reasons: List[str]

    def to_dict(self) -> dict:
        return {"index": self.index, "label": self.label, "reasons": list(self.reasons)}


@dataclass(frozen=True)
class MarketAnalysis:
    """
    Complete market analysis for a subject vehicle.

    A fresh instance is produced by every computation; callers replace
    their previous result rather than mutating it.
    """
    subject: SubjectVehicle
    comparables_count: int
    comparables: List[ScoredComparable]
    calculated_market_value: Optional[float]
    confidence_level: int
    confidence_factors: ConfidenceFactors
    reference_value: Optional[float] = None
    value_difference: Optional[float] = None
    value_difference_percentage: Optional[float] = None
    is_undervalued: bool = False
    calculation_breakdown: Optional[MarketValueCalculation] = None
    skipped_comparables: List[SkippedComparable] = field(default_factory=list)
    calculation_method: str = "quality-weighted-average"

    @property
    def has_market_value(self) -> bool:
        """Whether a value exists (False means "no market value yet")."""
        return self.calculated_market_value is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "subject": {
                "year": self.subject.year,
                "make": self.subject.make,
                "model": self.subject.model,
                "mileage": self.subject.mileage,
                "equipment": sorted(self.subject.equipment),
                "condition": self.subject.condition.value,
            },
            "comparables_count": self.comparables_count,
            "comparables": [c.to_dict() for c in self.comparables],
            "calculated_market_value": self.calculated_market_value,
            "calculation_method": self.calculation_method,
            "confidence_level": self.confidence_level,
            "confidence_factors": self.confidence_factors.to_dict(),
            "reference_value": self.reference_value,
            "value_difference": self.value_difference,
            "value_difference_percentage": self.value_difference_percentage,
            "is_undervalued": self.is_undervalued,
            "calculation_breakdown": (
                self.calculation_breakdown.to_dict()
                if self.calculation_breakdown is not None
                else None
            ),
            "skipped_comparables": [s.to_dict() for s in self.skipped_comparables],
        }
