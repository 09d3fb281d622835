"""
Tests for the Quality Score Engine

Verifies:
- Distance penalty threshold, rate and floor
- Age penalty and exact-year handling
- Mileage bands
- Equipment match bonus vs itemised missing/extra
- Raw scores preserved, weights clamped at zero
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.appraisal_engine import (
    Comparable,
    QualityScoreEngine,
    SubjectVehicle,
    ValuationSettings,
    VehicleCondition,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def subject():
    """Standard subject vehicle for testing."""
    return SubjectVehicle(
        year=2020,
        make="Honda",
        model="Accord",
        mileage=50000,
        equipment=frozenset({"Navigation", "Sunroof"}),
        condition=VehicleCondition.GOOD,
    )


@pytest.fixture
def create_comp():
    """Factory fixture for creating comparables."""
    def _create(
        year: int = 2020,
        mileage: int = 50000,
        distance: float = 20,
        equipment=("Navigation", "Sunroof"),
        condition: VehicleCondition = VehicleCondition.GOOD,
        list_price: float = 25000,
    ) -> Comparable:
        return Comparable(
            list_price=list_price,
            year=year,
            make="Honda",
            model="Accord",
            mileage=mileage,
            distance_from_subject=distance,
            equipment=frozenset(equipment),
            condition=condition,
        )
    return _create


@pytest.fixture
def engine():
    return QualityScoreEngine()


# =============================================================================
# Test: Concrete Scenarios
# =============================================================================

class TestScenarios:
    """Tests for known end-to-end scores."""

    def test_close_match_scores_125(self, engine, subject, create_comp):
        """Same year, 4% mileage difference, same equipment."""
        comp = create_comp(mileage=48000, distance=20)

        breakdown = engine.score(comp, subject)

        assert breakdown.distance_penalty == 0
        assert breakdown.age_penalty == 0
        assert breakdown.mileage_bonus == 10
        assert breakdown.equipment_bonus == 15
        assert breakdown.final_score == 125

    def test_identical_comparable_has_no_penalties(self, engine, subject, create_comp):
        """An identical comparable never loses points against the base."""
        comp = create_comp(mileage=50000, distance=0)

        breakdown = engine.score(comp, subject)

        assert breakdown.distance_penalty == 0
        assert breakdown.age_penalty == 0
        assert breakdown.mileage_penalty == 0
        assert breakdown.equipment_penalty == 0
        assert breakdown.base_score == 100
        assert breakdown.final_score == 100 + 10 + 15

    def test_explanations_populated(self, engine, subject, create_comp):
        breakdown = engine.score(create_comp(distance=250, year=2018), subject)

        assert "250 miles" in breakdown.explanations.distance
        assert "2 years older" in breakdown.explanations.age
        assert breakdown.explanations.mileage.startswith("Mileage:")
        assert "Perfect match" in breakdown.explanations.equipment


# =============================================================================
# Test: Distance
# =============================================================================

class TestDistancePenalty:
    """Tests for the distance factor."""

    @pytest.mark.parametrize("distance", [0, 50, 100])
    def test_no_penalty_within_100_miles(self, engine, subject, create_comp, distance):
        breakdown = engine.score(create_comp(distance=distance), subject)
        assert breakdown.distance_penalty == 0

    def test_penalty_per_mile_over_threshold(self, engine, subject, create_comp):
        breakdown = engine.score(create_comp(distance=150), subject)
        assert breakdown.distance_penalty == pytest.approx(5.0)

    def test_penalty_floored_at_20(self, engine, subject, create_comp):
        assert engine.score(create_comp(distance=300), subject).distance_penalty == pytest.approx(20.0)
        assert engine.score(create_comp(distance=900), subject).distance_penalty == pytest.approx(20.0)

    def test_score_decreases_with_distance(self, engine, subject, create_comp):
        """Score strictly decreases beyond 100 miles until the floor."""
        distances = [100, 120, 160, 220, 290, 300, 400]
        scores = [engine.score(create_comp(distance=d), subject).final_score for d in distances]

        for previous, current, d in zip(scores, scores[1:], distances[1:]):
            if d <= 300:
                assert current < previous
            else:
                assert current == pytest.approx(previous)


# =============================================================================
# Test: Age
# =============================================================================

class TestAgeFactor:
    """Tests for the model-year factor."""

    def test_two_points_per_year(self, engine, subject, create_comp):
        assert engine.score(create_comp(year=2019), subject).age_penalty == 2
        assert engine.score(create_comp(year=2022), subject).age_penalty == 4

    def test_penalty_floored_at_10(self, engine, subject, create_comp):
        assert engine.score(create_comp(year=2015), subject).age_penalty == 10
        assert engine.score(create_comp(year=2008), subject).age_penalty == 10

    def test_exact_year_has_no_bonus_by_default(self, engine, subject, create_comp):
        breakdown = engine.score(create_comp(year=2020), subject)
        assert breakdown.age_penalty == 0
        assert breakdown.age_bonus == 0

    def test_exact_year_bonus_is_configurable(self, subject, create_comp):
        engine = QualityScoreEngine(ValuationSettings(exact_year_bonus=3.0))

        exact = engine.score(create_comp(year=2020), subject)
        off_by_one = engine.score(create_comp(year=2021), subject)

        assert exact.age_bonus == 3.0
        assert off_by_one.age_bonus == 0

    def test_score_decreases_with_year_difference(self, engine, subject, create_comp):
        years = [2020, 2019, 2018, 2017, 2016, 2015, 2012]
        scores = [engine.score(create_comp(year=y), subject).final_score for y in years]

        for i in range(1, 6):
            assert scores[i] < scores[i - 1]
        assert scores[6] == scores[5]


# =============================================================================
# Test: Mileage
# =============================================================================

class TestMileageFactor:
    """Tests for mileage percentage bands."""

    @pytest.mark.parametrize(
        "mileage, bonus, penalty",
        [
            (50000, 10, 0),    # 0%
            (60000, 10, 0),    # exactly 20%
            (40000, 10, 0),    # 20% lower
            (65000, 0, 5),     # 30%
            (70000, 0, 5),     # exactly 40%
            (75000, 0, 10),    # 50%
            (20000, 0, 10),    # 60% lower
            (90000, 0, 15),    # 80%
            (200000, 0, 15),   # 300%
        ],
    )
    def test_mileage_bands(self, engine, subject, create_comp, mileage, bonus, penalty):
        breakdown = engine.score(create_comp(mileage=mileage), subject)

        assert breakdown.mileage_bonus == bonus
        assert breakdown.mileage_penalty == penalty

    def test_zero_subject_mileage_no_adjustment(self, engine, create_comp):
        subject = SubjectVehicle(
            year=2020, make="Honda", model="Accord", mileage=0,
            equipment=frozenset({"Navigation", "Sunroof"}),
        )

        breakdown = engine.score(create_comp(mileage=12000), subject)

        assert breakdown.mileage_bonus == 0
        assert breakdown.mileage_penalty == 0

    def test_explanation_shows_percentage_difference(self, engine, subject, create_comp):
        breakdown = engine.score(create_comp(mileage=65000), subject)

        assert breakdown.explanations.mileage == (
            "Mileage: 65,000 vs 50,000, 30.0% difference (20-40% higher, -5.0 points)"
        )


# =============================================================================
# Test: Equipment
# =============================================================================

class TestEquipmentFactor:
    """Tests for equipment matching."""

    def test_perfect_match_bonus(self, engine, subject, create_comp):
        breakdown = engine.score(create_comp(equipment=("Sunroof", "Navigation")), subject)

        assert breakdown.equipment_bonus == 15
        assert breakdown.equipment_penalty == 0

    def test_match_is_case_insensitive(self, engine, subject, create_comp):
        breakdown = engine.score(create_comp(equipment=("navigation", "SUNROOF")), subject)
        assert breakdown.equipment_bonus == 15

    def test_missing_feature_penalty(self, engine, subject, create_comp):
        breakdown = engine.score(create_comp(equipment=("Navigation",)), subject)

        assert breakdown.equipment_penalty == 10
        assert breakdown.equipment_bonus == 0

    def test_extra_feature_bonus_replaces_match_bonus(self, engine, subject, create_comp):
        breakdown = engine.score(
            create_comp(equipment=("Navigation", "Sunroof", "Leather Seats")), subject
        )

        assert breakdown.equipment_bonus == 5
        assert breakdown.equipment_penalty == 0

    def test_missing_and_extra_are_uncapped(self, engine, create_comp):
        subject = SubjectVehicle(
            year=2020, make="Honda", model="Accord", mileage=50000,
            equipment=frozenset({"A", "B", "C", "D", "E", "F"}),
        )

        breakdown = engine.score(create_comp(equipment=("G", "H", "I", "J")), subject)

        assert breakdown.equipment_penalty == 60
        assert breakdown.equipment_bonus == 20

    def test_empty_sets_are_a_match(self, engine, create_comp):
        subject = SubjectVehicle(year=2020, make="Honda", model="Accord", mileage=50000)

        breakdown = engine.score(create_comp(equipment=()), subject)

        assert breakdown.equipment_bonus == 15


# =============================================================================
# Test: Clamping
# =============================================================================

class TestScoreClamping:
    """Raw scores are kept; only the weight is clamped."""

    def test_negative_raw_score_preserved(self, engine, create_comp):
        subject = SubjectVehicle(
            year=2020, make="Honda", model="Accord", mileage=50000,
            equipment=frozenset(f"Feature {i}" for i in range(10)),
        )
        comp = create_comp(year=2008, mileage=150000, distance=600, equipment=())

        breakdown = engine.score(comp, subject)

        # 100 - 20 - 10 - 15 - 100
        assert breakdown.final_score == pytest.approx(-45.0)
        assert breakdown.weight == 0.0

    def test_score_above_100_not_capped(self, engine, subject, create_comp):
        breakdown = engine.score(create_comp(equipment=("Navigation", "Sunroof", "X", "Y")), subject)

        # 100 + 10 (mileage) + 10 (two extras)
        assert breakdown.final_score == 120
        assert breakdown.weight == 120

    def test_to_dict_contains_components(self, engine, subject, create_comp):
        data = engine.score(create_comp(), subject).to_dict()

        for key in (
            "base_score", "distance_penalty", "age_penalty", "age_bonus",
            "mileage_penalty", "mileage_bonus", "equipment_penalty",
            "equipment_bonus", "final_score", "explanations",
        ):
            assert key in data
