"""
Tests for the Price Adjustment Engine

Verifies:
- Mileage adjustment direction and age-tiered rates
- Equipment values from the configuration table
- Condition multiplier applied after mileage and equipment
- Adjusted price identity and zero clamp
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.appraisal_engine import (
    Comparable,
    EquipmentAdjustmentType,
    PriceAdjustmentEngine,
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
        make="Toyota",
        model="Camry",
        mileage=50000,
        equipment=frozenset({"Navigation", "Sunroof"}),
        condition=VehicleCondition.GOOD,
    )


@pytest.fixture
def create_comp():
    """Factory fixture for creating comparables."""
    def _create(
        list_price: float = 25000,
        year: int = 2020,
        mileage: int = 50000,
        equipment=("Navigation", "Sunroof"),
        condition: VehicleCondition = VehicleCondition.GOOD,
    ) -> Comparable:
        return Comparable(
            list_price=list_price,
            year=year,
            make="Toyota",
            model="Camry",
            mileage=mileage,
            distance_from_subject=25,
            equipment=frozenset(equipment),
            condition=condition,
        )
    return _create


@pytest.fixture
def engine():
    return PriceAdjustmentEngine()


# =============================================================================
# Test: Identity and Scenarios
# =============================================================================

class TestAdjustedPrice:
    """Tests for the overall adjusted price."""

    def test_identical_comparable_keeps_list_price(self, engine, subject, create_comp):
        result = engine.adjust(create_comp(list_price=23750), subject)

        assert result.adjusted_price == 23750
        assert result.total_adjustment == 0
        assert result.equipment_adjustments == []

    def test_lower_mileage_comparable_adjusted_down(self, engine, subject, create_comp):
        """48,000 vs 50,000 miles at $0.25/mile."""
        result = engine.adjust(create_comp(mileage=48000), subject)

        assert result.mileage_adjustment.adjustment_amount == pytest.approx(-500)
        assert result.condition_adjustment.adjustment_amount == pytest.approx(0)
        assert result.adjusted_price == pytest.approx(24500)

    def test_higher_mileage_comparable_adjusted_up(self, engine, subject, create_comp):
        result = engine.adjust(create_comp(mileage=60000), subject)

        assert result.mileage_adjustment.mileage_difference == 10000
        assert result.mileage_adjustment.adjustment_amount == pytest.approx(2500)
        assert result.adjusted_price == pytest.approx(27500)

    def test_adjusted_price_clamped_at_zero(self, engine, subject, create_comp):
        comp = create_comp(
            list_price=1000,
            equipment=("Navigation", "Sunroof", "All-Wheel Drive", "Sport Package"),
        )

        result = engine.adjust(comp, subject)

        assert result.adjusted_price == 0
        assert result.total_adjustment == -1000

    def test_input_not_mutated(self, engine, subject, create_comp):
        comp = create_comp(mileage=48000)
        engine.adjust(comp, subject)

        assert comp.list_price == 25000
        assert comp.mileage == 48000


# =============================================================================
# Test: Depreciation Tiers
# =============================================================================

class TestDepreciationRate:
    """Tests for age-tiered per-mile rates."""

    @pytest.mark.parametrize(
        "comp_year, rate",
        [
            (2026, 0.25),  # age 0
            (2023, 0.25),  # age 3
            (2022, 0.15),  # age 4
            (2019, 0.15),  # age 7
            (2018, 0.05),  # age 8
            (2005, 0.05),
        ],
    )
    def test_rate_by_age(self, subject, create_comp, comp_year, rate):
        engine = PriceAdjustmentEngine(valuation_year=2026)

        result = engine.adjust(create_comp(year=comp_year, mileage=52000), subject)

        assert result.mileage_adjustment.depreciation_rate == rate
        assert result.mileage_adjustment.adjustment_amount == pytest.approx(2000 * rate)

    def test_age_defaults_to_subject_year(self, engine, subject, create_comp):
        result = engine.adjust(create_comp(year=2016, mileage=51000), subject)

        assert result.mileage_adjustment.vehicle_age == 4
        assert result.mileage_adjustment.depreciation_rate == 0.15

    def test_newer_comparable_age_not_negative(self, engine, subject, create_comp):
        result = engine.adjust(create_comp(year=2023), subject)
        assert result.mileage_adjustment.vehicle_age == 0

    def test_custom_tiers(self, subject, create_comp):
        settings = ValuationSettings(depreciation_tiers=((5, 0.30), (None, 0.10)))
        engine = PriceAdjustmentEngine(settings, valuation_year=2026)

        young = engine.adjust(create_comp(year=2022, mileage=51000), subject)
        old = engine.adjust(create_comp(year=2015, mileage=51000), subject)

        assert young.mileage_adjustment.adjustment_amount == pytest.approx(300)
        assert old.mileage_adjustment.adjustment_amount == pytest.approx(100)


# =============================================================================
# Test: Equipment
# =============================================================================

class TestEquipmentAdjustments:
    """Tests for itemised equipment adjustments."""

    def test_missing_and_extra_features(self, engine, subject, create_comp):
        result = engine.adjust(create_comp(equipment=("Navigation", "All-Wheel Drive")), subject)

        by_feature = {adj.feature: adj for adj in result.equipment_adjustments}
        assert by_feature["Sunroof"].type == EquipmentAdjustmentType.MISSING
        assert by_feature["Sunroof"].amount == 1200
        assert by_feature["All-Wheel Drive"].type == EquipmentAdjustmentType.EXTRA
        assert by_feature["All-Wheel Drive"].amount == -2000
        assert result.equipment_total == -800
        assert result.adjusted_price == pytest.approx(24200)

    @pytest.mark.parametrize(
        "feature, value",
        [
            ("Navigation", 1200),
            ("Sunroof", 1200),
            ("Premium Audio", 800),
            ("Sport Package", 1500),
            ("Leather Seats", 1000),
            ("All-Wheel Drive", 2000),
        ],
    )
    def test_standard_values(self, feature, value):
        assert ValuationSettings().equipment_value(feature) == value

    def test_value_lookup_case_insensitive(self):
        assert ValuationSettings().equipment_value("leather seats") == 1000

    def test_unknown_feature_uses_default_value(self, engine, subject, create_comp):
        result = engine.adjust(
            create_comp(equipment=("Navigation", "Sunroof", "Bed Liner")), subject
        )

        assert len(result.equipment_adjustments) == 1
        assert result.equipment_adjustments[0].value == 500
        assert result.adjusted_price == pytest.approx(24500)

    def test_custom_equipment_values(self, subject, create_comp):
        settings = ValuationSettings().with_equipment_overrides({"Sunroof": 900})
        engine = PriceAdjustmentEngine(settings)

        result = engine.adjust(create_comp(equipment=("Navigation",)), subject)

        assert result.equipment_adjustments[0].amount == 900
        # Overrides never touch the standard table
        assert ValuationSettings().equipment_value("Sunroof") == 1200

    def test_case_difference_is_not_an_adjustment(self, engine, subject, create_comp):
        result = engine.adjust(create_comp(equipment=("NAVIGATION", "sunroof")), subject)
        assert result.equipment_adjustments == []


# =============================================================================
# Test: Condition
# =============================================================================

class TestConditionAdjustment:
    """Tests for the condition multiplier."""

    @pytest.mark.parametrize(
        "condition, multiplier",
        [
            (VehicleCondition.EXCELLENT, 1.05),
            (VehicleCondition.GOOD, 1.00),
            (VehicleCondition.FAIR, 0.95),
            (VehicleCondition.POOR, 0.85),
        ],
    )
    def test_multiplier_by_comparable_condition(
        self, engine, subject, create_comp, condition, multiplier
    ):
        result = engine.adjust(create_comp(list_price=20000, condition=condition), subject)

        assert result.condition_adjustment.multiplier == multiplier
        assert result.adjusted_price == pytest.approx(20000 * multiplier)

    def test_condition_applied_after_mileage_and_equipment(self, engine, subject, create_comp):
        comp = create_comp(
            list_price=20000,
            mileage=54000,
            equipment=("Navigation",),
            condition=VehicleCondition.FAIR,
        )

        result = engine.adjust(comp, subject)

        # 20,000 + 1,000 (mileage) + 1,200 (missing sunroof) = 22,200
        assert result.condition_adjustment.base_price == pytest.approx(22200)
        assert result.condition_adjustment.adjustment_amount == pytest.approx(-1110)
        assert result.adjusted_price == pytest.approx(21090)
        assert result.total_adjustment == pytest.approx(1090)

    def test_to_dict_itemises_adjustments(self, engine, subject, create_comp):
        data = engine.adjust(create_comp(equipment=("Navigation",)), subject).to_dict()

        assert data["equipment_adjustments"][0]["type"] == "missing"
        assert data["condition_adjustment"]["condition"] == "Good"
        assert data["adjusted_price"] == pytest.approx(26200)
