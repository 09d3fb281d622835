"""
API request models for the appraisal web interface.

Subject vehicle fields are validated strictly. Comparable fields are only
type-checked so the engine can skip and report a malformed comparable
instead of rejecting the whole request.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from core.appraisal_engine import Comparable, SubjectVehicle, VehicleCondition


class SubjectVehicleInput(BaseModel):
    """Subject vehicle as extracted from the valuation document."""
    year: int = Field(ge=1900, le=2100)
    make: str = ""
    model: str = ""
    mileage: int = Field(ge=0)
    equipment: List[str] = []
    condition: str = "Good"

    def to_subject(self) -> SubjectVehicle:
        condition = VehicleCondition.from_string(self.condition)
        if condition is None:
            raise ValueError(f"Invalid condition: {self.condition}")
        return SubjectVehicle(
            year=self.year,
            make=self.make,
            model=self.model,
            mileage=self.mileage,
            equipment=frozenset(self.equipment),
            condition=condition,
        )


class ComparableInput(BaseModel):
    """One comparable listing entered by the user."""
    id: str = ""
    source: str = ""
    list_price: float
    year: int
    make: str = ""
    model: str = ""
    mileage: int
    distance_from_subject: float
    equipment: List[str] = []
    condition: str = "Good"

    def to_comparable(self) -> Comparable:
        # Unknown conditions pass through as text; the engine skips them
        condition = VehicleCondition.from_string(self.condition) or self.condition
        return Comparable(
            id=self.id,
            source=self.source,
            list_price=self.list_price,
            year=self.year,
            make=self.make,
            model=self.model,
            mileage=self.mileage,
            distance_from_subject=self.distance_from_subject,
            equipment=frozenset(self.equipment),
            condition=condition,
        )


class MarketAnalysisRequest(BaseModel):
    """Request body for a market analysis."""
    subject: SubjectVehicleInput
    comparables: List[ComparableInput] = []
    reference_value: Optional[float] = Field(default=None, allow_inf_nan=False)

    def canonical(self) -> dict:
        """Order-insensitive representation used for fingerprinting."""
        data = self.model_dump(mode="json", include={"subject", "comparables", "reference_value"})
        data["subject"]["equipment"] = sorted(data["subject"]["equipment"])
        for comp in data["comparables"]:
            comp["equipment"] = sorted(comp["equipment"])
        return data


class AppraisalAnalysisRequest(MarketAnalysisRequest):
    """Market analysis tied to an appraisal and a client revision number."""
    revision: int = Field(ge=0)
