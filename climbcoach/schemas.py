"""
Pydantic models for assessment and program-request data.

This module defines the core input/output structures for:
- Raw Measurements: one immutable snapshot per assessment event
- Normalized Metrics and Assessment Results: scorer output
- User Preferences and Detailed Context: program-generation input
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from climbcoach.errors import ConfigurationError, ValidationError
from climbcoach.grades import parse_grade
from climbcoach.plan_schemas import Weekday


# ============================================================================
# Enumerations
# ============================================================================

class MetricName(str, Enum):
    """The five physical metrics scored by an assessment."""
    FINGER_STRENGTH = "finger_strength"
    PULL_UPS = "pull_ups"
    PUSH_UPS = "push_ups"
    CORE_STRENGTH = "core_strength"
    FLEXIBILITY = "flexibility"

    @property
    def display_name(self) -> str:
        return {
            MetricName.FINGER_STRENGTH: "Finger Strength",
            MetricName.PULL_UPS: "Pull-Ups",
            MetricName.PUSH_UPS: "Push-Ups",
            MetricName.CORE_STRENGTH: "Core Strength",
            MetricName.FLEXIBILITY: "Flexibility",
        }[self]


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProgramType(str, Enum):
    """Level of personalization requested."""
    QUICK = "quick"
    ENHANCED = "enhanced"
    OPTIMIZED = "optimized"


class InjuryRegion(str, Enum):
    """Body regions with injury protocols."""
    SHOULDER = "shoulder"
    ELBOW = "elbow"
    FINGER = "finger"
    BACK = "back"


_INJURY_KEYWORDS = {
    InjuryRegion.SHOULDER: ("shoulder", "rotator"),
    InjuryRegion.ELBOW: ("elbow", "epicondyl"),
    InjuryRegion.FINGER: ("finger", "pulley", "tendon"),
    InjuryRegion.BACK: ("back", "spine", "lumbar", "disc"),
}


def _first_error_field(exc: pydantic.ValidationError) -> Optional[str]:
    errors = exc.errors()
    if errors and errors[0].get("loc"):
        return ".".join(str(part) for part in errors[0]["loc"])
    return None


# ============================================================================
# Assessment
# ============================================================================

class RawMeasurement(BaseModel):
    """
    Raw physical measurements from one assessment event.

    Finger strength is measured as a 10-second hang on a 20mm edge with
    ``added_weight`` kg attached (negative for assisted hangs).
    """

    model_config = ConfigDict(frozen=True)

    body_weight: float = Field(..., gt=0, description="Body weight in kg")
    height: float = Field(..., gt=0, description="Height in cm")
    added_weight: float = Field(0.0, description="Weight added to a 20mm edge hang in kg")
    max_pull_ups: int = Field(..., ge=0, description="Maximum strict pull-ups")
    max_push_ups: int = Field(..., ge=0, description="Maximum chest-to-ground push-ups")
    max_toe_to_bar: int = Field(..., ge=0, description="Maximum toe-to-bar reps")
    leg_spread_distance: float = Field(..., ge=0, description="Maximum leg spread in cm")
    eighty_percent_grade: str = Field(
        ..., description="Boulder grade completed 8 out of 10 times (e.g. V4)"
    )

    @field_validator("eighty_percent_grade")
    @classmethod
    def validate_grade(cls, v: str) -> str:
        parse_grade(v, field="eighty_percent_grade")
        return v.strip().upper()

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> "RawMeasurement":
        """
        Build a measurement from untyped input.

        Raises:
            ValidationError: Naming the first invalid or missing field
        """
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            field = _first_error_field(e)
            raise ValidationError(f"Invalid measurement field '{field}': {e}", field=field) from e


class NormalizedMetric(BaseModel):
    """One metric rescaled onto 0-100 with its composite weight."""

    model_config = ConfigDict(frozen=True)

    name: MetricName
    raw_ratio: float = Field(..., description="Unscaled performance ratio")
    score: float = Field(..., ge=0.0, le=100.0, description="Score clamped to 0-100")
    weight: float = Field(..., gt=0.0, le=1.0, description="Weight in the composite score")


class AssessmentResult(BaseModel):
    """Scorer output for one measurement snapshot."""

    model_config = ConfigDict(frozen=True)

    measurements: RawMeasurement
    normalized_metrics: List[NormalizedMetric] = Field(..., min_length=5, max_length=5)
    composite_score: float = Field(..., ge=0.0)
    predicted_grade: str
    confidence: Confidence
    strongest_area: MetricName
    weakest_area: MetricName
    secondary_focus: MetricName
    weaknesses: List[MetricName] = Field(
        default_factory=list, description="Metrics scoring below 40, weakest first"
    )
    recommendations: List[str] = Field(default_factory=list)
    summary: str = ""
    user_id: Optional[str] = None
    assessed_at: Optional[datetime] = None

    def metric(self, name: MetricName) -> NormalizedMetric:
        return next(m for m in self.normalized_metrics if m.name == name)

    @property
    def predicted_ordinal(self) -> int:
        return parse_grade(self.predicted_grade)


# ============================================================================
# Program request
# ============================================================================

class UserPreferences(BaseModel):
    """Scheduling and context preferences for program generation."""

    model_config = ConfigDict(frozen=True)

    available_days: List[Weekday] = Field(
        default_factory=list, description="Training days in priority order"
    )
    session_length_minutes: int = Field(90, gt=0, le=360)
    equipment_access: List[str] = Field(
        default_factory=list, description="fingerboard, gym, outdoor, campus_board, home_setup, ..."
    )
    primary_goals: List[str] = Field(
        default_factory=list, description="strength, technique, specific_route, competition, ..."
    )
    climbing_style: Optional[str] = None
    injury_history: List[str] = Field(default_factory=list)

    @field_validator("available_days", mode="before")
    @classmethod
    def coerce_day_numbers(cls, v):
        """Accept 1-7 numbering (1 = Monday) as well as day names."""
        if not isinstance(v, (list, tuple)):
            return v
        days = []
        for d in v:
            if isinstance(d, Weekday):
                days.append(d)
            elif isinstance(d, int):
                days.append(Weekday.from_number(d))
            else:
                days.append(str(d).strip().lower())
        return days

    @field_validator("equipment_access", "primary_goals")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip().lower() for tag in v if tag.strip()]

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> "UserPreferences":
        """
        Build preferences from untyped input.

        Raises:
            ConfigurationError: Naming the first invalid field
        """
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            field = _first_error_field(e)
            raise ConfigurationError(f"Invalid preference field '{field}': {e}", field=field) from e

    @property
    def injury_regions(self) -> FrozenSet[InjuryRegion]:
        regions = set()
        for injury in self.injury_history:
            text = injury.lower()
            for region, keywords in _INJURY_KEYWORDS.items():
                if any(keyword in text for keyword in keywords):
                    regions.add(region)
        return frozenset(regions)


class DetailedContext(BaseModel):
    """Climbing background used for grade targets and narration."""

    model_config = ConfigDict(frozen=True)

    current_80_percent_grade: str = Field(..., description="Grade completed 8 out of 10 times")
    current_lead_grade: Optional[str] = None
    fingerboard_max_weight: float = Field(0.0, description="Current fingerboard max added weight (kg)")
    training_history: Optional[str] = None
    climber_name: str = "Climber"
    user_id: str = "anonymous"

    @field_validator("current_80_percent_grade")
    @classmethod
    def validate_grade(cls, v: str) -> str:
        parse_grade(v, field="current_80_percent_grade")
        return v.strip().upper()

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> "DetailedContext":
        """
        Build context from untyped input.

        Raises:
            ConfigurationError: Naming the first invalid field
        """
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            field = _first_error_field(e)
            raise ConfigurationError(f"Invalid context field '{field}': {e}", field=field) from e
