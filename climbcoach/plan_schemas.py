"""
Data schemas for periodized climbing programs.

This module contains Pydantic models for the closed set of plan variants:
programs, weeks, days, and individual sessions, plus the decision records the
planner emits while building them. Plans are validated once at construction and
are immutable afterwards; regeneration produces a new program.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PROGRAM_WEEKS = 6


class SessionType(str, Enum):
    """Types of training sessions."""

    FINGERBOARD = "fingerboard"
    PROJECT = "project"  # Limit bouldering at project grade
    FLASH = "flash"  # Onsight/flash attempts below max grade
    TECHNICAL = "technical"  # Movement practice 3-4 grades below flash
    FITNESS = "fitness"  # General strength and conditioning
    REST = "rest"


HIGH_INTENSITY_TYPES = frozenset(
    {SessionType.FINGERBOARD, SessionType.PROJECT, SessionType.FLASH}
)
LOW_INTENSITY_TYPES = frozenset({SessionType.TECHNICAL, SessionType.FITNESS})


class TrainingPhase(str, Enum):
    """Phases of the 6-week cycle."""

    PROGRESSIVE = "progressive"  # Weeks 1-4, monotonic loading
    DELOAD = "deload"  # Week 5, half load
    ASSESSMENT = "assessment"  # Week 6, testing and rest


class Weekday(str, Enum):
    """Days of the week."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def index(self) -> int:
        """Zero-based position in the week (Monday = 0)."""
        return list(Weekday).index(self)

    @classmethod
    def from_number(cls, number: int) -> "Weekday":
        """Convert 1-7 numbering (1 = Monday) into a Weekday."""
        if not 1 <= number <= 7:
            raise ValueError(f"Day number must be between 1 and 7, got {number}")
        return list(cls)[number - 1]


def phase_for_week(week_number: int) -> TrainingPhase:
    """Weeks 1-4 progressive, week 5 deload, week 6 assessment."""
    if not 1 <= week_number <= PROGRAM_WEEKS:
        raise ValueError(f"Week number must be between 1 and {PROGRAM_WEEKS}, got {week_number}")
    if week_number <= 4:
        return TrainingPhase.PROGRESSIVE
    if week_number == 5:
        return TrainingPhase.DELOAD
    return TrainingPhase.ASSESSMENT


class Session(BaseModel):
    """
    Single training session on a day.

    Intensity is a fraction of the climber's maximum (1.0 = 100%). Volume is
    counted in ``volume_unit`` (sets, boulders, problems, minutes).
    """

    model_config = ConfigDict(frozen=True)

    session_type: SessionType = Field(..., description="Type of session")
    target_intensity: float = Field(..., ge=0.0, le=1.0, description="Fraction of max load")
    volume: float = Field(..., ge=0.0, description="Amount of work in volume_unit")
    volume_unit: str = Field("", description="Unit for volume (sets, boulders, minutes)")
    rest_period: str = Field("", description="Rest between efforts")
    target_grade: Optional[str] = Field(None, description="Target V-grade, if graded")
    rpe: Optional[str] = Field(None, description="Target rate of perceived exertion")
    exercises: List[str] = Field(default_factory=list, description="Exercise prescription lines")
    notes: List[str] = Field(default_factory=list, description="Coaching notes")
    modifications: List[str] = Field(
        default_factory=list, description="Injury/equipment modifications applied"
    )
    narration: Optional[str] = Field(None, description="Generated human-readable narration")

    @model_validator(mode="after")
    def validate_rest_is_empty(self):
        """Rest sessions carry no load."""
        if self.session_type == SessionType.REST and (self.target_intensity or self.volume):
            raise ValueError("Rest sessions must have zero intensity and volume")
        return self

    @property
    def is_high_intensity(self) -> bool:
        return self.session_type in HIGH_INTENSITY_TYPES

    @property
    def is_rest(self) -> bool:
        return self.session_type == SessionType.REST


def rest_session(note: Optional[str] = None) -> Session:
    return Session(
        session_type=SessionType.REST,
        target_intensity=0.0,
        volume=0.0,
        rpe="1",
        exercises=["Complete rest or light stretching"],
        notes=[note] if note else [],
    )


class Day(BaseModel):
    """One calendar day of a week."""

    model_config = ConfigDict(frozen=True)

    label: Weekday = Field(..., description="Day of the week")
    sessions: List[Session] = Field(..., min_length=1, description="Ordered sessions")

    @property
    def is_rest(self) -> bool:
        return all(session.is_rest for session in self.sessions)

    @property
    def is_high_intensity(self) -> bool:
        return any(session.is_high_intensity for session in self.sessions)

    @property
    def active_sessions(self) -> List[Session]:
        return [s for s in self.sessions if not s.is_rest]


class Week(BaseModel):
    """Single week of the cycle."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., ge=1, le=PROGRAM_WEEKS, description="Week number (1-based)")
    phase: TrainingPhase = Field(..., description="Phase for this week")
    focus: str = Field("", description="Short description of the week's focus")
    days: List[Day] = Field(..., min_length=1, max_length=7, description="Days in calendar order")

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: List[Day]) -> List[Day]:
        """Days must be unique and in calendar order."""
        indices = [day.label.index for day in v]
        if indices != sorted(set(indices)):
            raise ValueError("Days must be unique and listed Monday to Sunday")
        return v

    @model_validator(mode="after")
    def validate_phase(self):
        if phase_for_week(self.number) != self.phase:
            raise ValueError(
                f"Week {self.number} must be {phase_for_week(self.number).value}, got {self.phase.value}"
            )
        return self

    @property
    def rest_day_count(self) -> int:
        """Days with no training; weekdays missing from ``days`` count as rest."""
        return sum(1 for day in self.days if day.is_rest) + (7 - len(self.days))

    @property
    def high_intensity_day_count(self) -> int:
        return sum(1 for day in self.days if day.is_high_intensity)

    def day(self, label: Weekday) -> Optional[Day]:
        return next((d for d in self.days if d.label == label), None)

    def sessions_of(self, session_type: SessionType) -> List[Session]:
        return [s for d in self.days for s in d.sessions if s.session_type == session_type]


class PlanDecision(BaseModel):
    """
    Documents a specific decision made during plan generation.

    Used for the program trace to explain why certain choices were made.
    """

    decision_point: str = Field(..., min_length=5, description="The decision that was made")
    input_factors: List[str] = Field(..., min_length=1, description="Factors behind it")
    reasoning: str = Field(..., min_length=10, description="Why this decision was made")
    outcome: str = Field(..., min_length=3, description="The resulting choice")


class TrainingProgram(BaseModel):
    """
    Complete 6-week training program.

    The week/day/session structure is fixed at construction. Only the
    persistence layer tracks status and progress afterwards.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Program identifier")
    user_id: str = Field("anonymous", description="Owner of the program")
    program_type: str = Field(..., description="quick, enhanced or optimized")
    weeks: List[Week] = Field(..., description="Exactly six weeks")
    active_days: List[Weekday] = Field(
        default_factory=list, description="Days the planner was allowed to schedule"
    )
    personalization_score: int = Field(..., ge=0, le=100)
    requires_coach_review: bool
    confidence: str = Field(..., description="high, medium or low")
    ai_insights: List[str] = Field(default_factory=list)
    plan_decisions: List[PlanDecision] = Field(default_factory=list)
    target_grade: Optional[str] = Field(None, description="Predicted grade the plan targets")
    fallback_used: bool = Field(False, description="Narration failed and the plain plan was used")
    created_at: datetime = Field(..., description="Timestamp when program was created")

    @field_validator("weeks")
    @classmethod
    def validate_weeks(cls, v: List[Week]) -> List[Week]:
        """Exactly six sequentially numbered weeks."""
        if len(v) != PROGRAM_WEEKS:
            raise ValueError(f"Expected {PROGRAM_WEEKS} weeks but got {len(v)} weeks")
        for i, week in enumerate(v, start=1):
            if week.number != i:
                raise ValueError(
                    f"Week numbering must be sequential. Expected week {i}, got week {week.number}"
                )
        return v

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: str) -> str:
        if v not in ("high", "medium", "low"):
            raise ValueError(f"confidence must be high, medium or low, got {v!r}")
        return v

    @property
    def total_sessions(self) -> int:
        return sum(len(day.active_sessions) for week in self.weeks for day in week.days)

    def structure(self) -> List[Week]:
        """Weeks with narration stripped, for comparing plan structure."""
        return [
            week.model_copy(
                update={
                    "days": [
                        day.model_copy(
                            update={
                                "sessions": [
                                    s.model_copy(update={"narration": None}) for s in day.sessions
                                ]
                            }
                        )
                        for day in week.days
                    ]
                }
            )
            for week in self.weeks
        ]
