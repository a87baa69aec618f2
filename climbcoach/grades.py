"""
Bouldering grade arithmetic.

This module is the single home for V-grade handling:
- Parsing grade tokens ("V4", "v10") into integer ordinals
- The ordered composite-score -> grade threshold table used by the scorer
- Reference training grades derived from the 80% grade, used by the planner
"""

import re
from typing import Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from climbcoach.errors import ConfigurationError, ValidationError

_GRADE_PATTERN = re.compile(r"^\s*[vV](-?\d+)\s*$")

PROJECT_OFFSET = 1
FLASH_OFFSET = -1
TECHNICAL_OFFSET_FROM_FLASH = -3
ENDURANCE_OFFSET_FROM_FLASH = -4


def parse_grade(token: str, field: str = "grade") -> int:
    """
    Convert a V-grade token into its ordinal.

    Args:
        token: Grade token such as "V4" (case-insensitive, surrounding spaces allowed)
        field: Input field name reported on failure

    Returns:
        Integer ordinal (V4 -> 4)

    Raises:
        ValidationError: If the token is not a V-grade
    """
    if not isinstance(token, str):
        raise ValidationError(f"{field} must be a V-grade string, got {token!r}", field=field)
    match = _GRADE_PATTERN.match(token)
    if not match:
        raise ValidationError(f"{field} must look like 'V4', got {token!r}", field=field)
    return int(match.group(1))


def format_grade(ordinal: int) -> str:
    return f"V{ordinal}"


class GradeThreshold(BaseModel):
    """Minimum composite score needed for a grade."""

    model_config = ConfigDict(frozen=True)

    grade: str = Field(..., description="V-grade token")
    minimum: float = Field(..., ge=0.0, description="Lowest composite score mapping to this grade")
    inclusive: bool = Field(
        True, description="Whether a score equal to the minimum earns the grade"
    )

    @property
    def ordinal(self) -> int:
        return parse_grade(self.grade)

    def admits(self, score: float) -> bool:
        if self.inclusive:
            return score >= self.minimum
        return score > self.minimum


class GradeThresholdTable:
    """
    Ordered composite-score thresholds, lowest grade first.

    Both the grade ordinals and the minimum scores must increase strictly from
    one entry to the next; this is checked once, here, so every lookup can rely
    on it.
    """

    def __init__(self, thresholds: Iterable[GradeThreshold]):
        self.thresholds: Tuple[GradeThreshold, ...] = tuple(thresholds)
        if not self.thresholds:
            raise ConfigurationError("Grade threshold table cannot be empty", field="thresholds")

        for lower, upper in zip(self.thresholds, self.thresholds[1:]):
            if upper.ordinal <= lower.ordinal:
                raise ConfigurationError(
                    f"Grade ordinals must increase: {lower.grade} then {upper.grade}",
                    field="thresholds",
                )
            if upper.minimum <= lower.minimum:
                raise ConfigurationError(
                    f"Thresholds must increase: {lower.grade}={lower.minimum} "
                    f"then {upper.grade}={upper.minimum}",
                    field="thresholds",
                )

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, float]]) -> "GradeThresholdTable":
        return cls(GradeThreshold(grade=grade, minimum=minimum) for grade, minimum in pairs)

    @property
    def grades(self) -> List[str]:
        return [t.grade for t in self.thresholds]

    def grade_for(self, composite_score: float) -> str:
        """
        Look up the grade for a composite score.

        Walks from the highest threshold down and returns the first grade whose
        threshold admits the score. Scores below every threshold map to the
        lowest grade.
        """
        for threshold in reversed(self.thresholds):
            if threshold.admits(composite_score):
                return threshold.grade
        return self.thresholds[0].grade

    def ordinal_for(self, composite_score: float) -> int:
        return parse_grade(self.grade_for(composite_score))


DEFAULT_GRADE_TABLE = GradeThresholdTable(
    [
        GradeThreshold(grade="V4", minimum=0.0),
        GradeThreshold(grade="V5", minimum=0.65),
        GradeThreshold(grade="V6", minimum=0.75),
        GradeThreshold(grade="V7", minimum=0.85),
        GradeThreshold(grade="V8", minimum=0.95),
        GradeThreshold(grade="V9", minimum=1.05),
        GradeThreshold(grade="V10", minimum=1.15),
        GradeThreshold(grade="V11", minimum=1.30),
        GradeThreshold(grade="V12", minimum=1.45, inclusive=False),
    ]
)


class ReferenceGrades(BaseModel):
    """
    Training grades derived from the grade a climber sends 8 out of 10 times.

    Offsets are fixed and no floor is applied, so climbers graded below V4
    get negative technical/endurance ordinals.
    """

    model_config = ConfigDict(frozen=True)

    eighty_percent: int
    project: int
    flash: int
    technical: int
    endurance: int

    @classmethod
    def from_eighty_percent(cls, grade: str) -> "ReferenceGrades":
        base = parse_grade(grade, field="current_80_percent_grade")
        flash = base + FLASH_OFFSET
        return cls(
            eighty_percent=base,
            project=base + PROJECT_OFFSET,
            flash=flash,
            technical=flash + TECHNICAL_OFFSET_FROM_FLASH,
            endurance=flash + ENDURANCE_OFFSET_FROM_FLASH,
        )

    def label(self, name: str) -> str:
        return format_grade(getattr(self, name))
