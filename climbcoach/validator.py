"""
Session spacing and frequency rules.

This module implements the safety mechanism behind every plan. Rules are
declarative and fixed; the planner consults them after each placement so an
illegal session is moved or downgraded immediately instead of being found
after the whole plan is built.

Placements are tracked on an absolute day index, ``(week - 1) * 7 + weekday``,
so spacing holds across week boundaries.
"""

import math
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from climbcoach.plan_schemas import (
    HIGH_INTENSITY_TYPES,
    SessionType,
    TrainingPhase,
    TrainingProgram,
    Week,
    Weekday,
)

HOURS_PER_DAY = 24
MIN_REST_DAYS = 2


class ConstraintRule(BaseModel):
    """Self-spacing and weekly frequency limit for one session type."""

    model_config = ConfigDict(frozen=True)

    session_type: SessionType
    min_hours_apart: int = Field(..., ge=0)
    max_per_week: Optional[int] = Field(None, ge=1)


CONSTRAINT_RULES: Dict[SessionType, ConstraintRule] = {
    rule.session_type: rule
    for rule in (
        ConstraintRule(session_type=SessionType.FINGERBOARD, min_hours_apart=72, max_per_week=2),
        ConstraintRule(session_type=SessionType.PROJECT, min_hours_apart=48, max_per_week=2),
        ConstraintRule(session_type=SessionType.FLASH, min_hours_apart=48, max_per_week=2),
        ConstraintRule(session_type=SessionType.TECHNICAL, min_hours_apart=24, max_per_week=4),
    )
}


class Placement(BaseModel):
    """A session type placed on an absolute day."""

    model_config = ConfigDict(frozen=True)

    day: int = Field(..., ge=0, description="Absolute day index from the start of week 1")
    session_type: SessionType

    @property
    def week_index(self) -> int:
        return self.day // 7

    @property
    def weekday(self) -> Weekday:
        return list(Weekday)[self.day % 7]

    @property
    def is_high_intensity(self) -> bool:
        return self.session_type in HIGH_INTENSITY_TYPES


def absolute_day(week_number: int, weekday: Weekday) -> int:
    return (week_number - 1) * 7 + weekday.index


def high_intensity_cap(active_day_count: int) -> int:
    """High-intensity days allowed per week; never below one."""
    return max(1, active_day_count - MIN_REST_DAYS)


class ConstraintValidator:
    """
    Answers "is this placement legal given the plan so far".

    Checks, in order:
    1. The day is one of the caller's available days
    2. Self-spacing for the session type (72h fingerboard, 48h project/flash, 24h technical)
    3. Weekly frequency for the session type
    4. No high-intensity day directly before or after another
    5. Weekly high-intensity day cap
    """

    def __init__(
        self,
        available_days: Iterable[Weekday],
        rules: Optional[Dict[SessionType, ConstraintRule]] = None,
    ):
        self.available_days = frozenset(available_days)
        self.rules = CONSTRAINT_RULES if rules is None else rules
        self.max_high_intensity_days = high_intensity_cap(len(self.available_days))

    def is_placement_valid(
        self, day: int, session_type: SessionType, plan_so_far: Sequence[Placement]
    ) -> bool:
        return not self.violations(day, session_type, plan_so_far)

    def violations(
        self, day: int, session_type: SessionType, plan_so_far: Sequence[Placement]
    ) -> List[str]:
        """
        List every rule the placement would break.

        Args:
            day: Absolute day index of the candidate
            session_type: Candidate session type
            plan_so_far: Placements already accepted

        Returns:
            Human-readable violations; empty when the placement is legal
        """
        if session_type == SessionType.REST:
            return []

        candidate = Placement(day=day, session_type=session_type)
        found = []

        if candidate.weekday not in self.available_days:
            found.append(f"{candidate.weekday.value} is not an available day")

        rule = self.rules.get(session_type)
        same_type = [p for p in plan_so_far if p.session_type == session_type]
        if rule is not None:
            for placed in same_type:
                hours_apart = abs(day - placed.day) * HOURS_PER_DAY
                if hours_apart < rule.min_hours_apart:
                    found.append(
                        f"{session_type.value} {hours_apart}h after day {placed.day}, "
                        f"needs {rule.min_hours_apart}h"
                    )
            if rule.max_per_week is not None:
                this_week = [p for p in same_type if p.week_index == candidate.week_index]
                if len(this_week) >= rule.max_per_week:
                    found.append(
                        f"{session_type.value} already {len(this_week)}x this week "
                        f"(max {rule.max_per_week})"
                    )

        if candidate.is_high_intensity:
            hi_days = {p.day for p in plan_so_far if p.is_high_intensity}
            for neighbour in (day - 1, day + 1):
                if neighbour in hi_days:
                    found.append(f"high-intensity day {neighbour} is adjacent")
            week_hi_days = {d for d in hi_days if d // 7 == candidate.week_index}
            if day not in week_hi_days and len(week_hi_days) >= self.max_high_intensity_days:
                found.append(
                    f"week already has {len(week_hi_days)} high-intensity days "
                    f"(max {self.max_high_intensity_days})"
                )

        return found

    def earliest_valid_day(
        self, session_type: SessionType, last_placement_day: Optional[int]
    ) -> int:
        """
        First day the self-spacing rule allows after the last placement.

        Only the session type's own spacing is considered; the result is a lower
        bound, not a guarantee that every other rule passes on that day.
        """
        if last_placement_day is None:
            return 0
        rule = self.rules.get(session_type)
        if rule is None:
            return last_placement_day + 1
        gap_days = max(1, math.ceil(rule.min_hours_apart / HOURS_PER_DAY))
        return last_placement_day + gap_days


def placements_from_program(weeks: Sequence[Week]) -> List[Placement]:
    """Flatten weeks into placements for every non-rest session."""
    placements = []
    for week in weeks:
        for day in week.days:
            for session in day.active_sessions:
                placements.append(
                    Placement(
                        day=absolute_day(week.number, day.label),
                        session_type=session.session_type,
                    )
                )
    return placements


def validate_program(
    program_or_weeks, available_days: Optional[Iterable[Weekday]] = None
) -> List[str]:
    """
    Check a finished plan against every rule and weekly invariant.

    Each placement is replayed against the placements before it, then the
    week-level floors are checked: at least two rest days per week, and in the
    assessment week at most one high-intensity day and at least three rest days.

    Args:
        program_or_weeks: TrainingProgram or a sequence of weeks
        available_days: Active days; defaults to the program's own active days

    Returns:
        All problems found; empty when the plan is valid
    """
    if isinstance(program_or_weeks, TrainingProgram):
        weeks = program_or_weeks.weeks
        if available_days is None:
            available_days = program_or_weeks.active_days
    else:
        weeks = list(program_or_weeks)
    if available_days is None:
        raise ValueError("available_days is required when validating bare weeks")
    validator = ConstraintValidator(available_days)
    problems = []

    accepted: List[Placement] = []
    for placement in sorted(placements_from_program(weeks), key=lambda p: p.day):
        for problem in validator.violations(placement.day, placement.session_type, accepted):
            problems.append(f"week {placement.week_index + 1} {placement.weekday.value}: {problem}")
        accepted.append(placement)

    for week in weeks:
        if week.rest_day_count < MIN_REST_DAYS:
            problems.append(f"week {week.number}: only {week.rest_day_count} rest days")
        if week.phase == TrainingPhase.ASSESSMENT:
            if week.high_intensity_day_count > 1:
                problems.append(
                    f"week {week.number}: {week.high_intensity_day_count} high-intensity days"
                )
            if week.rest_day_count < 3:
                problems.append(f"week {week.number}: only {week.rest_day_count} rest days")

    return problems
