"""
Periodized 6-week program planner.

This module builds the week/day/session calendar from:
- The climber's available days (capped at five active days)
- Reference grades derived from the 80% grade
- The fixed session catalog and constraint rules

Weeks are generated phase by phase. Every candidate placement is checked
against the constraint validator as soon as it is made, so the finished
calendar is valid by construction.
"""

import logging
from typing import Dict, List, Optional, Sequence

from climbcoach.catalog import (
    BASELINE,
    WEEK_FOCUS,
    build_session,
    build_test_session,
    phase_note,
)
from climbcoach.errors import ConfigurationError
from climbcoach.grades import ReferenceGrades
from climbcoach.plan_schemas import (
    PROGRAM_WEEKS,
    Day,
    PlanDecision,
    Session,
    SessionType,
    TrainingPhase,
    Week,
    Weekday,
    phase_for_week,
    rest_session,
)
from climbcoach.validator import (
    ConstraintValidator,
    Placement,
    absolute_day,
    high_intensity_cap,
)

logger = logging.getLogger(__name__)

MAX_ACTIVE_DAYS = 5

HIGH_INTENSITY_TRACK = (SessionType.FINGERBOARD, SessionType.PROJECT, SessionType.FLASH)
LOW_INTENSITY_TRACK = (SessionType.TECHNICAL, SessionType.FITNESS)
ASSESSMENT_TESTS = (SessionType.FINGERBOARD, SessionType.PROJECT, SessionType.FLASH)
ASSESSMENT_DAYS = 2


class ProgramPlanner:
    """
    Builds the six-week calendar for one climber.

    The planner:
    1. Selects active days (first five unique days, scheduled Monday to Sunday)
    2. Derives reference grades from the 80% grade
    3. Fills weeks 1-5 by alternating high- and low-intensity tracks
    4. Fills week 6 with a single test day plus a fitness benchmark
    5. Documents all decisions for the program trace
    """

    def __init__(self, available_days: Sequence[Weekday], eighty_percent_grade: str):
        """
        Initialize the planner.

        Args:
            available_days: Days the climber can train, in priority order
            eighty_percent_grade: Grade the climber sends 8 out of 10 times

        Raises:
            ConfigurationError: If no available days are given
        """
        if not available_days:
            raise ConfigurationError(
                "At least one available training day is required", field="available_days"
            )

        self.plan_decisions: List[PlanDecision] = []
        self.grades = ReferenceGrades.from_eighty_percent(eighty_percent_grade)
        self.active_days = self._select_active_days(available_days)
        self.validator = ConstraintValidator(self.active_days)
        self.placements: List[Placement] = []

    def generate(self) -> List[Week]:
        """
        Generate all six weeks.

        Returns:
            Weeks 1-6, each listing all seven weekdays
        """
        self._document_grades()
        self.plan_decisions.append(
            PlanDecision(
                decision_point="High-Intensity Day Cap",
                input_factors=[f"active_days={len(self.active_days)}"],
                reasoning="At most active days minus two high-intensity days per week keeps "
                "at least two rest days and never drops below one hard day.",
                outcome=f"{high_intensity_cap(len(self.active_days))} high-intensity days per week",
            )
        )

        weeks = []
        for week_number in range(1, PROGRAM_WEEKS + 1):
            phase = phase_for_week(week_number)
            if phase == TrainingPhase.ASSESSMENT:
                sessions = self._plan_assessment_week(week_number)
            else:
                sessions = self._plan_training_week(week_number)
            weeks.append(self._build_week(week_number, phase, sessions))
        return weeks

    # ========================================================================
    # Day selection
    # ========================================================================

    def _select_active_days(self, available_days: Sequence[Weekday]) -> List[Weekday]:
        """
        Cap active days at five, dropping the lowest-priority days.

        Args:
            available_days: Days in priority order (first = most important)

        Returns:
            Active days in calendar order
        """
        unique: List[Weekday] = []
        for day in available_days:
            if day not in unique:
                unique.append(day)

        kept = unique[:MAX_ACTIVE_DAYS]
        dropped = unique[MAX_ACTIVE_DAYS:]
        active = sorted(kept, key=lambda d: d.index)

        if dropped:
            self.plan_decisions.append(
                PlanDecision(
                    decision_point="Active Day Cap",
                    input_factors=[
                        f"available_days={[d.value for d in unique]}",
                        f"max_active_days={MAX_ACTIVE_DAYS}",
                    ],
                    reasoning=f"{len(unique)} available days would leave fewer than two rest "
                    "days. Dropped the lowest-priority days (last in input order).",
                    outcome=f"Active days: {', '.join(d.value for d in active)}; "
                    f"rest on {', '.join(d.value for d in dropped)}",
                )
            )
        return active

    def _document_grades(self) -> None:
        g = self.grades
        self.plan_decisions.append(
            PlanDecision(
                decision_point="Reference Grade Derivation",
                input_factors=[f"eighty_percent_grade={g.label('eighty_percent')}"],
                reasoning="Project is one grade above the 80% grade, flash one below, "
                "technical three below flash and endurance four below flash.",
                outcome=f"project {g.label('project')}, flash {g.label('flash')}, "
                f"technical {g.label('technical')}, endurance {g.label('endurance')}",
            )
        )

    # ========================================================================
    # Weeks 1-5
    # ========================================================================

    def _plan_training_week(self, week_number: int) -> Dict[Weekday, Session]:
        """
        Place sessions for a progressive or deload week.

        Even positions try the high-intensity track, odd positions the
        low-intensity track. A high-intensity day that cannot be placed falls
        back to the low-intensity track, then to rest, and its first candidate
        is tried first on the next active day.

        Args:
            week_number: Week number (1-5)

        Returns:
            Mapping of weekday to the session placed there
        """
        sessions = {}
        carry: Optional[SessionType] = None

        for position, weekday in enumerate(self.active_days):
            day = absolute_day(week_number, weekday)
            high = position % 2 == 0
            track = HIGH_INTENSITY_TRACK if high else LOW_INTENSITY_TRACK
            candidates = list(track)
            if carry is not None:
                candidates = [carry] + [c for c in candidates if c != carry]
            carry = None

            placed = self._first_valid(day, candidates)
            if placed is None and high:
                placed = self._first_valid(day, list(LOW_INTENSITY_TRACK))
                carry = candidates[0]
                self._document_downgrade(week_number, weekday, candidates, placed)

            if placed is None:
                sessions[weekday] = rest_session("No legal session fits this day")
                continue

            self.placements.append(Placement(day=day, session_type=placed))
            sessions[weekday] = build_session(week_number, placed, self.grades)

        if week_number == 5:
            self.plan_decisions.append(
                PlanDecision(
                    decision_point="Deload Week Loading",
                    input_factors=[
                        f"{t.value} baseline={BASELINE[t].intensity:g}x{BASELINE[t].volume:g}"
                        for t in HIGH_INTENSITY_TRACK + LOW_INTENSITY_TRACK
                    ],
                    reasoning="Week 5 halves both intensity and volume of the week 4 baseline "
                    "to allow adaptation before testing.",
                    outcome="All week 5 sessions at 50% of baseline",
                )
            )
        return sessions

    def _first_valid(self, day: int, candidates: List[SessionType]) -> Optional[SessionType]:
        for session_type in candidates:
            if self.validator.is_placement_valid(day, session_type, self.placements):
                return session_type
        return None

    def _document_downgrade(
        self,
        week_number: int,
        weekday: Weekday,
        candidates: List[SessionType],
        placed: Optional[SessionType],
    ) -> None:
        day = absolute_day(week_number, weekday)
        reasons = self.validator.violations(day, candidates[0], self.placements)
        outcome = placed.value if placed else "rest"
        logger.debug("week %d %s downgraded to %s: %s", week_number, weekday.value, outcome, reasons)
        self.plan_decisions.append(
            PlanDecision(
                decision_point=f"Week {week_number} {weekday.value} downgrade",
                input_factors=[f"candidates={[c.value for c in candidates]}"] + reasons,
                reasoning="No high-intensity session could be placed without breaking a "
                "spacing or frequency rule, so the day uses a lighter session.",
                outcome=f"{outcome}; {candidates[0].value} retried on the next active day",
            )
        )

    # ========================================================================
    # Week 6
    # ========================================================================

    def _plan_assessment_week(self, week_number: int) -> Dict[Weekday, Session]:
        """
        One high-intensity test day, one fitness benchmark, everything else rest.

        Only the first two active days are used. The first gets the fingerboard
        max test (project, then flash if spacing forbids it) and the second the
        fitness benchmark. When no test fits on the first day it takes the
        benchmark and the test is tried on the second day only.
        """
        sessions: Dict[Weekday, Session] = {}
        test_days = self.active_days[:ASSESSMENT_DAYS]

        test = self._place_test(week_number, test_days[0], sessions)
        if test is None:
            self._place_benchmark(week_number, test_days[0], sessions)
        if len(test_days) > 1:
            if test is None:
                self._place_test(week_number, test_days[1], sessions)
            else:
                self._place_benchmark(week_number, test_days[1], sessions)

        tested = [f"{d.value} {sessions[d].session_type.value}" for d in test_days if d in sessions]
        self.plan_decisions.append(
            PlanDecision(
                decision_point="Assessment Week Layout",
                input_factors=[f"active_days={[d.value for d in self.active_days]}"],
                reasoning="Testing needs fresh fingers: one high-intensity test day and a "
                "low-intensity benchmark on the first two active days, rest on every other day.",
                outcome=f"Tests: {', '.join(tested)}",
            )
        )
        return sessions

    def _place_test(
        self, week_number: int, weekday: Weekday, sessions: Dict[Weekday, Session]
    ) -> Optional[SessionType]:
        day = absolute_day(week_number, weekday)
        test = self._first_valid(day, list(ASSESSMENT_TESTS))
        if test is not None:
            self.placements.append(Placement(day=day, session_type=test))
            sessions[weekday] = build_test_session(test, self.grades)
        return test

    def _place_benchmark(
        self, week_number: int, weekday: Weekday, sessions: Dict[Weekday, Session]
    ) -> None:
        day = absolute_day(week_number, weekday)
        self.placements.append(Placement(day=day, session_type=SessionType.FITNESS))
        sessions[weekday] = build_test_session(SessionType.FITNESS, self.grades)

    # ========================================================================
    # Assembly
    # ========================================================================

    def _build_week(
        self, week_number: int, phase: TrainingPhase, sessions: Dict[Weekday, Session]
    ) -> Week:
        days = []
        for weekday in Weekday:
            session = sessions.get(weekday) or rest_session()
            days.append(Day(label=weekday, sessions=[session]))
        return Week(
            number=week_number,
            phase=phase,
            focus=f"{WEEK_FOCUS[week_number]}. {phase_note(phase)}",
            days=days,
        )
