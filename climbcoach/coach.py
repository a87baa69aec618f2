"""
Entry points for scoring assessments and generating programs.

Collaborators are injected, never read from module state:
- ``Storage`` receives finished results (save failures are logged, not raised)
- ``Clock`` stamps assessments and program ids
- ``ProgramNarrator`` optionally adds narration to a finished calendar

Program generation order: plan -> validate -> adapt -> review -> narrate.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from climbcoach.adapter import ProgramAdapter
from climbcoach.clock import Clock, SystemClock
from climbcoach.config import CoachSettings
from climbcoach.database import ProgramProgress, ProgramStatus, Storage
from climbcoach.errors import CoachError, ConfigurationError
from climbcoach.narration import HttpNarrationClient, ProgramNarrator
from climbcoach.plan_schemas import PlanDecision, TrainingProgram
from climbcoach.planner import ProgramPlanner
from climbcoach.review import FALLBACK_INSIGHT, ReviewGate, build_insights
from climbcoach.schemas import (
    AssessmentResult,
    Confidence,
    DetailedContext,
    ProgramType,
    RawMeasurement,
    UserPreferences,
)
from climbcoach.scorer import AssessmentScorer
from climbcoach.validator import validate_program

logger = logging.getLogger(__name__)


def _persist(storage: Optional[Storage], entity) -> Optional[str]:
    """Save an entity; a failing store never aborts the computation."""
    if storage is None:
        return None
    try:
        record_id = storage.save(entity)
    except Exception:
        logger.error("Could not save %s", type(entity).__name__, exc_info=True)
        return None
    logger.info("Saved %s %s", type(entity).__name__, record_id)
    return record_id


def _program_type(value: Union[ProgramType, str]) -> ProgramType:
    try:
        return ProgramType(value)
    except ValueError as e:
        raise ConfigurationError(
            f"program_type must be quick, enhanced or optimized, got {value!r}",
            field="program_type",
        ) from e


# ============================================================================
# Assessments
# ============================================================================

class AssessmentService:
    """Scores assessments and hands the results to storage."""

    def __init__(
        self,
        storage: Optional[Storage] = None,
        clock: Optional[Clock] = None,
        scorer: Optional[AssessmentScorer] = None,
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.scorer = scorer or AssessmentScorer()

    def score(
        self,
        measurement: Union[RawMeasurement, Dict[str, Any]],
        user_id: Optional[str] = None,
    ) -> AssessmentResult:
        """
        Score a measurement snapshot and save the result.

        Raises:
            ValidationError: If the measurement is invalid; nothing is saved
        """
        result = self.scorer.score(measurement).model_copy(
            update={"user_id": user_id, "assessed_at": self.clock.now()}
        )
        logger.info(
            "Assessment scored: %s (composite %.3f, %s confidence)",
            result.predicted_grade,
            result.composite_score,
            result.confidence.value,
        )
        _persist(self.storage, result)
        return result

    def latest(self, user_id: str) -> Optional[AssessmentResult]:
        if self.storage is None:
            return None
        return self.storage.latest_assessment(user_id)


# ============================================================================
# Programs
# ============================================================================

class ProgramService:
    """
    Generates 6-week programs.

    The service:
    1. Plans the calendar with ProgramPlanner
    2. Re-checks the whole calendar against every constraint
    3. Applies injury and equipment adaptations
    4. Runs the coach review gate and confidence classifier
    5. Asks the narrator for descriptive text, falling back on any failure
    6. Saves the program (log-and-continue)
    """

    def __init__(
        self,
        storage: Optional[Storage] = None,
        clock: Optional[Clock] = None,
        narrator: Optional[ProgramNarrator] = None,
        gate: Optional[ReviewGate] = None,
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.narrator = narrator
        self.gate = gate or ReviewGate()

    def generate(
        self,
        assessment: AssessmentResult,
        preferences: Union[UserPreferences, Dict[str, Any]],
        program_type: Union[ProgramType, str],
        context: DetailedContext,
    ) -> TrainingProgram:
        """
        Generate a program for one climber.

        Args:
            assessment: Scored assessment the program targets
            preferences: Scheduling, equipment, goal and injury preferences
            program_type: quick, enhanced or optimized
            context: Climbing background (80% grade, name, user id)

        Returns:
            A structurally valid TrainingProgram

        Raises:
            ConfigurationError: If the preferences cannot produce a program
                (for example no available days) or the program type is unknown
        """
        if not isinstance(preferences, UserPreferences):
            preferences = UserPreferences.parse(preferences)
        program_type = _program_type(program_type)

        planner = ProgramPlanner(preferences.available_days, context.current_80_percent_grade)
        weeks = planner.generate()
        decisions: List[PlanDecision] = list(planner.plan_decisions)

        problems = validate_program(weeks, planner.active_days)
        if problems:
            raise CoachError(f"Planner produced an invalid calendar: {'; '.join(problems)}")

        adapter = ProgramAdapter.from_preferences(preferences)
        weeks = adapter.adapt_weeks(weeks)
        if adapter.applied_rules:
            decisions.append(
                PlanDecision(
                    decision_point="Injury and Equipment Adaptations",
                    input_factors=[
                        f"injury_history={preferences.injury_history}",
                        f"equipment_access={preferences.equipment_access}",
                    ],
                    reasoning="Session content was rewritten for the climber's injuries and "
                    "equipment; session placement is unchanged.",
                    outcome="; ".join(adapter.applied_rules),
                )
            )

        outcome = self.gate.evaluate(assessment, preferences, program_type)
        decisions.append(
            PlanDecision(
                decision_point="Coach Review Gate",
                input_factors=[
                    f"program_type={program_type.value}",
                    f"predicted_grade={assessment.predicted_grade}",
                    f"weaknesses={len(assessment.weaknesses)}",
                    f"confidence_points={outcome.confidence_points}",
                ],
                reasoning="Review is required when any trigger fires: "
                + ("; ".join(outcome.reasons) if outcome.reasons else "none fired") + ".",
                outcome=f"requires_coach_review={outcome.requires_coach_review}, "
                f"confidence={outcome.confidence.value}",
            )
        )

        requires_review = outcome.requires_coach_review
        confidence = outcome.confidence
        insights = build_insights(assessment, program_type, requires_review)
        fallback_used = False

        if self.narrator is not None:
            narrated = self.narrator.narrate(weeks, assessment, context)
            weeks = narrated.weeks
            if narrated.fallback_used:
                fallback_used = True
                requires_review = True
                confidence = Confidence.LOW
                insights = [FALLBACK_INSIGHT]
                decisions.append(
                    PlanDecision(
                        decision_point="Narration Fallback",
                        input_factors=[narrated.reason or "narration failed"],
                        reasoning="Narration was unavailable or structurally invalid, so the "
                        "planner's calendar is used directly with conservative gating.",
                        outcome="requires_coach_review=True, confidence=low",
                    )
                )

        created_at = self.clock.now()
        program = TrainingProgram(
            id=f"prog_{context.user_id}_{int(created_at.timestamp() * 1000)}",
            user_id=context.user_id,
            program_type=program_type.value,
            weeks=weeks,
            active_days=planner.active_days,
            personalization_score=outcome.personalization_score,
            requires_coach_review=requires_review,
            confidence=confidence.value,
            ai_insights=insights,
            plan_decisions=decisions,
            target_grade=assessment.predicted_grade,
            fallback_used=fallback_used,
            created_at=created_at,
        )
        logger.info(
            "Program %s generated: %d sessions, review=%s, confidence=%s",
            program.id,
            program.total_sessions,
            program.requires_coach_review,
            program.confidence,
        )
        _persist(self.storage, program)
        return program

    def record_progress(
        self,
        program_id: str,
        completed_sessions: int,
        status: Optional[ProgramStatus] = None,
    ) -> ProgramProgress:
        """
        Update the stored progress counters for a program.

        Raises:
            ConfigurationError: If no storage backend is configured
            PersistenceError: If the program is unknown
        """
        if self.storage is None:
            raise ConfigurationError("Progress tracking needs a storage backend", field="storage")
        return self.storage.update_progress(program_id, completed_sessions, status)


# ============================================================================
# Module-level entry points
# ============================================================================

def build_narrator(settings: CoachSettings) -> Optional[ProgramNarrator]:
    if not settings.generation_url:
        return None
    client = HttpNarrationClient(
        settings.generation_url, settings.generation_model, settings.generation_timeout
    )
    return ProgramNarrator(client, timeout=settings.generation_timeout)


def score_assessment(
    measurement: Union[RawMeasurement, Dict[str, Any]],
    storage: Optional[Storage] = None,
    clock: Optional[Clock] = None,
    user_id: Optional[str] = None,
) -> AssessmentResult:
    return AssessmentService(storage=storage, clock=clock).score(measurement, user_id=user_id)


def generate_program(
    assessment: AssessmentResult,
    preferences: Union[UserPreferences, Dict[str, Any]],
    program_type: Union[ProgramType, str],
    context: DetailedContext,
    storage: Optional[Storage] = None,
    clock: Optional[Clock] = None,
    narrator: Optional[ProgramNarrator] = None,
) -> TrainingProgram:
    return ProgramService(storage=storage, clock=clock, narrator=narrator).generate(
        assessment, preferences, program_type, context
    )
