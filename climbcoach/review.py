"""
Coach review gate and confidence classifier.

The gate decides whether a generated program is held for a human coach. It
evaluates every trigger even after one fires, so the program trace shows the
complete list of reasons.
"""

from typing import List

from pydantic import BaseModel, Field

from climbcoach.schemas import (
    AssessmentResult,
    Confidence,
    MetricName,
    ProgramType,
    UserPreferences,
)

ELITE_GRADE_ORDINAL = 10
MAX_WEAKNESSES = 3
REVIEW_GOALS = ("competition", "specific_route")

PERSONALIZATION_SCORES = {
    ProgramType.QUICK: 20,
    ProgramType.ENHANCED: 60,
    ProgramType.OPTIMIZED: 95,
}

PROGRAM_TYPE_POINTS = {
    ProgramType.QUICK: 1,
    ProgramType.ENHANCED: 2,
    ProgramType.OPTIMIZED: 3,
}

FALLBACK_INSIGHT = (
    "Program generated with fallback method because narration was unavailable. "
    "Coach review required."
)


class ReviewOutcome(BaseModel):
    """Result of the review gate for one program."""

    requires_coach_review: bool
    reasons: List[str] = Field(default_factory=list, description="Triggers that fired")
    confidence: Confidence
    confidence_points: int = Field(..., ge=0)
    personalization_score: int = Field(..., ge=0, le=100)


class ReviewGate:
    """
    Deterministic review predicate.

    A program needs coach review if ANY of:
    - injury history is non-empty
    - predicted grade is V10 or harder
    - three or more weaknesses
    - program type is optimized
    - primary goals include competition or specific_route
    """

    def evaluate(
        self,
        assessment: AssessmentResult,
        preferences: UserPreferences,
        program_type: ProgramType,
    ) -> ReviewOutcome:
        reasons = self.review_reasons(assessment, preferences, program_type)
        points = self.confidence_points(assessment, preferences, program_type)
        return ReviewOutcome(
            requires_coach_review=bool(reasons),
            reasons=reasons,
            confidence=self.classify(points),
            confidence_points=points,
            personalization_score=PERSONALIZATION_SCORES[program_type],
        )

    def review_reasons(
        self,
        assessment: AssessmentResult,
        preferences: UserPreferences,
        program_type: ProgramType,
    ) -> List[str]:
        reasons = []
        if preferences.injury_history:
            reasons.append(f"injury history: {', '.join(preferences.injury_history)}")
        if assessment.predicted_ordinal >= ELITE_GRADE_ORDINAL:
            reasons.append(f"elite predicted grade {assessment.predicted_grade}")
        if len(assessment.weaknesses) >= MAX_WEAKNESSES:
            reasons.append(f"{len(assessment.weaknesses)} weaknesses")
        if program_type == ProgramType.OPTIMIZED:
            reasons.append("optimized program")
        goals = [g for g in REVIEW_GOALS if g in preferences.primary_goals]
        if goals:
            reasons.append(f"goal needs coach input: {', '.join(goals)}")
        return reasons

    def requires_review(
        self,
        assessment: AssessmentResult,
        preferences: UserPreferences,
        program_type: ProgramType,
    ) -> bool:
        return bool(self.review_reasons(assessment, preferences, program_type))

    @staticmethod
    def confidence_points(
        assessment: AssessmentResult,
        preferences: UserPreferences,
        program_type: ProgramType,
    ) -> int:
        """
        Accumulate confidence points.

        +3 valid composite score, +2 at most two weaknesses, +2 three or more
        available days, +1 two or more equipment types, +3/+2/+1 for
        optimized/enhanced/quick.
        """
        points = 0
        if assessment.composite_score > 0:
            points += 3
        if len(assessment.weaknesses) <= 2:
            points += 2
        if len(set(preferences.available_days)) >= 3:
            points += 2
        if len(preferences.equipment_access) >= 2:
            points += 1
        points += PROGRAM_TYPE_POINTS[program_type]
        return points

    @staticmethod
    def classify(points: int) -> Confidence:
        if points >= 8:
            return Confidence.HIGH
        if points >= 5:
            return Confidence.MEDIUM
        return Confidence.LOW


def build_insights(
    assessment: AssessmentResult, program_type: ProgramType, requires_coach_review: bool
) -> List[str]:
    insights = []
    if MetricName.FINGER_STRENGTH in assessment.weaknesses:
        insights.append(
            "Your finger strength is the primary limiting factor. This program prioritizes "
            "fingerboard training with proper 72-hour recovery periods."
        )
    if MetricName.CORE_STRENGTH in assessment.weaknesses:
        insights.append(
            "Core strength development will unlock steeper climbing and better body "
            "positioning through targeted toe-to-bar work."
        )
    insights.append(
        f"This {program_type.value} program includes 6-week periodization with progressive "
        "loading (weeks 1-4), deload (week 5), and assessment (week 6)."
    )
    if requires_coach_review:
        insights.append(
            "This program has been flagged for coach review to ensure safety and "
            "effectiveness based on your profile."
        )
    insights.append(
        "All training constraints are validated: fingerboard 72h apart, projects and flash "
        "sessions 48h apart, no back-to-back hard days, minimum 2 rest days per week."
    )
    return insights
