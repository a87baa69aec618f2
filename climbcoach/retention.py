"""
Progress and retention snapshot.

Turns one logged session into progress metrics, recommendations and program
adjustments. The consistency score describes that single session only; it is
not averaged over the climber's history.
"""

from datetime import timedelta
from typing import List, Optional

from pydantic import BaseModel, Field

from climbcoach.clock import Clock, SystemClock
from climbcoach.plan_schemas import PROGRAM_WEEKS

MILESTONES = [
    "Complete first week",
    "Train consistently for 2 weeks",
    "Complete month 1",
    "Show measurable strength gains",
    "Complete 6-week program",
]
CELEBRATION_WEEKS = (1, 2, 4)
CHURN_CONSISTENCY = 40
CHECK_IN_INTERVAL = timedelta(days=7)


class SessionLog(BaseModel):
    """What the climber reported for one session."""

    completed: bool
    duration_minutes: int = Field(0, ge=0)
    difficulty: int = Field(5, ge=1, le=10, description="Perceived difficulty (RPE)")
    satisfaction: float = Field(..., ge=0, le=10, description="Session satisfaction")


class ProgressMetrics(BaseModel):
    consistency_score: float = Field(..., ge=0, le=100)
    improvement_trend: str
    engagement_level: str
    next_milestone: str


class Recommendation(BaseModel):
    type: str
    message: str
    action: str
    priority: str


class ProgramAdjustment(BaseModel):
    type: str
    description: str
    rationale: str


class RetentionSnapshot(BaseModel):
    """Progress metrics and follow-ups for one logged session."""

    week_number: int
    progress_metrics: ProgressMetrics
    recommendations: List[Recommendation] = Field(default_factory=list)
    program_adjustments: List[ProgramAdjustment] = Field(default_factory=list)
    celebration_message: Optional[str] = None
    churn_risk: bool
    next_check_in: str


def consistency_score(session: SessionLog) -> float:
    if not session.completed:
        return 0.0
    return min(100.0, 70 + session.satisfaction * 6)


def engagement_level(consistency: float) -> str:
    if consistency > 80:
        return "high"
    if consistency > 60:
        return "medium"
    return "low"


def next_milestone(week_number: int) -> str:
    return MILESTONES[min(week_number, len(MILESTONES) - 1)]


def analyze_progress(
    week_number: int,
    session: SessionLog,
    goal: str,
    equipment: Optional[List[str]] = None,
    clock: Optional[Clock] = None,
) -> RetentionSnapshot:
    """
    Build the retention snapshot for one session.

    Args:
        week_number: Program week the session belongs to (1-6)
        session: The logged session
        goal: Climber's primary goal, used in the celebration message
        equipment: Equipment the climber can use
        clock: Time source for the next check-in

    Returns:
        RetentionSnapshot

    Raises:
        ValueError: If week_number is outside the program
    """
    if not 1 <= week_number <= PROGRAM_WEEKS:
        raise ValueError(f"Week number must be between 1 and {PROGRAM_WEEKS}, got {week_number}")
    equipment = [e.lower() for e in (equipment or [])]
    clock = clock or SystemClock()

    consistency = consistency_score(session)
    engagement = engagement_level(consistency)
    milestone = next_milestone(week_number)
    recommendations: List[Recommendation] = []
    adjustments: List[ProgramAdjustment] = []

    celebrate = session.completed and week_number in CELEBRATION_WEEKS
    churn_risk = consistency < CHURN_CONSISTENCY or (week_number > 1 and not session.completed)

    celebration = None
    if celebrate:
        celebration = f"Amazing work! You're building serious momentum on your {goal} goal!"

    if churn_risk:
        recommendations.append(
            Recommendation(
                type="motivation",
                message="Having trouble staying consistent? That's normal. Let's adjust your plan.",
                action="schedule_check_in",
                priority="high",
            )
        )
        adjustments.append(
            ProgramAdjustment(
                type="schedule_modification",
                description="Reduce training frequency from 4x to 3x per week",
                rationale="Lower barrier to consistency while maintaining progress",
            )
        )

    if engagement == "high":
        recommendations.append(
            Recommendation(
                type="progression",
                message="You're crushing it! Ready to level up your training intensity?",
                action="suggest_advanced_techniques",
                priority="medium",
            )
        )
    elif engagement == "low":
        recommendations.append(
            Recommendation(
                type="support",
                message="Let's find what works best for you. How about a shorter session?",
                action="modify_program_difficulty",
                priority="high",
            )
        )
        adjustments.append(
            ProgramAdjustment(
                type="intensity_adjustment",
                description="Reduce session length by 15 minutes",
                rationale="Improve completion rates and build confidence",
            )
        )

    recommendations.append(
        Recommendation(
            type="milestone",
            message=f"You're on track for: {milestone}",
            action="show_progress_visualization",
            priority="medium",
        )
    )

    if "fingerboard" in equipment:
        recommendations.append(
            Recommendation(
                type="technique",
                message="Try a new hang variation on your fingerboard this week.",
                action="suggest_fingerboard_progression",
                priority="low",
            )
        )

    return RetentionSnapshot(
        week_number=week_number,
        progress_metrics=ProgressMetrics(
            consistency_score=consistency,
            improvement_trend="positive" if week_number > 2 else "building",
            engagement_level=engagement,
            next_milestone=milestone,
        ),
        recommendations=recommendations,
        program_adjustments=adjustments,
        celebration_message=celebration,
        churn_risk=churn_risk,
        next_check_in=(clock.now() + CHECK_IN_INTERVAL).isoformat(),
    )
