"""
Tests for the progress and retention snapshot.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from climbcoach.retention import (
    MILESTONES,
    SessionLog,
    analyze_progress,
    consistency_score,
    engagement_level,
    next_milestone,
)


def _actions(snapshot):
    return [r.action for r in snapshot.recommendations]


class TestConsistency:
    def test_missed_session_scores_zero(self):
        assert consistency_score(SessionLog(completed=False, satisfaction=9)) == 0.0

    def test_satisfaction_raises_score(self):
        assert consistency_score(SessionLog(completed=True, satisfaction=2)) == 82.0

    def test_score_is_capped(self):
        assert consistency_score(SessionLog(completed=True, satisfaction=10)) == 100.0

    @pytest.mark.parametrize(
        "score,level", [(100, "high"), (81, "high"), (80, "medium"), (61, "medium"), (60, "low")]
    )
    def test_engagement_levels(self, score, level):
        assert engagement_level(score) == level


def test_milestones_follow_week():
    assert next_milestone(1) == "Train consistently for 2 weeks"
    assert next_milestone(6) == MILESTONES[-1]


def test_satisfaction_is_bounded():
    with pytest.raises(PydanticValidationError):
        SessionLog(completed=True, satisfaction=11)


class TestAnalyzeProgress:
    def test_great_first_week(self, clock):
        snapshot = analyze_progress(
            1, SessionLog(completed=True, satisfaction=8), "strength", ["fingerboard"], clock
        )

        assert snapshot.progress_metrics.consistency_score == 100.0
        assert snapshot.progress_metrics.engagement_level == "high"
        assert snapshot.progress_metrics.improvement_trend == "building"
        assert snapshot.churn_risk is False
        assert "strength" in snapshot.celebration_message
        assert _actions(snapshot) == [
            "suggest_advanced_techniques",
            "show_progress_visualization",
            "suggest_fingerboard_progression",
        ]
        assert snapshot.program_adjustments == []
        assert snapshot.next_check_in == "2024-03-11T09:30:00+00:00"

    def test_missed_session_after_week_one_is_churn_risk(self, clock):
        snapshot = analyze_progress(
            3, SessionLog(completed=False, satisfaction=5), "technique", clock=clock
        )

        assert snapshot.churn_risk is True
        assert snapshot.celebration_message is None
        assert snapshot.progress_metrics.engagement_level == "low"
        assert snapshot.progress_metrics.improvement_trend == "positive"
        assert "schedule_check_in" in _actions(snapshot)
        assert [a.type for a in snapshot.program_adjustments] == [
            "schedule_modification",
            "intensity_adjustment",
        ]

    def test_no_celebration_outside_milestone_weeks(self, clock):
        snapshot = analyze_progress(3, SessionLog(completed=True, satisfaction=5), "strength", clock=clock)
        assert snapshot.celebration_message is None

    def test_equipment_is_case_insensitive(self, clock):
        snapshot = analyze_progress(
            2, SessionLog(completed=True, satisfaction=0), "strength", ["Fingerboard"], clock
        )
        assert "suggest_fingerboard_progression" in _actions(snapshot)
        assert snapshot.progress_metrics.engagement_level == "medium"

    @pytest.mark.parametrize("week", [0, 7])
    def test_week_outside_program(self, week, clock):
        with pytest.raises(ValueError):
            analyze_progress(week, SessionLog(completed=True, satisfaction=5), "strength", clock=clock)
