"""
Tests for the coach review gate, confidence classifier and insights.
"""

import pytest

from climbcoach.review import (
    ELITE_GRADE_ORDINAL,
    PERSONALIZATION_SCORES,
    ReviewGate,
    build_insights,
)
from climbcoach.schemas import Confidence, MetricName, ProgramType, UserPreferences


@pytest.fixture
def gate():
    return ReviewGate()


def _preferences(standard_preferences, **changes):
    return standard_preferences.model_copy(update=changes)


class TestReviewTriggers:
    def test_clean_profile_needs_no_review(self, gate, strong_assessment, standard_preferences):
        outcome = gate.evaluate(strong_assessment, standard_preferences, ProgramType.QUICK)
        assert outcome.requires_coach_review is False
        assert outcome.reasons == []

    def test_injury_history_requires_review(self, gate, strong_assessment, standard_preferences):
        preferences = _preferences(standard_preferences, injury_history=["finger pulley"])
        outcome = gate.evaluate(strong_assessment, preferences, ProgramType.QUICK)

        assert outcome.requires_coach_review is True
        assert outcome.reasons == ["injury history: finger pulley"]

    def test_elite_grade_requires_review(self, gate, strong_assessment, standard_preferences):
        elite = strong_assessment.model_copy(update={"predicted_grade": f"V{ELITE_GRADE_ORDINAL}"})
        assert gate.requires_review(elite, standard_preferences, ProgramType.QUICK)

    def test_grade_below_elite_does_not_trigger(
        self, gate, strong_assessment, standard_preferences
    ):
        strong = strong_assessment.model_copy(update={"predicted_grade": "V9"})
        assert not gate.requires_review(strong, standard_preferences, ProgramType.QUICK)

    def test_three_weaknesses_require_review(self, gate, strong_assessment, standard_preferences):
        weak = strong_assessment.model_copy(
            update={
                "weaknesses": [
                    MetricName.FLEXIBILITY,
                    MetricName.CORE_STRENGTH,
                    MetricName.PULL_UPS,
                ]
            }
        )
        assert gate.review_reasons(weak, standard_preferences, ProgramType.QUICK) == [
            "3 weaknesses"
        ]

    def test_two_weaknesses_do_not_trigger(self, gate, strong_assessment, standard_preferences):
        weak = strong_assessment.model_copy(
            update={"weaknesses": [MetricName.FLEXIBILITY, MetricName.CORE_STRENGTH]}
        )
        assert not gate.requires_review(weak, standard_preferences, ProgramType.QUICK)

    def test_optimized_program_requires_review(
        self, gate, strong_assessment, standard_preferences
    ):
        assert gate.requires_review(strong_assessment, standard_preferences, ProgramType.OPTIMIZED)
        assert not gate.requires_review(
            strong_assessment, standard_preferences, ProgramType.ENHANCED
        )

    @pytest.mark.parametrize("goal", ["competition", "specific_route"])
    def test_review_goals(self, gate, strong_assessment, standard_preferences, goal):
        preferences = _preferences(standard_preferences, primary_goals=["strength", goal])
        reasons = gate.review_reasons(strong_assessment, preferences, ProgramType.QUICK)
        assert reasons == [f"goal needs coach input: {goal}"]

    def test_all_triggers_are_reported(self, gate, example_assessment, standard_preferences):
        preferences = _preferences(
            standard_preferences,
            injury_history=["elbow tendinopathy"],
            primary_goals=["competition"],
        )
        elite = example_assessment.model_copy(update={"predicted_grade": "V11"})
        reasons = gate.review_reasons(elite, preferences, ProgramType.OPTIMIZED)
        assert len(reasons) == 5


class TestConfidence:
    def test_strong_profile_is_high_confidence(
        self, gate, strong_assessment, standard_preferences
    ):
        outcome = gate.evaluate(strong_assessment, standard_preferences, ProgramType.QUICK)
        assert outcome.confidence_points == 9
        assert outcome.confidence == Confidence.HIGH

    def test_many_weaknesses_lower_confidence(
        self, gate, example_assessment, standard_preferences
    ):
        outcome = gate.evaluate(example_assessment, standard_preferences, ProgramType.QUICK)
        assert outcome.confidence_points == 7
        assert outcome.confidence == Confidence.MEDIUM

    def test_sparse_preferences_give_low_confidence(self, gate, example_assessment):
        preferences = UserPreferences(available_days=["monday"])
        points = gate.confidence_points(example_assessment, preferences, ProgramType.QUICK)
        assert points == 4
        assert gate.classify(points) == Confidence.LOW

    def test_repeated_day_counts_once(self, gate, example_assessment):
        once = UserPreferences(available_days=["monday"])
        repeated = UserPreferences(available_days=["monday", "monday", "monday"])
        assert gate.confidence_points(
            example_assessment, repeated, ProgramType.QUICK
        ) == gate.confidence_points(example_assessment, once, ProgramType.QUICK)

    @pytest.mark.parametrize(
        "points,expected",
        [
            (0, Confidence.LOW),
            (4, Confidence.LOW),
            (5, Confidence.MEDIUM),
            (7, Confidence.MEDIUM),
            (8, Confidence.HIGH),
            (11, Confidence.HIGH),
        ],
    )
    def test_classification_thresholds(self, points, expected):
        assert ReviewGate.classify(points) == expected


class TestPersonalization:
    @pytest.mark.parametrize("program_type", list(ProgramType))
    def test_personalization_score_by_type(
        self, gate, strong_assessment, standard_preferences, program_type
    ):
        outcome = gate.evaluate(strong_assessment, standard_preferences, program_type)
        assert outcome.personalization_score == PERSONALIZATION_SCORES[program_type]

    def test_scores_increase_with_personalization(self):
        assert (
            PERSONALIZATION_SCORES[ProgramType.QUICK]
            < PERSONALIZATION_SCORES[ProgramType.ENHANCED]
            < PERSONALIZATION_SCORES[ProgramType.OPTIMIZED]
        )


class TestInsights:
    def test_weak_finger_and_core_insights(self, example_assessment):
        insights = build_insights(example_assessment, ProgramType.QUICK, True)
        assert insights[0].startswith("Your finger strength is the primary limiting factor")
        assert insights[1].startswith("Core strength development")
        assert any("flagged for coach review" in i for i in insights)

    def test_strong_climber_gets_generic_insights(self, strong_assessment):
        insights = build_insights(strong_assessment, ProgramType.ENHANCED, False)
        assert insights[0].startswith("This enhanced program")
        assert not any("flagged for coach review" in i for i in insights)
