"""
Tests for injury and equipment adaptations.
"""

import pytest

from climbcoach.adapter import (
    BACK_MARKER,
    CORE_STABILITY,
    ELBOW_ANTAGONIST,
    ELBOW_DELOAD_MARKER,
    ELBOW_MARKER,
    ELBOW_WARM_UP,
    FINGER_MARKER,
    NO_FINGERBOARD_MARKER,
    NO_OUTDOOR_MARKER,
    ProgramAdapter,
    adapt_weeks,
)
from climbcoach.catalog import build_session
from climbcoach.grades import ReferenceGrades
from climbcoach.plan_schemas import SessionType, TrainingPhase, Weekday
from climbcoach.planner import ProgramPlanner
from climbcoach.schemas import InjuryRegion, UserPreferences
from climbcoach.validator import validate_program

FULL_EQUIPMENT = ["fingerboard", "gym", "outdoor"]
WORK_WEEK = [Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY]


@pytest.fixture
def weeks():
    """Mon-Fri plan: fingerboard Mon/Fri, project Wed, technical Tue/Thu."""
    return ProgramPlanner(WORK_WEEK, "V5").generate()


@pytest.fixture
def fitness_session():
    return build_session(1, SessionType.FITNESS, ReferenceGrades.from_eighty_percent("V5"))


def _first(weeks, week_number, weekday):
    return weeks[week_number - 1].day(weekday).sessions[0]


def _layout(weeks):
    return [[(d.label, d.sessions[0].session_type) for d in w.days] for w in weeks]


class TestNoAdaptation:
    def test_healthy_climber_with_full_equipment_is_unchanged(self, weeks):
        assert adapt_weeks(weeks, [], FULL_EQUIPMENT) == weeks

    def test_rest_days_are_never_touched(self, weeks):
        adapted = adapt_weeks(weeks, list(InjuryRegion), [])
        for week, original in zip(adapted, weeks):
            assert week.day(Weekday.SUNDAY) == original.day(Weekday.SUNDAY)


class TestInjuryRules:
    def test_finger_injury_uses_open_hand_on_larger_edges(self, weeks):
        adapted = adapt_weeks(weeks, [InjuryRegion.FINGER], FULL_EQUIPMENT)
        fingerboard = _first(adapted, 1, Weekday.MONDAY)

        assert "Open-hand hangs on 30mm edge" in fingerboard.exercises[1]
        assert FINGER_MARKER in fingerboard.modifications

        project = _first(adapted, 1, Weekday.WEDNESDAY)
        assert any("no full-crimp" in note for note in project.notes)

    def test_finger_injury_adapts_the_max_hang_test(self, weeks):
        adapted = adapt_weeks(weeks, [InjuryRegion.FINGER], FULL_EQUIPMENT)
        test = _first(adapted, 6, Weekday.MONDAY)
        assert test.exercises[1].startswith("Open-hand hang test")

    def test_elbow_injury_reduces_fingerboard_intensity(self, weeks):
        adapted = adapt_weeks(weeks, [InjuryRegion.ELBOW], FULL_EQUIPMENT)
        fingerboard = _first(adapted, 1, Weekday.MONDAY)

        assert fingerboard.target_intensity == pytest.approx(0.76)
        assert fingerboard.exercises[0] == ELBOW_WARM_UP
        assert fingerboard.exercises[-1] == ELBOW_ANTAGONIST
        assert ELBOW_MARKER in fingerboard.modifications

    def test_elbow_injury_keeps_deload_at_half_baseline(self, weeks):
        adapted = adapt_weeks(weeks, [InjuryRegion.ELBOW], FULL_EQUIPMENT)
        deload = _first(adapted, 5, Weekday.MONDAY)

        assert adapted[4].phase == TrainingPhase.DELOAD
        assert deload.target_intensity == 0.5
        assert ELBOW_DELOAD_MARKER in deload.modifications
        assert deload.exercises[0] == ELBOW_WARM_UP

    def test_elbow_injury_leaves_climbing_sessions_alone(self, weeks):
        adapted = adapt_weeks(weeks, [InjuryRegion.ELBOW], FULL_EQUIPMENT)
        assert _first(adapted, 1, Weekday.WEDNESDAY) == _first(weeks, 1, Weekday.WEDNESDAY)

    def test_shoulder_injury_modifies_pull_up_grips(self, fitness_session):
        adapter = ProgramAdapter([InjuryRegion.SHOULDER], FULL_EQUIPMENT)
        adapted = adapter.adapt_session(fitness_session, TrainingPhase.PROGRESSIVE)

        pull_ups = [line for line in adapted.exercises if "pull-ups" in line.lower()]
        assert pull_ups
        assert all(line.endswith("(neutral grip, shoulder-width)") for line in pull_ups)

    def test_shoulder_injury_keeps_hangs_below_shoulder_height(self, weeks):
        adapted = adapt_weeks(weeks, [InjuryRegion.SHOULDER], FULL_EQUIPMENT)
        fingerboard = _first(adapted, 2, Weekday.MONDAY)
        assert "below shoulder height" in fingerboard.exercises[-1]

    def test_back_injury_replaces_weighted_exercises(self, fitness_session):
        adapter = ProgramAdapter([InjuryRegion.BACK], FULL_EQUIPMENT)
        adapted = adapter.adapt_session(fitness_session, TrainingPhase.PROGRESSIVE)

        assert not any("weighted" in line.lower() for line in adapted.exercises)
        assert adapted.exercises[-1] == CORE_STABILITY
        assert adapter.applied_rules == [BACK_MARKER]

    def test_back_injury_skips_sessions_without_weights(self, weeks):
        adapted = adapt_weeks(weeks, [InjuryRegion.BACK], FULL_EQUIPMENT)
        assert adapted == weeks


class TestEquipmentRules:
    def test_missing_fingerboard_moves_hangs_to_gym_holds(self, weeks):
        adapted = adapt_weeks(weeks, [], ["gym", "outdoor"])
        fingerboard = _first(adapted, 1, Weekday.MONDAY)

        assert fingerboard.exercises[1].endswith("(use a gym hold of the same size)")
        assert NO_FINGERBOARD_MARKER in fingerboard.modifications

    def test_missing_outdoor_access_drops_outdoor_notes(self, weeks):
        original = _first(weeks, 1, Weekday.WEDNESDAY)
        assert any(n.startswith("Outdoor:") for n in original.notes)

        adapted = adapt_weeks(weeks, [], ["fingerboard", "gym"])
        project = _first(adapted, 1, Weekday.WEDNESDAY)
        assert not any(n.startswith("Outdoor:") for n in project.notes)
        assert NO_OUTDOOR_MARKER in project.modifications


class TestAdapterProperties:
    def test_adaptation_is_idempotent(self, weeks):
        once = adapt_weeks(weeks, list(InjuryRegion), [])
        twice = adapt_weeks(once, list(InjuryRegion), [])
        assert twice == once

    def test_adaptation_never_moves_sessions(self, weeks):
        adapted = adapt_weeks(weeks, list(InjuryRegion), [])
        assert _layout(adapted) == _layout(weeks)
        assert validate_program(adapted, WORK_WEEK) == []

    def test_applied_rules_are_recorded_once(self, weeks):
        adapter = ProgramAdapter([InjuryRegion.FINGER], ["gym"])
        adapter.adapt_weeks(weeks)
        assert sorted(adapter.applied_rules) == sorted(
            [FINGER_MARKER, NO_FINGERBOARD_MARKER, NO_OUTDOOR_MARKER]
        )

    def test_from_preferences_reads_injury_keywords(self):
        preferences = UserPreferences(
            available_days=[1, 3],
            equipment_access=["Gym"],
            injury_history=["A2 pulley strain", "lower back stiffness"],
        )
        adapter = ProgramAdapter.from_preferences(preferences)
        assert adapter.injuries == {InjuryRegion.FINGER, InjuryRegion.BACK}
        assert adapter.equipment == {"gym"}
