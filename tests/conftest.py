"""Shared fixtures for climbcoach tests."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from climbcoach.clock import FixedClock
from climbcoach.coach import ProgramService
from climbcoach.schemas import DetailedContext, RawMeasurement, UserPreferences
from climbcoach.scorer import AssessmentScorer

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict:
    with open(FIXTURES / name) as f:
        return json.load(f)


@pytest.fixture
def example_measurement():
    """Measurements from the worked scoring example (V4 climber, weak everywhere)."""
    return RawMeasurement(**load_fixture("measurements_example.json"))


@pytest.fixture
def strong_measurement():
    """Balanced V5 climber with no metric below 40."""
    return RawMeasurement(**load_fixture("measurements_strong.json"))


@pytest.fixture
def example_assessment(example_measurement):
    return AssessmentScorer().score(example_measurement)


@pytest.fixture
def strong_assessment(strong_measurement):
    return AssessmentScorer().score(strong_measurement)


@pytest.fixture
def standard_preferences():
    """Four training days with full equipment and no injuries."""
    return UserPreferences(**load_fixture("preferences_standard.json"))


@pytest.fixture
def context():
    return DetailedContext(current_80_percent_grade="V5", climber_name="Alex", user_id="climber_42")


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 4, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def strong_program(strong_assessment, standard_preferences, context, clock):
    return ProgramService(clock=clock).generate(
        strong_assessment, standard_preferences, "quick", context
    )


@pytest.fixture
def example_measurement_data():
    return load_fixture("measurements_example.json")


@pytest.fixture
def standard_preferences_data():
    return load_fixture("preferences_standard.json")
