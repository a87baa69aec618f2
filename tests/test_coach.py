"""
End-to-end tests for the scoring and program entry points.
"""

import json
import logging

import pytest

from climbcoach.coach import (
    AssessmentService,
    ProgramService,
    build_narrator,
    generate_program,
    score_assessment,
)
from climbcoach.config import CoachSettings
from climbcoach.database import InMemoryStorage, ProgramStatus
from climbcoach.errors import ConfigurationError, PersistenceError, ValidationError
from climbcoach.narration import ProgramNarrator
from climbcoach.review import FALLBACK_INSIGHT
from climbcoach.validator import validate_program


class StaticClient:
    def __init__(self, reply):
        self.reply = reply

    def complete(self, prompt):
        return self.reply


class BrokenStorage:
    """Raises on every call."""

    def save(self, entity):
        raise PersistenceError("disk full")

    def latest_assessment(self, user_id):
        raise PersistenceError("disk full")

    def get_program(self, program_id):
        raise PersistenceError("disk full")

    def update_progress(self, program_id, completed_sessions, status=None):
        raise PersistenceError("disk full")


class TestAssessmentService:
    def test_score_stamps_user_and_time(self, example_measurement, clock):
        storage = InMemoryStorage()
        result = AssessmentService(storage=storage, clock=clock).score(
            example_measurement, user_id="climber_42"
        )

        assert result.user_id == "climber_42"
        assert result.assessed_at == clock.now()
        assert storage.latest_assessment("climber_42") == result

    def test_score_accepts_raw_dict(self, example_measurement_data, clock):
        result = score_assessment(example_measurement_data, clock=clock)
        assert result.predicted_grade == "V4"

    def test_invalid_measurement_saves_nothing(self, example_measurement_data, clock):
        storage = InMemoryStorage()
        data = dict(example_measurement_data)
        data["body_weight"] = -5

        with pytest.raises(ValidationError) as exc_info:
            AssessmentService(storage=storage, clock=clock).score(data, user_id="climber_42")
        assert exc_info.value.field == "body_weight"
        assert storage.assessments == {}

    def test_storage_failure_is_logged_not_raised(self, example_measurement, clock, caplog):
        with caplog.at_level(logging.ERROR):
            result = AssessmentService(storage=BrokenStorage(), clock=clock).score(
                example_measurement
            )
        assert result.predicted_grade == "V4"
        assert "Could not save AssessmentResult" in caplog.text

    def test_latest_without_storage(self):
        assert AssessmentService().latest("climber_42") is None


class TestProgramService:
    def test_quick_program(self, strong_program, clock):
        program = strong_program

        assert program.id == f"prog_climber_42_{int(clock.now().timestamp() * 1000)}"
        assert program.id == "prog_climber_42_1709544600000"
        assert program.user_id == "climber_42"
        assert program.program_type == "quick"
        assert len(program.weeks) == 6
        assert program.personalization_score == 20
        assert program.requires_coach_review is False
        assert program.confidence == "high"
        assert program.fallback_used is False
        assert program.target_grade == "V5"
        assert validate_program(program.weeks, program.active_days) == []

    def test_decisions_include_review_gate(self, strong_program):
        points = [d.decision_point for d in strong_program.plan_decisions]
        assert "Coach Review Gate" in points
        assert "Reference Grade Derivation" in points
        assert "Injury and Equipment Adaptations" not in points

    def test_injured_climber_gets_adaptations_and_review(
        self, strong_assessment, standard_preferences, context, clock
    ):
        preferences = standard_preferences.model_copy(
            update={"injury_history": ["A2 pulley strain"]}
        )
        program = ProgramService(clock=clock).generate(
            strong_assessment, preferences, "quick", context
        )

        assert program.requires_coach_review is True
        fingerboard = program.weeks[0].days[0].sessions[0]
        assert any("finger injury" in m for m in fingerboard.modifications)
        points = [d.decision_point for d in program.plan_decisions]
        assert "Injury and Equipment Adaptations" in points

    def test_preferences_as_dict(
        self, strong_assessment, standard_preferences_data, context, clock
    ):
        program = generate_program(
            strong_assessment,
            standard_preferences_data,
            "enhanced",
            context,
            clock=clock,
        )
        assert program.personalization_score == 60

    def test_unknown_program_type(self, strong_assessment, standard_preferences, context):
        with pytest.raises(ConfigurationError) as exc_info:
            ProgramService().generate(strong_assessment, standard_preferences, "deluxe", context)
        assert exc_info.value.field == "program_type"

    def test_no_available_days(self, strong_assessment, standard_preferences, context):
        preferences = standard_preferences.model_copy(update={"available_days": []})
        with pytest.raises(ConfigurationError) as exc_info:
            ProgramService().generate(strong_assessment, preferences, "quick", context)
        assert exc_info.value.field == "available_days"

    def test_invalid_day_name(self, strong_assessment, context):
        with pytest.raises(ConfigurationError):
            ProgramService().generate(
                strong_assessment, {"available_days": ["someday"]}, "quick", context
            )


class TestNarrationFallback:
    def test_non_json_reply_uses_planner_output(
        self, strong_assessment, standard_preferences, context, clock, strong_program
    ):
        narrator = ProgramNarrator(StaticClient("Sure! Here's a great plan for you."))
        program = ProgramService(clock=clock, narrator=narrator).generate(
            strong_assessment, standard_preferences, "quick", context
        )

        assert program.fallback_used is True
        assert program.structure() == strong_program.structure()
        assert program.requires_coach_review is True
        assert program.confidence == "low"
        assert program.ai_insights == [FALLBACK_INSIGHT]
        assert program.plan_decisions[-1].decision_point == "Narration Fallback"

    def test_valid_narration_keeps_gate_outcome(
        self, strong_assessment, standard_preferences, context, clock, strong_program
    ):
        reply = json.dumps(
            {
                "weeks": [
                    {
                        "week": w.number,
                        "days": {d.label.value: "Climb well." for d in w.days if not d.is_rest},
                    }
                    for w in strong_program.weeks
                ]
            }
        )
        program = ProgramService(clock=clock, narrator=ProgramNarrator(StaticClient(reply))).generate(
            strong_assessment, standard_preferences, "quick", context
        )

        assert program.fallback_used is False
        assert program.confidence == "high"
        assert program.structure() == strong_program.structure()
        assert program.weeks[0].days[0].sessions[0].narration == "Climb well."

    def test_build_narrator_needs_url(self):
        assert build_narrator(CoachSettings()) is None
        narrator = build_narrator(CoachSettings(generation_url="http://localhost:11434/api/generate"))
        assert narrator.client.url == "http://localhost:11434/api/generate"

    def test_built_client_bounds_its_own_call(self):
        narrator = build_narrator(
            CoachSettings(generation_url="http://localhost:11434/api/generate", generation_timeout=12)
        )
        assert narrator.timeout == 12
        assert narrator.client.timeout == 12


class TestPersistence:
    def test_program_is_saved(self, strong_assessment, standard_preferences, context, clock):
        storage = InMemoryStorage()
        program = ProgramService(storage=storage, clock=clock).generate(
            strong_assessment, standard_preferences, "quick", context
        )
        assert storage.get_program(program.id) == program

    def test_failing_storage_still_returns_program(
        self, strong_assessment, standard_preferences, context, clock, caplog
    ):
        with caplog.at_level(logging.ERROR):
            program = ProgramService(storage=BrokenStorage(), clock=clock).generate(
                strong_assessment, standard_preferences, "quick", context
            )
        assert len(program.weeks) == 6
        assert "Could not save TrainingProgram" in caplog.text

    def test_record_progress(self, strong_assessment, standard_preferences, context, clock):
        storage = InMemoryStorage()
        service = ProgramService(storage=storage, clock=clock)
        program = service.generate(strong_assessment, standard_preferences, "quick", context)

        progress = service.record_progress(program.id, program.total_sessions)
        assert progress.status == ProgramStatus.COMPLETED
        assert progress.progress_percentage == 100

    def test_record_progress_needs_storage(self):
        with pytest.raises(ConfigurationError):
            ProgramService().record_progress("prog_x", 3)
