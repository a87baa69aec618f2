"""
Tests for program trace generation and export.

Ensures that traces are properly built and can be exported to JSON and Markdown.
"""

import json
from pathlib import Path

import pytest

from climbcoach.trace import (
    ProgramTraceBuilder,
    load_program_from_file,
    save_program_trace,
)


# Fixtures

@pytest.fixture
def trace_builder(strong_program):
    """Create a trace builder for the standard quick program."""
    return ProgramTraceBuilder(strong_program)


@pytest.fixture
def review_program(strong_program):
    """Program held for coach review with an adapted session."""
    first_week = strong_program.weeks[0]
    monday = first_week.days[0]
    session = monday.sessions[0].model_copy(
        update={"modifications": ["elbow injury: extended warm-up, antagonist work"]}
    )
    weeks = [
        first_week.model_copy(
            update={"days": [monday.model_copy(update={"sessions": [session]})] + first_week.days[1:]}
        )
    ] + strong_program.weeks[1:]
    return strong_program.model_copy(
        update={"weeks": weeks, "requires_coach_review": True, "fallback_used": True}
    )


# Export Tests

def test_export_to_json(trace_builder, strong_program):
    data = trace_builder.export_to_json()

    assert data["id"] == strong_program.id
    assert data["user_id"] == "climber_42"
    assert len(data["weeks"]) == 6
    assert data["weeks"][0]["days"][0]["sessions"][0]["session_type"] == "fingerboard"
    json.dumps(data)


def test_export_to_markdown(trace_builder):
    markdown = trace_builder.export_to_markdown()

    assert "# Program Trace" in markdown
    assert "**Climber:** `climber_42`" in markdown
    assert "✅ **AUTO-APPROVED**" in markdown
    assert "### Week 5: Deload" in markdown
    assert "| Monday | Fingerboard | 95% | 3 sets | - | 9-10 |" in markdown
    assert "| Sunday | Rest | - | - | - | - |" in markdown
    assert "## Plan Generation Decisions" in markdown
    assert "Coach Review Gate" in markdown


def test_markdown_flags_review_and_modifications(review_program):
    markdown = ProgramTraceBuilder(review_program).export_to_markdown()

    assert "⚠️ **COACH REVIEW REQUIRED**" in markdown
    assert "Narration was unavailable" in markdown
    assert "- Monday modifications: elbow injury" in markdown


# File Tests

def test_save_and_load_json(strong_program, tmp_path):
    filepath = save_program_trace(strong_program, tmp_path, format="json")

    assert filepath.name == "program_climber_42_20240304_093000.json"
    loaded = load_program_from_file(filepath)
    assert loaded.model_dump() == strong_program.model_dump()


def test_save_markdown(trace_builder, tmp_path):
    filepath = trace_builder.save_to_file(tmp_path / "traces", format="markdown")

    assert filepath.suffix == ".md"
    assert filepath.read_text().startswith("# Program Trace")


def test_unsupported_format(trace_builder, tmp_path):
    with pytest.raises(ValueError, match="Unsupported format"):
        trace_builder.save_to_file(tmp_path, format="yaml")


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_program_from_file(tmp_path / "missing.json")


def test_load_invalid_trace(tmp_path):
    filepath = Path(tmp_path) / "bad.json"
    filepath.write_text(json.dumps({"id": "prog_x", "weeks": []}))

    with pytest.raises(ValueError, match="Invalid trace file"):
        load_program_from_file(filepath)
