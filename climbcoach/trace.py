"""
Program trace generation and export.

This module documents a generated program for coach review: the calendar,
the review outcome, and every decision the planner made. Traces are exported
to JSON (loadable back into a TrainingProgram) and Markdown.
"""

import json
from pathlib import Path

from climbcoach.plan_schemas import Session, TrainingProgram


class ProgramTraceBuilder:
    """
    Builds and exports program traces.

    The trace is the audit trail a coach reads before approving a program:
    - Review gate outcome and confidence
    - The week-by-week calendar with loads and modifications
    - Every planner decision and the factors behind it
    """

    def __init__(self, program: TrainingProgram):
        """
        Initialize trace builder.

        Args:
            program: The generated program to document
        """
        self.program = program

    def export_to_json(self) -> dict:
        """
        Export trace to JSON-serializable dictionary.

        Returns:
            Dictionary representation of the program
        """
        return self.program.model_dump(mode="json")

    def export_to_markdown(self) -> str:
        """
        Export trace to human-readable Markdown format.

        Returns:
            Markdown-formatted trace report
        """
        p = self.program
        lines = []

        # Header
        lines.append("# Program Trace")
        lines.append("")
        lines.append(f"**Created:** {p.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"**Program:** `{p.id}`")
        lines.append(f"**Climber:** `{p.user_id}`")
        lines.append(f"**Type:** {p.program_type} (personalization {p.personalization_score})")
        if p.target_grade:
            lines.append(f"**Target Grade:** {p.target_grade}")
        lines.append(f"**Active Days:** {', '.join(d.value for d in p.active_days) or 'none'}")
        lines.append("")
        lines.append("---")
        lines.append("")

        # Review outcome
        lines.append("## Review")
        lines.append("")
        if p.requires_coach_review:
            lines.append("⚠️ **COACH REVIEW REQUIRED**")
        else:
            lines.append("✅ **AUTO-APPROVED**")
        lines.append("")
        lines.append(f"**Confidence:** {p.confidence}")
        if p.fallback_used:
            lines.append("")
            lines.append("Narration was unavailable; this is the planner's calendar without narration.")
        lines.append("")

        if p.ai_insights:
            lines.append("### Insights")
            lines.append("")
            for insight in p.ai_insights:
                lines.append(f"- {insight}")
            lines.append("")

        lines.append("---")
        lines.append("")

        # Calendar
        lines.append("## Calendar")
        lines.append("")
        for week in p.weeks:
            lines.append(f"### Week {week.number}: {week.phase.value.title()}")
            lines.append("")
            lines.append(f"*{week.focus}*")
            lines.append("")
            lines.append("| Day | Session | Intensity | Volume | Grade | RPE |")
            lines.append("|-----|---------|-----------|--------|-------|-----|")
            for day in week.days:
                for session in day.sessions:
                    lines.append(f"| {day.label.value.title()} | {self._session_row(session)} |")
            lines.append("")

            modified = [
                (day.label, s) for day in week.days for s in day.sessions if s.modifications
            ]
            for label, session in modified:
                lines.append(
                    f"- {label.value.title()} modifications: {'; '.join(session.modifications)}"
                )
            if modified:
                lines.append("")

        lines.append("---")
        lines.append("")

        # Plan Generation Decisions
        if p.plan_decisions:
            lines.append("## Plan Generation Decisions")
            lines.append("")

            for i, decision in enumerate(p.plan_decisions, 1):
                lines.append(f"### Decision {i}: {decision.decision_point}")
                lines.append("")
                lines.append(f"**Input Factors:** {', '.join(decision.input_factors)}")
                lines.append("")
                lines.append(f"**Reasoning:** {decision.reasoning}")
                lines.append("")
                lines.append(f"**Outcome:** {decision.outcome}")
                lines.append("")

            lines.append("---")
            lines.append("")

        lines.append("*This trace provides full transparency into how the program was built.*")

        return "\n".join(lines)

    @staticmethod
    def _session_row(session: Session) -> str:
        if session.is_rest:
            return "Rest | - | - | - | -"
        return " | ".join(
            [
                session.session_type.value.title(),
                f"{session.target_intensity:.0%}",
                f"{session.volume:g} {session.volume_unit}".strip(),
                session.target_grade or "-",
                session.rpe or "-",
            ]
        )

    def save_to_file(self, output_dir: Path, format: str = "json") -> Path:
        """
        Save trace to file in specified format.

        Args:
            output_dir: Directory to save trace file
            format: Output format ("json" or "markdown")

        Returns:
            Path to saved file

        Raises:
            ValueError: If format is not supported
        """
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp_str = self.program.created_at.strftime("%Y%m%d_%H%M%S")
        user_id = self.program.user_id.replace(" ", "_")

        if format == "json":
            filepath = output_dir / f"program_{user_id}_{timestamp_str}.json"
            with open(filepath, "w") as f:
                json.dump(self.export_to_json(), f, indent=2, default=str)

        elif format == "markdown":
            filepath = output_dir / f"program_{user_id}_{timestamp_str}.md"
            with open(filepath, "w") as f:
                f.write(self.export_to_markdown())

        else:
            raise ValueError(f"Unsupported format: {format}. Use 'json' or 'markdown'")

        return filepath


def save_program_trace(program: TrainingProgram, output_dir: Path, format: str = "json") -> Path:
    return ProgramTraceBuilder(program).save_to_file(output_dir, format)


def load_program_from_file(filepath: Path) -> TrainingProgram:
    """
    Load a program from a JSON trace file.

    Args:
        filepath: Path to trace JSON file

    Returns:
        TrainingProgram object

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If JSON is invalid
    """
    if not filepath.exists():
        raise FileNotFoundError(f"Trace file not found: {filepath}")

    with open(filepath, "r") as f:
        data = json.load(f)

    try:
        program = TrainingProgram(**data)
    except Exception as e:
        raise ValueError(f"Invalid trace file: {e}") from e

    return program
