"""
Command-line interface for the climbing coach.

Provides commands for:
- Scoring an assessment from a measurements file
- Generating a 6-week program from a profile file
- Recording progress for a training session
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from climbcoach.coach import AssessmentService, ProgramService, build_narrator
from climbcoach.config import CoachSettings, configure_logging
from climbcoach.database import ProgramStatus, SqlStorage
from climbcoach.errors import CoachError, ConfigurationError, ValidationError
from climbcoach.plan_schemas import TrainingProgram
from climbcoach.retention import RetentionSnapshot, SessionLog, analyze_progress
from climbcoach.schemas import AssessmentResult, DetailedContext
from climbcoach.scorer import interpret_score
from climbcoach.trace import save_program_trace

# Initialize Typer app and Rich console
app = typer.Typer(help="Climbing Coach - assessment scoring and periodized training programs")
console = Console()


# ===== HELPERS =====


def _load_json(path: Path, label: str) -> Dict[str, Any]:
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]✗ Failed to load {label}: {e}[/red]")
        raise typer.Exit(1)


def _settings() -> CoachSettings:
    try:
        settings = CoachSettings.from_env()
    except ConfigurationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    configure_logging(settings.log_level)
    return settings


def _storage(settings: CoachSettings, save: bool) -> Optional[SqlStorage]:
    if not save:
        return None
    return SqlStorage(settings.database_url)


def _fail(error: CoachError) -> None:
    field = getattr(error, "field", None)
    prefix = f"{field}: " if field else ""
    console.print(f"[red]✗ {prefix}{error}[/red]")
    raise typer.Exit(1)


# ===== DISPLAY HELPER FUNCTIONS =====


def _display_assessment(result: AssessmentResult):
    """
    Display metric scores, predicted grade and recommendations.

    Args:
        result: AssessmentResult from the scorer
    """
    color = {"high": "green", "medium": "yellow", "low": "red"}[result.confidence.value]
    console.print(
        f"\n[bold]Predicted Grade: [cyan]{result.predicted_grade}[/cyan] "
        f"([{color}]{result.confidence.value} confidence[/{color}])[/bold]"
    )
    console.print(f"Composite Score: {result.composite_score:.3f}\n")

    table = Table(title="Assessment Breakdown", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Ratio", justify="right")
    table.add_column("Score", justify="right", style="yellow")
    table.add_column("Weight", justify="right")
    table.add_column("Level")

    for metric in result.normalized_metrics:
        table.add_row(
            metric.name.display_name,
            f"{metric.raw_ratio:.3f}",
            f"{metric.score:.0f}",
            f"{metric.weight:.0%}",
            interpret_score(metric.score),
        )
    console.print(table)

    console.print(f"\n[bold]Strongest:[/bold] {result.strongest_area.display_name}")
    console.print(f"[bold]Weakest:[/bold] {result.weakest_area.display_name}")
    if result.recommendations:
        console.print("\n[bold]Recommendations:[/bold]")
        for rec in result.recommendations:
            console.print(f"  {rec}")


def _display_program(program: TrainingProgram):
    """
    Display the weekly calendar and review outcome.

    Args:
        program: Generated TrainingProgram
    """
    console.print(f"\n✓ Generated [green]6-week {program.program_type} program[/green] `{program.id}`")
    review = "[yellow]required[/yellow]" if program.requires_coach_review else "[green]not required[/green]"
    console.print(f"  Coach review: {review}")
    console.print(f"  Confidence: {program.confidence}")
    console.print(f"  Training sessions: {program.total_sessions}")

    table = Table(title="Program Calendar", box=box.ROUNDED, show_lines=True)
    table.add_column("Week", style="cyan")
    for day in program.weeks[0].days:
        table.add_column(day.label.value[:3].title(), justify="center")

    for week in program.weeks:
        cells = []
        for day in week.days:
            session = day.sessions[0]
            if session.is_rest:
                cells.append("[dim]rest[/dim]")
            else:
                cells.append(f"{session.session_type.value}\n{session.target_intensity:.0%}")
        table.add_row(f"{week.number} {week.phase.value}", *cells)
    console.print(table)

    if program.ai_insights:
        console.print("\n[bold]Insights:[/bold]")
        for insight in program.ai_insights:
            console.print(f"  • {insight}")


def _display_snapshot(snapshot: RetentionSnapshot):
    metrics = snapshot.progress_metrics
    console.print(f"\n[bold]Week {snapshot.week_number} progress[/bold]")
    console.print(f"  Consistency: {metrics.consistency_score:.0f} ({metrics.engagement_level} engagement)")
    console.print(f"  Trend: {metrics.improvement_trend}")
    console.print(f"  Next milestone: {metrics.next_milestone}")
    if snapshot.celebration_message:
        console.print(f"\n[green]{snapshot.celebration_message}[/green]")
    if snapshot.churn_risk:
        console.print("\n[yellow]Consistency is at risk.[/yellow]")
    for rec in snapshot.recommendations:
        console.print(f"  • [{rec.priority}] {rec.message}")
    for adjustment in snapshot.program_adjustments:
        console.print(f"  → {adjustment.description} ({adjustment.rationale})")


# ===== COMMANDS =====


@app.command()
def assess(
    measurements: Path = typer.Option(
        ...,
        "--measurements",
        "-m",
        help="Path to raw measurements JSON file",
        exists=True,
    ),
    user_id: str = typer.Option("anonymous", "--user-id", "-u", help="Climber identifier"),
    save: bool = typer.Option(True, "--save/--no-save", help="Save the result to the database"),
):
    """
    Score a physical assessment into a predicted grade.
    """
    console.print("\n[bold cyan]Climbing Assessment[/bold cyan]\n")
    settings = _settings()
    data = _load_json(measurements, "measurements")

    service = AssessmentService(storage=_storage(settings, save))
    try:
        result = service.score(data, user_id=user_id)
    except ValidationError as e:
        _fail(e)

    _display_assessment(result)
    console.print()


@app.command()
def plan(
    profile: Path = typer.Option(
        ...,
        "--profile",
        "-p",
        help="Path to profile JSON with measurements, preferences and optional context",
        exists=True,
    ),
    program_type: str = typer.Option("quick", "--type", "-t", help="quick, enhanced or optimized"),
    save: bool = typer.Option(True, "--save/--no-save", help="Save results to the database"),
    save_trace: bool = typer.Option(
        True,
        "--save-trace/--no-trace",
        help="Save the program trace to file",
    ),
    trace_dir: Path = typer.Option(Path("program_traces"), "--trace-dir", help="Trace directory"),
):
    """
    Generate a 6-week training program.

    Workflow:
    1. Score the assessment
    2. Plan, validate and adapt the calendar
    3. Run the coach review gate
    4. Display summary
    5. Save program trace
    """
    console.print("\n[bold cyan]Training Program Generator[/bold cyan]\n")
    settings = _settings()
    data = _load_json(profile, "profile")
    storage = _storage(settings, save)

    user_id = data.get("user_id", "anonymous")
    try:
        console.print("[bold]Step 1: Assessment[/bold]")
        assessment = AssessmentService(storage=storage).score(
            data.get("measurements", {}), user_id=user_id
        )
        console.print(f"✓ Predicted grade: [green]{assessment.predicted_grade}[/green]\n")

        context = DetailedContext.parse(
            {
                "current_80_percent_grade": assessment.measurements.eighty_percent_grade,
                "user_id": user_id,
                **data.get("context", {}),
            }
        )
        console.print("[bold]Step 2: Program Generation[/bold]")
        service = ProgramService(storage=storage, narrator=build_narrator(settings))
        program = service.generate(
            assessment, data.get("preferences", {}), program_type, context
        )
    except (ValidationError, ConfigurationError) as e:
        _fail(e)

    _display_program(program)

    if save_trace:
        trace_path = save_program_trace(program, trace_dir, format="markdown")
        console.print(f"\n✓ Trace saved: [cyan]{trace_path}[/cyan]")

    console.print()


@app.command()
def progress(
    week: int = typer.Option(..., "--week", "-w", min=1, max=6, help="Program week (1-6)"),
    completed: bool = typer.Option(True, "--completed/--missed", help="Was the session completed"),
    satisfaction: float = typer.Option(5.0, "--satisfaction", "-s", min=0, max=10),
    goal: str = typer.Option("strength", "--goal", "-g", help="Primary goal"),
    equipment: Optional[List[str]] = typer.Option(None, "--equipment", "-e", help="Equipment access"),
    program_id: Optional[str] = typer.Option(None, "--program-id", help="Stored program to update"),
    completed_sessions: Optional[int] = typer.Option(
        None, "--completed-sessions", help="Total sessions completed so far"
    ),
    status: Optional[ProgramStatus] = typer.Option(None, "--status", help="Override program status"),
):
    """
    Record a training session and show the retention snapshot.
    """
    settings = _settings()
    snapshot = analyze_progress(
        week, SessionLog(completed=completed, satisfaction=satisfaction), goal, equipment or []
    )
    _display_snapshot(snapshot)

    if program_id is not None and completed_sessions is not None:
        service = ProgramService(storage=SqlStorage(settings.database_url))
        try:
            counters = service.record_progress(program_id, completed_sessions, status)
        except CoachError as e:
            _fail(e)
        console.print(
            f"\n✓ {program_id}: {counters.completed_sessions}/{counters.total_sessions} sessions "
            f"({counters.progress_percentage}%), {counters.status.value}"
        )
    console.print()


if __name__ == "__main__":
    app()
