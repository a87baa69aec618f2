"""
Generation/fallback boundary.

The planner's calendar is always computed first and is authoritative. An
optional text-generation collaborator is then asked for one line of narration
per training day. Its reply is only ever used for ``Session.narration``; no
structural field is read from it.

If the call errors, times out, or the reply fails structural checks, the
boundary returns the planner's weeks untouched and reports the fallback. The
caller then forces coach review and low confidence.
"""

import concurrent.futures
import json
import logging
from typing import Dict, List, Optional, Protocol, Tuple

import requests
from pydantic import BaseModel, ConfigDict

from climbcoach.errors import GenerationError, GenerationParseError, GenerationTimeoutError
from climbcoach.plan_schemas import PROGRAM_WEEKS, Week, Weekday
from climbcoach.schemas import AssessmentResult, DetailedContext

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 45.0

NarrationMap = Dict[Tuple[int, Weekday], str]


class NarrationClient(Protocol):
    """
    Prompt text in, freeform text out. May raise.

    Implementations must bound their own call time. ``ProgramNarrator`` stops
    waiting after its budget, but it cannot cancel the worker thread, and an
    unfinished worker is still joined when the interpreter exits.
    """

    def complete(self, prompt: str) -> str:
        ...


class HttpNarrationClient:
    """Ollama-style ``/api/generate`` client."""

    def __init__(self, url: str, model: str = "llama3", timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.url = url
        self.model = model
        self.timeout = timeout

    def complete(self, prompt: str) -> str:
        try:
            res = requests.post(
                self.url,
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "stream": False,
                    "format": "json",
                    "options": {"temperature": 0.3},
                },
                timeout=self.timeout,
            )
            res.raise_for_status()
        except requests.Timeout as e:
            raise GenerationTimeoutError(f"Narration request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise GenerationError(f"Narration request failed: {e}") from e

        try:
            return res.json()["response"]
        except (ValueError, KeyError, TypeError) as e:
            raise GenerationParseError("Narration service returned no 'response' field") from e


class NarrationResult(BaseModel):
    """Weeks after narration, and whether the fallback path was taken."""

    model_config = ConfigDict(frozen=True)

    weeks: List[Week]
    fallback_used: bool
    reason: Optional[str] = None


# ============================================================================
# Prompt and reply handling
# ============================================================================

def build_prompt(
    weeks: List[Week], assessment: AssessmentResult, context: DetailedContext
) -> str:
    """
    Describe the fixed calendar and ask for narration only.

    The prompt lists every training day with its session type, load and grade
    so the narration matches what was planned.
    """
    lines = [
        f"You are a climbing coach writing for {context.climber_name}.",
        f"Predicted grade: {assessment.predicted_grade}. "
        f"Current 80% grade: {context.current_80_percent_grade}. "
        f"Weakest area: {assessment.weakest_area.display_name}.",
        "The training calendar below is final. Do not change, add or remove sessions.",
        "Write one or two motivating sentences for each listed training day.",
        "",
    ]
    for week in weeks:
        lines.append(f"Week {week.number} ({week.phase.value}): {week.focus}")
        for day in week.days:
            for session in day.active_sessions:
                grade = f" at {session.target_grade}" if session.target_grade else ""
                lines.append(
                    f"  {day.label.value}: {session.session_type.value}{grade}, "
                    f"{session.target_intensity:.0%} intensity, "
                    f"{session.volume:g} {session.volume_unit}"
                )
    lines += [
        "",
        'Reply with JSON only: {"weeks": [{"week": 1, "days": {"monday": "..."}}, ...]} '
        f"with exactly {PROGRAM_WEEKS} weeks numbered 1 to {PROGRAM_WEEKS}, using only the "
        "days listed above.",
    ]
    return "\n".join(lines)


def parse_narration(text: str, weeks: List[Week]) -> NarrationMap:
    """
    Parse and structurally check a narration reply.

    Args:
        text: Raw reply from the generation collaborator
        weeks: The fixed calendar the narration must fit

    Returns:
        Narration text keyed by (week number, weekday)

    Raises:
        GenerationParseError: Unparsable JSON, wrong week count or numbering,
            or narration for a day with no training session
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise GenerationParseError(f"Narration is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("weeks"), list):
        raise GenerationParseError("Narration must be an object with a 'weeks' list")
    entries = data["weeks"]
    if len(entries) != PROGRAM_WEEKS:
        raise GenerationParseError(f"Expected {PROGRAM_WEEKS} weeks, got {len(entries)}")

    training_days = {
        (week.number, day.label) for week in weeks for day in week.days if day.active_sessions
    }
    narration: NarrationMap = {}
    for expected, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict) or entry.get("week") != expected:
            raise GenerationParseError(f"Week entries must be numbered 1-{PROGRAM_WEEKS} in order")
        days = entry.get("days", {})
        if not isinstance(days, dict):
            raise GenerationParseError(f"Week {expected} 'days' must be an object")
        for name, line in days.items():
            try:
                weekday = Weekday(str(name).strip().lower())
            except ValueError as e:
                raise GenerationParseError(f"Unknown day '{name}' in week {expected}") from e
            if (expected, weekday) not in training_days:
                raise GenerationParseError(
                    f"Week {expected} {weekday.value} has no training session to narrate"
                )
            if not isinstance(line, str) or not line.strip():
                raise GenerationParseError(f"Week {expected} {weekday.value} narration is empty")
            narration[(expected, weekday)] = line.strip()
    return narration


def attach_narration(weeks: List[Week], narration: NarrationMap) -> List[Week]:
    """Copy narration onto the training sessions; structure is unchanged."""
    narrated = []
    for week in weeks:
        days = []
        for day in week.days:
            line = narration.get((week.number, day.label))
            if line is None:
                days.append(day)
                continue
            sessions = [
                s if s.is_rest else s.model_copy(update={"narration": line}) for s in day.sessions
            ]
            days.append(day.model_copy(update={"sessions": sessions}))
        narrated.append(week.model_copy(update={"days": days}))
    return narrated


# ============================================================================
# Boundary
# ============================================================================

class ProgramNarrator:
    """
    Runs the generation collaborator under a time budget.

    No generation error leaves this class: every failure becomes a
    ``NarrationResult`` with ``fallback_used=True`` and the planner's weeks.
    """

    def __init__(self, client: NarrationClient, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.client = client
        self.timeout = timeout

    def narrate(
        self, weeks: List[Week], assessment: AssessmentResult, context: DetailedContext
    ) -> NarrationResult:
        try:
            text = self._call(build_prompt(weeks, assessment, context))
            narration = parse_narration(text, weeks)
        except GenerationError as e:
            logger.warning("Narration failed, using planner output directly: %s", e)
            return NarrationResult(weeks=weeks, fallback_used=True, reason=str(e))

        logger.info("Narration attached to %d training days", len(narration))
        return NarrationResult(weeks=attach_narration(weeks, narration), fallback_used=False)

    def _call(self, prompt: str) -> str:
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(self.client.complete, prompt)
            return future.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError as e:
            raise GenerationTimeoutError(f"Narration exceeded {self.timeout}s budget") from e
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Narration client raised {type(e).__name__}: {e}") from e
        finally:
            # A slow call is abandoned, not awaited. Clients bound their own time.
            executor.shutdown(wait=False)
