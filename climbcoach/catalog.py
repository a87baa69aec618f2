"""
Session catalog for the 6-week cycle.

Holds the fixed prescriptions the planner draws from:
- BASELINE: the week 1-4 ceiling for each session type (reached in week 4)
- PROGRESSION: week 1-4 loading, never above baseline
- Deload variants at exactly half the baseline
- Assessment-week test sessions
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from climbcoach.grades import ReferenceGrades
from climbcoach.plan_schemas import Session, SessionType, TrainingPhase

DELOAD_FACTOR = 0.5
OUTDOOR_NOTE_PREFIX = "Outdoor:"


class Prescription(BaseModel):
    """Load for one session type in one week."""

    model_config = ConfigDict(frozen=True)

    session_type: SessionType
    intensity: float = Field(..., ge=0.0, le=1.0)
    volume: float = Field(..., ge=0.0)
    moves: Optional[str] = Field(None, description="Project move count range")


VOLUME_UNITS = {
    SessionType.FINGERBOARD: "sets",
    SessionType.PROJECT: "boulders",
    SessionType.FLASH: "problems",
    SessionType.TECHNICAL: "minutes",
    SessionType.FITNESS: "minutes",
}

REST_PERIODS = {
    SessionType.FINGERBOARD: "3min between hangs",
    SessionType.PROJECT: "Full recovery between attempts",
    SessionType.FLASH: "2min between problems",
    SessionType.TECHNICAL: "As needed",
    SessionType.FITNESS: "2min between sets",
}

RPE_TARGETS = {
    SessionType.FINGERBOARD: "9-10",
    SessionType.PROJECT: "8-10",
    SessionType.FLASH: "6-7",
    SessionType.TECHNICAL: "4-5",
    SessionType.FITNESS: "8",
}

GRADE_KEYS = {
    SessionType.PROJECT: "project",
    SessionType.FLASH: "flash",
    SessionType.TECHNICAL: "technical",
}

BASELINE: Dict[SessionType, Prescription] = {
    SessionType.FINGERBOARD: Prescription(
        session_type=SessionType.FINGERBOARD, intensity=1.0, volume=4
    ),
    SessionType.PROJECT: Prescription(session_type=SessionType.PROJECT, intensity=1.0, volume=4),
    SessionType.FLASH: Prescription(session_type=SessionType.FLASH, intensity=0.85, volume=8),
    SessionType.TECHNICAL: Prescription(
        session_type=SessionType.TECHNICAL, intensity=0.6, volume=60
    ),
    SessionType.FITNESS: Prescription(session_type=SessionType.FITNESS, intensity=0.75, volume=40),
}


def _week(fb, project, moves, flash, technical, fitness) -> Dict[SessionType, Prescription]:
    return {
        SessionType.FINGERBOARD: Prescription(
            session_type=SessionType.FINGERBOARD, intensity=fb[0], volume=fb[1]
        ),
        SessionType.PROJECT: Prescription(
            session_type=SessionType.PROJECT, intensity=1.0, volume=project, moves=moves
        ),
        SessionType.FLASH: Prescription(session_type=SessionType.FLASH, intensity=0.85, volume=flash),
        SessionType.TECHNICAL: Prescription(
            session_type=SessionType.TECHNICAL, intensity=0.6, volume=technical
        ),
        SessionType.FITNESS: Prescription(
            session_type=SessionType.FITNESS, intensity=0.75, volume=fitness
        ),
    }


PROGRESSION: Dict[int, Dict[SessionType, Prescription]] = {
    1: _week(fb=(0.95, 3), project=3, moves="5-6 moves", flash=6, technical=45, fitness=30),
    2: _week(fb=(0.97, 3), project=3, moves="5-6 moves", flash=6, technical=50, fitness=35),
    3: _week(fb=(1.0, 4), project=4, moves="4-5 moves", flash=8, technical=60, fitness=40),
    4: _week(fb=(1.0, 4), project=4, moves="2-4 moves", flash=8, technical=60, fitness=40),
}

WEEK_FOCUS = {
    1: "Base Building",
    2: "Base Building",
    3: "Intensity Building",
    4: "Peak Loading",
    5: "Deload",
    6: "Assessment",
}


def deload_prescription(session_type: SessionType) -> Prescription:
    baseline = BASELINE[session_type]
    return Prescription(
        session_type=session_type,
        intensity=baseline.intensity * DELOAD_FACTOR,
        volume=baseline.volume * DELOAD_FACTOR,
        moves="easy moves, 2 grades below project" if session_type == SessionType.PROJECT else None,
    )


def prescription_for(week_number: int, session_type: SessionType) -> Prescription:
    if week_number in PROGRESSION:
        return PROGRESSION[week_number][session_type]
    if week_number == 5:
        return deload_prescription(session_type)
    raise ValueError(f"No training prescription for week {week_number}")


def _grade_for(session_type: SessionType, grades: ReferenceGrades, deload: bool) -> Optional[str]:
    key = GRADE_KEYS.get(session_type)
    if key is None:
        return None
    if deload and session_type == SessionType.PROJECT:
        key = "flash"
    return grades.label(key)


def _exercises(p: Prescription, grade: Optional[str], deload: bool) -> List[str]:
    percent = round(p.intensity * 100)
    volume = f"{p.volume:g}"
    if p.session_type == SessionType.FINGERBOARD:
        hang = "Light hangs" if deload else "Max hangs"
        return [
            "Warm-up: progressive hangs on large edges, 5min",
            f"{hang} on 20mm edge: {volume} sets × 10s @ {percent}% max",
        ]
    if p.session_type == SessionType.PROJECT:
        return [
            "Warm-up: 10 problems at technical grade, 15min",
            f"Limit boulders at {grade}: {volume} problems × 20min, {p.moves}",
        ]
    if p.session_type == SessionType.FLASH:
        return [
            "Warm-up: 8 problems at technical grade, 10min",
            f"Flash attempts at {grade}: {volume} problems, 2 attempts each",
            "Video review of failed attempts",
        ]
    if p.session_type == SessionType.TECHNICAL:
        return [
            f"Technical volume at {grade}: {volume}min",
            "Drills: silent feet, heel hooks, mantles, slab technique",
        ]
    if deload:
        return [
            f"Light conditioning: {volume}min @ {percent}%",
            "Pull-ups: 2 sets × 6 reps",
            "Core activation: 2 sets × 30s planks",
        ]
    return [
        f"General fitness: {volume}min @ {percent}%",
        "Pull-ups: 3 sets × 6-12 reps",
        "Weighted pull-ups: 3 sets × 5 reps",
        "Push-ups: 3 sets × 8-12 reps",
        "Core: toe-to-bar 3 sets × 5-8 reps",
        "Weighted goblet squats: 3 sets × 8 reps",
    ]


def _notes(p: Prescription, week_number: int, deload: bool) -> List[str]:
    if deload:
        return ["Deload week - focus on recovery and movement quality"]
    notes = []
    if p.session_type == SessionType.FINGERBOARD:
        notes.append("Increase load by at most 5% per week")
    if p.session_type == SessionType.PROJECT:
        notes.append("Quality over quantity - stop when movement quality drops")
        notes.append(f"{OUTDOOR_NOTE_PREFIX} project a local boulder at the same grade if conditions allow")
    if p.session_type == SessionType.FLASH:
        notes.append("Aim for an 80%+ flash success rate")
        notes.append(f"{OUTDOOR_NOTE_PREFIX} onsight unfamiliar problems at a local crag")
    if p.session_type == SessionType.TECHNICAL:
        notes.append("Find multiple solutions for each problem")
    return notes


def build_session(week_number: int, session_type: SessionType, grades: ReferenceGrades) -> Session:
    """Render the catalog prescription for a week into a Session."""
    p = prescription_for(week_number, session_type)
    deload = week_number == 5
    grade = _grade_for(session_type, grades, deload)
    return Session(
        session_type=session_type,
        target_intensity=p.intensity,
        volume=p.volume,
        volume_unit=VOLUME_UNITS[session_type],
        rest_period=REST_PERIODS[session_type],
        target_grade=grade,
        rpe="4-5" if deload else RPE_TARGETS[session_type],
        exercises=_exercises(p, grade, deload),
        notes=_notes(p, week_number, deload),
    )


def build_test_session(session_type: SessionType, grades: ReferenceGrades) -> Session:
    """Assessment-week test sessions."""
    if session_type == SessionType.FINGERBOARD:
        return Session(
            session_type=session_type,
            target_intensity=1.0,
            volume=3,
            volume_unit="sets",
            rest_period="3min between attempts",
            rpe="10",
            exercises=[
                "Warm-up: progressive hangs on large edges, 10min",
                "Max hang test: work up to a 10s max on 20mm edge, record added weight",
            ],
            notes=["Test fresh - no hard climbing in the 48h before"],
        )
    if session_type == SessionType.PROJECT:
        return Session(
            session_type=session_type,
            target_intensity=1.0,
            volume=3,
            volume_unit="boulders",
            rest_period="Full recovery between attempts",
            target_grade=grades.label("project"),
            rpe="9-10",
            exercises=[f"Project attempts at {grades.label('project')}: 3 problems, record sends"],
            notes=[f"{OUTDOOR_NOTE_PREFIX} retest an outdoor project if available"],
        )
    if session_type == SessionType.FLASH:
        return Session(
            session_type=session_type,
            target_intensity=0.85,
            volume=6,
            volume_unit="problems",
            rest_period="2min between problems",
            target_grade=grades.label("flash"),
            rpe="7",
            exercises=[f"Flash test at {grades.label('flash')}: 6 new problems, record flashes"],
        )
    if session_type == SessionType.FITNESS:
        return Session(
            session_type=session_type,
            target_intensity=0.6,
            volume=30,
            volume_unit="minutes",
            rest_period="3min between tests",
            rpe="8",
            exercises=[
                "Pull-up max test",
                "Push-up max test",
                "Toe-to-bar max test",
                "Leg spread distance measurement",
            ],
            notes=["Record results for the next assessment"],
        )
    raise ValueError(f"No assessment test for {session_type.value}")


def phase_note(phase: TrainingPhase) -> str:
    if phase == TrainingPhase.DELOAD:
        return "Deload: intensity and volume at 50% of the loading baseline."
    if phase == TrainingPhase.ASSESSMENT:
        return "Assessment: one test day, everything else rest."
    return "Progressive loading: build fitness systematically."
