"""
Injury and equipment adaptations.

Post-processes a validated calendar. Only session content changes (exercises,
notes, fingerboard intensity); the placement of sessions never does, so the
spacing rules still hold after adaptation.

Every rule stamps a marker into ``Session.modifications`` and skips sessions
that already carry it. Applying the adapter twice therefore gives the same
result as applying it once.
"""

from typing import Iterable, List, Set

from climbcoach.catalog import OUTDOOR_NOTE_PREFIX
from climbcoach.plan_schemas import Session, SessionType, TrainingPhase, Week
from climbcoach.schemas import InjuryRegion, UserPreferences

ELBOW_INTENSITY_FACTOR = 0.8

FINGER_MARKER = "finger injury: open-hand, larger-hold variants"
ELBOW_MARKER = "elbow injury: fingerboard intensity -20%, extended warm-up, antagonist work"
ELBOW_DELOAD_MARKER = "elbow injury: extended warm-up, antagonist work"
SHOULDER_MARKER = "shoulder injury: no overhead fingerboard positions, modified pull-up grips"
BACK_MARKER = "back injury: weighted exercises replaced with core stability"
NO_FINGERBOARD_MARKER = "no fingerboard: gym-hold max-hang equivalent"
NO_OUTDOOR_MARKER = "no outdoor access: outdoor notes omitted"

CORE_STABILITY = "Core stability: dead bugs, bird dogs, side planks 3 × 30s"
ELBOW_WARM_UP = "Extended warm-up: 10min forearm and elbow mobility"
ELBOW_ANTAGONIST = "Antagonist work: reverse wrist curls and push-ups, 3 sets × 12"


class ProgramAdapter:
    """
    Rewrites session content for a climber's injuries and equipment.

    Rules:
    - finger: hangs on open-hand grip and larger edges, no crimping on limit boulders
    - elbow: fingerboard intensity × 0.8 (deload week excluded), extended warm-up, antagonists
    - shoulder: hangs below shoulder height, neutral-grip pull-ups
    - back: weighted exercises removed, core stability added
    - no fingerboard: hangs moved to gym holds
    - no outdoor access: ``Outdoor:`` notes removed
    """

    def __init__(self, injuries: Iterable[InjuryRegion], equipment_access: Iterable[str]):
        self.injuries: Set[InjuryRegion] = set(injuries)
        self.equipment = {e.lower() for e in equipment_access}
        self.applied_rules: List[str] = []

    @classmethod
    def from_preferences(cls, preferences: UserPreferences) -> "ProgramAdapter":
        return cls(preferences.injury_regions, preferences.equipment_access)

    def adapt_weeks(self, weeks: List[Week]) -> List[Week]:
        """
        Apply every rule to every session.

        Args:
            weeks: Validated weeks from the planner (or a previous adaptation)

        Returns:
            New weeks with adapted sessions; input weeks are not modified
        """
        adapted = []
        for week in weeks:
            days = [
                day.model_copy(
                    update={"sessions": [self.adapt_session(s, week.phase) for s in day.sessions]}
                )
                for day in week.days
            ]
            adapted.append(week.model_copy(update={"days": days}))
        return adapted

    def adapt_session(self, session: Session, phase: TrainingPhase) -> Session:
        if session.is_rest:
            return session

        if InjuryRegion.FINGER in self.injuries:
            session = self._finger(session)
        if InjuryRegion.ELBOW in self.injuries:
            session = self._elbow(session, phase)
        if InjuryRegion.SHOULDER in self.injuries:
            session = self._shoulder(session)
        if InjuryRegion.BACK in self.injuries:
            session = self._back(session)
        if "fingerboard" not in self.equipment:
            session = self._no_fingerboard(session)
        if "outdoor" not in self.equipment:
            session = self._no_outdoor(session)
        return session

    def _mark(self, session: Session, marker: str, **changes) -> Session:
        if marker not in self.applied_rules:
            self.applied_rules.append(marker)
        changes["modifications"] = session.modifications + [marker]
        return session.model_copy(update=changes)

    # ========================================================================
    # Injury rules
    # ========================================================================

    def _finger(self, session: Session) -> Session:
        if FINGER_MARKER in session.modifications:
            return session
        if session.session_type == SessionType.FINGERBOARD:
            exercises = [
                line.replace("Max hangs", "Open-hand hangs")
                .replace("Light hangs", "Open-hand light hangs")
                .replace("Max hang test", "Open-hand hang test")
                .replace("20mm edge", "30mm edge")
                for line in session.exercises
            ]
            return self._mark(session, FINGER_MARKER, exercises=exercises)
        if session.session_type in (SessionType.PROJECT, SessionType.FLASH):
            notes = session.notes + ["Choose problems on larger holds; no full-crimp positions"]
            return self._mark(session, FINGER_MARKER, notes=notes)
        return session

    def _elbow(self, session: Session, phase: TrainingPhase) -> Session:
        if session.session_type != SessionType.FINGERBOARD:
            return session
        if ELBOW_MARKER in session.modifications or ELBOW_DELOAD_MARKER in session.modifications:
            return session
        exercises = [ELBOW_WARM_UP] + session.exercises + [ELBOW_ANTAGONIST]
        # Deload load stays at exactly half the baseline.
        if phase == TrainingPhase.DELOAD:
            return self._mark(session, ELBOW_DELOAD_MARKER, exercises=exercises)
        return self._mark(
            session,
            ELBOW_MARKER,
            exercises=exercises,
            target_intensity=round(session.target_intensity * ELBOW_INTENSITY_FACTOR, 4),
        )

    def _shoulder(self, session: Session) -> Session:
        if SHOULDER_MARKER in session.modifications:
            return session
        if session.session_type == SessionType.FINGERBOARD:
            exercises = session.exercises + [
                "Hangs with arms below shoulder height (feet-assisted or pulley setup), "
                "no overhead positions"
            ]
            return self._mark(session, SHOULDER_MARKER, exercises=exercises)
        if session.session_type == SessionType.FITNESS:
            exercises = [
                f"{line} (neutral grip, shoulder-width)" if "pull-ups" in line.lower() else line
                for line in session.exercises
            ]
            return self._mark(session, SHOULDER_MARKER, exercises=exercises)
        return session

    def _back(self, session: Session) -> Session:
        if BACK_MARKER in session.modifications:
            return session
        kept = [line for line in session.exercises if "weighted" not in line.lower()]
        if len(kept) == len(session.exercises):
            return session
        return self._mark(session, BACK_MARKER, exercises=kept + [CORE_STABILITY])

    # ========================================================================
    # Equipment rules
    # ========================================================================

    def _no_fingerboard(self, session: Session) -> Session:
        if session.session_type != SessionType.FINGERBOARD:
            return session
        if NO_FINGERBOARD_MARKER in session.modifications:
            return session
        exercises = [
            f"{line} (use a gym hold of the same size)" if "hang" in line.lower() else line
            for line in session.exercises
        ]
        notes = session.notes + ["No fingerboard: hang from matching edges on the gym wall"]
        return self._mark(session, NO_FINGERBOARD_MARKER, exercises=exercises, notes=notes)

    def _no_outdoor(self, session: Session) -> Session:
        if NO_OUTDOOR_MARKER in session.modifications:
            return session
        notes = [n for n in session.notes if not n.startswith(OUTDOOR_NOTE_PREFIX)]
        if len(notes) == len(session.notes):
            return session
        return self._mark(session, NO_OUTDOOR_MARKER, notes=notes)


def adapt_weeks(
    weeks: List[Week], injuries: Iterable[InjuryRegion], equipment_access: Iterable[str]
) -> List[Week]:
    return ProgramAdapter(injuries, equipment_access).adapt_weeks(weeks)
