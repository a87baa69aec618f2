"""
Dependency providers for the API routes.

Tests replace these through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Optional

from climbcoach.clock import Clock, SystemClock
from climbcoach.coach import build_narrator
from climbcoach.config import CoachSettings
from climbcoach.database import SqlStorage, Storage
from climbcoach.narration import ProgramNarrator


@lru_cache
def get_settings() -> CoachSettings:
    return CoachSettings.from_env()


@lru_cache
def _sql_storage(database_url: str) -> SqlStorage:
    return SqlStorage(database_url)


def get_storage() -> Storage:
    return _sql_storage(get_settings().database_url)


def get_clock() -> Clock:
    return SystemClock()


def get_narrator() -> Optional[ProgramNarrator]:
    return build_narrator(get_settings())
