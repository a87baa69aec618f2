"""
Domain exceptions for the climbing coach.

Validation and configuration errors are raised to the caller and name the
offending field. Generation errors are internal to the narration boundary and
never reach callers of ``generate_program``.
"""

from typing import Optional


class CoachError(Exception):
    """Base class for all climbcoach errors."""


class ValidationError(CoachError, ValueError):
    """Malformed or out-of-range assessment input."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConfigurationError(CoachError, ValueError):
    """User preferences or settings cannot satisfy minimum constraints."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class GenerationError(CoachError):
    """The narration collaborator failed."""


class GenerationTimeoutError(GenerationError):
    """The narration collaborator did not answer within its budget."""


class GenerationParseError(GenerationError):
    """The narration collaborator answered with unusable output."""


class PersistenceError(CoachError):
    """The storage collaborator could not save or load a record."""
