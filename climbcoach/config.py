"""
Runtime settings and logging setup.

Settings are read from the environment once, at start-up, and passed to the
services that need them.
"""

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from climbcoach.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class CoachSettings(BaseModel):
    """Environment-driven settings for the CLI and API."""

    database_url: str = Field("sqlite:///climbcoach.db", description="SQLAlchemy URL")
    generation_url: Optional[str] = Field(
        None, description="Narration endpoint; narration is disabled when unset"
    )
    generation_model: str = Field("llama3", description="Model name for the narration endpoint")
    generation_timeout: float = Field(45.0, description="Seconds before narration is abandoned")
    log_level: str = Field("INFO")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CoachSettings":
        """
        Build settings from ``CLIMBCOACH_*`` environment variables.

        Raises:
            ConfigurationError: If the timeout is not a positive number or the
                log level is unknown
        """
        env = os.environ if environ is None else environ

        raw_timeout = env.get("CLIMBCOACH_GENERATION_TIMEOUT", "45")
        try:
            timeout = float(raw_timeout)
        except ValueError as e:
            raise ConfigurationError(
                f"CLIMBCOACH_GENERATION_TIMEOUT must be a number, got {raw_timeout!r}",
                field="CLIMBCOACH_GENERATION_TIMEOUT",
            ) from e
        if timeout <= 0:
            raise ConfigurationError(
                "CLIMBCOACH_GENERATION_TIMEOUT must be positive",
                field="CLIMBCOACH_GENERATION_TIMEOUT",
            )

        log_level = env.get("CLIMBCOACH_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(
                f"Unknown log level {log_level!r}", field="CLIMBCOACH_LOG_LEVEL"
            )

        return cls(
            database_url=env.get("CLIMBCOACH_DATABASE_URL", "sqlite:///climbcoach.db"),
            generation_url=env.get("CLIMBCOACH_GENERATION_URL") or None,
            generation_model=env.get("CLIMBCOACH_GENERATION_MODEL", "llama3"),
            generation_timeout=timeout,
            log_level=log_level,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
