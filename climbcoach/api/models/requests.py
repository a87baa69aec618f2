"""
API Request Models

Pydantic models for API request validation.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from climbcoach.database import ProgramStatus
from climbcoach.retention import SessionLog
from climbcoach.schemas import AssessmentResult, ProgramType


class AssessmentRequest(BaseModel):
    """Request model for assessment scoring."""

    measurements: Dict[str, Any] = Field(..., description="Raw measurement fields")
    user_id: str = Field("anonymous", description="Climber identifier")


class ProgramRequest(BaseModel):
    """
    Request model for program generation.

    The assessment is taken from ``assessment`` if given, otherwise scored from
    ``measurements``, otherwise the climber's most recent stored assessment.
    """

    user_id: str = Field("anonymous", description="Climber identifier")
    program_type: ProgramType = Field(ProgramType.QUICK, description="quick, enhanced or optimized")
    preferences: Dict[str, Any] = Field(..., description="User preferences")
    context: Dict[str, Any] = Field(default_factory=dict, description="Detailed climbing context")
    measurements: Optional[Dict[str, Any]] = Field(None, description="Raw measurements to score")
    assessment: Optional[AssessmentResult] = Field(None, description="Previously scored assessment")


class ProgressRequest(BaseModel):
    """Request model for logging a session."""

    week_number: int = Field(..., ge=1, le=6, description="Program week (1-6)")
    session: SessionLog = Field(..., description="The logged session")
    goal: str = Field("strength", description="Primary goal")
    equipment: List[str] = Field(default_factory=list, description="Equipment access")
    program_id: Optional[str] = Field(None, description="Stored program to update")
    completed_sessions: Optional[int] = Field(None, ge=0, description="Sessions completed so far")
    status: Optional[ProgramStatus] = Field(None, description="Override program status")
