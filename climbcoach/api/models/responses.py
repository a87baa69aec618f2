"""
API Response Models

Pydantic models for API responses.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from climbcoach.database import ProgramProgress
from climbcoach.plan_schemas import TrainingProgram
from climbcoach.retention import RetentionSnapshot
from climbcoach.schemas import AssessmentResult


class AssessmentResponse(BaseModel):
    """Response for POST /api/assessments."""

    predicted_grade: str = Field(..., description="Predicted bouldering grade")
    confidence: str = Field(..., description="high, medium or low")
    assessment: AssessmentResult = Field(..., description="Full assessment result")


class ProgramResponse(BaseModel):
    """Response for POST /api/programs."""

    program_id: str = Field(..., description="Program identifier")
    requires_coach_review: bool = Field(..., description="Held for coach review")
    confidence: str = Field(..., description="high, medium or low")
    warnings: List[str] = Field(default_factory=list, description="Warning messages")
    program: TrainingProgram = Field(..., description="Full training program")


class ProgressResponse(BaseModel):
    """Response for POST /api/progress."""

    snapshot: RetentionSnapshot = Field(..., description="Retention snapshot for the session")
    progress: Optional[ProgramProgress] = Field(None, description="Updated program counters")


class ErrorResponse(BaseModel):
    """Body returned for rejected input."""

    error: str
    field: Optional[str] = None
    message: str
