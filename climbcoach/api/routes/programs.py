"""
Training Programs API Routes

Endpoints for training program generation.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from climbcoach.api.dependencies import get_clock, get_narrator, get_storage
from climbcoach.api.models.requests import ProgramRequest
from climbcoach.api.models.responses import ProgramResponse
from climbcoach.clock import Clock
from climbcoach.coach import AssessmentService, ProgramService
from climbcoach.database import Storage
from climbcoach.errors import ValidationError
from climbcoach.narration import ProgramNarrator
from climbcoach.schemas import AssessmentResult, DetailedContext

router = APIRouter()


def _resolve_assessment(
    request: ProgramRequest, storage: Storage, clock: Clock
) -> AssessmentResult:
    if request.assessment is not None:
        return request.assessment
    if request.measurements is not None:
        return AssessmentService(storage=storage, clock=clock).score(
            request.measurements, user_id=request.user_id
        )
    latest = storage.latest_assessment(request.user_id)
    if latest is None:
        raise ValidationError(
            f"No assessment given and none stored for {request.user_id}", field="measurements"
        )
    return latest


# Plain def: narration may block up to its timeout, so this runs in the threadpool.
@router.post("/programs", response_model=ProgramResponse)
def generate_program(
    request: ProgramRequest,
    storage: Storage = Depends(get_storage),
    clock: Clock = Depends(get_clock),
    narrator: Optional[ProgramNarrator] = Depends(get_narrator),
) -> ProgramResponse:
    """
    Generate a 6-week training program.

    Complete workflow:
    1. Resolve the assessment (given, scored from measurements, or latest stored)
    2. Plan, validate and adapt the calendar
    3. Run the coach review gate
    4. Attach narration if available, falling back to the plain calendar

    Args:
        request: ProgramRequest with preferences, context and assessment source

    Returns:
        ProgramResponse with the program and review outcome
    """
    assessment = _resolve_assessment(request, storage, clock)
    context = DetailedContext.parse(
        {
            "current_80_percent_grade": assessment.measurements.eighty_percent_grade,
            "user_id": request.user_id,
            **request.context,
        }
    )

    service = ProgramService(storage=storage, clock=clock, narrator=narrator)
    program = service.generate(assessment, request.preferences, request.program_type, context)

    warnings = []
    if program.fallback_used:
        warnings.append("Narration unavailable - plan returned without narration")
    if program.requires_coach_review:
        warnings.append("Program is held for coach review")

    return ProgramResponse(
        program_id=program.id,
        requires_coach_review=program.requires_coach_review,
        confidence=program.confidence,
        warnings=warnings,
        program=program,
    )
