"""
Assessment API Routes

Endpoints for scoring physical assessments.
"""

from fastapi import APIRouter, Depends

from climbcoach.api.dependencies import get_clock, get_storage
from climbcoach.api.models.requests import AssessmentRequest
from climbcoach.api.models.responses import AssessmentResponse
from climbcoach.clock import Clock
from climbcoach.coach import AssessmentService
from climbcoach.database import Storage

router = APIRouter()


@router.post("/assessments", response_model=AssessmentResponse)
async def score_assessment(
    request: AssessmentRequest,
    storage: Storage = Depends(get_storage),
    clock: Clock = Depends(get_clock),
) -> AssessmentResponse:
    """
    Score raw measurements into a predicted grade.

    Invalid measurements are rejected with 422 naming the field; nothing is
    saved in that case.

    Args:
        request: AssessmentRequest with raw measurements

    Returns:
        AssessmentResponse with the predicted grade and full result
    """
    service = AssessmentService(storage=storage, clock=clock)
    result = service.score(request.measurements, user_id=request.user_id)
    return AssessmentResponse(
        predicted_grade=result.predicted_grade,
        confidence=result.confidence.value,
        assessment=result,
    )
