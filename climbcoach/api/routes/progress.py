"""
Progress API Routes

Endpoints for logging sessions and tracking program progress.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from climbcoach.api.dependencies import get_clock, get_storage
from climbcoach.api.models.requests import ProgressRequest
from climbcoach.api.models.responses import ProgressResponse
from climbcoach.clock import Clock
from climbcoach.coach import ProgramService
from climbcoach.database import Storage
from climbcoach.errors import PersistenceError
from climbcoach.retention import analyze_progress

router = APIRouter()


@router.post("/progress", response_model=ProgressResponse)
async def log_progress(
    request: ProgressRequest,
    storage: Storage = Depends(get_storage),
    clock: Clock = Depends(get_clock),
) -> ProgressResponse:
    """
    Log one session, returning the retention snapshot.

    When ``program_id`` and ``completed_sessions`` are given, the stored
    program's progress counters are updated as well.

    Raises:
        HTTPException: 404 if the program is not stored
    """
    snapshot = analyze_progress(
        request.week_number, request.session, request.goal, request.equipment, clock=clock
    )

    progress = None
    if request.program_id is not None and request.completed_sessions is not None:
        service = ProgramService(storage=storage, clock=clock)
        try:
            progress = service.record_progress(
                request.program_id, request.completed_sessions, request.status
            )
        except PersistenceError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ProgressResponse(snapshot=snapshot, progress=progress)
