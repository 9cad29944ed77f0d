import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, require_scheduler, get_failure_recorder
from app.core.config import settings
from app.db.models.users import Users
from app.schemas.schedules import (
    GenerateScheduleRequest,
    GenerateScheduleResponse,
    SaveScheduleRequest,
    SaveScheduleResponse,
    conflict_to_payload,
    payload_to_schedule,
    schedule_to_payload,
)
from app.services.ai.failure_recorder import FailureRecorder
from app.services.ai.llm_provider import is_configured
from app.services.ai.schedule_generator import generate_schedule
from app.services.errors import ConflictError, GenerationError, NotConfiguredError, ParseError, PersistenceError
from app.services.scheduling.data_loader import count_unconfirmed_preferences
from app.services.scheduling.persister import SaveMode, save_schedule
from app.services.scheduling.types import PeriodType, SchedulePeriod

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/generate-schedule", response_model=GenerateScheduleResponse)
def generate_schedule_route(
    payload: GenerateScheduleRequest,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_scheduler),
    recorder: FailureRecorder = Depends(get_failure_recorder),
):
    """Generate a schedule proposal - scheduler/manager/admin only"""
    if payload.end_date < payload.start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")

    period = SchedulePeriod(payload.start_date, payload.end_date, PeriodType(payload.type))

    try:
        schedule = generate_schedule(db, period, payload.bureau, payload.preserve_existing, recorder)
    except NotConfiguredError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except (GenerationError, ParseError) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to generate schedule: {e}")

    schedule_payload = schedule_to_payload(schedule)
    unconfirmed = count_unconfirmed_preferences(db, payload.bureau)

    if not payload.save_to_database:
        return GenerateScheduleResponse(
            success=True,
            schedule=schedule_payload,
            unconfirmed_preferences_count=unconfirmed,
        )

    try:
        shift_ids = save_schedule(db, schedule, current_user.id, SaveMode.CHECKED)
    except ConflictError as e:
        return JSONResponse(
            status_code=status.HTTP_207_MULTI_STATUS,
            content={
                "warning": "Schedule generated but not saved due to conflicts",
                "schedule": schedule_payload.model_dump(mode="json"),
                "save_error": str(e),
                "conflicts": [conflict_to_payload(c).model_dump(mode="json") for c in e.conflicts],
            },
        )
    except PersistenceError as e:
        return JSONResponse(
            status_code=status.HTTP_207_MULTI_STATUS,
            content={
                "warning": "Schedule generated but failed to save to database",
                "schedule": schedule_payload.model_dump(mode="json"),
                "save_error": e.detail or str(e),
            },
        )

    return GenerateScheduleResponse(
        success=True,
        schedule=schedule_payload,
        saved=True,
        shift_ids=shift_ids,
        unconfirmed_preferences_count=unconfirmed,
    )


@router.post("/save-schedule", response_model=SaveScheduleResponse)
def save_schedule_route(
    payload: SaveScheduleRequest,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_scheduler),
):
    """Save a (possibly edited) generated schedule - scheduler/manager/admin only"""
    try:
        schedule = payload_to_schedule(payload.schedule)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    mode = SaveMode.UNCHECKED if payload.skip_conflict_check else SaveMode.CHECKED
    try:
        shift_ids = save_schedule(db, schedule, current_user.id, mode)
    except ConflictError as e:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "error": str(e),
                "conflicts": [conflict_to_payload(c).model_dump(mode="json") for c in e.conflicts],
                "conflict_count": e.conflict_count,
            },
        )
    except PersistenceError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e), "detail": e.detail},
        )

    return SaveScheduleResponse(success=True, saved_shifts=len(shift_ids), shift_ids=shift_ids)


@router.get("/debug-last-response")
def debug_last_response(
    current_user: Users = Depends(require_scheduler),
    recorder: FailureRecorder = Depends(get_failure_recorder),
):
    """Recent generation failures with truncated response previews - scheduler/manager/admin only"""
    failures = [f.to_debug_dict() for f in recorder.last_failures()]
    return {
        "success": True,
        "count": len(failures),
        "failures": failures,
        "note": (
            f"Only the last {recorder.capacity} failures are kept in memory. "
            "Response previews are truncated."
        ),
    }


@router.get("/status")
def ai_status(current_user: Users = Depends(get_current_user)):
    configured = is_configured()
    return {
        "ai_enabled": configured,
        "model": settings.LLM_MODEL,
        "features": {
            "schedule_generation": configured,
            "conflict_detection": True,
        },
        "configuration_status": (
            "AI features are enabled and ready to use"
            if configured
            else "AI features are disabled. Set ANTHROPIC_API_KEY to enable."
        ),
    }
