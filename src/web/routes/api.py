"""
Control API

Fall reports, session control, settings and audit queries.
"""

import time
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from src.core.guardian import Guardian
from src.events.observer import FallEvent
from src.web.schemas import CancelRequest, FallReport, SettingsUpdate


router = APIRouter(prefix="/api", tags=["API"])

_start_time = time.time()


def get_guardian(request: Request) -> Guardian:
    return request.app.state.guardian


GuardianDep = Annotated[Guardian, Depends(get_guardian)]


@router.get("/status")
async def get_status(guardian: GuardianDep) -> dict:
    """Service health plus the current confirmation state."""
    return {
        "status": "running",
        "uptime_seconds": round(time.time() - _start_time, 2),
        "version": "0.1.0",
        "outcomes": guardian.outcome_logger.count_by_status(),
        **guardian.status(),
    }


@router.post("/falls", status_code=202)
async def report_fall(report: FallReport, guardian: GuardianDep):
    """Hand a detected fall to the confirmation engine.

    Returns 202 when a session starts, 409 when one is already running.
    """
    event = FallEvent(
        detected_at=report.detected_at if report.detected_at is not None else time.time(),
        source_id=report.source_id,
    )
    if guardian.on_fall_detected(event) is None:
        return JSONResponse(
            status_code=409,
            content={"accepted": False, "detail": "Confirmation session already active"},
        )
    return {"accepted": True, **guardian.status()}


@router.post("/session/cancel")
async def cancel_session(guardian: GuardianDep, body: CancelRequest | None = None) -> dict:
    reason = body.reason if body is not None else CancelRequest().reason
    if not guardian.cancel(reason):
        raise HTTPException(status_code=409, detail="No cancellable session")
    return {"cancelled": True, "reason": reason}


@router.get("/session")
async def get_session(guardian: GuardianDep) -> dict:
    return guardian.status()


@router.get("/outcomes")
async def get_outcomes(
    guardian: GuardianDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Number of outcomes")] = 10,
) -> dict:
    outcomes = guardian.outcome_logger.get_recent_outcomes(limit=limit)
    return {"total": len(outcomes), "outcomes": outcomes}


@router.get("/outcomes/{session_id}")
async def get_outcome(session_id: str, guardian: GuardianDep) -> dict:
    outcome = guardian.outcome_logger.get_outcome(session_id)
    if outcome is None:
        raise HTTPException(status_code=404, detail="Outcome not found")
    return outcome


@router.get("/messages")
async def get_messages(
    guardian: GuardianDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    errors_only: bool = False,
) -> dict:
    board = guardian.status_board
    messages = board.errors(limit=limit) if errors_only else board.recent(limit=limit)
    return {"messages": [m.to_dict() for m in messages]}


@router.get("/settings")
async def get_settings(guardian: GuardianDep) -> dict:
    return guardian.settings.to_dict()


@router.put("/settings")
async def update_settings(update: SettingsUpdate, guardian: GuardianDep) -> dict:
    settings = guardian.settings
    if update.preferred_language is not None:
        settings.set_preferred_language(update.preferred_language)
    if "emergency_contact" in update.model_fields_set:
        settings.set_emergency_contact(update.emergency_contact)
    if update.voice_confirmation_enabled is not None:
        settings.set_voice_confirmation_enabled(update.voice_confirmation_enabled)
    if update.use_tts is not None:
        settings.set_use_tts(update.use_tts)
    return settings.to_dict()


__all__ = ["router"]
