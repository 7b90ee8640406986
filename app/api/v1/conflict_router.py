# app/api/v1/conflict_router.py
from fastapi import APIRouter, Depends, status

from app.db.schemas import (
    ConflictCheckRequest,
    ConflictReport,
    RegenerateRequest,
    RegenerateResponse,
)
from app.services.v1 import ConflictResolver
from .deps import get_hospital_id, get_conflict_resolver

conflict_router = APIRouter(tags=["Conflicts"])


@conflict_router.post(
    "/conflicts/check",
    response_model=ConflictReport,
    status_code=status.HTTP_200_OK,
    summary="Preview a schedule change",
    description="""
    Dry run of a schedule, duration or time-off change. Lists every active
    appointment that would lose its slot. Nothing is written.
    """,
    responses={
        400: {"description": "Malformed change or horizon"},
        404: {"description": "Doctor not found in this hospital"},
    },
)
async def check_conflicts(
    body: ConflictCheckRequest,
    hospital_id: str = Depends(get_hospital_id),
    resolver: ConflictResolver = Depends(get_conflict_resolver),
):
    return await resolver.check_conflicts(
        hospital_id, body.doctor_id, body.change, body.horizon
    )


@conflict_router.post(
    "/slots/regenerate",
    response_model=RegenerateResponse,
    status_code=status.HTTP_200_OK,
    summary="Commit a schedule change and regenerate slots",
    description="""
    Cancels the confirmed appointments, persists the change (if any) and
    regenerates the slot set in one transaction.

    `cancel_appointment_ids` must equal the conflict list of a fresh preview;
    otherwise nothing is written and 409 is returned.
    """,
    responses={
        400: {"description": "Malformed change or horizon"},
        404: {"description": "Doctor not found in this hospital"},
        409: {"description": "Schedule changed since the preview"},
        500: {"description": "Failed to save schedule"},
    },
)
async def regenerate_slots(
    body: RegenerateRequest,
    hospital_id: str = Depends(get_hospital_id),
    resolver: ConflictResolver = Depends(get_conflict_resolver),
):
    return await resolver.apply_change(
        hospital_id,
        body.doctor_id,
        body.cancel_appointment_ids,
        change=body.change,
        horizon=body.horizon,
        expected_fingerprint=body.fingerprint,
    )


__all__ = ["conflict_router"]
