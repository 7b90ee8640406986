# app/api/v1/schedule_router.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.db.schemas import (
    RegenerateResponse,
    TimeOffChange,
    TimeOffPayload,
    TimeOffResponse,
    WeeklyScheduleResponse,
)
from app.services.v1 import ConflictResolver, DoctorScheduleService, TimeOffLedger
from .deps import get_hospital_id, get_conflict_resolver

schedule_router = APIRouter(
    prefix="/doctors",
    tags=["Schedules"],
)


@schedule_router.get(
    "/{doctor_id}/schedule",
    response_model=WeeklyScheduleResponse,
    summary="Weekly shifts with derived spans",
    responses={404: {"description": "Doctor not found in this hospital"}},
)
async def get_schedule(
    doctor_id: str,
    hospital_id: str = Depends(get_hospital_id),
    db: AsyncSession = Depends(get_db),
):
    return await DoctorScheduleService(db).get_schedule(hospital_id, doctor_id)


@schedule_router.get(
    "/{doctor_id}/time-off",
    response_model=List[TimeOffResponse],
    summary="Time-off entries",
    responses={404: {"description": "Doctor not found in this hospital"}},
)
async def list_time_off(
    doctor_id: str,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    hospital_id: str = Depends(get_hospital_id),
    db: AsyncSession = Depends(get_db),
):
    await DoctorScheduleService(db).get_doctor(hospital_id, doctor_id)
    return await TimeOffLedger(db).list_entries(doctor_id, start, end)


@schedule_router.delete(
    "/{doctor_id}/time-off/{time_off_id}",
    response_model=RegenerateResponse,
    status_code=status.HTTP_200_OK,
    summary="Remove time off and reopen its dates",
    description="""
    Idempotent: removing an entry that no longer exists still succeeds.
    Slots for the freed dates are regenerated in the same transaction.
    """,
    responses={
        404: {"description": "Doctor not found in this hospital"},
        409: {"description": "Unresolved conflicts exist for this doctor"},
    },
)
async def remove_time_off(
    doctor_id: str,
    time_off_id: str,
    hospital_id: str = Depends(get_hospital_id),
    resolver: ConflictResolver = Depends(get_conflict_resolver),
):
    change = TimeOffChange(payload=TimeOffPayload(remove_time_off_id=time_off_id))
    return await resolver.apply_change(hospital_id, doctor_id, [], change=change)


__all__ = ["schedule_router"]
