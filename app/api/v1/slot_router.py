# app/api/v1/slot_router.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.db.models import SlotStatus
from app.db.schemas import LatestSlotResponse, SlotResponse
from app.services.v1 import DoctorScheduleService, SlotService
from .deps import get_hospital_id

slot_router = APIRouter(
    prefix="/slots",
    tags=["Slots"],
)


@slot_router.get(
    "",
    response_model=List[SlotResponse],
    summary="List a doctor's slots in a date range",
)
async def list_slots(
    doctor_id: str = Query(...),
    start: date = Query(...),
    end: date = Query(...),
    status: Optional[SlotStatus] = Query(None),
    hospital_id: str = Depends(get_hospital_id),
    db: AsyncSession = Depends(get_db),
):
    return await SlotService(db).list_slots(hospital_id, doctor_id, start, end, status)


@slot_router.get(
    "/latest",
    response_model=LatestSlotResponse,
    summary="Last date with generated slots",
)
async def latest_slot_date(
    doctor_id: str = Query(...),
    hospital_id: str = Depends(get_hospital_id),
    db: AsyncSession = Depends(get_db),
):
    await DoctorScheduleService(db).get_doctor(hospital_id, doctor_id)
    latest = await SlotService(db).latest_slot_date(hospital_id, doctor_id)
    return LatestSlotResponse(doctor_id=doctor_id, latest_slot_date=latest)


@slot_router.patch(
    "/{slot_id}/block",
    response_model=SlotResponse,
    summary="Withhold an open slot",
    responses={
        400: {"description": "Slot is not open"},
        404: {"description": "Slot not found"},
    },
)
async def block_slot(
    slot_id: str,
    hospital_id: str = Depends(get_hospital_id),
    db: AsyncSession = Depends(get_db),
):
    return await SlotService(db).block_slot(hospital_id, slot_id)


@slot_router.patch(
    "/{slot_id}/unblock",
    response_model=SlotResponse,
    summary="Reopen a blocked slot",
    responses={
        400: {"description": "Slot is not blocked"},
        404: {"description": "Slot not found"},
    },
)
async def unblock_slot(
    slot_id: str,
    hospital_id: str = Depends(get_hospital_id),
    db: AsyncSession = Depends(get_db),
):
    return await SlotService(db).unblock_slot(hospital_id, slot_id)


__all__ = ["slot_router"]
