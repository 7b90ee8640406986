# app/services/v1/schedule_service.py
from dataclasses import dataclass, field, replace
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from common.api_error import NotFoundError
from common.logger import get_app_logger
from app.db.models import Doctor, Hospital, WeeklyShift, Patient
from app.db.schemas import (
    DayBands,
    DoctorCreate,
    PatientCreate,
    ShiftTimingConfig,
    WeeklyScheduleResponse,
    WeeklyShiftResponse,
    ProposedChange,
    ScheduleChange,
    DurationChange,
    TimeOffChange,
)
from .shift_model import (
    build_day_span,
    default_week,
    normalize_week,
    resolve_timing,
    validate_duration,
    validate_timing,
)
from .time_off_service import TimeOffLedger, validate_time_off_range

logger = get_app_logger(__name__)


@dataclass(frozen=True)
class TimeOffSpan:
    start_date: date
    end_date: date
    time_off_id: Optional[str] = None


@dataclass(frozen=True)
class ScheduleSnapshot:
    """Everything slot generation needs for one doctor, stored or proposed."""

    doctor_id: str
    week: List[DayBands]
    timing: ShiftTimingConfig
    timing_source: str
    duration: int
    time_off: List[TimeOffSpan] = field(default_factory=list)


def overlay_change(snapshot: ScheduleSnapshot, change: ProposedChange) -> ScheduleSnapshot:
    """
    Apply a proposed change on top of a snapshot without persisting it.

    Raises:
        ValidationError: the proposed configuration is malformed
    """
    if isinstance(change, ScheduleChange):
        payload = change.payload
        week = normalize_week(payload.days)
        if payload.timing is not None:
            return replace(
                snapshot,
                week=week,
                timing=validate_timing(payload.timing),
                timing_source="doctor",
            )
        return replace(snapshot, week=week)

    if isinstance(change, DurationChange):
        return replace(
            snapshot,
            duration=validate_duration(change.payload.appointment_duration_minutes),
        )

    if isinstance(change, TimeOffChange):
        payload = change.payload
        if payload.is_removal:
            return replace(
                snapshot,
                time_off=[
                    span
                    for span in snapshot.time_off
                    if span.time_off_id != payload.remove_time_off_id
                ],
            )
        validate_time_off_range(payload.start_date, payload.end_date)
        return replace(
            snapshot,
            time_off=snapshot.time_off
            + [TimeOffSpan(start_date=payload.start_date, end_date=payload.end_date)],
        )

    raise TypeError(f"Unsupported change: {change!r}")


class DoctorScheduleService:
    """Reads and writes a doctor's stored schedule configuration."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = TimeOffLedger(db)

    async def get_hospital(self, hospital_id: str) -> Hospital:
        hospital = await self.db.get(Hospital, hospital_id)
        if hospital is None:
            raise NotFoundError(f"Hospital {hospital_id} not found")
        return hospital

    async def get_doctor(self, hospital_id: str, doctor_id: str) -> Doctor:
        """Doctors of other hospitals are reported as missing."""
        query = (
            select(Doctor)
            .where(Doctor.doctor_id == doctor_id, Doctor.hospital_id == hospital_id)
            .execution_options(logging_token="DoctorScheduleService.get_doctor")
        )
        doctor = (await self.db.execute(query)).scalar_one_or_none()
        if doctor is None:
            raise NotFoundError(f"Doctor {doctor_id} not found in hospital {hospital_id}")
        return doctor

    async def load_week(self, doctor_id: str) -> List[DayBands]:
        query = select(WeeklyShift).where(WeeklyShift.doctor_id == doctor_id)
        rows = (await self.db.execute(query)).scalars().all()
        return normalize_week(DayBands.model_validate(row) for row in rows)

    async def load_snapshot(
        self,
        doctor: Doctor,
        hospital: Hospital,
        start: date,
        end: date,
    ) -> ScheduleSnapshot:
        """Stored configuration, with time off limited to ``[start, end]``."""
        timing, source = resolve_timing(
            doctor.shift_timing_config, hospital.shift_timing_config
        )
        entries = await self.ledger.list_entries(doctor.doctor_id, start, end)
        return ScheduleSnapshot(
            doctor_id=doctor.doctor_id,
            week=await self.load_week(doctor.doctor_id),
            timing=timing,
            timing_source=source,
            duration=doctor.appointment_duration_minutes,
            time_off=[
                TimeOffSpan(e.start_date, e.end_date, e.time_off_id) for e in entries
            ],
        )

    async def persist_week(
        self,
        doctor: Doctor,
        days: Sequence[DayBands],
        timing: Optional[ShiftTimingConfig] = None,
    ) -> None:
        """
        Replace the weekly pattern. Rows are updated in place and never
        deleted; days left out are stored as not working.
        """
        week = normalize_week(days)
        query = select(WeeklyShift).where(WeeklyShift.doctor_id == doctor.doctor_id)
        rows = {row.day_of_week: row for row in (await self.db.execute(query)).scalars()}

        for day in week:
            row = rows.get(day.day_of_week)
            if row is None:
                row = WeeklyShift(doctor_id=doctor.doctor_id, day_of_week=day.day_of_week)
                self.db.add(row)
            row.morning = day.morning
            row.evening = day.evening
            row.night = day.night

        if timing is not None:
            doctor.shift_timing_config = validate_timing(timing).model_dump(mode="json")

        await self.db.flush()

    async def persist_duration(self, doctor: Doctor, minutes: int) -> None:
        doctor.appointment_duration_minutes = validate_duration(minutes)
        await self.db.flush()

    async def persist_change(self, doctor: Doctor, change: ProposedChange) -> None:
        if isinstance(change, ScheduleChange):
            await self.persist_week(doctor, change.payload.days, change.payload.timing)
        elif isinstance(change, DurationChange):
            await self.persist_duration(
                doctor, change.payload.appointment_duration_minutes
            )
        elif isinstance(change, TimeOffChange):
            payload = change.payload
            if payload.is_removal:
                await self.ledger.remove(doctor.doctor_id, payload.remove_time_off_id)
            else:
                await self.ledger.add(
                    doctor.doctor_id,
                    payload.start_date,
                    payload.end_date,
                    payload.reason,
                )
        else:
            raise TypeError(f"Unsupported change: {change!r}")

    async def onboard_doctor(
        self,
        hospital_id: str,
        data: DoctorCreate,
        week: Optional[Sequence[DayBands]] = None,
    ) -> Doctor:
        """Create a doctor with a full week of shift rows (default: weekday mornings)."""
        await self.get_hospital(hospital_id)
        doctor = Doctor(
            hospital_id=hospital_id,
            name=data.name,
            specialty=data.specialty,
            contact_info=data.contact_info,
            appointment_duration_minutes=validate_duration(
                data.appointment_duration_minutes
            ),
        )
        self.db.add(doctor)
        await self.db.flush()
        await self.persist_week(doctor, week if week is not None else default_week())
        logger.info("Doctor onboarded", doctor_id=doctor.doctor_id, hospital_id=hospital_id)
        return doctor

    async def register_patient(self, hospital_id: str, data: PatientCreate) -> Patient:
        patient = Patient(hospital_id=hospital_id, **data.model_dump())
        self.db.add(patient)
        await self.db.flush()
        return patient

    async def get_schedule(self, hospital_id: str, doctor_id: str) -> WeeklyScheduleResponse:
        doctor = await self.get_doctor(hospital_id, doctor_id)
        hospital = await self.get_hospital(hospital_id)
        timing, source = resolve_timing(
            doctor.shift_timing_config, hospital.shift_timing_config
        )
        days = []
        for day in await self.load_week(doctor_id):
            span = build_day_span(day, timing)
            days.append(
                WeeklyShiftResponse(
                    **span.model_dump(),
                    morning=day.morning,
                    evening=day.evening,
                    night=day.night,
                )
            )
        return WeeklyScheduleResponse(
            doctor_id=doctor_id,
            appointment_duration_minutes=doctor.appointment_duration_minutes,
            timing=timing,
            timing_source=source,
            days=days,
        )


__all__ = [
    "TimeOffSpan",
    "ScheduleSnapshot",
    "overlay_change",
    "DoctorScheduleService",
]
