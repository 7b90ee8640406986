# tests/conftest.py
import logging
from datetime import date, time
from typing import Optional, Sequence

import pytest
from sqlalchemy import select

from common.config import SchedulingConfig, configure_structlog
from app.db import DbManager
from app.db.models import (
    Appointment,
    AppointmentStatus,
    DbBaseModel,
    Hospital,
    Patient,
    QueueEntry,
    QueueEntryType,
    QueueStatus,
    Slot,
    SlotStatus,
)
from app.db.schemas import DayBands, DoctorCreate, Horizon
from app.services.v1 import ConflictResolver, DoctorLockRegistry, DoctorScheduleService

configure_structlog(logging.DEBUG)

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)

MORNING_09_12 = {"morning": {"start": "09:00", "end": "12:00"}}


def day_horizon(day: date = MONDAY) -> Horizon:
    return Horizon(start=day, end=day)


@pytest.fixture
async def db_manager(tmp_path):
    manager = DbManager(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with manager.engine.begin() as conn:
        await conn.run_sync(DbBaseModel.metadata.create_all)
    yield manager
    await manager.dispose()


@pytest.fixture
def locks():
    return DoctorLockRegistry()


@pytest.fixture
def scheduling():
    return SchedulingConfig()


@pytest.fixture
def run_resolver(db_manager, locks, scheduling):
    """Call a ConflictResolver method in its own session, like one request would."""

    async def _run(method: str, *args, **kwargs):
        async with db_manager.session_maker() as session:
            resolver = ConflictResolver(session, scheduling, locks)
            return await getattr(resolver, method)(*args, **kwargs)

    return _run


@pytest.fixture
async def hospital(db_manager):
    async with db_manager.session() as session:
        hospital = Hospital(
            name="General Hospital",
            timezone="UTC",
            shift_timing_config=MORNING_09_12,
        )
        session.add(hospital)
        await session.flush()
    return hospital


@pytest.fixture
def make_doctor(db_manager, hospital):
    async def _make(
        duration: int = 30,
        week: Optional[Sequence[DayBands]] = None,
        hospital_id: Optional[str] = None,
    ):
        async with db_manager.session() as session:
            return await DoctorScheduleService(session).onboard_doctor(
                hospital_id or hospital.hospital_id,
                DoctorCreate(
                    name="Dr. Test",
                    contact_info="555-0100",
                    appointment_duration_minutes=duration,
                ),
                week=week,
            )

    return _make


@pytest.fixture
async def patient(db_manager, hospital):
    async with db_manager.session() as session:
        patient = Patient(hospital_id=hospital.hospital_id, name="Jane Roe")
        session.add(patient)
        await session.flush()
    return patient


@pytest.fixture
def book(db_manager, hospital, patient):
    """Book the stored slot at (date, start) for ``patient``."""

    async def _book(
        doctor_id: str,
        start: time,
        day: date = MONDAY,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    ) -> Appointment:
        async with db_manager.session() as session:
            slot = (
                await session.execute(
                    select(Slot).where(
                        Slot.doctor_id == doctor_id,
                        Slot.slot_date == day,
                        Slot.start_time == start,
                    )
                )
            ).scalar_one()
            slot.status = SlotStatus.BOOKED
            appointment = Appointment(
                hospital_id=hospital.hospital_id,
                patient_id=patient.patient_id,
                doctor_id=doctor_id,
                slot_id=slot.slot_id,
                appointment_date=day,
                start_time=slot.start_time,
                end_time=slot.end_time,
                status=status,
            )
            session.add(appointment)
            await session.flush()
        return appointment

    return _book


@pytest.fixture
def enqueue(db_manager, hospital, patient):
    async def _enqueue(
        appointment: Appointment, status: QueueStatus = QueueStatus.WAITING
    ) -> QueueEntry:
        async with db_manager.session() as session:
            entry = QueueEntry(
                hospital_id=hospital.hospital_id,
                doctor_id=appointment.doctor_id,
                patient_id=patient.patient_id,
                appointment_id=appointment.appointment_id,
                queue_date=appointment.appointment_date,
                queue_number=1,
                entry_type=QueueEntryType.SCHEDULED,
                status=status,
            )
            session.add(entry)
            await session.flush()
        return entry

    return _enqueue
