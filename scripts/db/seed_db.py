# scripts/db/seed_db.py
import csv
from pathlib import Path
from typing import Any, Optional
from pydantic import BaseModel
from datetime import date, timedelta

from sqlalchemy import select

from app.db import DbManager
from app.db.models import (
    Appointment,
    AppointmentStatus,
    Hospital,
    Slot,
    SlotStatus,
)
from app.db.schemas import DoctorCreate, Horizon, PatientCreate
from app.services.v1 import ConflictResolver, DoctorScheduleService
from common.config import SchedulingConfig
from common.logger import get_app_logger

logger = get_app_logger(__name__)


def write_records_to_csv(filename: str, records: list[BaseModel]) -> None:
    """Write Pydantic schema records to CSV."""
    if not records:
        return

    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = list(records[0].model_dump(mode="json").keys())

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for record in records:
            writer.writerow(record.model_dump(mode="json"))


async def seed_db(
    db_manager: DbManager,
    data_template: dict[str, dict[str, Any]],
    doctors: int,
    patients: int,
    bookings_per_doctor: int = 0,
    horizon_days: int = 28,
    start: Optional[date] = None,
    export_csv: bool = False,
    csv_dir: str = "data/seed",
    scheduling: Optional[SchedulingConfig] = None,
) -> dict[str, Any]:
    """
    Seed one hospital with doctors (default week), patients and slots.

    Slots go through the same commit path the API uses, then the first
    ``bookings_per_doctor`` open slots of each doctor are booked.

    Returns:
        Ids of everything created, keyed by table
    """
    start = start or date.today()
    horizon = Horizon(start=start, end=start + timedelta(days=horizon_days))
    doctor_records = DoctorCreate.seed_records(data_template["doctors"], doctors)
    patient_records = PatientCreate.seed_records(
        data_template["patients"], patients, date_interval=30
    )

    if export_csv:
        write_records_to_csv(str(Path(csv_dir) / "doctors.csv"), doctor_records)
        write_records_to_csv(str(Path(csv_dir) / "patients.csv"), patient_records)

    async with db_manager.session() as session:
        hospital = Hospital(**data_template["hospital"])
        session.add(hospital)
        await session.flush()

        service = DoctorScheduleService(session)
        doctor_ids = [
            (await service.onboard_doctor(hospital.hospital_id, record)).doctor_id
            for record in doctor_records
        ]
        patient_ids = [
            (await service.register_patient(hospital.hospital_id, record)).patient_id
            for record in patient_records
        ]
        hospital_id = hospital.hospital_id

    slots_generated = 0
    appointment_ids: list[str] = []
    for doctor_id in doctor_ids:
        async with db_manager.session() as session:
            resolver = ConflictResolver(session, scheduling or SchedulingConfig())
            result = await resolver.apply_change(hospital_id, doctor_id, [], horizon=horizon)
            slots_generated += result.slots_generated

        if not bookings_per_doctor or not patient_ids:
            continue

        async with db_manager.session() as session:
            open_slots = (
                await session.execute(
                    select(Slot)
                    .where(Slot.doctor_id == doctor_id, Slot.status == SlotStatus.OPEN)
                    .order_by(Slot.slot_date, Slot.start_time)
                    .limit(bookings_per_doctor)
                )
            ).scalars()
            for index, slot in enumerate(open_slots):
                appointment = Appointment(
                    hospital_id=hospital_id,
                    doctor_id=doctor_id,
                    patient_id=patient_ids[index % len(patient_ids)],
                    slot_id=slot.slot_id,
                    appointment_date=slot.slot_date,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    status=AppointmentStatus.SCHEDULED,
                )
                slot.status = SlotStatus.BOOKED
                session.add(appointment)
                await session.flush()
                appointment_ids.append(appointment.appointment_id)

    logger.info(
        "Seed complete",
        hospital_id=hospital_id,
        doctors=len(doctor_ids),
        patients=len(patient_ids),
        slots=slots_generated,
        appointments=len(appointment_ids),
    )
    return {
        "hospital": hospital_id,
        "doctors": doctor_ids,
        "patients": patient_ids,
        "appointments": appointment_ids,
        "slots_generated": slots_generated,
    }


__all__ = ["seed_db", "write_records_to_csv"]
