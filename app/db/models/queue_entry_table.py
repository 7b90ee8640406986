# app/db/models/queue_entry_table.py
from __future__ import annotations
from datetime import date
from enum import Enum
from typing import Optional
from sqlalchemy import (
    String,
    Date,
    Integer,
    ForeignKey,
    Index,
    Enum as sqlalchemy_Enum,
)
from sqlalchemy.orm import Mapped, mapped_column
from .db_base_model import DbBaseModel


class QueueEntryType(str, Enum):
    WALK_IN = "walk_in"
    SCHEDULED = "scheduled"  # tied to an appointment


class QueueStatus(str, Enum):
    QUEUED = "queued"
    WAITING = "waiting"
    WITH_DOCTOR = "with_doctor"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    LEFT = "left"


# Entries a cancellation can still pull out of the queue
ACTIVE_QUEUE_STATUSES = (QueueStatus.QUEUED, QueueStatus.WAITING)


class QueueEntry(DbBaseModel):
    __tablename__ = "queue_entries"
    __table_args__ = (
        Index("ix_queue_entries_doctor_date", "doctor_id", "queue_date"),
        Index("ix_queue_entries_appointment", "appointment_id"),
    )

    queue_entry_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=DbBaseModel.generate_uuid,
    )
    hospital_id: Mapped[str] = mapped_column(
        ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
        nullable=False,
    )
    doctor_id: Mapped[str] = mapped_column(
        ForeignKey("doctors.doctor_id"),
        nullable=False,
    )
    patient_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("patients.patient_id"),
        nullable=True,
    )
    appointment_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("appointments.appointment_id"),
        nullable=True,
    )
    queue_date: Mapped[date] = mapped_column(Date, nullable=False)
    queue_number: Mapped[int] = mapped_column(Integer, nullable=False)

    entry_type: Mapped[QueueEntryType] = mapped_column(
        sqlalchemy_Enum(
            QueueEntryType,
            name="queue_entry_type",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    status: Mapped[QueueStatus] = mapped_column(
        sqlalchemy_Enum(
            QueueStatus,
            name="queue_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=QueueStatus.QUEUED,
    )


__all__ = [
    "QueueEntry",
    "QueueEntryType",
    "QueueStatus",
    "ACTIVE_QUEUE_STATUSES",
]
