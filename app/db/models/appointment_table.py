# app/db/models/appointment_table.py
from __future__ import annotations
from typing import TYPE_CHECKING, Optional
from enum import Enum
from datetime import date, time, datetime
from sqlalchemy import (
    String,
    Date,
    Time,
    DateTime,
    ForeignKey,
    Text,
    Index,
    Enum as sqlalchemy_Enum,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .db_base_model import DbBaseModel


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"  # Booked, not yet confirmed
    CONFIRMED = "confirmed"  # Confirmed by the hospital or patient
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_active(self) -> bool:
        """Only active bookings can be invalidated by a schedule change."""
        return self in ACTIVE_APPOINTMENT_STATUSES


ACTIVE_APPOINTMENT_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)


if TYPE_CHECKING:
    from .patient_table import Patient
    from .slot_table import Slot


class Appointment(DbBaseModel):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_doctor_date", "doctor_id", "appointment_date"),
    )

    appointment_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=DbBaseModel.generate_uuid,
    )

    hospital_id: Mapped[str] = mapped_column(
        ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
        nullable=False,
    )

    patient_id: Mapped[str] = mapped_column(
        ForeignKey("patients.patient_id"),
        nullable=False,
    )

    doctor_id: Mapped[str] = mapped_column(
        ForeignKey("doctors.doctor_id"),
        nullable=False,
    )

    # Slots are disposable; the link is dropped before a slot is deleted
    slot_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("appointment_slots.slot_id", ondelete="SET NULL"),
        nullable=True,
    )

    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    status: Mapped[AppointmentStatus] = mapped_column(
        sqlalchemy_Enum(
            AppointmentStatus,
            name="appointment_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    cancellation_reason: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    patient: Mapped["Patient"] = relationship("Patient")
    slot: Mapped[Optional["Slot"]] = relationship("Slot")


__all__ = ["Appointment", "AppointmentStatus", "ACTIVE_APPOINTMENT_STATUSES"]
