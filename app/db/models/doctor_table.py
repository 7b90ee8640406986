# app/db/models/doctor_table.py
from __future__ import annotations
from typing import TYPE_CHECKING, Any, Optional
from sqlalchemy import String, Text, Integer, JSON, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .db_base_model import DbBaseModel

if TYPE_CHECKING:
    from .hospital_table import Hospital
    from .schedules import WeeklyShift
    from .time_off_table import TimeOffEntry


class Doctor(DbBaseModel):
    __tablename__ = "doctors"
    __table_args__ = (
        CheckConstraint(
            "appointment_duration_minutes IN (10, 15, 20, 30, 45, 60)",
            name="ck_doctors_appointment_duration",
        ),
    )

    doctor_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=DbBaseModel.generate_uuid,
    )

    doctor_code: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
        default=DbBaseModel.generate_short_code,
        unique=True,
    )

    hospital_id: Mapped[str] = mapped_column(
        ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    specialty: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    contact_info: Mapped[str] = mapped_column(Text, nullable=False)

    appointment_duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=30
    )

    # None means "use the hospital's (or the system) band boundaries"
    shift_timing_config: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON, nullable=True
    )

    hospital: Mapped["Hospital"] = relationship("Hospital", back_populates="doctors")

    weekly_shifts: Mapped[list["WeeklyShift"]] = relationship(
        "WeeklyShift",
        back_populates="doctor",
        order_by="WeeklyShift.day_of_week",
    )

    time_off: Mapped[list["TimeOffEntry"]] = relationship(
        "TimeOffEntry", back_populates="doctor"
    )


__all__ = ["Doctor"]
