# app/db/models/slot_table.py
from __future__ import annotations
from datetime import date, time
from enum import Enum
from sqlalchemy import (
    String,
    Date,
    Time,
    SmallInteger,
    ForeignKey,
    UniqueConstraint,
    Index,
    Enum as sqlalchemy_Enum,
)
from sqlalchemy.orm import Mapped, mapped_column
from .db_base_model import DbBaseModel


class SlotStatus(str, Enum):
    OPEN = "open"
    BOOKED = "booked"
    BLOCKED = "blocked"  # manually withheld by a manager


class SlotPeriod(str, Enum):
    MORNING = "morning"
    EVENING = "evening"
    NIGHT = "night"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Slot(DbBaseModel):
    """Derived, disposable bookable window. Regeneration may delete and recreate it."""

    __tablename__ = "appointment_slots"
    __table_args__ = (
        UniqueConstraint(
            "doctor_id", "slot_date", "start_time", name="uq_appointment_slots_doctor_start"
        ),
        Index("ix_appointment_slots_doctor_date", "doctor_id", "slot_date"),
    )

    slot_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=DbBaseModel.generate_uuid,
    )
    hospital_id: Mapped[str] = mapped_column(
        ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
        nullable=False,
    )
    doctor_id: Mapped[str] = mapped_column(
        ForeignKey("doctors.doctor_id", ondelete="CASCADE"),
        nullable=False,
    )
    slot_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    # 00:00 when the slot ends at midnight
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    period: Mapped[SlotPeriod] = mapped_column(
        sqlalchemy_Enum(
            SlotPeriod,
            name="slot_period",
            native_enum=False,
            values_callable=_values,
        ),
        nullable=False,
    )
    status: Mapped[SlotStatus] = mapped_column(
        sqlalchemy_Enum(
            SlotStatus,
            name="slot_status",
            native_enum=False,
            values_callable=_values,
        ),
        nullable=False,
        default=SlotStatus.OPEN,
    )


__all__ = ["Slot", "SlotStatus", "SlotPeriod"]
