# app/db/models/schedules.py
from __future__ import annotations
from typing import TYPE_CHECKING
from sqlalchemy import (
    String,
    Boolean,
    SmallInteger,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .db_base_model import DbBaseModel

if TYPE_CHECKING:
    from .doctor_table import Doctor


class WeeklyShift(DbBaseModel):
    """
    One row per doctor and weekday (0=Sunday .. 6=Saturday).

    Only the band toggles are stored. Working flag and the flattened
    start/end pair are derived from the toggles and the effective
    ShiftTimingConfig whenever they are read.
    """

    __tablename__ = "weekly_shifts"
    __table_args__ = (
        UniqueConstraint("doctor_id", "day_of_week", name="uq_weekly_shifts_doctor_day"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_weekly_shifts_day"),
    )

    shift_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=DbBaseModel.generate_uuid,
    )
    doctor_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("doctors.doctor_id", ondelete="CASCADE"),
        nullable=False,
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    morning: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    evening: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    night: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    doctor: Mapped["Doctor"] = relationship("Doctor", back_populates="weekly_shifts")


__all__ = ["WeeklyShift"]
