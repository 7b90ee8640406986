# app/db/models/time_off_table.py
from __future__ import annotations
from datetime import date
from typing import TYPE_CHECKING, Optional
from sqlalchemy import String, Date, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .db_base_model import DbBaseModel

if TYPE_CHECKING:
    from .doctor_table import Doctor


class TimeOffEntry(DbBaseModel):
    __tablename__ = "doctor_time_off"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_doctor_time_off_range"),
        Index("ix_doctor_time_off_doctor_dates", "doctor_id", "start_date", "end_date"),
    )

    time_off_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=DbBaseModel.generate_uuid,
    )
    doctor_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("doctors.doctor_id", ondelete="CASCADE"),
        nullable=False,
    )
    # Both ends inclusive
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    doctor: Mapped["Doctor"] = relationship("Doctor", back_populates="time_off")


__all__ = ["TimeOffEntry"]
