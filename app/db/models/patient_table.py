# app/db/models/patient_table.py
from __future__ import annotations
from datetime import date
from typing import Optional
from sqlalchemy import String, Date, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from .db_base_model import DbBaseModel


class Patient(DbBaseModel):
    __tablename__ = "patients"

    patient_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=DbBaseModel.generate_uuid,
    )

    patient_code: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        unique=True,
        default=DbBaseModel.generate_short_code,
    )

    hospital_id: Mapped[str] = mapped_column(
        ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    contact_info: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)


__all__ = ["Patient"]
