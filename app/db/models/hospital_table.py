# app/db/models/hospital_table.py
from __future__ import annotations
from typing import TYPE_CHECKING, Any, Optional
from sqlalchemy import String, JSON
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .db_base_model import DbBaseModel

if TYPE_CHECKING:
    from .doctor_table import Doctor


class Hospital(DbBaseModel):
    __tablename__ = "hospitals"

    hospital_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=DbBaseModel.generate_uuid,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # IANA name, e.g. "Asia/Kolkata"; "today" for slot horizons is computed here
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")

    # Hospital-wide band boundaries, overridden per doctor
    shift_timing_config: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON, nullable=True
    )

    doctors: Mapped[list["Doctor"]] = relationship("Doctor", back_populates="hospital")


__all__ = ["Hospital"]
