# app/db/schemas/doctor_schema.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional, List


class DoctorBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    specialty: Optional[str] = Field(None, max_length=50)
    contact_info: str = Field(..., max_length=200)


class DoctorCreate(DoctorBase):
    appointment_duration_minutes: int = 30

    @classmethod
    def seed_records(
        cls,
        template: dict,
        records: int,
        start_index: int = 0,
    ) -> List["DoctorCreate"]:
        return [
            cls(
                name=f"{template['name']}_{i}",
                specialty=template.get("specialty"),
                contact_info=f"{template['contact_info']} #{i}",
                appointment_duration_minutes=template.get(
                    "appointment_duration_minutes", 30
                ),
            )
            for i in range(start_index, start_index + records)
        ]


class DoctorResponse(DoctorBase):
    model_config = ConfigDict(from_attributes=True)

    doctor_id: str
    doctor_code: str
    hospital_id: str
    appointment_duration_minutes: int
    created_at: datetime


__all__ = ["DoctorBase", "DoctorCreate", "DoctorResponse"]
