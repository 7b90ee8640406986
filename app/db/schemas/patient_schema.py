# app/db/schemas/patient_schema.py
from pydantic import BaseModel, Field
from datetime import date, timedelta
from typing import Optional, List, Sequence


class PatientCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=10)
    contact_info: Optional[str] = Field(None, max_length=200)

    @classmethod
    def seed_records(
        cls,
        template: dict,
        records: int,
        start_index: int = 0,
        date_interval: int = 0,
        gender_cycle: Sequence[str] = ("Male", "Female"),
    ) -> List["PatientCreate"]:
        base_date = template.get("date_of_birth", date(1990, 1, 1))
        return [
            cls(
                name=f"{template['name']}_{i}",
                date_of_birth=base_date - timedelta(days=i * date_interval),
                gender=gender_cycle[i % len(gender_cycle)],
                contact_info=f"{template['contact_info']} #{i}",
            )
            for i in range(start_index, start_index + records)
        ]


__all__ = ["PatientCreate"]
