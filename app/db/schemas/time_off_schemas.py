# app/db/schemas/time_off_schemas.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import date, datetime
from typing import Optional


class TimeOffBase(BaseModel):
    start_date: date
    end_date: date = Field(..., description="Inclusive")
    reason: Optional[str] = Field(None, max_length=200)


class TimeOffResponse(TimeOffBase):
    model_config = ConfigDict(from_attributes=True)

    time_off_id: str
    doctor_id: str
    created_at: datetime


__all__ = ["TimeOffBase", "TimeOffResponse"]
