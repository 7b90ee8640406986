# app/db/schemas/conflict_schemas.py
from datetime import date, time
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field, model_validator

from ..models import AppointmentStatus
from .schedule_schemas import DayBands, ShiftTimingConfig
from .slot_schemas import Horizon


class SchedulePayload(BaseModel):
    """Full replacement of the weekly pattern, optionally with new band timings."""

    days: List[DayBands]
    timing: Optional[ShiftTimingConfig] = None


class DurationPayload(BaseModel):
    appointment_duration_minutes: int


class TimeOffPayload(BaseModel):
    """Either a range to add or the id of an entry to remove."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = Field(None, max_length=200)
    remove_time_off_id: Optional[str] = None

    @model_validator(mode="after")
    def check_shape(self) -> "TimeOffPayload":
        adding = self.start_date is not None or self.end_date is not None
        if self.remove_time_off_id and adding:
            raise ValueError("give either a date range or remove_time_off_id, not both")
        if not self.remove_time_off_id and (
            self.start_date is None or self.end_date is None
        ):
            raise ValueError("start_date and end_date are both required")
        return self

    @property
    def is_removal(self) -> bool:
        return self.remove_time_off_id is not None


class ScheduleChange(BaseModel):
    change_type: Literal["schedule"] = "schedule"
    payload: SchedulePayload


class DurationChange(BaseModel):
    change_type: Literal["duration"] = "duration"
    payload: DurationPayload


class TimeOffChange(BaseModel):
    change_type: Literal["timeoff"] = "timeoff"
    payload: TimeOffPayload


ProposedChange = Annotated[
    Union[ScheduleChange, DurationChange, TimeOffChange],
    Field(discriminator="change_type"),
]


class ConflictEntry(BaseModel):
    appointment_id: str
    patient_id: str
    patient_name: Optional[str] = None
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    has_queue_entry: bool = False
    queue_entry_id: Optional[str] = None


class DateRange(BaseModel):
    start: date
    end: date


class ConflictSummary(BaseModel):
    total_appointments: int
    total_queue_entries: int
    date_range: DateRange
    slots_to_delete: int
    slots_to_create: int


class ConflictReport(BaseModel):
    """
    Result of a dry run. ``fingerprint`` identifies the previewed state and
    can be sent back on commit to detect changes in between.
    """

    doctor_id: str
    change_type: Optional[str] = None
    horizon: Horizon
    conflicts: List[ConflictEntry]
    summary: ConflictSummary
    fingerprint: str

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def appointment_ids(self) -> List[str]:
        return [c.appointment_id for c in self.conflicts]


class ConflictCheckRequest(BaseModel):
    doctor_id: str
    change: ProposedChange
    horizon: Optional[Horizon] = None


class RegenerateRequest(BaseModel):
    doctor_id: str
    cancel_appointment_ids: List[str] = Field(default_factory=list)
    change: Optional[ProposedChange] = None
    horizon: Optional[Horizon] = None
    fingerprint: Optional[str] = None


class RegenerateResponse(BaseModel):
    cancelled: int
    slots_deleted: int
    slots_generated: int


__all__ = [
    "SchedulePayload",
    "DurationPayload",
    "TimeOffPayload",
    "ScheduleChange",
    "DurationChange",
    "TimeOffChange",
    "ProposedChange",
    "ConflictEntry",
    "DateRange",
    "ConflictSummary",
    "ConflictReport",
    "ConflictCheckRequest",
    "RegenerateRequest",
    "RegenerateResponse",
]
