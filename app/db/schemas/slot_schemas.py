# app/db/schemas/slot_schemas.py
from dataclasses import dataclass, field
from datetime import date, time
from typing import Generic, List, Optional, Tuple, TypeVar
from pydantic import BaseModel, ConfigDict, Field

from ..models import SlotStatus, SlotPeriod

SlotKey = Tuple[date, time, time]


class Horizon(BaseModel):
    """Inclusive date range for generation. Bounds are checked by the service."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class CandidateSlot(BaseModel):
    """A slot that should exist under a given configuration."""

    model_config = ConfigDict(frozen=True)

    slot_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    period: SlotPeriod

    @property
    def key(self) -> SlotKey:
        return (self.slot_date, self.start_time, self.end_time)


E = TypeVar("E")


@dataclass
class SlotPlan(Generic[E]):
    """Diff between the candidate set and the stored slots."""

    to_create: List[CandidateSlot] = field(default_factory=list)
    to_delete: List[E] = field(default_factory=list)
    kept: int = 0

    @property
    def is_noop(self) -> bool:
        return not self.to_create and not self.to_delete


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slot_id: str
    doctor_id: str
    slot_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    period: SlotPeriod
    status: SlotStatus


class LatestSlotResponse(BaseModel):
    doctor_id: str
    latest_slot_date: Optional[date] = Field(
        None, description="Last date that has any slot; null when none exist"
    )


__all__ = [
    "SlotKey",
    "Horizon",
    "CandidateSlot",
    "SlotPlan",
    "SlotResponse",
    "LatestSlotResponse",
]
