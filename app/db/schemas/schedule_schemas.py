# app/db/schemas/schedule_schemas.py
from enum import Enum
from datetime import time
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class ShiftBand(str, Enum):
    """The three recurring windows, in start-time precedence order."""

    MORNING = "morning"
    EVENING = "evening"  # "afternoon" in the portal
    NIGHT = "night"


BAND_ORDER = (ShiftBand.MORNING, ShiftBand.EVENING, ShiftBand.NIGHT)


class BandTiming(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: time
    end: time

    @property
    def wraps(self) -> bool:
        """True when the band runs past midnight (end < start)."""
        return self.end < self.start


class ShiftTimingConfig(BaseModel):
    """
    Band boundaries for a doctor or a whole hospital.

    Only the field shapes are checked here; ordering rules live in
    ``shift_model.validate_timing`` so they surface as a 400, not a 422.
    """

    model_config = ConfigDict(frozen=True)

    morning: BandTiming = BandTiming(start=time(6, 0), end=time(14, 0))
    evening: BandTiming = BandTiming(start=time(14, 0), end=time(22, 0))
    night: BandTiming = BandTiming(start=time(22, 0), end=time(6, 0))

    def band(self, band: ShiftBand) -> BandTiming:
        return getattr(self, band.value)


class DayBands(BaseModel):
    """Band toggles for one weekday (0=Sunday .. 6=Saturday)."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    day_of_week: int = Field(..., ge=0, le=6)
    morning: bool = False
    evening: bool = False
    night: bool = False

    @property
    def active_bands(self) -> List[ShiftBand]:
        return [band for band in BAND_ORDER if getattr(self, band.value)]

    @property
    def is_working(self) -> bool:
        return bool(self.active_bands)


class DaySpan(BaseModel):
    """Flattened start/end pair derived from the toggles. Never persisted."""

    model_config = ConfigDict(frozen=True)

    day_of_week: int
    is_working: bool
    shift_start: Optional[time] = None
    # Earlier than shift_start when the night band wraps past midnight
    shift_end: Optional[time] = None


class WeeklyShiftResponse(DaySpan):
    morning: bool
    evening: bool
    night: bool


class WeeklyScheduleResponse(BaseModel):
    doctor_id: str
    appointment_duration_minutes: int
    timing: ShiftTimingConfig
    timing_source: str = Field(..., description="doctor, hospital or default")
    days: List[WeeklyShiftResponse]


__all__ = [
    "ShiftBand",
    "BAND_ORDER",
    "BandTiming",
    "ShiftTimingConfig",
    "DayBands",
    "DaySpan",
    "WeeklyShiftResponse",
    "WeeklyScheduleResponse",
]
