# app/services/v1/shift_model.py
"""
Weekly shift model.

Pure functions over band toggles and band timings. Nothing here touches the
database; callers load rows and pass plain values in.
"""

from datetime import date, time
from typing import Any, Iterable, List, NamedTuple, Optional, Tuple

from common.api_error import ValidationError
from app.db.schemas import (
    BAND_ORDER,
    DayBands,
    DaySpan,
    ShiftBand,
    ShiftTimingConfig,
)

ALLOWED_DURATIONS = (10, 15, 20, 30, 45, 60)
MINUTES_PER_DAY = 24 * 60
DAYS_PER_WEEK = 7

# Onboarding default: Monday..Friday, morning band only
DEFAULT_WORKING_DAYS = (1, 2, 3, 4, 5)


class BandWindow(NamedTuple):
    """
    One active band on a given day, in minutes from that day's midnight.
    ``end`` exceeds MINUTES_PER_DAY when the band wraps into the next day.
    """

    band: ShiftBand
    start: int
    end: int

    @property
    def wraps(self) -> bool:
        return self.end > MINUTES_PER_DAY


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    minutes %= MINUTES_PER_DAY
    return time(minutes // 60, minutes % 60)


def day_of_week(value: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def validate_duration(minutes: int) -> int:
    if minutes not in ALLOWED_DURATIONS:
        allowed = ", ".join(str(d) for d in ALLOWED_DURATIONS)
        raise ValidationError(
            f"Invalid appointment duration {minutes}; must be one of {allowed} minutes"
        )
    return minutes


def validate_timing(timing: ShiftTimingConfig) -> ShiftTimingConfig:
    """
    Bands must be ordered and must not overlap. Only the night band may run
    past midnight, and if it does it must end by the time morning starts.
    """
    for band in BAND_ORDER:
        window = timing.band(band)
        if window.start == window.end:
            raise ValidationError(f"The {band.value} band must have different start and end")

    morning, evening, night = timing.morning, timing.evening, timing.night

    if morning.wraps:
        raise ValidationError("The morning band cannot run past midnight")
    if evening.wraps:
        raise ValidationError("The evening band cannot run past midnight")
    if morning.end > evening.start:
        raise ValidationError("The morning band must end before the evening band starts")
    if evening.end > night.start:
        raise ValidationError("The evening band must end before the night band starts")
    if night.wraps and night.end > morning.start:
        raise ValidationError(
            "The night band must end before the morning band starts"
        )
    return timing


def parse_timing(raw: Optional[Any]) -> Optional[ShiftTimingConfig]:
    """Stored JSON (or an already parsed config) to ShiftTimingConfig."""
    if raw is None:
        return None
    if isinstance(raw, ShiftTimingConfig):
        return raw
    return ShiftTimingConfig.model_validate(raw)


def resolve_timing(
    doctor_timing: Optional[Any], hospital_timing: Optional[Any]
) -> Tuple[ShiftTimingConfig, str]:
    """Effective band boundaries: doctor, then hospital, then system default."""
    parsed = parse_timing(doctor_timing)
    if parsed is not None:
        return parsed, "doctor"
    parsed = parse_timing(hospital_timing)
    if parsed is not None:
        return parsed, "hospital"
    return ShiftTimingConfig(), "default"


def build_day_span(day: DayBands, timing: ShiftTimingConfig) -> DaySpan:
    """
    Flatten one day's toggles into a single start/end pair.

    Start comes from the earliest active band, end from the latest one, so a
    night-only day yields ``shift_end < shift_start``.
    """
    active = day.active_bands
    if not active:
        return DaySpan(day_of_week=day.day_of_week, is_working=False)

    return DaySpan(
        day_of_week=day.day_of_week,
        is_working=True,
        shift_start=timing.band(active[0]).start,
        shift_end=timing.band(active[-1]).end,
    )


def band_windows(day: DayBands, timing: ShiftTimingConfig) -> List[BandWindow]:
    """Active bands of one day as separate spans; gaps between them stay closed."""
    windows = []
    for band in day.active_bands:
        bounds = timing.band(band)
        start = time_to_minutes(bounds.start)
        end = time_to_minutes(bounds.end)
        if bounds.wraps:
            end += MINUTES_PER_DAY
        windows.append(BandWindow(band, start, end))
    return windows


def normalize_week(days: Iterable[DayBands]) -> List[DayBands]:
    """
    Exactly seven entries indexed by day_of_week. Missing days are off;
    a weekday given twice is rejected.
    """
    week: List[Optional[DayBands]] = [None] * DAYS_PER_WEEK
    for day in days:
        if week[day.day_of_week] is not None:
            raise ValidationError(f"Day {day.day_of_week} appears more than once")
        week[day.day_of_week] = day

    return [
        entry if entry is not None else DayBands(day_of_week=index)
        for index, entry in enumerate(week)
    ]


def default_week() -> List[DayBands]:
    return [
        DayBands(day_of_week=index, morning=index in DEFAULT_WORKING_DAYS)
        for index in range(DAYS_PER_WEEK)
    ]


__all__ = [
    "ALLOWED_DURATIONS",
    "MINUTES_PER_DAY",
    "BandWindow",
    "time_to_minutes",
    "minutes_to_time",
    "day_of_week",
    "validate_duration",
    "validate_timing",
    "parse_timing",
    "resolve_timing",
    "build_day_span",
    "band_windows",
    "normalize_week",
    "default_week",
]
