# app/services/v1/slot_generator.py
"""
Slot generation and diffing.

Midnight policy: a night band that wraps is split at 00:00. The part before
midnight belongs to date D, the part after it is generated on D+1, and no
slot ever crosses midnight. Both parts follow D's weekday toggles. The tail
is only produced when D itself is a working, unblocked date and D+1 is
unblocked and inside the horizon. For that reason generation starts one day
before the horizon, and ``blocked`` must cover that extra day too.
"""

from datetime import date, timedelta
from typing import Collection, Iterable, List, Protocol, Sequence, TypeVar

from common.api_error import ValidationError
from app.db.models import SlotPeriod
from app.db.schemas import (
    CandidateSlot,
    DayBands,
    Horizon,
    ShiftBand,
    ShiftTimingConfig,
    SlotKey,
    SlotPlan,
)
from .shift_model import (
    MINUTES_PER_DAY,
    band_windows,
    day_of_week,
    minutes_to_time,
    normalize_week,
    validate_duration,
    validate_timing,
)

_PERIOD_FOR_BAND = {
    ShiftBand.MORNING: SlotPeriod.MORNING,
    ShiftBand.EVENING: SlotPeriod.EVENING,
    ShiftBand.NIGHT: SlotPeriod.NIGHT,
}


class StoredSlot(Protocol):
    slot_date: date
    start_time: object
    end_time: object


S = TypeVar("S", bound=StoredSlot)


def validate_horizon(horizon: Horizon, max_days: int = 0) -> Horizon:
    if horizon.end < horizon.start:
        raise ValidationError(
            f"Horizon end {horizon.end} is before its start {horizon.start}"
        )
    if max_days and horizon.days > max_days:
        raise ValidationError(
            f"Horizon spans {horizon.days} days; at most {max_days} are allowed"
        )
    return horizon


def generation_window(horizon: Horizon) -> Horizon:
    """Dates whose configuration can produce slots inside ``horizon``."""
    return Horizon(start=horizon.start - timedelta(days=1), end=horizon.end)


def _discretize(
    slot_date: date, start: int, end: int, duration: int, band: ShiftBand
) -> List[CandidateSlot]:
    slots = []
    current = start
    while current + duration <= end:
        slots.append(
            CandidateSlot(
                slot_date=slot_date,
                start_time=minutes_to_time(current),
                end_time=minutes_to_time(current + duration),
                duration_minutes=duration,
                period=_PERIOD_FOR_BAND[band],
            )
        )
        current += duration
    return slots


def generate_slots(
    week: Iterable[DayBands],
    timing: ShiftTimingConfig,
    duration: int,
    blocked: Collection[date],
    horizon: Horizon,
) -> List[CandidateSlot]:
    """
    Every slot that should exist in ``horizon``, sorted by (date, start).

    Raises:
        ValidationError: bad duration, timing or horizon; nothing is generated
    """
    validate_duration(duration)
    validate_horizon(horizon)
    validate_timing(timing)
    days = normalize_week(week)

    slots: List[CandidateSlot] = []
    current = horizon.start - timedelta(days=1)
    while current <= horizon.end:
        bands = days[day_of_week(current)]
        if bands.is_working and current not in blocked:
            following = current + timedelta(days=1)
            for window in band_windows(bands, timing):
                head_end = min(window.end, MINUTES_PER_DAY)
                if horizon.contains(current):
                    slots.extend(
                        _discretize(current, window.start, head_end, duration, window.band)
                    )
                if (
                    window.wraps
                    and horizon.contains(following)
                    and following not in blocked
                ):
                    slots.extend(
                        _discretize(
                            following,
                            0,
                            window.end - MINUTES_PER_DAY,
                            duration,
                            window.band,
                        )
                    )
        current += timedelta(days=1)

    slots.sort(key=lambda slot: (slot.slot_date, slot.start_time))
    return slots


def slot_key(slot: StoredSlot) -> SlotKey:
    return (slot.slot_date, slot.start_time, slot.end_time)  # type: ignore[return-value]


def plan_slots(candidates: Sequence[CandidateSlot], existing: Iterable[S]) -> SlotPlan[S]:
    """
    Diff candidates against stored slots by (date, start, end).

    Stored slots without a matching candidate are to be deleted; candidates
    without a stored slot are to be created.
    """
    candidate_keys = {candidate.key for candidate in candidates}
    plan: SlotPlan[S] = SlotPlan()
    existing_keys = set()

    for slot in existing:
        key = slot_key(slot)
        if key in candidate_keys:
            existing_keys.add(key)
            plan.kept += 1
        else:
            plan.to_delete.append(slot)

    plan.to_create = [c for c in candidates if c.key not in existing_keys]
    return plan


__all__ = [
    "validate_horizon",
    "generation_window",
    "generate_slots",
    "slot_key",
    "plan_slots",
]
