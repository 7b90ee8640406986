import pytest
from datetime import date, time

from common.api_error import ValidationError
from app.db.schemas import BandTiming, DayBands, ShiftBand, ShiftTimingConfig
from app.services.v1.shift_model import (
    band_windows,
    build_day_span,
    day_of_week,
    default_week,
    minutes_to_time,
    normalize_week,
    resolve_timing,
    validate_duration,
    validate_timing,
)


def test_day_of_week_starts_on_sunday():
    assert day_of_week(date(2030, 1, 6)) == 0  # Sunday
    assert day_of_week(date(2030, 1, 7)) == 1  # Monday
    assert day_of_week(date(2030, 1, 12)) == 6  # Saturday


def test_minutes_to_time_wraps_at_midnight():
    assert minutes_to_time(24 * 60) == time(0, 0)
    assert minutes_to_time(25 * 60 + 30) == time(1, 30)


@pytest.mark.parametrize("minutes", [10, 15, 20, 30, 45, 60])
def test_allowed_durations(minutes):
    assert validate_duration(minutes) == minutes


@pytest.mark.parametrize("minutes", [0, 5, 25, 90])
def test_other_durations_are_rejected(minutes):
    with pytest.raises(ValidationError):
        validate_duration(minutes)


def test_default_timing_is_valid():
    timing = ShiftTimingConfig()
    assert validate_timing(timing) is timing
    assert timing.night.wraps


def test_overlapping_bands_are_rejected():
    timing = ShiftTimingConfig(morning=BandTiming(start=time(6), end=time(15)))
    with pytest.raises(ValidationError, match="morning band must end"):
        validate_timing(timing)


def test_only_night_may_wrap():
    timing = ShiftTimingConfig(evening=BandTiming(start=time(14), end=time(1)))
    with pytest.raises(ValidationError, match="evening band cannot run past midnight"):
        validate_timing(timing)


def test_night_running_into_morning_is_rejected():
    timing = ShiftTimingConfig(night=BandTiming(start=time(22), end=time(7)))
    with pytest.raises(ValidationError, match="night band must end"):
        validate_timing(timing)


def test_resolve_timing_prefers_doctor_then_hospital():
    doctor = {"morning": {"start": "08:00", "end": "12:00"}}
    hospital = {"morning": {"start": "09:00", "end": "13:00"}}

    timing, source = resolve_timing(doctor, hospital)
    assert source == "doctor"
    assert timing.morning.start == time(8)

    timing, source = resolve_timing(None, hospital)
    assert source == "hospital"
    assert timing.morning.start == time(9)

    timing, source = resolve_timing(None, None)
    assert source == "default"
    assert timing == ShiftTimingConfig()


def test_day_span_uses_earliest_start_and_latest_end():
    timing = ShiftTimingConfig()
    span = build_day_span(DayBands(day_of_week=1, morning=True, evening=True), timing)
    assert span.is_working
    assert (span.shift_start, span.shift_end) == (time(6), time(22))


def test_night_only_day_ends_before_it_starts():
    span = build_day_span(DayBands(day_of_week=1, night=True), ShiftTimingConfig())
    assert (span.shift_start, span.shift_end) == (time(22), time(6))


def test_day_off_has_no_span():
    span = build_day_span(DayBands(day_of_week=0), ShiftTimingConfig())
    assert not span.is_working
    assert span.shift_start is None and span.shift_end is None


def test_morning_and_night_keep_the_gap_closed():
    windows = band_windows(
        DayBands(day_of_week=1, morning=True, night=True), ShiftTimingConfig()
    )
    assert [w.band for w in windows] == [ShiftBand.MORNING, ShiftBand.NIGHT]
    assert windows[0].end == 14 * 60
    assert windows[1].start == 22 * 60
    assert windows[1].wraps


def test_normalize_week_fills_missing_days():
    week = normalize_week([DayBands(day_of_week=3, evening=True)])
    assert len(week) == 7
    assert week[3].evening
    assert not any(day.is_working for i, day in enumerate(week) if i != 3)


def test_normalize_week_rejects_duplicates():
    with pytest.raises(ValidationError):
        normalize_week([DayBands(day_of_week=2), DayBands(day_of_week=2, morning=True)])


def test_default_week_is_weekday_mornings():
    week = default_week()
    assert [day.day_of_week for day in week if day.morning] == [1, 2, 3, 4, 5]
    assert not any(day.evening or day.night for day in week)
