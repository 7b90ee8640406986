import pytest
from datetime import time, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import OperationalError

from common.api_error import (
    ConflictsChangedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.db.models import (
    Appointment,
    AppointmentStatus,
    Doctor,
    Hospital,
    QueueEntry,
    QueueStatus,
    Slot,
    SlotStatus,
    TimeOffEntry,
    WeeklyShift,
)
from app.db.schemas import (
    DurationChange,
    Horizon,
    ScheduleChange,
    TimeOffChange,
)
from app.services.v1 import ConflictResolver, DoctorScheduleService, TimeOffLedger
from tests.conftest import MONDAY, day_horizon

DURATION_45 = DurationChange(payload={"appointment_duration_minutes": 45})
MONDAY_OFF = TimeOffChange(
    payload={"start_date": MONDAY, "end_date": MONDAY, "reason": "Conference"}
)


async def _slots(db_manager, doctor_id):
    async with db_manager.session_maker() as session:
        rows = await session.execute(
            select(Slot)
            .where(Slot.doctor_id == doctor_id)
            .order_by(Slot.slot_date, Slot.start_time)
        )
        return list(rows.scalars())


async def _get(db_manager, model, key):
    async with db_manager.session_maker() as session:
        return await session.get(model, key)


@pytest.fixture
async def doctor(make_doctor, run_resolver, hospital):
    """Weekday mornings 09:00-12:00 at 30 minutes, Monday slots generated."""
    doctor = await make_doctor()
    await run_resolver(
        "apply_change", hospital.hospital_id, doctor.doctor_id, [], horizon=day_horizon()
    )
    return doctor


async def test_initial_generation(db_manager, doctor):
    slots = await _slots(db_manager, doctor.doctor_id)
    assert [s.start_time for s in slots] == [
        time(9, 0),
        time(9, 30),
        time(10, 0),
        time(10, 30),
        time(11, 0),
        time(11, 30),
    ]
    assert all(s.status == SlotStatus.OPEN for s in slots)


async def test_regeneration_is_idempotent(db_manager, run_resolver, hospital, doctor):
    before = {s.slot_id for s in await _slots(db_manager, doctor.doctor_id)}

    result = await run_resolver(
        "apply_change", hospital.hospital_id, doctor.doctor_id, [], horizon=day_horizon()
    )

    assert (result.cancelled, result.slots_deleted, result.slots_generated) == (0, 0, 0)
    assert {s.slot_id for s in await _slots(db_manager, doctor.doctor_id)} == before


async def test_preview_writes_nothing(db_manager, run_resolver, hospital, doctor, book):
    appointment = await book(doctor.doctor_id, time(9, 30))

    report = await run_resolver(
        "check_conflicts", hospital.hospital_id, doctor.doctor_id, DURATION_45, day_horizon()
    )

    assert report.appointment_ids == [appointment.appointment_id]
    assert report.summary.slots_to_delete == 6
    assert report.summary.slots_to_create == 4
    assert (await _get(db_manager, Doctor, doctor.doctor_id)).appointment_duration_minutes == 30
    assert len(await _slots(db_manager, doctor.doctor_id)) == 6


async def test_preview_is_repeatable(run_resolver, hospital, doctor, book):
    await book(doctor.doctor_id, time(10, 0))
    args = ("check_conflicts", hospital.hospital_id, doctor.doctor_id, DURATION_45, day_horizon())

    first = await run_resolver(*args)
    second = await run_resolver(*args)

    assert first.fingerprint == second.fingerprint
    assert first.appointment_ids == second.appointment_ids


async def test_duration_change_cancels_confirmed_appointments(
    db_manager, run_resolver, hospital, doctor, book
):
    appointment = await book(doctor.doctor_id, time(10, 0))
    report = await run_resolver(
        "check_conflicts", hospital.hospital_id, doctor.doctor_id, DURATION_45, day_horizon()
    )

    result = await run_resolver(
        "apply_change",
        hospital.hospital_id,
        doctor.doctor_id,
        report.appointment_ids,
        change=DURATION_45,
        horizon=day_horizon(),
        expected_fingerprint=report.fingerprint,
    )

    assert (result.cancelled, result.slots_deleted, result.slots_generated) == (1, 6, 4)
    slots = await _slots(db_manager, doctor.doctor_id)
    assert [(s.start_time, s.end_time) for s in slots] == [
        (time(9, 0), time(9, 45)),
        (time(9, 45), time(10, 30)),
        (time(10, 30), time(11, 15)),
        (time(11, 15), time(12, 0)),
    ]
    assert all(s.status == SlotStatus.OPEN for s in slots)

    cancelled = await _get(db_manager, Appointment, appointment.appointment_id)
    assert cancelled.status == AppointmentStatus.CANCELLED
    assert cancelled.cancellation_reason == "Schedule change by hospital"
    assert cancelled.cancelled_at is not None
    assert cancelled.slot_id is None
    assert (await _get(db_manager, Doctor, doctor.doctor_id)).appointment_duration_minutes == 45


async def test_unconfirmed_conflicts_block_the_commit(
    db_manager, run_resolver, hospital, doctor, book
):
    appointment = await book(doctor.doctor_id, time(9, 30))

    with pytest.raises(ConflictsChangedError):
        await run_resolver(
            "apply_change",
            hospital.hospital_id,
            doctor.doctor_id,
            [],
            change=DURATION_45,
            horizon=day_horizon(),
        )

    assert (await _get(db_manager, Doctor, doctor.doctor_id)).appointment_duration_minutes == 30
    assert len(await _slots(db_manager, doctor.doctor_id)) == 6
    kept = await _get(db_manager, Appointment, appointment.appointment_id)
    assert kept.status == AppointmentStatus.SCHEDULED
    assert kept.slot_id is not None


async def test_failed_write_leaves_nothing_behind(
    db_manager, run_resolver, hospital, doctor, book, monkeypatch
):
    appointment = await book(doctor.doctor_id, time(10, 0))
    before = [(s.slot_id, s.status) for s in await _slots(db_manager, doctor.doctor_id)]
    report = await run_resolver(
        "check_conflicts", hospital.hospital_id, doctor.doctor_id, DURATION_45, day_horizon()
    )

    async def fail_insert(self, hospital_id, doctor_id, evaluation):
        raise OperationalError("INSERT INTO slots", {}, Exception("disk I/O error"))

    monkeypatch.setattr(ConflictResolver, "_insert_slots", fail_insert)

    with pytest.raises(PersistenceError):
        await run_resolver(
            "apply_change",
            hospital.hospital_id,
            doctor.doctor_id,
            report.appointment_ids,
            change=DURATION_45,
            horizon=day_horizon(),
            expected_fingerprint=report.fingerprint,
        )

    kept = await _get(db_manager, Appointment, appointment.appointment_id)
    assert kept.status == AppointmentStatus.SCHEDULED
    assert kept.cancelled_at is None
    assert (await _get(db_manager, Doctor, doctor.doctor_id)).appointment_duration_minutes == 30
    after = [(s.slot_id, s.status) for s in await _slots(db_manager, doctor.doctor_id)]
    assert after == before


async def test_extra_cancellations_are_refused(run_resolver, hospital, doctor, book):
    appointment = await book(doctor.doctor_id, time(9, 0))

    with pytest.raises(ConflictsChangedError):
        await run_resolver(
            "apply_change",
            hospital.hospital_id,
            doctor.doctor_id,
            [appointment.appointment_id],
            horizon=day_horizon(),
        )


async def test_stale_fingerprint_is_refused(db_manager, run_resolver, hospital, doctor):
    report = await run_resolver(
        "check_conflicts", hospital.hospital_id, doctor.doctor_id, DURATION_45, day_horizon()
    )
    assert not report.has_conflicts
    # Someone else touched the slot set after the preview was shown
    async with db_manager.session() as session:
        await session.execute(
            delete(Slot).where(
                Slot.doctor_id == doctor.doctor_id, Slot.start_time == time(9, 0)
            )
        )

    with pytest.raises(ConflictsChangedError):
        await run_resolver(
            "apply_change",
            hospital.hospital_id,
            doctor.doctor_id,
            [],
            change=DURATION_45,
            horizon=day_horizon(),
            expected_fingerprint=report.fingerprint,
        )


async def test_time_off_pulls_queue_entries(
    db_manager, run_resolver, hospital, doctor, book, enqueue
):
    appointment = await book(
        doctor.doctor_id, time(11, 0), status=AppointmentStatus.CONFIRMED
    )
    entry = await enqueue(appointment, QueueStatus.WAITING)

    report = await run_resolver(
        "check_conflicts", hospital.hospital_id, doctor.doctor_id, MONDAY_OFF, day_horizon()
    )
    assert len(report.conflicts) == 1
    conflict = report.conflicts[0]
    assert conflict.status == AppointmentStatus.CONFIRMED
    assert conflict.patient_name == "Jane Roe"
    assert conflict.has_queue_entry
    assert conflict.queue_entry_id == entry.queue_entry_id
    assert report.summary.total_queue_entries == 1

    await run_resolver(
        "apply_change",
        hospital.hospital_id,
        doctor.doctor_id,
        report.appointment_ids,
        change=MONDAY_OFF,
        horizon=day_horizon(),
    )

    assert await _slots(db_manager, doctor.doctor_id) == []
    assert (await _get(db_manager, QueueEntry, entry.queue_entry_id)).status == QueueStatus.LEFT
    assert (
        await _get(db_manager, Appointment, appointment.appointment_id)
    ).status == AppointmentStatus.CANCELLED


async def test_queue_entry_with_doctor_is_left_alone(
    run_resolver, db_manager, hospital, doctor, book, enqueue
):
    appointment = await book(doctor.doctor_id, time(9, 0))
    entry = await enqueue(appointment, QueueStatus.WITH_DOCTOR)

    report = await run_resolver(
        "check_conflicts", hospital.hospital_id, doctor.doctor_id, MONDAY_OFF, day_horizon()
    )
    assert not report.conflicts[0].has_queue_entry

    await run_resolver(
        "apply_change",
        hospital.hospital_id,
        doctor.doctor_id,
        report.appointment_ids,
        change=MONDAY_OFF,
        horizon=day_horizon(),
    )
    assert (
        await _get(db_manager, QueueEntry, entry.queue_entry_id)
    ).status == QueueStatus.WITH_DOCTOR


async def test_finished_appointments_are_not_conflicts(
    db_manager, run_resolver, hospital, doctor, book
):
    completed = await book(doctor.doctor_id, time(9, 0), status=AppointmentStatus.COMPLETED)

    report = await run_resolver(
        "check_conflicts", hospital.hospital_id, doctor.doctor_id, MONDAY_OFF, day_horizon()
    )
    assert report.conflicts == []

    await run_resolver(
        "apply_change",
        hospital.hospital_id,
        doctor.doctor_id,
        [],
        change=MONDAY_OFF,
        horizon=day_horizon(),
    )
    history = await _get(db_manager, Appointment, completed.appointment_id)
    assert history.status == AppointmentStatus.COMPLETED
    assert history.slot_id is None


async def test_every_lost_booking_is_reported(run_resolver, hospital, doctor, book):
    """Everything that loses its slot shows up; nothing is cancelled silently."""
    booked = [await book(doctor.doctor_id, time(h, m)) for h, m in ((9, 0), (10, 30), (11, 30))]

    report = await run_resolver(
        "check_conflicts",
        hospital.hospital_id,
        doctor.doctor_id,
        ScheduleChange(payload={"days": [{"day_of_week": 1, "evening": True}]}),
        day_horizon(),
    )

    assert sorted(report.appointment_ids) == sorted(a.appointment_id for a in booked)
    assert report.summary.date_range.start == MONDAY
    assert report.summary.date_range.end == MONDAY


async def test_kept_booking_survives_regeneration(
    db_manager, run_resolver, hospital, doctor, book
):
    """A 30 minute grid extended to the evening keeps the morning slots."""
    appointment = await book(doctor.doctor_id, time(9, 30))
    change = ScheduleChange(
        payload={"days": [{"day_of_week": 1, "morning": True, "evening": True}]}
    )

    result = await run_resolver(
        "apply_change",
        hospital.hospital_id,
        doctor.doctor_id,
        [],
        change=change,
        horizon=day_horizon(),
    )

    assert result.cancelled == 0
    assert result.slots_deleted == 0
    assert result.slots_generated == 16
    kept = await _get(db_manager, Appointment, appointment.appointment_id)
    slot = await _get(db_manager, Slot, kept.slot_id)
    assert slot.status == SlotStatus.BOOKED


async def test_removing_time_off_reopens_slots(db_manager, run_resolver, hospital, doctor):
    await run_resolver(
        "apply_change",
        hospital.hospital_id,
        doctor.doctor_id,
        [],
        change=MONDAY_OFF,
        horizon=day_horizon(),
    )
    assert await _slots(db_manager, doctor.doctor_id) == []

    async with db_manager.session_maker() as session:
        entry = (
            await session.execute(
                select(TimeOffEntry).where(TimeOffEntry.doctor_id == doctor.doctor_id)
            )
        ).scalar_one()

    removal = TimeOffChange(payload={"remove_time_off_id": entry.time_off_id})
    result = await run_resolver(
        "apply_change",
        hospital.hospital_id,
        doctor.doctor_id,
        [],
        change=removal,
        horizon=day_horizon(),
    )
    assert (result.slots_deleted, result.slots_generated) == (0, 6)

    # Removing it again is a no-op
    again = await run_resolver(
        "apply_change",
        hospital.hospital_id,
        doctor.doctor_id,
        [],
        change=removal,
        horizon=day_horizon(),
    )
    assert (again.slots_deleted, again.slots_generated) == (0, 0)


async def test_orphaned_booking_gets_its_slot_back(
    db_manager, run_resolver, hospital, doctor, book
):
    appointment = await book(doctor.doctor_id, time(10, 0))
    async with db_manager.session() as session:
        slot = await session.get(Slot, appointment.slot_id)
        await session.delete(slot)

    await run_resolver(
        "apply_change", hospital.hospital_id, doctor.doctor_id, [], horizon=day_horizon()
    )

    relinked = await _get(db_manager, Appointment, appointment.appointment_id)
    assert relinked.slot_id is not None
    slot = await _get(db_manager, Slot, relinked.slot_id)
    assert slot.status == SlotStatus.BOOKED
    assert slot.start_time == time(10, 0)


async def test_blocked_slot_is_kept_when_still_valid(
    db_manager, run_resolver, hospital, doctor
):
    async with db_manager.session() as session:
        slot = (
            await session.execute(
                select(Slot).where(
                    Slot.doctor_id == doctor.doctor_id, Slot.start_time == time(9, 0)
                )
            )
        ).scalar_one()
        slot.status = SlotStatus.BLOCKED

    await run_resolver(
        "apply_change", hospital.hospital_id, doctor.doctor_id, [], horizon=day_horizon()
    )

    assert (await _get(db_manager, Slot, slot.slot_id)).status == SlotStatus.BLOCKED


async def test_doctor_of_another_hospital_is_not_found(
    db_manager, run_resolver, make_doctor
):
    async with db_manager.session() as session:
        other = Hospital(name="Other Hospital")
        session.add(other)
        await session.flush()
    stranger = await make_doctor(hospital_id=other.hospital_id)

    with pytest.raises(NotFoundError):
        await run_resolver(
            "check_conflicts", "not-this-hospital", stranger.doctor_id, DURATION_45
        )


async def test_overlong_horizon_is_rejected(run_resolver, hospital, doctor):
    horizon = Horizon(start=MONDAY, end=MONDAY + timedelta(days=400))
    with pytest.raises(ValidationError):
        await run_resolver(
            "check_conflicts", hospital.hospital_id, doctor.doctor_id, DURATION_45, horizon
        )


async def test_invalid_change_writes_nothing(db_manager, run_resolver, hospital, doctor):
    with pytest.raises(ValidationError):
        await run_resolver(
            "apply_change",
            hospital.hospital_id,
            doctor.doctor_id,
            [],
            change=DurationChange(payload={"appointment_duration_minutes": 25}),
            horizon=day_horizon(),
        )
    assert len(await _slots(db_manager, doctor.doctor_id)) == 6


async def test_week_rows_are_updated_in_place(db_manager, run_resolver, hospital, doctor):
    async def _shift_ids():
        async with db_manager.session_maker() as session:
            rows = await session.execute(
                select(WeeklyShift.shift_id).where(WeeklyShift.doctor_id == doctor.doctor_id)
            )
            return set(rows.scalars())

    before = await _shift_ids()

    await run_resolver(
        "apply_change",
        hospital.hospital_id,
        doctor.doctor_id,
        [],
        change=ScheduleChange(payload={"days": [{"day_of_week": 1, "morning": True}]}),
        horizon=day_horizon(),
    )

    async with db_manager.session_maker() as session:
        schedule = await DoctorScheduleService(session).get_schedule(
            hospital.hospital_id, doctor.doctor_id
        )

    assert len(before) == 7
    assert await _shift_ids() == before
    assert len(schedule.days) == 7
    assert [d.day_of_week for d in schedule.days if d.is_working] == [1]
    assert schedule.timing_source == "hospital"
    assert schedule.days[1].shift_start == time(9, 0)
    assert schedule.days[1].shift_end == time(12, 0)


async def test_ledger_unions_and_clips_overlapping_entries(db_manager, doctor):
    async with db_manager.session() as session:
        ledger = TimeOffLedger(session)
        await ledger.add(doctor.doctor_id, MONDAY - timedelta(days=3), MONDAY + timedelta(days=1))
        await ledger.add(doctor.doctor_id, MONDAY + timedelta(days=1), MONDAY + timedelta(days=4))
        await ledger.add(doctor.doctor_id, MONDAY + timedelta(days=20), MONDAY + timedelta(days=21))

    async with db_manager.session_maker() as session:
        blocked = await TimeOffLedger(session).blocked_dates(
            doctor.doctor_id, MONDAY, MONDAY + timedelta(days=6)
        )

    assert blocked == {MONDAY + timedelta(days=n) for n in range(5)}
