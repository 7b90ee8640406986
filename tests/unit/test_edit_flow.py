import pytest
from datetime import date, time

from app.db.models import AppointmentStatus
from app.db.schemas import (
    ConflictEntry,
    ConflictReport,
    ConflictSummary,
    DateRange,
    Horizon,
)
from app.services.v1.edit_flow import EditState, InvalidTransitionError, ScheduleEditFlow

DAY = date(2030, 1, 7)


def _report(*appointment_ids):
    conflicts = [
        ConflictEntry(
            appointment_id=appointment_id,
            patient_id="patient-1",
            appointment_date=DAY,
            start_time=time(9),
            end_time=time(9, 30),
            status=AppointmentStatus.SCHEDULED,
        )
        for appointment_id in appointment_ids
    ]
    return ConflictReport(
        doctor_id="doc-1",
        change_type="duration",
        horizon=Horizon(start=DAY, end=DAY),
        conflicts=conflicts,
        summary=ConflictSummary(
            total_appointments=len(conflicts),
            total_queue_entries=0,
            date_range=DateRange(start=DAY, end=DAY),
            slots_to_delete=0,
            slots_to_create=0,
        ),
        fingerprint="abc123",
    )


def test_no_conflicts_goes_straight_to_commit():
    flow = ScheduleEditFlow()
    flow.request_preview()

    assert flow.preview_received(_report()) == []
    assert flow.state == EditState.COMMITTING

    flow.commit_succeeded()
    assert flow.state == EditState.DONE


def test_conflicts_require_confirmation():
    flow = ScheduleEditFlow({"duration": 45})
    flow.request_preview()
    flow.preview_received(_report("a-1", "a-2"))

    assert flow.state == EditState.CONFLICTS_SHOWN
    assert flow.fingerprint == "abc123"
    assert flow.confirm() == ["a-1", "a-2"]
    assert flow.state == EditState.COMMITTING


def test_cannot_commit_without_confirming():
    flow = ScheduleEditFlow()
    flow.request_preview()
    flow.preview_received(_report("a-1"))

    with pytest.raises(InvalidTransitionError):
        flow.commit_succeeded()


def test_dismiss_returns_to_editing():
    flow = ScheduleEditFlow({"duration": 45})
    flow.request_preview()
    flow.preview_received(_report("a-1"))
    flow.dismiss()

    assert flow.state == EditState.EDITING
    assert flow.report is None
    flow.edit(duration=60)
    assert flow.form == {"duration": 60}


def test_conflicts_changed_requests_new_preview():
    flow = ScheduleEditFlow()
    flow.request_preview()
    flow.preview_received(_report("a-1"))
    flow.confirm()
    flow.conflicts_changed()

    assert flow.state == EditState.PREVIEW_PENDING
    assert flow.fingerprint is None


def test_failure_keeps_form_for_retry():
    flow = ScheduleEditFlow({"duration": 45})
    flow.request_preview()
    flow.commit_failed("Failed to save schedule")

    assert flow.state == EditState.ERROR
    assert flow.error == "Failed to save schedule"

    flow.retry()
    assert flow.state == EditState.EDITING
    assert flow.error is None
    assert flow.form == {"duration": 45}


def test_editing_is_locked_during_preview():
    flow = ScheduleEditFlow()
    flow.request_preview()
    with pytest.raises(InvalidTransitionError, match="Cannot edit while preview_pending"):
        flow.edit(duration=60)
