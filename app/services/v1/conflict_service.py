# app/services/v1/conflict_service.py
"""
Two-phase schedule changes.

``check_conflicts`` is a dry run: it overlays the proposed change on the
stored configuration, generates the slots that would exist and lists every
active appointment that would lose its slot. ``apply_change`` repeats that
evaluation against live state while holding the doctor's lock, refuses to
go on if the result differs from what the caller confirmed, and then cancels,
persists and regenerates inside one transaction.
"""

import hashlib
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select, update, delete, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from common.api_error import AppError, ConflictsChangedError, PersistenceError
from common.config import SchedulingConfig
from common.logger import get_app_logger
from common.scripts.get_date_range import get_hospital_today
from app.db.models import (
    ACTIVE_APPOINTMENT_STATUSES,
    ACTIVE_QUEUE_STATUSES,
    Appointment,
    AppointmentStatus,
    DbBaseModel,
    Doctor,
    Hospital,
    Patient,
    QueueEntry,
    QueueStatus,
    Slot,
    SlotStatus,
    utc_now,
)
from app.db.schemas import (
    CandidateSlot,
    ConflictEntry,
    ConflictReport,
    ConflictSummary,
    DateRange,
    Horizon,
    ProposedChange,
    RegenerateResponse,
    SlotKey,
    SlotPlan,
)
from .doctor_locks import DoctorLockRegistry, doctor_locks
from .schedule_service import DoctorScheduleService, overlay_change
from .slot_generator import (
    generate_slots,
    generation_window,
    plan_slots,
    slot_key,
    validate_horizon,
)
from .time_off_service import blocked_dates

logger = get_app_logger(__name__)

# Keeps IN (...) lists under SQLite's bound parameter limit
_CHUNK = 500


def _chunks(items: Sequence[str]) -> Iterable[Sequence[str]]:
    for index in range(0, len(items), _CHUNK):
        yield items[index : index + _CHUNK]


def _appointment_key(appointment: Appointment) -> SlotKey:
    return (appointment.appointment_date, appointment.start_time, appointment.end_time)


@dataclass
class Evaluation:
    doctor: Doctor
    horizon: Horizon
    candidates: List[CandidateSlot]
    plan: SlotPlan[Slot]
    conflicts: List[ConflictEntry]
    conflicting: List[Appointment]
    # Active appointments without a usable slot whose key is being created
    orphans: Dict[SlotKey, Appointment] = field(default_factory=dict)

    @property
    def conflict_ids(self) -> List[str]:
        return [c.appointment_id for c in self.conflicts]

    @property
    def fingerprint(self) -> str:
        digest = hashlib.sha256()
        for part in (
            sorted(self.conflict_ids),
            sorted(slot.slot_id for slot in self.plan.to_delete),
            sorted(
                f"{d.isoformat()}T{s.isoformat()}-{e.isoformat()}"
                for d, s, e in (c.key for c in self.plan.to_create)
            ),
        ):
            digest.update(",".join(part).encode())
            digest.update(b"|")
        return digest.hexdigest()


class ConflictResolver:
    def __init__(
        self,
        db: AsyncSession,
        scheduling: Optional[SchedulingConfig] = None,
        locks: DoctorLockRegistry = doctor_locks,
    ):
        self.db = db
        self.scheduling = scheduling or SchedulingConfig()
        self.locks = locks
        self.schedules = DoctorScheduleService(db)

    def resolve_horizon(self, hospital: Hospital, horizon: Optional[Horizon]) -> Horizon:
        """Explicit horizons are bounds-checked; the default starts at hospital-local today."""
        if horizon is not None:
            return validate_horizon(horizon, self.scheduling.max_horizon_days)
        today = get_hospital_today(hospital.timezone)
        return Horizon(start=today, end=today + timedelta(days=self.scheduling.horizon_days))

    async def _evaluate(
        self,
        hospital_id: str,
        doctor_id: str,
        change: Optional[ProposedChange],
        horizon: Optional[Horizon],
    ) -> Evaluation:
        doctor = await self.schedules.get_doctor(hospital_id, doctor_id)
        hospital = await self.schedules.get_hospital(hospital_id)
        horizon = self.resolve_horizon(hospital, horizon)
        window = generation_window(horizon)

        snapshot = await self.schedules.load_snapshot(
            doctor, hospital, window.start, window.end
        )
        if change is not None:
            snapshot = overlay_change(snapshot, change)

        candidates = generate_slots(
            snapshot.week,
            snapshot.timing,
            snapshot.duration,
            blocked_dates(snapshot.time_off, window.start, window.end),
            horizon,
        )

        existing = (
            await self.db.execute(
                select(Slot)
                .where(
                    Slot.doctor_id == doctor_id,
                    Slot.slot_date >= horizon.start,
                    Slot.slot_date <= horizon.end,
                )
                .execution_options(logging_token="ConflictResolver.existing_slots")
            )
        ).scalars().all()
        plan = plan_slots(candidates, existing)

        appointments = (
            await self.db.execute(
                select(Appointment, Patient.name)
                .outerjoin(Patient, Patient.patient_id == Appointment.patient_id)
                .where(
                    Appointment.doctor_id == doctor_id,
                    Appointment.appointment_date >= horizon.start,
                    Appointment.appointment_date <= horizon.end,
                    Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
                )
                .order_by(Appointment.appointment_date, Appointment.start_time)
                .execution_options(logging_token="ConflictResolver.active_appointments")
            )
        ).all()

        candidate_keys = {candidate.key for candidate in candidates}
        creating = {candidate.key for candidate in plan.to_create}
        deleting = {slot.slot_id for slot in plan.to_delete}
        surviving = {slot.slot_id for slot in existing} - deleting

        conflicting: List[tuple] = []
        orphans: Dict[SlotKey, Appointment] = {}
        for appointment, patient_name in appointments:
            key = _appointment_key(appointment)
            if key not in candidate_keys:
                conflicting.append((appointment, patient_name))
            elif key in creating and appointment.slot_id not in surviving:
                # Unlinked, or linked to a slot that is gone or being replaced
                orphans.setdefault(key, appointment)

        queue_by_appointment = await self._active_queue_entries(
            [appointment.appointment_id for appointment, _ in conflicting]
        )

        conflicts = []
        for appointment, patient_name in conflicting:
            entry = queue_by_appointment.get(appointment.appointment_id)
            conflicts.append(
                ConflictEntry(
                    appointment_id=appointment.appointment_id,
                    patient_id=appointment.patient_id,
                    patient_name=patient_name,
                    appointment_date=appointment.appointment_date,
                    start_time=appointment.start_time,
                    end_time=appointment.end_time,
                    status=appointment.status,
                    has_queue_entry=entry is not None,
                    queue_entry_id=entry.queue_entry_id if entry is not None else None,
                )
            )

        return Evaluation(
            doctor=doctor,
            horizon=horizon,
            candidates=candidates,
            plan=plan,
            conflicts=conflicts,
            conflicting=[appointment for appointment, _ in conflicting],
            orphans=orphans,
        )

    async def _active_queue_entries(
        self, appointment_ids: Sequence[str]
    ) -> Dict[str, QueueEntry]:
        found: Dict[str, QueueEntry] = {}
        for chunk in _chunks(appointment_ids):
            rows = (
                await self.db.execute(
                    select(QueueEntry)
                    .where(
                        QueueEntry.appointment_id.in_(chunk),
                        QueueEntry.status.in_(ACTIVE_QUEUE_STATUSES),
                    )
                    .order_by(QueueEntry.queue_date.desc())
                )
            ).scalars()
            for entry in rows:
                found.setdefault(entry.appointment_id, entry)
        return found

    async def check_conflicts(
        self,
        hospital_id: str,
        doctor_id: str,
        change: Optional[ProposedChange] = None,
        horizon: Optional[Horizon] = None,
    ) -> ConflictReport:
        """
        Preview a change. Reads only; safe to call repeatedly and concurrently.

        Raises:
            NotFoundError: doctor is not in this hospital
            ValidationError: the change or the horizon is malformed
        """
        evaluation = await self._evaluate(hospital_id, doctor_id, change, horizon)
        report = self._build_report(evaluation, change)
        logger.info(
            "Conflict preview",
            doctor_id=doctor_id,
            change_type=report.change_type,
            conflicts=report.summary.total_appointments,
            queue_entries=report.summary.total_queue_entries,
            slots_to_delete=report.summary.slots_to_delete,
            slots_to_create=report.summary.slots_to_create,
        )
        return report

    @staticmethod
    def _build_report(
        evaluation: Evaluation, change: Optional[ProposedChange]
    ) -> ConflictReport:
        conflicts = evaluation.conflicts
        if conflicts:
            dates = [c.appointment_date for c in conflicts]
            date_range = DateRange(start=min(dates), end=max(dates))
        else:
            date_range = DateRange(
                start=evaluation.horizon.start, end=evaluation.horizon.start
            )

        return ConflictReport(
            doctor_id=evaluation.doctor.doctor_id,
            change_type=change.change_type if change is not None else None,
            horizon=evaluation.horizon,
            conflicts=conflicts,
            summary=ConflictSummary(
                total_appointments=len(conflicts),
                total_queue_entries=sum(1 for c in conflicts if c.has_queue_entry),
                date_range=date_range,
                slots_to_delete=len(evaluation.plan.to_delete),
                slots_to_create=len(evaluation.plan.to_create),
            ),
            fingerprint=evaluation.fingerprint,
        )

    async def _advisory_lock_doctor(self, doctor_id: str) -> None:
        """Cross-process serialization; SQLite already serializes writers."""
        if self.db.get_bind().dialect.name == "postgresql":
            await self.db.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
                {"key": f"doctor-schedule:{doctor_id}"},
            )

    async def apply_change(
        self,
        hospital_id: str,
        doctor_id: str,
        cancel_appointment_ids: Sequence[str],
        change: Optional[ProposedChange] = None,
        horizon: Optional[Horizon] = None,
        expected_fingerprint: Optional[str] = None,
    ) -> RegenerateResponse:
        """
        Commit a change: cancel the confirmed appointments, persist the
        configuration and regenerate slots, all in one transaction.

        ``cancel_appointment_ids`` must be exactly the live conflict set.

        Raises:
            ConflictsChangedError: live state differs from what was confirmed
            PersistenceError: the database write failed; nothing was saved
        """
        log = logger.bind(doctor_id=doctor_id, hospital_id=hospital_id)
        async with self.locks.hold(doctor_id):
            try:
                await self._advisory_lock_doctor(doctor_id)
                evaluation = await self._evaluate(hospital_id, doctor_id, change, horizon)

                if expected_fingerprint and expected_fingerprint != evaluation.fingerprint:
                    raise ConflictsChangedError()
                if set(cancel_appointment_ids) != set(evaluation.conflict_ids):
                    raise ConflictsChangedError()

                log.info(
                    "Applying schedule change",
                    change_type=change.change_type if change is not None else None,
                    cancelling=len(evaluation.conflicting),
                    slots_to_delete=len(evaluation.plan.to_delete),
                    slots_to_create=len(evaluation.plan.to_create),
                )

                cancelled = await self._cancel_appointments(evaluation.conflicting)
                if change is not None:
                    await self.schedules.persist_change(evaluation.doctor, change)
                deleted = await self._delete_slots(evaluation.plan.to_delete)
                generated = await self._insert_slots(hospital_id, doctor_id, evaluation)

                await self.db.commit()
            except ConflictsChangedError:
                await self.db.rollback()
                log.warning(
                    "Schedule changed since preview",
                    requested=sorted(cancel_appointment_ids),
                )
                raise
            except AppError:
                await self.db.rollback()
                raise
            except SQLAlchemyError as exc:
                await self.db.rollback()
                log.error("Failed to save schedule", error=str(exc))
                raise PersistenceError() from exc

        log.info(
            "Schedule change applied",
            cancelled=cancelled,
            slots_deleted=deleted,
            slots_generated=generated,
        )
        return RegenerateResponse(
            cancelled=cancelled, slots_deleted=deleted, slots_generated=generated
        )

    async def _cancel_appointments(self, appointments: Sequence[Appointment]) -> int:
        if not appointments:
            return 0
        now = utc_now()
        for appointment in appointments:
            appointment.status = AppointmentStatus.CANCELLED
            appointment.cancellation_reason = self.scheduling.cancellation_reason
            appointment.cancelled_at = now
            appointment.slot_id = None

        ids = [appointment.appointment_id for appointment in appointments]
        for chunk in _chunks(ids):
            await self.db.execute(
                update(QueueEntry)
                .where(
                    QueueEntry.appointment_id.in_(chunk),
                    QueueEntry.status.in_(ACTIVE_QUEUE_STATUSES),
                )
                .values(status=QueueStatus.LEFT)
            )
        await self.db.flush()
        return len(appointments)

    async def _delete_slots(self, slots: Sequence[Slot]) -> int:
        ids = [slot.slot_id for slot in slots]
        for chunk in _chunks(ids):
            # Historical bookings keep their row, only the link goes
            await self.db.execute(
                update(Appointment)
                .where(Appointment.slot_id.in_(chunk))
                .values(slot_id=None)
            )
            await self.db.execute(delete(Slot).where(Slot.slot_id.in_(chunk)))
        return len(ids)

    async def _insert_slots(
        self, hospital_id: str, doctor_id: str, evaluation: Evaluation
    ) -> int:
        new_slots = []
        for candidate in evaluation.plan.to_create:
            slot = Slot(
                slot_id=DbBaseModel.generate_uuid(),
                hospital_id=hospital_id,
                doctor_id=doctor_id,
                slot_date=candidate.slot_date,
                start_time=candidate.start_time,
                end_time=candidate.end_time,
                duration_minutes=candidate.duration_minutes,
                period=candidate.period,
                status=SlotStatus.OPEN,
            )
            holder = evaluation.orphans.get(candidate.key)
            if holder is not None:
                slot.status = SlotStatus.BOOKED
                holder.slot_id = slot.slot_id
            new_slots.append(slot)

        self.db.add_all(new_slots)
        await self.db.flush()
        return len(new_slots)


__all__ = ["ConflictResolver", "Evaluation"]
