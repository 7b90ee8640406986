"""scheduling core tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False)


def upgrade() -> None:
    op.create_table(
        "hospitals",
        sa.Column("hospital_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("shift_timing_config", sa.JSON(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "doctors",
        sa.Column("doctor_id", sa.String(36), primary_key=True),
        sa.Column("doctor_code", sa.String(12), nullable=False, unique=True),
        sa.Column(
            "hospital_id",
            sa.String(36),
            sa.ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("specialty", sa.String(50), nullable=True),
        sa.Column("contact_info", sa.Text(), nullable=False),
        sa.Column(
            "appointment_duration_minutes",
            sa.Integer(),
            nullable=False,
            server_default="30",
        ),
        sa.Column("shift_timing_config", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "appointment_duration_minutes IN (10, 15, 20, 30, 45, 60)",
            name="ck_doctors_appointment_duration",
        ),
    )
    op.create_index("ix_doctors_hospital_id", "doctors", ["hospital_id"])

    op.create_table(
        "patients",
        sa.Column("patient_id", sa.String(36), primary_key=True),
        sa.Column("patient_code", sa.String(10), nullable=False, unique=True),
        sa.Column(
            "hospital_id",
            sa.String(36),
            sa.ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("contact_info", sa.String(200), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_patients_hospital_id", "patients", ["hospital_id"])

    op.create_table(
        "weekly_shifts",
        sa.Column("shift_id", sa.String(36), primary_key=True),
        sa.Column(
            "doctor_id",
            sa.String(36),
            sa.ForeignKey("doctors.doctor_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=False),
        sa.Column("morning", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("evening", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("night", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("doctor_id", "day_of_week", name="uq_weekly_shifts_doctor_day"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_weekly_shifts_day"),
    )

    op.create_table(
        "doctor_time_off",
        sa.Column("time_off_id", sa.String(36), primary_key=True),
        sa.Column(
            "doctor_id",
            sa.String(36),
            sa.ForeignKey("doctors.doctor_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(200), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("end_date >= start_date", name="ck_doctor_time_off_range"),
    )
    op.create_index(
        "ix_doctor_time_off_doctor_dates",
        "doctor_time_off",
        ["doctor_id", "start_date", "end_date"],
    )

    op.create_table(
        "appointment_slots",
        sa.Column("slot_id", sa.String(36), primary_key=True),
        sa.Column(
            "hospital_id",
            sa.String(36),
            sa.ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "doctor_id",
            sa.String(36),
            sa.ForeignKey("doctors.doctor_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.SmallInteger(), nullable=False),
        sa.Column("period", _enum("slot_period", "morning", "evening", "night"), nullable=False),
        sa.Column("status", _enum("slot_status", "open", "booked", "blocked"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "doctor_id", "slot_date", "start_time", name="uq_appointment_slots_doctor_start"
        ),
    )
    op.create_index(
        "ix_appointment_slots_doctor_date",
        "appointment_slots",
        ["doctor_id", "slot_date"],
    )

    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(36), primary_key=True),
        sa.Column(
            "hospital_id",
            sa.String(36),
            sa.ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "patient_id",
            sa.String(36),
            sa.ForeignKey("patients.patient_id"),
            nullable=False,
        ),
        sa.Column(
            "doctor_id",
            sa.String(36),
            sa.ForeignKey("doctors.doctor_id"),
            nullable=False,
        ),
        sa.Column(
            "slot_id",
            sa.String(36),
            sa.ForeignKey("appointment_slots.slot_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column(
            "status",
            _enum(
                "appointment_status",
                "scheduled",
                "confirmed",
                "completed",
                "cancelled",
                "no_show",
            ),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.String(200), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_appointments_doctor_date",
        "appointments",
        ["doctor_id", "appointment_date"],
    )

    op.create_table(
        "queue_entries",
        sa.Column("queue_entry_id", sa.String(36), primary_key=True),
        sa.Column(
            "hospital_id",
            sa.String(36),
            sa.ForeignKey("hospitals.hospital_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "doctor_id", sa.String(36), sa.ForeignKey("doctors.doctor_id"), nullable=False
        ),
        sa.Column(
            "patient_id", sa.String(36), sa.ForeignKey("patients.patient_id"), nullable=True
        ),
        sa.Column(
            "appointment_id",
            sa.String(36),
            sa.ForeignKey("appointments.appointment_id"),
            nullable=True,
        ),
        sa.Column("queue_date", sa.Date(), nullable=False),
        sa.Column("queue_number", sa.Integer(), nullable=False),
        sa.Column("entry_type", _enum("queue_entry_type", "walk_in", "scheduled"), nullable=False),
        sa.Column(
            "status",
            _enum(
                "queue_status",
                "queued",
                "waiting",
                "with_doctor",
                "completed",
                "no_show",
                "left",
            ),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index(
        "ix_queue_entries_doctor_date", "queue_entries", ["doctor_id", "queue_date"]
    )
    op.create_index("ix_queue_entries_appointment", "queue_entries", ["appointment_id"])


def downgrade() -> None:
    op.drop_table("queue_entries")
    op.drop_table("appointments")
    op.drop_table("appointment_slots")
    op.drop_table("doctor_time_off")
    op.drop_table("weekly_shifts")
    op.drop_table("patients")
    op.drop_table("doctors")
    op.drop_table("hospitals")
