# scripts/db/data_template.py
"""
Templates for seed data. Compose them into DEFAULT_DATA_TEMPLATE.

    Example: night clinic
        template = {**DEFAULT_DATA_TEMPLATE, "hospital": NIGHT_CLINIC_TEMPLATE}
"""

from datetime import date
from typing import Any

HOSPITAL_DATA_TEMPLATE: dict[str, Any] = {
    "name": "General Hospital",
    "timezone": "UTC",
}

NIGHT_CLINIC_TEMPLATE: dict[str, Any] = {
    "name": "Night Clinic",
    "timezone": "UTC",
    "shift_timing_config": {
        "morning": {"start": "07:00", "end": "12:00"},
        "evening": {"start": "13:00", "end": "19:00"},
        "night": {"start": "21:00", "end": "03:00"},
    },
}

PATIENT_DATA_TEMPLATE: dict[str, Any] = {
    "name": "Patient",
    "date_of_birth": date(1990, 1, 1),
    "contact_info": "555-0200",
}

DOCTOR_DATA_TEMPLATE: dict[str, Any] = {
    "name": "Dr. Smith",
    "specialty": "Cardiology",
    "contact_info": "555-0100",
    "appointment_duration_minutes": 30,
}

DEFAULT_DATA_TEMPLATE: dict[str, dict[str, Any]] = {
    "hospital": HOSPITAL_DATA_TEMPLATE,
    "doctors": DOCTOR_DATA_TEMPLATE,
    "patients": PATIENT_DATA_TEMPLATE,
}

__all__ = [
    "DEFAULT_DATA_TEMPLATE",
    "HOSPITAL_DATA_TEMPLATE",
    "NIGHT_CLINIC_TEMPLATE",
    "DOCTOR_DATA_TEMPLATE",
    "PATIENT_DATA_TEMPLATE",
]
