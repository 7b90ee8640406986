# app/db/schemas/__init__.py
from .schedule_schemas import *
from .time_off_schemas import *
from .slot_schemas import *
from .conflict_schemas import *
from .doctor_schema import *
from .patient_schema import *
