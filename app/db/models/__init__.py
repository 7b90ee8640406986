# app/db/models/__init__.py
from .db_base_model import *
from .hospital_table import *
from .doctor_table import *
from .patient_table import *
from .schedules import *
from .time_off_table import *
from .slot_table import *
from .appointment_table import *
from .queue_entry_table import *
