# app/services/v1/__init__.py
from .shift_model import *
from .time_off_service import *
from .slot_generator import *
from .schedule_service import *
from .doctor_locks import *
from .conflict_service import *
from .slot_service import *
from .edit_flow import *
