# app/api/v1/__init__.py
from fastapi import APIRouter

from .conflict_router import *
from .schedule_router import *
from .slot_router import *

api_v1_router = APIRouter(prefix="/v1")
api_v1_router.include_router(conflict_router)
api_v1_router.include_router(schedule_router)
api_v1_router.include_router(slot_router)

__all__ = ["api_v1_router", "conflict_router", "schedule_router", "slot_router"]
