# app/api/v1/deps.py
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from common.config import SchedulingConfig
from app.db import get_db
from app.services.v1 import ConflictResolver


async def get_hospital_id(
    x_hospital_id: str = Header(..., alias="X-Hospital-ID", min_length=1),
) -> str:
    """Tenant of the (already authorized) caller."""
    return x_hospital_id


def get_scheduling_config(request: Request) -> SchedulingConfig:
    return getattr(request.app.state, "scheduling_config", None) or SchedulingConfig()


async def get_conflict_resolver(
    db: AsyncSession = Depends(get_db),
    scheduling: SchedulingConfig = Depends(get_scheduling_config),
) -> ConflictResolver:
    return ConflictResolver(db, scheduling)


__all__ = ["get_hospital_id", "get_scheduling_config", "get_conflict_resolver"]
