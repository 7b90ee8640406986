# app/services/v1/time_off_service.py
from datetime import date, timedelta
from typing import Iterable, List, Optional, Protocol, Set

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from common.api_error import ValidationError
from common.logger import get_app_logger
from app.db.models import TimeOffEntry

logger = get_app_logger(__name__)


class DateRangeLike(Protocol):
    start_date: date
    end_date: date


def validate_time_off_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValidationError(
            f"Time-off end date {end_date} is before start date {start_date}"
        )


def blocked_dates(entries: Iterable[DateRangeLike], start: date, end: date) -> Set[date]:
    """Union of all entries, clipped to ``[start, end]``. Overlaps are fine."""
    blocked: Set[date] = set()
    for entry in entries:
        current = max(entry.start_date, start)
        last = min(entry.end_date, end)
        while current <= last:
            blocked.add(current)
            current += timedelta(days=1)
    return blocked


class TimeOffLedger:
    """Time-off entries for doctors. Callers own the transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(
        self,
        doctor_id: str,
        start_date: date,
        end_date: date,
        reason: Optional[str] = None,
    ) -> TimeOffEntry:
        validate_time_off_range(start_date, end_date)
        entry = TimeOffEntry(
            doctor_id=doctor_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
        )
        self.db.add(entry)
        await self.db.flush()
        logger.info(
            "Time off added",
            doctor_id=doctor_id,
            time_off_id=entry.time_off_id,
            start_date=str(start_date),
            end_date=str(end_date),
        )
        return entry

    async def remove(self, doctor_id: str, time_off_id: str) -> bool:
        """Idempotent. Returns False when the entry was already gone."""
        result = await self.db.execute(
            delete(TimeOffEntry).where(
                TimeOffEntry.time_off_id == time_off_id,
                TimeOffEntry.doctor_id == doctor_id,
            )
        )
        removed = bool(result.rowcount)
        logger.info(
            "Time off removed" if removed else "Time off already removed",
            doctor_id=doctor_id,
            time_off_id=time_off_id,
        )
        return removed

    async def list_entries(
        self,
        doctor_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[TimeOffEntry]:
        """Entries intersecting ``[start, end]``; either bound may be open."""
        query = (
            select(TimeOffEntry)
            .where(TimeOffEntry.doctor_id == doctor_id)
            .order_by(TimeOffEntry.start_date)
            .execution_options(logging_token="TimeOffLedger.list_entries")
        )
        if start is not None:
            query = query.where(TimeOffEntry.end_date >= start)
        if end is not None:
            query = query.where(TimeOffEntry.start_date <= end)
        return list((await self.db.execute(query)).scalars().all())

    async def blocked_dates(self, doctor_id: str, start: date, end: date) -> Set[date]:
        return blocked_dates(await self.list_entries(doctor_id, start, end), start, end)


__all__ = [
    "TimeOffLedger",
    "blocked_dates",
    "validate_time_off_range",
]
