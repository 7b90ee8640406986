# app/services/v1/slot_service.py
from datetime import date
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from common.api_error import NotFoundError, ValidationError
from common.logger import get_app_logger
from app.db.models import Slot, SlotStatus

logger = get_app_logger(__name__)


class SlotService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_slots(
        self,
        hospital_id: str,
        doctor_id: str,
        start: date,
        end: date,
        status: Optional[SlotStatus] = None,
    ) -> List[Slot]:
        if end < start:
            raise ValidationError(f"End date {end} is before start date {start}")

        query = (
            select(Slot)
            .where(
                Slot.hospital_id == hospital_id,
                Slot.doctor_id == doctor_id,
                Slot.slot_date >= start,
                Slot.slot_date <= end,
            )
            .order_by(Slot.slot_date, Slot.start_time)
            .execution_options(logging_token="SlotService.list_slots")
        )
        if status is not None:
            query = query.where(Slot.status == status)
        return list((await self.db.execute(query)).scalars().all())

    async def get_slot(self, hospital_id: str, slot_id: str) -> Slot:
        query = select(Slot).where(
            Slot.slot_id == slot_id, Slot.hospital_id == hospital_id
        )
        slot = (await self.db.execute(query)).scalar_one_or_none()
        if slot is None:
            raise NotFoundError(f"Slot {slot_id} not found")
        return slot

    async def block_slot(self, hospital_id: str, slot_id: str) -> Slot:
        """Withhold an open slot from booking."""
        return await self._transition(
            hospital_id, slot_id, SlotStatus.OPEN, SlotStatus.BLOCKED
        )

    async def unblock_slot(self, hospital_id: str, slot_id: str) -> Slot:
        return await self._transition(
            hospital_id, slot_id, SlotStatus.BLOCKED, SlotStatus.OPEN
        )

    async def _transition(
        self,
        hospital_id: str,
        slot_id: str,
        expected: SlotStatus,
        target: SlotStatus,
    ) -> Slot:
        slot = await self.get_slot(hospital_id, slot_id)
        if slot.status != expected:
            raise ValidationError(
                f"Only {expected.value} slots can be set to {target.value}; "
                f"slot {slot_id} is {slot.status.value}"
            )
        slot.status = target
        await self.db.flush()
        logger.info("Slot status changed", slot_id=slot_id, status=target.value)
        return slot

    async def latest_slot_date(self, hospital_id: str, doctor_id: str) -> Optional[date]:
        """Last date that has any slot; used to decide when to extend generation."""
        query = select(func.max(Slot.slot_date)).where(
            Slot.hospital_id == hospital_id, Slot.doctor_id == doctor_id
        )
        return (await self.db.execute(query)).scalar_one_or_none()


__all__ = ["SlotService"]
