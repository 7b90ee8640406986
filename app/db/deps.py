# app/db/deps.py
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import AsyncGenerator


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. The manager is created in the app lifespan and
    read from app.state so several app instances can coexist (tests).
    """
    manager = getattr(request.app.state, "db_manager", None)

    if not manager:
        raise RuntimeError(
            "DbManager not found in app.state. Ensure lifespan is configured."
        )

    async with manager.session() as session:
        yield session


get_session = get_db

__all__ = ["get_session", "get_db"]
