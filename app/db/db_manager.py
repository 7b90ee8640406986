# app/db/db_manager.py
"""
Database manager focused on connection management and session handling.
Schema migrations are handled separately via Alembic CLI.

Design principles:
- Single responsibility: Connection/session management only
- Fail fast: Invalid configuration crashes on startup
- Explicit over implicit: No magic auto-migrations
"""

import ssl as ssl_module
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Any, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
    AsyncEngine,
)

from common import DatabaseConfig, get_app_logger
from common.context_vars import request_timer_context_var

logger = get_app_logger(__name__)


class DbManager:
    """
    Database connection and session manager.

    Usage:
        # Startup
        db_manager = DbManager.from_config(config.database)
        await db_manager.verify_connection()

        # Runtime
        async with db_manager.session() as session:
            result = await session.execute(...)

        # Shutdown
        await db_manager.dispose()
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 20,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True,
        echo: bool = False,
        slow_query_threshold: float = 0.5,
        connect_args: Optional[dict[str, Any]] = None,
    ):
        """
        Args:
            url: Database URL (postgresql+asyncpg:// or sqlite+aiosqlite://)
            pool_size: Persistent connections (ignored for SQLite)
            max_overflow: Additional connections beyond pool_size (ignored for SQLite)
            pool_timeout: Seconds to wait for a pooled connection (ignored for SQLite)
            pool_recycle: Recycle connections after N seconds (ignored for SQLite)
            pool_pre_ping: Test connections before using
            echo: Log all SQL statements
            slow_query_threshold: Seconds after which a statement is logged as slow
            connect_args: Driver-specific connection arguments (SSL, etc.)
        """
        self._validate_url(url)
        self.is_sqlite = url.startswith("sqlite")
        self.slow_query_threshold = slow_query_threshold

        engine_kwargs: dict[str, Any] = {
            "echo": echo,
            "pool_pre_ping": pool_pre_ping,
            "connect_args": connect_args or {},
        }
        if not self.is_sqlite:
            # SQLite's pools reject sizing arguments
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
            )

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._register_query_timing()

        logger.info(
            "DbManager initialized",
            dialect=self.engine.dialect.name,
            pool_size=None if self.is_sqlite else pool_size,
        )

    @classmethod
    def from_config(cls, config: DatabaseConfig, **kwargs: Any) -> "DbManager":
        """
        Create DbManager from DatabaseConfig with SSL support.

        Example:
            db_manager = DbManager.from_config(config.database)
        """
        connect_args = kwargs.pop("connect_args", {})

        if config.ssl_mode and config.driver.value == "asyncpg":
            mode = config.ssl_mode.value
            if mode == "disable":
                connect_args["ssl"] = False
            elif config.requires_ssl():
                ssl_context = ssl_module.create_default_context()
                if config.ssl_ca_path:
                    ssl_context.load_verify_locations(cafile=str(config.ssl_ca_path))
                if config.ssl_cert_path and config.ssl_key_path:
                    ssl_context.load_cert_chain(
                        certfile=str(config.ssl_cert_path),
                        keyfile=str(config.ssl_key_path),
                    )
                if mode != "verify-full":
                    ssl_context.check_hostname = False
                    if mode == "require":
                        ssl_context.verify_mode = ssl_module.CERT_NONE
                connect_args["ssl"] = ssl_context

        return cls(
            url=config.get_connection_url(include_password=True),
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            slow_query_threshold=config.slow_query_threshold,
            connect_args=connect_args,
            **kwargs,
        )

    @staticmethod
    def _validate_url(url: str) -> None:
        if not url or not url.startswith(
            ("postgresql+asyncpg://", "postgresql+psycopg://", "sqlite+aiosqlite://")
        ):
            raise ValueError(
                "Invalid database URL. Expected postgresql+asyncpg://, "
                f"postgresql+psycopg:// or sqlite+aiosqlite://, got: {url[:20]}..."
            )

    def _register_query_timing(self) -> None:
        """Feed per-statement timings into the current request timer."""
        threshold = self.slow_query_threshold

        @event.listens_for(self.engine.sync_engine, "before_cursor_execute")
        def _before(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault("query_start", []).append(time.perf_counter())

        @event.listens_for(self.engine.sync_engine, "after_cursor_execute")
        def _after(conn, cursor, statement, parameters, context, executemany):
            elapsed = time.perf_counter() - conn.info["query_start"].pop()
            timer = request_timer_context_var.get()
            if timer is not None:
                timer.record_query(elapsed * 1000)
            if elapsed > threshold:
                logger.warning(
                    "Slow query",
                    duration_ms=round(elapsed * 1000, 2),
                    statement=statement[:200],
                )

    async def verify_connection(self) -> None:
        """
        Verify database connection on startup.

        Raises:
            ConnectionError: If connection fails
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database connection verified")
        except Exception as e:
            logger.error("Database connection failed", error=str(e))
            raise ConnectionError(f"Failed to connect to database: {e}") from e

    async def verify_migrations_current(self) -> str:
        """
        Check that Alembic has been run against this database.

        Returns:
            The applied revision id

        Raises:
            RuntimeError: If the alembic_version table is missing or empty
        """
        if self.is_sqlite:
            exists_sql = (
                "SELECT COUNT(*) FROM sqlite_master "
                "WHERE type = 'table' AND name = 'alembic_version'"
            )
        else:
            exists_sql = (
                "SELECT COUNT(*) FROM information_schema.tables "
                "WHERE table_name = 'alembic_version'"
            )

        async with self.engine.connect() as conn:
            table_exists = (await conn.execute(text(exists_sql))).scalar()
            if not table_exists:
                raise RuntimeError(
                    "alembic_version table not found. "
                    "Have you run 'alembic upgrade head'?"
                )
            current_version = (
                await conn.execute(text("SELECT version_num FROM alembic_version"))
            ).scalar()

        if not current_version:
            raise RuntimeError("No migration applied. Run 'alembic upgrade head'")

        logger.info("Current migration version", version=current_version)
        return current_version

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional database session.

        Commits on success, rolls back on exception.

        Usage:
            async with db_manager.session() as session:
                doctor = await session.get(Doctor, doctor_id)
                doctor.appointment_duration_minutes = 45
                # Commits automatically on exit
        """
        timer = request_timer_context_var.get()
        start = time.perf_counter()
        session = self.session_maker()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error("Session error, rolled back", error=str(e))
            raise
        finally:
            await session.close()
            if timer is not None:
                timer.add("db", (time.perf_counter() - start) * 1000)

    async def health_check(self) -> dict[str, Any]:
        """
        Connectivity and pool status.

        Example:
            {"healthy": True, "response_time_ms": 1.2, "pool_status": "..."}
        """
        start = time.perf_counter()
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"healthy": False, "error": str(e)}

        return {
            "healthy": True,
            "dialect": self.engine.dialect.name,
            "response_time_ms": round((time.perf_counter() - start) * 1000, 2),
            "pool_status": self.engine.pool.status(),
        }

    async def dispose(self) -> None:
        """Dispose of all connections. Call this on application shutdown."""
        await self.engine.dispose()
        logger.info("Database connections disposed")


__all__ = ["DbManager"]
