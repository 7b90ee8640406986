# common/config/app_config.py
"""
Complete application configuration with validation.

Database settings cover PostgreSQL (asyncpg/psycopg) for deployed environments
and a file-backed SQLite (aiosqlite) database for local development.
Scheduling settings drive the slot regeneration horizon.
"""

from typing import Optional, Any
from pathlib import Path
from pydantic import BaseModel, Field, field_validator, model_validator, SecretStr
from .config_types import EnvLogLevel, DbDriver, SslMode, Environment
from .env_config import require_env, get_env, get_int_env
from .logging_config import LoggingConfig


class DatabaseConfig(BaseModel):
    """
    Database configuration with SSL/TLS support.

    For the aiosqlite driver ``name`` is the database file path and the
    host/port/pool settings are ignored.
    """

    driver: DbDriver = Field(...)
    name: str = Field(..., min_length=1, description="Database name or file path")
    host: Optional[str] = Field(default=None, min_length=1)
    port: Optional[int] = Field(default=None, gt=0, le=65535)
    slow_query_threshold: float = Field(
        default=0.5, description="Seconds after which a query is logged as slow"
    )

    username: Optional[str] = Field(default=None, min_length=1)
    password: Optional[SecretStr] = Field(default=None)

    pool_size: int = Field(default=5, ge=1, le=100)
    max_overflow: int = Field(default=10, ge=0, le=100)
    pool_timeout: int = Field(default=30, ge=1, le=300)
    pool_recycle: int = Field(default=1800, ge=300)

    ssl_mode: Optional[SslMode] = Field(default=None)
    ssl_cert_path: Optional[Path] = Field(default=None)
    ssl_key_path: Optional[Path] = Field(default=None)
    ssl_ca_path: Optional[Path] = Field(default=None)

    model_config = {"frozen": True}

    @field_validator("ssl_cert_path", "ssl_key_path", "ssl_ca_path")
    @classmethod
    def validate_ssl_paths(cls, v: Optional[Path]) -> Optional[Path]:
        """Validate SSL certificate paths exist."""
        if v is not None and not v.exists():
            raise ValueError(f"SSL file not found: {v}")
        return v

    @model_validator(mode="after")
    def validate_server_settings(self) -> "DatabaseConfig":
        if not self.driver.is_sqlite and (self.host is None or self.port is None):
            raise ValueError("DB_HOST and DB_PORT are required for PostgreSQL")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.driver.is_sqlite

    def get_connection_url(self, include_password: bool = False) -> str:
        """
        Build SQLAlchemy connection URL.

        Args:
            include_password: If True, include password in URL (use for actual connections)
                            If False, mask it (use for logging)
        """
        if self.is_sqlite:
            return f"sqlite+{self.driver.value}:///{self.name}"

        if self.username:
            if include_password and self.password:
                auth = f"{self.username}:{self.password.get_secret_value()}"
            else:
                auth = f"{self.username}:****"
            return f"postgresql+{self.driver.value}://{auth}@{self.host}:{self.port}/{self.name}"

        return f"postgresql+{self.driver.value}://{self.host}:{self.port}/{self.name}"

    def get_sync_url(self) -> str:
        """URL for the synchronous driver used by Alembic."""
        if self.is_sqlite:
            return f"sqlite:///{self.name}"
        url = self.get_connection_url(include_password=True)
        return url.replace(f"+{self.driver.value}", "+psycopg2", 1)

    def requires_ssl(self) -> bool:
        return self.ssl_mode in [
            SslMode.REQUIRE,
            SslMode.VERIFY_CA,
            SslMode.VERIFY_FULL,
        ]

    def to_dict_safe(self) -> dict[str, Any]:
        """Convert to dict with sensitive data masked (safe for logging)."""
        data = self.model_dump()
        if data.get("password"):
            data["password"] = "****"
        return data


class SchedulingConfig(BaseModel):
    """
    Slot regeneration settings.

    ``horizon_days`` is the default look-ahead used when a request carries no
    explicit horizon; ``max_horizon_days`` caps caller-supplied horizons.
    """

    horizon_days: int = Field(default=90, ge=1)
    max_horizon_days: int = Field(default=400, ge=1)
    cancellation_reason: str = Field(
        default="Schedule change by hospital", min_length=1
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_horizon(self) -> "SchedulingConfig":
        if self.horizon_days > self.max_horizon_days:
            raise ValueError("horizon_days cannot exceed max_horizon_days")
        return self


class AppConfig(BaseModel):
    """
    Complete application configuration.

    All configuration is loaded from environment variables and validated
    at startup. Invalid configuration will fail fast with clear error messages.
    """

    app_title: str = Field(..., min_length=1)
    app_version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$")
    environment: Environment

    logging: LoggingConfig
    database: Optional[DatabaseConfig] = None
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_production_settings(self) -> "AppConfig":
        if self.environment.is_production:
            if self.database is None:
                raise ValueError("Database config required in production")
            if self.database.is_sqlite:
                raise ValueError("SQLite is not supported in production")
            if self.logging.log_level == EnvLogLevel.DEBUG:
                raise ValueError("DEBUG log level not allowed in production")
        return self


def load_database_config(environment: Environment) -> Optional[DatabaseConfig]:
    """
    Load database configuration from environment.

    Environment variables:
    Required:
    - DB_DRIVER: asyncpg, psycopg or aiosqlite (unset means no database)
    - DB_NAME: Database name, or file path for aiosqlite

    Required for PostgreSQL:
    - DB_HOST, DB_PORT

    Optional (dev) / Required (prod):
    - DB_USER, DB_PASSWORD, DB_SSL_MODE

    Optional:
    - DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT, DB_POOL_RECYCLE
    - SLOW_QUERY_THRESHOLD
    - DB_SSL_CERT, DB_SSL_KEY, DB_SSL_CA
    """
    driver_str = get_env("DB_DRIVER")
    if not driver_str:
        return None

    try:
        driver = DbDriver(driver_str)
    except ValueError:
        valid_drivers = [d.value for d in DbDriver]
        raise ValueError(
            f"Invalid DB_DRIVER: {driver_str}. Must be one of: {valid_drivers}"
        )

    name = require_env("DB_NAME")
    if driver.is_sqlite:
        return DatabaseConfig(driver=driver, name=name)

    if environment.is_production:
        username = require_env("DB_USER")
        password_str = require_env("DB_PASSWORD")
        ssl_mode_str = require_env("DB_SSL_MODE")
    else:
        username = get_env("DB_USER")
        password_str = get_env("DB_PASSWORD")
        ssl_mode_str = get_env("DB_SSL_MODE")

    ssl_mode: Optional[SslMode] = None
    if ssl_mode_str:
        try:
            ssl_mode = SslMode(ssl_mode_str)
        except ValueError:
            valid_modes = [m.value for m in SslMode]
            raise ValueError(
                f"Invalid DB_SSL_MODE: {ssl_mode_str}. Must be one of: {valid_modes}"
            )

    def _optional_path(key: str) -> Optional[Path]:
        value = get_env(key)
        return Path(value) if value else None

    return DatabaseConfig(
        driver=driver,
        name=name,
        host=require_env("DB_HOST"),
        port=int(require_env("DB_PORT")),
        username=username,
        password=SecretStr(password_str) if password_str else None,
        pool_size=get_int_env("DB_POOL_SIZE", 5),
        max_overflow=get_int_env("DB_MAX_OVERFLOW", 10),
        pool_timeout=get_int_env("DB_POOL_TIMEOUT", 30),
        pool_recycle=get_int_env("DB_POOL_RECYCLE", 1800),
        slow_query_threshold=float(get_env("SLOW_QUERY_THRESHOLD", "0.5") or 0.5),
        ssl_mode=ssl_mode,
        ssl_cert_path=_optional_path("DB_SSL_CERT"),
        ssl_key_path=_optional_path("DB_SSL_KEY"),
        ssl_ca_path=_optional_path("DB_SSL_CA"),
    )


def load_scheduling_config() -> SchedulingConfig:
    """
    Load scheduling configuration; every variable has a default.

    - SCHEDULE_HORIZON_DAYS (90)
    - SCHEDULE_MAX_HORIZON_DAYS (400)
    - SCHEDULE_CANCELLATION_REASON ("Schedule change by hospital")
    """
    return SchedulingConfig(
        horizon_days=get_int_env("SCHEDULE_HORIZON_DAYS", 90),
        max_horizon_days=get_int_env("SCHEDULE_MAX_HORIZON_DAYS", 400),
        cancellation_reason=get_env(
            "SCHEDULE_CANCELLATION_REASON", "Schedule change by hospital"
        )
        or "Schedule change by hospital",
    )


def load_app_config() -> AppConfig:
    """
    Load complete application configuration.

    Raises:
        ValidationError: If configuration is invalid
        ConfigurationError: If required env vars are missing
    """
    from .logging_config import load_logging_config

    env_str = require_env("ENVIRONMENT")

    try:
        environment = Environment(env_str)
    except ValueError:
        valid_envs = [e.value for e in Environment]
        raise ValueError(
            f"Invalid ENVIRONMENT: {env_str}. Must be one of: {valid_envs}"
        )

    return AppConfig(
        app_title=require_env("APP_TITLE"),
        app_version=require_env("APP_VERSION"),
        environment=environment,
        logging=load_logging_config(),
        database=load_database_config(environment),
        scheduling=load_scheduling_config(),
    )


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "SchedulingConfig",
    "load_app_config",
    "load_database_config",
    "load_scheduling_config",
]
