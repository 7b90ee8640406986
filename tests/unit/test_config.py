import pytest
from pydantic import ValidationError

from common.api_error import ConfigurationError
from common.config import DbDriver, SchedulingConfig, load_app_config

BASE_ENV = {
    "APP_TITLE": "Doctor Schedule Service",
    "APP_VERSION": "1.0.0",
    "ENVIRONMENT": "development",
    "LOG_LEVEL": "info",
}


@pytest.fixture
def env(monkeypatch):
    for key in (
        "DB_DRIVER",
        "DB_NAME",
        "DB_HOST",
        "DB_PORT",
        "DB_USER",
        "DB_PASSWORD",
        "DB_SSL_MODE",
        "DB_SSL_CERT",
        "DB_SSL_KEY",
        "DB_SSL_CA",
        "SCHEDULE_HORIZON_DAYS",
        "SCHEDULE_MAX_HORIZON_DAYS",
        "SCHEDULE_CANCELLATION_REASON",
        "SLOW_REQUEST_MS",
    ):
        monkeypatch.delenv(key, raising=False)
    for key, value in BASE_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


def test_defaults_without_database(env):
    config = load_app_config()

    assert config.database is None
    assert config.logging.level_value == "INFO"
    assert config.scheduling == SchedulingConfig()
    assert config.scheduling.horizon_days == 90


def test_sqlite_database(env):
    env.setenv("DB_DRIVER", "aiosqlite")
    env.setenv("DB_NAME", "./schedule.db")

    database = load_app_config().database

    assert database.driver == DbDriver.AIOSQLITE
    assert database.get_connection_url() == "sqlite+aiosqlite:///./schedule.db"
    assert database.get_sync_url() == "sqlite:///./schedule.db"


def test_postgres_needs_host_and_port(env):
    env.setenv("DB_DRIVER", "asyncpg")
    env.setenv("DB_NAME", "schedule")

    with pytest.raises(ConfigurationError, match="DB_HOST"):
        load_app_config()


def test_postgres_url_masks_password(env):
    env.setenv("DB_DRIVER", "asyncpg")
    env.setenv("DB_NAME", "schedule")
    env.setenv("DB_HOST", "db")
    env.setenv("DB_PORT", "5432")
    env.setenv("DB_USER", "app")
    env.setenv("DB_PASSWORD", "secret")

    database = load_app_config().database

    assert database.get_connection_url() == "postgresql+asyncpg://app:****@db:5432/schedule"
    assert database.get_sync_url() == "postgresql+psycopg2://app:secret@db:5432/schedule"


def test_scheduling_overrides(env):
    env.setenv("SCHEDULE_HORIZON_DAYS", "30")
    env.setenv("SCHEDULE_CANCELLATION_REASON", "Clinic closed")

    scheduling = load_app_config().scheduling

    assert scheduling.horizon_days == 30
    assert scheduling.cancellation_reason == "Clinic closed"


def test_non_numeric_horizon_is_a_config_error(env):
    env.setenv("SCHEDULE_HORIZON_DAYS", "ninety")
    with pytest.raises(ConfigurationError, match="SCHEDULE_HORIZON_DAYS"):
        load_app_config()


def test_horizon_cannot_exceed_maximum(env):
    env.setenv("SCHEDULE_HORIZON_DAYS", "500")
    with pytest.raises(ValidationError):
        load_app_config()


def test_production_rejects_sqlite(env):
    env.setenv("ENVIRONMENT", "production")
    env.setenv("DB_DRIVER", "aiosqlite")
    env.setenv("DB_NAME", "./schedule.db")

    with pytest.raises(ValidationError, match="SQLite"):
        load_app_config()


def test_configuration_error_lists_each_field():
    with pytest.raises(ValidationError) as info:
        SchedulingConfig(horizon_days=0, max_horizon_days=0)

    error = ConfigurationError.from_validation_error(info.value)
    assert "horizon_days" in str(error)
    assert "max_horizon_days" in str(error)
