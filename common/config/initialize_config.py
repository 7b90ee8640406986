# common/config/initialize_config.py
"""
Configuration initialization module.

Loads the environment once at startup, configures structlog and keeps the
validated AppConfig for the rest of the process.
"""
from typing import Optional
from pydantic import ValidationError
from .app_config import AppConfig, load_app_config
from .structlog_config import configure_structlog
from common.api_error import ConfigurationError


class _ConfigState:
    """Process-wide holder for the validated configuration."""

    _instance: Optional["_ConfigState"] = None
    _config: Optional[AppConfig]

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._config = None
        return cls._instance

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            raise RuntimeError(
                "Configuration not initialized. Call initialize_config() at startup."
            )
        return self._config

    @property
    def is_initialized(self) -> bool:
        return self._config is not None

    def set_config(self, config: AppConfig) -> None:
        self._config = config


_state = _ConfigState()


def initialize_config() -> AppConfig:
    """
    Initialize and validate all application configuration.

    Must be called once at application startup before anything reads
    get_config(). Calling it again in the same process returns the existing
    configuration (uvicorn reload re-imports the app module).

    Raises:
        ConfigurationError: If configuration is invalid or missing
    """
    if _state.is_initialized:
        return _state.config

    try:
        config = load_app_config()
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(e) from e
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    configure_structlog(
        config.logging.level_int, json_logs=config.environment.is_production
    )
    _state.set_config(config)
    return config


def get_config() -> AppConfig:
    """
    Get validated application configuration.

    Raises:
        RuntimeError: If not initialized
    """
    return _state.config


__all__ = ["initialize_config", "get_config"]
