"""Configuration for fleet-commons."""

from .settings import DataAccessSettings, get_settings
from .logging_config import LoggingConfig, setup_logging, get_logger

__all__ = [
    "DataAccessSettings",
    "get_settings",
    "LoggingConfig",
    "setup_logging",
    "get_logger",
]
