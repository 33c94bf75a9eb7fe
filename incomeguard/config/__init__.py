"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from incomeguard.config import settings

    print(settings.environment)
    print(settings.registry.validity_days)
"""

from incomeguard.config.settings import (
    Environment,
    FHEMode,
    LedgerMode,
    LogLevel,
    Settings,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
    "LedgerMode",
    "FHEMode",
]
