"""
Configuration Module

This module provides centralized configuration management for sync operations:
- Database connection configuration
- Installation layout (install root, publish directory, uploads directories)
- External tool binaries and timeouts
- HTTP transfer settings
- Logging and progress display settings

Implements a flexible, environment-aware configuration system
with sensible defaults and comprehensive validation using Pydantic.
"""

from .settings import (
    SyncSettings,
    DatabaseSettings,
    InstallationSettings,
    ToolSettings,
    TransferSettings,
    MonitoringSettings,
    load_settings
)

__all__ = [
    'SyncSettings',
    'DatabaseSettings',
    'InstallationSettings',
    'ToolSettings',
    'TransferSettings',
    'MonitoringSettings',
    'load_settings'
]
