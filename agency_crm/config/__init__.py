"""
Configuration Management

Centralized configuration for:
- Data backend (Supabase, in-memory)
- Team hierarchy construction limits
- Metric entry and display
- Logging
"""

from .settings import (
    Settings,
    BackendConfig,
    BackendType,
    HierarchyConfig,
    MetricsConfig,
    get_settings
)
from .providers import BackendProvider, get_gateway
from .logging_setup import configure_logging

__all__ = [
    "Settings",
    "BackendConfig",
    "BackendType",
    "HierarchyConfig",
    "MetricsConfig",
    "get_settings",
    "BackendProvider",
    "get_gateway",
    "configure_logging"
]
