"""Core credvault utilities.

This module exports core utilities for use throughout the application.
"""

from credvault.core.config import Settings, get_settings
from credvault.core.logging import (
    LoggingContext,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "clear_context",
]
