"""Core utilities and configuration."""

from pbnj.core.config import Settings, get_settings
from pbnj.core.database import Base, DatabaseManager
from pbnj.core.logging import db_logger, get_logger, setup_logging

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "Base",
    "DatabaseManager",
    # Logging
    "db_logger",
    "get_logger",
    "setup_logging",
]
