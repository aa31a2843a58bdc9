"""Shared utilities and infrastructure.

This module contains common utilities used throughout the application.
"""

from __future__ import annotations

from ccprov.utils.exceptions import (
    CCProvError,
    ConfigurationError,
    DiskError,
    FileSystemError,
    ProvenanceError,
    ProvenanceStoreError,
    ValidationError,
)
from ccprov.utils.logging_config import get_logger, setup_logging

__all__ = [
    # Exceptions
    "CCProvError",
    "ConfigurationError",
    "DiskError",
    "FileSystemError",
    "ProvenanceError",
    "ProvenanceStoreError",
    "ValidationError",
    # Logging
    "get_logger",
    "setup_logging",
]
