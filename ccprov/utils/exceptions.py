"""Exception hierarchy for ccprov.

Store operations are best-effort and never raise these to their callers;
they surface from configuration loading and the command line.
"""

from __future__ import annotations

from typing import Any


class CCProvError(Exception):
    """Base exception for all ccprov errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize ccprov error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ValidationError(CCProvError):
    """Data validation errors."""


class ConfigurationError(ValidationError):
    """Configuration validation errors."""


class DiskError(CCProvError):
    """Disk I/O related errors."""


class FileSystemError(DiskError):
    """File system operation errors."""


class ProvenanceError(CCProvError):
    """Base provenance exception."""


class ProvenanceStoreError(ProvenanceError):
    """Provenance store could not be opened or persisted."""
