"""ccprov - remembers which host supplied each downloaded file."""

from __future__ import annotations

__version__ = "0.1.0"

from ccprov.config.config import ConfigManager
from ccprov.models import Config, ProvenanceConfig
from ccprov.storage.provenance import ProvenanceStore
from ccprov.storage.resume import may_resume, record_download

__all__ = [
    "Config",
    "ConfigManager",
    "ProvenanceConfig",
    "ProvenanceStore",
    "__version__",
    "may_resume",
    "record_download",
]
