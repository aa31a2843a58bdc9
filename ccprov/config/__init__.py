"""Configuration management.

This module handles configuration loading and validation.
"""

from __future__ import annotations

from ccprov.config.config import ENV_MAPPINGS, ConfigManager
from ccprov.models import Config

__all__ = [
    "ENV_MAPPINGS",
    "Config",
    "ConfigManager",
]
