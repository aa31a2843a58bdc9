"""Pydantic models for ccprov.

Provides validated configuration models for the provenance store.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ProvenanceConfig(BaseModel):
    """Provenance store configuration."""

    download_dir: str = Field(
        default="~/Downloads/ccprov",
        description="Directory holding downloaded files",
    )
    state_dir: str = Field(
        default="~/.ccprov",
        description="Private directory holding the persisted store file",
    )
    store_file_name: str = Field(
        default="origins.txt",
        min_length=1,
        description="Name of the persisted store file inside state_dir",
    )
    save_delay: float = Field(
        default=1.0,
        gt=0.0,
        le=60.0,
        description="Quiet period in seconds before a mutation burst is written back",
    )
    ready_timeout: float = Field(
        default=5.0,
        ge=0.0,
        le=300.0,
        description="Seconds an operation waits for the startup load to finish",
    )

    @field_validator("store_file_name")
    @classmethod
    def validate_store_file_name(cls, v: str) -> str:
        """Validate store_file_name is a bare file name."""
        if Path(v).name != v or v in {".", ".."}:
            msg = f"store_file_name must be a bare file name, got {v!r}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_separate_dirs(self) -> ProvenanceConfig:
        """Validate the store file does not live in the download directory."""
        if self.download_path == self.store_path.parent:
            msg = "state_dir must differ from download_dir"
            raise ValueError(msg)
        return self

    @property
    def download_path(self) -> Path:
        """Resolved download directory."""
        return Path(self.download_dir).expanduser().resolve()

    @property
    def store_path(self) -> Path:
        """Resolved path of the persisted store file."""
        return Path(self.state_dir).expanduser().resolve() / self.store_file_name


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    log_file: str | None = Field(default=None, description="Log file path")
    structured_logging: bool = Field(
        default=False,
        description="Write JSON records to the log file",
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Include correlation IDs",
    )


class Config(BaseModel):
    """Main configuration model."""

    provenance: ProvenanceConfig = Field(
        default_factory=ProvenanceConfig,
        description="Provenance store configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )
