"""Configuration management with Pydantic and XDG base directory support."""

import sys
from pathlib import Path
from typing import Literal

from pydantic import Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from indexwright.utils.paths import get_xdg_data_home

IndexBackend = Literal["tantivy", "memory", "none"]


class Settings(BaseSettings):
    """Indexwright configuration settings.

    Precedence: CLI flag > environment variable > .env file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="INDEXWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    data_dir: Path | None = Field(
        default=None,
        description="Override data directory (defaults to XDG_DATA_HOME/indexwright)",
    )

    environment_identifier: str = Field(
        default="default",
        min_length=1,
        description="Identifies this deployment; part of every status and lock key",
    )

    # Index settings
    index_backend: IndexBackend = Field(
        default="tantivy",
        description="Index store provider: tantivy, memory, or none (indexing disabled)",
    )

    index_fields: list[str] = Field(
        default_factory=lambda: ["title", "body", "path"],
        description="Text fields of the index schema besides the document id",
    )

    writer_heap_size: int = Field(
        default=50_000_000,
        ge=15_000_000,
        description="Heap size in bytes for the Tantivy index writer",
    )

    # Collector settings
    collectors: dict[str, Path] = Field(
        default_factory=dict,
        description="Scope name to document root for the filesystem collector",
    )

    collector_patterns: list[str] = Field(
        default_factory=lambda: ["*.txt", "*.md"],
        description="Glob patterns selecting files the filesystem collector indexes",
    )

    segment_size: int = Field(
        default=500,
        ge=1,
        description="Maximum number of operations per collected segment",
    )

    audit_enabled: bool = Field(
        default=True,
        description="Record builds in the append-only audit ledger",
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level for the CLI (DEBUG, INFO, WARNING, ERROR)",
    )

    _resolved_data_dir: Path | None = PrivateAttr(default=None)
    _data_dir_warning_emitted: bool = PrivateAttr(default=False)

    @field_validator("index_fields")
    @classmethod
    def _validate_index_fields(cls, value: list[str]) -> list[str]:
        cleaned = [name.strip() for name in value if name.strip()]
        if "id" in cleaned:
            raise ValueError("'id' is reserved for the document identifier field")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("index_fields must not contain duplicates")
        return cleaned

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    def get_data_dir(self) -> Path:
        """Get the data directory, creating if necessary."""
        if self.data_dir:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            return self.data_dir

        if self._resolved_data_dir is not None:
            return self._resolved_data_dir

        primary_dir = get_xdg_data_home() / "indexwright"
        try:
            primary_dir.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = primary_dir
            return primary_dir
        except PermissionError as exc:
            fallback = Path.cwd() / ".indexwright-data"
            fallback.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = fallback
            if not self._data_dir_warning_emitted:
                print(
                    f"Warning: cannot create data directory at {primary_dir} ({exc}). "
                    f"Using local '{fallback}' instead. Pass --data-dir to override.",
                    file=sys.stderr,
                )
                self._data_dir_warning_emitted = True
            return fallback

    def get_status_dir(self) -> Path:
        """Get directory holding per-scope status records and lock files."""
        status_dir = self.get_data_dir() / "indexing"
        status_dir.mkdir(parents=True, exist_ok=True)
        return status_dir

    def get_index_dir(self) -> Path:
        """Get path to the directory holding one index per scope."""
        index_dir = self.get_data_dir() / "index"
        index_dir.mkdir(parents=True, exist_ok=True)
        return index_dir

    def get_collector_state_dir(self) -> Path:
        """Get directory where collectors keep their manifests."""
        state_dir = self.get_data_dir() / "collectors"
        state_dir.mkdir(parents=True, exist_ok=True)
        return state_dir

    def get_audit_path(self) -> Path:
        """Get path to audit ledger file."""
        return self.get_data_dir() / "audit.jsonl"


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings
