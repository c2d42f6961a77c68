"""
Configuration data models for planboard.

These models define the structure of .planboard.json and
~/.config/planboard/config.json files, validated via Pydantic.
"""

import logging
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StorageConfig(BaseModel):
    """
    Where documents are kept.

    Keys become file names under ``directory`` (``<key>.json``).
    """
    directory: Path = Field(
        default=Path(".planboard"),
        description="Directory holding document files, relative to the project"
    )
    document_key: str = Field(
        default="ganttProject",
        min_length=1,
        description="Store key of the project document"
    )
    backup_key: str = Field(
        default="ganttProject_backups",
        min_length=1,
        description="Store key of the backup ring"
    )


class BackupConfig(BaseModel):
    """Automatic backups taken while saving."""
    enabled: bool = Field(
        default=True,
        description="Take backups while saving"
    )
    max_backups: int = Field(
        default=10,
        ge=1,
        description="Number of snapshots kept in the ring"
    )
    interval: int = Field(
        default=10,
        ge=1,
        description="Take a backup every N saves"
    )


class LoggingConfig(BaseModel):
    level: str = Field(
        default="WARNING",
        description="Log level name (DEBUG, INFO, WARNING, ERROR)"
    )

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v: Union[str, int]) -> str:
        """Accept level names in any case, or numeric levels."""
        if isinstance(v, int):
            return logging.getLevelName(v)
        name = str(v).upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"Unknown log level: {v}")
        return name


class PlanboardConfig(BaseModel):
    """
    Top-level planboard configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = PlanboardConfig(backups=BackupConfig(max_backups=5))
        >>> config.backups.max_backups
        5
    """
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Document storage"
    )
    backups: BackupConfig = Field(
        default_factory=BackupConfig,
        description="Automatic backups"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )

    def storage_path(self, project_dir: Path | None = None) -> Path:
        """Storage directory resolved against *project_dir* (defaults to cwd)."""
        directory = self.storage.directory.expanduser()
        if directory.is_absolute():
            return directory
        return (project_dir or Path.cwd()) / directory
