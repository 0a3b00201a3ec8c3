"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "DOCSTORE_"


class BackupConfig(BaseModel):
    """Backup rotation and auto-backup settings consumed by the docs store."""
    enabled:     bool = Field(default=False, description="Run create_backup on a fixed interval")
    interval:    int  = Field(default=3_600_000, ge=1, description="Auto-backup interval in milliseconds")
    max_backups: int  = Field(default=5, ge=1, description="Snapshots retained; oldest evicted first")
    path:        str  = Field(default="backups", min_length=1, description="Backup directory, relative to the store root")


class Settings(BaseModel):
    app_name:          str  = "docstore"
    storage_path:      str  = Field(default="docs-data", description="Store root directory")
    backup_enabled:    bool = Field(default=False, description="Auto-backup on/off")
    backup_interval:   int  = Field(default=3_600_000, ge=1, description="Auto-backup interval in milliseconds")
    max_backups:       int  = Field(default=5, ge=1, description="Max retained snapshots")
    backup_path:       str  = Field(default="backups", min_length=1, description="Backup directory under storage_path")
    cache_max_entries: int  = Field(default=0, ge=0, description="Max cached documents; 0 = unbounded")
    log_level:         str  = Field(default="INFO", description="Root logger level")
    log_format:        str  = Field(default="plain", pattern="^(plain|json)$", description="plain or json")

    def backup_config(self) -> BackupConfig:
        return BackupConfig(
            enabled=self.backup_enabled,
            interval=self.backup_interval,
            max_backups=self.max_backups,
            path=self.backup_path,
        )


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then DOCSTORE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
