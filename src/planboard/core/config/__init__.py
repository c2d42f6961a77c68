"""
Configuration models and loading.

Pydantic models for planboard configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .env import load_env_files
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import BackupConfig, LoggingConfig, PlanboardConfig, StorageConfig

__all__ = [
    # Models
    "BackupConfig",
    "LoggingConfig",
    "PlanboardConfig",
    "StorageConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_env_files",
]
