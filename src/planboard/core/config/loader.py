"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import PlanboardConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: PlanboardConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/planboard/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "planboard" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Project directory (defaults to current directory)

    Returns:
        Path to .planboard.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".planboard.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two dictionaries; values in `override` win.

    Example:
        >>> deep_merge({"backups": {"interval": 10, "max_backups": 10}}, {"backups": {"interval": 5}})
        {'backups': {'interval': 5, 'max_backups': 10}}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON config file.

    Returns:
        Parsed JSON as dict, or None if the file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        # Config problems should never stop the tool from starting
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None
    if isinstance(data, dict):
        return data
    logger.warning("Ignoring config at %s: top level is not an object", path)
    return None


def _positive_int(name: str, value: str) -> int | None:
    try:
        number = int(value)
    except ValueError:
        logger.warning("Invalid %s value '%s', ignoring", name, value)
        return None
    if number < 1:
        logger.warning("%s must be >= 1, got %d, ignoring", name, number)
        return None
    return number


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        PLANBOARD_STORAGE_DIR - overrides storage.directory
        PLANBOARD_MAX_BACKUPS - overrides backups.max_backups
        PLANBOARD_BACKUP_INTERVAL - overrides backups.interval
        PLANBOARD_LOG_LEVEL - overrides logging.level
    """
    result = config_dict.copy()

    if storage_dir := os.environ.get("PLANBOARD_STORAGE_DIR"):
        result["storage"] = {**result.get("storage", {}), "directory": storage_dir}

    if max_str := os.environ.get("PLANBOARD_MAX_BACKUPS"):
        if (max_backups := _positive_int("PLANBOARD_MAX_BACKUPS", max_str)) is not None:
            result["backups"] = {**result.get("backups", {}), "max_backups": max_backups}

    if interval_str := os.environ.get("PLANBOARD_BACKUP_INTERVAL"):
        if (interval := _positive_int("PLANBOARD_BACKUP_INTERVAL", interval_str)) is not None:
            result["backups"] = {**result.get("backups", {}), "interval": interval}

    if level := os.environ.get("PLANBOARD_LOG_LEVEL"):
        result["logging"] = {**result.get("logging", {}), "level": level}

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded default configuration."""
    return {
        "storage": {
            "directory": ".planboard",
            "document_key": "ganttProject",
            "backup_key": "ganttProject_backups",
        },
        "backups": {"enabled": True, "max_backups": 10, "interval": 10},
        "logging": {"level": "WARNING"},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> PlanboardConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (PLANBOARD_*)
        2. Project config (.planboard.json)
        3. User config (~/.config/planboard/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .planboard.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated PlanboardConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = PlanboardConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """Clear the cached configuration."""
    global _config_cache
    _config_cache = None
