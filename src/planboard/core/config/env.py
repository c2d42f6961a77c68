"""Environment files for planboard settings.

``PLANBOARD_*`` variables may also come from ``.env`` files:

  process environment > project ``.env`` > user ``.env``

Only ``PLANBOARD_``-prefixed keys are taken from the files, and a variable
already exported in the shell is never overwritten.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

ENV_PREFIX = "PLANBOARD_"


def read_env_file(path: Path) -> dict[str, str]:
    """``PLANBOARD_*`` entries of one env file (empty if it doesn't exist)."""
    if not path.exists():
        return {}
    return {
        str(k): str(v)
        for k, v in dotenv_values(path).items()
        if k and v is not None and k.startswith(ENV_PREFIX)
    }


def load_env_files(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """Copy ``PLANBOARD_*`` values from user and project env files into os.environ.

    Returns:
        The variables that were set
    """
    if project_dir is None:
        project_dir = Path.cwd()
    if user_env_paths is None:
        xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
        user_env_paths = [xdg_home / "planboard" / ".env"]
    if project_env_paths is None:
        project_env_paths = [project_dir / ".env"]

    applied: dict[str, str] = {}
    for p in user_env_paths:
        for k, v in read_env_file(Path(p)).items():
            if k not in os.environ:
                applied[k] = v
    # project files win over user files, never over the shell
    for p in project_env_paths:
        for k, v in read_env_file(Path(p)).items():
            if k not in os.environ or k in applied:
                applied[k] = v

    os.environ.update(applied)
    return applied
