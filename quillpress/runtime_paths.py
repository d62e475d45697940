"""Runtime path helpers for bundled resources and per-site data."""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_ENV_VAR = "QUILLPRESS_CONFIG"
HOME_ENV_VAR = "QUILLPRESS_HOME"


def package_root() -> Path:
    """Return the root path that contains the `quillpress` package resources."""
    return Path(__file__).resolve().parent


def builtin_themes_root() -> Path:
    """Resolve the directory holding the themes shipped with the package."""
    return package_root() / "themes" / "builtin"


def site_home() -> Path:
    """Return the base directory for site data when no config file names one."""
    raw = os.environ.get(HOME_ENV_VAR, "")
    if raw.strip():
        return Path(raw).expanduser()
    base = Path(os.environ.get("APPDATA", Path.home() / ".config"))
    return base / "quillpress"


def config_path_from_env() -> Path | None:
    """Return the site.yaml path named by the environment, if any."""
    raw = os.environ.get(CONFIG_ENV_VAR, "")
    if not raw.strip():
        return None
    return Path(raw).expanduser()
