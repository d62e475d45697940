"""Load the site.yaml configuration file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from quillpress.errors import ErrorCode, QuillPressError
from quillpress.runtime_paths import config_path_from_env, site_home
from quillpress.themes.constants import DEFAULT_THEME_SLUG

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_KNOWN_KEYS = {
    "content_dir",
    "content_url",
    "theme_roots",
    "include_builtin_themes",
    "options_file",
    "default_theme",
    "log_dir",
    "log_level",
    "validate_active_theme",
    "host",
    "port",
}


@dataclass(frozen=True, slots=True)
class SiteConfig:
    """Process-wide site configuration."""

    content_dir: Path
    content_url: str
    theme_roots: tuple[Path, ...]
    options_file: Path
    log_dir: Path
    default_theme: str = DEFAULT_THEME_SLUG
    include_builtin_themes: bool = True
    log_level: str = "INFO"
    validate_active_theme: bool = False
    host: str = "127.0.0.1"
    port: int = 8080
    source_path: Path | None = field(default=None, compare=False)

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level)


def default_site_config(base_dir: Path | None = None) -> SiteConfig:
    base = base_dir or site_home()
    content_dir = base / "content"
    return SiteConfig(
        content_dir=content_dir,
        content_url="/content",
        theme_roots=(content_dir / "themes",),
        options_file=base / "options.ini",
        log_dir=base / "logs",
    )


def load_site_config(path: str | Path | None = None) -> SiteConfig:
    """Load site.yaml from ``path``, the environment, or fall back to defaults.

    Relative paths in the file are resolved against the file's directory.
    """
    config_path = Path(path) if path is not None else config_path_from_env()
    if config_path is None:
        return default_site_config()
    if not config_path.exists():
        raise QuillPressError(ErrorCode.CONFIG_MISSING, path=config_path)

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise QuillPressError(
            ErrorCode.CONFIG_INVALID,
            path=config_path,
            details={"original": str(exc)},
        ) from exc
    except PermissionError as exc:
        raise QuillPressError(ErrorCode.CONFIG_PERMISSION_DENIED, path=config_path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise QuillPressError(
            ErrorCode.CONFIG_INVALID,
            message=f"Unable to read {config_path}: {exc}",
            path=config_path,
        ) from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise QuillPressError(
            ErrorCode.CONFIG_INVALID,
            message=f"Expected a mapping at the top level of {config_path}",
            path=config_path,
        )
    return _parse_config(raw, config_path)


def _parse_config(data: Mapping[str, Any], config_path: Path) -> SiteConfig:
    unknown = sorted(key for key in data if key not in _KNOWN_KEYS)
    if unknown:
        raise QuillPressError(
            ErrorCode.CONFIG_INVALID,
            message=f"Unsupported keys in {config_path.name}: {', '.join(unknown)}",
            path=config_path,
        )

    base_dir = config_path.parent
    defaults = default_site_config(base_dir)

    content_dir = _path_value(data, "content_dir", base_dir, defaults.content_dir, config_path)
    raw_roots = data.get("theme_roots")
    if raw_roots is None:
        theme_roots: tuple[Path, ...] = (content_dir / "themes",)
    else:
        if isinstance(raw_roots, str):
            raw_roots = [raw_roots]
        if not isinstance(raw_roots, list) or not all(isinstance(item, str) for item in raw_roots):
            raise _invalid(config_path, "theme_roots", "a list of paths")
        theme_roots = tuple(_resolve(Path(item), content_dir) for item in raw_roots)

    log_level = _str_value(data, "log_level", defaults.log_level, config_path).upper()
    if log_level not in _LOG_LEVELS:
        raise _invalid(config_path, "log_level", f"one of {', '.join(sorted(_LOG_LEVELS))}")

    port = data.get("port", defaults.port)
    if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
        raise _invalid(config_path, "port", "an integer between 1 and 65535")

    content_url = _str_value(data, "content_url", defaults.content_url, config_path).rstrip("/")

    return SiteConfig(
        content_dir=content_dir,
        content_url=content_url or "/content",
        theme_roots=theme_roots,
        options_file=_path_value(data, "options_file", base_dir, defaults.options_file, config_path),
        log_dir=_path_value(data, "log_dir", base_dir, defaults.log_dir, config_path),
        default_theme=_str_value(data, "default_theme", defaults.default_theme, config_path),
        include_builtin_themes=_bool_value(data, "include_builtin_themes", True, config_path),
        log_level=log_level,
        validate_active_theme=_bool_value(data, "validate_active_theme", False, config_path),
        host=_str_value(data, "host", defaults.host, config_path),
        port=port,
        source_path=config_path,
    )


def _resolve(path: Path, base_dir: Path) -> Path:
    path = path.expanduser()
    if path.is_absolute():
        return path
    return base_dir / path


def _path_value(
    data: Mapping[str, Any], key: str, base_dir: Path, default: Path, config_path: Path
) -> Path:
    raw = data.get(key)
    if raw is None:
        return default
    if not isinstance(raw, str) or not raw.strip():
        raise _invalid(config_path, key, "a non-empty path string")
    return _resolve(Path(raw.strip()), base_dir)


def _str_value(data: Mapping[str, Any], key: str, default: str, config_path: Path) -> str:
    raw = data.get(key)
    if raw is None:
        return default
    if not isinstance(raw, str) or not raw.strip():
        raise _invalid(config_path, key, "a non-empty string")
    return raw.strip()


def _bool_value(data: Mapping[str, Any], key: str, default: bool, config_path: Path) -> bool:
    raw = data.get(key)
    if raw is None:
        return default
    if not isinstance(raw, bool):
        raise _invalid(config_path, key, "true or false")
    return raw


def _invalid(config_path: Path, key: str, expected: str) -> QuillPressError:
    return QuillPressError(
        ErrorCode.CONFIG_INVALID,
        message=f"{config_path.name}: field {key!r} must be {expected}",
        path=config_path,
    )
