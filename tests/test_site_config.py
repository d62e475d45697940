from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from quillpress.config.site_config import load_site_config
from quillpress.errors import ErrorCode, QuillPressError
from quillpress import runtime_paths


def _write_config(path: Path, data: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_defaults_without_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv(runtime_paths.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv(runtime_paths.HOME_ENV_VAR, str(tmp_path))

    config = load_site_config()

    assert config.content_dir == tmp_path / "content"
    assert config.theme_roots == (tmp_path / "content" / "themes",)
    assert config.options_file == tmp_path / "options.ini"
    assert config.default_theme == "quill-default"
    assert config.validate_active_theme is False
    assert config.source_path is None


def test_relative_paths_resolve_against_config_dir(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "site" / "site.yaml",
        {
            "content_dir": "content",
            "content_url": "https://cdn.example.org/content/",
            "theme_roots": ["themes", "/srv/shared-themes"],
            "options_file": "state/options.ini",
            "default_theme": "harbor",
            "log_level": "debug",
            "validate_active_theme": True,
            "port": 9000,
        },
    )

    config = load_site_config(path)

    site_dir = tmp_path / "site"
    assert config.content_dir == site_dir / "content"
    assert config.content_url == "https://cdn.example.org/content"
    assert config.theme_roots == (site_dir / "content" / "themes", Path("/srv/shared-themes"))
    assert config.options_file == site_dir / "state" / "options.ini"
    assert config.log_dir == site_dir / "logs"
    assert config.default_theme == "harbor"
    assert config.log_level == "DEBUG"
    assert config.validate_active_theme is True
    assert config.port == 9000
    assert config.source_path == path


def test_env_var_names_config(tmp_path: Path, monkeypatch) -> None:
    path = _write_config(tmp_path / "site.yaml", {"default_theme": "lantern"})
    monkeypatch.setenv(runtime_paths.CONFIG_ENV_VAR, str(path))

    assert load_site_config().default_theme == "lantern"


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "site.yaml"
    path.write_text("", encoding="utf-8")

    config = load_site_config(path)

    assert config.content_dir == tmp_path / "content"


@pytest.mark.parametrize(
    "data",
    [
        {"unknown_key": 1},
        {"theme_roots": [1, 2]},
        {"log_level": "LOUD"},
        {"port": "80"},
        {"validate_active_theme": "yes"},
        ["not", "a", "mapping"],
    ],
)
def test_invalid_config_rejected(tmp_path: Path, data: object) -> None:
    path = _write_config(tmp_path / "site.yaml", data)

    with pytest.raises(QuillPressError) as excinfo:
        load_site_config(path)
    assert excinfo.value.code is ErrorCode.CONFIG_INVALID


def test_malformed_yaml_rejected(tmp_path: Path) -> None:
    path = tmp_path / "site.yaml"
    path.write_text("content_dir: [unclosed\n", encoding="utf-8")

    with pytest.raises(QuillPressError) as excinfo:
        load_site_config(path)
    assert excinfo.value.code is ErrorCode.CONFIG_INVALID


def test_missing_named_file_rejected(tmp_path: Path) -> None:
    with pytest.raises(QuillPressError) as excinfo:
        load_site_config(tmp_path / "absent.yaml")
    assert excinfo.value.code is ErrorCode.CONFIG_MISSING
