from __future__ import annotations

from pathlib import Path

from quillpress import runtime_paths


def test_package_root_points_to_repo_package() -> None:
    root = runtime_paths.package_root()
    assert root.name == "quillpress"
    assert (root / "themes").exists()


def test_builtin_themes_root_holds_default_theme() -> None:
    root = runtime_paths.builtin_themes_root()
    assert root.name == "builtin"
    assert (root / "quill-default" / "style.css").is_file()


def test_site_home_prefers_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv(runtime_paths.HOME_ENV_VAR, str(tmp_path))
    assert runtime_paths.site_home() == tmp_path


def test_site_home_falls_back_to_appdata(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv(runtime_paths.HOME_ENV_VAR, raising=False)
    monkeypatch.setenv("APPDATA", str(tmp_path))
    assert runtime_paths.site_home() == tmp_path / "quillpress"


def test_config_path_from_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv(runtime_paths.CONFIG_ENV_VAR, "  ")
    assert runtime_paths.config_path_from_env() is None
    monkeypatch.setenv(runtime_paths.CONFIG_ENV_VAR, str(tmp_path / "site.yaml"))
    assert runtime_paths.config_path_from_env() == tmp_path / "site.yaml"
