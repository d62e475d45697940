"""Tests for bootstrap and request dispatch through the active theme."""

from __future__ import annotations

import inspect
from pathlib import Path

import pytest
import yaml
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from quillpress.app import bootstrap, create_app, run_app
from quillpress.errors import ErrorCode, QuillPressError


def _write_site(tmp_path: Path, **overrides: object) -> Path:
    data: dict[str, object] = {
        "content_dir": "content",
        "options_file": "options.ini",
        "log_dir": "logs",
    }
    data.update(overrides)
    path = tmp_path / "site.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    (tmp_path / "content" / "themes").mkdir(parents=True, exist_ok=True)
    return path


def _write_child_theme(tmp_path: Path) -> Path:
    theme_dir = tmp_path / "content" / "themes" / "harbor-child"
    theme_dir.mkdir(parents=True)
    (theme_dir / "style.css").write_text(
        "/*\nTheme Name: Harbor Child\nTemplate: quill-default\n*/", encoding="utf-8"
    )
    (theme_dir / "search.html").write_text(
        '{% extends "base.html" %}{% block content %}child search: {{ query.vars.s }}{% endblock %}',
        encoding="utf-8",
    )
    return theme_dir


@pytest.fixture
def site(tmp_path: Path):
    return bootstrap(_write_site(tmp_path))


@pytest.fixture
def client(site) -> TestClient:
    return TestClient(create_app(site))


def test_home_renders_default_theme(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "Latest posts" in response.text
    assert "Quill Default" in response.text
    assert "/builtin-themes/quill-default/style.css" in response.text


def test_paged_home(client: TestClient) -> None:
    response = client.get("/page/2")

    assert response.status_code == 200
    assert "Page 2" in response.text


def test_not_found_query_uses_404_template(client: TestClient) -> None:
    response = client.get("/2024/13")

    assert response.status_code == 404
    assert "Nothing here" in response.text


def test_search_and_archive_templates(client: TestClient) -> None:
    search = client.get("/", params={"s": "boats"})
    archive = client.get("/category/news")
    single = client.get("/posts/hello-world")

    assert "Search results for boats" in search.text
    assert "Category: news" in archive.text
    assert "hello-world" in single.text


def test_child_theme_template_overrides_parent(tmp_path: Path, site, client: TestClient) -> None:
    _write_child_theme(tmp_path)
    site.registry.clean_cache()
    site.themes.switch_theme("harbor-child")

    search = client.get("/", params={"s": "boats"})
    home = client.get("/")

    assert "child search: boats" in search.text
    assert "Latest posts" in home.text
    assert "Harbor Child" in home.text


def test_theme_assets_are_served(client: TestClient) -> None:
    response = client.get("/builtin-themes/quill-default/style.css")

    assert response.status_code == 200
    assert "Theme Name: Quill Default" in response.text


def test_content_theme_root_uri(tmp_path: Path, site) -> None:
    _write_child_theme(tmp_path)
    site.registry.clean_cache()

    theme = site.registry.get_theme("harbor-child")

    assert theme.get_stylesheet_directory_uri() == "/content/themes/harbor-child"
    assert theme.get_template_directory_uri() == "/builtin-themes/quill-default"


def test_bogus_active_theme_is_a_server_error(site, client: TestClient) -> None:
    site.options.template = "gone"
    site.options.stylesheet = "gone"

    response = client.get("/")

    assert response.status_code == 500
    assert "'gone' is not installed" in response.text


def test_broken_active_theme_reports_its_error(tmp_path: Path, site, client: TestClient) -> None:
    theme_dir = tmp_path / "content" / "themes" / "half-done"
    theme_dir.mkdir(parents=True)
    (theme_dir / "style.css").write_text("/*\nTheme Name: Half Done\n*/", encoding="utf-8")
    (theme_dir / "404.html").write_text("never rendered", encoding="utf-8")
    site.registry.clean_cache()
    site.themes.switch_theme("half-done")

    response = client.get("/")

    assert response.status_code == 500
    assert "Standalone themes need to have an index.html" in response.text
    assert "never rendered" not in response.text


def test_front_route_runs_on_the_event_loop(site) -> None:
    app = create_app(site)
    [route] = [route for route in app.routes if isinstance(route, APIRoute)]

    assert route.path == "/{path:path}"
    assert inspect.iscoroutinefunction(route.endpoint)


def test_template_syntax_error_is_a_server_error(tmp_path: Path, site, client: TestClient) -> None:
    theme_dir = tmp_path / "content" / "themes" / "broken-markup"
    theme_dir.mkdir(parents=True)
    (theme_dir / "style.css").write_text("/*\nTheme Name: Broken Markup\n*/", encoding="utf-8")
    (theme_dir / "index.html").write_text("{% if %}", encoding="utf-8")
    site.registry.clean_cache()
    site.themes.switch_theme("broken-markup")

    response = client.get("/")

    assert response.status_code == 500
    assert "failed to render" in response.text


def test_validate_active_theme_on_bootstrap(tmp_path: Path) -> None:
    path = _write_site(tmp_path, validate_active_theme=True)
    first = bootstrap(path)
    first.options.template = "gone"
    first.options.stylesheet = "gone"

    second = bootstrap(path)

    assert second.themes.get_stylesheet() == "quill-default"
    assert second.themes.get_active_theme().exists()


def test_bootstrap_failure_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "site.yaml"
    path.write_text("log_level: LOUD\n", encoding="utf-8")

    with pytest.raises(QuillPressError) as excinfo:
        bootstrap(path)
    assert excinfo.value.code is ErrorCode.BOOTSTRAP_FAILED
    assert excinfo.value.details["cause"] == "CONFIG_INVALID"

    assert run_app(path) == 1
