"""Tests for request classification and the template hierarchy."""

from __future__ import annotations

from pathlib import Path

import pytest

from quillpress.query import QueryKind, resolve_query
from quillpress.template_loader import locate_template, template_hierarchy
from quillpress.themes.constants import FILE_HEADERS
from quillpress.themes.loader import load_theme
from quillpress.themes.models import ThemeRoot


@pytest.mark.parametrize(
    ("path", "params", "kind", "expected_vars"),
    [
        ("/", {}, QueryKind.HOME, {}),
        ("/page/3/", {}, QueryKind.HOME, {"paged": "3"}),
        ("/", {"s": " boats "}, QueryKind.SEARCH, {"s": "boats"}),
        ("/search/boats", {}, QueryKind.SEARCH, {"s": "boats"}),
        ("/", {"p": "42"}, QueryKind.SINGLE, {"p": "42"}),
        ("/", {"page_id": "7"}, QueryKind.PAGE, {"page_id": "7"}),
        ("/posts/hello-world", {}, QueryKind.SINGLE, {"name": "hello-world"}),
        ("/about", {}, QueryKind.PAGE, {"pagename": "about"}),
        ("/about/team/", {}, QueryKind.PAGE, {"pagename": "about/team"}),
        ("/category/news", {}, QueryKind.CATEGORY, {"category_name": "news"}),
        ("/tag/sailing/page/2", {}, QueryKind.TAG, {"tag": "sailing", "paged": "2"}),
        ("/author/ada", {}, QueryKind.AUTHOR, {"author_name": "ada"}),
        ("/2024/05", {}, QueryKind.DATE, {"year": "2024", "monthnum": "05"}),
        ("/2024/5/9", {}, QueryKind.DATE, {"year": "2024", "monthnum": "05", "day": "09"}),
        ("/2024/13", {}, QueryKind.NOT_FOUND, {}),
        ("/category", {}, QueryKind.NOT_FOUND, {}),
        ("/bad%20slug!", {}, QueryKind.NOT_FOUND, {}),
        ("/", {"paged": "0"}, QueryKind.NOT_FOUND, {}),
    ],
)
def test_resolve_query(path: str, params: dict[str, str], kind: QueryKind, expected_vars: dict[str, str]) -> None:
    query = resolve_query(path, params)

    assert query.kind is kind
    assert query.vars == expected_vars


def test_query_flags() -> None:
    assert resolve_query("/nope!").is_404
    assert resolve_query("/category/news").is_archive
    assert resolve_query("/about").is_singular
    assert resolve_query("/").paged == 1


@pytest.mark.parametrize(
    ("path", "params", "expected"),
    [
        ("/", {}, ["front-page.html", "home.html", "index.html"]),
        ("/", {"s": "x"}, ["search.html", "index.html"]),
        ("/missing!", {}, ["404.html", "index.html"]),
        ("/posts/hi", {}, ["single-hi.html", "single.html", "singular.html", "index.html"]),
        ("/about/team", {}, ["page-team.html", "page.html", "singular.html", "index.html"]),
        ("/", {"page_id": "7"}, ["page-7.html", "page.html", "singular.html", "index.html"]),
        ("/category/news", {}, ["category-news.html", "category.html", "archive.html", "index.html"]),
        ("/author/ada", {}, ["author-ada.html", "author.html", "archive.html", "index.html"]),
        ("/2024", {}, ["date.html", "archive.html", "index.html"]),
    ],
)
def test_template_hierarchy(path: str, params: dict[str, str], expected: list[str]) -> None:
    assert template_hierarchy(resolve_query(path, params)) == expected


def _touch(path: Path, content: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_locate_template_prefers_child_then_parent(tmp_path: Path) -> None:
    root = ThemeRoot(path=tmp_path, uri="/t")
    _touch(tmp_path / "parent" / "style.css", "/*\nTheme Name: Parent\n*/")
    _touch(tmp_path / "parent" / "index.html")
    _touch(tmp_path / "parent" / "single.html")
    _touch(tmp_path / "parent" / "search.html")
    _touch(tmp_path / "child" / "style.css", "/*\nTheme Name: Child\nTemplate: parent\n*/")
    _touch(tmp_path / "child" / "search.html")

    def lookup(slug: str):
        return load_theme(slug, root, FILE_HEADERS)

    child = load_theme("child", root, FILE_HEADERS, lookup)

    assert locate_template(["search.html", "index.html"], child) == tmp_path / "child" / "search.html"
    assert locate_template(["single.html", "index.html"], child) == tmp_path / "parent" / "single.html"
    assert locate_template(["404.html", "index.html"], child) == tmp_path / "parent" / "index.html"
    assert locate_template(["404.html"], child) is None
