"""Pick the theme template that renders a query."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from quillpress.query import Query, QueryKind
from quillpress.themes.constants import INDEX_TEMPLATE
from quillpress.themes.models import ThemeRecord

_ARCHIVE_SLUG_VARS = {
    QueryKind.CATEGORY: ("category", "category_name"),
    QueryKind.TAG: ("tag", "tag"),
    QueryKind.AUTHOR: ("author", "author_name"),
}


def template_hierarchy(query: Query) -> list[str]:
    """Return candidate template names for ``query``, most specific first.

    The list always ends with the theme's index template.
    """
    names: list[str] = []
    kind = query.kind
    if kind is QueryKind.NOT_FOUND:
        names.append("404.html")
    elif kind is QueryKind.SEARCH:
        names.append("search.html")
    elif kind is QueryKind.HOME:
        names.extend(["front-page.html", "home.html"])
    elif kind is QueryKind.SINGLE:
        if query.vars.get("name"):
            names.append(f"single-{query.vars['name']}.html")
        names.extend(["single.html", "singular.html"])
    elif kind is QueryKind.PAGE:
        pagename = query.vars.get("pagename", "")
        if pagename:
            names.append(f"page-{pagename.rsplit('/', 1)[-1]}.html")
        if query.vars.get("page_id"):
            names.append(f"page-{query.vars['page_id']}.html")
        names.extend(["page.html", "singular.html"])
    elif kind in _ARCHIVE_SLUG_VARS:
        prefix, var = _ARCHIVE_SLUG_VARS[kind]
        if query.vars.get(var):
            names.append(f"{prefix}-{query.vars[var]}.html")
        names.extend([f"{prefix}.html", "archive.html"])
    elif kind is QueryKind.DATE:
        names.extend(["date.html", "archive.html"])
    names.append(INDEX_TEMPLATE)
    return names


def locate_template(names: Iterable[str], theme: ThemeRecord) -> Path | None:
    """Return the first template that exists, child theme before parent."""
    search_dirs = [theme.get_stylesheet_directory()]
    if theme.is_child_theme():
        search_dirs.append(theme.get_template_directory())
    for name in names:
        for directory in search_dirs:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None
