"""Classify an incoming request into a query the template loader understands."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

_SLUG_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
_DIGITS_RE = re.compile(r"^\d+$")

_TAXONOMY_PREFIXES = {
    "category": "category_name",
    "tag": "tag",
    "author": "author_name",
}


class QueryKind(Enum):
    HOME = "home"
    SEARCH = "search"
    SINGLE = "single"
    PAGE = "page"
    CATEGORY = "category"
    TAG = "tag"
    AUTHOR = "author"
    DATE = "date"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class Query:
    """The resolved request: what kind of page it asks for and its variables."""

    kind: QueryKind
    path: str = ""
    vars: dict[str, str] = field(default_factory=dict)

    @property
    def is_404(self) -> bool:
        return self.kind is QueryKind.NOT_FOUND

    @property
    def is_archive(self) -> bool:
        return self.kind in (QueryKind.CATEGORY, QueryKind.TAG, QueryKind.AUTHOR, QueryKind.DATE)

    @property
    def is_singular(self) -> bool:
        return self.kind in (QueryKind.SINGLE, QueryKind.PAGE)

    @property
    def paged(self) -> int:
        return int(self.vars.get("paged", "1"))


def resolve_query(path: str, params: Mapping[str, str] | None = None) -> Query:
    """Resolve a request path and query-string parameters into a Query.

    Query-string variables (``s``, ``p``, ``page_id``) take precedence over
    the path, and a trailing ``page/<n>`` sets the page number.
    """
    params = params or {}
    cleaned = path.strip("/")
    segments = [segment for segment in cleaned.split("/") if segment]
    query_vars: dict[str, str] = {}

    paged = params.get("paged", "")
    if len(segments) >= 2 and segments[-2] == "page" and _DIGITS_RE.match(segments[-1]):
        paged = segments[-1]
        segments = segments[:-2]
    if paged:
        if not _DIGITS_RE.match(paged) or int(paged) < 1:
            return Query(QueryKind.NOT_FOUND, cleaned)
        query_vars["paged"] = str(int(paged))

    search = params.get("s", "").strip()
    if search:
        return Query(QueryKind.SEARCH, cleaned, {**query_vars, "s": search})
    post_id = params.get("p", "")
    if _DIGITS_RE.match(post_id):
        return Query(QueryKind.SINGLE, cleaned, {**query_vars, "p": post_id})
    page_id = params.get("page_id", "")
    if _DIGITS_RE.match(page_id):
        return Query(QueryKind.PAGE, cleaned, {**query_vars, "page_id": page_id})

    if not segments:
        return Query(QueryKind.HOME, cleaned, query_vars)

    head, rest = segments[0], segments[1:]
    if head == "search" and len(rest) == 1:
        return Query(QueryKind.SEARCH, cleaned, {**query_vars, "s": rest[0]})
    if head == "posts" and len(rest) == 1 and _SLUG_RE.match(rest[0]):
        return Query(QueryKind.SINGLE, cleaned, {**query_vars, "name": rest[0]})
    if head in _TAXONOMY_PREFIXES:
        if len(rest) == 1 and _SLUG_RE.match(rest[0]):
            kind = QueryKind(head)
            return Query(kind, cleaned, {**query_vars, _TAXONOMY_PREFIXES[head]: rest[0]})
        return Query(QueryKind.NOT_FOUND, cleaned)

    date_vars = _date_vars(segments)
    if date_vars is not None:
        return Query(QueryKind.DATE, cleaned, {**query_vars, **date_vars})
    if all(_DIGITS_RE.match(segment) for segment in segments):
        return Query(QueryKind.NOT_FOUND, cleaned)

    if all(_SLUG_RE.match(segment) for segment in segments):
        return Query(QueryKind.PAGE, cleaned, {**query_vars, "pagename": "/".join(segments)})
    return Query(QueryKind.NOT_FOUND, cleaned)


def _date_vars(segments: list[str]) -> dict[str, str] | None:
    if not 1 <= len(segments) <= 3:
        return None
    if not all(_DIGITS_RE.match(segment) for segment in segments):
        return None
    if len(segments[0]) != 4:
        return None
    result = {"year": segments[0]}
    if len(segments) >= 2:
        month = int(segments[1])
        if not 1 <= month <= 12:
            return None
        result["monthnum"] = f"{month:02d}"
    if len(segments) == 3:
        day = int(segments[2])
        if not 1 <= day <= 31:
            return None
        result["day"] = f"{day:02d}"
    return result
