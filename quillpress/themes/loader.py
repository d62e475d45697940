"""Theme metadata parsing and record construction."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Mapping

from quillpress.errors import ErrorCode, QuillPressError
from quillpress.themes.constants import INDEX_TEMPLATE, STYLESHEET_FILE
from quillpress.themes.models import ThemeRecord, ThemeRoot

_MAX_HEADER_BYTES = 8 * 1024
_COMMENT_CLOSE_RE = re.compile(r"\s*(?:\*/|\?>).*$")

ParentLookup = Callable[[str], ThemeRecord]


def read_file_headers(path: Path, header_names: Mapping[str, str]) -> dict[str, str]:
    """Parse ``Label: value`` header lines from the start of ``path``.

    ``header_names`` maps header keys to the labels written in the file.
    Missing headers map to an empty string. Raises OSError or
    UnicodeDecodeError when the file cannot be read.
    """
    with path.open("rb") as handle:
        raw = handle.read(_MAX_HEADER_BYTES)
    content = _decode_head(raw)
    content = content.replace("\r\n", "\n").replace("\r", "\n")

    headers: dict[str, str] = {}
    for key, label in header_names.items():
        pattern = re.compile(
            r"^[ \t/*#@]*" + re.escape(label) + r":(.*)$",
            re.IGNORECASE | re.MULTILINE,
        )
        match = pattern.search(content)
        headers[key] = _cleanup_header_comment(match.group(1)) if match else ""
    return headers


def load_theme(
    stylesheet: str,
    theme_root: ThemeRoot,
    header_names: Mapping[str, str],
    parent_lookup: ParentLookup | None = None,
) -> ThemeRecord:
    """Build the record for ``stylesheet`` under ``theme_root``.

    Never raises for a broken theme: the problem is stored on the record.
    Without ``parent_lookup`` a child theme's parent is not resolved.
    """
    placeholder = {key: "" for key in header_names}
    placeholder["Name"] = stylesheet

    if not _is_valid_slug(stylesheet):
        error = QuillPressError(
            ErrorCode.THEME_NOT_FOUND,
            message=f"{stylesheet!r} is not a valid theme directory name.",
            path=theme_root.path,
        )
        return ThemeRecord(
            stylesheet, theme_root, template=stylesheet, headers=placeholder, errors=error
        )
    theme_dir = theme_root.path / stylesheet
    if not theme_root.path.is_dir():
        error = QuillPressError(ErrorCode.THEME_ROOT_MISSING, path=theme_root.path)
        return ThemeRecord(
            stylesheet, theme_root, template=stylesheet, headers=placeholder, errors=error
        )
    if not theme_dir.is_dir():
        error = QuillPressError(ErrorCode.THEME_NOT_FOUND, path=theme_dir)
        return ThemeRecord(
            stylesheet, theme_root, template=stylesheet, headers=placeholder, errors=error
        )

    stylesheet_path = theme_dir / STYLESHEET_FILE
    if not stylesheet_path.is_file():
        error = QuillPressError(ErrorCode.THEME_NO_STYLESHEET, path=stylesheet_path)
        return ThemeRecord(
            stylesheet, theme_root, template=stylesheet, headers=placeholder, errors=error
        )

    try:
        headers = read_file_headers(stylesheet_path, header_names)
    except (OSError, UnicodeDecodeError) as exc:
        error = QuillPressError(
            ErrorCode.THEME_STYLESHEET_UNREADABLE,
            path=stylesheet_path,
            details={"original": str(exc)},
        )
        return ThemeRecord(
            stylesheet, theme_root, template=stylesheet, headers=placeholder, errors=error
        )

    template = headers.get("Template", "") or stylesheet
    if template == stylesheet:
        error = None
        if not (theme_dir / INDEX_TEMPLATE).is_file():
            error = QuillPressError(ErrorCode.THEME_NO_INDEX, path=theme_dir / INDEX_TEMPLATE)
        return ThemeRecord(stylesheet, theme_root, template=template, headers=headers, errors=error)

    if parent_lookup is None:
        return ThemeRecord(stylesheet, theme_root, template=template, headers=headers)

    parent = parent_lookup(template)
    if not parent.installed():
        error = QuillPressError(
            ErrorCode.THEME_NO_PARENT,
            message=f"The parent theme is missing. Please install the {template!r} parent theme.",
            path=theme_dir,
            details={"template": template},
        )
        return ThemeRecord(stylesheet, theme_root, template=template, headers=headers, errors=error)
    if parent.errors() is not None or parent.is_child_theme():
        error = QuillPressError(
            ErrorCode.THEME_PARENT_INVALID,
            message=f"The {template!r} theme is not a valid parent theme.",
            path=parent.get_stylesheet_directory(),
            details={"template": template},
        )
        return ThemeRecord(
            stylesheet,
            theme_root,
            template=template,
            headers=headers,
            errors=error,
            parent=parent,
        )
    return ThemeRecord(stylesheet, theme_root, template=template, headers=headers, parent=parent)


def _cleanup_header_comment(value: str) -> str:
    return _COMMENT_CLOSE_RE.sub("", value).strip()


def _decode_head(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A read cut at the byte limit may end inside a multi-byte sequence.
        if len(raw) < _MAX_HEADER_BYTES or exc.start < len(raw) - 3:
            raise
        return raw[: exc.start].decode("utf-8")


def _is_valid_slug(stylesheet: str) -> bool:
    # A slug names a directory inside its root, nested at most one level.
    if not stylesheet or "\\" in stylesheet or stylesheet.startswith("/"):
        return False
    parts = stylesheet.split("/")
    return len(parts) <= 2 and all(part and part not in (".", "..") for part in parts)
