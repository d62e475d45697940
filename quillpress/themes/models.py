"""Theme framework models."""

from __future__ import annotations

import gettext
import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from quillpress.errors import ErrorCode, QuillPressError
from quillpress.themes.constants import (
    DEFAULT_DOMAIN_PATH,
    DEFAULT_STATUS,
    SCREENSHOT_EXTENSIONS,
    URI_HEADERS,
)

_TAG_RE = re.compile(r"<[^>]*>")
_URI_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)
_MISSING_CODES = (ErrorCode.THEME_NOT_FOUND, ErrorCode.THEME_ROOT_MISSING)

HeaderValue = str | tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ThemeRoot:
    """A directory holding theme directories, and the URI it is served at."""

    path: Path
    uri: str

    def theme_uri(self, stylesheet: str) -> str:
        return f"{self.uri.rstrip('/')}/{quote(stylesheet)}"


class ThemeRecord:
    """A theme discovered under a theme root.

    Problems found while loading are kept on the record (see ``errors()``)
    instead of being raised, so listing always succeeds. Directories and
    URIs are computed from the theme root and slugs on every call.
    """

    def __init__(
        self,
        stylesheet: str,
        theme_root: ThemeRoot,
        *,
        template: str,
        headers: dict[str, str],
        errors: QuillPressError | None = None,
        parent: ThemeRecord | None = None,
    ) -> None:
        self._stylesheet = stylesheet
        self._theme_root = theme_root
        self._template = template
        self._headers = dict(headers)
        self._errors = errors
        self._parent = parent
        self._headers_sanitized: dict[str, HeaderValue] | None = None
        self._textdomain_loaded: bool | None = None
        self._translations: gettext.NullTranslations | None = None

    def __str__(self) -> str:
        return self.display("Name")

    def __repr__(self) -> str:
        return f"ThemeRecord({self._stylesheet!r}, root={str(self._theme_root.path)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ThemeRecord):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash((self._stylesheet, self._theme_root))

    def _identity(self) -> tuple[object, ...]:
        error_code = self._errors.code if self._errors is not None else None
        parent_slug = self._parent.get_stylesheet() if self._parent is not None else None
        return (
            self._stylesheet,
            self._template,
            self._theme_root,
            tuple(self._headers.items()),
            error_code,
            parent_slug,
        )

    # -- state --

    def exists(self) -> bool:
        """True when the theme loaded without errors."""
        return self._errors is None

    def installed(self) -> bool:
        """True when the theme directory is present, even if the theme is broken."""
        if self._errors is None:
            return True
        return self._errors.code not in _MISSING_CODES

    def errors(self) -> QuillPressError | None:
        return self._errors

    def parent(self) -> ThemeRecord | None:
        return self._parent

    def is_child_theme(self) -> bool:
        return self._template != self._stylesheet

    @property
    def headers(self) -> dict[str, str]:
        """Raw header values as parsed from style.css."""
        return dict(self._headers)

    # -- headers --

    def get(self, header: str) -> HeaderValue | None:
        """Return the sanitized value of ``header``, or None if it is not a known header."""
        if header not in self._headers:
            return None
        if self._headers_sanitized is None:
            self._headers_sanitized = {
                key: self._sanitize_header(key, value) for key, value in self._headers.items()
            }
        return self._headers_sanitized[header]

    def display(self, header: str) -> str:
        value = self.get(header)
        if value is None:
            return ""
        if isinstance(value, tuple):
            return ", ".join(value)
        return value

    def _sanitize_header(self, header: str, value: str) -> HeaderValue:
        cleaned = _TAG_RE.sub("", value).strip()
        if header == "Name":
            return cleaned or self._stylesheet
        if header == "Status":
            return cleaned or DEFAULT_STATUS
        if header == "Tags":
            return tuple(tag.strip() for tag in cleaned.split(",") if tag.strip())
        if header in URI_HEADERS:
            return cleaned if _URI_RE.match(cleaned) else ""
        return cleaned

    # -- slugs and locations --

    def get_stylesheet(self) -> str:
        return self._stylesheet

    def get_template(self) -> str:
        return self._template

    def get_theme_root(self) -> Path:
        return self._theme_root.path

    def get_theme_root_uri(self) -> str:
        return self._theme_root.uri

    def get_stylesheet_directory(self) -> Path:
        return self._theme_root.path / self._stylesheet

    def get_template_directory(self) -> Path:
        if self._parent is not None:
            return self._parent.get_theme_root() / self._template
        return self._theme_root.path / self._template

    def get_stylesheet_directory_uri(self) -> str:
        return self._theme_root.theme_uri(self._stylesheet)

    def get_template_directory_uri(self) -> str:
        if self._parent is not None:
            return self._parent._theme_root.theme_uri(self._template)
        return self._theme_root.theme_uri(self._template)

    def get_screenshot(self, *, uri: bool = True) -> str | None:
        """Return the screenshot URI (or file name) if the theme ships one."""
        directory = self.get_stylesheet_directory()
        for ext in SCREENSHOT_EXTENSIONS:
            candidate = directory / f"screenshot.{ext}"
            if candidate.is_file() and not candidate.is_symlink():
                if uri:
                    return f"{self.get_stylesheet_directory_uri()}/{candidate.name}"
                return candidate.name
        return None

    # -- translations --

    @property
    def textdomain_path(self) -> Path:
        domain_path = self.display("DomainPath").strip("/") or DEFAULT_DOMAIN_PATH
        return self.get_stylesheet_directory() / domain_path

    def load_textdomain(self, locale: str | None = None) -> bool:
        """Load the theme's gettext catalog for ``locale``.

        Returns True when the theme declares a text domain and ships a
        translations directory. The result is cached until ``clean_cache()``.
        """
        if self._textdomain_loaded is not None:
            return self._textdomain_loaded
        textdomain = self.display("TextDomain")
        if not textdomain or not self.textdomain_path.is_dir():
            self._textdomain_loaded = False
            self._translations = gettext.NullTranslations()
            return False
        self._translations = gettext.translation(
            textdomain,
            localedir=str(self.textdomain_path),
            languages=[locale] if locale else None,
            fallback=True,
        )
        self._textdomain_loaded = True
        return True

    def translations(self) -> gettext.NullTranslations:
        if self._translations is None:
            self.load_textdomain()
        return self._translations or gettext.NullTranslations()

    def clean_cache(self) -> None:
        """Drop derived data: sanitized headers and the loaded text domain."""
        self._headers_sanitized = None
        self._textdomain_loaded = None
        self._translations = None
