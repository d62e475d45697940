"""Site option store via QSettings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from PySide6.QtCore import QSettings


class SiteOptions:
    """Wraps QSettings as the persistent key-value option store of a site.

    With ``path`` the options live in an INI file, otherwise in the
    platform's native settings location.
    """

    def __init__(self, path: str | Path | None = None, *, default_theme: str = "quill-default") -> None:
        if path is None:
            self._qs = QSettings("QuillPress", "QuillPress")
        else:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._qs = QSettings(str(path), QSettings.Format.IniFormat)
        self._default_theme = default_theme

    @property
    def file_name(self) -> str:
        return self._qs.fileName()

    # -- generic access --

    def get(self, key: str, default: Any = None) -> Any:
        return self._qs.value(key, default)

    def set(self, key: str, value: Any) -> None:
        self._qs.setValue(key, value)
        self._qs.sync()

    def delete(self, key: str) -> None:
        self._qs.remove(key)
        self._qs.sync()

    # -- theme --

    @property
    def template(self) -> str:
        raw = self._qs.value("theme/template", self._default_theme, type=str)
        return raw or ""

    @template.setter
    def template(self, value: str) -> None:
        self.set("theme/template", value or "")

    @property
    def stylesheet(self) -> str:
        raw = self._qs.value("theme/stylesheet", self._default_theme, type=str)
        return raw or ""

    @stylesheet.setter
    def stylesheet(self, value: str) -> None:
        self.set("theme/stylesheet", value or "")

    # -- site --

    @property
    def blog_name(self) -> str:
        raw = self._qs.value("site/blog_name", "QuillPress", type=str)
        value = (raw or "").strip()
        return value or "QuillPress"

    @blog_name.setter
    def blog_name(self, value: str) -> None:
        self.set("site/blog_name", (value or "").strip())

    @property
    def site_url(self) -> str:
        raw = self._qs.value("site/url", "", type=str)
        return (raw or "").strip().rstrip("/")

    @site_url.setter
    def site_url(self, value: str) -> None:
        self.set("site/url", (value or "").strip().rstrip("/"))
