"""Theme directory discovery and registry."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Sequence

from quillpress.themes.constants import CORE_DEFAULT_THEMES, FILE_HEADERS, STYLESHEET_FILE
from quillpress.themes.loader import load_theme
from quillpress.themes.models import ThemeRecord, ThemeRoot

logger = logging.getLogger(__name__)

_MAX_THEME_DIR_CANDIDATES = 512

HeaderFilter = Callable[[list[str]], Iterable[str]]


class ThemeRegistry:
    """Discovers themes under an ordered list of theme roots and caches them.

    The first root holding a given slug wins. Cached scan results and
    records stay until ``clean_cache()`` is called.
    """

    def __init__(
        self,
        roots: Sequence[ThemeRoot],
        *,
        core_default_themes: Sequence[str] = CORE_DEFAULT_THEMES,
    ) -> None:
        if not roots:
            raise ValueError("ThemeRegistry needs at least one theme root")
        self._roots: list[ThemeRoot] = list(roots)
        self._core_default_themes = tuple(core_default_themes)
        self._header_filters: list[HeaderFilter] = []
        self._found: dict[str, ThemeRoot] | None = None
        self._records: dict[Path, dict[str, ThemeRecord]] = {}
        self._resolving: set[str] = set()
        self._scan_errors: list[str] = []

    @property
    def roots(self) -> list[ThemeRoot]:
        return list(self._roots)

    def register_theme_root(self, root: ThemeRoot) -> bool:
        """Append a theme root. Returns False if it is already registered."""
        if any(existing.path == root.path for existing in self._roots):
            return False
        self._roots.append(root)
        self._found = None
        return True

    # -- extra headers --

    def add_header_filter(self, callback: HeaderFilter) -> None:
        """Register a callback that contributes extra header names.

        The callback receives the extra names collected so far and returns
        the names it wants parsed. Applies to records parsed afterwards.
        """
        if callback not in self._header_filters:
            self._header_filters.append(callback)

    def remove_header_filter(self, callback: HeaderFilter) -> None:
        if callback in self._header_filters:
            self._header_filters.remove(callback)

    def header_names(self) -> dict[str, str]:
        """Return header key -> label for every header parsed from style.css."""
        names = dict(FILE_HEADERS)
        known = set(names) | set(names.values())
        extras: list[str] = []
        for callback in self._header_filters:
            for name in callback(list(extras)):
                if not isinstance(name, str):
                    continue
                cleaned = name.strip()
                if cleaned and cleaned not in known and cleaned not in extras:
                    extras.append(cleaned)
        for name in extras:
            names[name] = name
        return names

    # -- discovery --

    def search_theme_directories(self) -> dict[str, ThemeRoot]:
        """Return slug -> theme root for every theme directory found."""
        if self._found is not None:
            return dict(self._found)
        self._scan_errors = []
        found: dict[str, ThemeRoot] = {}
        for root in self._roots:
            for slug in self._scan_root(root):
                if slug in found:
                    self._warn(
                        f"Duplicate theme {slug!r} at {root.path}; "
                        f"using the one in {found[slug].path}."
                    )
                    continue
                found[slug] = root
        self._found = found
        return dict(found)

    def list_themes(self, errors: bool | None = None) -> dict[str, ThemeRecord]:
        """Return slug -> record for discovered themes.

        ``errors=None`` returns every theme, ``False`` only valid themes and
        ``True`` only broken ones.
        """
        themes: dict[str, ThemeRecord] = {}
        for slug, root in sorted(self.search_theme_directories().items()):
            record = self.get_theme(slug, root)
            broken = record.errors() is not None
            if errors is None or errors == broken:
                themes[slug] = record
        return themes

    def get_theme(self, stylesheet: str, root: ThemeRoot | None = None) -> ThemeRecord:
        """Return the record for ``stylesheet``.

        Unknown or malformed slugs produce an uncached record in the
        THEME_NOT_FOUND state under the first theme root; this never raises.
        """
        if root is None:
            root = self.theme_root_for(stylesheet) or self._roots[0]
        cached = self._records.get(root.path, {}).get(stylesheet)
        if cached is not None:
            return cached

        self._resolving.add(stylesheet)
        try:
            record = load_theme(stylesheet, root, self.header_names(), self._lookup_parent)
        finally:
            self._resolving.discard(stylesheet)

        if record.installed():
            self._records.setdefault(root.path, {})[stylesheet] = record
        return record

    def theme_root_for(self, stylesheet: str) -> ThemeRoot | None:
        return self.search_theme_directories().get(stylesheet)

    def get_core_default_theme(self) -> ThemeRecord | None:
        """Return the newest bundled default theme that is installed."""
        for slug in self._core_default_themes:
            record = self.get_theme(slug)
            if record.exists():
                return record
        return None

    def scan_errors(self) -> list[str]:
        return list(self._scan_errors)

    def clean_cache(self) -> None:
        """Drop scan results, cached records and their derived data."""
        for by_slug in self._records.values():
            for record in by_slug.values():
                record.clean_cache()
        self._records = {}
        self._found = None
        self._scan_errors = []

    # -- internals --

    def _lookup_parent(self, template: str) -> ThemeRecord:
        if template in self._resolving:
            # Cyclic Template headers: load the parent without resolving further.
            root = self.theme_root_for(template) or self._roots[0]
            return load_theme(template, root, self.header_names())
        return self.get_theme(template)

    def _scan_root(self, root: ThemeRoot) -> list[str]:
        if not root.path.is_dir():
            self._warn(f"Theme root does not exist: {root.path}")
            return []
        candidates = self._list_dirs(root.path)
        if len(candidates) > _MAX_THEME_DIR_CANDIDATES:
            self._warn(
                f"Theme directory limit exceeded in {root.path}; "
                f"only first {_MAX_THEME_DIR_CANDIDATES} folders were scanned."
            )
            candidates = candidates[:_MAX_THEME_DIR_CANDIDATES]

        slugs: list[str] = []
        for theme_dir in candidates:
            if (theme_dir / STYLESHEET_FILE).is_file():
                slugs.append(theme_dir.name)
                continue
            nested = [
                f"{theme_dir.name}/{sub.name}"
                for sub in self._list_dirs(theme_dir)
                if (sub / STYLESHEET_FILE).is_file()
            ]
            # A directory with no stylesheet at either level is still listed
            # so the record can report the problem.
            slugs.extend(nested or [theme_dir.name])
        return slugs

    def _list_dirs(self, path: Path) -> list[Path]:
        try:
            all_dirs = sorted(
                child
                for child in path.iterdir()
                if child.is_dir() and not child.name.startswith(".")
            )
        except OSError as exc:
            self._warn(f"Failed to list themes in {path}: {exc}")
            return []

        dirs: list[Path] = []
        for child in all_dirs:
            if child.is_symlink():
                self._warn(f"Skipping symlink theme directory: {child}")
                continue
            dirs.append(child)
        return dirs

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self._scan_errors.append(message)
