"""Active theme selection and persistence service."""

from __future__ import annotations

import logging

from PySide6.QtCore import QObject, Signal

from quillpress.config.settings import SiteOptions
from quillpress.themes.constants import DEFAULT_THEME_SLUG, INDEX_TEMPLATE, STYLESHEET_FILE
from quillpress.themes.models import ThemeRecord
from quillpress.themes.registry import ThemeRegistry

logger = logging.getLogger(__name__)


class ThemeService(QObject):
    """Resolve the active theme from the option store and switch themes."""

    theme_switched = Signal(str)

    def __init__(
        self,
        options: SiteOptions,
        registry: ThemeRegistry,
        *,
        default_theme: str = DEFAULT_THEME_SLUG,
    ) -> None:
        super().__init__()
        self._options = options
        self._registry = registry
        self._default_theme = default_theme

    @property
    def registry(self) -> ThemeRegistry:
        return self._registry

    def get_template(self) -> str:
        """Return the stored template slug, whether or not it is installed."""
        return self._options.template

    def get_stylesheet(self) -> str:
        """Return the stored stylesheet slug, whether or not it is installed."""
        return self._options.stylesheet

    def get_active_theme(self) -> ThemeRecord:
        """Return the record for the stored stylesheet.

        A stylesheet with no matching directory still yields a record; it
        reports ``exists() == False`` and displays the stored slug as its name.
        """
        return self._registry.get_theme(self.get_stylesheet())

    def available_themes(self) -> list[ThemeRecord]:
        rows = list(self._registry.list_themes(errors=False).values())
        return sorted(rows, key=lambda row: str(row).lower())

    def switch_theme(self, stylesheet: str) -> ThemeRecord:
        theme = self._registry.get_theme(stylesheet)
        self._options.template = theme.get_template()
        self._options.stylesheet = theme.get_stylesheet()
        logger.info("switched theme to %s (template %s)", stylesheet, theme.get_template())
        self.theme_switched.emit(stylesheet)
        return theme

    def validate_active_theme(self) -> bool:
        """Fall back to the default theme if the active one cannot render.

        Returns True when the active theme has both its stylesheet and an
        index template; otherwise switches themes and returns False.
        """
        theme = self.get_active_theme()
        has_index = (theme.get_template_directory() / INDEX_TEMPLATE).is_file()
        has_stylesheet = (theme.get_stylesheet_directory() / STYLESHEET_FILE).is_file()
        if has_index and has_stylesheet:
            return True

        fallback = self._registry.get_theme(self._default_theme)
        if not fallback.exists():
            core = self._registry.get_core_default_theme()
            if core is None or core.get_stylesheet() == theme.get_stylesheet():
                logger.warning("active theme %r is broken and no default theme is installed", str(theme))
                return False
            fallback = core
        logger.warning(
            "active theme %r is broken; reverting to %r",
            theme.get_stylesheet(),
            fallback.get_stylesheet(),
        )
        self.switch_theme(fallback.get_stylesheet())
        return False
