"""Theme registry exports."""

from quillpress.themes.constants import DEFAULT_THEME_SLUG
from quillpress.themes.models import ThemeRecord, ThemeRoot
from quillpress.themes.registry import ThemeRegistry
from quillpress.themes.service import ThemeService

__all__ = [
    "DEFAULT_THEME_SLUG",
    "ThemeRecord",
    "ThemeRoot",
    "ThemeRegistry",
    "ThemeService",
]
