"""Theme framework constants."""

from __future__ import annotations

DEFAULT_THEME_SLUG = "quill-default"

# Bundled default themes, newest first.
CORE_DEFAULT_THEMES: tuple[str, ...] = (
    "quill-default",
)

STYLESHEET_FILE = "style.css"
INDEX_TEMPLATE = "index.html"
DEFAULT_DOMAIN_PATH = "languages"
DEFAULT_STATUS = "publish"

# Header key -> label as written in style.css.
FILE_HEADERS: dict[str, str] = {
    "Name": "Theme Name",
    "ThemeURI": "Theme URI",
    "Description": "Description",
    "Author": "Author",
    "AuthorURI": "Author URI",
    "Version": "Version",
    "Template": "Template",
    "Status": "Status",
    "Tags": "Tags",
    "TextDomain": "Text Domain",
    "DomainPath": "Domain Path",
}

URI_HEADERS: tuple[str, ...] = (
    "ThemeURI",
    "AuthorURI",
)

SCREENSHOT_EXTENSIONS: tuple[str, ...] = (
    "png",
    "gif",
    "jpg",
    "jpeg",
    "webp",
)
