"""Site bootstrap and front controller."""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

import jinja2
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from quillpress.config.settings import SiteOptions
from quillpress.config.site_config import SiteConfig, load_site_config
from quillpress.errors import (
    ErrorCode,
    QuillPressError,
    classify_exception,
    format_error_for_user,
)
from quillpress.query import Query, resolve_query
from quillpress.runtime_paths import builtin_themes_root
from quillpress.template_loader import locate_template, template_hierarchy
from quillpress.themes.models import ThemeRecord, ThemeRoot
from quillpress.themes.registry import ThemeRegistry
from quillpress.themes.service import ThemeService

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
BUILTIN_THEMES_URI = "/builtin-themes"


@dataclass
class Site:
    """Process-wide state shared by every request."""

    config: SiteConfig
    options: SiteOptions
    registry: ThemeRegistry
    themes: ThemeService
    logger: logging.Logger


def configure_logging(config: SiteConfig) -> logging.Logger:
    logger = logging.getLogger("quillpress")
    logger.setLevel(config.log_level_number)
    if any(isinstance(handler, RotatingFileHandler) for handler in logger.handlers):
        return logger

    config.log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        config.log_dir / "quillpress.log",
        maxBytes=512_000,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(file_handler)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(console_handler)
    logger.propagate = False
    return logger


def build_theme_roots(config: SiteConfig) -> list[ThemeRoot]:
    """Map configured theme directories to the URIs they are served at."""
    roots: list[ThemeRoot] = []
    for index, path in enumerate(config.theme_roots):
        try:
            relative = path.resolve().relative_to(config.content_dir.resolve())
        except ValueError:
            uri = f"/theme-roots/{index}"
        else:
            uri = f"{config.content_url}/{relative.as_posix()}"
        roots.append(ThemeRoot(path=path, uri=uri))
    if config.include_builtin_themes:
        roots.append(ThemeRoot(path=builtin_themes_root(), uri=BUILTIN_THEMES_URI))
    return roots


def bootstrap(config_path: str | Path | None = None) -> Site:
    """Load configuration and option state and build the theme services.

    Raises QuillPressError(BOOTSTRAP_FAILED) on any failure.
    """
    try:
        config = load_site_config(config_path)
        logger = configure_logging(config)
        options = SiteOptions(config.options_file, default_theme=config.default_theme)
        registry = ThemeRegistry(build_theme_roots(config))
        themes = ThemeService(options, registry, default_theme=config.default_theme)
    except Exception as exc:
        cause = classify_exception(exc, Path(config_path) if config_path else None)
        raise QuillPressError(
            ErrorCode.BOOTSTRAP_FAILED,
            message=f"Bootstrap failed: {cause.message}",
            path=cause.path,
            details={"cause": cause.code.name, **cause.details},
        ) from exc

    logger.info("site config %s, options %s", config.source_path or "<defaults>", options.file_name)
    errors = registry.list_themes(errors=True)
    if errors:
        logger.warning(
            "broken themes: %s",
            " | ".join(f"{slug}: {theme.errors().message}" for slug, theme in list(errors.items())[:6]),
        )
    if config.validate_active_theme and not themes.validate_active_theme():
        logger.warning("active theme reverted to %s", themes.get_stylesheet())
    return Site(config=config, options=options, registry=registry, themes=themes, logger=logger)


class FrontController:
    """Resolve each request and render it with the active theme's template."""

    def __init__(self, site: Site) -> None:
        self._site = site
        self._templates: dict[tuple[Path, Path], Jinja2Templates] = {}

    def dispatch(self, request: Request) -> HTMLResponse:
        query = resolve_query(request.url.path, dict(request.query_params))
        theme = self._site.themes.get_active_theme()
        if not theme.installed():
            return self._error_response(
                QuillPressError(
                    ErrorCode.TEMPLATE_NOT_FOUND,
                    message=f"The active theme {str(theme)!r} is not installed.",
                )
            )
        if not theme.exists():
            return self._error_response(theme.errors())

        names = template_hierarchy(query)
        template_path = locate_template(names, theme)
        if template_path is None:
            return self._error_response(
                QuillPressError(
                    ErrorCode.TEMPLATE_NOT_FOUND,
                    path=theme.get_stylesheet_directory(),
                    details={"candidates": ", ".join(names)},
                )
            )

        templates = self._templates_for(theme)
        status_code = 404 if query.is_404 else 200
        try:
            return templates.TemplateResponse(
                request,
                template_path.name,
                self._context(query, theme),
                status_code=status_code,
            )
        except jinja2.TemplateError as exc:
            return self._error_response(classify_exception(exc, template_path))

    def _templates_for(self, theme: ThemeRecord) -> Jinja2Templates:
        key = (theme.get_stylesheet_directory(), theme.get_template_directory())
        templates = self._templates.get(key)
        if templates is None:
            directories = [str(key[0])]
            if key[1] != key[0]:
                directories.append(str(key[1]))
            templates = Jinja2Templates(directory=directories)
            templates.env.add_extension("jinja2.ext.i18n")
            self._templates[key] = templates
        templates.env.install_gettext_translations(theme.translations(), newstyle=True)
        return templates

    def _context(self, query: Query, theme: ThemeRecord) -> dict[str, object]:
        options = self._site.options
        return {
            "site": {"name": options.blog_name, "url": options.site_url},
            "query": query,
            "theme": theme,
            "stylesheet_uri": f"{theme.get_stylesheet_directory_uri()}/style.css",
            "stylesheet_directory_uri": theme.get_stylesheet_directory_uri(),
            "template_directory_uri": theme.get_template_directory_uri(),
        }

    def _error_response(self, error: QuillPressError) -> HTMLResponse:
        self._site.logger.error("render failed: %s", error.to_dict())
        body = html.escape(format_error_for_user(error), quote=False).replace("\n", "<br>")
        return HTMLResponse(f"<!doctype html><title>Site error</title><p>{body}</p>", status_code=500)


def create_app(site: Site) -> FastAPI:
    """Build the ASGI app serving theme assets and the front controller."""
    app = FastAPI(title="QuillPress", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.site = site

    for root in site.registry.roots:
        if root.uri.startswith("/") and root.path.is_dir():
            app.mount(root.uri, StaticFiles(directory=str(root.path)), name=f"themes:{root.uri}")

    controller = FrontController(site)

    # Dispatch runs on the event loop: the registry caches and Jinja environments
    # are shared and not thread-safe.
    @app.get("/{path:path}", response_class=HTMLResponse)
    async def front(request: Request, path: str) -> HTMLResponse:
        return controller.dispatch(request)

    return app


def run_app(config_path: str | Path | None = None) -> int:
    """Bootstrap the site and serve it. Returns the process exit code."""
    try:
        site = bootstrap(config_path)
    except QuillPressError as exc:
        startup = logging.getLogger("quillpress.startup")
        if not startup.handlers:
            startup.addHandler(logging.StreamHandler(sys.stderr))
        startup.critical("%s", format_error_for_user(exc))
        return 1

    import uvicorn

    app = create_app(site)
    site.logger.info("serving on http://%s:%s", site.config.host, site.config.port)
    uvicorn.run(app, host=site.config.host, port=site.config.port, log_level=site.config.log_level.lower())
    return 0
