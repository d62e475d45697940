"""Error codes and error handling utilities for QuillPress."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for QuillPress operations."""

    # Theme errors (1000-1999)
    THEME_NOT_FOUND = auto()
    THEME_ROOT_MISSING = auto()
    THEME_NO_STYLESHEET = auto()
    THEME_STYLESHEET_UNREADABLE = auto()
    THEME_NO_INDEX = auto()
    THEME_NO_PARENT = auto()
    THEME_PARENT_INVALID = auto()

    # Template errors (2000-2999)
    TEMPLATE_NOT_FOUND = auto()
    TEMPLATE_RENDER_FAILED = auto()

    # Configuration errors (5000-5999)
    CONFIG_INVALID = auto()
    CONFIG_MISSING = auto()
    CONFIG_PERMISSION_DENIED = auto()

    # Bootstrap errors (6000-6999)
    BOOTSTRAP_FAILED = auto()


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.THEME_NOT_FOUND: "The theme directory does not exist.",
    ErrorCode.THEME_ROOT_MISSING: "The theme root directory is missing.",
    ErrorCode.THEME_NO_STYLESHEET: "Stylesheet is missing.",
    ErrorCode.THEME_STYLESHEET_UNREADABLE: "Stylesheet is not readable.",
    ErrorCode.THEME_NO_INDEX: (
        "Template is missing. Standalone themes need to have an index.html template file."
    ),
    ErrorCode.THEME_NO_PARENT: "The parent theme is missing. Please install the parent theme.",
    ErrorCode.THEME_PARENT_INVALID: "The parent theme is installed but is itself broken.",

    ErrorCode.TEMPLATE_NOT_FOUND: "No template in the active theme can render this request.",
    ErrorCode.TEMPLATE_RENDER_FAILED: "The theme template failed to render.",

    ErrorCode.CONFIG_INVALID: "Site configuration is invalid. Check site.yaml.",
    ErrorCode.CONFIG_MISSING: "Site configuration file not found. Using defaults.",
    ErrorCode.CONFIG_PERMISSION_DENIED: "Cannot read configuration. Check folder permissions.",

    ErrorCode.BOOTSTRAP_FAILED: "The site could not be started. See the log for details.",
}


@dataclass
class QuillPressError(Exception):
    """Base exception for QuillPress with error code and context.

    Theme records also carry instances of this class as plain state, so a
    broken theme can be listed without anything being raised.
    """

    code: ErrorCode
    message: str = ""
    path: Path | None = None
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = ERROR_MESSAGES.get(self.code, "An unexpected error occurred.")
        if not self.suggestion and self.code in ERROR_MESSAGES:
            self.suggestion = ERROR_MESSAGES[self.code]

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"\nFile: {self.path}")
        if self.details:
            details_str = " | ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"\nDetails: {details_str}")
        return "".join(parts)

    def __hash__(self) -> int:
        return hash((self.code, self.message, self.path))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or error pages."""
        return {
            "code": self.code.name,
            "message": self.message,
            "path": str(self.path) if self.path else None,
            "details": self.details,
            "suggestion": self.suggestion,
        }


def classify_exception(exc: Exception, path: Path | None = None) -> QuillPressError:
    """Classify a generic exception raised during startup into a QuillPressError."""
    if isinstance(exc, QuillPressError):
        return exc
    exc_name = type(exc).__name__
    exc_str = str(exc).lower()

    if "FileNotFoundError" in exc_name or "no such file" in exc_str:
        return QuillPressError(ErrorCode.CONFIG_MISSING, path=path, details={"original": exc_str})
    if "PermissionError" in exc_name or "permission denied" in exc_str:
        return QuillPressError(
            ErrorCode.CONFIG_PERMISSION_DENIED, path=path, details={"original": exc_str}
        )
    if "YAMLError" in exc_name or "ScannerError" in exc_name or "ParserError" in exc_name:
        return QuillPressError(ErrorCode.CONFIG_INVALID, path=path, details={"original": exc_str})
    if "TemplateNotFound" in exc_name:
        return QuillPressError(ErrorCode.TEMPLATE_NOT_FOUND, path=path, details={"original": exc_str})
    if "TemplateSyntaxError" in exc_name or "UndefinedError" in exc_name:
        return QuillPressError(
            ErrorCode.TEMPLATE_RENDER_FAILED, path=path, details={"original": exc_str}
        )

    return QuillPressError(
        ErrorCode.BOOTSTRAP_FAILED,
        message=f"{exc_name}: {exc}",
        path=path,
        details={"original": exc_str},
    )


def format_error_for_user(error: QuillPressError | Exception) -> str:
    """Format an error for display with actionable suggestions."""
    if isinstance(error, QuillPressError):
        parts = [error.message]
        if error.suggestion and error.suggestion != error.message:
            parts.append(f"\n\n{error.suggestion}")
        if error.path:
            parts.append(f"\n\nFile: {error.path.name}")
        return "".join(parts)

    classified = classify_exception(error)
    return format_error_for_user(classified)
