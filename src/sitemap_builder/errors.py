"""Error taxonomy for sitemap generation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


class SitemapError(Exception):
    """Base exception for sitemap generation failures."""


class ConfigurationError(SitemapError):
    """Raised when options violate a resolution-time contract."""

    def __init__(self, message: str, *, problems: Sequence[str] = ()) -> None:
        self.problems = list(problems)
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


class TransformError(SitemapError):
    """Raised when a user-supplied callback fails."""

    def __init__(self, *, sitemap_name: str | None, callback: str, reason: str) -> None:
        self.sitemap_name = sitemap_name
        self.callback = callback
        self.reason = reason
        label = sitemap_name if sitemap_name is not None else "default"
        super().__init__(
            f"{callback} callback failed for sitemap {label!r}: {reason}"
        )


class SerializationError(SitemapError):
    """Raised when the default renderer cannot produce a valid document."""


@dataclass(slots=True, frozen=True)
class RouteValidationError:
    """Collected, non-fatal rule violation for a single route.

    ``index`` is the route's position in its original route source, before
    exclusion or ``transform`` removed anything, and ``field`` is a dotted
    path such as ``videos.0.title``.
    """

    sitemap: str | None
    index: int
    url: str
    field: str
    code: str
    message: str
    value: Any = None
    suggestion: str | None = None

    @property
    def path(self) -> str:
        base = f"routes[{self.index}]"
        if self.sitemap is not None:
            base = f"{self.sitemap}.{base}"
        if not self.field:
            return base
        return f"{base}.{self.field}"


def format_validation_errors(errors: Sequence[RouteValidationError]) -> str:
    """Render a numbered, human-readable list of validation errors."""

    lines: list[str] = []
    for number, error in enumerate(errors, start=1):
        lines.append(f"{number}. {error.path}: {error.message}")
        lines.append(f"   URL: {error.url}")
        if error.value is not None:
            value_text = f'"{error.value}"' if isinstance(error.value, str) else str(error.value)
            lines.append(f"   Value: {value_text}")
        if error.suggestion:
            lines.append(f"   Suggestion: {error.suggestion}")

    return "\n".join(lines)


__all__ = [
    "ConfigurationError",
    "RouteValidationError",
    "SerializationError",
    "SitemapError",
    "TransformError",
    "format_validation_errors",
]
