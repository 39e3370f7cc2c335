"""URL exclusion patterns: glob strings and regular expressions."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
import logging
import re
from typing import Any, TypeAlias
from urllib.parse import urlsplit

logger = logging.getLogger("sitemap_builder.exclusion_filter")

_ABSOLUTE_PREFIXES = ("http://", "https://")


def _url_path(url: str) -> str:
    try:
        path = urlsplit(url).path
    except ValueError:
        return url

    return path or "/"


def _translate_glob(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if char == "*":
            # "**" and "*" both span path segments.
            while index + 1 < len(pattern) and pattern[index + 1] == "*":
                index += 1
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        index += 1

    return re.compile("^" + "".join(parts) + "$")


@dataclass(slots=True, frozen=True)
class GlobPattern:
    """Glob-like string pattern.

    Patterns starting with ``http://`` or ``https://`` are matched against the
    full URL, all others against the URL path. A pattern without wildcards
    must equal the path exactly.
    """

    pattern: str
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", _translate_glob(self.pattern))

    def matches(self, url: str) -> bool:
        if self.pattern.startswith(_ABSOLUTE_PREFIXES):
            return self._compiled.match(url) is not None

        return self._compiled.match(_url_path(url)) is not None


@dataclass(slots=True, frozen=True)
class RegexPattern:
    """Regular expression searched in the full URL and in its path."""

    pattern: re.Pattern[str]

    def matches(self, url: str) -> bool:
        if self.pattern.search(url) is not None:
            return True

        return self.pattern.search(_url_path(url)) is not None


ExcludePattern: TypeAlias = GlobPattern | RegexPattern


def compile_patterns(
    patterns: Iterable[str | re.Pattern[str] | ExcludePattern],
) -> tuple[ExcludePattern, ...]:
    """Tag raw ``str``/``re.Pattern`` values as glob or regex patterns."""

    compiled: list[ExcludePattern] = []
    for pattern in patterns:
        if isinstance(pattern, (GlobPattern, RegexPattern)):
            compiled.append(pattern)
            continue

        if isinstance(pattern, re.Pattern):
            compiled.append(RegexPattern(pattern))
            continue

        if isinstance(pattern, str):
            compiled.append(GlobPattern(pattern))
            continue

        raise TypeError(
            f"Exclude patterns must be str or re.Pattern, got {type(pattern).__name__}"
        )

    return tuple(compiled)


def is_excluded(url: str, patterns: Sequence[ExcludePattern]) -> bool:
    """Return True when any pattern matches ``url``."""

    return any(pattern.matches(url) for pattern in patterns)


def filter_excluded(
    routes: Sequence[dict[str, Any]],
    patterns: Sequence[ExcludePattern],
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Split routes into ``(kept, excluded)`` preserving input order."""

    if not patterns:
        return list(routes), []

    kept: list[dict[str, Any]] = []
    excluded: list[dict[str, Any]] = []
    for route in routes:
        url = route.get("url")
        if isinstance(url, str) and is_excluded(url, patterns):
            logger.debug("Excluding route %r by pattern", url)
            excluded.append(route)
            continue

        kept.append(route)

    return kept, excluded


__all__ = [
    "ExcludePattern",
    "GlobPattern",
    "RegexPattern",
    "compile_patterns",
    "filter_excluded",
    "is_excluded",
]
