"""Compose robots.txt content that references generated sitemaps."""

from __future__ import annotations

from collections.abc import Sequence
import re

_SITEMAP_DIRECTIVE_PATTERN = re.compile(
    r"^[ \t]*sitemap[ \t]*:[ \t]*(?P<url>\S+)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)

DEFAULT_ROBOTS_RULES = ("User-agent: *", "Allow: /")


def build_sitemap_url(hostname: str, filename: str) -> str:
    """Join ``hostname`` and ``filename`` with exactly one slash."""

    return f"{hostname.removesuffix('/')}/{filename.lstrip('/')}"


def extract_sitemap_urls(robots_txt: str) -> list[str]:
    """Return the URL of every ``Sitemap:`` directive, in file order."""

    return [match.group("url") for match in _SITEMAP_DIRECTIVE_PATTERN.finditer(robots_txt)]


def has_sitemap_directive(robots_txt: str, sitemap_url: str) -> bool:
    return sitemap_url in extract_sitemap_urls(robots_txt)


def compose_robots_txt(existing: str | None, sitemap_urls: Sequence[str]) -> str:
    """Return robots.txt text listing every URL in ``sitemap_urls``.

    Without existing content a minimal allow-all block is synthesized. With
    existing content, missing ``Sitemap:`` directives are appended and every
    other line is kept as-is.
    """

    unique_urls = list(dict.fromkeys(sitemap_urls))

    if existing is None or not existing.strip():
        lines = [*DEFAULT_ROBOTS_RULES, ""]
        lines.extend(f"Sitemap: {url}" for url in unique_urls)
        return "\n".join(lines) + "\n"

    present = set(extract_sitemap_urls(existing))
    missing = [url for url in unique_urls if url not in present]
    if not missing:
        return existing

    content = existing if existing.endswith("\n") else f"{existing}\n"
    return content + "".join(f"Sitemap: {url}\n" for url in missing)


__all__ = [
    "DEFAULT_ROBOTS_RULES",
    "build_sitemap_url",
    "compose_robots_txt",
    "extract_sitemap_urls",
    "has_sitemap_directive",
]
