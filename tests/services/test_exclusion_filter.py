"""Tests for URL exclusion patterns."""

from __future__ import annotations

import re

import pytest

from sitemap_builder.services.exclusion_filter import (
    GlobPattern,
    RegexPattern,
    compile_patterns,
    filter_excluded,
    is_excluded,
)


def _routes(*paths: str) -> list[dict[str, str]]:
    return [{"url": f"https://example.com{path}"} for path in paths]


def test_wildcard_glob_excludes_matching_paths() -> None:
    routes = _routes("/admin/dashboard", "/admin/users", "/about")

    kept, excluded = filter_excluded(routes, compile_patterns(["/admin/*"]))

    assert [route["url"] for route in kept] == ["https://example.com/about"]
    assert [route["url"] for route in excluded] == [
        "https://example.com/admin/dashboard",
        "https://example.com/admin/users",
    ]


def test_exact_glob_matches_only_the_same_path() -> None:
    pattern = GlobPattern("/about")

    assert pattern.matches("https://example.com/about")
    assert not pattern.matches("https://example.com/about/team")
    assert not pattern.matches("https://example.com/contact")


def test_double_star_matches_across_segments() -> None:
    pattern = GlobPattern("/blog/**/draft")

    assert pattern.matches("https://example.com/blog/2024/05/draft")
    assert not pattern.matches("https://example.com/blog/2024/05/final")


def test_question_mark_matches_one_character() -> None:
    pattern = GlobPattern("/page?")

    assert pattern.matches("https://example.com/page1")
    assert not pattern.matches("https://example.com/page12")


def test_glob_metacharacters_are_literal() -> None:
    pattern = GlobPattern("/file.html")

    assert pattern.matches("https://example.com/file.html")
    assert not pattern.matches("https://example.com/fileXhtml")


def test_absolute_glob_matches_full_url() -> None:
    pattern = GlobPattern("https://staging.example.com/*")

    assert pattern.matches("https://staging.example.com/page")
    assert not pattern.matches("https://example.com/page")


def test_glob_ignores_query_string() -> None:
    assert GlobPattern("/search").matches("https://example.com/search?q=shoes")


def test_regex_is_searched_in_url_and_path() -> None:
    by_host = RegexPattern(re.compile(r"^https://private\."))
    by_path = RegexPattern(re.compile(r"^/tmp/"))

    assert by_host.matches("https://private.example.com/")
    assert by_path.matches("https://example.com/tmp/file")
    assert not by_path.matches("https://example.com/docs/tmp/file")


def test_any_matching_pattern_excludes() -> None:
    patterns = compile_patterns(["/admin/*", re.compile(r"\.pdf$")])

    assert is_excluded("https://example.com/files/report.pdf", patterns)
    assert is_excluded("https://example.com/admin/users", patterns)
    assert not is_excluded("https://example.com/files/report.html", patterns)


def test_no_patterns_keeps_everything() -> None:
    routes = _routes("/a", "/b")

    kept, excluded = filter_excluded(routes, ())

    assert kept == routes
    assert excluded == []


def test_compile_patterns_rejects_unsupported_types() -> None:
    with pytest.raises(TypeError, match="got int"):
        compile_patterns(["/ok", 3])  # type: ignore[list-item]
