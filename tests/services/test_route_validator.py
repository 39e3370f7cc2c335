"""Tests for per-route validation."""

from __future__ import annotations

from datetime import date
import logging
from typing import Any

import pytest

from sitemap_builder.errors import format_validation_errors
from sitemap_builder.services.route_validator import validate_route, validate_routes

URL = "https://example.com/page"


def _video(**overrides: Any) -> dict[str, Any]:
    video: dict[str, Any] = {
        "title": "Launch",
        "description": "Product launch video",
        "thumbnail_loc": "https://example.com/thumb.jpg",
        "content_loc": "https://example.com/video.mp4",
    }
    video.update(overrides)
    return {key: value for key, value in video.items() if value is not None}


def _news(**overrides: Any) -> dict[str, Any]:
    news: dict[str, Any] = {
        "publication": {"name": "Example Times", "language": "en"},
        "publication_date": "2024-01-15",
        "title": "Headline",
    }
    news.update(overrides)
    return news


def test_priority_in_range_passes() -> None:
    result = validate_route({"url": URL, "priority": 0.5})

    assert result.valid
    assert result.route is not None
    assert result.route.priority == 0.5


def test_priority_out_of_range_is_rejected_not_clamped() -> None:
    result = validate_route({"url": URL, "priority": 1.5})

    assert not result.valid
    assert len(result.errors) == 1
    error = result.errors[0]
    assert error.field == "priority"
    assert error.code == "less_than_equal"
    assert error.value == 1.5
    assert error.suggestion == "Number must be at most 1.0"


def test_url_with_fragment_is_rejected() -> None:
    result = validate_route({"url": "https://example.com/page#section"})

    assert [error.code for error in result.errors] == ["url_fragment"]
    assert result.errors[0].suggestion == "Remove the fragment '#section' from the URL"


@pytest.mark.parametrize(
    ("url", "code"),
    [
        ("", "url_empty"),
        ("/relative", "url_not_absolute"),
        ("ftp://example.com/file", "url_scheme"),
        ("https://example.com/" + "a" * 2048, "url_too_long"),
    ],
)
def test_url_rules(url: str, code: str) -> None:
    result = validate_route({"url": url})

    assert [error.code for error in result.errors] == [code]


def test_missing_url_is_reported() -> None:
    result = validate_route({"priority": 0.5})

    assert [(error.field, error.code) for error in result.errors] == [("url", "missing")]
    assert result.errors[0].value is None


def test_all_violations_are_collected() -> None:
    result = validate_route(
        {
            "url": "not a url",
            "priority": -1,
            "changefreq": "sometimes",
            "lastmod": "2024-13-01",
        }
    )

    assert {error.field for error in result.errors} == {
        "url",
        "priority",
        "changefreq",
        "lastmod",
    }
    changefreq_error = next(error for error in result.errors if error.field == "changefreq")
    assert changefreq_error.suggestion == (
        "Valid values are: always, hourly, daily, weekly, monthly, yearly, never"
    )


@pytest.mark.parametrize(
    "lastmod",
    ["2024", "2024-01", "2024-01-15", "2024-01-15T10:30:00Z", "2024-01-15T10:30:00+05:30"],
)
def test_w3c_granularities_are_accepted(lastmod: str) -> None:
    assert validate_route({"url": URL, "lastmod": lastmod}).valid


def test_invalid_lastmod_has_format_suggestion() -> None:
    result = validate_route({"url": URL, "lastmod": "January 15"})

    assert result.errors[0].code == "w3c_datetime"
    assert "YYYY-MM-DD" in (result.errors[0].suggestion or "")


def test_date_objects_are_rendered_as_w3c_text() -> None:
    result = validate_route({"url": URL, "lastmod": date(2024, 1, 15)})

    assert result.route is not None
    assert result.route.lastmod == "2024-01-15"


def test_video_without_content_or_player_location_has_one_error() -> None:
    result = validate_route({"url": URL, "videos": [_video(content_loc=None)]})

    assert len(result.errors) == 1
    assert result.errors[0].field == "videos.0"
    assert result.errors[0].code == "video_location_missing"


def test_missing_video_location_is_reported_with_field_errors() -> None:
    result = validate_route(
        {"url": URL, "videos": [_video(title="t" * 101, content_loc=None)]}
    )

    assert [(error.field, error.code) for error in result.errors] == [
        ("videos.0.title", "string_too_long"),
        ("videos.0", "video_location_missing"),
    ]
    assert result.errors[1].suggestion is not None


def test_video_with_player_location_only_is_valid() -> None:
    video = _video(content_loc=None, player_loc="https://example.com/player")

    assert validate_route({"url": URL, "videos": [video]}).valid


@pytest.mark.parametrize(
    ("overrides", "field_name"),
    [
        ({"title": "t" * 101}, "videos.0.title"),
        ({"description": "d" * 2049}, "videos.0.description"),
        ({"duration": 0}, "videos.0.duration"),
        ({"duration": 28801}, "videos.0.duration"),
        ({"rating": 5.1}, "videos.0.rating"),
        ({"tags": [f"tag-{n}" for n in range(33)]}, "videos.0.tags"),
        ({"thumbnail_loc": None}, "videos.0.thumbnail_loc"),
        (
            {"platform": {"relationship": "allow", "platforms": ["console"]}},
            "videos.0.platform.platforms.0",
        ),
        (
            {"restriction": {"relationship": "deny", "countries": ["USA"]}},
            "videos.0.restriction.countries.0",
        ),
    ],
)
def test_video_limits(overrides: dict[str, Any], field_name: str) -> None:
    result = validate_route({"url": URL, "videos": [_video(**overrides)]})

    assert [error.field for error in result.errors] == [field_name]


def test_video_boundaries_are_inclusive() -> None:
    video = _video(duration=28800, rating=5.0, tags=[f"tag-{n}" for n in range(32)])

    assert validate_route({"url": URL, "videos": [video]}).valid


def test_one_invalid_image_rejects_the_whole_route() -> None:
    images = [{"loc": "https://example.com/a.jpg"}, {"loc": "/relative.jpg"}]

    result = validate_route({"url": URL, "images": images})

    assert result.route is None
    assert [error.field for error in result.errors] == ["images.1.loc"]


def test_image_count_is_limited() -> None:
    images = [{"loc": f"https://example.com/{n}.jpg"} for n in range(1001)]

    result = validate_route({"url": URL, "images": images})

    assert [(error.field, error.code) for error in result.errors] == [("images", "too_long")]


def test_news_requires_publication_fields() -> None:
    result = validate_route({"url": URL, "news": {"title": "Headline"}})

    assert {error.field for error in result.errors} == {
        "news.publication",
        "news.publication_date",
    }


def test_news_stock_tickers_are_limited() -> None:
    tickers = ["NASDAQ:A", "NASDAQ:B", "NASDAQ:C", "NASDAQ:D", "NASDAQ:E", "NASDAQ:F"]

    result = validate_route({"url": URL, "news": _news(stock_tickers=tickers)})

    assert [error.code for error in result.errors] == ["stock_tickers_limit"]


def test_news_list_fields_are_comma_joined() -> None:
    result = validate_route(
        {"url": URL, "news": _news(keywords=["launch", "product"], stock_tickers=["NYSE:X"])}
    )

    assert result.route is not None
    assert result.route.news is not None
    assert result.route.news.keywords == "launch,product"
    assert result.route.news.stock_tickers == "NYSE:X"


def test_alternate_rules() -> None:
    result = validate_route(
        {
            "url": URL,
            "alternates": [
                {"hreflang": "x-default", "href": URL},
                {"hreflang": "", "href": "/de/page"},
            ],
        }
    )

    assert {error.field for error in result.errors} == {
        "alternates.1.hreflang",
        "alternates.1.href",
    }


def test_non_mapping_route_is_reported() -> None:
    result = validate_route(
        ["https://example.com"], index=4, sitemap="pages"  # type: ignore[arg-type]
    )

    assert result.errors[0].code == "route_type"
    assert result.errors[0].path == "pages.routes[4]"


def test_validate_routes_keeps_valid_routes_in_order(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)
    drafts = [
        {"url": "https://example.com/a"},
        {"url": "https://example.com/b", "priority": 1.5},
        {"url": "https://example.com/c"},
    ]

    report = validate_routes(drafts, sitemap="pages")

    assert [route.url for route in report.routes] == [
        "https://example.com/a",
        "https://example.com/c",
    ]
    assert report.checked == 3
    assert report.rejected == 1
    assert not report.valid
    assert report.errors[0].index == 1
    assert report.errors[0].path == "pages.routes[1].priority"
    assert "Rejected route 'https://example.com/b'" in caplog.text


def test_future_lastmod_is_a_warning_not_an_error() -> None:
    report = validate_routes([{"url": URL, "lastmod": "2999-01-01"}])

    assert report.valid
    assert report.warnings == (f"Future lastmod date for {URL}: 2999-01-01",)


def test_format_validation_errors_lists_context() -> None:
    report = validate_routes([{"url": URL, "priority": 1.5}])

    text = format_validation_errors(report.errors)

    assert text.splitlines() == [
        f"1. routes[0].priority: {report.errors[0].message}",
        f"   URL: {URL}",
        "   Value: 1.5",
        "   Suggestion: Number must be at most 1.0",
    ]


@pytest.mark.parametrize(
    ("route", "field_name"),
    [
        (
            {"images": [{"loc": "https://example.com/a.jpg", "title": "bad\x01title"}]},
            "images.0.title",
        ),
        ({"videos": [_video(description="line\x0bbreak")]}, "videos.0.description"),
        ({"videos": [_video(tags=["ok", "bad\x1f"])]}, "videos.0.tags.1"),
        ({"news": _news(title="Head\x00line")}, "news.title"),
        ({"alternates": [{"hreflang": "e\x02n", "href": URL}]}, "alternates.0.hreflang"),
    ],
)
def test_text_that_xml_cannot_hold_is_rejected(route: dict[str, Any], field_name: str) -> None:
    result = validate_route({"url": URL, **route})

    assert result.route is None
    assert [(error.field, error.code) for error in result.errors] == [(field_name, "xml_chars")]
    assert result.errors[0].suggestion == "Remove control characters from the text"


def test_tabs_newlines_and_non_ascii_text_are_accepted() -> None:
    image = {"loc": "https://example.com/a.jpg", "caption": "Café\tcrème\nbrûlée 🍮"}

    result = validate_route({"url": URL, "images": [image]})

    assert result.valid


@pytest.mark.parametrize(
    ("route", "field_name"),
    [
        ({"priority": "0.5"}, "priority"),
        ({"priority": True}, "priority"),
        ({"videos": [_video(duration="30")]}, "videos.0.duration"),
        ({"videos": [_video(duration=30.0)]}, "videos.0.duration"),
        ({"videos": [_video(rating="4.5")]}, "videos.0.rating"),
        ({"videos": [_video(view_count="10")]}, "videos.0.view_count"),
        ({"videos": [_video(family_friendly="no")]}, "videos.0.family_friendly"),
        ({"videos": [_video(live=1)]}, "videos.0.live"),
    ],
)
def test_values_of_the_wrong_type_are_rejected_not_converted(
    route: dict[str, Any], field_name: str
) -> None:
    result = validate_route({"url": URL, **route})

    assert result.route is None
    assert [error.field for error in result.errors] == [field_name]


def test_integer_priority_and_rating_are_accepted_as_floats() -> None:
    result = validate_route({"url": URL, "priority": 1, "videos": [_video(rating=4)]})

    assert result.route is not None
    assert result.route.priority == 1.0
    assert result.route.videos[0].rating == 4.0


def test_validate_routes_reports_source_positions() -> None:
    drafts = [
        {"url": "https://example.com/a"},
        {"url": "https://example.com/b", "priority": 1.5},
    ]

    report = validate_routes(drafts, positions=[3, 7])

    assert report.errors[0].index == 7
    assert report.errors[0].path == "routes[7].priority"


def test_validate_routes_rejects_mismatched_positions() -> None:
    with pytest.raises(ValueError, match="one entry per draft"):
        validate_routes([{"url": URL}], positions=[0, 1])
