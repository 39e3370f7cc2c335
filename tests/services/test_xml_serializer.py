"""Tests for XML rendering of url sets and sitemap indexes."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from lxml import etree
import pytest

from sitemap_builder.errors import SerializationError, TransformError
from sitemap_builder.schemas.route import Image, Route
from sitemap_builder.services.options_resolver import ResolvedConfig
from sitemap_builder.services.xml_serializer import (
    IMAGE_NS,
    NEWS_NS,
    SITEMAP_NS,
    VIDEO_NS,
    XHTML_NS,
    SitemapIndexEntry,
    encode_url,
    render_sitemap_index,
    render_urlset,
    serialize_index,
    serialize_urlset,
)

NS = {"sm": SITEMAP_NS, "image": IMAGE_NS, "video": VIDEO_NS, "news": NEWS_NS, "xhtml": XHTML_NS}


def _full_route() -> Route:
    return Route.model_validate(
        {
            "url": "https://example.com/launch",
            "lastmod": "2024-01-15",
            "changefreq": "weekly",
            "priority": 1,
            "alternates": [{"hreflang": "de", "href": "https://example.com/de/launch"}],
            "images": [{"loc": "https://example.com/hero.jpg", "caption": "Hero"}],
            "videos": [
                {
                    "title": "Launch",
                    "description": "Launch video",
                    "thumbnail_loc": "https://example.com/thumb.jpg",
                    "player_loc": "https://example.com/player",
                    "rating": 4,
                    "family_friendly": True,
                    "live": False,
                    "restriction": {"relationship": "allow", "countries": ["US", "CA"]},
                    "uploader": {"name": "Example", "info": "https://example.com/about"},
                    "tags": ["launch", "product"],
                }
            ],
            "news": {
                "publication": {"name": "Example Times", "language": "en"},
                "publication_date": "2024-01-15T08:00:00Z",
                "title": "We launched",
            },
        }
    )


def test_round_trip_preserves_loc_order() -> None:
    routes = [Route(url=f"https://example.com/page-{n}") for n in (3, 1, 2)]

    document = etree.fromstring(render_urlset(routes))

    assert document.xpath("/sm:urlset/sm:url/sm:loc/text()", namespaces=NS) == [
        route.url for route in routes
    ]


def test_rendering_is_deterministic() -> None:
    routes = [_full_route(), Route(url="https://example.com/")]

    assert render_urlset(routes) == render_urlset(routes)


def test_document_starts_with_utf8_declaration() -> None:
    content = render_urlset([Route(url="https://example.com/")])

    assert content.startswith(b"<?xml version='1.0' encoding='UTF-8'?>")


def test_only_used_extension_namespaces_are_declared() -> None:
    image_route = Route.model_validate(
        {"url": "https://example.com/", "images": [{"loc": "https://example.com/a.png"}]}
    )

    plain = etree.fromstring(render_urlset([Route(url="https://example.com/")]))
    with_image = etree.fromstring(render_urlset([image_route]))

    assert plain.nsmap == {None: SITEMAP_NS}
    assert with_image.nsmap == {None: SITEMAP_NS, "image": IMAGE_NS}


def test_fields_follow_canonical_order() -> None:
    document = etree.fromstring(render_urlset([_full_route()]))
    url_element = document.find("sm:url", namespaces=NS)

    assert [etree.QName(child).localname for child in url_element] == [
        "loc",
        "lastmod",
        "changefreq",
        "priority",
        "link",
        "image",
        "video",
        "news",
    ]
    assert url_element.findtext("sm:priority", namespaces=NS) == "1.0"


def test_extension_values_are_rendered() -> None:
    document = etree.fromstring(render_urlset([_full_route()]))

    link = document.find(".//xhtml:link", namespaces=NS)
    assert dict(link.attrib) == {
        "rel": "alternate",
        "hreflang": "de",
        "href": "https://example.com/de/launch",
    }
    assert document.findtext(".//image:caption", namespaces=NS) == "Hero"

    video = document.find(".//video:video", namespaces=NS)
    assert video.findtext("video:rating", namespaces=NS) == "4.0"
    assert video.findtext("video:family_friendly", namespaces=NS) == "yes"
    assert video.findtext("video:live", namespaces=NS) == "no"
    assert video.findtext("video:restriction", namespaces=NS) == "US CA"
    assert video.find("video:restriction", namespaces=NS).get("relationship") == "allow"
    assert video.find("video:uploader", namespaces=NS).get("info") == "https://example.com/about"
    assert video.xpath("video:tag/text()", namespaces=NS) == ["launch", "product"]
    assert video.find("video:content_loc", namespaces=NS) is None

    news = document.find(".//news:news", namespaces=NS)
    assert news.findtext("news:publication/news:name", namespaces=NS) == "Example Times"
    assert news.findtext("news:publication/news:language", namespaces=NS) == "en"
    assert news.findtext("news:title", namespaces=NS) == "We launched"


def test_special_characters_are_escaped() -> None:
    route = Route.model_validate(
        {
            "url": "https://example.com/search?a=1&b=2",
            "images": [{"loc": "https://example.com/a.jpg", "title": "Fish & <Chips>"}],
        }
    )

    content = render_urlset([route])
    document = etree.fromstring(content)

    assert b"?a=1&amp;b=2" in content
    assert b"Fish &amp; &lt;Chips&gt;" in content
    assert document.findtext(".//sm:loc", namespaces=NS) == "https://example.com/search?a=1&b=2"


def test_encode_url_percent_encodes_non_ascii_and_keeps_escapes() -> None:
    assert encode_url("https://example.com/café") == "https://example.com/caf%C3%A9"
    assert encode_url("https://example.com/a%20b") == "https://example.com/a%20b"
    assert encode_url("https://example.com/a b") == "https://example.com/a%20b"
    assert encode_url("https://example.com/?q=x&y=[1]") == "https://example.com/?q=x&y=[1]"


def test_unvalidated_text_lxml_cannot_serialize_raises_serialization_error() -> None:
    route = Route.model_construct(
        url="https://example.com/",
        images=[Image.model_construct(loc="https://example.com/a.jpg", caption="bad\x00")],
    )

    with pytest.raises(SerializationError, match="Cannot render route"):
        render_urlset([route])


def test_url_limit_is_enforced() -> None:
    route = Route(url="https://example.com/")

    with pytest.raises(SerializationError, match="at most 50000 URLs"):
        render_urlset([route] * 50_001)


def test_render_sitemap_index() -> None:
    content = render_sitemap_index(
        [
            SitemapIndexEntry(loc="https://example.com/sitemap-0.xml", lastmod="2024-01-15"),
            SitemapIndexEntry(loc="https://example.com/sitemap-1.xml"),
        ]
    )
    document = etree.fromstring(content)

    assert etree.QName(document).localname == "sitemapindex"
    assert document.xpath("sm:sitemap/sm:loc/text()", namespaces=NS) == [
        "https://example.com/sitemap-0.xml",
        "https://example.com/sitemap-1.xml",
    ]
    assert document.xpath("sm:sitemap/sm:lastmod/text()", namespaces=NS) == ["2024-01-15"]


@pytest.mark.asyncio
async def test_default_renderer_is_used_without_override(
    make_config: Callable[..., ResolvedConfig],
) -> None:
    routes = [Route(url="https://example.com/")]

    assert await serialize_urlset(routes, make_config()) == render_urlset(routes)


@pytest.mark.asyncio
async def test_custom_serializer_output_is_used_verbatim(
    make_config: Callable[..., ResolvedConfig],
) -> None:
    received: list[Sequence[Any]] = []

    async def serializer(items: Sequence[Any]) -> str:
        received.append(items)
        return "custom:" + ",".join(
            getattr(item, "url", getattr(item, "loc", "")) for item in items
        )

    config = make_config(serialize=serializer)
    routes = [Route(url="https://example.com/a"), Route(url="https://example.com/b")]

    urlset = await serialize_urlset(routes, config)
    index = await serialize_index([SitemapIndexEntry(loc="sitemap-0.xml")], config)

    assert urlset == b"custom:https://example.com/a,https://example.com/b"
    assert index == b"custom:sitemap-0.xml"
    assert list(received[0]) == routes


@pytest.mark.asyncio
async def test_failing_custom_serializer_raises_transform_error(
    make_config: Callable[..., ResolvedConfig],
) -> None:
    def serializer(items: Sequence[Any]) -> str:
        raise ValueError("template missing")

    with pytest.raises(TransformError) as exc_info:
        await serialize_urlset([], make_config(serialize=serializer), sitemap_name="blog")

    assert exc_info.value.callback == "serialize"
    assert exc_info.value.sitemap_name == "blog"


@pytest.mark.asyncio
async def test_custom_serializer_must_return_text(
    make_config: Callable[..., ResolvedConfig],
) -> None:
    with pytest.raises(TransformError, match="serializer returned int"):
        await serialize_urlset([], make_config(serialize=lambda items: len(items)))
