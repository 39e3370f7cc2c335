"""Render url sets and sitemap indexes as namespaced XML."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import inspect
import logging
from typing import Any, Final
from urllib.parse import quote

from lxml import etree  # type: ignore[import-untyped]

from sitemap_builder.errors import SerializationError, TransformError
from sitemap_builder.schemas.route import Alternate, Image, NewsItem, Route, Video
from sitemap_builder.services.options_resolver import ResolvedConfig

SITEMAP_NS: Final[str] = "http://www.sitemaps.org/schemas/sitemap/0.9"
IMAGE_NS: Final[str] = "http://www.google.com/schemas/sitemap-image/1.1"
VIDEO_NS: Final[str] = "http://www.google.com/schemas/sitemap-video/1.1"
NEWS_NS: Final[str] = "http://www.google.com/schemas/sitemap-news/0.9"
XHTML_NS: Final[str] = "http://www.w3.org/1999/xhtml"

MAX_URLS_PER_DOCUMENT: Final[int] = 50_000

# RFC 3986 reserved and unreserved characters plus "%" so existing escapes survive.
_URL_SAFE_CHARACTERS: Final[str] = ":/?#[]@!$&'()*+,;=-._~%"

logger = logging.getLogger("sitemap_builder.xml_serializer")


@dataclass(slots=True, frozen=True)
class SitemapIndexEntry:
    """One ``<sitemap>`` reference in a sitemap index."""

    loc: str
    lastmod: str | None = None


def encode_url(url: str) -> str:
    """Percent-encode characters that are not allowed in a URL."""

    return quote(url, safe=_URL_SAFE_CHARACTERS)


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def _qualified(namespace: str, name: str) -> str:
    return f"{{{namespace}}}{name}"


def _add_text(parent: etree._Element, namespace: str, name: str, text: str) -> etree._Element:
    element = etree.SubElement(parent, _qualified(namespace, name))
    element.text = text
    return element


def _namespace_map(routes: Sequence[Route]) -> dict[str | None, str]:
    nsmap: dict[str | None, str] = {None: SITEMAP_NS}

    if any(route.images for route in routes):
        nsmap["image"] = IMAGE_NS

    if any(route.videos for route in routes):
        nsmap["video"] = VIDEO_NS

    if any(route.news is not None for route in routes):
        nsmap["news"] = NEWS_NS

    if any(route.alternates for route in routes):
        nsmap["xhtml"] = XHTML_NS

    return nsmap


def _append_alternate(parent: etree._Element, alternate: Alternate) -> None:
    link = etree.SubElement(parent, _qualified(XHTML_NS, "link"))
    link.set("rel", "alternate")
    link.set("hreflang", alternate.hreflang)
    link.set("href", encode_url(alternate.href))


def _append_image(parent: etree._Element, image: Image) -> None:
    element = etree.SubElement(parent, _qualified(IMAGE_NS, "image"))
    _add_text(element, IMAGE_NS, "loc", encode_url(image.loc))

    if image.caption:
        _add_text(element, IMAGE_NS, "caption", image.caption)

    if image.title:
        _add_text(element, IMAGE_NS, "title", image.title)

    if image.geo_location:
        _add_text(element, IMAGE_NS, "geo_location", image.geo_location)

    if image.license:
        _add_text(element, IMAGE_NS, "license", encode_url(image.license))


def _append_video(parent: etree._Element, video: Video) -> None:
    element = etree.SubElement(parent, _qualified(VIDEO_NS, "video"))
    _add_text(element, VIDEO_NS, "thumbnail_loc", encode_url(video.thumbnail_loc))
    _add_text(element, VIDEO_NS, "title", video.title)
    _add_text(element, VIDEO_NS, "description", video.description)

    if video.content_loc:
        _add_text(element, VIDEO_NS, "content_loc", encode_url(video.content_loc))

    if video.player_loc:
        _add_text(element, VIDEO_NS, "player_loc", encode_url(video.player_loc))

    if video.duration is not None:
        _add_text(element, VIDEO_NS, "duration", str(video.duration))

    if video.expiration_date:
        _add_text(element, VIDEO_NS, "expiration_date", video.expiration_date)

    if video.rating is not None:
        _add_text(element, VIDEO_NS, "rating", f"{video.rating:.1f}")

    if video.view_count is not None:
        _add_text(element, VIDEO_NS, "view_count", str(video.view_count))

    if video.publication_date:
        _add_text(element, VIDEO_NS, "publication_date", video.publication_date)

    if video.family_friendly is not None:
        _add_text(element, VIDEO_NS, "family_friendly", _yes_no(video.family_friendly))

    if video.restriction is not None:
        restriction = _add_text(
            element, VIDEO_NS, "restriction", " ".join(video.restriction.countries)
        )
        restriction.set("relationship", video.restriction.relationship)

    if video.platform is not None:
        platform = _add_text(element, VIDEO_NS, "platform", " ".join(video.platform.platforms))
        platform.set("relationship", video.platform.relationship)

    if video.requires_subscription is not None:
        _add_text(
            element,
            VIDEO_NS,
            "requires_subscription",
            _yes_no(video.requires_subscription),
        )

    if video.uploader is not None:
        uploader = _add_text(element, VIDEO_NS, "uploader", video.uploader.name)
        if video.uploader.info:
            uploader.set("info", encode_url(video.uploader.info))

    if video.live is not None:
        _add_text(element, VIDEO_NS, "live", _yes_no(video.live))

    for tag in video.tags:
        _add_text(element, VIDEO_NS, "tag", tag)


def _append_news(parent: etree._Element, news: NewsItem) -> None:
    element = etree.SubElement(parent, _qualified(NEWS_NS, "news"))
    publication = etree.SubElement(element, _qualified(NEWS_NS, "publication"))
    _add_text(publication, NEWS_NS, "name", news.publication.name)
    _add_text(publication, NEWS_NS, "language", news.publication.language)
    _add_text(element, NEWS_NS, "publication_date", news.publication_date)
    _add_text(element, NEWS_NS, "title", news.title)

    if news.keywords:
        _add_text(element, NEWS_NS, "keywords", news.keywords)

    if news.stock_tickers:
        _add_text(element, NEWS_NS, "stock_tickers", news.stock_tickers)


def _append_url(parent: etree._Element, route: Route) -> None:
    element = etree.SubElement(parent, _qualified(SITEMAP_NS, "url"))
    _add_text(element, SITEMAP_NS, "loc", encode_url(route.url))

    if route.lastmod:
        _add_text(element, SITEMAP_NS, "lastmod", route.lastmod)

    if route.changefreq is not None:
        _add_text(element, SITEMAP_NS, "changefreq", route.changefreq.value)

    if route.priority is not None:
        _add_text(element, SITEMAP_NS, "priority", f"{route.priority:.1f}")

    for alternate in route.alternates:
        _append_alternate(element, alternate)

    for image in route.images:
        _append_image(element, image)

    for video in route.videos:
        _append_video(element, video)

    if route.news is not None:
        _append_news(element, route.news)


def _to_bytes(root: etree._Element) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def render_urlset(routes: Sequence[Route]) -> bytes:
    """Render routes as a ``<urlset>`` document, preserving input order."""

    if len(routes) > MAX_URLS_PER_DOCUMENT:
        raise SerializationError(
            f"A sitemap may list at most {MAX_URLS_PER_DOCUMENT} URLs, got {len(routes)}"
        )

    root = etree.Element(_qualified(SITEMAP_NS, "urlset"), nsmap=_namespace_map(routes))
    for route in routes:
        if not route.url:
            raise SerializationError("Cannot render a route without a URL")

        try:
            _append_url(root, route)
        except ValueError as exc:
            raise SerializationError(f"Cannot render route {route.url!r}: {exc}") from exc

    return _to_bytes(root)


def render_sitemap_index(entries: Sequence[SitemapIndexEntry]) -> bytes:
    """Render a ``<sitemapindex>`` document."""

    root = etree.Element(_qualified(SITEMAP_NS, "sitemapindex"), nsmap={None: SITEMAP_NS})
    for entry in entries:
        element = etree.SubElement(root, _qualified(SITEMAP_NS, "sitemap"))
        try:
            _add_text(element, SITEMAP_NS, "loc", encode_url(entry.loc))
            if entry.lastmod:
                _add_text(element, SITEMAP_NS, "lastmod", entry.lastmod)
        except ValueError as exc:
            raise SerializationError(f"Cannot render index entry {entry.loc!r}: {exc}") from exc

    return _to_bytes(root)


async def _call_serializer(
    config: ResolvedConfig,
    items: Sequence[Any],
    *,
    sitemap_name: str | None,
) -> bytes:
    assert config.serialize is not None

    try:
        result: Any = config.serialize(items)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        raise TransformError(
            sitemap_name=sitemap_name, callback="serialize", reason=str(exc) or repr(exc)
        ) from exc

    if isinstance(result, bytes):
        return result

    if not isinstance(result, str):
        raise TransformError(
            sitemap_name=sitemap_name,
            callback="serialize",
            reason=f"serializer returned {type(result).__name__}, expected str",
        )

    return result.encode("utf-8")


async def serialize_urlset(
    routes: Sequence[Route],
    config: ResolvedConfig,
    *,
    sitemap_name: str | None = None,
) -> bytes:
    """Render routes with the configured serializer or the default renderer."""

    if config.serialize is None:
        return render_urlset(routes)

    logger.debug("Using custom serializer for %d route(s)", len(routes))
    return await _call_serializer(config, routes, sitemap_name=sitemap_name)


async def serialize_index(
    entries: Sequence[SitemapIndexEntry],
    config: ResolvedConfig,
) -> bytes:
    """Render index entries with the configured serializer or the default renderer."""

    if config.serialize is None:
        return render_sitemap_index(entries)

    return await _call_serializer(config, entries, sitemap_name=None)


__all__ = [
    "IMAGE_NS",
    "MAX_URLS_PER_DOCUMENT",
    "NEWS_NS",
    "SITEMAP_NS",
    "SitemapIndexEntry",
    "VIDEO_NS",
    "XHTML_NS",
    "encode_url",
    "render_sitemap_index",
    "render_urlset",
    "serialize_index",
    "serialize_urlset",
]
