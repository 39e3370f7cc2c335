"""Collect raw route sources and normalize them into route drafts."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
import inspect
import logging
from typing import Any, TypeAlias
from urllib.parse import urlsplit

from sitemap_builder.errors import TransformError
from sitemap_builder.schemas.options import RouteDraft
from sitemap_builder.schemas.route import Route
from sitemap_builder.services.options_resolver import ResolvedConfig

RawRoute: TypeAlias = Mapping[str, Any] | Route | str
RouteCollection: TypeAlias = Iterable[RawRoute] | AsyncIterable[RawRoute]
RouteSource: TypeAlias = (
    RouteCollection
    | Awaitable[RouteCollection]
    | Callable[[], RouteCollection | Awaitable[RouteCollection]]
)
RouteSources: TypeAlias = RouteSource | Mapping[str | None, RouteSource]

DEFAULT_SITEMAP_KEYS = frozenset({None, "default"})

logger = logging.getLogger("sitemap_builder.route_normalizer")


@dataclass(slots=True, frozen=True)
class SitemapDraft:
    """Normalized, not yet validated routes of one named sitemap.

    ``positions`` holds each route's index in the original source, so
    routes removed by ``transform`` leave gaps.
    """

    name: str | None
    routes: tuple[RouteDraft, ...]
    dropped_by_transform: int = 0
    positions: tuple[int, ...] = ()

    def source_positions(self) -> tuple[int, ...]:
        return self.positions or tuple(range(len(self.routes)))


def resolve_url(url: Any, hostname: str | None) -> Any:
    """Prefix a relative URL with ``hostname``.

    Absolute URLs and non-string values are returned unchanged.
    """

    if not isinstance(url, str) or hostname is None:
        return url

    try:
        has_scheme = bool(urlsplit(url).scheme)
    except ValueError:
        return url

    if has_scheme:
        return url

    clean_hostname = hostname.removesuffix("/")
    path = url if url.startswith("/") else f"/{url}"
    return f"{clean_hostname}{path}"


def _to_draft(raw: Any, *, sitemap_name: str | None, position: int, callback: str) -> RouteDraft:
    if isinstance(raw, Route):
        return raw.model_dump(exclude_none=True)

    if isinstance(raw, Mapping):
        return dict(raw)

    if isinstance(raw, str):
        return {"url": raw}

    raise TransformError(
        sitemap_name=sitemap_name,
        callback=callback,
        reason=f"route {position} is {type(raw).__name__}, expected a mapping or Route",
    )


def normalize_route(raw: RawRoute, config: ResolvedConfig) -> RouteDraft:
    """Resolve the URL and apply configured defaults to one raw route."""

    draft = _to_draft(raw, sitemap_name=None, position=0, callback="routes")
    draft["url"] = resolve_url(draft.get("url"), config.hostname)

    if draft.get("lastmod") is None and config.lastmod is not None:
        draft["lastmod"] = config.lastmod

    if draft.get("changefreq") is None and config.changefreq is not None:
        draft["changefreq"] = config.changefreq

    if draft.get("priority") is None and config.priority is not None:
        draft["priority"] = config.priority

    return draft


async def _materialize(source: RouteSource, *, sitemap_name: str | None) -> list[Any]:
    try:
        value: Any = source() if callable(source) else source
        if inspect.isawaitable(value):
            value = await value

        if isinstance(value, AsyncIterable):
            return [item async for item in value]

        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
            raise TypeError(
                f"route source produced {type(value).__name__}, expected a sequence of routes"
            )

        return list(value)
    except TransformError:
        raise
    except Exception as exc:
        raise TransformError(
            sitemap_name=sitemap_name, callback="routes", reason=str(exc) or repr(exc)
        ) from exc


async def _apply_transform(
    draft: RouteDraft,
    config: ResolvedConfig,
    *,
    sitemap_name: str | None,
    position: int,
) -> RouteDraft | None:
    if config.transform is None:
        return draft

    try:
        result: Any = config.transform(dict(draft))
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        raise TransformError(
            sitemap_name=sitemap_name, callback="transform", reason=str(exc) or repr(exc)
        ) from exc

    if result is None:
        return None

    return _to_draft(result, sitemap_name=sitemap_name, position=position, callback="transform")


async def normalize_source(
    name: str | None,
    source: RouteSource,
    config: ResolvedConfig,
) -> SitemapDraft:
    """Materialize one route source and normalize every route in order."""

    raw_routes = await _materialize(source, sitemap_name=name)

    drafts: list[RouteDraft] = []
    positions: list[int] = []
    dropped = 0
    for position, raw_route in enumerate(raw_routes):
        base_draft = _to_draft(raw_route, sitemap_name=name, position=position, callback="routes")
        draft = normalize_route(base_draft, config)
        transformed = await _apply_transform(
            draft, config, sitemap_name=name, position=position
        )
        if transformed is None:
            dropped += 1
            logger.debug("Route %r removed by transform", draft.get("url"))
            continue

        drafts.append(transformed)
        positions.append(position)

    if dropped:
        logger.info(
            "Transform removed %d route(s)",
            dropped,
            extra={"sitemap": name or "default"},
        )

    return SitemapDraft(
        name=name,
        routes=tuple(drafts),
        dropped_by_transform=dropped,
        positions=tuple(positions),
    )


def iter_named_sources(sources: RouteSources) -> list[tuple[str | None, RouteSource]]:
    """Return ``(name, source)`` pairs; an unnamed source gets ``None``."""

    if not isinstance(sources, Mapping):
        return [(None, sources)]

    named: list[tuple[str | None, RouteSource]] = []
    for key, source in sources.items():
        name = None if key in DEFAULT_SITEMAP_KEYS else str(key)
        if any(existing == name for existing, _ in named):
            raise TransformError(
                sitemap_name=name,
                callback="routes",
                reason="more than one default sitemap source",
            )
        named.append((name, source))

    return named


async def collect_routes(sources: RouteSources, config: ResolvedConfig) -> list[SitemapDraft]:
    """Resolve all sources concurrently, keeping their declaration order."""

    named_sources = iter_named_sources(sources)
    return list(
        await asyncio.gather(
            *(normalize_source(name, source, config) for name, source in named_sources)
        )
    )


__all__ = [
    "RawRoute",
    "RouteSource",
    "RouteSources",
    "SitemapDraft",
    "collect_routes",
    "iter_named_sources",
    "normalize_route",
    "normalize_source",
    "resolve_url",
]
