"""Split validated routes into protocol-sized chunks and plan output files."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
import math
from typing import Final

from sitemap_builder.errors import ConfigurationError
from sitemap_builder.schemas.route import Route
from sitemap_builder.services.options_resolver import ResolvedConfig
from sitemap_builder.services.robots import build_sitemap_url
from sitemap_builder.services.xml_serializer import (
    MAX_URLS_PER_DOCUMENT,
    SitemapIndexEntry,
    render_urlset,
)
from sitemap_builder.utils.dates import parse_w3c_datetime

MAX_URLS_PER_SITEMAP: Final[int] = MAX_URLS_PER_DOCUMENT
# Search engines accept 50 MiB uncompressed; keep headroom for estimation error.
MAX_BYTES_PER_SITEMAP: Final[int] = 45 * 1024 * 1024
SIZE_SAMPLE_LIMIT: Final[int] = 100

# Room for the extension namespace declarations a chunk may add to the root.
_NAMESPACE_ALLOWANCE: Final[int] = 256
_EMPTY_URLSET_SIZE: Final[int] = len(render_urlset(()))

logger = logging.getLogger("sitemap_builder.splitter")


@dataclass(slots=True, frozen=True)
class Chunk:
    """Ordered slice of one sitemap's routes destined for one file."""

    sitemap: str | None
    index: int
    routes: tuple[Route, ...]


@dataclass(slots=True, frozen=True)
class SitemapSet:
    """Validated routes of one named (or the unnamed) sitemap."""

    name: str | None
    routes: tuple[Route, ...]


@dataclass(slots=True, frozen=True)
class PlannedFile:
    filename: str
    chunk: Chunk


@dataclass(slots=True, frozen=True)
class SitemapPlan:
    """Output files for a build, plus the index when more than one file exists."""

    files: tuple[PlannedFile, ...]
    index_filename: str | None
    index_entries: tuple[SitemapIndexEntry, ...]

    @property
    def needs_index(self) -> bool:
        return self.index_filename is not None


@dataclass(slots=True, frozen=True)
class SizeEstimate:
    estimated_bytes: int
    estimated_chunks: int
    needs_split: bool


def route_size(route: Route) -> int:
    """Serialized size of one ``<url>`` element, in bytes."""

    return len(render_urlset((route,))) - _EMPTY_URLSET_SIZE


def split_routes(
    routes: Sequence[Route],
    *,
    sitemap: str | None = None,
    max_urls: int = MAX_URLS_PER_SITEMAP,
    max_bytes: int = MAX_BYTES_PER_SITEMAP,
) -> list[Chunk]:
    """Partition ``routes`` by greedy accumulation without reordering.

    A chunk closes when it holds ``max_urls`` routes or when the next route
    would push its estimated size over ``max_bytes``. A route larger than the
    byte budget on its own still gets a chunk of its own.
    """

    if max_urls < 1:
        raise ValueError("max_urls must be at least 1")

    if not routes:
        return [Chunk(sitemap=sitemap, index=0, routes=())]

    if len(routes) <= max_urls and len(render_urlset(routes)) <= max_bytes:
        return [Chunk(sitemap=sitemap, index=0, routes=tuple(routes))]

    envelope = _EMPTY_URLSET_SIZE + _NAMESPACE_ALLOWANCE
    chunks: list[Chunk] = []
    current: list[Route] = []
    current_bytes = envelope

    for route in routes:
        size = route_size(route)
        over_count = len(current) >= max_urls
        over_bytes = bool(current) and current_bytes + size > max_bytes
        if over_count or over_bytes:
            chunks.append(Chunk(sitemap=sitemap, index=len(chunks), routes=tuple(current)))
            current = []
            current_bytes = envelope

        current.append(route)
        current_bytes += size

    if current:
        chunks.append(Chunk(sitemap=sitemap, index=len(chunks), routes=tuple(current)))

    logger.info(
        "Split %d route(s) into %d chunk(s)",
        len(routes),
        len(chunks),
        extra={"sitemap": sitemap or "default", "route_count": len(routes)},
    )
    return chunks


def estimate_total_size(
    routes: Sequence[Route],
    *,
    max_urls: int = MAX_URLS_PER_SITEMAP,
    max_bytes: int = MAX_BYTES_PER_SITEMAP,
) -> SizeEstimate:
    """Estimate output size from an evenly spaced sample of routes."""

    if not routes:
        return SizeEstimate(
            estimated_bytes=_EMPTY_URLSET_SIZE, estimated_chunks=1, needs_split=False
        )

    step = max(1, len(routes) // SIZE_SAMPLE_LIMIT)
    sample = routes[::step][:SIZE_SAMPLE_LIMIT]
    average = sum(route_size(route) for route in sample) / len(sample)
    estimated_bytes = _EMPTY_URLSET_SIZE + math.ceil(average * len(routes))

    chunks_by_count = math.ceil(len(routes) / max_urls)
    chunks_by_size = math.ceil(estimated_bytes / max_bytes)
    estimated_chunks = max(1, chunks_by_count, chunks_by_size)
    return SizeEstimate(
        estimated_bytes=estimated_bytes,
        estimated_chunks=estimated_chunks,
        needs_split=estimated_chunks > 1,
    )


def _invalid_name_problems(sets: Sequence[SitemapSet]) -> list[str]:
    problems: list[str] = []
    for sitemap_set in sets:
        name = sitemap_set.name
        if name is None:
            continue
        if not name.strip():
            problems.append("sitemap names must not be empty")
        elif "/" in name or "\\" in name or ".." in name:
            problems.append(
                f"sitemap name {name!r} must not contain a path separator or '..'"
            )
    return problems


def _chunk_filename(config: ResolvedConfig, chunk: Chunk, *, split: bool) -> str:
    base = config.base_name
    if chunk.sitemap is None:
        return f"{base}-{chunk.index}.xml" if split else config.filename

    if split:
        return f"{base}-{chunk.sitemap}-{chunk.index}.xml"
    return f"{base}-{chunk.sitemap}.xml"


def _latest_lastmod(routes: Sequence[Route]) -> str | None:
    latest: str | None = None
    for route in routes:
        if route.lastmod is None:
            continue
        if latest is None or parse_w3c_datetime(route.lastmod) > parse_w3c_datetime(latest):
            latest = route.lastmod
    return latest


def _index_loc(config: ResolvedConfig, filename: str) -> str:
    if config.hostname is None:
        return filename
    return build_sitemap_url(config.hostname, filename)


def plan_sitemap_files(
    sets: Sequence[SitemapSet],
    config: ResolvedConfig,
    *,
    max_urls: int = MAX_URLS_PER_SITEMAP,
    max_bytes: int = MAX_BYTES_PER_SITEMAP,
) -> SitemapPlan:
    """Chunk every sitemap set and assign output filenames.

    An unnamed set that fits one file keeps ``config.filename``. Whenever
    more than one file results, a shared ``{base}-index.xml`` lists them all.
    """

    name_problems = _invalid_name_problems(sets)
    if name_problems:
        raise ConfigurationError("Invalid sitemap names", problems=name_problems)

    planned: list[PlannedFile] = []
    for sitemap_set in sets:
        chunks = split_routes(
            sitemap_set.routes,
            sitemap=sitemap_set.name,
            max_urls=max_urls,
            max_bytes=max_bytes,
        )
        split = len(chunks) > 1
        for chunk in chunks:
            filename = _chunk_filename(config, chunk, split=split)
            planned.append(PlannedFile(filename=filename, chunk=chunk))

    filenames = [item.filename for item in planned]
    if len(set(filenames)) != len(filenames):
        duplicates = sorted({name for name in filenames if filenames.count(name) > 1})
        raise ConfigurationError(
            "Invalid sitemap names",
            problems=[f"{name} is produced more than once" for name in duplicates],
        )

    if len(planned) <= 1:
        return SitemapPlan(files=tuple(planned), index_filename=None, index_entries=())

    index_filename = f"{config.base_name}-index.xml"
    if index_filename in filenames:
        raise ConfigurationError(
            "Invalid sitemap names",
            problems=[f"{index_filename} is reserved for the sitemap index"],
        )

    entries = tuple(
        SitemapIndexEntry(
            loc=_index_loc(config, item.filename),
            lastmod=_latest_lastmod(item.chunk.routes),
        )
        for item in planned
    )
    logger.info(
        "Planned %d sitemap file(s) with index %s",
        len(planned),
        index_filename,
        extra={"output_file": index_filename},
    )
    return SitemapPlan(files=tuple(planned), index_filename=index_filename, index_entries=entries)


__all__ = [
    "Chunk",
    "MAX_BYTES_PER_SITEMAP",
    "MAX_URLS_PER_SITEMAP",
    "PlannedFile",
    "SitemapPlan",
    "SitemapSet",
    "SizeEstimate",
    "estimate_total_size",
    "plan_sitemap_files",
    "route_size",
    "split_routes",
]
