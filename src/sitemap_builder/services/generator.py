"""End-to-end sitemap generation pipeline."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import logging
import time

from sitemap_builder.errors import RouteValidationError
from sitemap_builder.services.exclusion_filter import filter_excluded
from sitemap_builder.services.options_resolver import ResolvedConfig
from sitemap_builder.services.robots import build_sitemap_url, compose_robots_txt
from sitemap_builder.services.route_normalizer import RouteSources, collect_routes
from sitemap_builder.services.route_validator import ValidationReport, validate_routes
from sitemap_builder.services.splitter import (
    MAX_BYTES_PER_SITEMAP,
    MAX_URLS_PER_SITEMAP,
    SitemapSet,
    plan_sitemap_files,
)
from sitemap_builder.services.xml_serializer import serialize_index, serialize_urlset

logger = logging.getLogger("sitemap_builder.generator")


def _label(name: str | None) -> str:
    return name if name is not None else "default"


@dataclass(slots=True, frozen=True)
class SourceValidation:
    """Validated routes of every sitemap set, before splitting."""

    reports: tuple[ValidationReport, ...]
    warnings: tuple[str, ...]
    excluded: int = 0

    @property
    def errors(self) -> tuple[RouteValidationError, ...]:
        return tuple(error for report in self.reports for error in report.errors)

    @property
    def valid(self) -> bool:
        return all(report.valid for report in self.reports)

    @property
    def route_count(self) -> int:
        return sum(len(report.routes) for report in self.reports)


@dataclass(slots=True, frozen=True)
class SitemapSummary:
    name: str | None
    filenames: tuple[str, ...]
    route_count: int
    byte_size: int


@dataclass(slots=True, frozen=True)
class GenerationResult:
    """Output buffers and diagnostics of one generation run."""

    files: dict[str, bytes]
    robots_txt: str | None
    errors: tuple[RouteValidationError, ...]
    warnings: tuple[str, ...]
    index_filename: str | None
    sitemaps: tuple[SitemapSummary, ...] = field(default_factory=tuple)
    duration_ms: float = 0.0

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def route_count(self) -> int:
        return sum(summary.route_count for summary in self.sitemaps)

    @property
    def primary_filename(self) -> str:
        """The file search engines should be pointed at."""

        if self.index_filename is not None:
            return self.index_filename
        return next(iter(self.files))


def _duplicate_warnings(report: ValidationReport) -> list[str]:
    counts = Counter(route.url for route in report.routes)
    warnings: list[str] = []
    for url, count in counts.items():
        if count < 2:
            continue
        logger.warning(
            "Duplicate URL %s appears %d times",
            url,
            count,
            extra={"sitemap": _label(report.sitemap)},
        )
        warnings.append(
            f"Duplicate URL in sitemap {_label(report.sitemap)!r}: {url} ({count} times)"
        )
    return warnings


async def validate_sources(sources: RouteSources, config: ResolvedConfig) -> SourceValidation:
    """Collect, filter and validate every route source without rendering."""

    drafts = await collect_routes(sources, config)

    reports: list[ValidationReport] = []
    warnings: list[str] = []
    excluded_total = 0
    for draft in drafts:
        kept, excluded = filter_excluded(draft.routes, config.exclude)
        if excluded:
            excluded_total += len(excluded)
            logger.info(
                "Excluded %d route(s) by pattern",
                len(excluded),
                extra={"sitemap": _label(draft.name)},
            )
            warnings.append(
                f"Excluded {len(excluded)} route(s) from sitemap {_label(draft.name)!r} "
                "by exclude patterns"
            )

        excluded_ids = {id(route) for route in excluded}
        kept_positions = [
            position
            for position, route in zip(draft.source_positions(), draft.routes)
            if id(route) not in excluded_ids
        ]
        report = validate_routes(kept, sitemap=draft.name, positions=kept_positions)
        warnings.extend(report.warnings)
        warnings.extend(_duplicate_warnings(report))
        reports.append(report)

    return SourceValidation(
        reports=tuple(reports),
        warnings=tuple(warnings),
        excluded=excluded_total,
    )


async def generate_sitemaps(
    sources: RouteSources,
    config: ResolvedConfig,
    *,
    robots_txt: str | None = None,
    max_urls: int = MAX_URLS_PER_SITEMAP,
    max_bytes: int = MAX_BYTES_PER_SITEMAP,
) -> GenerationResult:
    """Run the full pipeline and return the files to write.

    ``robots_txt`` is the current robots.txt content, if any. Nothing is
    written to disk; configuration and callback errors propagate.
    """

    started = time.perf_counter()
    validation = await validate_sources(sources, config)
    warnings = list(validation.warnings)

    sets = [SitemapSet(name=report.sitemap, routes=report.routes) for report in validation.reports]
    if not sets:
        sets = [SitemapSet(name=None, routes=())]
    if not validation.route_count:
        warnings.append("No valid routes found; the sitemap will be empty")

    plan = plan_sitemap_files(sets, config, max_urls=max_urls, max_bytes=max_bytes)

    files: dict[str, bytes] = {}
    filenames_by_set: dict[str | None, list[str]] = {}
    bytes_by_set: Counter[str | None] = Counter()
    for planned in plan.files:
        chunk = planned.chunk
        content = await serialize_urlset(chunk.routes, config, sitemap_name=chunk.sitemap)
        files[planned.filename] = content
        filenames_by_set.setdefault(chunk.sitemap, []).append(planned.filename)
        bytes_by_set[chunk.sitemap] += len(content)
        logger.info(
            "Rendered %s",
            planned.filename,
            extra={
                "sitemap": _label(chunk.sitemap),
                "output_file": planned.filename,
                "route_count": len(chunk.routes),
                "byte_size": len(content),
            },
        )

    for name, filenames in filenames_by_set.items():
        if len(filenames) > 1:
            warnings.append(
                f"Sitemap {_label(name)!r} split into {len(filenames)} files "
                "to stay within protocol limits"
            )

    if plan.index_filename is not None:
        content = await serialize_index(plan.index_entries, config)
        files[plan.index_filename] = content
        logger.info(
            "Rendered sitemap index %s",
            plan.index_filename,
            extra={"output_file": plan.index_filename, "byte_size": len(content)},
        )

    composed_robots: str | None = None
    if config.generate_robots_txt and config.hostname is not None:
        target = plan.index_filename or plan.files[0].filename
        composed_robots = compose_robots_txt(
            robots_txt, [build_sitemap_url(config.hostname, target)]
        )

    summaries = tuple(
        SitemapSummary(
            name=report.sitemap,
            filenames=tuple(filenames_by_set.get(report.sitemap, ())),
            route_count=len(report.routes),
            byte_size=bytes_by_set[report.sitemap],
        )
        for report in validation.reports
    )
    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "Generated %d file(s) from %d route(s)",
        len(files),
        validation.route_count,
        extra={"route_count": validation.route_count, "duration_ms": round(duration_ms, 2)},
    )

    return GenerationResult(
        files=files,
        robots_txt=composed_robots,
        errors=validation.errors,
        warnings=tuple(warnings),
        index_filename=plan.index_filename,
        sitemaps=summaries,
        duration_ms=duration_ms,
    )


__all__ = [
    "GenerationResult",
    "SitemapSummary",
    "SourceValidation",
    "generate_sitemaps",
    "validate_sources",
]
