"""Service layer for the sitemap generation pipeline."""

from sitemap_builder.services.exclusion_filter import (
    ExcludePattern,
    GlobPattern,
    RegexPattern,
    compile_patterns,
    filter_excluded,
    is_excluded,
)
from sitemap_builder.services.generator import (
    GenerationResult,
    SitemapSummary,
    SourceValidation,
    generate_sitemaps,
    validate_sources,
)
from sitemap_builder.services.loader import (
    LoadedRoutes,
    RouteModuleError,
    discover_sitemap_file,
    load_route_module,
    load_routes,
)
from sitemap_builder.services.options_resolver import (
    DEFAULT_FILENAME,
    ResolvedConfig,
    resolve_options,
)
from sitemap_builder.services.robots import (
    build_sitemap_url,
    compose_robots_txt,
    extract_sitemap_urls,
    has_sitemap_directive,
)
from sitemap_builder.services.route_normalizer import (
    RouteSource,
    RouteSources,
    SitemapDraft,
    collect_routes,
    normalize_route,
    resolve_url,
)
from sitemap_builder.services.route_validator import (
    RouteValidationResult,
    ValidationReport,
    validate_route,
    validate_routes,
)
from sitemap_builder.services.splitter import (
    MAX_BYTES_PER_SITEMAP,
    MAX_URLS_PER_SITEMAP,
    Chunk,
    SitemapPlan,
    SitemapSet,
    SizeEstimate,
    estimate_total_size,
    plan_sitemap_files,
    split_routes,
)
from sitemap_builder.services.xml_serializer import (
    SitemapIndexEntry,
    encode_url,
    render_sitemap_index,
    render_urlset,
)

__all__ = [
    "Chunk",
    "DEFAULT_FILENAME",
    "ExcludePattern",
    "GenerationResult",
    "GlobPattern",
    "LoadedRoutes",
    "MAX_BYTES_PER_SITEMAP",
    "MAX_URLS_PER_SITEMAP",
    "RegexPattern",
    "ResolvedConfig",
    "RouteModuleError",
    "RouteSource",
    "RouteSources",
    "RouteValidationResult",
    "SitemapDraft",
    "SitemapIndexEntry",
    "SitemapPlan",
    "SitemapSet",
    "SitemapSummary",
    "SizeEstimate",
    "SourceValidation",
    "ValidationReport",
    "build_sitemap_url",
    "collect_routes",
    "compile_patterns",
    "compose_robots_txt",
    "discover_sitemap_file",
    "encode_url",
    "estimate_total_size",
    "extract_sitemap_urls",
    "filter_excluded",
    "generate_sitemaps",
    "has_sitemap_directive",
    "is_excluded",
    "load_route_module",
    "load_routes",
    "normalize_route",
    "plan_sitemap_files",
    "render_sitemap_index",
    "render_urlset",
    "resolve_options",
    "resolve_url",
    "split_routes",
    "validate_route",
    "validate_routes",
    "validate_sources",
]
