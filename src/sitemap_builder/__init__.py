"""Generate standards-compliant XML sitemaps from route definitions."""

__version__ = "0.1.0"

from sitemap_builder.errors import (  # noqa: E402
    ConfigurationError,
    RouteValidationError,
    SerializationError,
    SitemapError,
    TransformError,
    format_validation_errors,
)
from sitemap_builder.schemas import (  # noqa: E402
    Alternate,
    ChangeFrequency,
    Image,
    NewsItem,
    NewsPublication,
    Route,
    SitemapOptions,
    Video,
    VideoPlatform,
    VideoRestriction,
    VideoUploader,
)
from sitemap_builder.services import (  # noqa: E402
    GenerationResult,
    ResolvedConfig,
    collect_routes,
    compile_patterns,
    compose_robots_txt,
    filter_excluded,
    generate_sitemaps,
    plan_sitemap_files,
    render_sitemap_index,
    render_urlset,
    resolve_options,
    split_routes,
    validate_route,
    validate_routes,
)

__all__ = [
    "Alternate",
    "ChangeFrequency",
    "ConfigurationError",
    "GenerationResult",
    "Image",
    "NewsItem",
    "NewsPublication",
    "ResolvedConfig",
    "Route",
    "RouteValidationError",
    "SerializationError",
    "SitemapError",
    "SitemapOptions",
    "TransformError",
    "Video",
    "VideoPlatform",
    "VideoRestriction",
    "VideoUploader",
    "__version__",
    "collect_routes",
    "compile_patterns",
    "compose_robots_txt",
    "filter_excluded",
    "format_validation_errors",
    "generate_sitemaps",
    "plan_sitemap_files",
    "render_sitemap_index",
    "render_urlset",
    "resolve_options",
    "split_routes",
    "validate_route",
    "validate_routes",
]
