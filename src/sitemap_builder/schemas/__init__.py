"""Schema exports for sitemap routes and options."""

from sitemap_builder.schemas.options import (
    RouteDraft,
    RouteTransformer,
    SitemapOptions,
    SitemapSerializer,
)
from sitemap_builder.schemas.route import (
    Alternate,
    ChangeFrequency,
    Image,
    NewsItem,
    NewsPublication,
    Route,
    Video,
    VideoPlatform,
    VideoRestriction,
    VideoUploader,
)

__all__ = [
    "Alternate",
    "ChangeFrequency",
    "Image",
    "NewsItem",
    "NewsPublication",
    "Route",
    "RouteDraft",
    "RouteTransformer",
    "SitemapOptions",
    "SitemapSerializer",
    "Video",
    "VideoPlatform",
    "VideoRestriction",
    "VideoUploader",
]
