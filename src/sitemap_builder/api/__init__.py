"""HTTP surface for previewing generated sitemaps."""

from sitemap_builder.api.dev_server import create_app, router

__all__ = ["create_app", "router"]
