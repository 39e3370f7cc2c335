"""Discover and execute route definition modules."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import hashlib
import importlib.util
import logging
from pathlib import Path
from typing import Any, Final

from sitemap_builder.errors import SitemapError
from sitemap_builder.services.route_normalizer import RouteSource, RouteSources

SITEMAP_FILE_CANDIDATES: Final[tuple[str, ...]] = ("src/sitemap.py", "sitemap.py")

logger = logging.getLogger("sitemap_builder.loader")


class RouteModuleError(SitemapError):
    """Raised when a route definition module cannot be found or loaded."""


@dataclass(slots=True, frozen=True)
class LoadedRoutes:
    """Route sources and inline options read from a definition module."""

    path: Path
    sources: RouteSources
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def sitemap_names(self) -> list[str | None]:
        if isinstance(self.sources, Mapping):
            return list(self.sources)
        return [None]


def discover_sitemap_file(root: str | Path, sitemap_file: str | Path | None = None) -> Path | None:
    """Return the route definition file under ``root``, if one exists.

    An explicit ``sitemap_file`` is resolved relative to ``root``; otherwise
    ``src/sitemap.py`` is preferred over ``sitemap.py``.
    """

    root_path = Path(root)
    if sitemap_file is not None:
        candidate = Path(sitemap_file)
        if not candidate.is_absolute():
            candidate = root_path / candidate
        return candidate if candidate.is_file() else None

    for name in SITEMAP_FILE_CANDIDATES:
        candidate = root_path / name
        if candidate.is_file():
            return candidate

    return None


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]
    return f"sitemap_builder_routes_{digest}"


def _read_sources(module: Any, path: Path) -> RouteSources:
    routes: RouteSource | None = getattr(module, "routes", None)
    sitemaps = getattr(module, "sitemaps", None)

    if sitemaps is not None and not isinstance(sitemaps, Mapping):
        raise RouteModuleError(
            f"{path}: 'sitemaps' must be a mapping of name to routes, "
            f"got {type(sitemaps).__name__}"
        )

    if sitemaps:
        named: dict[str | None, RouteSource] = {}
        if routes is not None:
            named[None] = routes
        for name, source in sitemaps.items():
            named[name] = source
        return named

    if routes is None:
        raise RouteModuleError(f"{path}: define 'routes' or a 'sitemaps' mapping")

    return routes


def load_route_module(path: str | Path) -> LoadedRoutes:
    """Execute a route definition module and read its exports.

    Recognized module attributes are ``routes`` (the unnamed sitemap),
    ``sitemaps`` (mapping of sitemap name to route source) and ``options``
    (mapping of sitemap options).
    """

    module_path = Path(path)
    if not module_path.is_file():
        raise RouteModuleError(f"Route definition file not found: {module_path}")

    spec = importlib.util.spec_from_file_location(_module_name(module_path), module_path)
    if spec is None or spec.loader is None:
        raise RouteModuleError(f"Cannot import route definition file: {module_path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise RouteModuleError(f"Failed to load {module_path}: {exc}") from exc

    options = getattr(module, "options", None)
    if options is not None and not isinstance(options, Mapping):
        raise RouteModuleError(
            f"{module_path}: 'options' must be a mapping, got {type(options).__name__}"
        )

    loaded = LoadedRoutes(
        path=module_path,
        sources=_read_sources(module, module_path),
        options=dict(options or {}),
    )
    logger.debug("Loaded route definitions from %s (%s)", module_path, loaded.sitemap_names)
    return loaded


def load_routes(root: str | Path, sitemap_file: str | Path | None = None) -> LoadedRoutes:
    """Discover and load the route definition module for a project root."""

    path = discover_sitemap_file(root, sitemap_file)
    if path is None:
        searched = (
            [str(sitemap_file)]
            if sitemap_file is not None
            else [str(Path(root) / name) for name in SITEMAP_FILE_CANDIDATES]
        )
        raise RouteModuleError(f"No route definition file found (searched: {', '.join(searched)})")

    return load_route_module(path)


__all__ = [
    "LoadedRoutes",
    "RouteModuleError",
    "SITEMAP_FILE_CANDIDATES",
    "discover_sitemap_file",
    "load_route_module",
    "load_routes",
]
