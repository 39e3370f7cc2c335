"""Resolve user sitemap options into an immutable configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError

from sitemap_builder.config import Settings, get_settings
from sitemap_builder.errors import ConfigurationError
from sitemap_builder.schemas.options import (
    RouteTransformer,
    SitemapOptions,
    SitemapSerializer,
)
from sitemap_builder.schemas.route import ChangeFrequency, check_sitemap_url
from sitemap_builder.services.exclusion_filter import ExcludePattern, compile_patterns

DEFAULT_FILENAME: Final[str] = "sitemap.xml"

logger = logging.getLogger("sitemap_builder.options")


@dataclass(slots=True, frozen=True)
class ResolvedConfig:
    """Fully-resolved sitemap configuration."""

    hostname: str | None
    output_dir: Path
    filename: str
    changefreq: ChangeFrequency | None
    priority: float | None
    lastmod: str | None
    exclude: tuple[ExcludePattern, ...]
    transform: RouteTransformer | None
    serialize: SitemapSerializer | None
    generate_robots_txt: bool

    @property
    def base_name(self) -> str:
        """Filename without the ``.xml`` suffix."""

        return self.filename.removesuffix(".xml")


def _format_problem(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "invalid value"))
    if not location:
        return message
    return f"{location}: {message}"


def _load_options(options: SitemapOptions | Mapping[str, Any] | None) -> SitemapOptions:
    if options is None:
        return SitemapOptions()

    if isinstance(options, SitemapOptions):
        return options

    try:
        return SitemapOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise ConfigurationError(
            "Invalid sitemap options",
            problems=[_format_problem(error) for error in exc.errors()],
        ) from exc


def resolve_options(
    options: SitemapOptions | Mapping[str, Any] | None = None,
    *,
    default_output_dir: str | Path | None = None,
    settings: Settings | None = None,
) -> ResolvedConfig:
    """Merge user options with defaults and validate cross-field constraints.

    ``default_output_dir`` is the host tool's output directory; when omitted
    the ``SITEMAP_OUTPUT_DIR`` setting applies. ``hostname`` falls back to
    ``SITEMAP_HOSTNAME``.
    """

    user_options = _load_options(options)
    runtime_settings = settings or get_settings()

    hostname = user_options.hostname
    if hostname is None and runtime_settings.SITEMAP_HOSTNAME is not None:
        try:
            hostname = check_sitemap_url(runtime_settings.SITEMAP_HOSTNAME)
        except ValueError as exc:
            raise ConfigurationError(
                "Invalid sitemap options",
                problems=[f"SITEMAP_HOSTNAME: {exc}"],
            ) from exc

    if user_options.generate_robots_txt and hostname is None:
        raise ConfigurationError(
            "Invalid sitemap options",
            problems=["generate_robots_txt requires hostname to be set"],
        )

    if user_options.output_dir is not None:
        output_dir = user_options.output_dir
    elif default_output_dir is not None:
        output_dir = Path(default_output_dir)
    else:
        output_dir = runtime_settings.SITEMAP_OUTPUT_DIR

    filename = user_options.filename or runtime_settings.SITEMAP_FILENAME or DEFAULT_FILENAME
    if not filename.endswith(".xml"):
        raise ConfigurationError(
            "Invalid sitemap options",
            problems=[f"filename: {filename!r} must end with .xml"],
        )

    try:
        exclude = compile_patterns(user_options.exclude)
    except TypeError as exc:
        raise ConfigurationError("Invalid sitemap options", problems=[str(exc)]) from exc

    resolved = ResolvedConfig(
        hostname=hostname,
        output_dir=output_dir,
        filename=filename,
        changefreq=user_options.changefreq,
        priority=user_options.priority,
        lastmod=user_options.lastmod,
        exclude=exclude,
        transform=user_options.transform,
        serialize=user_options.serialize,
        generate_robots_txt=user_options.generate_robots_txt,
    )
    logger.debug(
        "Resolved sitemap options (hostname=%s, output_dir=%s, filename=%s, exclude=%d)",
        resolved.hostname,
        resolved.output_dir,
        resolved.filename,
        len(resolved.exclude),
    )
    return resolved


__all__ = ["DEFAULT_FILENAME", "ResolvedConfig", "resolve_options"]
