"""Pydantic schema for user-supplied sitemap options."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
import re
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sitemap_builder.schemas.route import ChangeFrequency, Route, SitemapURL, W3CDatetime

RouteDraft: TypeAlias = dict[str, Any]
"""A route before validation: a plain mapping of route fields."""

TransformResult: TypeAlias = RouteDraft | Route | None
RouteTransformer: TypeAlias = Callable[
    [RouteDraft], TransformResult | Awaitable[TransformResult]
]
SitemapSerializer: TypeAlias = Callable[[Sequence[Any]], str | Awaitable[str]]


class SitemapOptions(BaseModel):
    """User configuration; every field is optional."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    hostname: SitemapURL | None = None
    output_dir: Path | None = None
    filename: str | None = None
    changefreq: ChangeFrequency | None = None
    priority: float | None = Field(default=None, strict=True, ge=0.0, le=1.0)
    lastmod: W3CDatetime | None = None
    exclude: list[str | re.Pattern[str]] = Field(default_factory=list)
    transform: Callable[..., Any] | None = None
    serialize: Callable[..., Any] | None = None
    generate_robots_txt: bool = False

    @field_validator("filename")
    @classmethod
    def ensure_plain_xml_filename(cls, value: str | None) -> str | None:
        if value is None:
            return None

        if not value.endswith(".xml") or len(value) <= len(".xml"):
            raise ValueError("filename must end with .xml")

        if "/" in value or "\\" in value:
            raise ValueError("filename must not contain a path separator")

        return value


__all__ = [
    "RouteDraft",
    "RouteTransformer",
    "SitemapOptions",
    "SitemapSerializer",
    "TransformResult",
]
