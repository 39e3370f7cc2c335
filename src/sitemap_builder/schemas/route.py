"""Pydantic schemas for sitemap routes and Google extensions."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
import re
from typing import Annotated, Final, Literal
from urllib.parse import urlsplit

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

from sitemap_builder.utils.dates import W3CDatetimeError, to_w3c_datetime, validate_w3c_datetime

MAX_URL_LENGTH: Final[int] = 2048
MAX_IMAGES_PER_ROUTE: Final[int] = 1000
MAX_VIDEO_TAGS: Final[int] = 32
MAX_STOCK_TICKERS: Final[int] = 5
MIN_VIDEO_DURATION_SECONDS: Final[int] = 1
MAX_VIDEO_DURATION_SECONDS: Final[int] = 28800
ALLOWED_URL_SCHEMES: Final[frozenset[str]] = frozenset({"http", "https"})
MAX_TEXT_LENGTH: Final[int] = 2048
MAX_VIDEO_TITLE_LENGTH: Final[int] = 100

# Characters outside the XML 1.0 Char production.
_XML_INVALID_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


class ChangeFrequency(str, Enum):
    """Change frequency values defined by the sitemap protocol."""

    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


def check_sitemap_url(value: str) -> str:
    """Validate an absolute http(s) URL without a fragment."""

    if not value:
        raise PydanticCustomError("url_empty", "URL must not be empty")

    if len(value) > MAX_URL_LENGTH:
        raise PydanticCustomError(
            "url_too_long",
            "URL must not exceed {max_length} characters",
            {"max_length": MAX_URL_LENGTH},
        )

    try:
        split_url = urlsplit(value)
    except ValueError as exc:
        raise PydanticCustomError(
            "url_invalid", "Invalid URL format: {reason}", {"reason": str(exc)}
        ) from exc

    if split_url.scheme.lower() not in ALLOWED_URL_SCHEMES:
        if not split_url.scheme:
            raise PydanticCustomError(
                "url_not_absolute", "URL must be absolute with an http(s) scheme"
            )
        raise PydanticCustomError(
            "url_scheme",
            "Invalid protocol '{scheme}:'. Only http: and https: are allowed",
            {"scheme": split_url.scheme},
        )

    if not split_url.netloc:
        raise PydanticCustomError("url_not_absolute", "URL must include a host")

    if "#" in value:
        raise PydanticCustomError(
            "url_fragment",
            "URL must not contain a fragment (#{fragment})",
            {"fragment": split_url.fragment},
        )

    return value


def _coerce_date(value: object) -> object:
    if isinstance(value, (date, datetime)):
        return to_w3c_datetime(value)
    return value


def _check_w3c_datetime(value: str) -> str:
    try:
        return validate_w3c_datetime(value)
    except W3CDatetimeError as exc:
        raise PydanticCustomError(
            "w3c_datetime",
            "Must be a valid W3C Datetime ({reason})",
            {"reason": str(exc)},
        ) from exc


def _check_xml_chars(value: str) -> str:
    match = _XML_INVALID_CHARS.search(value)
    if match is not None:
        raise PydanticCustomError(
            "xml_chars",
            "Text contains a character not allowed in XML ({char}) at position {position}",
            {"char": repr(match.group()), "position": match.start()},
        )

    return value


def _join_list(value: object) -> object:
    if isinstance(value, (list, tuple)):
        return ",".join(str(item).strip() for item in value)
    return value


SitemapURL = Annotated[str, AfterValidator(check_sitemap_url)]
W3CDatetime = Annotated[str, BeforeValidator(_coerce_date), AfterValidator(_check_w3c_datetime)]
CountryCode = Annotated[str, StringConstraints(min_length=2, max_length=2)]
XMLText = Annotated[str, AfterValidator(_check_xml_chars)]
LongText = Annotated[
    str, StringConstraints(max_length=MAX_TEXT_LENGTH), AfterValidator(_check_xml_chars)
]
VideoTitle = Annotated[
    str, StringConstraints(max_length=MAX_VIDEO_TITLE_LENGTH), AfterValidator(_check_xml_chars)
]
CommaJoined = Annotated[str, BeforeValidator(_join_list), AfterValidator(_check_xml_chars)]


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Image(_FrozenModel):
    """Google image sitemap entry."""

    loc: SitemapURL
    title: LongText | None = None
    caption: LongText | None = None
    geo_location: XMLText | None = None
    license: SitemapURL | None = None


class VideoRestriction(_FrozenModel):
    relationship: Literal["allow", "deny"]
    countries: list[CountryCode] = Field(default_factory=list)


class VideoPlatform(_FrozenModel):
    relationship: Literal["allow", "deny"]
    platforms: list[Literal["web", "mobile", "tv"]] = Field(default_factory=list)


class VideoUploader(_FrozenModel):
    name: XMLText
    info: SitemapURL | None = None


class Video(_FrozenModel):
    """Google video sitemap entry.

    At least one of ``content_loc`` and ``player_loc`` must be present.
    """

    title: VideoTitle
    description: LongText
    thumbnail_loc: SitemapURL
    content_loc: SitemapURL | None = None
    player_loc: SitemapURL | None = None
    duration: int | None = Field(
        default=None, strict=True, ge=MIN_VIDEO_DURATION_SECONDS, le=MAX_VIDEO_DURATION_SECONDS
    )
    rating: float | None = Field(default=None, strict=True, ge=0.0, le=5.0)
    view_count: int | None = Field(default=None, strict=True, ge=0)
    publication_date: W3CDatetime | None = None
    expiration_date: W3CDatetime | None = None
    family_friendly: bool | None = Field(default=None, strict=True)
    live: bool | None = Field(default=None, strict=True)
    requires_subscription: bool | None = Field(default=None, strict=True)
    restriction: VideoRestriction | None = None
    platform: VideoPlatform | None = None
    uploader: VideoUploader | None = None
    tags: list[XMLText] = Field(default_factory=list, max_length=MAX_VIDEO_TAGS)

    @model_validator(mode="after")
    def ensure_location_present(self) -> Video:
        if self.content_loc is None and self.player_loc is None:
            raise PydanticCustomError(
                "video_location_missing",
                "Either content_loc or player_loc must be provided",
            )

        return self


class NewsPublication(_FrozenModel):
    name: XMLText
    language: str = Field(min_length=2, max_length=5, pattern=r"^[A-Za-z-]+$")


class NewsItem(_FrozenModel):
    """Google News sitemap entry."""

    publication: NewsPublication
    publication_date: W3CDatetime
    title: LongText
    keywords: CommaJoined | None = None
    stock_tickers: CommaJoined | None = None

    @field_validator("stock_tickers")
    @classmethod
    def limit_stock_tickers(cls, value: str | None) -> str | None:
        if value is None:
            return None

        tickers = [ticker for ticker in value.split(",") if ticker.strip()]
        if len(tickers) > MAX_STOCK_TICKERS:
            raise PydanticCustomError(
                "stock_tickers_limit",
                "Maximum {limit} stock tickers allowed",
                {"limit": MAX_STOCK_TICKERS},
            )

        return value


class Alternate(_FrozenModel):
    """hreflang alternate for a route (``x-default`` is allowed)."""

    hreflang: Annotated[str, StringConstraints(min_length=2), AfterValidator(_check_xml_chars)]
    href: SitemapURL


class Route(_FrozenModel):
    """A validated sitemap entry."""

    url: SitemapURL
    lastmod: W3CDatetime | None = None
    changefreq: ChangeFrequency | None = None
    priority: float | None = Field(default=None, strict=True, ge=0.0, le=1.0)
    images: list[Image] = Field(default_factory=list, max_length=MAX_IMAGES_PER_ROUTE)
    videos: list[Video] = Field(default_factory=list)
    news: NewsItem | None = None
    alternates: list[Alternate] = Field(default_factory=list)


__all__ = [
    "ALLOWED_URL_SCHEMES",
    "Alternate",
    "ChangeFrequency",
    "Image",
    "MAX_IMAGES_PER_ROUTE",
    "MAX_STOCK_TICKERS",
    "MAX_TEXT_LENGTH",
    "MAX_URL_LENGTH",
    "MAX_VIDEO_TAGS",
    "NewsItem",
    "NewsPublication",
    "Route",
    "SitemapURL",
    "Video",
    "VideoPlatform",
    "VideoRestriction",
    "VideoUploader",
    "W3CDatetime",
    "XMLText",
    "check_sitemap_url",
]
