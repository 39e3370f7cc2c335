"""Per-route validation against the sitemap protocol and Google extensions."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import logging
from typing import Any

from pydantic import ValidationError

from sitemap_builder.errors import RouteValidationError
from sitemap_builder.schemas.options import RouteDraft
from sitemap_builder.schemas.route import ChangeFrequency, Route
from sitemap_builder.utils.dates import is_future_datetime

logger = logging.getLogger("sitemap_builder.route_validator")

_URL_SUGGESTION = "Use an absolute URL like 'https://example.com/page'"
_W3C_SUGGESTION = (
    "Use format: YYYY, YYYY-MM, YYYY-MM-DD, or YYYY-MM-DDThh:mm:ss+hh:mm "
    "(e.g. 2024-01-15 or 2024-01-15T10:30:00Z)"
)


@dataclass(slots=True, frozen=True)
class RouteValidationResult:
    """Outcome for one route: the validated route or its errors."""

    route: Route | None
    errors: tuple[RouteValidationError, ...] = ()

    @property
    def valid(self) -> bool:
        return self.route is not None


@dataclass(slots=True, frozen=True)
class ValidationReport:
    """Validated routes of one sitemap plus every rejected-route error."""

    sitemap: str | None
    routes: tuple[Route, ...]
    errors: tuple[RouteValidationError, ...]
    checked: int
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def rejected(self) -> int:
        return self.checked - len(self.routes)


def _suggestion_for(error_type: str, context: Mapping[str, Any]) -> str | None:
    if error_type == "url_fragment":
        return f"Remove the fragment '#{context.get('fragment', '')}' from the URL"

    if error_type.startswith("url_"):
        return _URL_SUGGESTION

    if error_type == "w3c_datetime":
        return _W3C_SUGGESTION

    if error_type == "enum" and "expected" in context:
        return f"Valid values are: {', '.join(item.value for item in ChangeFrequency)}"

    if error_type == "literal_error" and "expected" in context:
        return f"Valid values are: {context['expected']}"

    if error_type in {"less_than_equal", "less_than"}:
        return f"Number must be at most {context.get('le', context.get('lt'))}"

    if error_type in {"greater_than_equal", "greater_than"}:
        return f"Number must be at least {context.get('ge', context.get('gt'))}"

    if error_type == "string_too_long":
        return f"String must be at most {context.get('max_length')} characters"

    if error_type == "string_too_short":
        return f"String must be at least {context.get('min_length')} characters"

    if error_type == "too_long":
        return f"List must have at most {context.get('max_length')} items"

    if error_type == "missing":
        return "Provide a value for this required field"

    if error_type == "video_location_missing":
        return "Add content_loc (the media file) or player_loc (an embeddable player)"

    if error_type == "xml_chars":
        return "Remove control characters from the text"

    if error_type == "bool_type":
        return "Use True or False"

    if error_type == "stock_tickers_limit":
        return f"List at most {context.get('limit')} comma-separated tickers"

    if error_type.startswith("int_") or error_type.startswith("float_"):
        return "Provide a numeric value"

    return None


def _convert_errors(
    exc: ValidationError,
    *,
    draft: Mapping[str, Any],
    index: int,
    sitemap: str | None,
) -> tuple[RouteValidationError, ...]:
    url = draft.get("url")
    url_text = url if isinstance(url, str) else repr(url)

    converted: list[RouteValidationError] = []
    for error in exc.errors():
        error_type = str(error["type"])
        context = error.get("ctx") or {}
        input_value = None if error_type == "missing" else error.get("input")
        converted.append(
            RouteValidationError(
                sitemap=sitemap,
                index=index,
                url=url_text,
                field=".".join(str(part) for part in error["loc"]),
                code=error_type,
                message=str(error["msg"]),
                value=input_value,
                suggestion=_suggestion_for(error_type, context),
            )
        )

    return tuple(converted)


def _missing_video_locations(
    draft: Mapping[str, Any],
    *,
    index: int,
    sitemap: str | None,
    reported: set[tuple[str, str]],
) -> list[RouteValidationError]:
    videos = draft.get("videos")
    if not isinstance(videos, (list, tuple)):
        return []

    url = draft.get("url")
    missing: list[RouteValidationError] = []
    for position, video in enumerate(videos):
        if not isinstance(video, Mapping):
            continue
        if video.get("content_loc") is not None or video.get("player_loc") is not None:
            continue

        field_path = f"videos.{position}"
        if (field_path, "video_location_missing") in reported:
            continue

        missing.append(
            RouteValidationError(
                sitemap=sitemap,
                index=index,
                url=url if isinstance(url, str) else repr(url),
                field=field_path,
                code="video_location_missing",
                message="Either content_loc or player_loc must be provided",
                suggestion=_suggestion_for("video_location_missing", {}),
            )
        )

    return missing


def validate_route(
    draft: RouteDraft | Mapping[str, Any],
    *,
    index: int = 0,
    sitemap: str | None = None,
) -> RouteValidationResult:
    """Validate one route draft, collecting every violation.

    Validation is all-or-nothing per route: an invalid image, video, news
    entry or alternate rejects the whole route.
    """

    if not isinstance(draft, Mapping):
        return RouteValidationResult(
            route=None,
            errors=(
                RouteValidationError(
                    sitemap=sitemap,
                    index=index,
                    url=repr(draft),
                    field="",
                    code="route_type",
                    message=f"Route must be a mapping, got {type(draft).__name__}",
                    value=None,
                ),
            ),
        )

    try:
        route = Route.model_validate(dict(draft))
    except ValidationError as exc:
        errors = list(_convert_errors(exc, draft=draft, index=index, sitemap=sitemap))
        # The pair rule on videos only runs once every video field is valid.
        errors.extend(
            _missing_video_locations(
                draft,
                index=index,
                sitemap=sitemap,
                reported={(error.field, error.code) for error in errors},
            )
        )
        return RouteValidationResult(route=None, errors=tuple(errors))

    return RouteValidationResult(route=route)


def validate_routes(
    drafts: Sequence[RouteDraft],
    *,
    sitemap: str | None = None,
    positions: Sequence[int] | None = None,
) -> ValidationReport:
    """Validate routes in order, keeping valid ones and collecting errors.

    ``positions`` maps each draft to its index in the original route source;
    errors report that index. Without it, the index within ``drafts`` is used.
    """

    if positions is not None and len(positions) != len(drafts):
        raise ValueError("positions must have one entry per draft")

    routes: list[Route] = []
    errors: list[RouteValidationError] = []
    warnings: list[str] = []

    for offset, draft in enumerate(drafts):
        index = positions[offset] if positions is not None else offset
        result = validate_route(draft, index=index, sitemap=sitemap)
        if result.route is None:
            errors.extend(result.errors)
            logger.warning(
                "Rejected route %r with %d validation error(s)",
                result.errors[0].url if result.errors else None,
                len(result.errors),
                extra={"sitemap": sitemap or "default"},
            )
            continue

        route = result.route
        if route.lastmod is not None and is_future_datetime(route.lastmod):
            warnings.append(f"Future lastmod date for {route.url}: {route.lastmod}")

        routes.append(route)

    return ValidationReport(
        sitemap=sitemap,
        routes=tuple(routes),
        errors=tuple(errors),
        checked=len(drafts),
        warnings=tuple(warnings),
    )


__all__ = [
    "RouteValidationResult",
    "ValidationReport",
    "validate_route",
    "validate_routes",
]
