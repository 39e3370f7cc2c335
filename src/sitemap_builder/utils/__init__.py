"""Utilities for shared application concerns."""

from sitemap_builder.utils.dates import (
    W3CDatetimeError,
    is_valid_w3c_datetime,
    parse_w3c_datetime,
    to_w3c_datetime,
)
from sitemap_builder.utils.format import format_bytes, format_duration
from sitemap_builder.utils.logging import (
    add_request_logging_middleware,
    setup_logging,
)

__all__ = [
    "W3CDatetimeError",
    "add_request_logging_middleware",
    "format_bytes",
    "format_duration",
    "is_valid_w3c_datetime",
    "parse_w3c_datetime",
    "setup_logging",
    "to_w3c_datetime",
]
