"""Human-readable formatting for CLI and log output."""

from __future__ import annotations


def format_bytes(byte_count: int) -> str:
    if byte_count < 1024:
        return f"{byte_count} B"

    if byte_count < 1024 * 1024:
        return f"{byte_count / 1024:.1f} KB"

    return f"{byte_count / (1024 * 1024):.1f} MB"


def format_duration(milliseconds: float) -> str:
    if milliseconds < 1000:
        return f"{round(milliseconds)}ms"

    return f"{milliseconds / 1000:.2f}s"


__all__ = ["format_bytes", "format_duration"]
