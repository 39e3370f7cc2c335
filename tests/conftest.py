"""Shared fixtures for sitemap builder tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from sitemap_builder.config import Settings
from sitemap_builder.services.options_resolver import ResolvedConfig, resolve_options


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        SITEMAP_HOSTNAME=None,
        SITEMAP_OUTPUT_DIR=tmp_path / "dist",
        SITEMAP_FILENAME="sitemap.xml",
    )


@pytest.fixture
def make_config(settings: Settings) -> Callable[..., ResolvedConfig]:
    def _make(**options: Any) -> ResolvedConfig:
        return resolve_options(options, settings=settings)

    return _make
