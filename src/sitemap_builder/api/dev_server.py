"""Development server that renders sitemaps on every request."""

from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, HTTPException, Request, status
from starlette.responses import PlainTextResponse, Response

from sitemap_builder.errors import SitemapError
from sitemap_builder.services.generator import GenerationResult, generate_sitemaps
from sitemap_builder.services.options_resolver import ResolvedConfig
from sitemap_builder.services.route_normalizer import RouteSources
from sitemap_builder.utils.logging import add_request_logging_middleware

XML_MEDIA_TYPE = "application/xml"

router = APIRouter(tags=["sitemaps"])
logger = logging.getLogger("sitemap_builder.dev_server")


async def _generate(request: Request) -> GenerationResult:
    config: ResolvedConfig = request.app.state.config
    sources: RouteSources = request.app.state.sources
    try:
        return await generate_sitemaps(
            sources, config, robots_txt=request.app.state.robots_txt
        )
    except SitemapError as exc:
        logger.error("Sitemap generation failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/robots.txt", response_class=PlainTextResponse)
async def get_robots_txt(request: Request) -> PlainTextResponse:
    config: ResolvedConfig = request.app.state.config
    if not config.generate_robots_txt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    result = await _generate(request)
    return PlainTextResponse(result.robots_txt or "")


@router.get("/{filename}")
async def get_sitemap_file(filename: str, request: Request) -> Response:
    if not filename.endswith(".xml"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    result = await _generate(request)
    content = result.files.get(filename)
    if content is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sitemap {filename!r} not found",
        )

    if result.errors:
        logger.warning(
            "Serving %s with %d route(s) rejected by validation",
            filename,
            len(result.errors),
            extra={"output_file": filename},
        )

    return Response(content=content, media_type=XML_MEDIA_TYPE)


def create_app(
    sources: RouteSources,
    config: ResolvedConfig,
    *,
    robots_txt: str | None = None,
) -> FastAPI:
    """Build the dev server for ``sources``.

    ``robots_txt`` is the existing robots.txt content merged into the served
    file when robots generation is enabled.
    """

    app = FastAPI(title="Sitemap Builder dev server")
    app.state.sources = sources
    app.state.config = config
    app.state.robots_txt = robots_txt
    add_request_logging_middleware(app)
    app.include_router(router)
    return app


__all__ = ["create_app", "router"]
