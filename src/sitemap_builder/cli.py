"""Command-line interface for sitemap-builder."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

import click
from rich.console import Console
from rich.markup import escape

from sitemap_builder import __version__
from sitemap_builder.config import get_settings
from sitemap_builder.errors import SitemapError, format_validation_errors
from sitemap_builder.services.generator import (
    GenerationResult,
    generate_sitemaps,
    validate_sources,
)
from sitemap_builder.services.loader import LoadedRoutes, load_routes
from sitemap_builder.services.options_resolver import ResolvedConfig, resolve_options
from sitemap_builder.utils.format import format_bytes, format_duration
from sitemap_builder.utils.logging import setup_logging

console = Console(soft_wrap=True, highlight=False)

DEFAULT_PREVIEW_LINES = 50


@dataclass(slots=True)
class CLIState:
    root: Path
    verbose: bool


def _fail(message: str) -> NoReturn:
    console.print(f"[red]✗ {escape(message)}[/red]")
    raise click.exceptions.Exit(1)


def _label(name: str | None) -> str:
    return name if name is not None else "default"


def _load(state: CLIState, sitemap: str | None) -> LoadedRoutes:
    try:
        return load_routes(state.root, sitemap)
    except SitemapError as exc:
        _fail(str(exc))


def _resolve(
    state: CLIState,
    loaded: LoadedRoutes,
    **overrides: Any,
) -> ResolvedConfig:
    options: dict[str, Any] = dict(loaded.options)
    options.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return resolve_options(
            options,
            default_output_dir=state.root / get_settings().SITEMAP_OUTPUT_DIR,
        )
    except SitemapError as exc:
        _fail(str(exc))


def _print_warnings(warnings: tuple[str, ...]) -> None:
    for warning in warnings:
        console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")


@click.group()
@click.version_option(version=__version__, prog_name="sitemap-builder")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed log output")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project root used to discover sitemap.py",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, root: Path) -> None:
    """
    Sitemap Builder - generate XML sitemaps from route definitions.

    Routes are read from sitemap.py (src/sitemap.py is preferred).
    """
    setup_logging(get_settings(), level="DEBUG" if verbose else "WARNING")
    ctx.obj = CLIState(root=root, verbose=verbose)


@main.command()
@click.option("--sitemap", "sitemap_file", help="Path to the route definition file")
@click.pass_obj
def validate(state: CLIState, sitemap_file: str | None) -> None:
    """
    Validate route definitions without generating files.

    Exits with status 1 when any route fails validation.

    Example:
        sitemap-builder validate
        sitemap-builder validate --sitemap config/sitemap.py
    """
    loaded = _load(state, sitemap_file)
    config = _resolve(state, loaded)
    console.print(f"Validating routes from [cyan]{escape(str(loaded.path))}[/cyan]\n")

    try:
        validation = asyncio.run(validate_sources(loaded.sources, config))
    except SitemapError as exc:
        _fail(str(exc))

    for report in validation.reports:
        status = "[green]✓[/green]" if report.valid else "[red]✗[/red]"
        console.print(
            f"{status} {escape(_label(report.sitemap))}: "
            f"{len(report.routes)} valid, {report.rejected} rejected"
        )

    _print_warnings(validation.warnings)

    if not validation.valid:
        errors = validation.errors
        console.print(f"\n[red bold]Found {len(errors)} validation error(s):[/red bold]\n")
        console.print(escape(format_validation_errors(errors)))
        raise click.exceptions.Exit(1)

    console.print(f"\n[green]✓ All {validation.route_count} route(s) are valid[/green]")


@main.command()
@click.option("--sitemap", "sitemap_file", help="Path to the route definition file")
@click.option("--hostname", help="Base URL prepended to relative routes")
@click.option("--name", "sitemap_name", help="Only preview this named sitemap")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=DEFAULT_PREVIEW_LINES,
    show_default=True,
    help="Maximum lines of XML to show per file",
)
@click.option("--full", is_flag=True, help="Show complete XML output")
@click.pass_obj
def preview(
    state: CLIState,
    sitemap_file: str | None,
    hostname: str | None,
    sitemap_name: str | None,
    limit: int,
    full: bool,
) -> None:
    """
    Print generated sitemap XML without writing files.

    Example:
        sitemap-builder preview --hostname https://example.com
        sitemap-builder preview --name blog --full
    """
    loaded = _load(state, sitemap_file)
    config = _resolve(state, loaded, hostname=hostname)

    try:
        result = asyncio.run(generate_sitemaps(loaded.sources, config))
    except SitemapError as exc:
        _fail(str(exc))

    summaries = result.sitemaps
    if sitemap_name is not None:
        summaries = tuple(s for s in summaries if _label(s.name) == sitemap_name)
        if not summaries:
            available = ", ".join(_label(s.name) for s in result.sitemaps)
            _fail(f"Sitemap {sitemap_name!r} not found (available: {available})")

    for summary in summaries:
        for filename in summary.filenames:
            content = result.files[filename]
            lines = content.decode("utf-8").splitlines()
            console.print(
                f"[bold]── {escape(filename)}[/bold] "
                f"({summary.route_count} route(s), {format_bytes(len(content))})"
            )
            shown = lines if full else lines[:limit]
            click.echo("\n".join(shown))
            if len(lines) > len(shown):
                console.print(
                    f"[dim]... {len(lines) - len(shown)} more line(s), "
                    "use --full to show all[/dim]"
                )
            click.echo()

    if result.errors:
        console.print(
            f"[yellow]⚠ {len(result.errors)} route(s) rejected by validation; "
            "run 'sitemap-builder validate' for details[/yellow]"
        )


def _write_output(result: GenerationResult, output_dir: Path) -> list[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for filename, content in result.files.items():
        path = output_dir / filename
        path.write_bytes(content)
        written.append(path)

    if result.robots_txt is not None:
        path = output_dir / "robots.txt"
        path.write_text(result.robots_txt, encoding="utf-8")
        written.append(path)

    return written


@main.command()
@click.option("--sitemap", "sitemap_file", help="Path to the route definition file")
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: SITEMAP_OUTPUT_DIR under the root)",
)
@click.option("--hostname", help="Base URL prepended to relative routes")
@click.option("--robots-txt", is_flag=True, help="Create or update robots.txt")
@click.pass_obj
def generate(
    state: CLIState,
    sitemap_file: str | None,
    output: Path | None,
    hostname: str | None,
    robots_txt: bool,
) -> None:
    """
    Generate sitemap files and write them to the output directory.

    Example:
        sitemap-builder generate --output dist --hostname https://example.com
        sitemap-builder generate -o public --hostname https://example.com --robots-txt
    """
    loaded = _load(state, sitemap_file)
    config = _resolve(
        state,
        loaded,
        hostname=hostname,
        output_dir=output,
        generate_robots_txt=True if robots_txt else None,
    )
    output_dir = config.output_dir
    if not output_dir.is_absolute():
        output_dir = state.root / output_dir

    robots_path = output_dir / "robots.txt"
    try:
        existing_robots = (
            robots_path.read_text(encoding="utf-8") if robots_path.is_file() else None
        )
        result = asyncio.run(
            generate_sitemaps(loaded.sources, config, robots_txt=existing_robots)
        )
        written = _write_output(result, output_dir)
    except SitemapError as exc:
        _fail(str(exc))
    except OSError as exc:
        _fail(f"Failed to write output: {exc}")

    _print_warnings(result.warnings)
    if result.errors:
        console.print(f"\n[yellow]⚠ {len(result.errors)} route(s) skipped:[/yellow]\n")
        console.print(escape(format_validation_errors(result.errors)))
        console.print()

    for path in written:
        console.print(f"  {escape(str(path))} [dim]({format_bytes(path.stat().st_size)})[/dim]")

    console.print(
        f"\n[green]✓ Generated {len(result.files)} file(s) with {result.route_count} URL(s) "
        f"in {format_duration(result.duration_ms)}[/green]"
    )


@main.command()
@click.option("--sitemap", "sitemap_file", help="Path to the route definition file")
@click.option("--host", help="Bind address (default: DEV_SERVER_HOST)")
@click.option("--port", type=click.IntRange(1, 65535), help="Port (default: DEV_SERVER_PORT)")
@click.pass_obj
def serve(state: CLIState, sitemap_file: str | None, host: str | None, port: int | None) -> None:
    """
    Serve sitemaps over HTTP, regenerated on every request.

    Example:
        sitemap-builder serve --port 8000
    """
    import uvicorn

    from sitemap_builder.api.dev_server import create_app

    settings = get_settings()
    loaded = _load(state, sitemap_file)
    config = _resolve(state, loaded)

    robots_path = state.root / "robots.txt"
    existing_robots = robots_path.read_text(encoding="utf-8") if robots_path.is_file() else None
    app = create_app(loaded.sources, config, robots_txt=existing_robots)

    bind_host = host or settings.DEV_SERVER_HOST
    bind_port = port or settings.DEV_SERVER_PORT
    console.print(
        f"Serving [cyan]http://{bind_host}:{bind_port}/{escape(config.filename)}[/cyan]"
    )
    uvicorn.run(
        app,
        host=bind_host,
        port=bind_port,
        log_level="debug" if state.verbose else settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
