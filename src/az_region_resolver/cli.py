"""Unified CLI for az-region-resolver.

Subcommands:
    az-region-resolver resolve    – resolve one or more region labels
    az-region-resolver normalize  – normalise the region column of a CSV export
    az-region-resolver regions    – list canonical regions
    az-region-resolver aliases    – list the aliases of a region
    az-region-resolver check      – check the alias table (optionally against ARM)
    az-region-resolver web        – run the REST API (FastAPI + uvicorn)
    az-region-resolver mcp        – run the MCP server (stdio or SSE transport)
"""

import json
import logging
import sys
from typing import TextIO

import click
from pydantic import ValidationError

from az_region_resolver import __version__
from az_region_resolver.models.region import AZURE_CLOUDS
from az_region_resolver.resolver import (
    RegionAliasResolver,
    RegionResolverError,
    check_table,
    get_resolver,
)
from az_region_resolver.settings import ResolverSettings, get_settings

_cloud_option = click.option(
    "--cloud",
    type=click.Choice(AZURE_CLOUDS, case_sensitive=False),
    default=None,
    help="Azure cloud used to disambiguate shared short codes.",
)


def _settings() -> ResolverSettings:
    try:
        return get_settings()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid AZ_REGION_RESOLVER_* settings:\n{exc}") from exc


def _resolver() -> RegionAliasResolver:
    return get_resolver(_settings().table_path)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.version_option(version=__version__, prog_name="az-region-resolver")
def cli() -> None:
    """Azure region alias resolver."""


@cli.command()
@click.argument("labels", nargs=-1, required=True)
@_cloud_option
@click.option("--all", "show_all", is_flag=True, default=False, help="Show every candidate.")
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat labels shared by several regions as errors.",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
def resolve(
    labels: tuple[str, ...], cloud: str | None, show_all: bool, strict: bool, as_json: bool
) -> None:
    """Resolve region LABELS to canonical region IDs."""
    resolver = _resolver()
    cloud = cloud or _settings().default_cloud
    results = [resolver.resolve_result(label, cloud) for label in labels]

    if as_json:
        click.echo(
            json.dumps([r.model_dump(mode="json", by_alias=True) for r in results], indent=2)
        )
    else:
        for result in results:
            if result.match is None:
                click.echo(f"{result.label}\t-\t(not found)")
                continue
            click.echo(f"{result.label}\t{result.match.region_id}\t{result.match.region_name}")
            if result.status == "ambiguous":
                others = ", ".join(c.region_id for c in result.candidates[1:])
                click.echo(f"  ambiguous, also: {others}", err=True)
                if show_all:
                    for cand in result.candidates[1:]:
                        click.echo(f"{result.label}\t{cand.region_id}\t{cand.region_name}")

    failed = [r for r in results if r.status == "not_found" or (strict and r.status == "ambiguous")]
    if failed:
        sys.exit(1)


@cli.command()
@click.argument("source", type=click.File("r", encoding="utf-8-sig"))
@click.option(
    "-o",
    "--output",
    "dest",
    type=click.File("w", encoding="utf-8"),
    default="-",
    help="Output CSV (stdout by default).",
)
@click.option("--column", default=None, help="Region column (auto-detected by default).")
@_cloud_option
@click.option(
    "--on-missing",
    type=click.Choice(["passthrough", "flag", "fail"]),
    default=None,
    help="What to do with unknown labels (default from settings: passthrough).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose logging.")
def normalize(
    source: TextIO,
    dest: TextIO,
    column: str | None,
    cloud: str | None,
    on_missing: str | None,
    verbose: bool,
) -> None:
    """Normalise the region column of a billing export SOURCE (CSV, '-' for stdin)."""
    from az_region_resolver.services.normalizer import normalize_csv

    _configure_logging(verbose)
    settings = _settings()
    try:
        summary = normalize_csv(
            source,
            dest,
            column or settings.region_column,
            resolver=_resolver(),
            cloud=cloud or settings.default_cloud,
            on_missing=on_missing or settings.on_missing,  # type: ignore[arg-type]
        )
    except UnicodeDecodeError as exc:
        raise click.ClickException(
            f"{source.name} is not UTF-8 encoded (byte {exc.start}: {exc.reason})"
        ) from exc
    except (RegionResolverError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        f"{summary.rows} rows ({summary.column}): {summary.resolved} resolved, "
        f"{summary.ambiguous} ambiguous, {summary.unresolved} unresolved, "
        f"{summary.empty} empty",
        err=True,
    )
    if summary.unresolvedLabels:
        click.echo(f"Unresolved labels: {', '.join(summary.unresolvedLabels)}", err=True)


@cli.command()
@_cloud_option
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
def regions(cloud: str | None, as_json: bool) -> None:
    """List canonical regions."""
    entries = _resolver().list_regions(cloud)
    if as_json:
        click.echo(
            json.dumps([e.model_dump(mode="json", by_alias=True) for e in entries], indent=2)
        )
        return
    for entry in entries:
        click.echo(f"{entry.region_id}\t{entry.region_name}\t{entry.cloud}")


@cli.command()
@click.argument("region_id")
def aliases(region_id: str) -> None:
    """List every label that resolves to REGION_ID."""
    try:
        values = _resolver().aliases_for(region_id)
    except RegionResolverError as exc:
        raise click.ClickException(str(exc)) from exc
    for value in values:
        click.echo(value)


@cli.command()
@click.option(
    "--live",
    is_flag=True,
    default=False,
    help="Also compare with the locations reported by Azure Resource Manager.",
)
@click.option("--subscription-id", default=None, help="Subscription used for --live.")
@click.option("--tenant-id", default=None, help="Tenant used for --live.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose logging.")
def check(live: bool, subscription_id: str | None, tenant_id: str | None, verbose: bool) -> None:
    """Check the alias table for integrity problems."""
    _configure_logging(verbose)
    resolver = _resolver()
    issues = check_table(resolver.entries)

    if live:
        import requests

        from az_region_resolver import azure_api
        from az_region_resolver.services.drift import find_table_drift

        try:
            locations = azure_api.list_locations(subscription_id, tenant_id)
        except (requests.RequestException, LookupError) as exc:
            raise click.ClickException(f"Could not list ARM locations: {exc}") from exc
        issues.extend(find_table_drift(locations, resolver))

    for issue in issues:
        click.echo(issue)
    if issues:
        click.echo(f"{len(issues)} issue(s) found", err=True)
        sys.exit(1)
    click.echo(f"OK: {len(resolver)} aliases, {len(resolver.list_regions())} regions", err=True)


@cli.command()
@click.option("--host", default=None, help="Host to bind to (default from settings).")
@click.option("--port", default=None, type=int, help="Port to listen on (default from settings).")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose logging.",
)
def web(host: str | None, port: int | None, verbose: bool) -> None:
    """Run the REST API."""
    import uvicorn

    from az_region_resolver.app import _setup_logging, app

    settings = _settings()
    host = host or settings.host
    port = port or settings.port
    log_level = "info" if verbose else "warning"
    _setup_logging(level=logging.DEBUG if verbose else logging.WARNING)

    url = f"http://{host}:{port}"
    click.echo(f"✦ az-region-resolver running at {click.style(url, fg='cyan', bold=True)}")
    click.echo("  Press Ctrl+C to stop.\n")
    uvicorn.run(app, host=host, port=port, log_level=log_level)


@cli.command()
@click.option(
    "--sse",
    is_flag=True,
    default=False,
    help="Use SSE transport instead of stdio.",
)
@click.option(
    "--port",
    default=8080,
    show_default=True,
    help="Port for SSE transport.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose logging.",
)
def mcp(sse: bool, port: int, verbose: bool) -> None:
    """Run the MCP server."""
    from az_region_resolver.mcp_server import mcp as mcp_server

    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)

    if sse:
        mcp_server.settings.port = port
        mcp_server.run(transport="sse")
    else:
        mcp_server.run(transport="stdio")
