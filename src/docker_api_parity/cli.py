"""CLI entry point for docker-api-parity."""

import logging
import sys
from pathlib import Path

import click

from docker_api_parity.differ import diff_methods, write_report
from docker_api_parity.parser.modeldefs import parse_modeldefs
from docker_api_parity.parser.swagger import SpecFormatError, parse_openapi
from docker_api_parity.stub.daemon import DEFAULT_HOST, DEFAULT_PORT, StubDaemon
from docker_api_parity.stub.probe import (
    DEFAULT_API_VERSION,
    DEFAULT_ID_COUNT,
    find_crosstalk,
    inspect_concurrently,
    padded_ids,
)

ENVVAR_PREFIX = "DOCKER_API_PARITY"


@click.group(context_settings={"auto_envvar_prefix": ENVVAR_PREFIX})
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """Docker API parity tools: diff modeldefs.go against the OpenAPI document, or fake a daemon."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("modeldefs_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Log file the report is appended to (default: stdout).")
@click.option("--skip-suffix", "skip_suffixes", multiple=True, help="Never report methods whose path ends with this suffix as missing.")
@click.option("--workers", default=None, type=click.IntRange(min=1), help="Threads used to scan modeldefs.go.")
def diff(modeldefs_path: Path, spec_path: Path, output: Path | None, skip_suffixes: tuple[str, ...], workers: int | None):
    """Diff REST methods in MODELDEFS_PATH against the OpenAPI document SPEC_PATH."""
    click.echo(f"Parsing {modeldefs_path}...", err=True)
    source_methods = parse_modeldefs(modeldefs_path, workers=workers)

    click.echo(f"Parsing {spec_path}...", err=True)
    try:
        spec_methods = parse_openapi(spec_path)
    except SpecFormatError as e:
        raise click.ClickException(f"{spec_path}: {e}") from e

    report = diff_methods(source_methods, spec_methods, skip_suffixes=skip_suffixes)

    if output is None:
        write_report(report, sys.stdout)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        with output.open("a", encoding="utf-8") as sink:
            write_report(report, sink)
        click.echo(f"Report appended to {output}", err=True)

    click.echo(
        f"{len(report.diffs)} methods differ, "
        f"{len(report.missing_in_spec)} missing in the specification, "
        f"{len(report.missing_in_source)} missing in the source definition.",
        err=True,
    )


@main.command()
@click.option("--host", default=DEFAULT_HOST, show_default=True, help="Address to listen on.")
@click.option("--port", default=DEFAULT_PORT, show_default=True, type=click.IntRange(0, 65535), help="Port to listen on.")
def serve(host: str, port: int):
    """Run the fake Docker daemon in the foreground."""
    daemon = StubDaemon(host=host, port=port)
    click.echo(f"Serving fake Docker daemon on tcp://{host}:{port} (Ctrl+C to stop)")
    try:
        daemon.serve_forever()
    except KeyboardInterrupt:
        click.echo("Stopped.")


@main.command()
@click.option("--count", default=DEFAULT_ID_COUNT, show_default=True, type=click.IntRange(min=1), help="Number of containers to inspect.")
@click.option("--start", default=0, show_default=True, type=click.IntRange(min=0), help="First container id.")
@click.option("--workers", default=None, type=click.IntRange(min=1), help="Concurrent requests (default: executor default).")
@click.option("--base-url", default=None, help="Daemon to probe, e.g. tcp://127.0.0.1:2375 (default: a fresh stub daemon).")
@click.option("--api-version", default=DEFAULT_API_VERSION, show_default=True, help="Docker API version the client speaks.")
def probe(count: int, start: int, workers: int | None, base_url: str | None, api_version: str):
    """Inspect containers concurrently and check every response matches its request."""
    ids = padded_ids(start=start, count=count)

    if base_url is None:
        with StubDaemon(port=0) as daemon:
            results = _probe(daemon.base_url, ids, workers, api_version)
    else:
        results = _probe(base_url, ids, workers, api_version)

    crosstalk = find_crosstalk(results)
    for requested, returned in crosstalk:
        click.echo(f"  requested {requested}, got {returned}")

    if crosstalk:
        click.echo(f"{len(crosstalk)} of {len(results)} responses did not match their request.")
        sys.exit(1)

    click.echo(f"All {len(results)} responses matched their request.")


def _probe(base_url: str, ids: list[str], workers: int | None, api_version: str) -> dict[str, str]:
    click.echo(f"Inspecting {len(ids)} containers on {base_url}...")
    return inspect_concurrently(base_url, ids, max_workers=workers, version=api_version)
