#!/usr/bin/env python3
"""
SlopWatch - Main CLI Entry Point

Command-line interface for watching a project, extracting claims and
checking claims against file changes.
"""

import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import click

from slopwatch import __version__
from slopwatch.claims.models import ClaimState
from slopwatch.cli import configure_logging, console, render_claims, render_stats, render_verdict
from slopwatch.core.config_manager import SlopWatchConfig, config_manager
from slopwatch.core.errors import ConfigurationError
from slopwatch.service import SlopWatchService, set_service
from slopwatch.watching.diffs import created_diff, summarize
from slopwatch.watching.events import ChangeKind, FileChangeEvent


def common_options(func):
    """Options shared by every command that builds a service."""
    func = click.option("--verbose", "-v", is_flag=True, help="Enable DEBUG logging")(func)
    func = click.option(
        "--detector",
        "detectors",
        multiple=True,
        help="Enable only these detectors, in order (repeatable)",
    )(func)
    func = click.option(
        "--no-auto-analyze",
        is_flag=True,
        help="Only analyze claims on demand or when watching stops",
    )(func)
    func = click.option(
        "--window-ms",
        type=int,
        help="Correlation window in milliseconds (default: 30000)",
    )(func)
    func = click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True, dir_okay=False),
        help="JSON configuration file",
    )(func)
    return func


def _load_config(
    config_path: Optional[str],
    window_ms: Optional[int],
    no_auto_analyze: bool,
    detectors: Tuple[str, ...],
    verbose: bool,
    project_path: Optional[str] = None,
) -> SlopWatchConfig:
    configure_logging(verbose)
    try:
        config_manager.initialize(config_path)
        updates = {}
        if window_ms is not None:
            updates["correlation.analysis_window_ms"] = window_ms
        if no_auto_analyze:
            updates["correlation.auto_analyze"] = False
        if detectors:
            updates["correlation.enabled_detectors"] = list(detectors)
        if project_path is not None:
            updates["project_path"] = project_path
        if verbose:
            updates["verbose"] = True
        if updates:
            config_manager.update(updates)
    except ConfigurationError as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        sys.exit(2)
    return config_manager.config


def _wait_until_resolved(service: SlopWatchService, claim_ids, poll_s: float = 0.2) -> None:
    """Block until every claim has a verdict or expired."""
    terminal = (ClaimState.RESOLVED, ClaimState.EXPIRED)
    while any(service.engine.get_claim_state(cid) not in terminal for cid in claim_ids):
        time.sleep(poll_s)


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    SlopWatch - Catch AI coding assistants claiming work they did not do.

    Extracts claims from assistant output, watches the project for file
    changes and classifies each claim as verified, lie, partial or unknown.
    """
    pass


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option(
    "--claims-from-stdin",
    is_flag=True,
    help="Treat each line on stdin as an assistant message",
)
@click.option("--session", default="cli", help="Session id for stdin messages")
@common_options
def watch(path, claims_from_stdin, session, config_path, window_ms, no_auto_analyze, detectors, verbose):
    """Watch PATH and print a verdict for every claim."""
    _load_config(config_path, window_ms, no_auto_analyze, detectors, verbose, project_path=path)

    service = SlopWatchService()
    set_service(service)
    service.add_verdict_listener(
        lambda verdict: render_verdict(verdict, service.get_claim(verdict.claim_id))
    )
    service.start(path)

    console.print(f"👀 Watching [bold]{Path(path).resolve()}[/bold] (Ctrl+C to stop)")
    try:
        if claims_from_stdin:
            claim_ids = []
            for line in sys.stdin:
                if line.strip():
                    claims = service.submit_message(session, "assistant", line)
                    if not claims:
                        console.print("[dim]No claims in that message.[/dim]")
                    claim_ids.extend(claim.id for claim in claims)
            # stdin is exhausted; keep watching until every claim has its verdict
            if service.config.correlation.auto_analyze:
                _wait_until_resolved(service, claim_ids)
        else:
            while True:
                time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        service.stop()
        render_stats(service.get_stats())


@cli.command()
@click.argument("text", required=False)
@click.option(
    "--from-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Read the assistant text from a file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable DEBUG logging")
def extract(text, from_file, verbose):
    """Print the claims found in TEXT (or in --from-file)."""
    configure_logging(verbose)
    if from_file:
        text = Path(from_file).read_text(encoding="utf-8")
    if not text:
        raise click.UsageError("Provide TEXT or --from-file")

    service = SlopWatchService()
    render_claims(service.extractor.extract(text))


@cli.command()
@click.argument("claim_text")
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@common_options
def analyze(claim_text, files, config_path, window_ms, no_auto_analyze, detectors, verbose):
    """
    Check CLAIM_TEXT against FILES, treating each file as freshly created.

    Exits with status 1 when the claim is judged a lie.
    """
    _load_config(config_path, window_ms, no_auto_analyze, detectors, verbose)

    service = SlopWatchService()
    claim = service.add_claim(claim_text)

    for file in files:
        lines = Path(file).read_text(encoding="utf-8", errors="replace").splitlines()
        diff_summary, added, removed = summarize(created_diff(lines))
        service.record_change(FileChangeEvent(
            path=Path(file).as_posix(),
            kind=ChangeKind.CREATE,
            diff_summary=diff_summary,
            lines_added=added,
            lines_removed=removed,
            occurred_at=claim.created_at,
        ))

    verdict = service.engine.analyze_claim(claim.id)
    render_verdict(verdict, claim)
    service.engine.close()
    service.forwarder.close()
    if verdict.is_lie:
        sys.exit(1)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Port")
@click.option(
    "--watch",
    "watch_path",
    type=click.Path(exists=True, file_okay=False),
    help="Also watch this project directory",
)
@common_options
def serve(host, port, watch_path, config_path, window_ms, no_auto_analyze, detectors, verbose):
    """Run the HTTP API (verdicts, stats, message ingestion, SSE stream)."""
    import uvicorn

    _load_config(config_path, window_ms, no_auto_analyze, detectors, verbose, project_path=watch_path)

    service = SlopWatchService()
    set_service(service)
    service.start(watch_path, watch=watch_path is not None)

    from api.server import app

    console.print(f"🚀 SlopWatch API on http://{host}:{port}/api/docs")
    try:
        uvicorn.run(app, host=host, port=port, log_level="debug" if verbose else "info")
    finally:
        service.stop()


if __name__ == "__main__":
    cli()
