"""
Console output for the SlopWatch CLI.

Logging goes through a RichHandler; verdicts, claims and statistics are
rendered as Rich tables and panels.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..claims.models import Claim
from ..scoring.verdicts import Verdict, VerdictStatus

console = Console()

STATUS_STYLES = {
    VerdictStatus.VERIFIED: ("✅", "green"),
    VerdictStatus.LIE: ("🚨", "red"),
    VerdictStatus.PARTIAL: ("⚠️ ", "yellow"),
    VerdictStatus.UNKNOWN: ("❔", "dim"),
}


def configure_logging(verbose: bool = False) -> None:
    """Route all logging through Rich; verbose selects DEBUG."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # Third-party chatter
    for noisy in ("urllib3", "httpx", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%H:%M:%S")


def render_verdict(verdict: Verdict, claim: Optional[Claim] = None) -> None:
    icon, color = STATUS_STYLES[verdict.status]
    lines = []
    if claim is not None:
        lines.append(f"[bold]Claim:[/bold] {claim.text}")
        lines.append(f"[dim]{claim.domain.value} / {claim.action.value}[/dim]")
    lines.append(f"[bold]Reason:[/bold] {verdict.reason}")
    for item in verdict.evidence:
        lines.append(f"  • {item}")

    console.print(Panel(
        "\n".join(lines),
        title=f"{icon} {verdict.status.value.upper()} ({verdict.confidence:.0%})",
        subtitle=f"{verdict.detector_name} @ {_time(verdict.resolved_at)}",
        border_style=color,
        box=box.ROUNDED,
    ))


def render_verdicts(verdicts: Iterable[Verdict]) -> None:
    table = Table(title="Recent Verdicts", box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("TIME", justify="center")
    table.add_column("STATUS", justify="left")
    table.add_column("CONF", justify="right")
    table.add_column("DETECTOR")
    table.add_column("REASON", justify="left")

    for verdict in verdicts:
        icon, color = STATUS_STYLES[verdict.status]
        table.add_row(
            _time(verdict.resolved_at),
            f"[{color}]{icon} {verdict.status.value}[/{color}]",
            f"{verdict.confidence:.0%}",
            verdict.detector_name,
            verdict.reason,
        )
    console.print(table)


def render_claims(claims: Iterable[Claim]) -> None:
    table = Table(title="Extracted Claims", box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("ACTION", style="bold")
    table.add_column("DOMAIN")
    table.add_column("TARGET")
    table.add_column("CONF", justify="right")
    table.add_column("SOURCES")
    table.add_column("TEXT", justify="left")

    count = 0
    for claim in claims:
        count += 1
        table.add_row(
            claim.action.value,
            claim.domain.value,
            claim.target,
            f"{claim.confidence:.0%}",
            ", ".join(claim.sources),
            claim.text,
        )

    if count:
        console.print(table)
    else:
        console.print("[dim]No claims found.[/dim]")


def render_stats(stats: Dict[str, Any]) -> None:
    score = stats.get("slopScore", 0.0)
    color = "green" if score < 0.2 else "yellow" if score < 0.5 else "red"

    breakdown = ", ".join(f"{k}={v}" for k, v in stats.get("statusBreakdown", {}).items())
    detectors = ", ".join(f"{k}={v}" for k, v in stats.get("detectorBreakdown", {}).items()) or "-"
    content = (
        f"[bold]Slop score:[/bold] [{color}]{score:.0%}[/{color}]\n"
        f"Claims: {stats.get('totalClaims', 0)} total, "
        f"{stats.get('pendingClaims', 0)} pending, {stats.get('expiredClaims', 0)} expired\n"
        f"Analyses: {stats.get('totalAnalyses', 0)} ({breakdown})\n"
        f"Detectors: {detectors}\n"
        f"Buffered file changes: {stats.get('recentFileChanges', 0)}"
    )
    console.print(Panel(content, title="📊 SlopWatch", border_style=color, box=box.ROUNDED))
