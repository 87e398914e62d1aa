"""Entry point for rxprobe — serve the health endpoints or run checks once."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from rxprobe.api.server import build_dispatcher, resolve_checks_file
from rxprobe.config import settings
from rxprobe.errors import ConfigurationError
from rxprobe.health.aggregate import HealthReport, Status
from rxprobe.registry import CheckRegistry

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

STATUS_STYLES = {
    Status.OK: "bold green",
    Status.DEGRADED: "bold yellow",
    Status.ERROR: "bold red",
    Status.AUTH_FAILED: "bold red",
}


def run_server() -> None:
    """Start the API server."""
    console.print(Panel("Starting rxprobe health server", style="bold green"))
    uvicorn.run(
        "rxprobe.api.server:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def render_table(endpoint: str, report: HealthReport) -> Table:
    table = Table(title=f"{endpoint} — {report.status.value}", title_style=STATUS_STYLES[report.status])
    table.add_column("Check")
    table.add_column("Alive")
    table.add_column("Required")
    table.add_column("Duration (ms)", justify="right")
    table.add_column("Message", style="dim")
    for c in report.components:
        table.add_row(
            c.name,
            "[green]yes[/green]" if c.alive else "[red]no[/red]",
            "yes" if c.required else "no",
            f"{c.duration:.2f}",
            c.message,
        )
    return table


def run_once(endpoint: str) -> int:
    """Evaluate one endpoint locally and print the result. Returns the exit code."""
    check_sets = CheckRegistry(path=resolve_checks_file(settings)).load()
    dispatcher = build_dispatcher(settings, check_sets)

    # Local run: no request, so the deep endpoint skips authorization
    report = dispatcher.evaluate(endpoint)
    console.print(render_table(endpoint, report))
    return 1 if report.status is Status.ERROR else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="rxprobe health endpoints")
    sub = parser.add_subparsers(dest="command")

    # Server mode
    sub.add_parser("serve", help="Start the API server")

    # One-shot mode
    check_parser = sub.add_parser("check", help="Run an endpoint's checks once")
    check_parser.add_argument(
        "endpoint", choices=["liveness", "readiness", "deep"], help="Which check set to run",
    )

    args = parser.parse_args()

    try:
        if args.command == "serve":
            run_server()
        elif args.command == "check":
            sys.exit(run_once(args.endpoint))
        else:
            parser.print_help()
            sys.exit(1)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
