"""Entry point for maedic: `maedic` console script."""

from __future__ import annotations

import argparse
import logging

import uvicorn
from rich.console import Console
from rich.panel import Panel

from maedic import __version__
from maedic.api.server import create_app
from maedic.config import Settings, get_configuration

console = Console()


def _enabled_checks(settings: Settings) -> str:
    limits = settings.limits
    names = [
        name
        for name, enabled in (
            ("hi_queue", limits.queue_check_enabled),
            ("spool", limits.spool_check_enabled),
            (f"service[{limits.service_name}]", limits.check_local_service),
            ("cpu", limits.cpu_check_enabled),
            ("ram", limits.ram_check_enabled),
        )
        if enabled
    ]
    return ", ".join(names) or "none"


def main() -> None:
    """Load configuration once and start the HTTP server."""
    parser = argparse.ArgumentParser(description="maedic health endpoint")
    parser.add_argument(
        "--environment",
        help="config/<environment>.yaml to merge over base.yaml (default: $APP_ENVIRONMENT or local)",
    )
    args = parser.parse_args()

    settings = get_configuration(args.environment)

    logging.basicConfig(
        level=settings.application.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    console.print(
        Panel.fit(
            f"[bold]maedic {__version__}[/bold]\n"
            f"Bind:     {settings.application.host}:{settings.application.port}\n"
            f"Database: {settings.database.host}:{settings.database.port}/{settings.database.database_name}\n"
            f"Checks:   {_enabled_checks(settings)}\n"
            f"Config endpoint: {'exposed' if settings.application.expose_config else 'hidden'}",
            title="maedic",
            border_style="green",
        )
    )

    uvicorn.run(
        create_app(settings),
        host=settings.application.host,
        port=settings.application.port,
        log_level=settings.application.log_level.lower(),
    )


if __name__ == "__main__":
    main()
