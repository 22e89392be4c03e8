"""
Command-line interface for Sysdata Exporter.

Collects one host snapshot and prints it as JSON or POSTs it to a URL.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from sysdata_exporter import __version__
from sysdata_exporter.config import STDOUT_SENTINEL, Config
from sysdata_exporter.core import Exporter
from sysdata_exporter.errors import ExporterError

# Standard output carries only the snapshot document
console = Console(stderr=True)

logger = logging.getLogger("sysdata_exporter")


def setup_logging(level: str, log_file: str | None = None) -> None:
    """Configure logging with rich handler, plus a file handler if requested."""
    handlers: list[logging.Handler] = [RichHandler(console=console, rich_tracebacks=True)]
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )


@click.command()
@click.version_option(version=__version__, prog_name="sysdata-exporter")
@click.option(
    "-url",
    "--url",
    "url",
    metavar="URL",
    default=None,
    help=f"URL to send data to ('{STDOUT_SENTINEL}' prints to stdout, the default)",
)
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--cpu-interval",
    type=click.FloatRange(min=0),
    default=None,
    help="CPU usage sampling window in seconds (default 5)",
)
@click.option(
    "-V",
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
def main(
    url: str | None,
    config: Path | None,
    cpu_interval: float | None,
    verbose: bool,
) -> None:
    """
    Sysdata Exporter - Host telemetry snapshot.

    Collects memory, CPU, disk, network, process and host information and
    prints it as one JSON line, or POSTs it to URL.
    """
    try:
        cfg = Config.load(config) if config else Config.load()
    except ExporterError as e:
        setup_logging("INFO")
        logger.error(f"{e.stage} failed: {e}")
        sys.exit(1)

    if url is not None:
        cfg.url = url
    if cpu_interval is not None:
        cfg.cpu_sample_interval = cpu_interval

    setup_logging("DEBUG" if verbose else cfg.log_level, cfg.log_file)

    exporter = Exporter(cfg)
    try:
        result = exporter.run()
    except ExporterError as e:
        logger.error(f"{e.stage} failed: {e}")
        sys.exit(1)

    if result.delivery is not None:
        _report_response(result.delivery.status, result.delivery.body)


def _report_response(status: str, body: str) -> None:
    """Show the server response to the operator on stderr."""
    for line in (f"Response-Status: {status}", f"Response-Content: {body}"):
        console.print(line, markup=False, highlight=False, soft_wrap=True)


if __name__ == "__main__":
    main()
