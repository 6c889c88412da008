"""Command-line interface for wifi-unredactor.

This module provides the ``wifi-unredactor`` command, handling:
- Command-line option parsing
- BSSID mapping file loading
- Radio state acquisition
- Output formatting (JSON or CSV)
- Error reporting

The formatted document is the only thing written to stdout, so the output
can be piped into scripts. Warnings and errors go to stderr.

Example:
    # Run from command line:
    $ wifi-unredactor --csv --fields ssid,bssid,rssi_dbm
    $ wifi-unredactor --bssid-mapping mapping.csv --no-units
"""

from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from wifi_unredactor import __version__
from wifi_unredactor.core.constants import FIELD_NAMES
from wifi_unredactor.core.exceptions import AcquisitionError, MappingReadError
from wifi_unredactor.core.formatter import (
    OutputFormat,
    OutputOptions,
    parse_fields,
    render,
    render_error,
)
from wifi_unredactor.core.mapping import MappingTable
from wifi_unredactor.core.radio import IwRadioProvider, RadioStateProvider
from wifi_unredactor.core.record import build_record
from wifi_unredactor.core.utils.log_config import configure_logging

console = Console(stderr=True)
app = typer.Typer(
    help="Print the current Wi-Fi connection details as JSON or CSV",
    add_completion=False,
)


def get_provider(interface: str | None) -> RadioStateProvider:
    """Return the radio state provider for this host."""
    return IwRadioProvider(interface)


def load_mapping(path: Path | None) -> MappingTable:
    """Load the BSSID mapping, falling back to an empty table."""
    if path is None:
        return MappingTable()
    try:
        return MappingTable.from_file(path)
    except MappingReadError as e:
        logger.debug(f"Mapping load failed: {e}")
        console.print(f"[yellow]Warning: {escape(str(e))}; continuing without AP names")
        return MappingTable()


def version_callback(value: bool) -> None:
    """Show version information."""
    if value:
        typer.echo(f"wifi-unredactor {__version__}")
        raise typer.Exit


@app.command()
def main(
    csv: bool = typer.Option(False, "--csv", help="Output CSV instead of JSON"),
    no_header: bool = typer.Option(
        False, "--no-header", help="Hide the CSV header row (CSV only)"
    ),
    no_units: bool = typer.Option(False, "--no-units", help="Hide units such as dBm and Mbps"),
    fields: str | None = typer.Option(
        None,
        "--fields",
        help="Comma-separated fields to output (see --list-fields)",
    ),
    bssid_mapping: Path | None = typer.Option(
        None,
        "--bssid-mapping",
        help="File mapping BSSIDs to AP names, one 'BSSID,Name' per line",
    ),
    interface: str | None = typer.Option(
        None, "--interface", "-i", help="Wireless interface (default: auto-detect)"
    ),
    list_fields: bool = typer.Option(
        False, "--list-fields", help="List the available fields and exit"
    ),
    debug: bool = typer.Option(
        default=False,
        help="Enable debug logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """Print the state of the associated Wi-Fi interface."""
    configure_logging(debug)

    if list_fields:
        typer.echo("\n".join(FIELD_NAMES))
        return

    if no_header and not csv:
        logger.debug("--no-header has no effect on JSON output")

    selected = parse_fields(fields)
    options = OutputOptions(
        output_format=OutputFormat.CSV if csv else OutputFormat.JSON,
        show_header=not no_header,
        show_units=not no_units,
        fields=tuple(selected) if selected else None,
    )
    table = load_mapping(bssid_mapping)

    try:
        snapshot = get_provider(interface).snapshot()
    except AcquisitionError as e:
        logger.error(f"Failed to read Wi-Fi state: {e}")
        typer.echo(render_error(str(e), options))
        raise typer.Exit(code=1) from e

    record = build_record(snapshot, table)
    logger.debug(f"Read {record.interface} associated to {record.bssid}")
    typer.echo(render(record, options))


if __name__ == "__main__":
    app()
