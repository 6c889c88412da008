"""Output formatting for Wi-Fi records.

This module turns a ``WiFiRecord`` into the text printed by the CLI:
- Per-field rendering with optional ``dBm``/``Mbps`` units
- Field selection against the closed field vocabulary
- JSON output with lexicographically sorted keys
- CSV output in caller or canonical field order
- Error payloads in the same output shape

Field names, ordering and unit suffixes are a stable contract: scripts and
dashboards diff this output, so keys are never reordered or renamed.

Example:
    formatter = create_formatter(OutputFormat.CSV, show_header=False)
    print(formatter.format(record, show_units=True, selected_fields=["ssid", "rssi_dbm"]))
"""

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from loguru import logger

from wifi_unredactor.core.constants import (
    DEFAULT_SHOW_CSV_HEADER,
    DEFAULT_SHOW_UNITS,
    FIELD_NAMES,
    JSON_ERROR,
)
from wifi_unredactor.core.exceptions import SerializationFailure
from wifi_unredactor.core.record import WiFiRecord

JSON_INDENT = 2


class OutputFormat(str, Enum):
    """Supported output shapes."""

    JSON = "json"
    CSV = "csv"


def select_fields(fields: Iterable[str] | None) -> list[str] | None:
    """Validate a field selection against the field vocabulary.

    Unknown names and repeats are dropped, caller order is kept.

    Returns:
        list[str] | None: The valid fields, or None meaning "all fields"
    """
    if fields is None:
        return None

    selected: list[str] = []
    for name in fields:
        if name not in FIELD_NAMES:
            logger.warning(f"Ignoring unknown field: {name!r}")
        elif name not in selected:
            selected.append(name)
    return selected or None


def parse_fields(raw: str | None) -> list[str] | None:
    """Split a comma-separated ``--fields`` value and validate it."""
    if raw is None:
        return None
    return select_fields(part.strip() for part in raw.split(",") if part.strip())


def _with_unit(value: int, unit: str, show_units: bool) -> str:
    return f"{value}{unit}" if show_units else str(value)


def render_fields(record: WiFiRecord, show_units: bool = DEFAULT_SHOW_UNITS) -> dict[str, str]:
    """Render every field of a record to its display string.

    Args:
        record: Record to render
        show_units: Append dBm/Mbps to the numeric fields

    Returns:
        dict[str, str]: Field name to display string, in canonical order
    """
    channel = record.channel_info
    return {
        "timestamp": record.timestamp,
        "bssid": record.bssid,
        "ap_name": record.ap_name,
        "channel_band": channel.band,
        "channel_info": channel.describe(),
        "channel_number": str(channel.number),
        "channel_width": channel.width,
        "interface": record.interface,
        "interface_mode": record.interface_mode,
        "mac_address": record.mac_address,
        "mcs_index": record.mcs_index,
        "noise_dbm": _with_unit(record.noise_dbm, "dBm", show_units),
        "phy_mode": record.phy_mode,
        "rssi_dbm": _with_unit(record.rssi_dbm, "dBm", show_units),
        "security": record.security,
        "ssid": record.ssid,
        "transmit_power": _with_unit(record.transmit_power, "dBm", show_units),
        "transmit_rate": _with_unit(record.transmit_rate, "Mbps", show_units),
    }


class OutputFormatter(Protocol):
    """Common interface of the JSON and CSV formatters."""

    def format(
        self,
        record: WiFiRecord,
        show_units: bool = DEFAULT_SHOW_UNITS,
        selected_fields: Sequence[str] | None = None,
    ) -> str: ...

    def format_error(self, message: str) -> str: ...


class JSONFormatter:
    """Pretty-printed JSON object with sorted keys and string values."""

    def _encode(self, data: dict[str, str]) -> str:
        try:
            return json.dumps(data, indent=JSON_INDENT, sort_keys=True, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationFailure(str(e)) from e

    def format(
        self,
        record: WiFiRecord,
        show_units: bool = DEFAULT_SHOW_UNITS,
        selected_fields: Sequence[str] | None = None,
    ) -> str:
        """Format a record as a JSON document.

        Never raises: an encoding failure yields ``error: failed to create JSON``.
        """
        rendered = render_fields(record, show_units)
        selected = select_fields(selected_fields)
        if selected is not None:
            rendered = {key: value for key, value in rendered.items() if key in selected}

        try:
            return self._encode(rendered)
        except SerializationFailure as e:
            logger.error(f"JSON serialisation failed: {e}")
            return JSON_ERROR

    def format_error(self, message: str) -> str:
        """Format an error message as a JSON document."""
        try:
            return self._encode({"error": message})
        except SerializationFailure:
            return JSON_ERROR


class CSVFormatter:
    """Comma-separated output with an optional header row."""

    def __init__(self, show_header: bool = DEFAULT_SHOW_CSV_HEADER) -> None:
        """Initialize the CSV formatter.

        Args:
            show_header: Emit the field names as the first line
        """
        self.show_header = show_header

    @staticmethod
    def _quote(value: str) -> str:
        # Embedded double quotes are left as they are
        return f'"{value}"' if "," in value else value

    def _rows(self, keys: Sequence[str], values: Sequence[str]) -> str:
        data = ",".join(self._quote(value) for value in values)
        if self.show_header:
            return ",".join(keys) + "\n" + data
        return data

    def format(
        self,
        record: WiFiRecord,
        show_units: bool = DEFAULT_SHOW_UNITS,
        selected_fields: Sequence[str] | None = None,
    ) -> str:
        """Format a record as one CSV data line, optionally under a header.

        Returns ``header\\ndata`` or ``data`` without a trailing newline.
        """
        keys = select_fields(selected_fields) or list(FIELD_NAMES)
        rendered = render_fields(record, show_units)
        return self._rows(keys, [rendered[key] for key in keys])

    def format_error(self, message: str) -> str:
        """Format an error message as a single-column CSV document."""
        return self._rows(["error"], [message])


def create_formatter(
    output_format: OutputFormat = OutputFormat.JSON,
    show_header: bool = DEFAULT_SHOW_CSV_HEADER,
) -> OutputFormatter:
    """Return the formatter for an output format."""
    if output_format is OutputFormat.CSV:
        return CSVFormatter(show_header=show_header)
    return JSONFormatter()


@dataclass(frozen=True)
class OutputOptions:
    """Formatting options collected from the command line.

    Attributes:
        output_format: JSON or CSV
        show_header: Emit the CSV header row (CSV only)
        show_units: Append dBm/Mbps to numeric fields
        fields: Validated field selection, None for all fields
    """

    output_format: OutputFormat = OutputFormat.JSON
    show_header: bool = DEFAULT_SHOW_CSV_HEADER
    show_units: bool = DEFAULT_SHOW_UNITS
    fields: tuple[str, ...] | None = None

    @property
    def formatter(self) -> OutputFormatter:
        return create_formatter(self.output_format, self.show_header)


def render(record: WiFiRecord, options: OutputOptions) -> str:
    """Format a record according to the command-line options."""
    return options.formatter.format(record, options.show_units, options.fields)


def render_error(message: str, options: OutputOptions) -> str:
    """Format an error payload according to the command-line options."""
    return options.formatter.format_error(message)
