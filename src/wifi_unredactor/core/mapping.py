"""BSSID to access-point name lookup table.

The mapping file is plain text with one ``BSSID,DisplayName`` pair per line.
Whitespace around either column is ignored, lines with fewer than two columns
are skipped, and a later line for the same BSSID replaces an earlier one.
There is no header, quoting or comment syntax.

Example:
    table = MappingTable.from_file("aps.csv")
    table.lookup("AA:BB:CC:DD:EE:FF")  # "Lobby" or ""
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from loguru import logger

from wifi_unredactor.core.exceptions import MappingReadError

# BSSID and display name; extra columns are ignored
MIN_COLUMNS = 2


@dataclass(frozen=True)
class MappingTable:
    """Read-only BSSID to display name table.

    Attributes:
        entries: BSSID (exact, whitespace-trimmed) to display name
    """

    entries: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_text(cls, text: str) -> "MappingTable":
        """Parse mapping file content into a table."""
        entries: dict[str, str] = {}
        for number, line in enumerate(text.splitlines(), start=1):
            columns = line.split(",")
            if len(columns) < MIN_COLUMNS:
                if line.strip():
                    logger.debug(f"Skipping malformed mapping line {number}: {line!r}")
                continue
            entries[columns[0].strip()] = columns[1].strip()
        return cls(MappingProxyType(entries))

    @classmethod
    def from_file(cls, path: str | Path) -> "MappingTable":
        """Load a mapping table from a file.

        Args:
            path: Location of the mapping file

        Returns:
            MappingTable: The parsed table

        Raises:
            MappingReadError: If the file cannot be opened or decoded
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise MappingReadError(str(path), str(e)) from e

        table = cls.from_text(text)
        logger.debug(f"Loaded {len(table)} BSSID mappings from {path}")
        return table

    def lookup(self, bssid: str) -> str:
        """Return the display name for bssid, or an empty string."""
        return self.entries.get(bssid, "")

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, bssid: object) -> bool:
        return bssid in self.entries
