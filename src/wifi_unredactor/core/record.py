"""Wi-Fi interface snapshot and record types.

A ``RadioSnapshot`` is what the radio provider reads from the host. A
``WiFiRecord`` is the same snapshot enriched with the access-point name from
the BSSID mapping table, and is the only input the formatters accept.

Both are frozen and fully populated: values the radio could not report are
stored as sentinel strings or zero, never left out.

Example:
    record = build_record(provider.snapshot(), MappingTable.from_file(path))
    print(record.ap_name)
"""

from dataclasses import dataclass, fields
from datetime import datetime

from wifi_unredactor.core.constants import UNKNOWN
from wifi_unredactor.core.mapping import MappingTable


@dataclass(frozen=True)
class ChannelInfo:
    """Channel the interface is tuned to.

    Attributes:
        number: Channel number, 0 when unknown
        band: One of 2.4GHz, 5GHz, 6GHz, unknown
        width: One of 20MHz, 40MHz, 80MHz, 160MHz, unknown
    """

    number: int = 0
    band: str = UNKNOWN
    width: str = UNKNOWN

    def describe(self) -> str:
        """Return a one-line description such as ``36 (5GHz, 80MHz)``."""
        return f"{self.number} ({self.band}, {self.width})"


# Used when the radio does not report a channel at all
NO_CHANNEL = ChannelInfo()


@dataclass(frozen=True)
class RadioSnapshot:
    """Raw state of the associated interface as read from the radio.

    Attributes:
        timestamp: Acquisition time, ISO-8601 with milliseconds and offset
        interface: Interface name (e.g. 'wlan0')
        mac_address: Hardware address of the interface
        ssid: Network name
        bssid: Access point radio address
        phy_mode: 802.11 standard in use
        noise_dbm: Noise floor in dBm
        rssi_dbm: Received signal strength in dBm
        interface_mode: station, hostAP, ibss, none or unknown
        channel_info: Channel number, band and width
        security: Security type of the association
        transmit_power: Transmit power in dBm
        transmit_rate: Transmit rate in Mbps
        mcs_index: Modulation and coding scheme index or 'unknown'
    """

    timestamp: str
    interface: str
    mac_address: str
    ssid: str
    bssid: str
    phy_mode: str
    noise_dbm: int
    rssi_dbm: int
    interface_mode: str
    channel_info: ChannelInfo
    security: str
    transmit_power: int
    transmit_rate: int
    mcs_index: str


@dataclass(frozen=True)
class WiFiRecord(RadioSnapshot):
    """Radio snapshot plus the access-point display name."""

    ap_name: str = ""


def format_timestamp(moment: datetime | None = None) -> str:
    """Format a moment as ``yyyy-MM-ddTHH:mm:ss.SSS+HH:MM`` in local time.

    Naive datetimes are treated as local time. The offset is always numeric,
    UTC is rendered as ``+00:00``.
    """
    moment = moment or datetime.now()
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.isoformat(timespec="milliseconds")


def build_record(snapshot: RadioSnapshot, table: MappingTable | None = None) -> WiFiRecord:
    """Combine a radio snapshot with the mapping table.

    Args:
        snapshot: State read from the radio provider
        table: BSSID mapping table, None for no mapping

    Returns:
        WiFiRecord: Snapshot fields copied verbatim plus ap_name
    """
    values = {f.name: getattr(snapshot, f.name) for f in fields(RadioSnapshot)}
    ap_name = table.lookup(snapshot.bssid) if table is not None else ""
    return WiFiRecord(**values, ap_name=ap_name)
