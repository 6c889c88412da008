"""Field names, vocabularies and defaults."""

from typing import Final

DEFAULT_SHOW_CSV_HEADER: Final = True
DEFAULT_SHOW_UNITS: Final = True

UNKNOWN: Final = "unknown"

# Canonical field order, also the allow-list for field selection
FIELD_NAMES: Final = (
    "timestamp",
    "bssid",
    "ap_name",
    "channel_band",
    "channel_info",
    "channel_number",
    "channel_width",
    "interface",
    "interface_mode",
    "mac_address",
    "mcs_index",
    "noise_dbm",
    "phy_mode",
    "rssi_dbm",
    "security",
    "ssid",
    "transmit_power",
    "transmit_rate",
)

# Sentinels for values the radio could not report
SSID_UNAVAILABLE: Final = "failed to retrieve SSID"
BSSID_UNAVAILABLE: Final = "failed to retrieve BSSID"
MAC_UNAVAILABLE: Final = "failed to retrieve MAC address"

PHY_MODES: Final = (
    "802.11a",
    "802.11b",
    "802.11g",
    "802.11n",
    "802.11ac",
    "802.11ax",
    "none",
    UNKNOWN,
)

INTERFACE_MODES: Final = ("none", "station", "hostAP", "ibss", UNKNOWN)

SECURITY_TYPES: Final = (
    "none",
    "WEP",
    "Dynamic WEP",
    "WPA Personal",
    "WPA Personal Mixed",
    "WPA Enterprise",
    "WPA Enterprise Mixed",
    "WPA2 Personal",
    "WPA2 Enterprise",
    "WPA3 Personal",
    "WPA3 Enterprise",
    "WPA3 Transition",
    "Personal",
    "Enterprise",
    "OWE",
    "OWE Transition",
    UNKNOWN,
)

CHANNEL_BANDS: Final = ("2.4GHz", "5GHz", "6GHz", UNKNOWN)
CHANNEL_WIDTHS: Final = ("20MHz", "40MHz", "80MHz", "160MHz", UNKNOWN)

JSON_ERROR: Final = "error: failed to create JSON"


def normalize(value: str | None, vocabulary: tuple[str, ...]) -> str:
    """Return value if it belongs to vocabulary, otherwise ``"unknown"``."""
    if value in vocabulary:
        return value
    return UNKNOWN
