"""Radio state acquisition on Linux.

This module reads the state of the associated wireless interface:
- Wireless interface detection (psutil and sysfs)
- Association details from ``iw dev <if> link``
- Channel, mode and transmit power from ``iw dev <if> info``
- Noise floor from ``/proc/net/wireless``
- Security type from ``wpa_cli status``

Raw tool output is mapped onto the closed vocabularies of the record
(PHY mode, band, width, interface mode, security). Anything the tools do not
report becomes a sentinel string or zero. Only a missing interface, a missing
``iw`` binary or a permission failure raise.

Example:
    provider = IwRadioProvider("wlan0")
    snapshot = provider.snapshot()
    print(snapshot.ssid, snapshot.rssi_dbm)
"""

import re
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import psutil
from loguru import logger

from wifi_unredactor.core.constants import (
    BSSID_UNAVAILABLE,
    CHANNEL_BANDS,
    CHANNEL_WIDTHS,
    INTERFACE_MODES,
    MAC_UNAVAILABLE,
    PHY_MODES,
    SECURITY_TYPES,
    SSID_UNAVAILABLE,
    UNKNOWN,
    normalize,
)
from wifi_unredactor.core.exceptions import (
    InterfaceUnavailable,
    PermissionDenied,
    RadioToolMissing,
)
from wifi_unredactor.core.record import NO_CHANNEL, ChannelInfo, RadioSnapshot, format_timestamp

Runner = Callable[..., subprocess.CompletedProcess]

COMMAND_TIMEOUT = 2.0  # seconds
SYS_CLASS_NET = Path("/sys/class/net")
PROC_NET_WIRELESS = Path("/proc/net/wireless")

# Reported by the kernel when the driver has no noise measurement
NOISE_NOT_AVAILABLE = -256

# Highest 802.11b rate in Mbps
MAX_DSSS_RATE = 11

INTERFACE_TYPES = {
    "managed": "station",
    "AP": "hostAP",
    "AP/VLAN": "hostAP",
    "IBSS": "ibss",
}

KEY_MGMT_SECURITY = {
    "WPA-PSK": "WPA Personal",
    "WPA2-PSK": "WPA2 Personal",
    "FT-PSK": "WPA2 Personal",
    "WPA2-PSK-SHA256": "WPA2 Personal",
    "SAE": "WPA3 Personal",
    "FT-SAE": "WPA3 Personal",
    "SAE-EXT-KEY": "WPA3 Personal",
    "WPA/IEEE 802.1X/EAP": "WPA Enterprise",
    "WPA2/IEEE 802.1X/EAP": "WPA2 Enterprise",
    "FT-EAP": "WPA2 Enterprise",
    "WPA2-EAP-SHA256": "WPA2 Enterprise",
    "WPA2-EAP-SUITE-B": "WPA3 Enterprise",
    "WPA2-EAP-SUITE-B-192": "WPA3 Enterprise",
    "IEEE 802.1X (no WPA)": "Dynamic WEP",
    "OWE": "OWE",
}

MCS_FAMILY_PHY_MODES = {
    "HE": "802.11ax",
    "VHT": "802.11ac",
    "": "802.11n",
}

_CONNECTED_RE = re.compile(r"Connected to ([0-9a-fA-F:]{17})")
_SSID_RE = re.compile(r"^[ \t]*SSID:[ \t]?(.*)$", re.MULTILINE)
_FREQ_RE = re.compile(r"^\s*freq:\s*(\d+)", re.MULTILINE)
_SIGNAL_RE = re.compile(r"^\s*signal:\s*(-?\d+)", re.MULTILINE)
_TX_BITRATE_RE = re.compile(r"^\s*tx bitrate:\s*([\d.]+)\s*MBit/s(.*)$", re.MULTILINE)
_MCS_RE = re.compile(r"\b(?:(EHT|HE|VHT)-)?MCS (\d+)")
_TYPE_RE = re.compile(r"^\s*type\s+(\S+)", re.MULTILINE)
_ADDR_RE = re.compile(r"^\s*addr\s+([0-9a-fA-F:]{17})", re.MULTILINE)
_CHANNEL_RE = re.compile(
    r"^\s*channel\s+(\d+)\s+\((\d+)(?:\.\d+)?\s*MHz\)(?:,\s*width:\s*([^,]+))?",
    re.MULTILINE,
)
_TXPOWER_RE = re.compile(r"^\s*txpower\s+(-?[\d.]+)\s*dBm", re.MULTILINE)


@dataclass
class WirelessInterface:
    """Wireless interface candidate.

    Attributes:
        name: Interface name (e.g. 'wlan0', 'wlp3s0')
        mac: Hardware address, None if psutil does not report one
        is_up: Boolean indicating if the interface is up
    """

    name: str
    mac: str | None
    is_up: bool


@dataclass
class LinkState:
    """Association details parsed from ``iw dev <if> link``."""

    connected: bool = False
    bssid: str | None = None
    ssid: str | None = None
    frequency: int | None = None
    signal: int = 0
    tx_rate: int = 0
    mcs_family: str | None = None
    mcs_index: str = UNKNOWN


@dataclass
class InterfaceState:
    """Interface details parsed from ``iw dev <if> info``."""

    iftype: str | None = None
    mac: str | None = None
    channel: int | None = None
    frequency: int | None = None
    width: str | None = None
    txpower: int = 0


class RadioStateProvider(Protocol):
    """Anything that can produce a snapshot of the associated interface."""

    def snapshot(self) -> RadioSnapshot: ...


def band_for_frequency(frequency: int | None) -> str:
    """Map a centre frequency in MHz to its band name."""
    if frequency is None:
        return UNKNOWN
    if 2400 <= frequency <= 2500:
        band = "2.4GHz"
    elif 4900 <= frequency < 5925:
        band = "5GHz"
    elif 5925 <= frequency <= 7125:
        band = "6GHz"
    else:
        band = None
    return normalize(band, CHANNEL_BANDS)


def width_for_description(description: str | None) -> str:
    """Map an iw width such as ``80 MHz`` or ``20 MHz (no HT)`` to a width name."""
    if not description:
        return UNKNOWN
    match = re.match(r"\s*(\d+)\s*MHz", description)
    if not match or "+" in description:
        return UNKNOWN
    return normalize(f"{match.group(1)}MHz", CHANNEL_WIDTHS)


def interface_mode_for_type(iftype: str | None) -> str:
    """Map an iw interface type onto the interface mode vocabulary."""
    return normalize(INTERFACE_TYPES.get(iftype or ""), INTERFACE_MODES)


def phy_mode_for(link: LinkState, band: str) -> str:
    """Infer the 802.11 standard from the MCS family and band."""
    if not link.connected:
        return "none"
    if link.mcs_family is not None:
        return normalize(MCS_FAMILY_PHY_MODES.get(link.mcs_family), PHY_MODES)
    if band == "5GHz":
        return "802.11a"
    if band == "2.4GHz":
        return "802.11b" if 0 < link.tx_rate <= MAX_DSSS_RATE else "802.11g"
    return UNKNOWN


def parse_link(output: str) -> LinkState:
    """Parse the output of ``iw dev <if> link``."""
    connected = _CONNECTED_RE.search(output)
    if not connected:
        return LinkState()

    state = LinkState(connected=True, bssid=connected.group(1).lower())
    if ssid := _SSID_RE.search(output):
        state.ssid = ssid.group(1).rstrip()
    if freq := _FREQ_RE.search(output):
        state.frequency = int(freq.group(1))
    if signal := _SIGNAL_RE.search(output):
        state.signal = int(signal.group(1))
    if bitrate := _TX_BITRATE_RE.search(output):
        state.tx_rate = int(float(bitrate.group(1)))
        if mcs := _MCS_RE.search(bitrate.group(2)):
            state.mcs_family = mcs.group(1) or ""
            state.mcs_index = mcs.group(2)
    return state


def parse_info(output: str) -> InterfaceState:
    """Parse the output of ``iw dev <if> info``."""
    state = InterfaceState()
    if iftype := _TYPE_RE.search(output):
        state.iftype = iftype.group(1)
    if addr := _ADDR_RE.search(output):
        state.mac = addr.group(1).lower()
    if channel := _CHANNEL_RE.search(output):
        state.channel = int(channel.group(1))
        state.frequency = int(channel.group(2))
        state.width = channel.group(3)
    if txpower := _TXPOWER_RE.search(output):
        state.txpower = int(float(txpower.group(1)))
    return state


def parse_noise(proc_wireless: str, interface: str) -> int:
    """Read the noise column for an interface from ``/proc/net/wireless``."""
    for line in proc_wireless.splitlines():
        name, sep, rest = line.partition(":")
        if not sep or name.strip() != interface:
            continue
        columns = rest.split()
        # status, link, level, noise
        if len(columns) < 4:
            return 0
        try:
            noise = int(float(columns[3].rstrip(".")))
        except ValueError:
            return 0
        return 0 if noise == NOISE_NOT_AVAILABLE else noise
    return 0


def parse_security(wpa_status: str) -> str:
    """Map ``wpa_cli status`` output onto the security vocabulary."""
    status = dict(
        line.split("=", 1) for line in wpa_status.splitlines() if "=" in line
    )
    if status.get("wpa_state") != "COMPLETED":
        return UNKNOWN

    key_mgmt = status.get("key_mgmt", "")
    if key_mgmt == "NONE":
        return "WEP" if status.get("pairwise_cipher", "").startswith("WEP") else "none"
    if "PSK" in key_mgmt and "SAE" in key_mgmt:
        return "WPA3 Transition"
    return normalize(KEY_MGMT_SECURITY.get(key_mgmt), SECURITY_TYPES)


def find_wireless_interfaces(sys_class_net: Path = SYS_CLASS_NET) -> list[WirelessInterface]:
    """List wireless interfaces, interfaces that are up first."""
    stats = psutil.net_if_stats()
    interfaces = []
    for name, addrs in psutil.net_if_addrs().items():
        device = sys_class_net / name
        if not ((device / "wireless").exists() or (device / "phy80211").exists()):
            continue

        mac = next((addr.address for addr in addrs if addr.family == psutil.AF_LINK), None)
        iface_stats = stats.get(name)
        interfaces.append(
            WirelessInterface(
                name=name,
                mac=mac.lower() if mac else None,
                is_up=bool(iface_stats and iface_stats.isup),
            )
        )

    return sorted(interfaces, key=lambda iface: not iface.is_up)


class IwRadioProvider:
    """Radio state provider backed by ``iw`` and friends."""

    def __init__(
        self,
        interface: str | None = None,
        runner: Runner = subprocess.run,
        sys_class_net: Path = SYS_CLASS_NET,
        proc_wireless: Path = PROC_NET_WIRELESS,
    ) -> None:
        """Initialize the provider.

        Args:
            interface: Interface to read, auto-detected when None
            runner: ``subprocess.run`` compatible callable
            sys_class_net: sysfs network class directory
            proc_wireless: Path of the kernel wireless statistics file
        """
        self.interface = interface
        self._runner = runner
        self._sys_class_net = sys_class_net
        self._proc_wireless = proc_wireless

    def _run(self, command: list[str]) -> subprocess.CompletedProcess:
        logger.debug(f"Running {' '.join(command)}")
        return self._runner(
            command,
            capture_output=True,
            text=True,
            check=False,
            timeout=COMMAND_TIMEOUT,
        )

    def _iw(self, interface: str, action: str) -> str:
        """Run ``iw dev <interface> <action>`` and return its stdout."""
        try:
            result = self._run(["iw", "dev", interface, action])
        except FileNotFoundError as e:
            raise RadioToolMissing("iw is not installed") from e
        except subprocess.TimeoutExpired:
            logger.warning(f"iw dev {interface} {action} timed out")
            return ""

        if result.returncode != 0:
            stderr = result.stderr or ""
            if "Operation not permitted" in stderr or "Permission denied" in stderr:
                raise PermissionDenied(f"not permitted to query {interface}")
            if "No such device" in stderr:
                raise InterfaceUnavailable(f"interface {interface} not available")
            logger.debug(f"iw dev {interface} {action} failed: {stderr.strip()}")
            return ""
        return result.stdout

    def _security(self, interface: str) -> str:
        try:
            result = self._run(["wpa_cli", "-i", interface, "status"])
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug(f"wpa_cli unavailable: {e}")
            return UNKNOWN
        if result.returncode != 0:
            return UNKNOWN
        return parse_security(result.stdout)

    def _noise(self, interface: str) -> int:
        try:
            return parse_noise(self._proc_wireless.read_text(), interface)
        except OSError as e:
            logger.debug(f"Cannot read {self._proc_wireless}: {e}")
            return 0

    def _resolve_interface(self) -> WirelessInterface:
        interfaces = find_wireless_interfaces(self._sys_class_net)
        if self.interface is None:
            if not interfaces:
                raise InterfaceUnavailable("no wireless interface available")
            logger.debug(f"Using wireless interface {interfaces[0].name}")
            return interfaces[0]

        for iface in interfaces:
            if iface.name == self.interface:
                return iface
        raise InterfaceUnavailable(f"interface {self.interface} not available")

    def snapshot(self) -> RadioSnapshot:
        """Read the current state of the wireless interface.

        Raises:
            InterfaceUnavailable: No (matching) wireless interface exists
            RadioToolMissing: iw is not installed
            PermissionDenied: iw was refused access to the interface
        """
        timestamp = format_timestamp()
        iface = self._resolve_interface()
        link = parse_link(self._iw(iface.name, "link"))
        info = parse_info(self._iw(iface.name, "info"))

        if info.channel is not None:
            channel = ChannelInfo(
                number=info.channel,
                band=band_for_frequency(info.frequency),
                width=width_for_description(info.width),
            )
        else:
            channel = NO_CHANNEL

        band = band_for_frequency(link.frequency) if link.frequency else channel.band
        security = self._security(iface.name) if link.connected else UNKNOWN

        return RadioSnapshot(
            timestamp=timestamp,
            interface=iface.name,
            mac_address=iface.mac or info.mac or MAC_UNAVAILABLE,
            ssid=link.ssid if link.ssid is not None else SSID_UNAVAILABLE,
            bssid=link.bssid or BSSID_UNAVAILABLE,
            phy_mode=phy_mode_for(link, band),
            noise_dbm=self._noise(iface.name),
            rssi_dbm=link.signal,
            interface_mode=interface_mode_for_type(info.iftype),
            channel_info=channel,
            security=security,
            transmit_power=info.txpower,
            transmit_rate=link.tx_rate,
            mcs_index=link.mcs_index,
        )
