import subprocess
from pathlib import Path
from types import SimpleNamespace

import psutil
import pytest

from wifi_unredactor.core import radio
from wifi_unredactor.core.constants import BSSID_UNAVAILABLE, MAC_UNAVAILABLE, SSID_UNAVAILABLE
from wifi_unredactor.core.exceptions import (
    AcquisitionError,
    InterfaceUnavailable,
    PermissionDenied,
    RadioToolMissing,
)
from wifi_unredactor.core.radio import (
    IwRadioProvider,
    LinkState,
    band_for_frequency,
    find_wireless_interfaces,
    interface_mode_for_type,
    parse_info,
    parse_link,
    parse_noise,
    parse_security,
    phy_mode_for,
    width_for_description,
)
from wifi_unredactor.core.record import NO_CHANNEL, ChannelInfo

IW_LINK_VHT = """\
Connected to aa:bb:cc:dd:ee:ff (on wlan0)
\tSSID: HomeNet
\tfreq: 5180
\tRX: 123456 bytes (789 packets)
\tTX: 65432 bytes (321 packets)
\tsignal: -65 dBm
\trx bitrate: 780.0 MBit/s VHT-MCS 8 80MHz short GI VHT-NSS 2
\ttx bitrate: 866.7 MBit/s VHT-MCS 9 80MHz short GI VHT-NSS 2

\tbss flags:\tshort-slot-time
\tdtim period:\t1
\tbeacon int:\t100
"""

IW_LINK_HE = """\
Connected to 11:22:33:44:55:66 (on wlp3s0)
\tSSID: Office
\tfreq: 5955.0
\tsignal: -48 dBm
\ttx bitrate: 1200.9 MBit/s 80MHz HE-MCS 11 HE-NSS 2 HE-GI 0 HE-DCM 0
"""

IW_LINK_LEGACY = """\
Connected to 11:22:33:44:55:66 (on wlan0)
\tSSID: Cafe
\tfreq: 2412
\tsignal: -70 dBm
\ttx bitrate: 54.0 MBit/s
"""

IW_INFO = """\
Interface wlan0
\tifindex 3
\twdev 0x1
\taddr 00:11:22:33:44:55
\tssid HomeNet
\ttype managed
\twiphy 0
\tchannel 36 (5180 MHz), width: 80 MHz, center1: 5210 MHz
\ttxpower 22.00 dBm
"""

PROC_WIRELESS = """\
Inter-| sta-|   Quality        |   Discarded packets               | Missed | WE
 face | tus | link level noise |  nwid  crypt   frag  retry   misc | beacon | 22
 wlan0: 0000   45.  -65.  -92.        0      0      0      0      0        0
  eth9: 0000   10.  -80.  -256        0      0      0      0      0        0
"""

WPA_STATUS = """\
bssid=aa:bb:cc:dd:ee:ff
freq=5180
ssid=HomeNet
id=0
mode=station
pairwise_cipher=CCMP
group_cipher=CCMP
key_mgmt=WPA2-PSK
wpa_state=COMPLETED
"""


def test_parse_link_vht():
    link = parse_link(IW_LINK_VHT)

    assert link.connected
    assert link.bssid == "aa:bb:cc:dd:ee:ff"
    assert link.ssid == "HomeNet"
    assert link.frequency == 5180
    assert link.signal == -65
    assert link.tx_rate == 866
    assert link.mcs_family == "VHT"
    assert link.mcs_index == "9"


def test_parse_link_he():
    link = parse_link(IW_LINK_HE)

    assert link.frequency == 5955
    assert link.tx_rate == 1200
    assert link.mcs_family == "HE"
    assert link.mcs_index == "11"


def test_parse_link_legacy_rate_has_no_mcs():
    link = parse_link(IW_LINK_LEGACY)

    assert link.mcs_family is None
    assert link.mcs_index == "unknown"
    assert link.tx_rate == 54


def test_parse_link_not_connected():
    assert parse_link("Not connected.\n") == LinkState()


def test_parse_info():
    info = parse_info(IW_INFO)

    assert info.iftype == "managed"
    assert info.mac == "00:11:22:33:44:55"
    assert info.channel == 36
    assert info.frequency == 5180
    assert width_for_description(info.width) == "80MHz"
    assert info.txpower == 22


def test_parse_info_without_channel():
    info = parse_info("Interface wlan0\n\ttype managed\n\ttxpower 3.00 dBm\n")
    assert info.channel is None
    assert info.txpower == 3


def test_parse_noise():
    assert parse_noise(PROC_WIRELESS, "wlan0") == -92
    assert parse_noise(PROC_WIRELESS, "eth9") == 0
    assert parse_noise(PROC_WIRELESS, "wlan1") == 0
    assert parse_noise("", "wlan0") == 0


@pytest.mark.parametrize(
    ("key_mgmt", "cipher", "expected"),
    [
        ("WPA2-PSK", "CCMP", "WPA2 Personal"),
        ("WPA-PSK", "TKIP", "WPA Personal"),
        ("SAE", "CCMP", "WPA3 Personal"),
        ("WPA2/IEEE 802.1X/EAP", "CCMP", "WPA2 Enterprise"),
        ("WPA2-EAP-SUITE-B-192", "GCMP-256", "WPA3 Enterprise"),
        ("OWE", "CCMP", "OWE"),
        ("NONE", "NONE", "none"),
        ("NONE", "WEP-104", "WEP"),
        ("WPA2-PSK SAE", "CCMP", "WPA3 Transition"),
        ("SOMETHING-NEW", "CCMP", "unknown"),
    ],
)
def test_parse_security(key_mgmt, cipher, expected):
    status = f"pairwise_cipher={cipher}\nkey_mgmt={key_mgmt}\nwpa_state=COMPLETED\n"
    assert parse_security(status) == expected


def test_parse_security_not_completed():
    assert parse_security("key_mgmt=WPA2-PSK\nwpa_state=SCANNING\n") == "unknown"


@pytest.mark.parametrize(
    ("frequency", "band"),
    [
        (2412, "2.4GHz"),
        (2484, "2.4GHz"),
        (5180, "5GHz"),
        (5885, "5GHz"),
        (5955, "6GHz"),
        (60480, "unknown"),
        (None, "unknown"),
    ],
)
def test_band_for_frequency(frequency, band):
    assert band_for_frequency(frequency) == band


@pytest.mark.parametrize(
    ("description", "width"),
    [
        ("20 MHz (no HT)", "20MHz"),
        ("40 MHz", "40MHz"),
        ("80 MHz", "80MHz"),
        ("160 MHz", "160MHz"),
        ("80+80 MHz", "unknown"),
        ("320 MHz", "unknown"),
        (None, "unknown"),
    ],
)
def test_width_for_description(description, width):
    assert width_for_description(description) == width


def test_interface_mode_for_type():
    assert interface_mode_for_type("managed") == "station"
    assert interface_mode_for_type("AP") == "hostAP"
    assert interface_mode_for_type("IBSS") == "ibss"
    assert interface_mode_for_type("monitor") == "unknown"
    assert interface_mode_for_type(None) == "unknown"


def test_phy_mode_for():
    assert phy_mode_for(LinkState(), "5GHz") == "none"
    assert phy_mode_for(parse_link(IW_LINK_VHT), "5GHz") == "802.11ac"
    assert phy_mode_for(parse_link(IW_LINK_HE), "6GHz") == "802.11ax"
    assert phy_mode_for(LinkState(connected=True, mcs_family=""), "2.4GHz") == "802.11n"
    assert phy_mode_for(LinkState(connected=True, mcs_family="EHT"), "6GHz") == "unknown"
    assert phy_mode_for(parse_link(IW_LINK_LEGACY), "2.4GHz") == "802.11g"
    assert phy_mode_for(LinkState(connected=True, tx_rate=11), "2.4GHz") == "802.11b"
    assert phy_mode_for(LinkState(connected=True, tx_rate=54), "5GHz") == "802.11a"


@pytest.fixture
def sys_class_net(tmp_path: Path) -> Path:
    (tmp_path / "wlan0" / "wireless").mkdir(parents=True)
    (tmp_path / "eth0").mkdir()
    return tmp_path


@pytest.fixture
def fake_psutil(monkeypatch):
    addrs = {
        "lo": [SimpleNamespace(family=psutil.AF_LINK, address="00:00:00:00:00:00")],
        "eth0": [SimpleNamespace(family=psutil.AF_LINK, address="AA:AA:AA:AA:AA:AA")],
        "wlan0": [SimpleNamespace(family=psutil.AF_LINK, address="00:11:22:33:44:55")],
    }
    stats = {name: SimpleNamespace(isup=True) for name in addrs}
    monkeypatch.setattr(radio.psutil, "net_if_addrs", lambda: addrs)
    monkeypatch.setattr(radio.psutil, "net_if_stats", lambda: stats)
    return addrs


def make_runner(outputs: dict[str, subprocess.CompletedProcess]):
    """Fake ``subprocess.run`` keyed by the joined command line."""
    calls = []

    def runner(command, **kwargs):
        calls.append(command)
        key = " ".join(command)
        if key not in outputs:
            raise FileNotFoundError(command[0])
        return outputs[key]

    runner.calls = calls
    return runner


def completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr=stderr)


def test_find_wireless_interfaces(sys_class_net, fake_psutil):
    interfaces = find_wireless_interfaces(sys_class_net)

    assert [iface.name for iface in interfaces] == ["wlan0"]
    assert interfaces[0].mac == "00:11:22:33:44:55"
    assert interfaces[0].is_up


def test_find_wireless_interfaces_prefers_up(tmp_path, monkeypatch):
    for name in ("wlan0", "wlan1"):
        (tmp_path / name / "phy80211").mkdir(parents=True)
    monkeypatch.setattr(radio.psutil, "net_if_addrs", lambda: {"wlan0": [], "wlan1": []})
    monkeypatch.setattr(
        radio.psutil,
        "net_if_stats",
        lambda: {"wlan0": SimpleNamespace(isup=False), "wlan1": SimpleNamespace(isup=True)},
    )

    interfaces = find_wireless_interfaces(tmp_path)
    assert [iface.name for iface in interfaces] == ["wlan1", "wlan0"]
    assert interfaces[0].mac is None


def test_snapshot(sys_class_net, fake_psutil, tmp_path):
    proc_wireless = tmp_path / "wireless"
    proc_wireless.write_text(PROC_WIRELESS)
    runner = make_runner(
        {
            "iw dev wlan0 link": completed(IW_LINK_VHT),
            "iw dev wlan0 info": completed(IW_INFO),
            "wpa_cli -i wlan0 status": completed(WPA_STATUS),
        }
    )

    snapshot = IwRadioProvider(
        runner=runner, sys_class_net=sys_class_net, proc_wireless=proc_wireless
    ).snapshot()

    assert snapshot.interface == "wlan0"
    assert snapshot.mac_address == "00:11:22:33:44:55"
    assert snapshot.ssid == "HomeNet"
    assert snapshot.bssid == "aa:bb:cc:dd:ee:ff"
    assert snapshot.phy_mode == "802.11ac"
    assert snapshot.noise_dbm == -92
    assert snapshot.rssi_dbm == -65
    assert snapshot.interface_mode == "station"
    assert snapshot.channel_info == ChannelInfo(number=36, band="5GHz", width="80MHz")
    assert snapshot.security == "WPA2 Personal"
    assert snapshot.transmit_power == 22
    assert snapshot.transmit_rate == 866
    assert snapshot.mcs_index == "9"
    assert ["iw", "dev", "wlan0", "link"] in runner.calls


def test_snapshot_not_connected(sys_class_net, fake_psutil, tmp_path):
    runner = make_runner(
        {
            "iw dev wlan0 link": completed("Not connected.\n"),
            "iw dev wlan0 info": completed("Interface wlan0\n\ttype managed\n"),
        }
    )

    snapshot = IwRadioProvider(
        "wlan0", runner=runner, sys_class_net=sys_class_net, proc_wireless=tmp_path / "missing"
    ).snapshot()

    assert snapshot.ssid == SSID_UNAVAILABLE
    assert snapshot.bssid == BSSID_UNAVAILABLE
    assert snapshot.phy_mode == "none"
    assert snapshot.channel_info == NO_CHANNEL
    assert snapshot.security == "unknown"
    assert (snapshot.rssi_dbm, snapshot.noise_dbm, snapshot.transmit_rate) == (0, 0, 0)
    assert snapshot.mcs_index == "unknown"
    # wpa_cli is only consulted while associated
    assert ["wpa_cli", "-i", "wlan0", "status"] not in runner.calls


def test_snapshot_mac_from_iw_info(tmp_path, monkeypatch):
    (tmp_path / "wlan0" / "wireless").mkdir(parents=True)
    monkeypatch.setattr(radio.psutil, "net_if_addrs", lambda: {"wlan0": []})
    monkeypatch.setattr(radio.psutil, "net_if_stats", lambda: {})
    runner = make_runner(
        {
            "iw dev wlan0 link": completed("Not connected.\n"),
            "iw dev wlan0 info": completed(IW_INFO),
        }
    )

    missing = tmp_path / "missing"
    snapshot = IwRadioProvider(runner=runner, sys_class_net=tmp_path, proc_wireless=missing).snapshot()
    assert snapshot.mac_address == "00:11:22:33:44:55"

    runner = make_runner({"iw dev wlan0 link": completed(""), "iw dev wlan0 info": completed("")})
    snapshot = IwRadioProvider(runner=runner, sys_class_net=tmp_path, proc_wireless=missing).snapshot()
    assert snapshot.mac_address == MAC_UNAVAILABLE
    assert snapshot.interface_mode == "unknown"


def test_no_wireless_interface(tmp_path, fake_psutil):
    with pytest.raises(InterfaceUnavailable):
        IwRadioProvider(runner=make_runner({}), sys_class_net=tmp_path).snapshot()


def test_named_interface_missing(sys_class_net, fake_psutil):
    with pytest.raises(InterfaceUnavailable, match="wlan7"):
        IwRadioProvider("wlan7", runner=make_runner({}), sys_class_net=sys_class_net).snapshot()


def test_named_interface_not_wireless(sys_class_net, fake_psutil):
    with pytest.raises(InterfaceUnavailable):
        IwRadioProvider("eth0", runner=make_runner({}), sys_class_net=sys_class_net).snapshot()


def test_iw_missing(sys_class_net, fake_psutil):
    with pytest.raises(RadioToolMissing) as excinfo:
        IwRadioProvider(runner=make_runner({}), sys_class_net=sys_class_net).snapshot()
    assert isinstance(excinfo.value, AcquisitionError)


def test_iw_permission_denied(sys_class_net, fake_psutil):
    runner = make_runner(
        {"iw dev wlan0 link": completed(returncode=255, stderr="command failed: Operation not permitted (-1)")}
    )
    with pytest.raises(PermissionDenied):
        IwRadioProvider(runner=runner, sys_class_net=sys_class_net).snapshot()


def test_iw_no_such_device(sys_class_net, fake_psutil):
    runner = make_runner(
        {"iw dev wlan0 link": completed(returncode=237, stderr="command failed: No such device (-19)")}
    )
    with pytest.raises(InterfaceUnavailable):
        IwRadioProvider(runner=runner, sys_class_net=sys_class_net).snapshot()


def test_iw_timeout_is_treated_as_no_output(sys_class_net, fake_psutil, tmp_path):
    def runner(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    snapshot = IwRadioProvider(
        runner=runner, sys_class_net=sys_class_net, proc_wireless=tmp_path / "missing"
    ).snapshot()
    assert snapshot.ssid == SSID_UNAVAILABLE
    assert snapshot.channel_info == NO_CHANNEL
