import pytest
from loguru import logger

from wifi_unredactor.core.record import ChannelInfo, RadioSnapshot, WiFiRecord


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger.remove()


@pytest.fixture
def snapshot() -> RadioSnapshot:
    return RadioSnapshot(
        timestamp="2024-01-21T12:00:00.000+09:00",
        interface="en0",
        mac_address="00:11:22:33:44:55",
        ssid="TestNetwork",
        bssid="AA:BB:CC:DD:EE:FF",
        phy_mode="802.11ax",
        noise_dbm=-95,
        rssi_dbm=-65,
        interface_mode="station",
        channel_info=ChannelInfo(number=36, band="5GHz", width="80MHz"),
        security="WPA3 Personal",
        transmit_power=20,
        transmit_rate=866,
        mcs_index="9",
    )


@pytest.fixture
def record(snapshot: RadioSnapshot) -> WiFiRecord:
    return WiFiRecord(**vars(snapshot), ap_name="TestAP")
