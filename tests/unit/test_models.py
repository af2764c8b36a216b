import pytest

from opi_evpn_gw.exceptions import InvalidArgument
from opi_evpn_gw.models import AddressFamily, IPPrefix, SviSpec

BRIDGE = "//network.opiproject.org/bridges/opi-bridge9"
VRF = "//network.opiproject.org/vrfs/opi-vrf8"


def test_prefix_parse_keeps_host_bits():
    prefix = IPPrefix.parse("10.0.0.1/24")

    assert prefix == IPPrefix("10.0.0.1", 24)
    assert prefix.family is AddressFamily.INET
    assert IPPrefix.from_v4(167772162, 24) == IPPrefix("10.0.0.2", 24)


@pytest.mark.parametrize(
    "address, length", [("10.0.0.1", 33), ("10.0.0.1", -1), ("not-an-ip", 24)]
)
def test_prefix_rejects_bad_values(address, length):
    with pytest.raises(InvalidArgument):
        IPPrefix(address, length)


@pytest.mark.parametrize("mac", ["zz:zz", "aa:bb:cc:00:00", "aa-bb-cc-00-00-41"])
def test_svi_spec_rejects_bad_mac(mac):
    with pytest.raises(InvalidArgument):
        SviSpec(logical_bridge=BRIDGE, vrf=VRF, mac_address=mac)


def test_svi_spec_rejects_bad_mtu():
    with pytest.raises(InvalidArgument):
        SviSpec(logical_bridge=BRIDGE, vrf=VRF, mtu=0)


def test_svi_spec_accepts_mac():
    spec = SviSpec(logical_bridge=BRIDGE, vrf=VRF, mac_address="AA:bb:cc:00:00:41")

    assert spec.mac_address == "AA:bb:cc:00:00:41"
