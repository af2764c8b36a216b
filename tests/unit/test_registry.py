import pytest

from opi_evpn_gw.exceptions import InvalidArgument
from opi_evpn_gw.models import IPPrefix, LogicalBridge, LogicalBridgeSpec, Svi, SviSpec
from opi_evpn_gw.registry import Inventory, ResourceStore


def build_svi(name: str) -> Svi:
    return Svi(
        name=name,
        spec=SviSpec(
            logical_bridge="//network.opiproject.org/bridges/b",
            vrf="//network.opiproject.org/vrfs/v",
            gw_ip_prefix=[IPPrefix.parse("10.0.0.1/24")],
        ),
    )


def test_store_put_get_delete():
    store: ResourceStore[Svi] = ResourceStore("svis")
    name = store.full_name("svi0")

    assert store.get(name) is None
    store.put(name, build_svi(name))

    assert name in store
    assert len(store) == 1
    assert store.get(name).name == "//network.opiproject.org/svis/svi0"

    removed = store.delete(name)
    assert removed is not None
    assert store.delete(name) is None
    assert store.list() == []


def test_store_isolates_callers():
    store: ResourceStore[Svi] = ResourceStore("svis")
    svi = build_svi("svis/svi0")
    store.put(svi.name, svi)

    svi.spec.remote_as = 99
    fetched = store.get(svi.name)
    fetched.spec.gw_ip_prefix.clear()

    stored = store.get(svi.name)
    assert stored.spec.remote_as == 0
    assert len(stored.spec.gw_ip_prefix) == 1


def test_inventory_names_resources():
    inventory = Inventory(authority="example.org")

    bridge = inventory.add_bridge(
        "opi-bridge9", LogicalBridge(name="", spec=LogicalBridgeSpec(vlan_id=22))
    )

    assert bridge.name == "//example.org/bridges/opi-bridge9"
    assert inventory.bridges.get(bridge.name).spec.vlan_id == 22
    assert inventory.svis.full_name("svi0") == "//example.org/svis/svi0"


@pytest.mark.parametrize("vlan_id", [0, 4095])
def test_bridge_vlan_range(vlan_id):
    with pytest.raises(InvalidArgument):
        LogicalBridgeSpec(vlan_id=vlan_id)
