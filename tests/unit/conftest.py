from typing import Dict, List, Optional, Set, Tuple

import pytest

from opi_evpn_gw.exceptions import KernelOperationFailed, LinkNotFound
from opi_evpn_gw.models import IPPrefix, LogicalBridge, LogicalBridgeSpec, Vrf, VrfSpec
from opi_evpn_gw.netlink import KernelInterface, Link
from opi_evpn_gw.registry import Inventory
from opi_evpn_gw.service import SviService
from opi_evpn_gw.svi import SviOrchestrator


class FakeKernel(KernelInterface):
    """In-memory kernel that records every mutating call."""

    def __init__(self, links=("br-tenant", "opi-vrf8")) -> None:
        self.links: Dict[str, Link] = {}
        self.vlans: Dict[str, Set[int]] = {}
        self.addresses: Dict[str, List[IPPrefix]] = {}
        self.masters: Dict[str, str] = {}
        self.state: Dict[str, str] = {}
        self.mac: Dict[str, str] = {}
        self.mtu: Dict[str, Optional[int]] = {}
        self.parents: Dict[str, Tuple[str, int]] = {}
        self.calls: List[tuple] = []
        self.fail_on: Set[str] = set()
        self.raise_on: Dict[str, Exception] = {}
        for name in links:
            self._add(name)

    def _add(self, name: str) -> Link:
        link = Link(name=name, index=len(self.links) + 1)
        self.links[name] = link
        return link

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self.fail_on:
            raise KernelOperationFailed(operation, str(args[0]), "injected failure")
        if operation in self.raise_on:
            raise self.raise_on[operation]

    @property
    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]

    def remove_externally(self, name: str) -> None:
        self.links.pop(name, None)

    def link_by_name(self, name):
        try:
            return self.links[name]
        except KeyError:
            raise LinkNotFound(name) from None

    def bridge_has_vlan(self, bridge, vlan_id):
        return vlan_id in self.vlans.get(bridge.name, set())

    def bridge_vlan_add(self, bridge, vlan_id, *, pvid, untagged, self_, master):
        self._record("bridge_vlan_add", bridge.name, vlan_id, pvid, untagged, self_, master)
        self.vlans.setdefault(bridge.name, set()).add(vlan_id)

    def bridge_vlan_del(self, bridge, vlan_id, *, self_, master):
        self._record("bridge_vlan_del", bridge.name, vlan_id)
        self.vlans.get(bridge.name, set()).discard(vlan_id)

    def add_vlan_link(self, name, parent, vlan_id, mtu=None):
        self._record("add_vlan_link", name, parent.name, vlan_id)
        link = self._add(name)
        self.parents[name] = (parent.name, vlan_id)
        self.mtu[name] = mtu
        self.state[name] = "down"
        return link

    def modify_link(self, link, *, mtu=None):
        self._record("modify_link", link.name, mtu)
        self.mtu[link.name] = mtu

    def set_hardware_address(self, link, mac_address):
        self._record("set_hardware_address", link.name, mac_address)
        self.mac[link.name] = mac_address

    def add_address(self, link, prefix):
        self._record("add_address", link.name, str(prefix))
        self.addresses.setdefault(link.name, []).append(prefix)

    def del_address(self, link, prefix):
        self._record("del_address", link.name, str(prefix))
        self.addresses.get(link.name, []).remove(prefix)

    def set_master(self, link, master):
        self._record("set_master", link.name, master.name if master else None)
        self.masters[link.name] = master.name if master else None

    def set_up(self, link):
        self._record("set_up", link.name)
        self.state[link.name] = "up"

    def set_down(self, link):
        self._record("set_down", link.name)
        self.state[link.name] = "down"

    def delete_link(self, link):
        self._record("delete_link", link.name)
        self.links.pop(link.name, None)
        self.addresses.pop(link.name, None)
        self.masters.pop(link.name, None)
        self.state.pop(link.name, None)


@pytest.fixture
def kernel() -> FakeKernel:
    return FakeKernel()


@pytest.fixture
def inventory() -> Inventory:
    inventory = Inventory()
    inventory.add_bridge(
        "opi-bridge9",
        LogicalBridge(
            name="",
            spec=LogicalBridgeSpec(
                vlan_id=22, vni=11, vtep_ip_prefix=IPPrefix.from_v4(167772162, 24)
            ),
        ),
    )
    inventory.add_vrf(
        "opi-vrf8",
        Vrf(
            name="",
            spec=VrfSpec(vni=1000, vtep_ip_prefix=IPPrefix.from_v4(167772162, 24)),
        ),
    )
    return inventory


@pytest.fixture
def orchestrator(inventory: Inventory, kernel: FakeKernel) -> SviOrchestrator:
    return SviOrchestrator(inventory, kernel)


@pytest.fixture
def service(orchestrator: SviOrchestrator) -> SviService:
    return SviService(orchestrator)
