"""Kernel network configuration used to realise SVIs.

:class:`KernelInterface` lists the netlink operations the orchestrator needs.
:class:`PyRoute2Kernel` implements them on top of ``pyroute2``; every
``NetlinkError`` is converted to :class:`KernelOperationFailed` so callers
only deal with the gateway's own exceptions.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Union

import pyroute2

from .exceptions import KernelOperationFailed, LinkNotFound
from .models import IPPrefix

LOG = logging.getLogger(__name__)

# From /usr/include/linux/if_bridge.h
BRIDGE_FLAGS_MASTER = 1
BRIDGE_FLAGS_SELF = 2
BRIDGE_VLAN_INFO_PVID = 2
BRIDGE_VLAN_INFO_UNTAGGED = 4


@dataclass(frozen=True)
class Link:
    """A kernel network device, identified by name and ifindex."""

    name: str
    index: int


class KernelInterface(ABC):
    """Netlink operations consumed by :class:`~opi_evpn_gw.svi.SviOrchestrator`."""

    @abstractmethod
    def link_by_name(self, name: str) -> Link:
        """Return the link called ``name`` or raise :class:`LinkNotFound`."""

    @abstractmethod
    def bridge_has_vlan(self, bridge: Link, vlan_id: int) -> bool:
        """Return whether ``vlan_id`` is already configured on ``bridge``."""

    @abstractmethod
    def bridge_vlan_add(
        self,
        bridge: Link,
        vlan_id: int,
        *,
        pvid: bool,
        untagged: bool,
        self_: bool,
        master: bool,
    ) -> None:
        """``bridge vlan add dev <bridge> vid <vlan_id> [pvid] [untagged] [self] [master]``"""

    @abstractmethod
    def bridge_vlan_del(
        self, bridge: Link, vlan_id: int, *, self_: bool, master: bool
    ) -> None:
        """``bridge vlan del dev <bridge> vid <vlan_id>``"""

    @abstractmethod
    def add_vlan_link(
        self, name: str, parent: Link, vlan_id: int, mtu: Optional[int] = None
    ) -> Link:
        """``ip link add link <parent> name <name> type vlan id <vlan_id>``"""

    @abstractmethod
    def modify_link(self, link: Link, *, mtu: Optional[int] = None) -> None:
        """Rewrite mutable link properties."""

    @abstractmethod
    def set_hardware_address(self, link: Link, mac_address: str) -> None:
        """``ip link set <link> address <mac_address>``"""

    @abstractmethod
    def add_address(self, link: Link, prefix: IPPrefix) -> None:
        """``ip address add <prefix> dev <link>``"""

    @abstractmethod
    def del_address(self, link: Link, prefix: IPPrefix) -> None:
        """``ip address del <prefix> dev <link>``"""

    @abstractmethod
    def set_master(self, link: Link, master: Optional[Link]) -> None:
        """Enslave ``link`` to ``master``, or release it when ``master`` is None."""

    @abstractmethod
    def set_up(self, link: Link) -> None:
        """``ip link set <link> up``"""

    @abstractmethod
    def set_down(self, link: Link) -> None:
        """``ip link set <link> down``"""

    @abstractmethod
    def delete_link(self, link: Link) -> None:
        """``ip link del <link>``"""


def _bridge_flags(self_: bool, master: bool) -> Union[str, int]:
    if self_ and not master:
        return "self"
    if master and not self_:
        return "master"
    return (BRIDGE_FLAGS_SELF if self_ else 0) | (BRIDGE_FLAGS_MASTER if master else 0)


class PyRoute2Kernel(KernelInterface):
    """:class:`KernelInterface` backed by ``pyroute2.IPRoute``.

    A fresh ``IPRoute`` socket is opened per operation; the gateway issues a
    handful of requests per API call, so there is nothing to gain from
    keeping one around between calls.
    """

    def __init__(self, iproute_factory: Callable[[], pyroute2.IPRoute] = pyroute2.IPRoute) -> None:
        self._iproute_factory = iproute_factory

    @contextmanager
    def _request(self, operation: str, target: str) -> Iterator[pyroute2.IPRoute]:
        try:
            with self._iproute_factory() as ipr:
                yield ipr
        except pyroute2.NetlinkError as exc:
            raise KernelOperationFailed(
                operation, target, f"{os.strerror(exc.code)} ({exc.code})"
            ) from exc

    def link_by_name(self, name: str) -> Link:
        with self._request("look up link", name) as ipr:
            indexes = ipr.link_lookup(ifname=name)
        if not indexes:
            raise LinkNotFound(name)
        return Link(name=name, index=indexes[0])

    def bridge_has_vlan(self, bridge: Link, vlan_id: int) -> bool:
        with self._request("list vlans", bridge.name) as ipr:
            for msg in ipr.get_vlans(index=bridge.index):
                af_spec = msg.get_attr("IFLA_AF_SPEC")
                if af_spec is None:
                    continue
                for info in af_spec.get_attrs("IFLA_BRIDGE_VLAN_INFO"):
                    if info["vid"] == vlan_id:
                        return True
        return False

    def bridge_vlan_add(
        self,
        bridge: Link,
        vlan_id: int,
        *,
        pvid: bool,
        untagged: bool,
        self_: bool,
        master: bool,
    ) -> None:
        flags = 0
        if pvid:
            flags |= BRIDGE_VLAN_INFO_PVID
        if untagged:
            flags |= BRIDGE_VLAN_INFO_UNTAGGED
        LOG.debug("Adding vlan %d to bridge %s (flags=%#x)", vlan_id, bridge.name, flags)
        with self._request(f"add vlan {vlan_id}", bridge.name) as ipr:
            ipr.vlan_filter(
                "add",
                index=bridge.index,
                vlan_info={"vid": vlan_id, "flags": flags},
                vlan_flags=_bridge_flags(self_, master),
            )

    def bridge_vlan_del(
        self, bridge: Link, vlan_id: int, *, self_: bool, master: bool
    ) -> None:
        LOG.debug("Removing vlan %d from bridge %s", vlan_id, bridge.name)
        with self._request(f"delete vlan {vlan_id}", bridge.name) as ipr:
            ipr.vlan_filter(
                "del",
                index=bridge.index,
                vlan_info={"vid": vlan_id},
                vlan_flags=_bridge_flags(self_, master),
            )

    def add_vlan_link(
        self, name: str, parent: Link, vlan_id: int, mtu: Optional[int] = None
    ) -> Link:
        extra = {"mtu": mtu} if mtu else {}
        LOG.debug("Creating vlan link %s on %s (vid=%d)", name, parent.name, vlan_id)
        with self._request("create vlan link", name) as ipr:
            ipr.link(
                "add",
                ifname=name,
                kind="vlan",
                link=parent.index,
                vlan_id=vlan_id,
                **extra,
            )
        return self.link_by_name(name)

    def modify_link(self, link: Link, *, mtu: Optional[int] = None) -> None:
        if mtu is None:
            LOG.debug("No link properties to modify on %s", link.name)
            return
        with self._request("modify link", link.name) as ipr:
            ipr.link("set", index=link.index, mtu=mtu)

    def set_hardware_address(self, link: Link, mac_address: str) -> None:
        with self._request(f"set address {mac_address}", link.name) as ipr:
            ipr.link("set", index=link.index, address=mac_address)

    def add_address(self, link: Link, prefix: IPPrefix) -> None:
        with self._request(f"add address {prefix}", link.name) as ipr:
            ipr.addr("add", index=link.index, address=prefix.address, prefixlen=prefix.length)

    def del_address(self, link: Link, prefix: IPPrefix) -> None:
        with self._request(f"delete address {prefix}", link.name) as ipr:
            ipr.addr("del", index=link.index, address=prefix.address, prefixlen=prefix.length)

    def set_master(self, link: Link, master: Optional[Link]) -> None:
        target = master.name if master else "nomaster"
        with self._request(f"set master {target}", link.name) as ipr:
            ipr.link("set", index=link.index, master=master.index if master else 0)

    def set_up(self, link: Link) -> None:
        with self._request("set link up", link.name) as ipr:
            ipr.link("set", index=link.index, state="up")

    def set_down(self, link: Link) -> None:
        with self._request("set link down", link.name) as ipr:
            ipr.link("set", index=link.index, state="down")

    def delete_link(self, link: Link) -> None:
        with self._request("delete link", link.name) as ipr:
            ipr.link("del", index=link.index)
