"""SVI orchestrator.

Turns a desired :class:`~opi_evpn_gw.models.Svi` into kernel state on the
tenant bridge and records the result in the :class:`Inventory`:

1. admit the logical bridge VLAN on the tenant bridge;
2. create a VLAN sub-interface named after the SVI short ID;
3. set the MAC address and gateway addresses;
4. enslave the interface to the VRF device and bring it up.

Each kernel step that leaves something behind registers its inverse.  If a
later step fails the inverses run in reverse order before the error is
re-raised, so a failed create leaves neither a registry entry nor kernel
state behind.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, List, Optional, Sequence, Tuple

from .exceptions import InvalidArgument, NotFound
from .fieldmask import masked_fields, merge_spec, validate_update_mask
from .models import AddressFamily, IPPrefix, LogicalBridge, Svi, SviOperStatus, Vrf
from .naming import generate_resource_id, short_id_of, validate_user_settable
from .netlink import KernelInterface, Link
from .registry import Inventory

LOG = logging.getLogger(__name__)

DEFAULT_TENANT_BRIDGE = "br-tenant"
IFNAMSIZ = 15

# bridge vlan add dev br-tenant vid <vlan-id> self
TENANT_VLAN_POLICY = {"pvid": False, "untagged": False, "self_": True, "master": False}

# Realised only while creating the link; changing them needs a re-create.
CREATE_ONLY_FIELDS = frozenset({"logical_bridge", "vrf", "gw_ip_prefix", "mac_address"})


class _Compensations:
    """Stack of undo actions for a partially applied kernel sequence."""

    def __init__(self) -> None:
        self._actions: List[Tuple[str, Callable[[], None]]] = []

    def push(self, description: str, action: Callable[[], None]) -> None:
        self._actions.append((description, action))

    def unwind(self) -> None:
        while self._actions:
            description, action = self._actions.pop()
            LOG.info("Rolling back: %s", description)
            try:
                action()
            except Exception:
                LOG.exception("Rollback step '%s' failed", description)


class SviOrchestrator:
    """Create, inspect, update and remove SVIs on the local host."""

    def __init__(
        self,
        inventory: Inventory,
        kernel: KernelInterface,
        tenant_bridge: str = DEFAULT_TENANT_BRIDGE,
    ) -> None:
        self._inventory = inventory
        self._kernel = kernel
        self._tenant_bridge = tenant_bridge
        # Serialises every mutating call; a create is check-then-apply.
        self._lock = Lock()

    @property
    def inventory(self) -> Inventory:
        return self._inventory

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create_svi(self, svi: Svi, requested_id: str = "") -> Svi:
        if requested_id:
            validate_user_settable(requested_id)
            if svi.name:
                LOG.info(
                    "client provided the ID of a resource %s, ignoring the name field %s",
                    requested_id,
                    svi.name,
                )
            resource_id = requested_id
        else:
            resource_id = generate_resource_id()
        name = self._inventory.svis.full_name(resource_id)

        with self._lock:
            existing = self._inventory.svis.get(name)
            if existing is not None:
                LOG.info("Already existing Svi with id %s", name)
                return existing

            if len(resource_id) > IFNAMSIZ:
                raise InvalidArgument(
                    f"resource ID {resource_id!r} exceeds {IFNAMSIZ} characters "
                    "and cannot name a kernel link"
                )
            tenant_bridge = self._kernel.link_by_name(self._tenant_bridge)
            bridge = self._lookup_bridge(svi.spec.logical_bridge)
            vrf = self._lookup_vrf(svi.spec.vrf)
            svi.spec.validate()
            prefixes = _ipv4_only(svi.spec.gw_ip_prefix)

            compensations = _Compensations()
            try:
                self._realise(resource_id, svi, tenant_bridge, bridge, vrf, prefixes, compensations)
            except Exception as exc:
                LOG.error("Creating SVI %s failed: %s", name, exc)
                compensations.unwind()
                raise

            response = svi.with_status(SviOperStatus.UP)
            response.name = name
            self._inventory.svis.put(name, response)
        LOG.info("Created SVI %s on vlan %d in vrf %s", name, bridge.spec.vlan_id, vrf.name)
        return response

    def _realise(
        self,
        resource_id: str,
        svi: Svi,
        tenant_bridge: Link,
        bridge: LogicalBridge,
        vrf: Vrf,
        prefixes: Sequence[IPPrefix],
        compensations: _Compensations,
    ) -> None:
        kernel = self._kernel
        vid = bridge.spec.vlan_id

        vlan_present = kernel.bridge_has_vlan(tenant_bridge, vid)
        kernel.bridge_vlan_add(tenant_bridge, vid, **TENANT_VLAN_POLICY)
        if not vlan_present:
            compensations.push(
                f"remove vlan {vid} from {tenant_bridge.name}",
                lambda: kernel.bridge_vlan_del(tenant_bridge, vid, self_=True, master=False),
            )

        link = kernel.add_vlan_link(resource_id, tenant_bridge, vid, mtu=svi.spec.mtu)
        # Addresses and master go away with the link.
        compensations.push(f"delete link {link.name}", lambda: kernel.delete_link(link))

        if svi.spec.mac_address:
            kernel.set_hardware_address(link, svi.spec.mac_address)

        for prefix in prefixes:
            LOG.debug("Assign the GW IP address %s to the SVI interface %s", prefix, link.name)
            kernel.add_address(link, prefix)

        vrf_dev = kernel.link_by_name(short_id_of(vrf.name))
        kernel.set_master(link, vrf_dev)
        kernel.set_up(link)

    def _lookup_bridge(self, name: str) -> LogicalBridge:
        bridge = self._inventory.bridges.get(name)
        if bridge is None:
            raise NotFound(name)
        return bridge

    def _lookup_vrf(self, name: str) -> Vrf:
        vrf = self._inventory.vrfs.get(name)
        if vrf is None:
            raise NotFound(name)
        return vrf

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get_svi(self, name: str) -> Svi:
        """Return the stored SVI after checking its kernel link still exists.

        A missing link is reported as not found; the registry entry is left
        alone.
        """

        svi = self._inventory.svis.get(name)
        if svi is None:
            raise NotFound(name)
        self._kernel.link_by_name(short_id_of(svi.name))
        return svi

    def list_svis(self) -> List[Svi]:
        return self._inventory.svis.list()

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------
    def update_svi(self, svi: Svi, update_mask: Optional[Sequence[str]] = None) -> Svi:
        """Store a masked merge of ``svi`` over the current entry.

        Only ``mtu`` is pushed to the kernel link; fields in
        :data:`CREATE_ONLY_FIELDS` are recorded as given.
        """

        with self._lock:
            current = self._inventory.svis.get(svi.name)
            if current is None:
                raise NotFound(svi.name)
            validate_update_mask(update_mask)
            svi.spec.validate()

            link = self._kernel.link_by_name(short_id_of(current.name))
            merged = merge_spec(current.spec, svi.spec, update_mask)
            if "mtu" in masked_fields(update_mask):
                self._kernel.modify_link(link, mtu=merged.mtu)

            response = Svi(spec=merged, name=current.name).with_status(SviOperStatus.UP)
            self._inventory.svis.put(response.name, response)
        LOG.info("Updated SVI %s (mask=%s)", response.name, update_mask or "*")
        return response

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------
    def delete_svi(self, name: str, allow_missing: bool = False) -> None:
        with self._lock:
            svi = self._inventory.svis.get(name)
            if svi is None:
                if allow_missing:
                    LOG.debug("SVI %s already absent", name)
                    return
                raise NotFound(name)

            link = self._kernel.link_by_name(short_id_of(svi.name))
            self._kernel.set_down(link)
            self._kernel.delete_link(link)
            self._inventory.svis.delete(name)
        LOG.info("Deleted SVI %s", name)


def _ipv4_only(prefixes: Sequence[IPPrefix]) -> List[IPPrefix]:
    for prefix in prefixes:
        if prefix.family is not AddressFamily.INET:
            raise InvalidArgument(f"gateway prefix {prefix} is not IPv4")
    return list(prefixes)
