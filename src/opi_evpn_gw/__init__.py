"""OPI EVPN gateway SVI control plane.

The package realises switched virtual interfaces (SVIs) on a Linux host: a
VLAN sub-interface of the tenant bridge, addressed with the tenant gateway
prefixes and enslaved to a VRF device.  It is organised leaf first:

* :mod:`~opi_evpn_gw.naming` builds and parses canonical resource names;
* :mod:`~opi_evpn_gw.registry` keeps the in-memory inventory of logical
  bridges, VRFs and SVIs;
* :mod:`~opi_evpn_gw.netlink` talks to the kernel through ``pyroute2``;
* :mod:`~opi_evpn_gw.svi` orders the kernel steps and commits the result;
* :mod:`~opi_evpn_gw.service` exposes create/get/update/delete/list handlers.

Nothing is persisted: the inventory lives as long as the process.
"""

from .registry import Inventory  # noqa: F401
from .service import SviService  # noqa: F401
from .svi import SviOrchestrator  # noqa: F401

__all__ = ["Inventory", "SviOrchestrator", "SviService"]
