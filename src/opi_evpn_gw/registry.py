"""In-memory resource inventory shared by the gateway handlers."""

from __future__ import annotations

import copy
from threading import RLock
from typing import Dict, Generic, List, Optional, TypeVar

from .models import LogicalBridge, Svi, Vrf
from .naming import BRIDGES, DEFAULT_AUTHORITY, SVIS, VRFS, resource_id_to_full_name

T = TypeVar("T")


class ResourceStore(Generic[T]):
    """Map canonical resource names to resource objects.

    Objects are copied on the way in and on the way out so the stored state
    can only change through :meth:`put` and :meth:`delete`.  Nothing is
    persisted; the store is lost when the process exits.
    """

    def __init__(self, collection: str, authority: str = DEFAULT_AUTHORITY) -> None:
        self.collection = collection
        self.authority = authority
        self._items: Dict[str, T] = {}
        self._lock = RLock()

    def full_name(self, resource_id: str) -> str:
        return resource_id_to_full_name(self.collection, resource_id, self.authority)

    def get(self, name: str) -> Optional[T]:
        with self._lock:
            item = self._items.get(name)
            return copy.deepcopy(item) if item is not None else None

    def put(self, name: str, item: T) -> None:
        with self._lock:
            self._items[name] = copy.deepcopy(item)

    def delete(self, name: str) -> Optional[T]:
        with self._lock:
            return self._items.pop(name, None)

    def list(self) -> List[T]:
        with self._lock:
            return [copy.deepcopy(item) for item in self._items.values()]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class Inventory:
    """Every resource collection the gateway knows about."""

    def __init__(self, authority: str = DEFAULT_AUTHORITY) -> None:
        self.authority = authority
        self.bridges: ResourceStore[LogicalBridge] = ResourceStore(BRIDGES, authority)
        self.vrfs: ResourceStore[Vrf] = ResourceStore(VRFS, authority)
        self.svis: ResourceStore[Svi] = ResourceStore(SVIS, authority)

    def add_bridge(self, resource_id: str, bridge: LogicalBridge) -> LogicalBridge:
        bridge.name = self.bridges.full_name(resource_id)
        self.bridges.put(bridge.name, bridge)
        return bridge

    def add_vrf(self, resource_id: str, vrf: Vrf) -> Vrf:
        vrf.name = self.vrfs.full_name(resource_id)
        self.vrfs.put(vrf.name, vrf)
        return vrf
