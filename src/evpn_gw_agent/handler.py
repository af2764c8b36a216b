"""Dispatch desired-state events to the SVI service."""

from __future__ import annotations

import logging
from dataclasses import fields

from opi_evpn_gw.models import Svi, SviSpec
from opi_evpn_gw.naming import (
    BRIDGES,
    DEFAULT_AUTHORITY,
    SVIS,
    VRFS,
    resource_id_to_full_name,
)
from opi_evpn_gw.service import SviService
from opi_evpn_gw.svi import CREATE_ONLY_FIELDS

from .events import SviDelete, SviUpsert

LOG = logging.getLogger(__name__)


class SviEventHandler:
    """Apply :class:`SviUpsert` / :class:`SviDelete` events.

    References in watcher documents may be short IDs (``opi-bridge9``) or
    canonical names; short IDs are expanded against ``authority``.
    """

    def __init__(self, service: SviService, authority: str = DEFAULT_AUTHORITY) -> None:
        self._service = service
        self._authority = authority

    def handle(self, event: SviUpsert | SviDelete) -> None:
        if isinstance(event, SviUpsert):
            self._on_upsert(event)
        elif isinstance(event, SviDelete):
            self._on_delete(event)
        else:
            raise TypeError(f"Unsupported event type: {type(event)!r}")

    def _full_name(self, collection: str, value: str) -> str:
        if value.startswith("//"):
            return value
        return resource_id_to_full_name(collection, value, self._authority)

    def _resolve(self, spec: SviSpec) -> SviSpec:
        return SviSpec(
            logical_bridge=self._full_name(BRIDGES, spec.logical_bridge),
            vrf=self._full_name(VRFS, spec.vrf),
            gw_ip_prefix=list(spec.gw_ip_prefix),
            mac_address=spec.mac_address,
            enable_bgp=spec.enable_bgp,
            remote_as=spec.remote_as,
            mtu=spec.mtu,
        )

    def _on_upsert(self, event: SviUpsert) -> None:
        desired = self._resolve(event.spec)
        current = self._service.create_svi(Svi(spec=desired), event.svi_id)
        changed = _changed_fields(current.spec, desired)
        if not changed:
            return
        if changed & CREATE_ONLY_FIELDS:
            LOG.info(
                "SVI %s changed %s, re-creating", current.name, ", ".join(sorted(changed))
            )
            self._service.delete_svi(current.name)
            self._service.create_svi(Svi(spec=desired), event.svi_id)
            return
        LOG.debug("SVI %s changed %s, updating", current.name, sorted(changed))
        self._service.update_svi(
            Svi(spec=desired, name=current.name),
            [f"spec.{name}" for name in sorted(changed)],
        )

    def _on_delete(self, event: SviDelete) -> None:
        name = resource_id_to_full_name(SVIS, event.svi_id, self._authority)
        self._service.delete_svi(name, allow_missing=True)


def _changed_fields(current: SviSpec, desired: SviSpec) -> frozenset:
    return frozenset(
        f.name
        for f in fields(SviSpec)
        if getattr(current, f.name) != getattr(desired, f.name)
    )
