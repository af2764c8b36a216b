"""File-based SVI watcher."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Event, Thread
from typing import Dict

from opi_evpn_gw.exceptions import EvpnGatewayError
from opi_evpn_gw.models import IPPrefix, SviSpec

from evpn_gw_agent.events import SviDelete, SviUpsert
from evpn_gw_agent.handler import SviEventHandler

LOG = logging.getLogger(__name__)


def _parse_svi(entry: dict) -> SviSpec:
    mtu = entry.get("mtu")
    return SviSpec(
        logical_bridge=str(entry["logical_bridge"]),
        vrf=str(entry["vrf"]),
        gw_ip_prefix=[IPPrefix.parse(str(p)) for p in entry.get("gw_ip_prefix", [])],
        mac_address=entry.get("mac_address"),
        enable_bgp=bool(entry.get("enable_bgp", False)),
        remote_as=int(entry.get("remote_as", 0)),
        mtu=int(mtu) if mtu is not None else None,
    )


def _extract_state(payload: dict) -> Dict[str, SviSpec]:
    svis = payload.get("svis")
    if svis is None:
        raise ValueError("SVI file missing 'svis' key")

    state: Dict[str, SviSpec] = {}
    for entry in svis:
        svi_id = entry.get("id")
        if svi_id is None:
            continue
        try:
            state[str(svi_id)] = _parse_svi(entry)
        except (KeyError, TypeError, ValueError, EvpnGatewayError) as exc:
            raise ValueError(f"invalid SVI entry {svi_id!r}: {exc}") from exc
    return state


class FileSviWatcher(Thread):
    """Poll a JSON document of desired SVIs and publish change events.

    An SVI whose event fails keeps its previously applied spec (if any) so
    the next poll retries it.
    """

    def __init__(
        self,
        handler: SviEventHandler,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True)
        self._handler = handler
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._state: Dict[str, SviSpec] = {}

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("file watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> None:
        if not self._path.exists():
            LOG.debug("SVI file %s does not exist yet", self._path)
            return

        try:
            payload = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            LOG.warning("failed to parse SVI file %s: %s", self._path, exc)
            return

        try:
            desired = _extract_state(payload)
        except ValueError as exc:
            LOG.warning("invalid SVI file %s: %s", self._path, exc)
            return

        applied: Dict[str, SviSpec] = {}
        for svi_id, spec in desired.items():
            if self._state.get(svi_id) == spec:
                applied[svi_id] = spec
                continue
            LOG.debug("SVI %s updated with spec %s", svi_id, spec)
            try:
                self._handler.handle(SviUpsert(svi_id, spec))
            except EvpnGatewayError as exc:
                LOG.warning("failed to apply SVI %s: %s", svi_id, exc)
                if svi_id in self._state:
                    applied[svi_id] = self._state[svi_id]
                continue
            applied[svi_id] = spec

        for svi_id in set(self._state) - set(desired):
            LOG.debug("SVI %s removed", svi_id)
            try:
                self._handler.handle(SviDelete(svi_id))
            except EvpnGatewayError as exc:
                LOG.warning("failed to delete SVI %s: %s", svi_id, exc)
                applied[svi_id] = self._state[svi_id]

        self._state = applied
