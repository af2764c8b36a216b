"""Entry point for the standalone EVPN gateway agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event
from typing import List

from opi_evpn_gw.models import LogicalBridge, Vrf, VrfStatus
from opi_evpn_gw.netlink import KernelInterface, PyRoute2Kernel
from opi_evpn_gw.registry import Inventory
from opi_evpn_gw.service import SviService
from opi_evpn_gw.svi import SviOrchestrator

from .config import AgentConfig, load_config
from .handler import SviEventHandler
from .watchers import FileSviWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def build_inventory(config: AgentConfig) -> Inventory:
    """Seed the inventory with the bridges and VRFs named in ``config``."""

    inventory = Inventory(authority=config.gateway.authority)
    for bridge_cfg in config.bridges:
        bridge = inventory.add_bridge(
            bridge_cfg.id, LogicalBridge(name="", spec=bridge_cfg.spec)
        )
        LOG.info("Registered logical bridge %s (vlan %d)", bridge.name, bridge.spec.vlan_id)
    for vrf_cfg in config.vrfs:
        vrf = inventory.add_vrf(
            vrf_cfg.id,
            Vrf(name="", spec=vrf_cfg.spec, status=VrfStatus(local_as=vrf_cfg.local_as)),
        )
        LOG.info("Registered vrf %s", vrf.name)
    return inventory


def build_service(config: AgentConfig, kernel: KernelInterface) -> SviService:
    orchestrator = SviOrchestrator(
        build_inventory(config),
        kernel,
        tenant_bridge=config.gateway.tenant_bridge,
    )
    return SviService(orchestrator)


def start_watchers(
    config: AgentConfig, handler: SviEventHandler, stop_event: Event
) -> List[FileSviWatcher]:
    """Start one polling thread per configured watcher.

    Each watcher applies the current document once before its thread starts,
    so SVIs exist as soon as this returns.
    """

    watchers: List[FileSviWatcher] = []
    for watcher_cfg in config.watchers:
        if watcher_cfg.type != "file":
            raise ValueError(f"unsupported watcher type '{watcher_cfg.type}'")
        watcher = FileSviWatcher(
            handler=handler,
            path=watcher_cfg.path,
            interval=watcher_cfg.interval,
            stop_event=stop_event,
        )
        try:
            watcher.poll()
        except Exception:  # pragma: no cover - logged, the thread retries
            LOG.exception("initial SVI sync from %s failed", watcher_cfg.path)
        watcher.start()
        watchers.append(watcher)
    return watchers


def _wait_for_stop(stop_event: Event) -> None:
    def _on_signal(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, stopping gateway agent", signum)
        stop_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, _on_signal)
    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover
        stop_event.set()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the EVPN gateway agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/opi-evpn-gw/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    config = load_config(args.config)
    service = build_service(config, PyRoute2Kernel())
    handler = SviEventHandler(service, authority=config.gateway.authority)

    stop_event = Event()
    watchers = start_watchers(config, handler, stop_event)
    if not watchers:
        LOG.warning("no SVI watchers configured; serving the seeded inventory only")

    _wait_for_stop(stop_event)
    for watcher in watchers:
        watcher.join()

    LOG.info("EVPN gateway agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
