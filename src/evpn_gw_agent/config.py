"""YAML configuration loader for the EVPN gateway agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from opi_evpn_gw.models import (
    IPPrefix,
    LogicalBridgeSpec,
    VrfSpec,
)
from opi_evpn_gw.naming import DEFAULT_AUTHORITY, validate_user_settable
from opi_evpn_gw.svi import DEFAULT_TENANT_BRIDGE


@dataclass
class GatewayConfig:
    authority: str = DEFAULT_AUTHORITY
    tenant_bridge: str = DEFAULT_TENANT_BRIDGE


@dataclass
class BridgeConfig:
    id: str
    spec: LogicalBridgeSpec


@dataclass
class VrfConfig:
    id: str
    spec: VrfSpec
    local_as: int = 0


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 5.0
    options: dict = field(default_factory=dict)


@dataclass
class AgentConfig:
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    bridges: Sequence[BridgeConfig] = field(default_factory=list)
    vrfs: Sequence[VrfConfig] = field(default_factory=list)
    watchers: Sequence[WatcherConfig] = field(default_factory=list)


def _parse_prefix(value: Optional[str]) -> Optional[IPPrefix]:
    if value is None:
        return None
    return IPPrefix.parse(str(value))


def _parse_optional_int(value) -> Optional[int]:
    return None if value is None else int(value)


def _parse_gateway(section: dict) -> GatewayConfig:
    return GatewayConfig(
        authority=str(section.get("authority", DEFAULT_AUTHORITY)),
        tenant_bridge=str(section.get("tenant_bridge", DEFAULT_TENANT_BRIDGE)),
    )


def _parse_bridges(entries: Iterable[dict]) -> List[BridgeConfig]:
    bridges: List[BridgeConfig] = []
    for entry in entries:
        bridge_id = str(entry["id"])
        validate_user_settable(bridge_id)
        bridges.append(
            BridgeConfig(
                id=bridge_id,
                spec=LogicalBridgeSpec(
                    vlan_id=int(entry["vlan_id"]),
                    vni=_parse_optional_int(entry.get("vni")),
                    vtep_ip_prefix=_parse_prefix(entry.get("vtep_ip_prefix")),
                ),
            )
        )
    return bridges


def _parse_vrfs(entries: Iterable[dict]) -> List[VrfConfig]:
    vrfs: List[VrfConfig] = []
    for entry in entries:
        vrf_id = str(entry["id"])
        validate_user_settable(vrf_id)
        vrfs.append(
            VrfConfig(
                id=vrf_id,
                spec=VrfSpec(
                    vni=_parse_optional_int(entry.get("vni")),
                    loopback_ip_prefix=_parse_prefix(entry.get("loopback_ip_prefix")),
                    vtep_ip_prefix=_parse_prefix(entry.get("vtep_ip_prefix")),
                ),
                local_as=int(entry.get("local_as", 0)),
            )
        )
    return vrfs


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        options = entry.get("options", {})
        if not isinstance(options, dict):
            raise ValueError("watcher 'options' must be a mapping if provided")
        watchers.append(
            WatcherConfig(
                type=str(entry["type"]),
                path=Path(entry.get("path", ".")),
                interval=float(entry.get("interval", entry.get("poll_interval", 5.0))),
                options=options,
            )
        )
    return watchers


def _section_list(data: dict, key: str) -> list:
    section = data.get(key, [])
    if not isinstance(section, list):
        raise ValueError(f"'{key}' section must be a list")
    return section


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    gateway_section = data.get("gateway", {})
    if not isinstance(gateway_section, dict):
        raise ValueError("'gateway' section must be a mapping")

    return AgentConfig(
        gateway=_parse_gateway(gateway_section),
        bridges=_parse_bridges(_section_list(data, "logical_bridges")),
        vrfs=_parse_vrfs(_section_list(data, "vrfs")),
        watchers=_parse_watchers(_section_list(data, "watchers")),
    )
