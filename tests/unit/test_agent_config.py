import json
from pathlib import Path
from threading import Event

import pytest

from evpn_gw_agent.config import AgentConfig, WatcherConfig, load_config
from evpn_gw_agent.handler import SviEventHandler
from evpn_gw_agent.main import build_inventory, build_service, start_watchers


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(
        """
gateway:
  tenant_bridge: br-tenant0
logical_bridges:
  - id: opi-bridge9
    vlan_id: 22
    vni: 11
    vtep_ip_prefix: 10.0.0.2/24
vrfs:
  - id: opi-vrf8
    vni: 1000
    loopback_ip_prefix: 10.255.0.1/32
    local_as: 4
watchers:
  - type: file
    path: /etc/opi-evpn-gw/svis.json
    interval: 2
"""
    )

    cfg = load_config(config_path)

    assert cfg.gateway.authority == "network.opiproject.org"
    assert cfg.gateway.tenant_bridge == "br-tenant0"
    assert len(cfg.bridges) == 1
    bridge = cfg.bridges[0]
    assert bridge.id == "opi-bridge9"
    assert bridge.spec.vlan_id == 22
    assert bridge.spec.vni == 11
    assert str(bridge.spec.vtep_ip_prefix) == "10.0.0.2/24"
    vrf = cfg.vrfs[0]
    assert vrf.spec.vtep_ip_prefix is None
    assert str(vrf.spec.loopback_ip_prefix) == "10.255.0.1/32"
    assert vrf.local_as == 4
    watcher = cfg.watchers[0]
    assert watcher.type == "file"
    assert watcher.path == Path("/etc/opi-evpn-gw/svis.json")
    assert watcher.interval == pytest.approx(2.0)
    assert watcher.options == {}

    inventory = build_inventory(cfg)
    assert "//network.opiproject.org/bridges/opi-bridge9" in inventory.bridges
    stored_vrf = inventory.vrfs.get("//network.opiproject.org/vrfs/opi-vrf8")
    assert stored_vrf.status.local_as == 4


def test_load_config_rejects_non_mapping(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError):
        load_config(config_path)


def test_load_config_rejects_bad_section(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("vrfs: opi-vrf8\n")

    with pytest.raises(ValueError):
        load_config(config_path)


def test_start_watchers_applies_document(tmp_path: Path, kernel):
    config_path = tmp_path / "agent.yaml"
    svis_path = tmp_path / "svis.json"
    svis_path.write_text(
        json.dumps(
            {
                "svis": [
                    {
                        "id": "svi0",
                        "logical_bridge": "opi-bridge9",
                        "vrf": "opi-vrf8",
                        "gw_ip_prefix": ["10.0.0.1/24"],
                    }
                ]
            }
        )
    )
    config_path.write_text(
        f"""
logical_bridges:
  - id: opi-bridge9
    vlan_id: 22
vrfs:
  - id: opi-vrf8
watchers:
  - type: file
    path: {svis_path}
    interval: 0.05
"""
    )
    cfg = load_config(config_path)
    service = build_service(cfg, kernel)
    stop_event = Event()

    watchers = start_watchers(cfg, SviEventHandler(service), stop_event)
    stop_event.set()
    for watcher in watchers:
        watcher.join()

    assert len(watchers) == 1
    assert kernel.state["svi0"] == "up"
    assert service.get_svi("//network.opiproject.org/svis/svi0").name.endswith("svi0")


def test_start_watchers_rejects_unknown_type(service):
    cfg = AgentConfig(watchers=[WatcherConfig(type="ovn", path=Path("."))])

    with pytest.raises(ValueError):
        start_watchers(cfg, SviEventHandler(service), Event())
