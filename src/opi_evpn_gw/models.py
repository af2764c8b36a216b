"""Resource data structures exposed by the gateway.

The classes mirror the shape of the OPI EVPN gateway messages (``spec`` for
the desired state, ``status`` for what the gateway observed) without pulling
in a protobuf runtime.  Instances stored in the registry are always deep
copies, so callers are free to mutate what they get back.
"""

from __future__ import annotations

import copy
import ipaddress
import re
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import List, Optional

from .exceptions import InvalidArgument

MIN_VLAN_ID = 1
MAX_VLAN_ID = 4094

_MAC_ADDRESS = re.compile(r"^[0-9a-fA-F]{2}(:[0-9a-fA-F]{2}){5}$")


class AddressFamily(Enum):
    INET = auto()
    INET6 = auto()


@dataclass(frozen=True)
class IPPrefix:
    """An address plus prefix length, e.g. a gateway or VTEP prefix."""

    address: str
    length: int

    def __post_init__(self) -> None:
        try:
            ip = ipaddress.ip_address(self.address)
        except ValueError as exc:
            raise InvalidArgument(f"invalid IP address {self.address!r}: {exc}") from None
        if not 0 <= self.length <= ip.max_prefixlen:
            raise InvalidArgument(
                f"prefix length {self.length} invalid for {self.address}"
            )

    @classmethod
    def parse(cls, value: str) -> "IPPrefix":
        """Build a prefix from ``10.0.0.1/24`` style text.

        The host bits are kept: a gateway prefix names the interface address,
        not the network.
        """

        try:
            iface = ipaddress.ip_interface(value)
        except ValueError as exc:
            raise InvalidArgument(f"invalid IP prefix {value!r}: {exc}") from None
        return cls(address=str(iface.ip), length=iface.network.prefixlen)

    @classmethod
    def from_v4(cls, addr: int, length: int) -> "IPPrefix":
        """Decode a 32-bit big-endian IPv4 address."""

        return cls(address=str(ipaddress.IPv4Address(addr)), length=length)

    @property
    def family(self) -> AddressFamily:
        if ipaddress.ip_address(self.address).version == 4:
            return AddressFamily.INET
        return AddressFamily.INET6

    def __str__(self) -> str:
        return f"{self.address}/{self.length}"


# ----------------------------------------------------------------------
# Logical bridges
# ----------------------------------------------------------------------
class LBOperStatus(Enum):
    UNSPECIFIED = auto()
    UP = auto()
    DOWN = auto()


@dataclass
class LogicalBridgeSpec:
    """Layer-2 segment definition.

    Attributes
    ----------
    vlan_id:
        VLAN used on the tenant bridge for this segment (1-4094).
    vni:
        VXLAN network identifier, if the segment is stretched.
    vtep_ip_prefix:
        Local tunnel endpoint used for the segment.
    """

    vlan_id: int
    vni: Optional[int] = None
    vtep_ip_prefix: Optional[IPPrefix] = None

    def __post_init__(self) -> None:
        if not MIN_VLAN_ID <= self.vlan_id <= MAX_VLAN_ID:
            raise InvalidArgument(
                f"VLAN ID {self.vlan_id} outside {MIN_VLAN_ID}-{MAX_VLAN_ID}"
            )


@dataclass
class LogicalBridgeStatus:
    oper_status: LBOperStatus = LBOperStatus.UNSPECIFIED


@dataclass
class LogicalBridge:
    name: str
    spec: LogicalBridgeSpec
    status: LogicalBridgeStatus = field(default_factory=LogicalBridgeStatus)


# ----------------------------------------------------------------------
# VRFs
# ----------------------------------------------------------------------
@dataclass
class VrfSpec:
    vni: Optional[int] = None
    loopback_ip_prefix: Optional[IPPrefix] = None
    vtep_ip_prefix: Optional[IPPrefix] = None


@dataclass
class VrfStatus:
    local_as: int = 0


@dataclass
class Vrf:
    name: str
    spec: VrfSpec = field(default_factory=VrfSpec)
    status: VrfStatus = field(default_factory=VrfStatus)


# ----------------------------------------------------------------------
# SVIs
# ----------------------------------------------------------------------
class SviOperStatus(Enum):
    UNSPECIFIED = auto()
    UP = auto()
    DOWN = auto()


@dataclass
class SviSpec:
    """Desired state of a switched virtual interface.

    Attributes
    ----------
    logical_bridge:
        Canonical name of the bridge providing the VLAN.
    vrf:
        Canonical name of the VRF the interface is enslaved to.
    gw_ip_prefix:
        Gateway addresses assigned to the interface.
    mac_address:
        Optional hardware address, ``aa:bb:cc:00:00:41`` form.
    enable_bgp / remote_as:
        Carried for the routing stack, never acted upon here.
    mtu:
        Optional link MTU, the only property the update path rewrites on the
        kernel link.
    """

    logical_bridge: str
    vrf: str
    gw_ip_prefix: List[IPPrefix] = field(default_factory=list)
    mac_address: Optional[str] = None
    enable_bgp: bool = False
    remote_as: int = 0
    mtu: Optional[int] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Reject values the kernel would refuse to encode."""

        if self.mac_address and not _MAC_ADDRESS.match(self.mac_address):
            raise InvalidArgument(f"invalid MAC address {self.mac_address!r}")
        if self.mtu is not None and self.mtu <= 0:
            raise InvalidArgument(f"invalid MTU {self.mtu}")


@dataclass
class SviStatus:
    oper_status: SviOperStatus = SviOperStatus.UNSPECIFIED


@dataclass
class Svi:
    spec: SviSpec
    name: str = ""
    status: SviStatus = field(default_factory=SviStatus)

    def clone(self) -> "Svi":
        return copy.deepcopy(self)

    def with_status(self, oper_status: SviOperStatus) -> "Svi":
        return replace(self.clone(), status=SviStatus(oper_status=oper_status))
