"""Error hierarchy shared by the registry, orchestrator and service layer."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class StatusCode(Enum):
    """Coarse outcome classes surfaced to callers of :class:`SviService`."""

    NOT_FOUND = "not-found"
    INVALID_ARGUMENT = "invalid-argument"
    INTERNAL = "internal"


class EvpnGatewayError(Exception):
    """Base class for every error raised by the gateway."""

    code = StatusCode.INTERNAL


class NotFound(EvpnGatewayError):
    """A referenced resource or kernel device does not exist."""

    code = StatusCode.NOT_FOUND

    def __init__(self, key: str) -> None:
        super().__init__(f"unable to find key {key}")
        self.key = key


class LinkNotFound(NotFound):
    """No kernel link carries the requested name."""


class InvalidArgument(EvpnGatewayError):
    code = StatusCode.INVALID_ARGUMENT


class KernelOperationFailed(EvpnGatewayError):
    """A netlink request was rejected by the kernel."""

    code = StatusCode.INTERNAL

    def __init__(
        self, operation: str, target: str, reason: Optional[str] = None
    ) -> None:
        message = f"failed to {operation} on {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.operation = operation
        self.target = target
