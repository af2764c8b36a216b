"""Resource naming helpers.

Canonical names follow the ``//<authority>/<collection>/<id>`` layout used by
the OPI network APIs.  Short IDs are either generated by the gateway or
supplied by the client, in which case they must satisfy the user-settable ID
rules from AIP-133.
"""

from __future__ import annotations

import re
import secrets

from .exceptions import InvalidArgument

DEFAULT_AUTHORITY = "network.opiproject.org"

BRIDGES = "bridges"
VRFS = "vrfs"
SVIS = "svis"

_USER_SETTABLE_ID = re.compile(r"^[a-z]([a-z0-9-]{0,61}[a-z0-9])?$")
_NAME_SEGMENT = re.compile(r"^[A-Za-z0-9._~!$&'()*+,;=:@-]+$")


def resource_id_to_full_name(
    collection: str, resource_id: str, authority: str = DEFAULT_AUTHORITY
) -> str:
    return f"//{authority}/{collection}/{resource_id}"


def short_id_of(name: str) -> str:
    """Return the final path segment of ``name``."""

    return name.rstrip("/").rsplit("/", 1)[-1]


def generate_resource_id(prefix: str = "svi") -> str:
    """Return an opaque ID short enough to double as a kernel link name."""

    return f"{prefix}-{secrets.token_hex(5)}"


def validate_user_settable(resource_id: str) -> None:
    if not _USER_SETTABLE_ID.match(resource_id):
        raise InvalidArgument(
            f"resource ID {resource_id!r} must be 1-63 characters of lowercase "
            "letters, digits or hyphens, start with a letter and not end with "
            "a hyphen"
        )


def validate_resource_name(name: str) -> None:
    """Check ``name`` is a well formed resource name (AIP-122)."""

    if not name:
        raise InvalidArgument("resource name must not be empty")
    path = name
    if name.startswith("//"):
        authority, _, path = name[2:].partition("/")
        if not authority or not path:
            raise InvalidArgument(f"resource name {name!r} has no path")
    for segment in path.split("/"):
        if not segment or not _NAME_SEGMENT.match(segment):
            raise InvalidArgument(
                f"resource name {name!r} contains an invalid segment {segment!r}"
            )
