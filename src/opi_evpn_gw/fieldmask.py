"""Required-field checks and update mask handling for SVI messages.

Update masks use the AIP-134 path syntax relative to the resource, for
example ``spec.mac_address``.  ``*`` (or an empty mask) selects every field.
"""

from __future__ import annotations

import copy
from dataclasses import fields
from typing import Optional, Sequence

from .exceptions import InvalidArgument
from .models import Svi, SviSpec

WILDCARD = "*"

SPEC_FIELDS = frozenset(f.name for f in fields(SviSpec))
# ``name`` identifies the resource and ``status`` is output only.
IMMUTABLE_PATHS = frozenset({"name", "status"})


def validate_required_fields(svi: Optional[Svi]) -> None:
    if svi is None or svi.spec is None:
        raise InvalidArgument("missing required field: svi.spec")
    if not svi.spec.logical_bridge:
        raise InvalidArgument("missing required field: svi.spec.logical_bridge")
    if not svi.spec.vrf:
        raise InvalidArgument("missing required field: svi.spec.vrf")
    if not svi.spec.gw_ip_prefix:
        raise InvalidArgument("missing required field: svi.spec.gw_ip_prefix")


def validate_update_mask(paths: Optional[Sequence[str]]) -> None:
    if not paths:
        return
    if WILDCARD in paths and len(paths) > 1:
        raise InvalidArgument("wildcard update mask must be the only path")
    for path in paths:
        if path in (WILDCARD, "spec"):
            continue
        if path in IMMUTABLE_PATHS:
            raise InvalidArgument(f"field {path!r} cannot be updated")
        head, _, tail = path.partition(".")
        if head != "spec" or tail not in SPEC_FIELDS:
            raise InvalidArgument(f"invalid update mask path {path!r}")


def masked_fields(paths: Optional[Sequence[str]]) -> frozenset:
    """Return the spec field names selected by ``paths``."""

    if not paths or WILDCARD in paths or "spec" in paths:
        return SPEC_FIELDS
    return frozenset(path.partition(".")[2] for path in paths)


def merge_spec(
    current: SviSpec, update: SviSpec, paths: Optional[Sequence[str]]
) -> SviSpec:
    """Copy the masked fields of ``update`` onto a copy of ``current``."""

    merged = copy.deepcopy(current)
    for name in masked_fields(paths):
        setattr(merged, name, copy.deepcopy(getattr(update, name)))
    return merged
