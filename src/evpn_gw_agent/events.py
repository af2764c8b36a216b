"""Desired-state events consumed by :class:`~evpn_gw_agent.handler.SviEventHandler`."""

from __future__ import annotations

from dataclasses import dataclass

from opi_evpn_gw.models import SviSpec


@dataclass(frozen=True)
class SviUpsert:
    """Represents the desired state for one SVI.

    Watchers publish the complete spec whenever it changes so the handler
    never has to merge partial documents.
    """

    svi_id: str
    spec: SviSpec


@dataclass(frozen=True)
class SviDelete:
    """Signals that an SVI should be removed entirely."""

    svi_id: str
