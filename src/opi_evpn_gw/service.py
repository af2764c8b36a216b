"""Request handlers for the SVI resource.

:class:`SviService` is the surface a transport binds to.  It checks request
shape and names, then hands over to :class:`~opi_evpn_gw.svi.SviOrchestrator`.
Failures propagate as :class:`~opi_evpn_gw.exceptions.EvpnGatewayError`
subclasses whose ``code`` tells the transport which status to return.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .exceptions import EvpnGatewayError, InvalidArgument
from .fieldmask import validate_required_fields
from .models import Svi
from .naming import validate_resource_name
from .pagination import PageTokens, extract_pagination, limit_pagination
from .svi import SviOrchestrator

LOG = logging.getLogger(__name__)


class SviService:
    def __init__(self, orchestrator: SviOrchestrator) -> None:
        self._orchestrator = orchestrator
        self._page_tokens = PageTokens()

    def create_svi(self, svi: Svi, svi_id: str = "") -> Svi:
        LOG.info("CreateSvi: Received from client: %s (id=%r)", svi, svi_id)
        try:
            validate_required_fields(svi)
            validate_resource_name(svi.spec.logical_bridge)
            validate_resource_name(svi.spec.vrf)
            response = self._orchestrator.create_svi(svi, svi_id)
        except EvpnGatewayError as exc:
            LOG.error("CreateSvi failed [%s]: %s", exc.code.value, exc)
            raise
        except Exception:
            LOG.exception("CreateSvi failed unexpectedly")
            raise
        LOG.info("CreateSvi: Sending to client: %s", response)
        return response

    def get_svi(self, name: str) -> Svi:
        LOG.info("GetSvi: Received from client: %s", name)
        try:
            _require_name(name)
            return self._orchestrator.get_svi(name)
        except EvpnGatewayError as exc:
            LOG.error("GetSvi failed [%s]: %s", exc.code.value, exc)
            raise

    def update_svi(
        self, svi: Svi, update_mask: Optional[Sequence[str]] = None
    ) -> Svi:
        LOG.info("UpdateSvi: Received from client: %s (mask=%s)", svi, update_mask)
        try:
            validate_required_fields(svi)
            _require_name(svi.name)
            response = self._orchestrator.update_svi(svi, update_mask)
        except EvpnGatewayError as exc:
            LOG.error("UpdateSvi failed [%s]: %s", exc.code.value, exc)
            raise
        LOG.info("UpdateSvi: Sending to client: %s", response)
        return response

    def delete_svi(self, name: str, allow_missing: bool = False) -> None:
        LOG.info("DeleteSvi: Received from client: %s (allow_missing=%s)", name, allow_missing)
        try:
            _require_name(name)
            self._orchestrator.delete_svi(name, allow_missing)
        except EvpnGatewayError as exc:
            LOG.error("DeleteSvi failed [%s]: %s", exc.code.value, exc)
            raise

    def list_svis(self, page_size: int = 0, page_token: str = "") -> Tuple[List[Svi], str]:
        """Return one page of SVIs and the token for the next page ("" when done)."""

        LOG.info("ListSvis: Received from client: size=%d token=%r", page_size, page_token)
        try:
            size, offset = extract_pagination(page_size, page_token, self._page_tokens)
        except EvpnGatewayError as exc:
            LOG.error("ListSvis failed [%s]: %s", exc.code.value, exc)
            raise
        page, has_more = limit_pagination(self._orchestrator.list_svis(), offset, size)
        next_token = self._page_tokens.issue(offset + size) if has_more else ""
        LOG.debug("Limiting result len(%d) to [%d:%d]", len(page), offset, offset + size)
        return page, next_token


def _require_name(name: str) -> None:
    if not name:
        raise InvalidArgument("missing required field: name")
    validate_resource_name(name)
