"""Page size and page token helpers for list operations."""

from __future__ import annotations

import logging
import uuid
from threading import Lock
from typing import Dict, List, Sequence, Tuple, TypeVar

from .exceptions import InvalidArgument, NotFound

LOG = logging.getLogger(__name__)

MAX_PAGE_SIZE = 250
DEFAULT_PAGE_SIZE = 50

T = TypeVar("T")


class PageTokens:
    """Opaque page tokens mapped to list offsets; a token is spent once read."""

    def __init__(self) -> None:
        self._offsets: Dict[str, int] = {}
        self._lock = Lock()

    def issue(self, offset: int) -> str:
        token = str(uuid.uuid4())
        with self._lock:
            self._offsets[token] = offset
        return token

    def offset(self, token: str) -> int:
        with self._lock:
            try:
                offset = self._offsets.pop(token)
            except KeyError:
                raise NotFound(f"pagination token {token}") from None
        LOG.debug("Found offset %d from pagination token: %s", offset, token)
        return offset


def extract_pagination(
    page_size: int, page_token: str, tokens: PageTokens
) -> Tuple[int, int]:
    """Return ``(size, offset)`` for a list request."""

    if page_size < 0:
        raise InvalidArgument("negative page size is not allowed")
    if page_size == 0:
        size = DEFAULT_PAGE_SIZE
    else:
        size = min(page_size, MAX_PAGE_SIZE)
    offset = tokens.offset(page_token) if page_token else 0
    return size, offset


def limit_pagination(
    items: Sequence[T], offset: int, size: int
) -> Tuple[List[T], bool]:
    """Slice ``items`` and report whether more elements follow."""

    end = offset + size
    has_more = end < len(items)
    return list(items[offset:min(end, len(items))]), has_more
