"""Watcher implementations used by the EVPN gateway agent."""

from .file import FileSviWatcher  # noqa: F401

__all__ = ["FileSviWatcher"]
