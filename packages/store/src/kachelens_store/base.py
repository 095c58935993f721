"""Abstract persistence backend interface.

A backend moves the kache cache directory in and out of an ephemeral runner.
The CLI depends on BaseBackend, not on a concrete backend, so S3 sync, the
archive run cache and "no persistence" are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kachelens_core.keys import CacheKeyDescriptor


class BaseBackend(ABC):
    """Pluggable persistence for the kache store.

    Implementations must never raise from restore() or save(): a failed
    transfer is logged as a warning and the build carries on without it.
    """

    #: Human-readable name shown in reports.
    label: str = ""
    #: Short identifier recorded in the run context.
    name: str = ""

    @abstractmethod
    def restore(self, descriptor: CacheKeyDescriptor) -> str | None:
        """Restore the cache; return the key that matched, or None on a miss."""

    @abstractmethod
    def save(self, descriptor: CacheKeyDescriptor) -> None:
        """Persist the cache under ``descriptor.primary_key``."""
