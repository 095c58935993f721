"""Local-only backend — the default when no remote persistence is configured.

kache still caches within the runner; nothing survives the job. Using a
backend object rather than None lets the CLI always call restore()/save().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from kachelens_store.base import BaseBackend

if TYPE_CHECKING:
    from kachelens_core.keys import CacheKeyDescriptor


class LocalOnlyBackend(BaseBackend):
    label = "local only"
    name = "local"

    def restore(self, descriptor: CacheKeyDescriptor) -> str | None:
        return None

    def save(self, descriptor: CacheKeyDescriptor) -> None:
        pass  # intentional no-op
