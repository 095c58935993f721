"""S3SyncBackend — remote cache via kache's own ``sync`` sub-command.

kache talks to S3 itself (bucket, region and credentials come from the
``KACHE_S3_*`` variables exported at setup), so this backend only drives the
CLI. The cache key is not used for S3: kache syncs individual artifacts by
their content keys.
"""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from kachelens_core import annotations
from kachelens_store.base import BaseBackend

if TYPE_CHECKING:
    from kachelens_core.keys import CacheKeyDescriptor

logger = logging.getLogger(__name__)


def run_kache(args: list[str], binary: str = "kache") -> str:
    """Run a kache sub-command and return its stdout.

    Non-zero exits and a missing binary are reported as warnings, never raised.
    """
    cmd = [binary, *args]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        annotations.warning(f"{binary} not found on PATH; skipping `{' '.join(cmd)}`")
        return ""

    if result.returncode != 0:
        annotations.warning(f"{' '.join(cmd)} exited with code {result.returncode}")
        if result.stderr:
            annotations.warning(result.stderr.strip())
    return result.stdout


class S3SyncBackend(BaseBackend):
    label = "S3"
    name = "s3"

    def __init__(self, sync: bool = True, manifest_key: str | None = None, binary: str = "kache"):
        self._sync = sync
        self._manifest_key = manifest_key
        self._binary = binary

    def restore(self, descriptor: CacheKeyDescriptor) -> str | None:
        if not self._sync:
            logger.debug("S3 pull disabled (sync: false)")
            return None
        annotations.info("Pulling remote cache from S3...")
        run_kache(["sync", "--pull"], binary=self._binary)
        return None

    def save(self, descriptor: CacheKeyDescriptor) -> None:
        # The manifest records which keys this build used so the next run can warm them.
        args = ["save-manifest"]
        if self._manifest_key:
            args += ["--manifest-key", self._manifest_key]
        annotations.info("Saving build manifest...")
        run_kache(args, binary=self._binary)

        annotations.info("Pushing cache to S3...")
        run_kache(["sync", "--push"], binary=self._binary)
