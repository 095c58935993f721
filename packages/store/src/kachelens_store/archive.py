"""ArchiveBackend — keyed, write-once snapshots of the kache directory.

Each save writes ``<archive_dir>/<primary_key>.tar.gz``. Restore takes the
exact key if present, otherwise the most recently written archive whose name
starts with one of the fallback prefixes. Snapshots are never overwritten, the
same way the GitHub Actions cache treats keys as immutable: a new lockfile
state or kache version produces a new key instead.

Suitable for self-hosted runners with a shared volume, or any run cache that
can be mounted as a directory.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
import zlib
from pathlib import Path
from typing import TYPE_CHECKING

from kachelens_core import annotations
from kachelens_store.base import BaseBackend

if TYPE_CHECKING:
    from kachelens_core.keys import CacheKeyDescriptor

logger = logging.getLogger(__name__)

_SUFFIX = ".tar.gz"

# gzip raises EOFError on a truncated stream and zlib.error on corrupt blocks.
_READ_ERRORS = (OSError, EOFError, zlib.error, tarfile.TarError)


class ArchiveBackend(BaseBackend):
    label = "GitHub Actions cache"
    name = "github-cache"

    def __init__(self, archive_dir: str | Path, cache_dir: str | Path):
        self._archive_dir = Path(archive_dir)
        self._cache_dir = Path(cache_dir)

    def _archive_path(self, key: str) -> Path:
        return self._archive_dir / f"{key}{_SUFFIX}"

    def find_archive(self, descriptor: CacheKeyDescriptor) -> tuple[str, Path] | None:
        """Return (matched_key, path) for the best snapshot, or None."""
        exact = self._archive_path(descriptor.primary_key)
        if exact.is_file():
            return descriptor.primary_key, exact
        if not self._archive_dir.is_dir():
            return None

        for prefix in descriptor.fallback_prefixes:
            candidates = [
                p for p in self._archive_dir.iterdir() if p.name.startswith(prefix) and p.name.endswith(_SUFFIX)
            ]
            if candidates:
                newest = max(candidates, key=lambda p: p.stat().st_mtime)
                return newest.name[: -len(_SUFFIX)], newest
        return None

    def restore(self, descriptor: CacheKeyDescriptor) -> str | None:
        annotations.info(f"Cache key: {descriptor.primary_key}")
        try:
            match = self.find_archive(descriptor)
            if match is None:
                annotations.info("Cache miss")
                return None
            key, path = match
            self._extract(path)
        except _READ_ERRORS as e:
            annotations.warning(f"Cache restore failed: {e}")
            return None

        annotations.info(f"Cache restored from key: {key}")
        return key

    def _extract(self, path: Path) -> None:
        """Unpack ``path`` into the cache dir, or leave the cache dir untouched.

        The archive is extracted into a sibling staging directory first and only
        merged in once every member has been read.
        """
        self._cache_dir.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(dir=self._cache_dir.parent, prefix=".kachelens-restore-"))
        try:
            with tarfile.open(path, "r:gz") as tar:
                if hasattr(tarfile, "data_filter"):
                    tar.extractall(staging, filter="data")
                else:
                    tar.extractall(staging)
            if self._cache_dir.exists():
                shutil.copytree(staging, self._cache_dir, dirs_exist_ok=True)
            else:
                os.replace(staging, self._cache_dir)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    def save(self, descriptor: CacheKeyDescriptor) -> None:
        if not self._cache_dir.is_dir():
            annotations.info("No kache cache directory to save")
            return

        target = self._archive_path(descriptor.primary_key)
        if target.exists():
            annotations.info("Cache already up to date")
            return

        try:
            self._archive_dir.mkdir(parents=True, exist_ok=True)
            # Write to a temp file first so a concurrent restore never sees a partial archive.
            fd, tmp_name = tempfile.mkstemp(dir=self._archive_dir, suffix=".partial")
            os.close(fd)
            try:
                with tarfile.open(tmp_name, "w:gz") as tar:
                    for entry in sorted(self._cache_dir.iterdir()):
                        tar.add(entry, arcname=entry.name)
                os.replace(tmp_name, target)
            finally:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
        except (OSError, tarfile.TarError) as e:
            annotations.warning(f"Cache save failed: {e}")
            return

        annotations.info(f"Cache saved with key: {descriptor.primary_key}")
