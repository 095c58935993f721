"""Cache key derivation for the persisted kache store.

The key has the shape ``<prefix>-<tool_version>-<platform>-<lock_hash>`` and a
single fallback prefix ``<prefix>-<tool_version>-<platform>-`` used for partial
restores. The tool version is part of both: persisted caches are immutable, so
a kache upgrade (which may change how kache itself computes artifact keys) has
to make older snapshots unreachable rather than restore them.

The key is computed twice per run, once by ``setup`` before restoring and once
by ``report`` before saving. Both must see identical inputs, which is why the
lockfiles are always visited in sorted order.
"""

from __future__ import annotations

import fnmatch
import hashlib
import os
import platform
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

NO_LOCKFILE = "no-lockfile"
DEFAULT_LOCKFILE_PATTERN = "**/Cargo.lock"

_LOCK_HASH_LENGTH = 16
_CHUNK_SIZE = 64 * 1024

# Runner vocabulary, so keys stay compatible with caches saved by the JS action.
_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


@dataclass(frozen=True)
class CacheKeyDescriptor:
    """Identity of a persisted cache snapshot."""

    primary_key: str
    fallback_prefixes: tuple[str, ...] = field(default_factory=tuple)


def platform_id() -> str:
    """Return ``<os>-<arch>`` for the current runner, e.g. ``linux-x64``."""
    os_name = sys.platform
    if os_name.startswith("linux"):
        os_name = "linux"
    machine = platform.machine().lower()
    return f"{os_name}-{_ARCH_ALIASES.get(machine, machine)}"


def discover_lockfiles(workspace: str | Path, pattern: str = DEFAULT_LOCKFILE_PATTERN) -> list[Path]:
    """Return every lockfile under ``workspace`` matching ``pattern``.

    Symlinks are not followed: symlinked files are skipped and symlinked
    directories are not descended into, so nothing outside the workspace can
    leak into the key. ``**/`` also matches at the workspace root.
    """
    root = Path(workspace)
    patterns = [pattern]
    if pattern.startswith("**/"):
        patterns.append(pattern[3:])

    found = []
    for dirpath, _dirnames, filenames in os.walk(root, followlinks=False):
        for name in filenames:
            path = Path(dirpath, name)
            rel = path.relative_to(root).as_posix()
            if path.is_symlink() or not any(fnmatch.fnmatchcase(rel, p) for p in patterns):
                continue
            found.append(path)
    return found


def hash_lockfiles(lockfile_paths: Iterable[str | Path]) -> str:
    """Return the truncated SHA-256 of all lockfile contents, or ``no-lockfile``.

    Raises OSError if any lockfile can't be read. A partial hash would produce
    a key that silently never matches, so there is no fallback here.
    """
    paths = sorted(str(p) for p in lockfile_paths)
    if not paths:
        return NO_LOCKFILE

    hasher = hashlib.sha256()
    for path in paths:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                hasher.update(chunk)
    return hasher.hexdigest()[:_LOCK_HASH_LENGTH]


def derive_key(
    prefix: str,
    tool_version: str,
    platform_name: str,
    lockfile_paths: Iterable[str | Path],
) -> CacheKeyDescriptor:
    """Build the primary key and fallback prefixes for this run's dependency state."""
    if not prefix:
        raise ValueError("Cache key prefix must not be empty.")
    version = tool_version or "unknown"

    base = f"{prefix}-{version}-{platform_name}-"
    return CacheKeyDescriptor(
        primary_key=base + hash_lockfiles(lockfile_paths),
        fallback_prefixes=(base,),
    )
