"""Parsing of kache's ``events.jsonl`` build event log.

kache appends one JSON object per compiled crate while the build runs:

    {"result": "miss", "crate_name": "serde", "elapsed_ms": 4200, "size": 1048576, "cache_key": "ab12..."}

The log is written by a separate process, so the final line may be torn if it
is read mid-write. Each line is decoded on its own into an optional record and
the caller filters out the ``None``s; a bad line never aborts the parse.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

EVENT_LOG_NAME = "events.jsonl"


class OutcomeResult(str, Enum):
    LOCAL_HIT = "local_hit"
    REMOTE_HIT = "remote_hit"
    MISS = "miss"
    ERROR = "error"


@dataclass(frozen=True)
class OutcomeRecord:
    """One crate compile (or cache restore) observed during the build."""

    result: OutcomeResult
    unit_name: str
    elapsed_ms: int = 0  # only meaningful for misses
    size_bytes: int = 0  # only meaningful for misses
    cache_key: str = ""


def _non_negative_int(value) -> int:
    # bool is an int subclass; a stray true/false is not a duration.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(int(value), 0)


def decode_line(line: str) -> OutcomeRecord | None:
    """Decode one log line, or return None if it isn't a usable record."""
    line = line.strip()
    if not line:
        return None
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    try:
        result = OutcomeResult(data.get("result"))
    except ValueError:
        return None

    return OutcomeRecord(
        result=result,
        unit_name=str(data.get("crate_name") or ""),
        elapsed_ms=_non_negative_int(data.get("elapsed_ms")),
        size_bytes=_non_negative_int(data.get("size")),
        cache_key=str(data.get("cache_key") or ""),
    )


def parse_log(raw_text: str | None) -> list[OutcomeRecord]:
    """Return every decodable record in encounter order.

    An empty list means "no run data" and is not an error.
    """
    if not raw_text:
        return []
    records = [decode_line(line) for line in raw_text.splitlines()]
    return [r for r in records if r is not None]


def default_cache_dir() -> Path:
    """Return kache's local cache directory (mirrors kache's own default)."""
    override = os.environ.get("KACHE_CACHE_DIR")
    if override:
        return Path(override)
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Caches" / "kache"
    return home / ".cache" / "kache"


def event_log_path(cache_dir: str | Path | None = None) -> Path:
    return Path(cache_dir) / EVENT_LOG_NAME if cache_dir else default_cache_dir() / EVENT_LOG_NAME


def read_event_log(path: str | Path) -> list[OutcomeRecord]:
    """Read and parse the event log at ``path``; a missing log yields []."""
    p = Path(path)
    if not p.exists():
        logger.debug("No event log at %s", p)
        return []
    return parse_log(p.read_text(encoding="utf-8", errors="replace"))


def clear_event_log(path: str | Path) -> bool:
    """Truncate the event log so only this run's events are captured.

    Returns False when the log can't be written yet (kache has not created its
    cache directory); kache will create the file itself on first use.
    """
    try:
        Path(path).write_text("", encoding="utf-8")
    except (FileNotFoundError, NotADirectoryError):
        return False
    return True
