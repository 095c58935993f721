"""Reduce a run's outcome records into hit/miss statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from kachelens_core.events import OutcomeRecord, OutcomeResult


@dataclass(frozen=True)
class RunStats:
    """Aggregate view of one build.

    ``total_count`` covers hits and misses only; errors are tracked separately
    and do not count against the hit rate.
    """

    total_count: int = 0
    local_hit_count: int = 0
    remote_hit_count: int = 0
    hit_count: int = 0
    miss_count: int = 0
    error_count: int = 0
    hit_rate_percent: str = "0.0"
    top_misses: tuple[OutcomeRecord, ...] = field(default_factory=tuple)


def hit_rate(hits: int, total: int) -> str:
    if total <= 0:
        return "0.0"
    return f"{hits / total * 100:.1f}"


def aggregate(records: Iterable[OutcomeRecord]) -> RunStats:
    counts = {result: 0 for result in OutcomeResult}
    misses: list[OutcomeRecord] = []

    for record in records:
        counts[record.result] += 1
        if record.result is OutcomeResult.MISS:
            misses.append(record)

    local_hits = counts[OutcomeResult.LOCAL_HIT]
    remote_hits = counts[OutcomeResult.REMOTE_HIT]
    miss_count = counts[OutcomeResult.MISS]
    total = local_hits + remote_hits + miss_count
    hits = local_hits + remote_hits

    # sorted() is stable, so equally slow crates keep their log order.
    misses = sorted(misses, key=lambda r: r.elapsed_ms, reverse=True)

    return RunStats(
        total_count=total,
        local_hit_count=local_hits,
        remote_hit_count=remote_hits,
        hit_count=hits,
        miss_count=miss_count,
        error_count=counts[OutcomeResult.ERROR],
        hit_rate_percent=hit_rate(hits, total),
        top_misses=tuple(misses),
    )
