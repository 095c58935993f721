"""Markdown rendering of run statistics.

Two artifacts share the same stats block: the sticky PR comment and the job
summary. The sticky marker is not added here; placing it is the publisher's
job (see kachelens_core.gh.comments).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from kachelens_core.stats import RunStats

logger = logging.getLogger(__name__)

TOP_MISSES_LIMIT = 10
_KEY_DISPLAY_LENGTH = 12
_BYTE_UNITS = ("B", "KB", "MB", "GB")

COMMENT_TITLE = "### kache build cache"
SUMMARY_HEADING = "## Kache Build Cache"
ATTRIBUTION = "*Posted by [kache-action](https://github.com/kunobi-ninja/kache-action)*"


def format_ms(ms: int) -> str:
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.1f}s"


def format_bytes(size: int) -> str:
    """Scale ``size`` to the largest unit (up to GB) whose value is at least 1."""
    if size <= 0:
        return "0 B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_BYTE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {_BYTE_UNITS[unit]}"


def format_duration(seconds: float | None) -> str:
    if seconds is None:
        return "?s"
    return f"{seconds:.1f}s"


def render_headline(stats: RunStats) -> str:
    return (
        f"**{stats.hit_rate_percent}%** hit rate — "
        f"{stats.hit_count}/{stats.total_count} crates from cache, {stats.miss_count} compiled"
    )


def _render_misses(stats: RunStats) -> list[str]:
    top = stats.top_misses[:TOP_MISSES_LIMIT]
    has_keys = any(m.cache_key for m in top)
    columns = 4 if has_keys else 3

    lines = ["", "<details>", f"<summary>Cache misses ({stats.miss_count} crates)</summary>", ""]
    if has_keys:
        lines.append("| Crate | Compile time | Size | Key |")
        lines.append("|-------|-------------|------|-----|")
    else:
        lines.append("| Crate | Compile time | Size |")
        lines.append("|-------|-------------|------|")

    for miss in top:
        row = f"| `{miss.unit_name}` | {format_ms(miss.elapsed_ms)} | {format_bytes(miss.size_bytes)} |"
        if has_keys:
            key = f"`{miss.cache_key[:_KEY_DISPLAY_LENGTH]}` " if miss.cache_key else ""
            row += f" {key}|"
        lines.append(row)

    remaining = len(stats.top_misses) - TOP_MISSES_LIMIT
    if remaining > 0:
        lines.append(f"| *... {remaining} more* " + "| " * (columns - 1) + "|")

    lines.extend(["", "</details>"])
    return lines


def render_summary(stats: RunStats, backend_label: str, duration_seconds: float | None) -> str:
    """Render the metrics table plus the collapsed list of the slowest misses."""
    lines = [
        "| Metric | Value |",
        "|--------|-------|",
        f"| Hit rate | {stats.hit_rate_percent}% |",
        f"| Local hits | {stats.local_hit_count} |",
        f"| Remote hits | {stats.remote_hit_count} |",
        f"| Misses | {stats.miss_count} |",
    ]
    if stats.error_count > 0:
        lines.append(f"| Errors | {stats.error_count} |")
    lines.append(f"| Total crates | {stats.total_count} |")
    lines.append(f"| Backend | {backend_label} |")
    lines.append(f"| Duration | {format_duration(duration_seconds)} |")

    if stats.top_misses:
        lines.extend(_render_misses(stats))

    return "\n".join(lines)


def render_comment(stats: RunStats, backend_label: str, duration_seconds: float | None) -> str:
    """Render the PR comment body (without the sticky marker)."""
    return "\n".join(
        [
            COMMENT_TITLE,
            "",
            render_headline(stats),
            "",
            render_summary(stats, backend_label, duration_seconds),
            "",
            ATTRIBUTION,
        ]
    )


def render_degraded(backend_label: str, duration_seconds: float | None) -> str:
    return f"**Backend:** {backend_label} | **Duration:** {format_duration(duration_seconds)}"


def render_job_summary(stats: RunStats | None, backend_label: str, duration_seconds: float | None) -> str:
    """Render the job summary; falls back to backend + duration when there is no data."""
    lines = [SUMMARY_HEADING, ""]
    if stats is not None and stats.total_count > 0:
        lines.append(render_headline(stats))
        lines.append("")
        lines.append(render_summary(stats, backend_label, duration_seconds))
    else:
        lines.append(render_degraded(backend_label, duration_seconds))
    return "\n".join(lines) + "\n"


def write_job_summary(markdown: str, path: str | Path | None = None) -> bool:
    """Append ``markdown`` to the job summary file.

    Uses ``$GITHUB_STEP_SUMMARY`` unless a path is given. Returns False when
    there is nowhere to write (not running under GitHub Actions).
    """
    target = path or os.environ.get("GITHUB_STEP_SUMMARY")
    if not target:
        logger.debug("No job summary sink configured")
        return False
    with open(target, "a", encoding="utf-8") as f:
        f.write(markdown)
    return True
