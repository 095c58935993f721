"""stats command — inspect the current event log in the terminal."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from kachelens_core.events import event_log_path, read_event_log
from kachelens_core.report import format_bytes, format_ms
from kachelens_core.stats import aggregate

console = Console()


@click.command("stats")
@click.option("--log", "log_path", default=None, help="Path to events.jsonl. Defaults to kache's cache directory.")
@click.option("--top", default=10, show_default=True, help="Number of slowest misses to show.")
@click.pass_context
def stats_cmd(ctx, log_path: str | None, top: int):
    """Show hit/miss statistics for the events recorded since the last setup.

    Useful while iterating locally: run a build with RUSTC_WRAPPER=kache and
    see which crates missed the cache and how long they took to compile.
    """
    config = ctx.obj.get("config", {}) if ctx.obj else {}
    path = log_path or event_log_path(config.get("cache_dir"))

    records = read_event_log(path)
    if not records:
        console.print(f"[yellow]No events found in {path}.[/yellow]")
        return

    stats = aggregate(records)

    console.print("\n[bold]kache build cache[/bold]")
    console.print(f"  Hit rate:     {stats.hit_rate_percent}%")
    console.print(f"  Local hits:   {stats.local_hit_count}")
    console.print(f"  Remote hits:  {stats.remote_hit_count}")
    console.print(f"  Misses:       {stats.miss_count}")
    if stats.error_count:
        console.print(f"  [red]Errors:       {stats.error_count}[/red]")
    console.print(f"  Total crates: {stats.total_count}")

    if stats.top_misses:
        table = Table(title=f"Top {top} Slowest Misses", show_header=True)
        table.add_column("Crate", style="bold")
        table.add_column("Compile time", justify="right")
        table.add_column("Size", justify="right")
        table.add_column("Key", style="dim")
        for miss in stats.top_misses[:top]:
            table.add_row(
                miss.unit_name,
                format_ms(miss.elapsed_ms),
                format_bytes(miss.size_bytes),
                miss.cache_key[:12],
            )
        console.print(table)
