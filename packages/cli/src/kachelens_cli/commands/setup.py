"""setup command — the pre-build step."""

from __future__ import annotations

import time

import click

from kachelens_cli.commands.key import compute_descriptor
from kachelens_core import annotations
from kachelens_core.events import clear_event_log, event_log_path
from kachelens_core.run_context import RunContext, save_run_context


@click.command("setup")
@click.option(
    "--workspace",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory searched for lockfiles.",
)
@click.pass_context
def setup_cmd(ctx, workspace: str):
    """Restore the kache store and start capturing this run's events.

    \b
    1. Derive the cache key from the workspace lockfiles.
    2. Restore the store through the configured backend.
    3. Truncate kache's event log.
    4. Write the run context consumed by `kachelens report`.
    """
    config = ctx.obj["config"]
    backend = ctx.obj["backend"]
    started_at = time.time()

    # An unreadable lockfile means no trustworthy key: build cold rather than fail.
    try:
        descriptor = compute_descriptor(config, workspace)
    except OSError as e:
        annotations.warning(f"Could not compute cache key ({e}); continuing without a restored cache")
        descriptor = None

    restored_key = None
    if descriptor is not None:
        restored_key = backend.restore(descriptor)

    if clear_event_log(event_log_path(config.get("cache_dir"))):
        annotations.info("Cleared kache event log")

    save_run_context(
        RunContext(
            started_at=started_at,
            backend=backend.name,
            tool_version=config["tool_version"],
            cache_key=descriptor.primary_key if descriptor else "",
            restored_key=restored_key,
        ),
        config["state_path"],
    )
