"""key command — print the cache key for a workspace."""

from __future__ import annotations

import click
from rich.console import Console

from kachelens_core.keys import CacheKeyDescriptor, derive_key, discover_lockfiles, platform_id

console = Console()


def compute_descriptor(config: dict, workspace: str) -> CacheKeyDescriptor:
    """Derive the key from config and the lockfiles under ``workspace``.

    Shared by setup and report so both phases hash the same inputs the same way.
    Raises OSError if a lockfile can't be read.
    """
    lockfiles = discover_lockfiles(workspace, config["lockfile_pattern"])
    return derive_key(
        config["cache_key_prefix"],
        config["tool_version"],
        platform_id(),
        lockfiles,
    )


@click.command("key")
@click.option(
    "--workspace",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory searched for lockfiles.",
)
@click.pass_context
def key_cmd(ctx, workspace: str):
    """Print the cache key and restore prefixes for the workspace."""
    config = ctx.obj["config"]
    try:
        descriptor = compute_descriptor(config, workspace)
    except OSError as e:
        raise click.ClickException(f"Could not read lockfile: {e}")

    console.print(descriptor.primary_key, markup=False, highlight=False)
    for prefix in descriptor.fallback_prefixes:
        console.print(f"  fallback: {prefix}", markup=False, highlight=False)
