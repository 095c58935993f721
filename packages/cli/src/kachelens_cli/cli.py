"""CLI entry point for kachelens.

Commands:
  setup   — pre-build step: derive the cache key, restore, clear the event log
  report  — post-build step: save, aggregate events, post the PR comment and job summary
  key     — print the cache key for the current workspace
  stats   — show hit/miss statistics for the current event log
"""

from __future__ import annotations

import importlib.metadata
import logging

import click

from kachelens_cli.commands.key import key_cmd
from kachelens_cli.commands.report import report_cmd
from kachelens_cli.commands.setup import setup_cmd
from kachelens_cli.commands.stats import stats_cmd
from kachelens_core import annotations


def build_backend(config: dict, name: str | None = None):
    """Instantiate the persistence backend for this run.

    Backend selection hierarchy:
      s3_bucket set                          → S3SyncBackend
      github_cache: true + cache_archive_dir → ArchiveBackend
      (otherwise)                            → LocalOnlyBackend

    ``name`` forces a specific backend; the report step passes the one
    recorded by setup so both phases agree.
    """
    from kachelens_core.events import default_cache_dir
    from kachelens_store.noop import LocalOnlyBackend

    if name is None:
        if config.get("s3_bucket"):
            name = "s3"
        elif config.get("github_cache"):
            name = "github-cache"
        else:
            name = "local"

    if name == "s3":
        from kachelens_store.s3 import S3SyncBackend

        return S3SyncBackend(sync=bool(config.get("sync", True)), manifest_key=config.get("manifest_key"))

    if name == "github-cache":
        archive_dir = config.get("cache_archive_dir")
        if not archive_dir:
            annotations.warning("github_cache requires cache_archive_dir. Falling back to local only.")
            return LocalOnlyBackend()

        from kachelens_store.archive import ArchiveBackend

        return ArchiveBackend(archive_dir=archive_dir, cache_dir=config.get("cache_dir") or default_cache_dir())

    return LocalOnlyBackend()


@click.group()
@click.version_option(
    version=importlib.metadata.version("kachelens"),
    prog_name="kachelens",
)
@click.option(
    "--config",
    "config_path",
    default=".kachelens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="KACHELENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Build cache persistence and hit-rate reporting for kache."""
    from kachelens_cli.auth import resolve_github_token
    from kachelens_core.config import load_config

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    token = resolve_github_token()
    if token:
        config["github_token"] = token

    ctx.obj["config"] = config
    ctx.obj["backend"] = build_backend(config)


main.add_command(setup_cmd)
main.add_command(report_cmd)
main.add_command(key_cmd)
main.add_command(stats_cmd)
