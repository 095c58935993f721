"""report command — the post-build step.

Everything here runs after the build already succeeded or failed on its own
merits, so no failure in this step may change the job's outcome: errors are
downgraded to warnings and the command exits 0.
"""

from __future__ import annotations

import os
import time

import click
from rich.console import Console

from kachelens_cli.commands.key import compute_descriptor
from kachelens_core import annotations
from kachelens_core.events import event_log_path, read_event_log
from kachelens_core.gh.comments import get_repo, load_event, publish, resolve_thread_id
from kachelens_core.report import render_comment, render_job_summary, write_job_summary
from kachelens_core.run_context import RunContext, load_run_context
from kachelens_core.stats import RunStats, aggregate

console = Console()


def _save_cache(config: dict, backend, workspace: str, context: RunContext | None) -> None:
    try:
        descriptor = compute_descriptor(config, workspace)
    except OSError as e:
        annotations.warning(f"Could not compute cache key ({e}); skipping cache save")
        return
    if context is not None and context.cache_key and context.cache_key != descriptor.primary_key:
        annotations.info(f"Lockfiles changed during the build; saving under {descriptor.primary_key}")
    backend.save(descriptor)


def _post_comment(
    config: dict,
    stats: RunStats,
    backend_label: str,
    duration: float | None,
    repo_name: str | None,
) -> None:
    thread_id = resolve_thread_id(load_event())
    if thread_id is None:
        annotations.info("Not a PR context, skipping comment")
        return

    token = config.get("github_token")
    repo_name = repo_name or os.environ.get("GITHUB_REPOSITORY")
    if not token or not repo_name:
        annotations.warning("Skipping PR comment — no GitHub token or repository available")
        return

    body = render_comment(stats, backend_label, duration)
    try:
        result = publish(body, thread_id, get_repo(repo_name, token))
    except Exception as e:
        annotations.warning(f"Failed to post PR comment: {type(e).__name__}: {e}")
        return

    if result.reason == "permission-denied":
        annotations.info("Skipping PR comment — token lacks pull-requests: write permission")
    elif result.action == "skipped":
        annotations.info(f"Skipping PR comment ({result.reason})")
    else:
        annotations.info(f"{result.action.capitalize()} PR comment #{result.comment_id}")


@click.command("report")
@click.option(
    "--workspace",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory searched for lockfiles.",
)
@click.option(
    "--repo",
    "repo_name",
    default=None,
    help="GitHub repository (owner/name). Defaults to $GITHUB_REPOSITORY.",
)
@click.pass_context
def report_cmd(ctx, workspace: str, repo_name: str | None):
    """Save the kache store and report this run's cache effectiveness.

    Posts (or updates) a single sticky comment on the pull request and appends
    the statistics to the job summary.
    """
    from kachelens_cli.cli import build_backend

    config = ctx.obj["config"]

    try:
        try:
            context = load_run_context(config["state_path"])
        except ValueError as e:
            annotations.warning(str(e))
            context = None

        backend = build_backend(config, name=context.backend) if context else ctx.obj["backend"]
        duration = time.time() - context.started_at if context else None

        _save_cache(config, backend, workspace, context)

        records = read_event_log(event_log_path(config.get("cache_dir")))
        stats = aggregate(records) if records else None

        if stats is not None and stats.total_count > 0 and config.get("comment", True):
            _post_comment(config, stats, backend.label, duration, repo_name)

        summary = render_job_summary(stats, backend.label, duration)
        if not write_job_summary(summary):
            console.print(summary, markup=False, highlight=False)
    except Exception as e:
        annotations.warning(f"kachelens report failed: {type(e).__name__}: {e}")
