"""Operator-facing messages.

Under GitHub Actions, warnings are emitted as workflow commands so they show up
as annotations on the run. Locally they go to the rich console instead.
"""

from __future__ import annotations

import logging
import os
import sys

from rich.console import Console

console = Console()
logger = logging.getLogger(__name__)


def in_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def escape_workflow_command(value: str) -> str:
    """Escape a message for a ``::warning::`` style workflow command."""
    return str(value).replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def info(message: str) -> None:
    logger.info(message)
    console.print(message, markup=False, highlight=False)


def warning(message: str) -> None:
    logger.warning(message)
    if in_github_actions():
        sys.stdout.write(f"::warning::{escape_workflow_command(message)}\n")
        sys.stdout.flush()
    else:
        console.print(f"[yellow]Warning: {message}[/yellow]")


def notice(message: str) -> None:
    logger.info(message)
    if in_github_actions():
        sys.stdout.write(f"::notice::{escape_workflow_command(message)}\n")
        sys.stdout.flush()
    else:
        console.print(f"[cyan]{message}[/cyan]")
