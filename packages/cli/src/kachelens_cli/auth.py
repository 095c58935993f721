"""GitHub token resolution for the sticky PR comment.

Only ``report`` needs a token, and only to post the comment; the job summary
and the cache save work without one. Inside Actions the workflow passes its
token through the environment. Outside Actions (re-rendering a run's comment
from a developer machine against a PR, for example) an existing ``gh auth
login`` session is reused, so nobody has to mint a PAT just to preview a report.

Sources, first match wins:
  1. GITHUB_TOKEN
  2. GH_TOKEN (the variable the gh CLI itself reads)
  3. ``gh auth token``
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
_GH_TIMEOUT_SECONDS = 5


def _token_from_gh_cli() -> str | None:
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=_GH_TIMEOUT_SECONDS,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    token = result.stdout.strip()
    return token if result.returncode == 0 and token else None


def resolve_github_token() -> str | None:
    """Return a token for posting the PR comment, or None. Never raises.

    A missing token is not an error: ``report`` then skips the comment with a
    warning and still writes the job summary.
    """
    for var in _ENV_VARS:
        token = os.environ.get(var)
        if token:
            logger.debug("Using GitHub token from %s.", var)
            return token

    token = _token_from_gh_cli()
    if token:
        logger.debug("Using GitHub token from the gh CLI session.")
    return token
