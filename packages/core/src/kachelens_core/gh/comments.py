"""Sticky pull request comment publishing.

Exactly one comment per pull request carries ``COMMENT_MARKER``. Re-runs find
it and edit it in place instead of posting another one. The lookup and the
create are not atomic, so two runs finishing at the same instant can still both
create a comment; that is acceptable for a report.

Only the first ``MAX_SCANNED_COMMENTS`` comments are scanned (one API page). On
a PR with a longer discussion an older sticky comment may be missed and a new
one posted.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from itertools import islice
from pathlib import Path

from github import Github, GithubException, RateLimitExceededException

logger = logging.getLogger(__name__)

COMMENT_MARKER = "<!-- kache-action-comment -->"
MAX_SCANNED_COMMENTS = 100

_PERMISSION_DENIED_TEXT = "Resource not accessible"


@dataclass(frozen=True)
class PublishResult:
    action: str  # "created" | "updated" | "skipped"
    comment_id: int | None = None
    reason: str | None = None

    @classmethod
    def created(cls, comment_id: int | None) -> PublishResult:
        return cls("created", comment_id=comment_id)

    @classmethod
    def updated(cls, comment_id: int | None) -> PublishResult:
        return cls("updated", comment_id=comment_id)

    @classmethod
    def skipped(cls, reason: str) -> PublishResult:
        return cls("skipped", reason=reason)


def get_repo(repo_name: str, token: str):
    return Github(token, per_page=MAX_SCANNED_COMMENTS).get_repo(repo_name)


def load_event(path: str | None = None) -> dict:
    """Return the workflow event payload, or {} outside GitHub Actions."""
    event_path = path or os.environ.get("GITHUB_EVENT_PATH")
    if not event_path:
        return {}
    try:
        data = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def resolve_thread_id(event: dict) -> int | None:
    """Return the pull request (or issue) number the run belongs to, if any."""
    for key in ("pull_request", "issue"):
        payload = event.get(key)
        number = payload.get("number") if isinstance(payload, dict) else None
        if isinstance(number, int) and number > 0:
            return number
    return None


def _is_rate_limited(exc: GithubException, message: str) -> bool:
    if isinstance(exc, RateLimitExceededException) or "rate limit" in message.lower():
        return True
    headers = {k.lower(): v for k, v in (exc.headers or {}).items()}
    return str(headers.get("x-ratelimit-remaining", "")) == "0"


def is_permission_denied(exc: GithubException) -> bool:
    """True when the token may read but not write comments (e.g. fork PRs).

    GitHub also answers 403 when a primary or secondary rate limit is hit;
    those are transient failures, not a permission problem.
    """
    data = exc.data if isinstance(exc.data, dict) else {}
    message = str(data.get("message", ""))
    if _is_rate_limited(exc, message):
        return False
    return exc.status == 403 or _PERMISSION_DENIED_TEXT in message


def find_sticky_comment(comments):
    """Return the first comment whose body contains the marker, or None."""
    for comment in islice(comments, MAX_SCANNED_COMMENTS):
        if comment.body and COMMENT_MARKER in comment.body:
            return comment
    return None


def publish(body: str, thread_id: int | None, repo) -> PublishResult:
    """Create or update the sticky comment on ``thread_id``.

    Permission-denied responses become a skip; any other GitHub error is
    raised for the caller to report.
    """
    if thread_id is None:
        return PublishResult.skipped("not-applicable")

    marked_body = f"{COMMENT_MARKER}\n{body}"
    try:
        issue = repo.get_issue(thread_id)
        existing = find_sticky_comment(issue.get_comments())
        if existing is not None:
            existing.edit(marked_body)
            logger.info("Updated existing PR comment #%s", existing.id)
            return PublishResult.updated(existing.id)

        comment = issue.create_comment(marked_body)
        logger.info("Posted new PR comment #%s", comment.id)
        return PublishResult.created(comment.id)
    except GithubException as e:
        if is_permission_denied(e):
            return PublishResult.skipped("permission-denied")
        raise
