from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from .config import RepoHistory
from .git import Commit
from .utils import format_utc, normalize_date, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

DEFAULT_SINCE_PROMPT = "2 weeks ago"
NEXT_SINCE_MARGIN_SECONDS = 1


class SinceSource(str, Enum):
    TAG = "tag"
    FLAG = "flag"
    HISTORY = "history"
    PROMPT = "prompt"


@dataclass(slots=True, frozen=True)
class SincePlan:
    since: str
    source: SinceSource
    tag: str = ""


def plan_since(
    history: RepoHistory,
    *,
    since: str | None = None,
    tag: str | None = None,
    ignore_history: bool = False,
    resolve_tag_date: Callable[[str], str],
    ask: Callable[[str], str],
) -> SincePlan:
    """Pick the since boundary: tag, then --since, then stored history, then a prompt.

    ``resolve_tag_date`` is expected to raise when the tag cannot be resolved.
    ``ask`` receives the suggested default and returns the user's answer.
    """
    if tag:
        return SincePlan(since=resolve_tag_date(tag), source=SinceSource.TAG, tag=tag)
    if since:
        return SincePlan(since=since, source=SinceSource.FLAG)
    if history.next_since_iso and not ignore_history:
        return SincePlan(since=history.next_since_iso, source=SinceSource.HISTORY)
    answer = ask(history.last_since_iso or DEFAULT_SINCE_PROMPT).strip()
    return SincePlan(
        since=answer or history.last_since_iso or DEFAULT_SINCE_PROMPT,
        source=SinceSource.PROMPT,
    )


def latest_commit_date(commits: Iterable[Commit]) -> datetime | None:
    latest: datetime | None = None
    for commit in commits:
        moment = parse_timestamp(commit.date)
        if moment is None:
            logger.debug("Ignoring unparseable commit date %r on %s", commit.date, commit.hash)
            continue
        if latest is None or moment > latest:
            latest = moment
    return latest


def compute_next_since(commits: Iterable[Commit]) -> str | None:
    """One second past the newest included commit, or ``None`` without commits."""
    latest = latest_commit_date(commits)
    if latest is None:
        return None
    return format_utc(latest + timedelta(seconds=NEXT_SINCE_MARGIN_SECONDS))


def update_history_after_run(
    history: RepoHistory,
    plan: SincePlan,
    commits: Iterable[Commit],
    *,
    branch: str,
    now: datetime | None = None,
    next_since_override: str | None = None,
) -> RepoHistory:
    resolved_since = ""
    if plan.source in (SinceSource.FLAG, SinceSource.PROMPT):
        resolved_since = normalize_date(plan.since)
    next_since = compute_next_since(commits) or history.next_since_iso
    if next_since_override:
        next_since = normalize_date(next_since_override)
    return replace(
        history,
        last_since_iso=resolved_since or history.last_since_iso,
        last_tag=plan.tag or history.last_tag,
        next_since_iso=next_since,
        last_generated_iso=format_utc(now or utc_now()),
        last_branch=branch or history.last_branch,
    )


__all__ = [
    "DEFAULT_SINCE_PROMPT",
    "SincePlan",
    "SinceSource",
    "compute_next_since",
    "latest_commit_date",
    "plan_since",
    "update_history_after_run",
]
