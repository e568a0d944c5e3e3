from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = f"%H{_FIELD_SEP}%cI{_FIELD_SEP}%an{_FIELD_SEP}%s{_RECORD_SEP}"


class GitError(RuntimeError):
    """Raised when a git command fails."""


class NotAGitRepositoryError(GitError):
    pass


class NoRemoteError(GitError):
    pass


class TagNotFoundError(GitError):
    pass


@dataclass(slots=True, frozen=True)
class Commit:
    hash: str
    message: str
    date: str
    author: str


def run_git(args: list[str], *, cwd: Path | None = None) -> str:
    logger.debug("git %s", " ".join(args))
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            check=True,
            cwd=cwd,
        )
    except FileNotFoundError as exc:
        raise GitError("git executable not found") from exc
    except subprocess.CalledProcessError as exc:
        message = exc.stderr.strip() or exc.stdout.strip() or "git command failed"
        raise GitError(message) from exc
    return result.stdout


def is_repository(cwd: Path | None = None) -> bool:
    try:
        output = run_git(["rev-parse", "--is-inside-work-tree"], cwd=cwd)
    except GitError:
        return False
    return output.strip() == "true"


def ensure_repository(cwd: Path | None = None) -> None:
    if not is_repository(cwd):
        raise NotAGitRepositoryError("Not a git repository.")


def remote_url(cwd: Path | None = None, *, preferred: str = "origin") -> str:
    """Return the fetch URL of ``preferred``, falling back to the first remote."""
    names = [name for name in run_git(["remote"], cwd=cwd).splitlines() if name.strip()]
    if not names:
        raise NoRemoteError("No git remote found.")
    name = preferred if preferred in names else names[0]
    return run_git(["remote", "get-url", name], cwd=cwd).strip()


def tag_date(tag: str, cwd: Path | None = None) -> str:
    """Return the committer date (ISO strict) of the commit ``tag`` points at."""
    try:
        output = run_git(["log", "-1", "--format=%cI", tag, "--"], cwd=cwd).strip()
    except GitError as exc:
        raise TagNotFoundError(f"Could not find date for tag {tag}") from exc
    if not output:
        raise TagNotFoundError(f"Could not find date for tag {tag}")
    return output


def update_branch(branch: str, cwd: Path | None = None) -> None:
    run_git(["fetch"], cwd=cwd)
    run_git(["checkout", branch], cwd=cwd)
    run_git(["pull", "origin", branch], cwd=cwd)


def parse_log(output: str) -> list[Commit]:
    commits: list[Commit] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        parts = record.split(_FIELD_SEP)
        if len(parts) != 4:
            logger.debug("Skipping malformed log record: %r", record)
            continue
        sha, date, author, subject = parts
        commits.append(Commit(hash=sha, message=subject, date=date, author=author))
    return commits


def log_since(ref: str, since: str, cwd: Path | None = None) -> list[Commit]:
    """List commits reachable from ``ref`` since ``since``, newest first."""
    output = run_git(["log", f"--format={_LOG_FORMAT}", f"--since={since}", ref, "--"], cwd=cwd)
    return parse_log(output)


def commits_since(branch: str, since: str, cwd: Path | None = None) -> list[Commit]:
    update_branch(branch, cwd=cwd)
    return log_since(f"origin/{branch}", since, cwd=cwd)


def unique_commits(commits: Iterable[Commit]) -> list[Commit]:
    seen: set[str] = set()
    unique: list[Commit] = []
    for commit in commits:
        if commit.hash in seen:
            continue
        seen.add(commit.hash)
        unique.append(commit)
    return unique


__all__ = [
    "Commit",
    "GitError",
    "NoRemoteError",
    "NotAGitRepositoryError",
    "TagNotFoundError",
    "commits_since",
    "ensure_repository",
    "is_repository",
    "log_since",
    "parse_log",
    "remote_url",
    "run_git",
    "tag_date",
    "unique_commits",
    "update_branch",
]
