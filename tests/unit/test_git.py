from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from releasebot.git import (
    Commit,
    GitError,
    NoRemoteError,
    NotAGitRepositoryError,
    TagNotFoundError,
    commits_since,
    ensure_repository,
    is_repository,
    log_since,
    parse_log,
    remote_url,
    tag_date,
    unique_commits,
)
from releasebot.history import compute_next_since

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def _git(
    cwd: Path,
    *args: str,
    date: str | None = None,
    committer_date: str | None = None,
) -> str:
    env = {
        **os.environ,
        "GIT_AUTHOR_NAME": "Test Author",
        "GIT_AUTHOR_EMAIL": "author@example.com",
        "GIT_COMMITTER_NAME": "Test Author",
        "GIT_COMMITTER_EMAIL": "author@example.com",
        "GIT_CONFIG_NOSYSTEM": "1",
    }
    if date:
        env["GIT_AUTHOR_DATE"] = date
        env["GIT_COMMITTER_DATE"] = committer_date or date
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        env=env,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def _commit(repo: Path, message: str, date: str, committer_date: str | None = None) -> None:
    _git(repo, "commit", "--allow-empty", "-m", message, date=date, committer_date=committer_date)


@pytest.fixture
def upstream(tmp_path: Path) -> Path:
    repo = tmp_path / "upstream"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "checkout", "-q", "-b", "main")
    _commit(repo, "chore: initial", "2025-01-01T10:00:00+00:00")
    _commit(repo, "fix: typo", "2025-03-01T09:30:00+00:00")
    _git(repo, "tag", "v1.0.0")
    _commit(repo, "feat: add widget (#42)", "2025-03-02T10:00:00+00:00")
    return repo


@pytest.fixture
def clone(tmp_path: Path, upstream: Path) -> Path:
    target = tmp_path / "clone"
    _git(tmp_path, "clone", "-q", str(upstream), str(target))
    return target


def test_is_repository(tmp_path: Path, clone: Path) -> None:
    outside = tmp_path / "plain"
    outside.mkdir()
    assert is_repository(clone)
    assert not is_repository(outside)
    with pytest.raises(NotAGitRepositoryError):
        ensure_repository(outside)


def test_remote_url_prefers_origin(clone: Path, upstream: Path) -> None:
    _git(clone, "remote", "add", "backup", "git@github.com:acme/backup.git")
    assert remote_url(clone) == str(upstream)


def test_remote_url_falls_back_to_first_remote(upstream: Path) -> None:
    _git(upstream, "remote", "add", "mirror", "git@github.com:acme/widgets.git")
    assert remote_url(upstream) == "git@github.com:acme/widgets.git"


def test_remote_url_without_remotes(upstream: Path) -> None:
    with pytest.raises(NoRemoteError):
        remote_url(upstream)


def test_tag_date(clone: Path) -> None:
    assert tag_date("v1.0.0", clone) == "2025-03-01T09:30:00+00:00"
    with pytest.raises(TagNotFoundError, match="v9.9.9"):
        tag_date("v9.9.9", clone)


def test_log_since_returns_newest_first(upstream: Path) -> None:
    commits = log_since("HEAD", "2025-02-01T00:00:00Z", upstream)
    assert [commit.message for commit in commits] == ["feat: add widget (#42)", "fix: typo"]
    assert commits[0].date == "2025-03-02T10:00:00+00:00"
    assert commits[0].author == "Test Author"
    assert len(commits[0].hash) == 40


def test_log_since_next_boundary_excludes_reported_commit(upstream: Path) -> None:
    assert log_since("HEAD", "2025-03-02T10:00:01Z", upstream) == []


def test_next_since_excludes_commit_committed_after_authoring(upstream: Path) -> None:
    _commit(
        upstream,
        "feat: rebased (#7)",
        "2025-03-01T00:00:00+00:00",
        committer_date="2025-03-05T00:00:00+00:00",
    )
    first = log_since("HEAD", "2025-03-03T00:00:00Z", upstream)
    assert [commit.message for commit in first] == ["feat: rebased (#7)"]
    assert first[0].date == "2025-03-05T00:00:00+00:00"

    next_since = compute_next_since(first)
    assert next_since == "2025-03-05T00:00:01Z"
    assert log_since("HEAD", next_since, upstream) == []


def test_commits_since_updates_branch_from_origin(clone: Path, upstream: Path) -> None:
    _commit(upstream, "docs: readme (#43)", "2025-03-03T08:00:00+00:00")
    commits = commits_since("main", "2025-03-01T12:00:00Z", clone)
    assert [commit.message for commit in commits] == ["docs: readme (#43)", "feat: add widget (#42)"]


def test_run_git_failure_carries_stderr(clone: Path) -> None:
    with pytest.raises(GitError, match="unknown-branch"):
        commits_since("unknown-branch", "2025-01-01", clone)


def test_parse_log_skips_malformed_records() -> None:
    output = "abc\x1f2025-01-01T00:00:00+00:00\x1fDev\x1fsubject\x1e\nbroken\x1e\n"
    assert parse_log(output) == [
        Commit(hash="abc", message="subject", date="2025-01-01T00:00:00+00:00", author="Dev"),
    ]


def test_unique_commits_is_idempotent_and_order_preserving() -> None:
    a = Commit(hash="a", message="one", date="", author="")
    b = Commit(hash="b", message="two", date="", author="")
    commits = [a, b, a, b, a]
    once = unique_commits(commits)
    assert once == [a, b]
    assert unique_commits(once) == once
    assert len(once) <= len(commits)
