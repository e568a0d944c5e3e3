from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path

from .git import Commit
from .github import PullRequestInfo
from .utils import first_line, short_sha

_PR_PATTERNS = (
    re.compile(r"Merge pull request\s+#(\d+)", re.IGNORECASE),
    re.compile(r"\(#(\d+)\)"),
    re.compile(r"PR\s+#(\d+)", re.IGNORECASE),
)

BUILD_VERSION_PLACEHOLDER = "*<add version>*"


def extract_pr_numbers(message: str) -> list[int]:
    """Return distinct PR numbers referenced by ``message`` in discovery order."""

    found: dict[int, None] = {}
    for pattern in _PR_PATTERNS:
        for match in pattern.finditer(message):
            found.setdefault(int(match.group(1)), None)
    return list(found)


def referenced_pr_numbers(commits: Iterable[Commit]) -> list[int]:
    found: dict[int, None] = {}
    for commit in commits:
        for number in extract_pr_numbers(commit.message):
            found.setdefault(number, None)
    return list(found)


def build_commit_url(web_base: str, sha: str) -> str:
    return f"{web_base}/commit/{sha}"


def render_bullet(
    commit: Commit,
    pr_map: Mapping[int, PullRequestInfo],
    web_base: str,
) -> str:
    commit_url = build_commit_url(web_base, commit.hash)
    numbers = extract_pr_numbers(commit.message)
    pr = pr_map.get(numbers[0]) if numbers else None
    if pr is not None:
        return f"- [**{pr.title} (]({commit_url})[#{pr.number}]({pr.url})[)]({commit_url})**"
    return f"- [**{first_line(commit.message)} ({short_sha(commit.hash)})**]({commit_url})"


def build_full_changelog(
    commits: Iterable[Commit],
    pr_map: Mapping[int, PullRequestInfo],
    web_base: str,
) -> str:
    """Render one Markdown bullet per commit, keeping the input order."""

    return "\n".join(render_bullet(commit, pr_map, web_base) for commit in commits)


def render_document(changelog: str, narrative: str, *, build_version: str = "") -> str:
    header = f"## Build version:\n\n{build_version or BUILD_VERSION_PLACEHOLDER}\n"
    section = f"## Full Changelog\n\n{changelog}\n\n{narrative}\n"
    return f"{header}\n{section}".strip() + "\n"


def output_filename(moment: datetime) -> str:
    return f"CHANGELOG_{moment.strftime('%Y-%m-%d')}.md"


def write_document(content: str, directory: Path, moment: datetime) -> Path:
    path = directory / output_filename(moment)
    path.write_text(content, encoding="utf-8")
    return path


__all__ = [
    "BUILD_VERSION_PLACEHOLDER",
    "build_commit_url",
    "build_full_changelog",
    "extract_pr_numbers",
    "output_filename",
    "referenced_pr_numbers",
    "render_bullet",
    "render_document",
    "write_document",
]
