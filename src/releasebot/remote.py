from __future__ import annotations

import re
from dataclasses import dataclass

GITHUB_HOST = "github.com"

_SSH_REMOTE_RE = re.compile(r"^git@(?P<host>[^:]+):(?P<owner>[^/]+)/(?P<repo>.+?)(?:\.git)?/?$")
_HTTPS_REMOTE_RE = re.compile(
    r"^https?://(?:[^@/]+@)?(?P<host>[^/]+)/(?P<owner>[^/]+)/(?P<repo>.+?)(?:\.git)?/?$"
)


class UnsupportedRemoteError(ValueError):
    """Raised when a remote URL is not a GitHub repository."""


@dataclass(slots=True, frozen=True)
class RemoteInfo:
    host: str
    owner: str
    repo: str
    web_base: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_remote(url: str) -> RemoteInfo | None:
    """Parse an SSH or HTTPS remote URL, returning ``None`` when neither form matches."""

    text = url.strip()
    match = _SSH_REMOTE_RE.match(text) or _HTTPS_REMOTE_RE.match(text)
    if not match:
        return None
    host = match.group("host")
    owner = match.group("owner")
    repo = match.group("repo")
    return RemoteInfo(
        host=host,
        owner=owner,
        repo=repo,
        web_base=f"https://{host}/{owner}/{repo}",
    )


def resolve_github_remote(url: str, *, expected_host: str = GITHUB_HOST) -> RemoteInfo:
    info = parse_remote(url)
    if info is None:
        raise UnsupportedRemoteError(f"unsupported remote URL: {url}")
    if info.host.lower() != expected_host:
        raise UnsupportedRemoteError(
            f"unsupported remote host '{info.host}': only {expected_host} remotes are supported",
        )
    return info


__all__ = [
    "GITHUB_HOST",
    "RemoteInfo",
    "UnsupportedRemoteError",
    "parse_remote",
    "resolve_github_remote",
]
