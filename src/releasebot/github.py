from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
PR_BATCH_SIZE = 8


@dataclass(slots=True, frozen=True)
class PullRequestInfo:
    number: int
    title: str
    url: str
    merged_at: str | None = None
    author: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PullRequestInfo:
        user = data.get("user") or {}
        return cls(
            number=int(data["number"]),
            title=str(data["title"]),
            url=str(data["html_url"]),
            merged_at=data.get("merged_at"),
            author=user.get("login") if isinstance(user, dict) else None,
        )


def _get_headers(token: str | None = None) -> dict[str, str]:
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class GitHubClient:
    """Minimal REST client for pull-request lookups."""

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str = GITHUB_API_BASE,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            headers=_get_headers(token),
            transport=transport,
        )

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestInfo:
        response = self._client.get(f"/repos/{owner}/{repo}/pulls/{number}")
        response.raise_for_status()
        return PullRequestInfo.from_api(response.json())


def fetch_pull_requests(
    client: GitHubClient,
    owner: str,
    repo: str,
    numbers: Iterable[int],
    *,
    batch_size: int = PR_BATCH_SIZE,
) -> dict[int, PullRequestInfo]:
    """Look up pull requests in fixed-size concurrent batches.

    The result only holds the numbers that resolved. Failed lookups are logged
    and left out; callers treat a missing key as "no metadata".
    """
    pending = list(numbers)
    results: dict[int, PullRequestInfo] = {}
    if not pending:
        return results
    size = max(batch_size, 1)
    with ThreadPoolExecutor(max_workers=size) as executor:
        for start in range(0, len(pending), size):
            batch = pending[start : start + size]
            future_to_number = {
                executor.submit(client.get_pull_request, owner, repo, number): number
                for number in batch
            }
            for future in as_completed(future_to_number):
                number = future_to_number[future]
                try:
                    results[number] = future.result()
                except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
                    logger.debug("Skipping PR #%s: %s", number, exc)
    return results


__all__ = [
    "GITHUB_API_BASE",
    "GitHubClient",
    "PR_BATCH_SIZE",
    "PullRequestInfo",
    "fetch_pull_requests",
]
