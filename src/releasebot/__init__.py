"""Releasebot public API."""

from importlib import metadata

__version__ = metadata.version("releasebot")

from .changelog import build_full_changelog, extract_pr_numbers, render_document
from .config import Config, ProjectSettings, RepoHistory, Tokens, load_config, save_config
from .git import Commit, unique_commits
from .github import GitHubClient, PullRequestInfo, fetch_pull_requests
from .history import SincePlan, SinceSource, plan_since, update_history_after_run
from .narrative import NARRATIVE_SECTIONS, fallback_narrative, generate_narrative
from .remote import RemoteInfo, UnsupportedRemoteError, parse_remote

__all__ = [
    "Commit",
    "Config",
    "GitHubClient",
    "NARRATIVE_SECTIONS",
    "ProjectSettings",
    "PullRequestInfo",
    "RemoteInfo",
    "RepoHistory",
    "SincePlan",
    "SinceSource",
    "Tokens",
    "UnsupportedRemoteError",
    "__version__",
    "build_full_changelog",
    "extract_pr_numbers",
    "fallback_narrative",
    "fetch_pull_requests",
    "generate_narrative",
    "load_config",
    "parse_remote",
    "plan_since",
    "render_document",
    "save_config",
    "unique_commits",
    "update_history_after_run",
]
