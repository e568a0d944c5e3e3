from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover - Python <3.11
    import tomli as tomllib

logger = logging.getLogger(__name__)

CONFIG_VERSION = 1
CONFIG_DIR_NAME = ".releasebot-cli"
CONFIG_FILE_NAME = "config.json"
HOME_ENV_VAR = "RELEASEBOT_HOME"
GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_BRANCH = "main"
DEFAULT_MODEL = "gpt-4o-mini"


@dataclass(slots=True, frozen=True)
class Tokens:
    github_token: str = ""
    openai_api_key: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Tokens:
        return cls(
            github_token=_as_str(data.get("githubToken")),
            openai_api_key=_as_str(data.get("openaiApiKey")),
        )

    def to_dict(self) -> dict[str, str]:
        return {"githubToken": self.github_token, "openaiApiKey": self.openai_api_key}


@dataclass(slots=True, frozen=True)
class RepoHistory:
    """Per-repository bookkeeping persisted between runs."""

    last_since_iso: str = ""
    last_tag: str = ""
    next_since_iso: str = ""
    last_generated_iso: str = ""
    last_branch: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RepoHistory:
        return cls(
            last_since_iso=_as_str(data.get("lastSinceISO")),
            last_tag=_as_str(data.get("lastTag")),
            next_since_iso=_as_str(data.get("nextSinceISO")),
            last_generated_iso=_as_str(data.get("lastGeneratedISO")),
            last_branch=_as_str(data.get("lastBranch")),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "lastSinceISO": self.last_since_iso,
            "lastTag": self.last_tag,
            "nextSinceISO": self.next_since_iso,
            "lastGeneratedISO": self.last_generated_iso,
            "lastBranch": self.last_branch,
        }


@dataclass(slots=True, frozen=True)
class Config:
    """User-level releasebot state: stored tokens and per-repository history."""

    version: int = CONFIG_VERSION
    tokens: Tokens = field(default_factory=Tokens)
    repos: Mapping[str, RepoHistory] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Config:
        tokens_raw = data.get("tokens")
        repos_raw = data.get("repos")
        repos: dict[str, RepoHistory] = {}
        if isinstance(repos_raw, Mapping):
            for key, value in repos_raw.items():
                if isinstance(value, Mapping):
                    repos[str(key)] = RepoHistory.from_dict(value)
        version = data.get("version")
        return cls(
            version=version if isinstance(version, int) else CONFIG_VERSION,
            tokens=Tokens.from_dict(tokens_raw) if isinstance(tokens_raw, Mapping) else Tokens(),
            repos=repos,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "tokens": self.tokens.to_dict(),
            "repos": {key: history.to_dict() for key, history in self.repos.items()},
        }

    def history_for(self, key: str) -> RepoHistory:
        return self.repos.get(key) or RepoHistory()

    def with_tokens(
        self,
        *,
        github_token: str | None = None,
        openai_api_key: str | None = None,
    ) -> Config:
        """Return a copy with the given tokens replaced; ``None`` keeps the old value."""
        tokens = self.tokens
        if github_token is not None:
            tokens = replace(tokens, github_token=github_token)
        if openai_api_key is not None:
            tokens = replace(tokens, openai_api_key=openai_api_key)
        return replace(self, tokens=tokens)

    def with_repo_history(self, key: str, history: RepoHistory) -> Config:
        repos = dict(self.repos)
        repos[key] = history
        return replace(self, repos=repos)


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def repo_key(owner: str, repo: str) -> str:
    return f"{owner}/{repo}"


def config_path(env: Mapping[str, str] | None = None) -> Path:
    """Return the location of the user config file."""
    environ = os.environ if env is None else env
    override = environ.get(HOME_ENV_VAR)
    base = Path(override).expanduser() if override else Path.home() / CONFIG_DIR_NAME
    return base / CONFIG_FILE_NAME


def default_config() -> Config:
    return Config()


def load_config(path: Path | None = None) -> Config:
    """Load the user config, substituting defaults when missing or unreadable."""
    target = path or config_path()
    if not target.exists():
        return default_config()
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", target, exc)
        return default_config()
    if not isinstance(data, Mapping):
        logger.warning("Ignoring config %s: expected a JSON object", target)
        return default_config()
    return Config.from_dict(data)


def save_config(config: Config, path: Path | None = None) -> Path:
    target = path or config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
    try:
        target.chmod(0o600)
    except OSError as exc:  # pragma: no cover - platform dependent
        logger.debug("Could not restrict permissions on %s: %s", target, exc)
    return target


def resolve_secret(name: str, stored: str, env: Mapping[str, str] | None = None) -> str:
    """Environment variable ``name`` wins over the stored value."""
    environ = os.environ if env is None else env
    return environ.get(name) or stored or ""


def resolve_tokens(config: Config, env: Mapping[str, str] | None = None) -> Tokens:
    return Tokens(
        github_token=resolve_secret(GITHUB_TOKEN_ENV, config.tokens.github_token, env),
        openai_api_key=resolve_secret(OPENAI_API_KEY_ENV, config.tokens.openai_api_key, env),
    )


@dataclass(slots=True, frozen=True)
class ProjectSettings:
    """Represents releasebot settings loaded from pyproject.toml."""

    branch: str | None = None
    model: str = DEFAULT_MODEL

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProjectSettings:
        branch = data.get("branch")
        model = data.get("model")
        return cls(
            branch=branch if isinstance(branch, str) and branch else None,
            model=model if isinstance(model, str) and model else DEFAULT_MODEL,
        )


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find the pyproject.toml file by searching upwards from the start directory."""
    current_dir = (start_dir or Path.cwd()).resolve()
    while True:
        pyproject_path = current_dir / "pyproject.toml"
        if pyproject_path.is_file():
            return pyproject_path
        if current_dir == current_dir.parent:
            return None
        current_dir = current_dir.parent


def load_project_settings(start_dir: Path | None = None) -> ProjectSettings:
    """Load the ``[tool.releasebot]`` table from the nearest pyproject.toml."""
    pyproject_path = find_pyproject_toml(start_dir)
    if not pyproject_path:
        return ProjectSettings()

    try:
        with pyproject_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", pyproject_path, exc)
        return ProjectSettings()
    section = data.get("tool", {}).get("releasebot", {})
    if not isinstance(section, Mapping):
        return ProjectSettings()
    return ProjectSettings.from_dict(section)


__all__ = [
    "Config",
    "DEFAULT_BRANCH",
    "DEFAULT_MODEL",
    "ProjectSettings",
    "RepoHistory",
    "Tokens",
    "config_path",
    "default_config",
    "find_pyproject_toml",
    "load_config",
    "load_project_settings",
    "repo_key",
    "resolve_secret",
    "resolve_tokens",
    "save_config",
]
