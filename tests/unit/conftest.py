from __future__ import annotations

from pathlib import Path

import pytest

from releasebot.git import Commit


@pytest.fixture(autouse=True)  # type: ignore[misc]
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the user config at a temporary directory and clear token variables."""
    home = tmp_path / "releasebot-home"
    monkeypatch.setenv("RELEASEBOT_HOME", str(home))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return home


@pytest.fixture(autouse=True)  # type: ignore[misc]
def patch_console_width(monkeypatch: pytest.MonkeyPatch) -> None:
    """Patch the console width to prevent truncation in tests."""
    monkeypatch.setattr("releasebot.display.console.width", 1000)


@pytest.fixture  # type: ignore[misc]
def sample_commits() -> list[Commit]:
    return [
        Commit(
            hash="a1b2c3d4e5f60718293a4b5c6d7e8f9012345678",
            message="feat: add widget (#42)",
            date="2025-03-02T10:00:00+00:00",
            author="Ada",
        ),
        Commit(
            hash="0f1e2d3c4b5a69788796a5b4c3d2e1f098765432",
            message="fix: typo",
            date="2025-03-01T09:30:00+00:00",
            author="Grace",
        ),
    ]
