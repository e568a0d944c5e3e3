from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from .utils import mask_secret

if TYPE_CHECKING:
    from pathlib import Path

    from .config import Config, Tokens


console = Console()


def render_config_summary(config: "Config", *, effective: "Tokens", path: "Path") -> None:
    console.print(f"Config file: [bold]{path}[/bold]")

    tokens = Table(show_header=True, header_style="bold")
    tokens.add_column("Token")
    tokens.add_column("Stored")
    tokens.add_column("Effective")
    tokens.add_row(
        "GitHub",
        mask_secret(config.tokens.github_token),
        mask_secret(effective.github_token),
    )
    tokens.add_row(
        "OpenAI",
        mask_secret(config.tokens.openai_api_key),
        mask_secret(effective.openai_api_key),
    )
    console.print(tokens)

    if not config.repos:
        console.print("[yellow]No repository history recorded.[/yellow]")
        return
    history = Table(show_header=True, header_style="bold")
    history.add_column("Repository")
    history.add_column("Branch")
    history.add_column("Last since")
    history.add_column("Last tag")
    history.add_column("Next since")
    history.add_column("Generated", overflow="fold")
    for key in sorted(config.repos, key=str.casefold):
        entry = config.repos[key]
        history.add_row(
            key,
            entry.last_branch or "-",
            entry.last_since_iso or "-",
            entry.last_tag or "-",
            entry.next_since_iso or "-",
            entry.last_generated_iso or "-",
        )
    console.print(history)


__all__ = ["console", "render_config_summary"]
