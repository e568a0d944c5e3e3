from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn, cast

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .changelog import (
    build_full_changelog,
    referenced_pr_numbers,
    render_document,
    write_document,
)
from .config import (
    DEFAULT_BRANCH,
    Config,
    Tokens,
    config_path,
    load_config,
    load_project_settings,
    repo_key,
    resolve_tokens,
    save_config,
)
from .display import render_config_summary
from .git import (
    GitError,
    TagNotFoundError,
    commits_since,
    ensure_repository,
    remote_url,
    tag_date,
    unique_commits,
)
from .github import GitHubClient, PullRequestInfo, fetch_pull_requests
from .history import DEFAULT_SINCE_PROMPT, plan_since, update_history_after_run
from .narrative import generate_narrative
from .remote import UnsupportedRemoteError, resolve_github_remote
from .utils import OptionalStr, utc_now

logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"releasebot version: {__version__}")
        raise typer.Exit()


app = typer.Typer(
    help="Generate Markdown release notes from git history and GitHub pull requests.",
    add_completion=True,
)
err_console = Console(stderr=True)


SINCE_OPTION = typer.Option(
    None,
    "--since",
    help="ISO date or git-parsable date (e.g. 2025-09-01, '2 weeks ago').",
)
TAG_OPTION = typer.Option(
    None,
    "--tag",
    help="Generate notes since a git tag (uses the tag's commit date).",
)
BUILD_OPTION = typer.Option(
    None,
    "--build",
    help="Build version string for the header.",
)
BRANCH_OPTION = typer.Option(
    None,
    "--branch",
    help=f"Branch to generate from (default: {DEFAULT_BRANCH}).",
)
SET_NEXT_SINCE_OPTION = typer.Option(
    None,
    "--set-next-since",
    help="Manually set the since date used by the following run.",
)

SINCE_OPTION_DEFAULT = cast(OptionalStr, SINCE_OPTION)
TAG_OPTION_DEFAULT = cast(OptionalStr, TAG_OPTION)
BUILD_OPTION_DEFAULT = cast(OptionalStr, BUILD_OPTION)
BRANCH_OPTION_DEFAULT = cast(OptionalStr, BRANCH_OPTION)
SET_NEXT_SINCE_OPTION_DEFAULT = cast(OptionalStr, SET_NEXT_SINCE_OPTION)


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


def _fail(message: str) -> NoReturn:
    """Emit a one-line diagnostic to stderr and exit with a failure code."""

    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _prompt_secret(message: str, default: str = "") -> str:
    value = typer.prompt(message, default=default, hide_input=True, show_default=False)
    return value.strip()


def _ask_since(suggested: str) -> str:
    return typer.prompt(
        "Generate changelog since (ISO date or '2 weeks ago')",
        default=suggested or DEFAULT_SINCE_PROMPT,
    )


def ensure_tokens(config: Config, *, want_ai: bool) -> tuple[Config, Tokens, bool]:
    """Prompt for tokens that neither the environment nor the config provide.

    Returns the (possibly updated) config, the effective tokens and whether the
    config changed and needs saving.
    """
    tokens = resolve_tokens(config)
    ask_github = not tokens.github_token
    ask_openai = want_ai and not tokens.openai_api_key
    if not ask_github and not ask_openai:
        return config, tokens, False

    github_token = None
    openai_api_key = None
    if ask_github:
        github_token = _prompt_secret("Enter your GitHub token (repo:read recommended)")
    if ask_openai:
        openai_api_key = _prompt_secret(
            "Enter your OpenAI API key (optional, press Enter to skip)",
        )
    updated = config.with_tokens(github_token=github_token, openai_api_key=openai_api_key)
    return updated, resolve_tokens(updated), updated != config


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    since: OptionalStr = SINCE_OPTION_DEFAULT,
    tag: OptionalStr = TAG_OPTION_DEFAULT,
    build: OptionalStr = BUILD_OPTION_DEFAULT,
    ai: bool = typer.Option(
        True,
        "--ai/--no-ai",
        help="Generate the narrative sections with OpenAI.",
    ),
    branch: OptionalStr = BRANCH_OPTION_DEFAULT,
    ignore_history: bool = typer.Option(
        False,
        "--ignore-history",
        help="Ignore the stored next-since date; use flags or prompt instead.",
    ),
    history: bool = typer.Option(
        True,
        "--history/--no-history",
        help="Save and advance the repository history after this run.",
    ),
    set_next_since: OptionalStr = SET_NEXT_SINCE_OPTION_DEFAULT,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug output to stderr.",
    ),
    version: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Generate release notes for the current repository since a date, tag or the last run."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return
    generate(
        since=since,
        tag=tag,
        build=build,
        ai=ai,
        branch=branch,
        ignore_history=ignore_history,
        save_history=history,
        set_next_since=set_next_since,
    )


def generate(
    *,
    since: str | None = None,
    tag: str | None = None,
    build: str | None = None,
    ai: bool = True,
    branch: str | None = None,
    ignore_history: bool = False,
    save_history: bool = True,
    set_next_since: str | None = None,
) -> Path:
    config_file = config_path()
    cfg = load_config(config_file)

    try:
        ensure_repository()
        remote = resolve_github_remote(remote_url())
    except (GitError, UnsupportedRemoteError) as exc:
        _fail(str(exc))
    key = repo_key(remote.owner, remote.repo)
    stored_history = cfg.history_for(key)

    cfg, tokens, tokens_changed = ensure_tokens(cfg, want_ai=ai)
    settings = load_project_settings()
    branch_name = branch or stored_history.last_branch or settings.branch or DEFAULT_BRANCH

    try:
        plan = plan_since(
            stored_history,
            since=since,
            tag=tag,
            ignore_history=ignore_history,
            resolve_tag_date=tag_date,
            ask=_ask_since,
        )
        commits = unique_commits(commits_since(branch_name, plan.since))
    except TagNotFoundError as exc:
        _fail(str(exc))
    except GitError as exc:
        _fail(f"git failed: {exc}")
    logger.info("Collected %d commits on %s since %s", len(commits), branch_name, plan.since)

    pr_numbers = referenced_pr_numbers(commits)
    pr_map: dict[int, PullRequestInfo] = {}
    if tokens.github_token and pr_numbers:
        with GitHubClient(tokens.github_token) as client:
            pr_map = fetch_pull_requests(client, remote.owner, remote.repo, pr_numbers)
        logger.info("Resolved %d of %d referenced pull requests", len(pr_map), len(pr_numbers))

    changelog = build_full_changelog(commits, pr_map, remote.web_base)
    narrative = generate_narrative(
        changelog,
        api_key=tokens.openai_api_key,
        enabled=ai,
        model=settings.model,
    )
    document = render_document(changelog, narrative, build_version=build or "")

    now = utc_now()
    output_path = write_document(document, Path.cwd(), now)
    typer.echo(document, nl=False)
    typer.echo(f"\nSaved: {output_path}", err=True)

    if save_history:
        updated_history = update_history_after_run(
            stored_history,
            plan,
            commits,
            branch=branch_name,
            now=now,
            next_since_override=set_next_since,
        )
        cfg = cfg.with_repo_history(key, updated_history)
    if save_history or tokens_changed:
        save_config(cfg, config_file)
    return output_path


def _edit_tokens(*, reset: bool) -> None:
    path = config_path()
    cfg = load_config(path)
    github_token = _prompt_secret(
        "GitHub token (repo:read)",
        default="" if reset else cfg.tokens.github_token,
    )
    openai_api_key = _prompt_secret(
        "OpenAI API key (optional)",
        default="" if reset else cfg.tokens.openai_api_key,
    )
    cfg = cfg.with_tokens(github_token=github_token, openai_api_key=openai_api_key)
    saved = save_config(cfg, path)
    typer.echo(f"Config saved at {saved}")


@app.command("config")
def config_command(
    reset_keys: bool = typer.Option(
        False,
        "--reset-keys",
        help="Reset tokens instead of editing existing ones.",
    ),
    show: bool = typer.Option(
        False,
        "--show",
        help="Print stored tokens (masked) and repository history without prompting.",
    ),
) -> None:
    """Configure tokens and options."""
    if show:
        path = config_path()
        cfg = load_config(path)
        render_config_summary(cfg, effective=resolve_tokens(cfg), path=path)
        return
    _edit_tokens(reset=reset_keys)


@app.command("reset-keys")
def reset_keys() -> None:
    """Shortcut: clear and re-enter tokens."""
    _edit_tokens(reset=True)
