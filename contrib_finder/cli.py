"""Command line interface: search, state and config commands."""

from __future__ import annotations

import logging
import os

import click
from rich.logging import RichHandler

from . import __version__
from .config import AppConfig, load_config, write_default_config
from .display import Progress, console, display_state
from .errors import ContribFinderError, NotificationError
from .finder import ContributionFinder
from .github_api import GitHubClient
from .notify import send_notification
from .ranker import AnthropicRanker
from .state import StateStore


def _split_csv(values: tuple[str, ...]) -> list[str]:
    items: list[str] = []
    for value in values:
        items.extend(v.strip() for v in value.split(",") if v.strip())
    return items


def _setup_logging(quiet: bool, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    root = logging.getLogger()
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(console=console, show_path=False))
    root.setLevel(level)


class _Context:
    def __init__(self, config_path: str | None, quiet: bool):
        self.config_path = config_path
        self.quiet = quiet

    def config(self) -> AppConfig:
        try:
            return load_config(self.config_path)
        except ContribFinderError as e:
            raise click.ClickException(str(e)) from e


pass_ctx = click.make_pass_decorator(_Context)


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Config file (default: ~/.issue-finder.json)")
@click.option("--quiet", is_flag=True, help="Suppress progress output.")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
@click.version_option(__version__, prog_name="issue-finder")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, quiet: bool, verbose: bool) -> None:
    """Find GitHub OSS contribution opportunities matching your skills."""
    _setup_logging(quiet, verbose)
    ctx.obj = _Context(config_path, quiet)


# ── search ───────────────────────────────────────────────────


@main.command()
@click.option("--skills", multiple=True, help="Technical skills (comma-separated).")
@click.option("--interests", multiple=True, help="Areas of interest (comma-separated).")
@click.option("--experience", type=int, default=None, help="Years of experience.")
@click.option("--output", "output_path", default=None, help="Markdown report path.")
@click.option("--state", "state_path", default=None, help="State file path.")
@click.option("--no-notify", is_flag=True, help="Disable desktop notifications.")
@pass_ctx
def search(obj: _Context, skills, interests, experience, output_path, state_path, no_notify) -> None:
    """Search GitHub, skip issues seen before, rank new ones with Claude."""
    cfg = obj.config().with_overrides(
        skills=_split_csv(skills),
        interests=_split_csv(interests),
        experience_years=experience,
        output_path=output_path,
        state_path=state_path,
    )
    progress = Progress(quiet=obj.quiet)
    try:
        cfg.profile.validate()
        finder = ContributionFinder(
            GitHubClient(cfg.github_token()),
            AnthropicRanker(cfg.anthropic_key()),
            StateStore(cfg.state_path),
            report_path=cfg.output_path,
            max_matches=cfg.max_matches,
            progress=progress,
        )
        progress.header(cfg.profile)
        _, summary = finder.run(cfg.profile)
    except ContribFinderError as e:
        progress.error(str(e))
        raise SystemExit(1)

    progress.detail(
        f"Total opportunities: {summary.total_matches} "
        f"({summary.new_matches} new, {summary.from_history} from history)"
    )
    progress.success(f"Done! Open {cfg.output_path} to view results.")

    if no_notify or not cfg.notify_on_completion:
        return
    message = (
        f"Found {summary.new_matches} new opportunities"
        if summary.new_matches else "No new opportunities found"
    )
    try:
        send_notification("Issue Finder", message)
    except NotificationError as e:
        progress.warning(f"Failed to send notification: {e}")


# ── state ────────────────────────────────────────────────────


@main.group()
def state() -> None:
    """Inspect or reset processed issues and saved matches."""


def _state_store(obj: _Context, state_path: str | None) -> StateStore:
    cfg = obj.config().with_overrides(state_path=state_path)
    return StateStore(cfg.state_path)


@state.command("show")
@click.option("--state", "state_path", default=None, help="State file path.")
@pass_ctx
def state_show(obj: _Context, state_path: str | None) -> None:
    """Show state statistics and recent matches."""
    store = _state_store(obj, state_path)
    if not store.exists():
        click.echo(f"No state file found at: {store.path}")
        click.echo("Run a search first to create the state file.")
        return
    processed, _ = store.stats()
    display_state(store.load(), str(store.path), processed=processed)


@state.command("clear")
@click.option("--state", "state_path", default=None, help="State file path.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@pass_ctx
def state_clear(obj: _Context, state_path: str | None, yes: bool) -> None:
    """Forget all processed issues so the next search re-evaluates them."""
    store = _state_store(obj, state_path)
    if not store.exists():
        click.echo(f"No state file found at: {store.path}")
        click.echo("Nothing to clear.")
        return
    click.echo(f"This will clear all processed issues from: {store.path}")
    if not yes and not click.confirm("Are you sure?", default=False):
        click.echo("Cancelled.")
        return
    try:
        store.clear()
    except ContribFinderError as e:
        raise click.ClickException(str(e)) from e
    click.echo("State cleared successfully.")
    click.echo("The next search will re-evaluate all issues.")


# ── config ───────────────────────────────────────────────────


@main.group()
def config() -> None:
    """Manage the configuration file."""


@config.command("init")
@pass_ctx
def config_init(obj: _Context) -> None:
    """Create a template configuration file."""
    try:
        path = write_default_config(obj.config_path)
    except ContribFinderError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Created configuration file at: {path}")
    click.echo("\nEdit this file to customize your profile, then run:")
    click.echo("  issue-finder search")


def _env_status(name: str) -> str:
    value = os.environ.get(name)
    return f"Set ({len(value)} characters)" if value else "Not set"


@config.command("show")
@pass_ctx
def config_show(obj: _Context) -> None:
    """Show the configuration in effect."""
    cfg = obj.config()
    if cfg.source:
        click.echo(f"Config file: {cfg.source}\n")
    else:
        click.echo("No config file loaded (using defaults and flags)\n")

    p = cfg.profile
    click.echo("Profile:")
    click.echo(f"  Name: {p.name}")
    click.echo(f"  Skills: {', '.join(p.skills) or '(none set)'}")
    click.echo(f"  Interests: {', '.join(p.interests) or '(none set)'}")
    click.echo(f"  Experience: {p.experience_years} years\n")

    click.echo("Preferences:")
    click.echo(f"  Output path: {cfg.output_path}")
    click.echo(f"  State path: {cfg.state_path}")
    click.echo(f"  Max matches: {cfg.max_matches}")
    click.echo(f"  Notify on completion: {cfg.notify_on_completion}\n")

    click.echo("API:")
    click.echo(f"  {cfg.anthropic_key_env}: {_env_status(cfg.anthropic_key_env)}")
    click.echo(f"  {cfg.github_token_env}: {_env_status(cfg.github_token_env)}")


if __name__ == "__main__":
    main()
