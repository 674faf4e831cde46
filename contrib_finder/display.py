"""Rich terminal output for search progress and state inspection."""

import time

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .models import Profile, State

console = Console()

TOTAL_STEPS = 4


class Progress:
    """Step-by-step progress lines for a search run. Silent when quiet."""

    def __init__(self, quiet: bool = False, out: Console = None):
        self.quiet = quiet
        self.console = out or console
        self.start = time.monotonic()

    def header(self, profile: Profile):
        if self.quiet:
            return
        self.console.print(f"[bold]Issue Finder v{__version__}[/bold]\n")
        self.console.print("Profile:")
        self.console.print(f"  Skills: {escape(', '.join(profile.skills))}")
        if profile.interests:
            self.console.print(f"  Interests: {escape(', '.join(profile.interests))}")
        self.console.print(f"  Experience: {profile.experience_years} years\n")

    def step(self, n: int, message: str):
        if not self.quiet:
            self.console.print(f"[cyan][{n}/{TOTAL_STEPS}][/cyan] {escape(message)}")

    def detail(self, message: str):
        if not self.quiet:
            self.console.print(f"      {escape(message)}")

    def blank(self):
        if not self.quiet:
            self.console.print()

    def success(self, message: str):
        if self.quiet:
            return
        elapsed = time.monotonic() - self.start
        self.console.print(f"\n[bold green]{escape(message)}[/bold green]")
        self.console.print(f"Completed in {elapsed:.1f} seconds")

    def warning(self, message: str):
        if not self.quiet:
            self.console.print(f"[yellow]Warning: {escape(message)}[/yellow]")

    def error(self, message: str):
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def display_state(state: State, path: str, processed: int, limit: int = 5, out: Console = None):
    """State statistics plus the most recent matches."""
    out = out or console
    info = Table(show_header=False, box=box.SIMPLE, padding=(0, 2))
    info.add_column("Key", style="bold", width=18)
    info.add_column("Value")
    info.add_row("State file", escape(path))
    info.add_row("Last run", state.last_run or "never")
    info.add_row("Processed issues", str(processed))
    info.add_row("Saved matches", str(len(state.all_matches)))

    out.print("[bold]State Statistics[/bold]")
    out.print(info)

    if not state.all_matches:
        return
    recent = Table(title="Recent matches", box=box.ROUNDED)
    recent.add_column("#", width=3, justify="right")
    recent.add_column("Repository", style="cyan", max_width=30)
    recent.add_column("Issue", max_width=50)
    recent.add_column("Effort", width=8)
    recent.add_column("Found", width=16)
    for i, m in enumerate(state.all_matches[:limit], 1):
        recent.add_row(
            str(i), escape(m.repo), escape(f"#{m.issue_number}: {m.title}"),
            escape(m.estimated_effort), m.found_at,
        )
    out.print(recent)
    if len(state.all_matches) > limit:
        out.print(f"[dim]  ... and {len(state.all_matches) - limit} more (view in the markdown report)[/dim]")
