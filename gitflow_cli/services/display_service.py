"""Console output for workflow progress and repository status"""
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing import List, Optional, Sequence

from gitflow_cli.logging_config import get_logger
from gitflow_cli.models.branch import SyncStatus
from gitflow_cli.models.pull_request import PullRequestInfo

logger = get_logger(__name__)

SYMBOL_INFO = "ℹ"
SYMBOL_SUCCESS = "✓"
SYMBOL_WARNING = "⚠"
SYMBOL_ERROR = "✗"

SYNC_COLORS = {
    SyncStatus.UP_TO_DATE: "green",
    SyncStatus.BEHIND: "yellow",
    SyncStatus.AHEAD: "yellow",
    SyncStatus.DIVERGED: "red",
}


class DisplayService:
    def __init__(self, console: Optional[Console] = None, verbose: bool = False, debug: bool = False):
        self.console = console or Console()
        self.verbose = verbose
        self.debug_mode = debug

    def header(self, title: str) -> None:
        self.console.print()
        self.console.rule(f"[bold cyan]{escape(title)}[/bold cyan]", style="cyan")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]{SYMBOL_INFO}[/blue] {escape(message)}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]{SYMBOL_SUCCESS}[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]{SYMBOL_WARNING}[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]{SYMBOL_ERROR}[/red] {escape(message)}")

    def commands(self, title: str, lines: Sequence[str]) -> None:
        """Print shell commands the user should run, one per line."""
        self.console.print(f"[yellow]{escape(title)}[/yellow]")
        for line in lines:
            self.console.print(f"  [bold]{escape(line)}[/bold]")

    def display_status(
            self,
            branch: Optional[str],
            version: str,
            sync: Optional[SyncStatus],
            remote: str,
            ahead_behind_note: Optional[str] = None,
        ) -> None:
        """Summary table of the current branch."""
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Field", style="bold")
        table.add_column("Value")

        table.add_row("Branch", escape(branch) if branch else "[yellow](detached HEAD)[/yellow]")
        table.add_row("Version", escape(version))
        if sync is None:
            table.add_row("Sync", f"[dim]no {escape(remote)} counterpart[/dim]")
        else:
            color = SYNC_COLORS[sync]
            value = f"[{color}]{sync.value}[/{color}]"
            if ahead_behind_note:
                value += f" [dim]({escape(ahead_behind_note)})[/dim]"
            table.add_row("Sync", value)

        self.console.print(table)

    def display_working_tree(self, status_short: str) -> None:
        if not status_short.strip():
            self.success("Working tree clean")
            return
        self.warning("Uncommitted changes:")
        for line in status_short.splitlines():
            self.console.print(f"  {escape(line)}")

    def display_list(self, title: str, items: List[str], empty: str = "None") -> None:
        self.console.print(f"\n[bold]{escape(title)}[/bold]")
        if not items:
            self.console.print(f"  [dim]{escape(empty)}[/dim]")
            return
        for item in items:
            self.console.print(f"  {escape(item)}")

    def display_pull_requests(self, pulls: List[PullRequestInfo]) -> None:
        """Table of open pull requests."""
        self.console.print("\n[bold]Open pull requests[/bold]")
        if not pulls:
            self.console.print("  [dim]None[/dim]")
            return

        table = Table()
        table.add_column("#", justify="right")
        table.add_column("Title")
        table.add_column("Head")
        table.add_column("Base")
        for pr in pulls:
            title = escape(pr.title)
            if pr.url:
                title = f"[link={pr.url}]{title}[/link]"
            table.add_row(str(pr.number), title, escape(pr.head), escape(pr.base))
        self.console.print(table)
