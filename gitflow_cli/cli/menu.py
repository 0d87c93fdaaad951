"""Letter-keyed menus for interactive use."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from rich.console import Console

from gitflow_cli.exceptions import InvalidInputError, UserCancelledError


@dataclass(frozen=True)
class MenuItem:
    """One menu line and the command it runs."""
    key: str
    label: str
    command: str
    subcommand: Optional[str] = None
    arg1: Optional[str] = None
    section: Optional[str] = None


MAIN_MENU: List[MenuItem] = [
    MenuItem("A", "Create feature branch", "branch", "create", "feature", section="Development"),
    MenuItem("B", "Create fix branch", "branch", "create", "fix", section="Development"),
    MenuItem("C", "Create PR to develop", "pr", "create", section="Development"),
    MenuItem("D", "Merge PR and cleanup", "pr", "merge", section="Development"),
    MenuItem("E", "Create release branch", "branch", "create", "release", section="Release Management"),
    MenuItem("F", "Create release candidate (RC) tag", "release", "rc", section="Release Management"),
    MenuItem(
        "G", "Ship release to production (merge + tag + deploy)", "release", "ship",
        section="Release Management",
    ),
    MenuItem("H", "Create hotfix branch", "branch", "create", "hotfix", section="Hotfix Management"),
    MenuItem(
        "I", "Ship hotfix to production (merge + tag + deploy)", "hotfix", "ship",
        section="Hotfix Management",
    ),
    MenuItem("J", "Delete a branch", "branch", "delete", section="Utilities"),
    MenuItem("T", "Tag production release on main", "tag", section="Utilities"),
    MenuItem("S", "View status", "status", section="Utilities"),
]

SUBMENUS: Dict[str, List[MenuItem]] = {
    "branch": [
        MenuItem("A", "Create a new branch", "branch", "create"),
        MenuItem("B", "Delete a branch", "branch", "delete"),
    ],
    "pr": [
        MenuItem("A", "Create PR to develop", "pr", "create"),
        MenuItem("B", "Merge PR and cleanup", "pr", "merge"),
    ],
    "release": [
        MenuItem("A", "Create release candidate (RC) tag", "release", "rc"),
        MenuItem("B", "Ship release to production", "release", "ship"),
    ],
    "hotfix": [
        MenuItem("A", "Ship hotfix to production", "hotfix", "ship"),
    ],
}


def match_key(items: Sequence[MenuItem], raw_input: Optional[str]) -> Optional[MenuItem]:
    """Menu item whose key was entered (case-insensitive), or None."""
    key = (raw_input or "").strip().upper()
    for item in items:
        if item.key == key:
            return item
    return None


def _read_choice(console: Console, items: Sequence[MenuItem], prompt: str) -> MenuItem:
    try:
        raw = console.input(prompt)
    except EOFError:
        raw = ""
    if raw.strip().upper() == "Q":
        raise UserCancelledError("Goodbye!")
    item = match_key(items, raw)
    if item is None:
        raise InvalidInputError(f"Invalid option: '{raw.strip()}'")
    return item


def show_main_menu(console: Console, current_branch: Optional[str]) -> MenuItem:
    """Render the main menu and read one choice.

    Raises:
        UserCancelledError: On Q
        InvalidInputError: On any key that is not on the menu
    """
    console.print()
    console.rule("[bold cyan]GitFlow Automation Menu[/bold cyan]", style="cyan")
    console.print(f"[blue]Current branch:[/blue] {current_branch or '(detached HEAD)'}")

    section = None
    for item in MAIN_MENU:
        if item.section != section:
            section = item.section
            console.print(f"\n{section}:")
        console.print(f"  [cyan]{item.key}[/cyan]) {item.label}")
    console.print("  [cyan]Q[/cyan]) Quit\n")

    return _read_choice(console, MAIN_MENU, "Enter choice: ")


def show_submenu(console: Console, command: str) -> MenuItem:
    """Render the per-command A/B/Q menu and read one choice."""
    items = SUBMENUS[command]
    console.print("[cyan]What would you like to do?[/cyan]")
    for item in items:
        console.print(f"{item.key}) {item.label}")
    console.print("Q) Quit\n")

    return _read_choice(console, items, "Select an option: ")
