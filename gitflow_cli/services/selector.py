"""Interactive selection: a pure chooser plus the terminal prompter around it."""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from gitflow_cli.logging_config import get_logger

logger = get_logger(__name__)

QUIT_KEYS = ("q", "quit")


@dataclass(frozen=True)
class Selection:
    """Outcome of a choice: the picked candidate, or a cancellation."""
    value: Any = None
    index: Optional[int] = None  # 0-based position of value in the candidates

    @property
    def cancelled(self) -> bool:
        return self.index is None


CANCELLED = Selection()


def choose(candidates: Sequence[Any], raw_input: Optional[str]) -> Selection:
    """Map one line of user input onto a 1-indexed candidate list.

    A number in range selects that candidate. Anything else (quit key, empty,
    out of range, not a number) cancels. Never raises.
    """
    if raw_input is None:
        return CANCELLED
    text = raw_input.strip()
    if not text or text.lower() in QUIT_KEYS:
        return CANCELLED
    if not text.isdigit() or not text.isascii():
        return CANCELLED
    number = int(text)
    if number < 1 or number > len(candidates):
        return CANCELLED
    return Selection(value=candidates[number - 1], index=number - 1)


class Prompter:
    """Terminal I/O for menus, free-text questions and confirmations."""

    def __init__(self, console: Optional[Console] = None, interactive: bool = True, force: bool = False):
        """
        Args:
            console: rich console to render on
            interactive: False means no prompt is ever shown
            force: Answer yes to every confirmation without asking
        """
        self.console = console or Console()
        self.interactive = interactive
        self.force = force

    def _read(self, prompt: str) -> Optional[str]:
        try:
            return self.console.input(prompt)
        except EOFError:
            logger.debug("End of input while prompting")
            return None

    def select(
        self,
        candidates: Sequence[Any],
        title: str,
        labels: Optional[Sequence[str]] = None,
    ) -> Selection:
        """Render a numbered list and read the choice.

        Args:
            candidates: Values to choose from
            title: Heading shown above the list
            labels: Display text per candidate (defaults to str(candidate))
        """
        if not self.interactive or not candidates:
            return CANCELLED

        labels = list(labels) if labels is not None else [str(c) for c in candidates]
        self.console.print(f"\n[bold cyan]{escape(title)}[/bold cyan]")
        for number, label in enumerate(labels, start=1):
            self.console.print(f"  [bold]{number})[/bold] {escape(label)}")
        self.console.print("  [bold]Q)[/bold] Quit")

        selection = choose(candidates, self._read("\nSelect an option: "))
        logger.debug(f"Selected {selection.value!r}" if not selection.cancelled else "Selection cancelled")
        return selection

    def ask(self, text: str, default: Optional[str] = None) -> Optional[str]:
        """Free-text question; blank input yields the default.

        Non-interactive prompters return the default without asking.
        """
        if not self.interactive:
            return default
        suffix = f" [dim]\\[{default}][/dim]" if default else ""
        answer = self._read(f"{text}{suffix}: ")
        if answer is None:
            return default
        answer = answer.strip()
        return answer or default

    def confirm(self, text: str, default: bool = False) -> bool:
        """Yes/no question.

        --force answers yes; a non-interactive prompter without it answers the default.
        """
        if self.force:
            return True
        if not self.interactive:
            return default
        hint = "Y/n" if default else "y/N"
        answer = self._read(f"{text} \\[{hint}] ")
        if answer is None or not answer.strip():
            return default
        return answer.strip().lower() in ("y", "yes")
