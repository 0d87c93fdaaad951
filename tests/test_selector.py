"""Tests for the interactive selector"""
import io
from unittest.mock import Mock

import pytest
from rich.console import Console

from gitflow_cli.services.selector import Prompter, choose

CANDIDATES = ["feature/a", "feature/b", "feature/c"]


class TestChoose:
    """Test the pure input -> selection mapping."""

    def test_number_in_range_selects(self):
        selection = choose(CANDIDATES, "2")
        assert not selection.cancelled
        assert selection.value == "feature/b"
        assert selection.index == 1

    def test_whitespace_is_ignored(self):
        assert choose(CANDIDATES, " 1 \n").value == "feature/a"

    @pytest.mark.parametrize("raw", ["q", "Q", "quit", "", "   ", None, "0", "4", "-1", "abc", "1.5", "²"])
    def test_everything_else_cancels(self, raw):
        """Test quit, empty, out-of-range and garbage all cancel without raising."""
        selection = choose(CANDIDATES, raw)
        assert selection.cancelled
        assert selection.value is None

    def test_empty_candidates(self):
        assert choose([], "1").cancelled


def make_prompter(lines, interactive=True, force=False):
    console = Console(file=io.StringIO(), width=120)
    console.input = Mock(side_effect=list(lines))
    return Prompter(console, interactive=interactive, force=force)


class TestPrompter:
    """Test terminal prompting on top of choose()."""

    def test_select_reads_one_line(self):
        prompter = make_prompter(["3"])
        selection = prompter.select(CANDIDATES, "Select branch to delete:")

        assert selection.value == "feature/c"
        output = prompter.console.file.getvalue()
        assert "1) feature/a" in output
        assert "Q) Quit" in output

    def test_select_non_interactive_cancels(self):
        prompter = make_prompter([], interactive=False)
        assert prompter.select(CANDIDATES, "title").cancelled
        prompter.console.input.assert_not_called()

    def test_select_end_of_input_cancels(self):
        prompter = make_prompter([EOFError()])
        assert prompter.select(CANDIDATES, "title").cancelled

    def test_ask_uses_default_on_blank(self):
        prompter = make_prompter([""])
        assert prompter.ask("Enter RC number", default="3") == "3"

    def test_ask_returns_answer(self):
        prompter = make_prompter(["  add-login  "])
        assert prompter.ask("Enter branch name") == "add-login"

    def test_ask_non_interactive_returns_default(self):
        prompter = make_prompter([], interactive=False)
        assert prompter.ask("Enter version", default="1.2.0") == "1.2.0"

    @pytest.mark.parametrize("answer,expected", [("y", True), ("YES", True), ("n", False), ("", False), ("maybe", False)])
    def test_confirm(self, answer, expected):
        prompter = make_prompter([answer])
        assert prompter.confirm("Continue?") is expected

    def test_confirm_non_interactive_declines(self):
        prompter = make_prompter([], interactive=False)
        assert prompter.confirm("Continue?") is False

    def test_confirm_force_accepts_without_asking(self):
        prompter = make_prompter([], interactive=False, force=True)
        assert prompter.confirm("Continue?") is True
        prompter.console.input.assert_not_called()
