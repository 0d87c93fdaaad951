"""Command-line argument parsing for gitflow-cli."""

import argparse
import sys
from typing import List, Optional

from gitflow_cli.__version__ import __version__

# Canonical command name for every accepted token
COMMAND_ALIASES = {
    "branch": "branch",
    "b": "branch",
    "pr": "pr",
    "p": "pr",
    "release": "release",
    "r": "release",
    "hotfix": "hotfix",
    "h": "hotfix",
    "tag": "tag",
    "t": "tag",
    "status": "status",
    "s": "status",
    "help": "help",
    "?": "help",
}

BRANCH_SUBCOMMANDS = ["create", "delete"]
BRANCH_KINDS = ["feature", "fix", "release", "hotfix"]
PR_SUBCOMMANDS = ["create", "merge"]
RELEASE_SUBCOMMANDS = ["rc", "ship"]
HOTFIX_SUBCOMMANDS = ["ship"]


class GitFlowArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def positive_int(value: str) -> int:
    """argparse type for --rc."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid RC number: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"RC number must be positive, got {number}")
    return number


def build_parser() -> GitFlowArgumentParser:
    """Build the top-level parser with one subparser per command."""
    parser = GitFlowArgumentParser(
        prog="gitflow",
        description="GitFlow automation: feature/fix/release/hotfix branches, PRs and tags",
        epilog="Run without a command for the interactive menu. "
        "GitHub access requires the GITHUB_TOKEN environment variable or 'github_token' in .gitflow.json",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--version", action="version", version=f"gitflow-cli {__version__}")
    parser.add_argument(
        "--no-interactive",
        action="store_true",
        help="Never prompt (for scripts/automation); missing arguments become errors",
    )
    parser.add_argument("--force", action="store_true", help="Skip confirmations")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    branch = subparsers.add_parser(
        "branch",
        aliases=["b"],
        help="Create or delete feature/fix/release/hotfix branches",
        description="Create or delete branches. 'branch <kind> [value]' is short for 'branch create <kind> [value]'.",
    )
    branch.add_argument(
        "subcommand",
        nargs="?",
        metavar="SUBCOMMAND",
        help=f"One of {', '.join(BRANCH_SUBCOMMANDS + BRANCH_KINDS)}",
    )
    branch.add_argument("arg1", nargs="?", metavar="KIND_OR_BRANCH", help="Branch kind, or branch to delete")
    branch.add_argument("arg2", nargs="?", metavar="NAME_OR_VERSION", help="Branch name or version")
    branch.set_defaults(command_parser=branch)

    pr = subparsers.add_parser("pr", aliases=["p"], help="Create or merge pull requests")
    pr.add_argument("subcommand", nargs="?", metavar="SUBCOMMAND", help="create or merge")
    pr.add_argument("arg1", nargs="?", metavar="BRANCH", help="Branch name (default: current branch)")
    pr.set_defaults(command_parser=pr)

    release = subparsers.add_parser(
        "release", aliases=["r"], help="Create RC tags and ship releases to production"
    )
    release.add_argument("subcommand", nargs="?", metavar="SUBCOMMAND", help="rc or ship")
    release.add_argument("arg1", nargs="?", metavar="VERSION", help="Semantic version, e.g. 1.2.0")
    release.add_argument("--rc", type=positive_int, metavar="NUMBER", help="RC number (default: next free)")
    release.set_defaults(command_parser=release)

    hotfix = subparsers.add_parser("hotfix", aliases=["h"], help="Ship hotfixes to production")
    hotfix.add_argument("subcommand", nargs="?", metavar="SUBCOMMAND", help="ship")
    hotfix.add_argument("arg1", nargs="?", metavar="VERSION", help="Semantic version, e.g. 1.2.1")
    hotfix.set_defaults(command_parser=hotfix)

    tag = subparsers.add_parser("tag", aliases=["t"], help="Tag main as a production release")
    tag.add_argument("arg1", nargs="?", metavar="VERSION", help="Version to tag (default: package.json)")
    tag.set_defaults(command_parser=tag)

    status = subparsers.add_parser("status", aliases=["s"], help="Show repository status")
    status.set_defaults(command_parser=status)

    help_parser = subparsers.add_parser("help", aliases=["?"], help="Show this help message")
    help_parser.set_defaults(command_parser=parser)

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    The returned namespace always carries subcommand/arg1/arg2/rc and a
    canonical `command` (aliases resolved, None when no command was given).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    args.command = COMMAND_ALIASES.get(args.command) if args.command else None
    for name in ("subcommand", "arg1", "arg2", "rc"):
        if not hasattr(args, name):
            setattr(args, name, None)
    if not hasattr(args, "command_parser"):
        args.command_parser = parser
    args.parser = parser
    return args
