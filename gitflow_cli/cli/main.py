"""Command-line interface for gitflow-cli"""

import argparse
import os
import sys
from typing import List, Optional

import git
from rich.console import Console
from rich.markup import escape

from gitflow_cli.cli.args import (
    BRANCH_KINDS,
    BRANCH_SUBCOMMANDS,
    HOTFIX_SUBCOMMANDS,
    PR_SUBCOMMANDS,
    RELEASE_SUBCOMMANDS,
    parse_args,
)
from gitflow_cli.cli.menu import MenuItem, show_main_menu, show_submenu
from gitflow_cli.config import Config, load_config
from gitflow_cli.core import WorkflowEngine
from gitflow_cli.exceptions import (
    GitFlowError,
    InvalidInputError,
    PreconditionFailedError,
    UserCancelledError,
)
from gitflow_cli.logging_config import get_logger, setup_logging
from gitflow_cli.models.branch import RepositoryContext, WorkflowKind
from gitflow_cli.services.display_service import DisplayService
from gitflow_cli.services.git import GitOperations
from gitflow_cli.services.github_service import GitHubService
from gitflow_cli.services.package_service import PackageService
from gitflow_cli.services.selector import Prompter

console = Console()
logger = get_logger(__name__)

HEADERS = {
    "branch": "Branch Management",
    "pr": "Pull Request",
    "release": "Release Workflow",
    "hotfix": "Hotfix Workflow",
    "tag": "Tag Production Release",
    "status": "Git Status",
}

SUBCOMMANDS = {
    "branch": BRANCH_SUBCOMMANDS + BRANCH_KINDS,
    "pr": PR_SUBCOMMANDS,
    "release": RELEASE_SUBCOMMANDS,
    "hotfix": HOTFIX_SUBCOMMANDS,
}


class UsageError(InvalidInputError):
    """A command was invoked without a required subcommand."""
    pass


def find_repo_root(path: Optional[str] = None) -> str:
    """Root of the git working tree containing path (cwd by default)."""
    try:
        repo = git.Repo(path or os.getcwd(), search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        raise PreconditionFailedError(
            "Not a git repository", "Run gitflow from inside a git working tree"
        )
    if repo.working_tree_dir is None:
        raise PreconditionFailedError("Bare repositories are not supported")
    return str(repo.working_tree_dir)


def build_engine(repo_root: str, config: Config, out: Console = console) -> WorkflowEngine:
    """Wire the production services into a WorkflowEngine."""
    vcs = GitOperations(repo_root, config)
    review = GitHubService(repo_root, config, remote_url=vcs.remote_url())
    package = PackageService(repo_root, config)
    prompter = Prompter(out, interactive=config.interactive, force=config.force)
    display = DisplayService(out, verbose=config.verbose, debug=config.debug)
    return WorkflowEngine(vcs, review, package, config, prompter, display)


def _parse_kind(value: Optional[str]) -> Optional[WorkflowKind]:
    if value is None:
        return None
    kind = WorkflowKind.parse(value)
    if kind is None:
        raise InvalidInputError(
            f"Invalid branch type: {value}. Must be 'feature', 'fix', 'release', or 'hotfix'"
        )
    return kind


def dispatch(
    engine: WorkflowEngine,
    ctx: RepositoryContext,
    command: str,
    subcommand: Optional[str] = None,
    arg1: Optional[str] = None,
    arg2: Optional[str] = None,
    rc: Optional[int] = None,
) -> RepositoryContext:
    """Run one command against the engine.

    Raises:
        UsageError: When a command that needs a subcommand got none, or --rc
            was given to anything but release rc
        InvalidInputError: For an unknown subcommand
    """
    if command in SUBCOMMANDS:
        if subcommand is None:
            raise UsageError(f"Missing subcommand for '{command}'", f"gitflow {command} --help")
        if subcommand not in SUBCOMMANDS[command]:
            raise InvalidInputError(f"Invalid subcommand: {subcommand}", f"gitflow {command} --help")
    if rc is not None and (command, subcommand) != ("release", "rc"):
        raise UsageError("--rc only applies to 'release rc'", "gitflow release rc <version> --rc <number>")

    logger.debug(f"Dispatching {command} {subcommand or ''} {arg1 or ''} {arg2 or ''}".rstrip())

    if command == "branch":
        if subcommand == "delete":
            return engine.delete_branch(ctx, arg1)
        if subcommand == "create":
            return engine.create_branch(ctx, _parse_kind(arg1), arg2)
        # 'branch feature login' is short for 'branch create feature login'
        return engine.create_branch(ctx, _parse_kind(subcommand), arg1)

    if command == "pr":
        if subcommand == "create":
            return engine.create_pull_request(ctx, arg1)
        return engine.merge_pull_request(ctx, arg1)

    if command == "release":
        if subcommand == "rc":
            return engine.create_rc_tag(ctx, arg1, rc)
        return engine.ship(ctx, WorkflowKind.RELEASE, arg1)

    if command == "hotfix":
        return engine.ship(ctx, WorkflowKind.HOTFIX, arg1)

    if command == "tag":
        return engine.tag_production(ctx, arg1)

    if command == "status":
        return engine.status(ctx)

    raise InvalidInputError(f"Unknown command: {command}", "gitflow help")


def run_menu_item(engine: WorkflowEngine, ctx: RepositoryContext, item: MenuItem) -> RepositoryContext:
    engine.display.header(HEADERS[item.command])
    return dispatch(engine, ctx, item.command, item.subcommand, item.arg1)


def run(args: argparse.Namespace, out: Console = console) -> int:
    """Execute parsed arguments; GitFlowError propagates to main()."""
    if args.command == "help":
        args.parser.print_help()
        return 0

    interactive = sys.stdin.isatty() and not args.no_interactive
    if args.command is None and not interactive:
        args.parser.print_help(sys.stderr)
        return 1

    repo_root = find_repo_root()
    config = load_config(
        repo_root,
        interactive=interactive,
        force=args.force or None,
        verbose=args.verbose or None,
        debug=args.debug or None,
    )
    if config.debug:
        out.print("[yellow]Debug mode enabled[/yellow]")
        for key, value in config.to_dict().items():
            if key == "github_token" and value:
                value = "***"
            logger.debug(f"config {key}: {value}")

    engine = build_engine(repo_root, config, out)
    ctx = engine.vcs.context()

    if args.command is None:
        item = show_main_menu(out, ctx.current_branch)
        run_menu_item(engine, ctx, item)
        return 0

    engine.display.header(HEADERS[args.command])
    subcommand = args.subcommand
    if args.command in SUBCOMMANDS and subcommand is None:
        if not interactive:
            args.command_parser.print_usage(sys.stderr)
            raise UsageError(f"Missing subcommand for '{args.command}'", f"gitflow {args.command} --help")
        subcommand = show_submenu(out, args.command).subcommand

    dispatch(engine, ctx, args.command, subcommand, args.arg1, args.arg2, args.rc)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

    try:
        return run(parsed_args)
    except UserCancelledError as e:
        console.print(f"[blue]ℹ[/blue] {escape(e.message)}")
        return 0
    except GitFlowError as e:
        logger.debug(f"{type(e).__name__}: {e.message}")
        console.print(f"[red]✗[/red] {escape(e.message)}")
        if e.hint:
            console.print(f"[blue]ℹ[/blue] {escape(e.hint)}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
