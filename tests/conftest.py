"""Pytest fixtures for gitflow-cli tests"""
import fnmatch
import io
import itertools
import logging
import tempfile
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import Mock

import git
import pytest
from rich.console import Console

from gitflow_cli.core import WorkflowEngine
from gitflow_cli.exceptions import ExternalToolError
from gitflow_cli.models.branch import RepositoryContext
from gitflow_cli.models.version import SemVer
from gitflow_cli.services.display_service import DisplayService
from gitflow_cli.services.selector import Selection, choose


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo setup_logging() calls made by a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    git_level = logging.getLogger("git").level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("git").setLevel(git_level)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_config():
    """Create a mock configuration dictionary."""
    return {
        'verbose': False,
        'debug': False,
        'interactive': False,
        'force': False,
        'package_manager': 'npm',
        'versioning': True,
        'feature_prefix': 'feature',
        'fix_prefix': 'fix',
        'release_prefix': 'release',
        'hotfix_prefix': 'hotfix',
        'develop_branch': 'develop',
        'main_branch': 'main',
        'remote_name': 'origin',
        'merge_pull_policy': 'always',
        'merge_method': 'squash',
        'github_token': 'test_token_for_testing',
    }


def _commit_file(repo: git.Repo, name: str, content: str, message: str) -> str:
    """Write a file, commit it on the checked-out branch and return the commit id."""
    path = Path(repo.working_tree_dir) / name
    path.write_text(content)
    repo.index.add([name])
    return repo.index.commit(message).hexsha


def configure_user(repo: git.Repo) -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")


@pytest.fixture
def commit_file():
    """Helper committing one file: commit_file(repo, name, content, message) -> sha."""
    return _commit_file


@pytest.fixture
def origin_repo(temp_dir):
    """Bare repository acting as the 'origin' remote."""
    repo = git.Repo.init(temp_dir / "origin.git", bare=True)
    yield repo
    repo.close()


@pytest.fixture
def git_repo(temp_dir, origin_repo):
    """Create a real Git repository with main and develop pushed to a bare origin.

    The repository is left on develop with a clean working tree.
    """
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)
    configure_user(repo)

    _commit_file(repo, "README.md", "# Test Repository\n", "Initial commit")
    repo.git.branch('-M', 'main')

    repo.create_remote('origin', origin_repo.git_dir)
    repo.git.push('-u', 'origin', 'main')

    repo.git.checkout('-b', 'develop')
    repo.git.push('-u', 'origin', 'develop')

    yield repo

    repo.close()


@pytest.fixture
def other_clone(temp_dir, git_repo, origin_repo):
    """Second clone of origin, used to push commits the test repository has not seen."""
    clone = git.Repo.clone_from(origin_repo.git_dir, temp_dir / "other_clone")
    configure_user(clone)
    clone.git.checkout('develop')
    yield clone
    clone.close()


class FakeVersionControl:
    """In-memory VersionControl: a commit graph, local and remote refs, and tags.

    Every mutating call is appended to `calls` so tests can assert what ran.
    """

    remote_name = "origin"

    def __init__(self):
        self._ids = itertools.count(1)
        self.parents: Dict[str, List[str]] = {}
        self.messages: Dict[str, str] = {}
        root = self._new_commit([], "Initial commit")
        self.branches: Dict[str, str] = {"main": root, "develop": root}
        self.remote_branches: Dict[str, str] = {"main": root, "develop": root}
        self.tags: Dict[str, str] = {}
        self.remote_tags: List[str] = []
        self.current: Optional[str] = "develop"
        self.clean = True
        self.calls: List[tuple] = []

    # Test helpers

    def _new_commit(self, parents: List[str], message: str) -> str:
        sha = f"c{next(self._ids):04d}"
        self.parents[sha] = parents
        self.messages[sha] = message
        return sha

    def commit(self, message: str, branch: Optional[str] = None) -> str:
        """Add a commit on branch (default: current) without recording a call."""
        branch = branch or self.current
        sha = self._new_commit([self.branches[branch]], message)
        self.branches[branch] = sha
        return sha

    def remote_commit(self, branch: str, message: str) -> str:
        """Add a commit that only exists on the remote branch."""
        sha = self._new_commit([self.remote_branches[branch]], message)
        self.remote_branches[branch] = sha
        return sha

    def _ancestors(self, sha: str) -> set:
        seen, stack = set(), [sha]
        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self.parents.get(node, []))
        return seen

    def called(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    # VersionControl

    def context(self) -> RepositoryContext:
        return RepositoryContext(root="/fake/repo", current_branch=self.current, is_clean=self.clean)

    def current_branch(self) -> Optional[str]:
        return self.current

    def is_clean(self) -> bool:
        return self.clean

    def status_short(self) -> str:
        return "" if self.clean else " M src/app.js"

    def list_branches(self, prefix: Optional[str] = None) -> List[str]:
        names = list(reversed(list(self.branches)))
        if prefix:
            names = [n for n in names if n.startswith(f"{prefix}/")]
        return names

    def branch_exists(self, name: str) -> bool:
        return name in self.branches

    def remote_branch_exists(self, name: str) -> bool:
        return name in self.remote_branches

    def create_branch(self, name: str) -> None:
        self.calls.append(("create_branch", name))
        self.branches[name] = self.branches[self.current]
        self.current = name

    def checkout(self, name: str) -> None:
        self.calls.append(("checkout", name))
        if name not in self.branches:
            raise ExternalToolError(f"checkout {name}", f"pathspec '{name}' did not match")
        self.current = name

    def delete_branch(self, name: str) -> None:
        self.calls.append(("delete_branch", name))
        del self.branches[name]

    def delete_remote_branch(self, name: str) -> bool:
        self.calls.append(("delete_remote_branch", name))
        return self.remote_branches.pop(name, None) is not None

    def prune(self) -> None:
        self.calls.append(("prune",))

    def fetch(self, *branches: str) -> None:
        self.calls.append(("fetch",) + branches)

    def rev_parse(self, ref: str) -> Optional[str]:
        if ref.startswith(f"{self.remote_name}/"):
            return self.remote_branches.get(ref[len(self.remote_name) + 1:])
        if ref.startswith("refs/tags/"):
            return self.tags.get(ref[len("refs/tags/"):])
        if ref in self.branches:
            return self.branches[ref]
        if ref in self.tags:
            return self.tags[ref]
        return ref if ref in self.parents else None

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return ancestor in self._ancestors(descendant)

    def merge_no_ff(self, branch: str, message: Optional[str] = None) -> None:
        self.calls.append(("merge_no_ff", branch, self.current))
        sha = self._new_commit(
            [self.branches[self.current], self.branches[branch]],
            message or f"Merge branch '{branch}'",
        )
        self.branches[self.current] = sha

    def fast_forward(self, branch: str) -> None:
        self.calls.append(("fast_forward", branch))
        self.branches[branch] = self.remote_branches[branch]

    def push(self, ref: str, set_upstream: bool = False) -> None:
        self.calls.append(("push", ref, set_upstream))
        self.remote_branches[ref] = self.branches[ref]

    def commit_paths(self, paths: List[str], message: str) -> str:
        self.calls.append(("commit_paths", tuple(paths), message))
        return self.commit(message)

    def _range(self, base: str, head: str) -> List[str]:
        base_sha, head_sha = self.rev_parse(base), self.rev_parse(head)
        exclude = self._ancestors(base_sha) if base_sha else set()
        shas = [sha for sha in self._ancestors(head_sha) if sha not in exclude]
        return sorted(shas)

    def commit_count(self, base: str, head: str) -> int:
        return len(self._range(base, head))

    def commit_subjects(self, base: str, head: str) -> List[str]:
        return [self.messages[sha].splitlines()[0] for sha in self._range(base, head)]

    def commit_message(self, ref: str) -> str:
        return self.messages[self.rev_parse(ref)]

    def recent_commits(self, count: int = 5) -> List[str]:
        tip = self.branches[self.current]
        shas = sorted(self._ancestors(tip), reverse=True)[:count]
        return [f"{sha} {self.messages[sha].splitlines()[0]}" for sha in shas]

    def last_commit_relative(self, ref: str) -> str:
        return "2 days ago"

    def list_tags(self, pattern: Optional[str] = None) -> List[str]:
        names = sorted(self.tags)
        if pattern:
            names = [n for n in names if fnmatch.fnmatchcase(n, pattern)]
        return names

    def tag_exists(self, tag: str) -> bool:
        return tag in self.tags

    def create_tag(self, tag: str, ref: Optional[str] = None) -> None:
        self.calls.append(("create_tag", tag, ref))
        if tag in self.tags:
            raise ExternalToolError(f"create tag {tag}", f"tag '{tag}' already exists")
        self.tags[tag] = self.rev_parse(ref) if ref else self.branches[self.current]

    def push_tag(self, tag: str) -> None:
        self.calls.append(("push_tag", tag))
        self.remote_tags.append(tag)

    def remote_url(self) -> Optional[str]:
        return "git@github.com:test/repo.git"


class ScriptedPrompter:
    """Prompter that answers from a list instead of the terminal."""

    def __init__(self, answers: Optional[List] = None, interactive: bool = True, force: bool = False):
        self.answers = list(answers or [])
        self.interactive = interactive
        self.force = force
        self.prompts: List[str] = []

    def _next(self):
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {self.prompts[-1]}")
        return self.answers.pop(0)

    def select(self, candidates, title, labels=None) -> Selection:
        self.prompts.append(title)
        if not self.interactive:
            return Selection()
        return choose(candidates, self._next())

    def ask(self, text, default=None):
        self.prompts.append(text)
        if not self.interactive:
            return default
        answer = self._next()
        return answer or default

    def confirm(self, text, default=False) -> bool:
        self.prompts.append(text)
        if self.force:
            return True
        if not self.interactive:
            return default
        return bool(self._next())


@pytest.fixture
def fake_vcs():
    """In-memory repository on develop, with main and develop pushed."""
    return FakeVersionControl()


@pytest.fixture
def review():
    """Mock ReviewPlatform."""
    platform = Mock()
    platform.find_open_pull_request.return_value = None
    platform.list_open_pull_requests.return_value = []
    return platform


@pytest.fixture
def package():
    """Mock PackageTool reporting version 1.1.0."""
    tool = Mock()
    tool.manifest_name = "package.json"
    tool.has_manifest.return_value = True
    tool.read_version.return_value = SemVer(1, 1, 0)
    tool.version_files.return_value = ["package.json"]
    return tool


@pytest.fixture
def display():
    """DisplayService writing to a buffer; read it with display.console.file.getvalue()."""
    return DisplayService(Console(file=io.StringIO(), width=200, force_terminal=False))


@pytest.fixture
def make_engine(fake_vcs, review, package, mock_config, display):
    """Factory building a WorkflowEngine over the fakes with scripted answers."""
    def _make(answers=None, interactive=True, force=False, **overrides):
        config = dict(mock_config, **overrides)
        prompter = ScriptedPrompter(answers, interactive=interactive, force=force)
        return WorkflowEngine(fake_vcs, review, package, config, prompter, display)
    return _make


@pytest.fixture
def scripted_prompter():
    """The ScriptedPrompter class: scripted_prompter(answers, interactive=True)."""
    return ScriptedPrompter
