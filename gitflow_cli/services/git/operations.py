"""Git operations service"""

import git
from contextlib import contextmanager
from typing import List, Optional, Union, TYPE_CHECKING

from gitflow_cli.exceptions import ExternalToolError
from gitflow_cli.logging_config import get_logger
from gitflow_cli.models.branch import RepositoryContext

if TYPE_CHECKING:
    from gitflow_cli.config import Config

logger = get_logger(__name__)

REMOTE_REF_GONE = "remote ref does not exist"


def describe_git_error(e: git.exc.GitCommandError) -> str:
    """Build a one-line description of a failed git command."""
    command = e.command if hasattr(e, "command") else "git"
    if isinstance(command, (list, tuple)):
        command = " ".join(str(part) for part in command)
    stderr = (e.stderr if hasattr(e, "stderr") and e.stderr else "").strip()
    status = e.status if hasattr(e, "status") else "unknown"

    # GitPython prefixes captured stderr with "stderr: '...'"
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:"):].strip().strip("'").strip()

    if stderr:
        return f"'{command}' failed (exit {status}): {stderr}"
    return f"'{command}' failed with exit code {status}"


class GitOperations:
    """Service for Git operations."""

    def __init__(self, repo_path: str, config: Union["Config", dict]):
        """Initialize the service.

        Args:
            repo_path: Path to the git repository (string path, not repo object)
            config: Configuration dictionary or Config object
        """
        self.repo_path = repo_path
        self.config = config
        self.remote_name = config.get("remote_name", "origin")
        logger.debug(f"Git operations initialized for {repo_path}")

    def _get_repo(self) -> git.Repo:
        """Get a git.Repo instance.

        GitPython repos are lightweight - they don't clone, just open the existing
        repo. A fresh instance per call never serves stale ref caches.

        Returns:
            git.Repo: A fresh repository instance
        """
        return git.Repo(self.repo_path)

    @contextmanager
    def _git_operation(self, operation: str, branch: Optional[str] = None):
        """Translate failures of a git operation.

        Raises:
            ExternalToolError: With git's own stderr when the command fails
        """
        try:
            yield
        except git.exc.GitCommandError as e:
            error_msg = describe_git_error(e)
            logger.debug(f"{operation} failed: {error_msg}")
            label = f"{operation} {branch}" if branch else operation
            raise ExternalToolError(label, error_msg)

    # Queries

    def context(self) -> RepositoryContext:
        """Snapshot of root, current branch and working-tree cleanliness."""
        repo = self._get_repo()
        return RepositoryContext(
            root=str(repo.working_tree_dir),
            current_branch=self.current_branch(),
            is_clean=self.is_clean(),
        )

    def current_branch(self) -> Optional[str]:
        """Name of the checked-out branch, None on detached HEAD."""
        try:
            return self._get_repo().active_branch.name
        except TypeError:
            return None

    def is_clean(self) -> bool:
        """True when tracked files have no staged or unstaged changes."""
        return not self._get_repo().is_dirty(untracked_files=False)

    def status_short(self) -> str:
        """`git status --short` output."""
        return self._get_repo().git.status("--short")

    def list_branches(self, prefix: Optional[str] = None) -> List[str]:
        """Local branches, most recent commit first.

        Args:
            prefix: Only branches under '<prefix>/' when given
        """
        pattern = f"refs/heads/{prefix}" if prefix else "refs/heads"
        output = self._get_repo().git.for_each_ref(
            "--sort=-committerdate", "--format=%(refname:short)", pattern
        )
        return [line.strip() for line in output.splitlines() if line.strip()]

    def branch_exists(self, name: str) -> bool:
        """Check if a local branch exists."""
        return name in [head.name for head in self._get_repo().heads]

    def remote_branch_exists(self, name: str) -> bool:
        """Check if the branch has a remote tracking branch."""
        try:
            remote = self._get_repo().remote(self.remote_name)
            return f"{self.remote_name}/{name}" in [ref.name for ref in remote.refs]
        except (ValueError, AssertionError) as e:
            # No such remote, or a remote without any refs yet
            logger.debug(f"Error checking remote branch {name}: {e}")
            return False

    def rev_parse(self, ref: str) -> Optional[str]:
        """Commit id ref points at, or None if it does not resolve."""
        try:
            return self._get_repo().git.rev_parse("--verify", "--quiet", f"{ref}^{{commit}}").strip()
        except git.exc.GitCommandError:
            return None

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """True if ancestor is reachable from descendant."""
        with self._git_operation("is-ancestor"):
            return self._get_repo().is_ancestor(ancestor, descendant)

    def commit_count(self, base: str, head: str) -> int:
        """Number of commits on head that are not on base."""
        with self._git_operation("count commits", head):
            return int(self._get_repo().git.rev_list("--count", f"{base}..{head}").strip() or 0)

    def commit_subjects(self, base: str, head: str) -> List[str]:
        """Subjects of the commits on head that are not on base, oldest first."""
        with self._git_operation("list commits", head):
            output = self._get_repo().git.log("--reverse", "--format=%s", f"{base}..{head}")
        return [line for line in output.splitlines() if line.strip()]

    def commit_message(self, ref: str) -> str:
        """Full message of the commit ref points at."""
        message = self._get_repo().commit(ref).message
        # GitPython can return bytes for undecodable messages
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="ignore")
        return message.strip()

    def recent_commits(self, count: int = 5) -> List[str]:
        """One-line summaries of the last count commits on HEAD."""
        try:
            output = self._get_repo().git.log("--oneline", "-n", str(count))
        except git.exc.GitCommandError as e:
            logger.debug(f"Error reading recent commits: {e}")
            return []
        return output.splitlines()

    def last_commit_relative(self, ref: str) -> str:
        """Relative date of the last commit on ref, e.g. '2 days ago'."""
        try:
            return self._get_repo().git.log("-1", "--format=%cr", ref).strip() or "unknown"
        except git.exc.GitCommandError as e:
            logger.debug(f"Error getting last commit date for {ref}: {e}")
            return "unknown"

    def list_tags(self, pattern: Optional[str] = None) -> List[str]:
        """Tag names, optionally filtered by a glob pattern."""
        repo = self._get_repo()
        output = repo.git.tag("-l", pattern) if pattern else repo.git.tag("-l")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def tag_exists(self, tag: str) -> bool:
        """Check if a tag exists locally."""
        return self.rev_parse(f"refs/tags/{tag}") is not None

    def remote_url(self) -> Optional[str]:
        """URL of the configured remote, None if there is no such remote."""
        try:
            return self._get_repo().remote(self.remote_name).url
        except ValueError:
            return None

    # Mutations

    def fetch(self, *branches: str) -> None:
        """Refresh remote-tracking refs.

        With no arguments fetches everything and prunes refs deleted on the
        remote; otherwise fetches only the named branches.
        """
        with self._git_operation("fetch"):
            repo = self._get_repo()
            if branches:
                logger.debug(f"Fetching {', '.join(branches)} from {self.remote_name}...")
                repo.git.fetch(self.remote_name, *branches, "--quiet")
            else:
                logger.debug(f"Fetching {self.remote_name}...")
                repo.git.fetch("--prune", self.remote_name, "--quiet")

    def prune(self) -> None:
        """Drop remote-tracking refs whose branch no longer exists on the remote."""
        try:
            self._get_repo().git.fetch("--prune", self.remote_name, "--quiet")
        except git.exc.GitCommandError as e:
            logger.debug(f"Prune of {self.remote_name} failed: {e}")

    def create_branch(self, name: str) -> None:
        """Create a branch at HEAD and check it out."""
        with self._git_operation("create branch", name):
            logger.info(f"Creating branch {name}")
            self._get_repo().git.checkout("-b", name)

    def checkout(self, name: str) -> None:
        """Check out an existing branch."""
        with self._git_operation("checkout", name):
            logger.info(f"Checking out {name}")
            self._get_repo().git.checkout(name)

    def delete_branch(self, name: str) -> None:
        """Delete a local branch, merged or not."""
        with self._git_operation("delete branch", name):
            logger.info(f"Deleting local branch {name}")
            self._get_repo().delete_head(name, force=True)

    def delete_remote_branch(self, name: str) -> bool:
        """Delete a branch on the remote.

        Returns:
            True if deleted, False if it was already gone on the remote
        """
        repo = self._get_repo()
        try:
            logger.info(f"Deleting remote branch {self.remote_name}/{name}")
            repo.git.push(self.remote_name, "--delete", name)
            return True
        except git.exc.GitCommandError as e:
            if REMOTE_REF_GONE in str(e.stderr or ""):
                logger.debug(f"Remote branch {name} was already deleted")
                return False
            raise ExternalToolError(f"delete remote branch {name}", describe_git_error(e))

    def merge_no_ff(self, branch: str, message: Optional[str] = None) -> None:
        """Merge branch into the current branch, always creating a merge commit."""
        with self._git_operation("merge", branch):
            repo = self._get_repo()
            logger.info(f"Merging {branch} into {self.current_branch()} (--no-ff)")
            if message:
                repo.git.merge("--no-ff", "-m", message, branch)
            else:
                repo.git.merge("--no-ff", "--no-edit", branch)

    def fast_forward(self, branch: str) -> None:
        """Move branch to its remote-tracking tip, refusing anything but a fast-forward."""
        with self._git_operation("fast-forward", branch):
            repo = self._get_repo()
            if self.current_branch() == branch:
                repo.git.merge("--ff-only", f"{self.remote_name}/{branch}")
            else:
                # Without a leading '+' the refspec only accepts fast-forwards
                repo.git.fetch(self.remote_name, f"{branch}:{branch}", "--quiet")
            logger.info(f"Fast-forwarded {branch} to {self.remote_name}/{branch}")

    def push(self, ref: str, set_upstream: bool = False) -> None:
        """Push a branch to the remote."""
        with self._git_operation("push", ref):
            repo = self._get_repo()
            logger.info(f"Pushing {ref} to {self.remote_name}")
            if set_upstream:
                repo.git.push("-u", self.remote_name, ref)
            else:
                repo.git.push(self.remote_name, ref)

    def commit_paths(self, paths: List[str], message: str) -> str:
        """Stage paths and commit them.

        Returns:
            The new commit id
        """
        with self._git_operation("commit"):
            repo = self._get_repo()
            repo.git.add("--", *paths)
            repo.git.commit("-m", message)
            return repo.head.commit.hexsha

    def create_tag(self, tag: str, ref: Optional[str] = None) -> None:
        """Create a lightweight tag at ref (HEAD by default)."""
        with self._git_operation("create tag", tag):
            logger.info(f"Creating tag {tag} at {ref or 'HEAD'}")
            self._get_repo().create_tag(tag, ref=ref or "HEAD")

    def push_tag(self, tag: str) -> None:
        """Push a single tag to the remote."""
        with self._git_operation("push tag", tag):
            logger.info(f"Pushing tag {tag} to {self.remote_name}")
            self._get_repo().git.push(self.remote_name, f"refs/tags/{tag}")
