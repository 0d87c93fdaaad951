"""Local/remote synchronization checks run before every mutating operation."""

from typing import Callable, Optional

from gitflow_cli.exceptions import (
    BehindRemoteError,
    DivergedBranchError,
    MissingRemoteBranchError,
    UnpushedCommitsError,
)
from gitflow_cli.logging_config import get_logger
from gitflow_cli.models.branch import SyncStatus
from gitflow_cli.services.display_service import DisplayService
from gitflow_cli.services.protocols import VersionControl
from gitflow_cli.services.selector import Prompter

logger = get_logger(__name__)


def classify(local_sha: str, remote_sha: str, is_ancestor: Callable[[str, str], bool]) -> SyncStatus:
    """Compare two commits.

    Args:
        local_sha: Tip of the local branch
        remote_sha: Tip of its remote-tracking branch
        is_ancestor: is_ancestor(a, b) is True when a is reachable from b
    """
    if local_sha == remote_sha:
        return SyncStatus.UP_TO_DATE
    if is_ancestor(local_sha, remote_sha):
        return SyncStatus.BEHIND
    if is_ancestor(remote_sha, local_sha):
        return SyncStatus.AHEAD
    return SyncStatus.DIVERGED


class SyncChecker:
    """Fetches, classifies and enforces the up-to-date policy for one branch."""

    def __init__(self, vcs: VersionControl, prompter: Prompter, display: DisplayService):
        self.vcs = vcs
        self.prompter = prompter
        self.display = display

    @property
    def remote(self) -> str:
        return self.vcs.remote_name

    def status(self, branch: str) -> Optional[SyncStatus]:
        """Sync status of branch from the last fetch, None if either side does not resolve."""
        local_sha = self.vcs.rev_parse(branch)
        remote_sha = self.vcs.rev_parse(f"{self.remote}/{branch}")
        if local_sha is None or remote_sha is None:
            return None
        return classify(local_sha, remote_sha, self.vcs.is_ancestor)

    def check(self, branch: str) -> SyncStatus:
        """Fetch and classify branch against its remote counterpart.

        Raises:
            MissingRemoteBranchError: If the branch does not exist on the remote
        """
        logger.debug(f"Checking sync of {branch} with {self.remote}")
        self.vcs.fetch()
        if not self.vcs.remote_branch_exists(branch):
            raise MissingRemoteBranchError(branch, self.remote)
        status = self.status(branch)
        if status is None:
            raise MissingRemoteBranchError(branch, self.remote)
        logger.debug(f"{branch} is {status.value} with {self.remote}/{branch}")
        return status

    def ensure_up_to_date(self, branch: str) -> None:
        """Check branch and enforce the policy.

        Behind: offer a fast-forward pull. Ahead: refuse, never auto-push.
        Diverged: refuse with manual resolution instructions.
        """
        self.display.info(f"Checking if {branch} is up to date with {self.remote}...")
        status = self.check(branch)

        if status == SyncStatus.UP_TO_DATE:
            self.display.success(f"{branch} is up to date with {self.remote}/{branch}")
            return

        if status == SyncStatus.BEHIND:
            self.display.warning(f"Your local '{branch}' branch is behind {self.remote}/{branch}")
            if not self.prompter.interactive:
                raise BehindRemoteError(branch, self.remote)
            if not self.prompter.confirm(f"Pull latest changes into {branch} (fast-forward only)?"):
                raise BehindRemoteError(branch, self.remote)
            self.vcs.fast_forward(branch)
            self.display.success(f"{branch} updated from {self.remote}/{branch}")
            return

        if status == SyncStatus.AHEAD:
            raise UnpushedCommitsError(branch, self.remote)

        raise DivergedBranchError(branch, self.remote)
