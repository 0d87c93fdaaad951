"""GitHub API integration service"""
import os
from typing import Optional, List, TYPE_CHECKING, Union
from urllib.parse import urlparse
from github import Auth, Github, GithubException

from gitflow_cli.exceptions import ExternalToolError, GitHubUnavailableError
from gitflow_cli.logging_config import get_logger
from gitflow_cli.models.pull_request import PullRequestInfo

if TYPE_CHECKING:
    from github.PullRequest import PullRequest
    from github.Repository import Repository
    from gitflow_cli.config import Config

logger = get_logger(__name__)


def parse_github_repo(remote_url: str) -> Optional[str]:
    """Extract 'owner/repo' from a GitHub remote URL, None for other hosts."""
    if not remote_url or "github.com" not in remote_url:
        return None

    if remote_url.startswith("git@"):
        # Handle SSH URL format (git@github.com:org/repo.git)
        path = remote_url.split("github.com:", 1)[1]
    else:
        # Handle HTTPS URL format (https://github.com/org/repo.git)
        parsed_url = urlparse(remote_url)
        path = parsed_url.path.strip("/")

    if path.endswith(".git"):
        path = path[:-4]

    return path or None


def _error_text(e: GithubException) -> str:
    """GitHub's own error message from an exception."""
    data = e.data if isinstance(e.data, dict) else {}
    message = data.get("message") or str(e)
    details = [err.get("message") for err in data.get("errors", []) if isinstance(err, dict)]
    details = [d for d in details if d]
    if details:
        message += f" ({'; '.join(details)})"
    return message


class GitHubService:
    """Pull-request operations backed by the GitHub REST API."""

    def __init__(self, repo_path: str, config: Union['Config', dict], remote_url: Optional[str] = None):
        """Initialize the service.

        The API connection is opened lazily on the first pull-request call, so
        commands that never touch GitHub work without a token.
        """
        self.repo_path = repo_path
        self.config = config
        self.remote_url = remote_url
        self.github_token = config.get("github_token") or os.environ.get("GITHUB_TOKEN")
        self.github_repo: Optional[str] = None
        self.github: Optional[Github] = None
        self.gh_repo: Optional['Repository'] = None

    def setup_github_api(self, remote_url: str) -> None:
        """Setup GitHub API access.

        Raises:
            GitHubUnavailableError: For non-GitHub remotes, missing token, or unreachable repo
        """
        path = parse_github_repo(remote_url)
        if path is None:
            raise GitHubUnavailableError(f"Remote '{remote_url}' is not a GitHub repository")
        self.github_repo = path

        if not self.github_token:
            raise GitHubUnavailableError("No GitHub token found")

        try:
            self.github = Github(auth=Auth.Token(self.github_token))
            self.gh_repo = self.github.get_repo(self.github_repo)
        except GithubException as e:
            raise GitHubUnavailableError(f"Cannot access {path}: {_error_text(e)}")

        logger.debug(f"[GitHub] GitHub integration enabled for: {path}")

    def _repository(self) -> 'Repository':
        """Connected repository, set up on first use."""
        if self.gh_repo is None:
            if not self.remote_url:
                raise GitHubUnavailableError("Repository has no remote")
            self.setup_github_api(self.remote_url)
        assert self.gh_repo is not None
        return self.gh_repo

    def _owner(self) -> str:
        assert self.github_repo is not None
        return self.github_repo.split('/')[0]

    @staticmethod
    def _to_info(pr: 'PullRequest') -> PullRequestInfo:
        return PullRequestInfo(
            number=pr.number,
            title=pr.title,
            head=pr.head.ref,
            base=pr.base.ref,
            url=pr.html_url,
        )

    def create_pull_request(self, base: str, head: str, title: str, body: str) -> PullRequestInfo:
        """Open a pull request from head into base."""
        gh_repo = self._repository()
        try:
            pr = gh_repo.create_pull(base=base, head=head, title=title, body=body)
        except GithubException as e:
            raise ExternalToolError("create pull request", _error_text(e))
        logger.info(f"[GitHub] Created PR #{pr.number} for {head}")
        return self._to_info(pr)

    def find_open_pull_request(self, branch: str) -> Optional[PullRequestInfo]:
        """Most recent open pull request whose head is branch, or None."""
        gh_repo = self._repository()
        try:
            pulls = list(gh_repo.get_pulls(state='open', head=f"{self._owner()}:{branch}"))
        except GithubException as e:
            raise ExternalToolError("view pull request", _error_text(e))
        if not pulls:
            logger.debug(f"[GitHub] No open PR for {branch}")
            return None
        latest = max(pulls, key=lambda pr: pr.created_at)
        return self._to_info(latest)

    def merge_pull_request(self, number: int, method: str = "squash", delete_branch: bool = True) -> None:
        """Merge a pull request and delete its head branch on GitHub.

        A head branch that is already gone is not an error.
        """
        gh_repo = self._repository()
        try:
            pr = gh_repo.get_pull(number)
            status = pr.merge(merge_method=method)
        except GithubException as e:
            raise ExternalToolError(f"merge PR #{number}", _error_text(e))

        if not status.merged:
            raise ExternalToolError(f"merge PR #{number}", status.message)
        logger.info(f"[GitHub] Merged PR #{number} ({method})")

        if not delete_branch:
            return

        head = pr.head.ref
        try:
            gh_repo.get_git_ref(f"heads/{head}").delete()
            logger.info(f"[GitHub] Deleted remote branch {head}")
        except GithubException as e:
            if e.status in (404, 422):
                logger.debug(f"[GitHub] Remote branch {head} was already deleted")
            else:
                raise ExternalToolError(f"delete remote branch {head}", _error_text(e))

    def list_open_pull_requests(self) -> List[PullRequestInfo]:
        """All open pull requests of the repository."""
        gh_repo = self._repository()
        try:
            return [self._to_info(pr) for pr in gh_repo.get_pulls(state='open')]
        except GithubException as e:
            raise ExternalToolError("list pull requests", _error_text(e))
