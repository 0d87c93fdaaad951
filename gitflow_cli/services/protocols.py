"""Capability interfaces the workflow engine depends on.

The engine never talks to git, GitHub or the package manager directly; it is
given objects satisfying these protocols. GitOperations, GitHubService and
PackageService are the production implementations.
"""

from typing import List, Optional, Protocol

from gitflow_cli.models.branch import RepositoryContext
from gitflow_cli.models.pull_request import PullRequestInfo
from gitflow_cli.models.version import SemVer


class VersionControl(Protocol):
    """Version-control operations used by the workflows."""

    remote_name: str

    def context(self) -> RepositoryContext: ...

    def current_branch(self) -> Optional[str]: ...

    def is_clean(self) -> bool: ...

    def status_short(self) -> str: ...

    def list_branches(self, prefix: Optional[str] = None) -> List[str]: ...

    def branch_exists(self, name: str) -> bool: ...

    def remote_branch_exists(self, name: str) -> bool: ...

    def create_branch(self, name: str) -> None: ...

    def checkout(self, name: str) -> None: ...

    def delete_branch(self, name: str) -> None: ...

    def delete_remote_branch(self, name: str) -> bool: ...

    def prune(self) -> None: ...

    def fetch(self, *branches: str) -> None: ...

    def rev_parse(self, ref: str) -> Optional[str]: ...

    def is_ancestor(self, ancestor: str, descendant: str) -> bool: ...

    def merge_no_ff(self, branch: str, message: Optional[str] = None) -> None: ...

    def fast_forward(self, branch: str) -> None: ...

    def push(self, ref: str, set_upstream: bool = False) -> None: ...

    def commit_paths(self, paths: List[str], message: str) -> str: ...

    def commit_count(self, base: str, head: str) -> int: ...

    def commit_subjects(self, base: str, head: str) -> List[str]: ...

    def commit_message(self, ref: str) -> str: ...

    def recent_commits(self, count: int = 5) -> List[str]: ...

    def last_commit_relative(self, ref: str) -> str: ...

    def list_tags(self, pattern: Optional[str] = None) -> List[str]: ...

    def tag_exists(self, tag: str) -> bool: ...

    def create_tag(self, tag: str, ref: Optional[str] = None) -> None: ...

    def push_tag(self, tag: str) -> None: ...

    def remote_url(self) -> Optional[str]: ...


class ReviewPlatform(Protocol):
    """Pull-request operations used by the workflows."""

    def create_pull_request(self, base: str, head: str, title: str, body: str) -> PullRequestInfo: ...

    def find_open_pull_request(self, branch: str) -> Optional[PullRequestInfo]: ...

    def merge_pull_request(self, number: int, method: str = "squash", delete_branch: bool = True) -> None: ...

    def list_open_pull_requests(self) -> List[PullRequestInfo]: ...


class PackageTool(Protocol):
    """Reads and writes the project version through the package manager."""

    manifest_name: str

    def detect_package_manager(self) -> str: ...

    def has_manifest(self) -> bool: ...

    def read_version(self) -> SemVer: ...

    def write_version(self, version: SemVer) -> None: ...

    def version_files(self) -> List[str]: ...
