"""Custom exceptions for gitflow-cli"""

from typing import Optional


class GitFlowError(Exception):
    """Base exception for all gitflow-cli errors.

    Every error carries a one-line message naming the violated precondition and
    an optional hint with the command that fixes it.
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(message)


class InvalidInputError(GitFlowError):
    """Malformed user input (version string, empty name, bad option)."""
    pass


class PreconditionFailedError(GitFlowError):
    """Repository is not in the state an operation requires."""
    pass


class ConflictError(GitFlowError):
    """Target already exists or histories have diverged."""
    pass


class ExternalToolError(GitFlowError):
    """Exception raised when git, GitHub or the package tool reports a failure."""

    def __init__(self, operation: str, message: Optional[str] = None, hint: Optional[str] = None):
        self.operation = operation
        self.detail = message

        error_msg = f"Operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg, hint)


class UserCancelledError(GitFlowError):
    """The user quit a prompt or declined a confirmation."""

    def __init__(self, message: str = "Cancelled"):
        super().__init__(message)


class InvalidVersionError(InvalidInputError):
    """Exception raised for a version that is not MAJOR.MINOR.PATCH."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(
            f"Invalid version format: '{version}'",
            "Use semantic versioning, e.g. 1.2.0",
        )


class ConfigurationError(InvalidInputError):
    """Exception raised for an invalid .gitflow.json file."""
    pass


class WrongBaseBranchError(PreconditionFailedError):
    """Exception raised when a branch is created from the wrong starting point."""

    def __init__(self, kind: str, current: Optional[str], expected: str):
        self.kind = kind
        self.current = current
        self.expected = expected
        super().__init__(
            f"Cannot create {kind} branch from '{current or 'detached HEAD'}'; "
            f"you must be on '{expected}'",
            f"git checkout {expected}",
        )


class DirtyWorkingTreeError(PreconditionFailedError):
    """Exception raised when uncommitted changes would be affected."""

    def __init__(self, status: str = ""):
        self.status = status
        super().__init__(
            "You have uncommitted changes. Please commit or stash them first.",
            "git stash",
        )


class ProtectedBranchError(PreconditionFailedError):
    """Exception raised when attempting to delete a protected branch."""

    def __init__(self, branch: str, protected: tuple = ()):
        self.branch = branch
        names = ", ".join(protected) if protected else "main, develop"
        super().__init__(
            f"Cannot delete branch: {branch}",
            f"Only feature, fix, release and hotfix branches can be deleted (protected: {names})",
        )


class CannotDeleteCurrentError(PreconditionFailedError):
    """Exception raised when attempting to delete the checked-out branch."""

    def __init__(self, branch: str, fallback: str = "develop"):
        self.branch = branch
        super().__init__(
            f"Cannot delete the current branch: {branch}",
            f"Switch to another branch first: git checkout {fallback}",
        )


class BranchNotFoundError(PreconditionFailedError):
    """Exception raised when a branch is not found."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"Branch does not exist: {branch}")


class NotReviewableError(PreconditionFailedError):
    """Exception raised when a PR is requested for a non feature/fix branch."""

    def __init__(self, branch: Optional[str], prefixes: tuple = ("feature", "fix")):
        self.branch = branch
        patterns = " or ".join(f"'{p}/*'" for p in prefixes)
        super().__init__(
            f"Not a reviewable branch: {branch or 'detached HEAD'}",
            f"Pull requests are only created from {patterns} branches",
        )


class NoChangesError(PreconditionFailedError):
    """Exception raised when a branch has no commits relative to its base."""

    def __init__(self, branch: str, base: str):
        self.branch = branch
        self.base = base
        super().__init__(
            f"No commits found between {base} and {branch}",
            "Make some changes and commit them before creating a PR",
        )


class NoPrFoundError(PreconditionFailedError):
    """Exception raised when no open pull request exists for a branch."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"No open PR found for branch: {branch}", "gitflow pr create")


class BranchVersionMismatchError(PreconditionFailedError):
    """Exception raised when the requested version does not match the branch."""

    def __init__(self, current: str, expected: str):
        self.current = current
        self.expected = expected
        super().__init__(
            f"Branch/version mismatch: on '{current}', expected '{expected}'",
            f"git checkout {expected}",
        )


class BehindRemoteError(PreconditionFailedError):
    """Exception raised when a local branch is behind its remote and was not updated."""

    def __init__(self, branch: str, remote: str = "origin"):
        self.branch = branch
        super().__init__(
            f"Your local '{branch}' branch is behind {remote}/{branch}",
            f"Pull latest changes first: git checkout {branch} && git pull --ff-only {remote} {branch}",
        )


class UnpushedCommitsError(PreconditionFailedError):
    """Exception raised when a local branch has commits its remote does not."""

    def __init__(self, branch: str, remote: str = "origin"):
        self.branch = branch
        super().__init__(
            f"Your local '{branch}' branch has unpushed commits",
            f"Push them first: git push {remote} {branch}",
        )


class MissingRemoteBranchError(PreconditionFailedError):
    """Exception raised when a branch has no counterpart on the remote."""

    def __init__(self, branch: str, remote: str = "origin"):
        self.branch = branch
        super().__init__(
            f"Branch '{branch}' does not exist on {remote}",
            f"git push -u {remote} {branch}",
        )


class TagExistsError(ConflictError):
    """Exception raised when a tag would be created twice."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(
            f"Tag {tag} already exists!",
            "Use a different version or RC number, or delete the existing tag first",
        )


class BranchExistsError(ConflictError):
    """Exception raised when the branch to create already exists."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"Branch already exists: {branch}", f"git checkout {branch}")


class DivergedBranchError(ConflictError):
    """Exception raised when a local branch and its remote have diverged."""

    def __init__(self, branch: str, remote: str = "origin"):
        self.branch = branch
        super().__init__(
            f"Local '{branch}' and {remote}/{branch} have diverged",
            f"Resolve manually: git checkout {branch} && git pull --rebase {remote} {branch}",
        )


class VersionBumpFailedError(ExternalToolError):
    """Exception raised when the package tool could not write the new version."""

    def __init__(self, version: str, message: Optional[str] = None):
        self.version = version
        super().__init__(
            f"bump version to {version}",
            message,
            "Set \"versioning\": false in .gitflow.json for projects without package.json",
        )


class GitHubUnavailableError(ExternalToolError):
    """Exception raised when GitHub integration is required but not configured."""

    def __init__(self, message: str):
        super().__init__(
            "connect to GitHub",
            message,
            "Set the GITHUB_TOKEN environment variable or \"github_token\" in .gitflow.json",
        )
