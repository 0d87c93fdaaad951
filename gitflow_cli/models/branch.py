"""Branch model and related enums"""
from enum import Enum
from dataclasses import dataclass
from typing import Optional


class WorkflowKind(Enum):
    """Kind of workflow branch."""
    FEATURE = "feature"
    FIX = "fix"
    RELEASE = "release"
    HOTFIX = "hotfix"

    @property
    def is_versioned(self) -> bool:
        """Release and hotfix branches carry a version and produce tags."""
        return self in (WorkflowKind.RELEASE, WorkflowKind.HOTFIX)

    @property
    def is_reviewable(self) -> bool:
        """Feature and fix branches go through pull requests."""
        return self in (WorkflowKind.FEATURE, WorkflowKind.FIX)

    @classmethod
    def parse(cls, value: str) -> Optional["WorkflowKind"]:
        """Return the kind named by value, or None."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class SyncStatus(Enum):
    """Sync status of a local branch with its remote counterpart."""
    UP_TO_DATE = "up-to-date"
    BEHIND = "behind"
    AHEAD = "ahead"
    DIVERGED = "diverged"


@dataclass(frozen=True)
class RepositoryContext:
    """Snapshot of the working repository threaded through every workflow."""
    root: str
    current_branch: Optional[str]  # None = detached HEAD
    is_clean: bool

    @property
    def is_detached(self) -> bool:
        return self.current_branch is None
