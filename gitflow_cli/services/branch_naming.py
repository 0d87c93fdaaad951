"""Branch naming rules for gitflow-cli."""

from dataclasses import dataclass
from typing import Dict, Optional, Union, TYPE_CHECKING

from gitflow_cli.models.branch import WorkflowKind

if TYPE_CHECKING:
    from gitflow_cli.config import Config


@dataclass(frozen=True)
class BranchRule:
    """Naming pattern and required starting branch of one workflow kind."""
    kind: WorkflowKind
    prefix: str
    required_base: str

    @property
    def pattern(self) -> str:
        """Human readable pattern, e.g. 'release/v<version>'."""
        if self.kind.is_versioned:
            return f"{self.prefix}/v<version>"
        return f"{self.prefix}/<name>"


class BranchNaming:
    """Table-driven mapping between workflow kinds and branch names."""

    def __init__(self, config: Union["Config", dict]):
        """Build the rule table from configured prefixes and base branches.

        Args:
            config: Configuration dictionary or Config object
        """
        develop = config.get("develop_branch", "develop")
        main = config.get("main_branch", "main")
        self.develop_branch = develop
        self.main_branch = main
        self._rules: Dict[WorkflowKind, BranchRule] = {
            WorkflowKind.FEATURE: BranchRule(
                WorkflowKind.FEATURE, config.get("feature_prefix", "feature"), develop
            ),
            WorkflowKind.FIX: BranchRule(WorkflowKind.FIX, config.get("fix_prefix", "fix"), develop),
            WorkflowKind.RELEASE: BranchRule(
                WorkflowKind.RELEASE, config.get("release_prefix", "release"), develop
            ),
            WorkflowKind.HOTFIX: BranchRule(
                WorkflowKind.HOTFIX, config.get("hotfix_prefix", "hotfix"), main
            ),
        }

    def resolve(self, kind: WorkflowKind) -> BranchRule:
        """Pattern and required base branch for kind."""
        return self._rules[kind]

    def prefix(self, kind: WorkflowKind) -> str:
        """Bare prefix of kind (no trailing slash)."""
        return self._rules[kind].prefix

    def matches(self, branch_name: Optional[str]) -> Optional[WorkflowKind]:
        """Kind whose '<prefix>/' starts branch_name, or None."""
        if not branch_name:
            return None
        for rule in self._rules.values():
            head = f"{rule.prefix}/"
            if branch_name.startswith(head) and len(branch_name) > len(head):
                return rule.kind
        return None

    def branch_name(self, kind: WorkflowKind, value: str) -> str:
        """Full branch name for a name (feature/fix) or version (release/hotfix)."""
        rule = self._rules[kind]
        if kind.is_versioned:
            return f"{rule.prefix}/v{value}"
        return f"{rule.prefix}/{value}"

    def extract_value(self, kind: WorkflowKind, branch_name: str) -> Optional[str]:
        """Embedded name or version of branch_name, or None if it is not of kind.

        For release/hotfix the leading 'v' is stripped: release/v1.2.0 -> 1.2.0.
        """
        if self.matches(branch_name) != kind:
            return None
        value = branch_name[len(self._rules[kind].prefix) + 1:]
        if kind.is_versioned and value.startswith("v"):
            value = value[1:]
        return value

    def is_protected(self, branch_name: str) -> bool:
        """develop and main can never be deleted."""
        return branch_name in (self.develop_branch, self.main_branch)

    def is_deletable(self, branch_name: str) -> bool:
        """Only workflow-kind branches may be deleted."""
        return not self.is_protected(branch_name) and self.matches(branch_name) is not None
