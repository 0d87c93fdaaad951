"""Core functionality for gitflow-cli: the branch, version and tag workflows"""

from typing import Callable, List, Optional, Sequence, Tuple, Union

from gitflow_cli.config import Config
from gitflow_cli.core.context import returning_to
from gitflow_cli.exceptions import (
    BranchExistsError,
    BranchNotFoundError,
    BranchVersionMismatchError,
    CannotDeleteCurrentError,
    DirtyWorkingTreeError,
    ExternalToolError,
    GitFlowError,
    InvalidInputError,
    InvalidVersionError,
    NoChangesError,
    NoPrFoundError,
    NotReviewableError,
    PreconditionFailedError,
    ProtectedBranchError,
    TagExistsError,
    UserCancelledError,
    VersionBumpFailedError,
    WrongBaseBranchError,
)
from gitflow_cli.logging_config import get_logger
from gitflow_cli.models.branch import RepositoryContext, SyncStatus, WorkflowKind
from gitflow_cli.models.version import SemVer
from gitflow_cli.services import version_policy
from gitflow_cli.services.branch_naming import BranchNaming
from gitflow_cli.services.display_service import DisplayService
from gitflow_cli.services.protocols import PackageTool, ReviewPlatform, VersionControl
from gitflow_cli.services.selector import Prompter
from gitflow_cli.services.sync_checker import SyncChecker

logger = get_logger(__name__)

CUSTOM_VERSION = "custom"

# One step of a ship: description, commands that redo it by hand, action
ShipStep = Tuple[str, List[str], Callable[[], None]]


class WorkflowEngine:
    """Sequences git, GitHub and package-manager operations into the workflows.

    Every operation takes the current RepositoryContext and returns a fresh one
    describing where the repository was left. All checks fail fast: the first
    violated precondition raises and nothing after it runs.
    """

    def __init__(
        self,
        vcs: VersionControl,
        review: ReviewPlatform,
        package: PackageTool,
        config: Union[Config, dict],
        prompter: Prompter,
        display: DisplayService,
    ):
        self.vcs = vcs
        self.review = review
        self.package = package
        self.config = config
        self.prompter = prompter
        self.display = display
        self.naming = BranchNaming(config)
        self.sync = SyncChecker(vcs, prompter, display)
        self.remote = config.get("remote_name", "origin")
        self.versioning = config.get("versioning", True)

    @property
    def develop(self) -> str:
        return self.naming.develop_branch

    @property
    def main(self) -> str:
        return self.naming.main_branch

    # Prompt helpers

    def _select(self, candidates: Sequence, title: str, what: str, labels: Optional[Sequence[str]] = None):
        """Ask the user to pick one candidate.

        Raises:
            InvalidInputError: In non-interactive mode, where nothing can be asked
            UserCancelledError: If the user quits or enters an invalid choice
        """
        if not self.prompter.interactive:
            raise InvalidInputError(
                f"{what} is required in non-interactive mode",
                "Pass it on the command line; see 'gitflow help'",
            )
        selection = self.prompter.select(candidates, title, labels=labels)
        if selection.cancelled:
            raise UserCancelledError()
        return selection.value

    def _require_clean(self) -> None:
        if not self.vcs.is_clean():
            raise DirtyWorkingTreeError(self.vcs.status_short())

    def _prompt_version(self, kind: WorkflowKind) -> str:
        """Version for a new release/hotfix branch, chosen from increments of the current one."""
        current = self.package.read_version()
        self.display.info(f"Current version: {current}")

        options = version_policy.suggestions(current)
        candidates = [str(version) for _, version in options] + [CUSTOM_VERSION]
        labels = [
            f"{version} ({field} - {version_policy.FIELD_DESCRIPTIONS[field]})"
            for field, version in options
        ] + ["Custom version"]

        choice = self._select(candidates, f"Select version for new {kind.value}:", "Version", labels)
        if choice == CUSTOM_VERSION:
            choice = self.prompter.ask("Enter custom version (e.g., 1.2.0)") or ""
        return choice.strip()

    # Create / delete branches

    def create_branch(
        self,
        ctx: RepositoryContext,
        kind: Optional[WorkflowKind] = None,
        value: Optional[str] = None,
    ) -> RepositoryContext:
        """Create a feature, fix, release or hotfix branch from its required base.

        Release and hotfix branches get the version bump committed and are
        pushed upstream right away; feature and fix branches stay local.
        """
        if kind is None:
            kind = self._select(
                list(WorkflowKind),
                "Select branch type:",
                "Branch type",
                labels=[self.naming.resolve(k).pattern for k in WorkflowKind],
            )

        rule = self.naming.resolve(kind)
        base = rule.required_base
        if ctx.current_branch != base:
            raise WrongBaseBranchError(kind.value, ctx.current_branch, base)

        if value is None:
            if kind.is_versioned:
                value = self._prompt_version(kind)
            else:
                value = self.prompter.ask("Enter branch name (e.g., 'add-new-command')") or ""
        value = value.strip()

        if not value:
            what = "Version" if kind.is_versioned else "Branch name"
            raise InvalidInputError(f"{what} cannot be empty")
        if kind.is_versioned:
            if not version_policy.validate(value):
                raise InvalidVersionError(value)
        elif any(ch.isspace() for ch in value):
            raise InvalidInputError(
                f"Invalid branch name: '{value}'", "Use dashes instead of spaces, e.g. add-new-command"
            )

        if not ctx.is_clean:
            raise DirtyWorkingTreeError(self.vcs.status_short())

        self.sync.ensure_up_to_date(base)

        name = self.naming.branch_name(kind, value)
        if self.vcs.branch_exists(name):
            raise BranchExistsError(name)

        self.display.info(f"Creating {kind.value} branch: {name}")
        self.vcs.create_branch(name)

        if kind.is_versioned:
            if self.versioning:
                self._bump_version(name, base, value)
            self.display.info(f"Pushing {kind.value} branch to {self.remote}...")
            self.vcs.push(name, set_upstream=True)
            self.display.success(f"{kind.value.capitalize()} branch created: {name}")
            self.display.info("This will automatically deploy to Staging")
            if kind == WorkflowKind.RELEASE:
                self.display.warning("Test thoroughly before creating a release candidate!")
            else:
                self.display.warning("Fix the issue, test thoroughly, then ship the hotfix!")
        else:
            self.display.success(f"Branch '{name}' created and checked out")
            self.display.info("Start working on your changes!")

        return self.vcs.context()

    def _bump_version(self, branch: str, base: str, value: str) -> None:
        """Write and commit the new version; undo the branch if that fails."""
        if not self.package.has_manifest():
            self.display.warning(f"Versioning enabled but no {self.package.manifest_name} found")
            self.display.info("Set \"versioning\": false in .gitflow.json for projects without one")
        self.display.info(f"Bumping version to {value}...")
        try:
            self.package.write_version(version_policy.parse(value))
            sha = self.vcs.commit_paths(self.package.version_files(), f"chore: bump version to {value}")
        except ExternalToolError as e:
            self.display.error("Failed to bump version")
            self.display.info(f"Cleaning up and returning to {base}...")
            self._rollback_branch(branch, base)
            raise VersionBumpFailedError(value, e.detail or e.message)
        logger.debug(f"Version bump committed as {sha}")

    def _rollback_branch(self, branch: str, base: str) -> None:
        try:
            self.vcs.checkout(base)
            self.vcs.delete_branch(branch)
        except GitFlowError as e:
            logger.warning(f"Rollback of {branch} incomplete: {e.message}")
            self.display.warning(f"Could not remove {branch}; delete it with: git branch -D {branch}")

    def delete_branch(self, ctx: RepositoryContext, name: Optional[str] = None) -> RepositoryContext:
        """Delete a workflow branch locally and on the remote."""
        if name is None:
            branches = [b for b in self.vcs.list_branches() if self.naming.is_deletable(b)]
            if not branches:
                self.display.info("No feature, fix, release, or hotfix branches found")
                return ctx
            labels = [f"{b} ({self.vcs.last_commit_relative(b)})" for b in branches]
            name = self._select(branches, "Select branch to delete:", "Branch name", labels)

        if not self.naming.is_deletable(name):
            raise ProtectedBranchError(name, (self.develop, self.main))
        if not self.vcs.branch_exists(name):
            raise BranchNotFoundError(name)
        if ctx.current_branch == name:
            raise CannotDeleteCurrentError(name, self.develop)

        self.display.warning(f"This will delete branch: {name}")
        has_remote = self.vcs.remote_branch_exists(name)
        if has_remote:
            self.display.warning(f"This will also delete the remote branch on {self.remote}")
        if not self.prompter.confirm("Continue?"):
            raise UserCancelledError()

        self.display.info("Deleting local branch...")
        self.vcs.delete_branch(name)

        if has_remote:
            self.display.info("Deleting remote branch...")
            try:
                if not self.vcs.delete_remote_branch(name):
                    self.display.warning("Remote branch was already deleted")
            except ExternalToolError as e:
                raise ExternalToolError(
                    e.operation,
                    e.detail,
                    f"Delete it manually: git push {self.remote} --delete {name}",
                )
            self.vcs.prune()

        self.display.success(f"Branch deleted: {name}")
        return self.vcs.context()

    # Pull requests

    def _fill_from_commits(self, kind: WorkflowKind, branch: str, base_ref: str) -> Tuple[str, str]:
        """Title and body for a pull request, taken from the branch's commits.

        A single commit supplies both. Otherwise the title comes from the branch
        name and the body lists the commit subjects.
        """
        subjects = self.vcs.commit_subjects(base_ref, branch)
        if len(subjects) == 1:
            title, _, body = self.vcs.commit_message(branch).partition("\n")
            return title.strip(), body.strip()

        name = self.naming.extract_value(kind, branch) or branch
        title = name.replace("-", " ").replace("_", " ").strip()
        title = title[:1].upper() + title[1:]
        body = "\n".join(f"- {subject}" for subject in subjects)
        return title, body

    def create_pull_request(self, ctx: RepositoryContext, branch: Optional[str] = None) -> RepositoryContext:
        """Push a feature/fix branch and open a pull request into develop."""
        if branch is None:
            branch = ctx.current_branch
            self.display.info(f"Using current branch: {branch or '(detached HEAD)'}")

        kind = self.naming.matches(branch)
        if kind is None or not kind.is_reviewable:
            prefixes = (self.naming.prefix(WorkflowKind.FEATURE), self.naming.prefix(WorkflowKind.FIX))
            raise NotReviewableError(branch, prefixes)

        base_ref = f"{self.remote}/{self.develop}"
        self.vcs.fetch(self.develop)
        if self.vcs.commit_count(base_ref, branch) == 0:
            raise NoChangesError(branch, base_ref)

        title, body = self._fill_from_commits(kind, branch, base_ref)

        self.display.info(f"Pushing branch to {self.remote}...")
        self.vcs.push(branch, set_upstream=True)

        self.display.info("Creating PR...")
        pr = self.review.create_pull_request(base=self.develop, head=branch, title=title, body=body)

        self.display.success("PR created successfully!")
        self.display.info(f"Review: {pr.url or pr}")
        return self.vcs.context()

    def merge_pull_request(self, ctx: RepositoryContext, branch: Optional[str] = None) -> RepositoryContext:
        """Merge the open pull request of a branch and clean up after it."""
        origin = ctx.current_branch
        if branch is None:
            if ctx.is_detached:
                raise InvalidInputError("No branch given and HEAD is detached", "gitflow pr merge <branch>")
            branch = origin
            self.display.info(f"Using current branch: {branch}")

        pr = self.review.find_open_pull_request(branch)
        if pr is None:
            raise NoPrFoundError(branch)

        method = self.config.get("merge_method", "squash")
        with returning_to(self.vcs, origin, skip=(branch, self.develop)):
            self.display.info(f"Merging PR #{pr.number}...")
            self.review.merge_pull_request(pr.number, method=method, delete_branch=True)
            self.display.success(f"PR #{pr.number} merged and remote branch deleted")

            self.display.info(f"Switching to {self.develop}...")
            self.vcs.checkout(self.develop)
            self._update_develop()

            if branch != self.develop and self.vcs.branch_exists(branch):
                self.vcs.delete_branch(branch)
                self.display.info(f"Deleted local branch {branch}")
            self.vcs.prune()

        self.display.success("PR merged and branch cleaned up!")
        return self.vcs.context()

    def _update_develop(self) -> None:
        """Apply the configured pull policy to develop after a merge."""
        policy = self.config.get("merge_pull_policy", "always")
        pull_hint = f"Run 'git pull --ff-only {self.remote} {self.develop}' to update your local {self.develop} branch"

        if policy == "never":
            self.display.info(pull_hint)
            return
        if policy == "prompt" and not self.prompter.confirm(f"Pull latest {self.develop}?", default=True):
            self.display.info(pull_hint)
            return

        # The merge already happened; a failed update only warrants a warning
        try:
            self.vcs.fetch(self.develop)
            status = self.sync.status(self.develop)
            if status == SyncStatus.BEHIND:
                self.vcs.fast_forward(self.develop)
                self.display.success(f"{self.develop} updated from {self.remote}/{self.develop}")
            elif status in (SyncStatus.AHEAD, SyncStatus.DIVERGED):
                self.display.warning(f"Local {self.develop} is {status.value} with {self.remote}; not updated")
        except ExternalToolError as e:
            logger.debug(f"Updating {self.develop} failed: {e}")
            self.display.warning(f"Could not update {self.develop}: {e.detail or e.message}")
            self.display.info(pull_hint)

    # Release candidates and shipping

    def _ensure_on_workflow_branch(self, ctx: RepositoryContext, kind: WorkflowKind) -> RepositoryContext:
        """Offer to switch to a branch of kind unless one is already checked out."""
        if self.naming.matches(ctx.current_branch) == kind:
            return ctx

        prefix = self.naming.prefix(kind)
        self.display.warning(f"Not on a {kind.value} branch.")
        self.display.info(f"Current: {ctx.current_branch or '(detached HEAD)'}")

        if not self.prompter.interactive:
            raise PreconditionFailedError(
                f"Not on a {kind.value} branch: {ctx.current_branch or 'detached HEAD'}",
                f"git checkout {prefix}/v<version>",
            )

        branches = self.vcs.list_branches(prefix)
        if not branches:
            raise PreconditionFailedError(
                f"No {kind.value} branches found",
                f"Create one first with: gitflow branch create {kind.value}",
            )

        labels = [f"{b} ({self.vcs.last_commit_relative(b)})" for b in branches]
        selected = self._select(
            branches,
            f"Available {kind.value} branches (most recent first):",
            f"{kind.value.capitalize()} branch",
            labels,
        )

        self._require_clean()
        self.vcs.checkout(selected)
        self.display.success(f"Switched to {selected}")
        return self.vcs.context()

    def _resolve_version(
        self, ctx: RepositoryContext, kind: WorkflowKind, version: Optional[str]
    ) -> SemVer:
        """Version of the checked-out workflow branch, checked against an explicit one."""
        current = ctx.current_branch or ""
        if version is None:
            version = self.naming.extract_value(kind, current) or ""
            self.display.info(f"Detected version from branch: {version}")

        if not version_policy.validate(version):
            raise InvalidVersionError(version)

        expected = self.naming.branch_name(kind, version)
        if current != expected:
            raise BranchVersionMismatchError(current, expected)
        return version_policy.parse(version)

    def create_rc_tag(
        self,
        ctx: RepositoryContext,
        version: Optional[str] = None,
        rc: Optional[int] = None,
    ) -> RepositoryContext:
        """Tag the release branch tip as the next release candidate and push the tag."""
        ctx = self._ensure_on_workflow_branch(ctx, WorkflowKind.RELEASE)
        semver = self._resolve_version(ctx, WorkflowKind.RELEASE, version)
        branch = ctx.current_branch

        self.sync.ensure_up_to_date(branch)

        existing = sorted(
            self.vcs.list_tags(version_policy.rc_tag_glob(semver)),
            key=lambda tag: version_policy.parse_rc_number(tag, semver) or 0,
        )
        suggested = version_policy.next_rc_number(existing, semver)

        if rc is None:
            if existing:
                self.display.display_list(f"Existing RC tags for {semver.tag}:", existing)
            answer = self.prompter.ask("Enter RC number", default=str(suggested)) or str(suggested)
            if not answer.isdigit():
                raise InvalidInputError(f"Invalid RC number: '{answer}'", "Use a positive integer")
            rc = int(answer)
        if rc < 1:
            raise InvalidInputError(f"Invalid RC number: {rc}", "Use a positive integer")

        tag = version_policy.rc_tag(semver, rc)
        if self.vcs.tag_exists(tag):
            raise TagExistsError(tag)

        self.display.info(f"Creating and pushing RC tag: {tag}")
        self.vcs.create_tag(tag)
        self.vcs.push_tag(tag)

        self.display.success("RC tag created and pushed!")
        self.display.info("This will trigger deployment to UAT.")
        self.display.info(f"Tag: {tag}")
        return self.vcs.context()

    def ship(
        self,
        ctx: RepositoryContext,
        kind: WorkflowKind,
        version: Optional[str] = None,
    ) -> RepositoryContext:
        """Merge a release or hotfix branch into main and develop and tag production.

        Nothing is rolled back when a step fails; the commands that finish the
        ship by hand are printed instead.
        """
        if not kind.is_versioned:
            raise ValueError(f"Only release and hotfix branches can be shipped, got {kind.value}")

        origin = ctx.current_branch
        ctx = self._ensure_on_workflow_branch(ctx, kind)
        semver = self._resolve_version(ctx, kind, version)
        branch = ctx.current_branch
        tag = semver.tag

        if self.vcs.tag_exists(tag):
            raise TagExistsError(tag)
        self._require_clean()

        for target in (branch, self.main, self.develop):
            self.sync.ensure_up_to_date(target)

        # Tag what was reviewed, not whatever the branch points at later
        sha = self.vcs.rev_parse(branch)
        if sha is None:
            raise BranchNotFoundError(branch)
        logger.debug(f"Shipping {branch} at {sha}")

        with returning_to(self.vcs, origin, skip=(self.main,)):
            self._run_ship_steps(self._ship_steps(kind, branch, tag, sha))

        self.display.success(f"{kind.value.capitalize()} shipped to production!")
        self.display.info(f"✓ Merged to {self.main} and {self.develop}")
        self.display.info(f"✓ Tagged as {tag}")
        self.display.info("✓ Production deployment will start automatically")
        self.display.warning(f"Delete {kind.value} branch when ready: gitflow branch delete {branch}")
        return self.vcs.context()

    def _ship_steps(self, kind: WorkflowKind, branch: str, tag: str, sha: str) -> List[ShipStep]:
        remote, main, develop = self.remote, self.main, self.develop

        def merge_into(target: str) -> Callable[[], None]:
            def action():
                self.vcs.checkout(target)
                self.vcs.merge_no_ff(branch, f"Merge {kind.value} branch '{branch}' into {target}")
            return action

        def push(target: str) -> Callable[[], None]:
            return lambda: self.vcs.push(target)

        def create_tag():
            self.vcs.checkout(main)
            self.vcs.create_tag(tag, sha)

        return [
            (
                f"Merging {kind.value} branch to {main}...",
                [f"git checkout {main}", f"git merge --no-ff {branch}"],
                merge_into(main),
            ),
            (f"Pushing {main}...", [f"git push {remote} {main}"], push(main)),
            (
                f"Merging {kind.value} branch back to {develop}...",
                [f"git checkout {develop}", f"git merge --no-ff {branch}"],
                merge_into(develop),
            ),
            (f"Pushing {develop}...", [f"git push {remote} {develop}"], push(develop)),
            (
                f"Creating production tag: {tag}",
                [f"git checkout {main}", f"git tag {tag} {sha}"],
                create_tag,
            ),
            (f"Pushing tag {tag}...", [f"git push {remote} {tag}"], lambda: self.vcs.push_tag(tag)),
        ]

    def _run_ship_steps(self, steps: List[ShipStep]) -> None:
        for index, (description, _, action) in enumerate(steps):
            self.display.info(description)
            try:
                action()
            except GitFlowError:
                remaining = [command for _, commands, _ in steps[index:] for command in commands]
                self.display.error(f"Ship stopped at: {description}")
                self.display.commands("Resolve the problem, then finish with:", remaining)
                raise

    # Production tag and status

    def tag_production(self, ctx: RepositoryContext, version: Optional[str] = None) -> RepositoryContext:
        """Tag the tip of main as a production release."""
        if ctx.current_branch != self.main:
            raise PreconditionFailedError(
                f"Not on {self.main} branch (current: {ctx.current_branch or 'detached HEAD'})",
                f"Switch to {self.main} first: git checkout {self.main}",
            )

        if version is None:
            current = str(self.package.read_version())
            self.display.info(f"Current version: {current}")
            version = self.prompter.ask("Enter version to tag", default=current) or current
        version = version.strip()
        if not version_policy.validate(version):
            raise InvalidVersionError(version)

        self.sync.ensure_up_to_date(self.main)

        tag = version_policy.parse(version).tag
        if self.vcs.tag_exists(tag):
            raise TagExistsError(tag)

        self.display.warning(f"This will create tag {tag} and trigger production deployment.")
        if not self.prompter.confirm("Continue?"):
            raise UserCancelledError()

        self.display.info(f"Creating production tag: {tag}")
        self.vcs.create_tag(tag)
        self.vcs.push_tag(tag)

        self.display.success(f"Production tag {tag} created!")
        self.display.info("Production deployment will start automatically")
        return self.vcs.context()

    def status(self, ctx: RepositoryContext) -> RepositoryContext:
        """Show branch, version, working tree, sync state, recent commits and open PRs."""
        branch = ctx.current_branch
        sync_status = None
        note = None

        if branch is not None and self.vcs.remote_branch_exists(branch):
            try:
                self.vcs.fetch(branch)
                sync_status = self.sync.status(branch)
                if sync_status not in (None, SyncStatus.UP_TO_DATE):
                    remote_ref = f"{self.remote}/{branch}"
                    ahead = self.vcs.commit_count(remote_ref, branch)
                    behind = self.vcs.commit_count(branch, remote_ref)
                    note = f"{ahead} ahead, {behind} behind"
            except ExternalToolError as e:
                self.display.warning(f"Could not check sync status: {e.detail or e.message}")

        self.display.display_status(branch, str(self.package.read_version()), sync_status, self.remote, note)
        self.display.display_working_tree(self.vcs.status_short())
        self.display.display_list("Recent commits:", self.vcs.recent_commits(5))

        try:
            self.display.display_pull_requests(self.review.list_open_pull_requests())
        except ExternalToolError as e:
            self.display.warning(f"Could not list open PRs: {e.detail or e.message}")

        return self.vcs.context()
