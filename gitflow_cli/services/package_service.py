"""Package manager integration: read and write the project version."""

import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Union, TYPE_CHECKING

from gitflow_cli.exceptions import ExternalToolError
from gitflow_cli.logging_config import get_logger
from gitflow_cli.models.version import SemVer
from gitflow_cli.services import version_policy

if TYPE_CHECKING:
    from gitflow_cli.config import Config

logger = get_logger(__name__)

MANIFEST_NAME = "package.json"

# Checked in order; the first lock file found decides the package manager
LOCK_FILES = [
    ("bun.lockb", "bun"),
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
]

VERSION_COMMANDS: Dict[str, List[str]] = {
    "npm": ["npm", "version", "{version}", "--no-git-tag-version"],
    "yarn": ["yarn", "version", "--new-version", "{version}", "--no-git-tag-version"],
    "pnpm": ["pnpm", "version", "{version}", "--no-git-tag-version"],
    "bun": ["bun", "pm", "version", "{version}", "--no-git-tag-version"],
}

# Files a version bump may rewrite, committed together with the manifest
VERSION_FILES = [MANIFEST_NAME, "package-lock.json"]


class PackageService:
    """Reads the manifest version and delegates version writes to the package manager."""

    manifest_name = MANIFEST_NAME

    def __init__(self, repo_root: Union[str, Path], config: Union["Config", dict]):
        """Initialize the service.

        Args:
            repo_root: Repository root holding the manifest
            config: Configuration dictionary or Config object
        """
        self.repo_root = Path(repo_root)
        self.config = config

    @property
    def manifest_path(self) -> Path:
        return self.repo_root / MANIFEST_NAME

    def has_manifest(self) -> bool:
        return self.manifest_path.is_file()

    def detect_package_manager(self) -> str:
        """Configured package manager, or one detected from lock files.

        Returns:
            One of npm, yarn, pnpm, bun, none
        """
        configured = self.config.get("package_manager", "auto")
        if configured != "auto":
            return configured

        for lock_file, manager in LOCK_FILES:
            if (self.repo_root / lock_file).exists():
                return manager

        # Default to npm if package.json exists but no lock file
        if self.has_manifest():
            return "npm"
        return "none"

    def read_version(self) -> SemVer:
        """Current manifest version (0.0.0 when absent)."""
        return version_policy.current_version(self.manifest_path)

    def version_files(self) -> List[str]:
        """Repository-relative files a version bump may have changed."""
        return [name for name in VERSION_FILES if (self.repo_root / name).exists()]

    def write_version(self, version: SemVer) -> None:
        """Set the manifest version through the package manager.

        Raises:
            ExternalToolError: If no package manager is usable or the command fails
        """
        manager = self.detect_package_manager()
        if manager == "none":
            raise ExternalToolError(
                "bump version", "No package manager detected. Cannot bump version."
            )
        if manager not in VERSION_COMMANDS:
            raise ExternalToolError("bump version", f"Unknown package manager: {manager}")
        if shutil.which(manager) is None:
            raise ExternalToolError("bump version", f"'{manager}' is not installed")

        cmd = [part.format(version=version) for part in VERSION_COMMANDS[manager]]
        logger.info(f"Running {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(self.repo_root),
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise ExternalToolError("bump version", str(e))

        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()
            raise ExternalToolError(
                "bump version", f"{' '.join(cmd[:3])} failed (exit {proc.returncode}): {detail}"
            )
        logger.debug(f"Version set to {version} with {manager}")
