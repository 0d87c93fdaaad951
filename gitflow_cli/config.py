"""Configuration handling for gitflow-cli"""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

from gitflow_cli.exceptions import ConfigurationError
from gitflow_cli.logging_config import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAME = ".gitflow.json"

PACKAGE_MANAGERS = ["auto", "npm", "yarn", "pnpm", "bun", "none"]
MERGE_PULL_POLICIES = ["always", "prompt", "never"]
MERGE_METHODS = ["squash", "merge", "rebase"]


@dataclass
class Config:
    """Configuration for gitflow-cli with validation."""

    # Versioning
    package_manager: str = "auto"  # auto, npm, yarn, pnpm, bun, none
    versioning: bool = True

    # Branch naming
    feature_prefix: str = "feature"
    fix_prefix: str = "fix"
    release_prefix: str = "release"
    hotfix_prefix: str = "hotfix"
    develop_branch: str = "develop"
    main_branch: str = "main"
    remote_name: str = "origin"

    # Pull requests
    merge_pull_policy: str = "always"  # always, prompt, never
    merge_method: str = "squash"  # squash, merge, rebase
    github_token: Optional[str] = None

    # Execution modes
    interactive: bool = True
    force: bool = False  # answer yes to confirmations
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_package_manager()
        self._validate_prefixes()
        self._validate_base_branches()
        self._validate_merge_options()
        self._validate_flags()

    def _validate_package_manager(self):
        """Validate package_manager is one of allowed values."""
        if self.package_manager not in PACKAGE_MANAGERS:
            raise ValueError(
                f"package_manager must be one of {PACKAGE_MANAGERS}, got '{self.package_manager}'"
            )

    def _validate_prefixes(self):
        """Validate branch prefixes are non-empty and distinct."""
        prefixes = [self.feature_prefix, self.fix_prefix, self.release_prefix, self.hotfix_prefix]
        cleaned = []
        for prefix in prefixes:
            if not prefix or not prefix.strip("/ "):
                raise ValueError("branch prefixes cannot be empty")
            cleaned.append(prefix.strip("/ "))
        if len(set(cleaned)) != len(cleaned):
            raise ValueError(f"branch prefixes must be distinct, got {cleaned}")
        self.feature_prefix, self.fix_prefix, self.release_prefix, self.hotfix_prefix = cleaned

    def _validate_base_branches(self):
        """Validate develop_branch and main_branch are set and different."""
        if not self.develop_branch or not self.develop_branch.strip():
            raise ValueError("develop_branch cannot be empty")
        if not self.main_branch or not self.main_branch.strip():
            raise ValueError("main_branch cannot be empty")
        self.develop_branch = self.develop_branch.strip()
        self.main_branch = self.main_branch.strip()
        if self.develop_branch == self.main_branch:
            raise ValueError("develop_branch and main_branch must differ")
        if not self.remote_name or not self.remote_name.strip():
            raise ValueError("remote_name cannot be empty")

    def _validate_flags(self):
        """Validate on/off settings are real booleans and the token is a string."""
        for name in ("versioning", "interactive", "force", "verbose", "debug"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be true or false, got {value!r}")
        if self.github_token is not None and not isinstance(self.github_token, str):
            raise ValueError("github_token must be a string")

    def _validate_merge_options(self):
        """Validate pull request merge options."""
        if self.merge_pull_policy not in MERGE_PULL_POLICIES:
            raise ValueError(
                f"merge_pull_policy must be one of {MERGE_PULL_POLICIES}, "
                f"got '{self.merge_pull_policy}'"
            )
        if self.merge_method not in MERGE_METHODS:
            raise ValueError(
                f"merge_method must be one of {MERGE_METHODS}, got '{self.merge_method}'"
            )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)


def load_config(repo_root: Union[str, Path, None], **overrides) -> Config:
    """Build a Config from the repository's .gitflow.json plus overrides.

    Args:
        repo_root: Repository root directory (None skips the file lookup)
        **overrides: Values that take precedence over the file (usually CLI flags)

    Returns:
        Validated Config

    Raises:
        ConfigurationError: If the file is not valid JSON or holds invalid values
    """
    values: dict = {}

    if repo_root is not None:
        config_path = Path(repo_root) / CONFIG_FILE_NAME
        if config_path.is_file():
            try:
                with open(config_path) as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Invalid JSON in {config_path}: {e}",
                    f"Fix or remove {CONFIG_FILE_NAME}",
                )
            if not isinstance(data, dict):
                raise ConfigurationError(f"{config_path} must contain a JSON object")
            logger.debug(f"Loaded configuration from {config_path}")
            values.update(data)

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Config.from_dict(values)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}", f"Check {CONFIG_FILE_NAME}")
