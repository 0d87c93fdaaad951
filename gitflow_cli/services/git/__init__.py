"""Git services for gitflow-cli.

GitOperations is the GitPython implementation of the VersionControl capability.
"""

from .operations import GitOperations

__all__ = ["GitOperations"]
