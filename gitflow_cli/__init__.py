"""
gitflow-cli - GitFlow automation for git and GitHub
"""

from .__version__ import __version__
from .core import WorkflowEngine
from .cli.main import main

__all__ = ["WorkflowEngine", "main", "__version__"]
