"""Workflow state machine for gitflow-cli"""

from gitflow_cli.core.context import returning_to
from gitflow_cli.core.workflow import WorkflowEngine

__all__ = ["WorkflowEngine", "returning_to"]
