"""Return to the starting branch after a multi-step operation."""

from contextlib import contextmanager
from typing import Iterable, Optional

from gitflow_cli.exceptions import GitFlowError
from gitflow_cli.logging_config import get_logger
from gitflow_cli.services.protocols import VersionControl

logger = get_logger(__name__)


@contextmanager
def returning_to(vcs: VersionControl, origin: Optional[str], skip: Iterable[str] = ()):
    """Check out origin again when the block exits, successfully or not.

    Nothing is restored when origin is None (detached HEAD), is listed in skip,
    or is already checked out. A failed restore is logged and never replaces
    the exception raised inside the block.
    """
    skip = set(skip)
    try:
        yield
    finally:
        if origin is not None and origin not in skip:
            try:
                if vcs.current_branch() != origin:
                    logger.info(f"Returning to {origin}")
                    vcs.checkout(origin)
            except GitFlowError as e:
                logger.warning(f"Could not return to {origin}: {e.message}")
