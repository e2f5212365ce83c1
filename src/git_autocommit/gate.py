"""Up-front validation of a run's configuration.

Nothing in here touches the repository beyond read-only queries; a run only
proceeds to branch handling when `validate` returns None.
"""

import enum
import logging
from pathlib import Path

from .config import RunOptions
from .constants import APP_NAME, ARCHIVE_NAMESPACE, MIN_INTERVAL, RESERVED_BRANCH
from .git_wrapper import GitRepo

logger = logging.getLogger(APP_NAME)


class ValidationFailure(enum.Enum):
    """Reasons a run is refused before any branch is touched."""

    NOT_A_REPOSITORY = "not_a_repository"
    INTERVAL_TOO_SMALL = "interval_too_small"
    RESERVED_BRANCH_NAME = "reserved_branch_name"

    def describe(self, options: RunOptions) -> str:
        """Returns the user-facing explanation for this failure."""
        if self is ValidationFailure.NOT_A_REPOSITORY:
            return f"{options.directory} is not a valid git repository"
        if self is ValidationFailure.INTERVAL_TOO_SMALL:
            return f"The defined interval can't be smaller than {MIN_INTERVAL} seconds"
        return (
            f"Branch names '{RESERVED_BRANCH}' and '{ARCHIVE_NAMESPACE}/...' "
            "are reserved for auto commits"
        )


def is_reserved_name(name: str) -> bool:
    """Checks whether a branch name collides with the reserved or archival names."""
    return name == RESERVED_BRANCH or name.startswith(f"{ARCHIVE_NAMESPACE}/")


def is_repository_root(repo_path: Path) -> bool:
    """Checks that a path is the root of a git working tree."""
    if not repo_path.is_dir():
        return False
    try:
        repo = GitRepo(repo_path)
        return repo.toplevel().resolve() == repo_path.resolve()
    except (ValueError, RuntimeError, OSError) as e:
        logger.debug(f"Repository check failed for {repo_path}: {e}")
        return False


def validate(options: RunOptions) -> ValidationFailure | None:
    """Checks that a run may start.

    Args:
        options (RunOptions): The run configuration.

    Returns:
        ValidationFailure | None: The first failing check, or None if valid.
    """
    logger.debug("Checking for git repo")
    if not is_repository_root(options.directory):
        return ValidationFailure.NOT_A_REPOSITORY

    if options.interval < MIN_INTERVAL:
        return ValidationFailure.INTERVAL_TOO_SMALL

    for name in (options.branch, options.source_branch):
        if name and is_reserved_name(name):
            return ValidationFailure.RESERVED_BRANCH_NAME

    return None
