import datetime
import logging
from dataclasses import dataclass

from .constants import APP_NAME, ARCHIVE_NAMESPACE, PROTECTED_BRANCHES, RESERVED_BRANCH
from .git_wrapper import GitRepo

logger = logging.getLogger(APP_NAME)


class AmbiguousStateError(RuntimeError):
    """Raised when a run starts while the reserved branch is checked out."""


@dataclass(frozen=True)
class RunState:
    """Where a run started, captured before any snapshot commit exists.

    Attributes:
        start_branch (str | None): The branch to return to, or None when the
            run started on a detached HEAD.
        start_commit (str): The tip of the start branch at capture time.
        reserved_branch (str): The branch receiving snapshot commits.
    """

    start_branch: str | None
    start_commit: str
    reserved_branch: str = RESERVED_BRANCH

    @property
    def display_name(self) -> str:
        return self.start_branch or self.start_commit[:12]


def archive_branch_name(now: datetime.datetime | None = None) -> str:
    """Builds a sortable archival branch name for a stale reserved branch.

    Args:
        now (datetime.datetime | None, optional): The timestamp to encode.
                                                  Defaults to the current time.

    Returns:
        str: A name such as 'autoCommits/2024-05-01/13-45-10.123456'.
    """
    now = now or datetime.datetime.now()
    return f"{ARCHIVE_NAMESPACE}/{now.strftime('%Y-%m-%d/%H-%M-%S.%f')}"


class BranchController:
    """Manages the reserved auto-commit branch over the lifetime of a run.

    The reserved branch is treated as a resource: `acquire` creates and checks
    it out, `release` deletes it. A branch left behind by a crashed run is
    never deleted; `recover_stale` renames it into the archival namespace.

    Attributes:
        repo (GitRepo): The repository handle.
        reserved (str): The reserved branch name.
    """

    def __init__(self, repo: GitRepo, reserved: str = RESERVED_BRANCH):
        self.repo = repo
        self.reserved = reserved

    def check_start(self) -> None:
        """Refuses to run while the reserved branch is checked out.

        Raises:
            AmbiguousStateError: If HEAD is the reserved branch.
        """
        if self.repo.current_branch() == self.reserved:
            raise AmbiguousStateError(
                f"You're still on a {self.reserved} branch. "
                "This is most likely because of a previous crash or unusual "
                "program termination. Please fix your repository first, e.g. "
                f"check out your working branch and rename '{self.reserved}'."
            )

    def checkout_source(self, name: str) -> None:
        """Checks out a source branch and pulls it from its tracked remote.

        Pull failures propagate.
        """
        logger.info(f"Starting on branch {name}")
        self.repo.checkout(name)
        logger.debug(f"Pulling {name}")
        self.repo.pull()

    def create_target(self, name: str) -> None:
        """Creates a new branch at the current tip and checks it out."""
        logger.info(f"Creating {name} branch")
        self.repo.checkout_new_branch(name)

    def capture_start(self) -> RunState:
        """Records the branch and commit the run returns to.

        Raises:
            RuntimeError: If the repository has no commits yet.
        """
        start_commit = self.repo.head_commit()
        if start_commit is None:
            raise RuntimeError(
                "The repository has no commits yet. Create an initial commit first."
            )
        start_branch = self.repo.current_branch() or None

        if start_branch is None:
            logger.warning(
                f"HEAD is detached at {start_commit[:12]}. "
                "Squashed changes will be committed on a detached HEAD."
            )
        elif start_branch in PROTECTED_BRANCHES:
            logger.warning(f"Warning: You're currently working on {start_branch} branch!")

        return RunState(start_branch, start_commit, self.reserved)

    def recover_stale(self) -> str | None:
        """Moves a reserved branch left by a previous run out of the way.

        Returns:
            str | None: The archival branch name, or None if nothing was stale.
        """
        if not self.repo.branch_exists(self.reserved):
            return None

        logger.info(
            f"A {self.reserved} branch still exists. This is most likely because "
            "of a previous crash or unusual program termination."
        )
        renamed = archive_branch_name()
        while self.repo.branch_exists(renamed):
            renamed = archive_branch_name()

        logger.debug("Renaming old branch")
        self.repo.rename_branch(self.reserved, renamed)

        logger.info(f"It has been renamed to {renamed}.")
        logger.info(
            "If you don't need it anymore, you can delete it by running "
            f"`git branch -D {renamed}`"
        )
        logger.info(
            "You can remove all of them at once using "
            f"`git branch -D $(git branch --list '{ARCHIVE_NAMESPACE}/*')`"
        )
        return renamed

    def acquire(self) -> None:
        """Creates the reserved branch at the current tip and checks it out."""
        logger.debug("Creating auto commit branch")
        self.repo.create_branch(self.reserved)
        logger.debug("Checking out auto commit branch")
        self.repo.checkout(self.reserved)

    def reserved_tip(self) -> str:
        """Resolves the reserved branch's tip.

        Raises:
            RuntimeError: If the reserved branch does not exist.
        """
        tip = self.repo.rev_parse(f"refs/heads/{self.reserved}")
        if tip is None:
            raise RuntimeError(f"Branch {self.reserved} disappeared during the run")
        return tip

    def return_to_start(self, state: RunState) -> None:
        """Checks out the branch (or detached commit) the run started from."""
        logger.info(f"Checking out {state.display_name}")
        self.repo.checkout(state.start_branch or state.start_commit)

    def release(self) -> None:
        """Deletes the reserved branch."""
        logger.info("Removing auto commit branch")
        self.repo.delete_branch(self.reserved)
