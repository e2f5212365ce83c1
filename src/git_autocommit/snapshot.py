import datetime
import logging

from .constants import APP_NAME, BOT_EMAIL, BOT_NAME, SNAPSHOT_MESSAGE
from .git_wrapper import GitRepo, Signature

logger = logging.getLogger(APP_NAME)


def bot_signature() -> Signature:
    """Returns the bot identity stamped with the current time."""
    return Signature.now(BOT_NAME, BOT_EMAIL)


def commit_if_dirty(repo: GitRepo, signature: Signature | None = None) -> int:
    """Captures the whole dirty working tree as a single snapshot commit.

    Every modified, deleted and untracked (non-ignored) path is staged and
    committed at once; there is no partial staging.

    Args:
        repo (GitRepo): The repository, checked out on the reserved branch.
        signature (Signature | None, optional): Author and committer of the
            snapshot. Defaults to the bot signature stamped now.

    Returns:
        int: The number of changed entries committed, 0 if the tree was clean.
    """
    logger.debug("Checking for changes")
    entries = repo.status_porcelain()
    if not entries:
        logger.debug("No changes found")
        return 0

    logger.debug("Staging changes")
    repo.add_all()
    # Dirty submodule content shows in status but cannot be staged.
    if not repo.has_staged_changes():
        logger.debug("Nothing stageable after all")
        return 0

    logger.debug("Auto committing changes")
    repo.commit(SNAPSHOT_MESSAGE, signature or bot_signature(), no_verify=True)

    count = len(entries)
    stamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    logger.info(f"Auto committed {count} change{'' if count == 1 else 's'} on {stamp}")
    return count
