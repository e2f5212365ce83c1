import logging
from collections.abc import Callable

from rich.console import Console
from rich.prompt import Prompt

from .constants import APP_NAME
from .git_wrapper import GitRepo

logger = logging.getLogger(APP_NAME)
console = Console()

MessageProvider = Callable[[], str]


def prompt_commit_message() -> str:
    """Asks on the console for the squashed commit's message until one is given."""
    while True:
        message = Prompt.ask("[bold]Commit message[/bold]", console=console)
        if message and message.strip():
            return message.strip()


def squash_snapshots(
    repo: GitRepo,
    start_commit: str,
    final_tip: str,
    message_provider: MessageProvider = prompt_commit_message,
) -> str | None:
    """Collapses the snapshot commits into one commit on top of `start_commit`.

    Must run with the start branch checked out. The branch is hard-reset to the
    last snapshot, then mixed-reset back to `start_commit`, leaving the working
    tree at the last snapshot's content; that content is committed once with
    the user's identity.

    Args:
        repo (GitRepo): The repository handle.
        start_commit (str): The start branch's tip before monitoring began.
        final_tip (str): The reserved branch's tip after monitoring ended.
        message_provider (MessageProvider, optional): Supplies a non-empty
            commit message. Defaults to prompting on the console.

    Returns:
        str | None: The new commit's SHA, or None when nothing changed.
    """
    if final_tip == start_commit:
        logger.info("Git Auto Commit didn't commit any changes while it was running")
        return None

    message = message_provider()
    if not message or not message.strip():
        raise ValueError("Commit message must not be empty")

    logger.debug("Retrieving default author")
    author = repo.default_signature()

    logger.info("Squashing and merging auto commits")
    repo.reset(final_tip, mode="hard")
    repo.reset(start_commit, mode="mixed")

    logger.debug("Staging changes")
    repo.add_all()

    if not repo.has_staged_changes():
        logger.info(
            "The auto commits cancel each other out. Nothing left to commit."
        )
        return None

    logger.debug(f"Committing changes with {author}")
    sha = repo.commit(message.strip(), author, no_verify=True)

    logger.info("Squashed changes have been committed")
    return sha
