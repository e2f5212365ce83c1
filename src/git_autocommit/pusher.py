import logging

from rich.console import Console

from .constants import APP_NAME, DEFAULT_REMOTE
from .git_wrapper import GitRepo

logger = logging.getLogger(APP_NAME)
console = Console()

# Never block on an SSH passphrase or HTTPS credential prompt.
PUSH_ENV = {
    "GIT_SSH_COMMAND": "ssh -o BatchMode=yes",
    "GIT_TERMINAL_PROMPT": "0",
}


def push_if_requested(repo: GitRepo, branch: str | None, remote: str | None) -> bool:
    """Pushes the finished branch to a remote and makes it track that remote.

    Failures are logged and swallowed; they never affect the run's outcome.

    Args:
        repo (GitRepo): The repository handle.
        branch (str | None): The branch to push, None for a detached start.
        remote (str | None): The remote name. None disables pushing and an
            empty string selects 'origin'.

    Returns:
        bool: True if the branch was pushed.
    """
    if remote is None:
        return False

    remote = remote.strip() or DEFAULT_REMOTE

    if not branch:
        logger.info(f"Not pushing to {remote}: the run started on a detached HEAD")
        return False

    try:
        logger.debug(f"Pushing to {remote}")
        with console.status(
            f"[bold blue]Pushing {branch} to {remote}...[/bold blue]", spinner="dots"
        ):
            repo.push(remote, f"refs/heads/{branch}:refs/heads/{branch}", env=PUSH_ENV)
        # Only a remote that accepted the push becomes the upstream.
        repo.set_upstream(branch, remote)
    except Exception as e:
        logger.info(f"Failed to push to {remote}: {e}")
        return False

    logger.info(f"Pushed {branch} to {remote}")
    return True
