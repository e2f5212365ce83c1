import enum
import logging
from collections.abc import Callable

from .branches import AmbiguousStateError, BranchController
from .config import RunOptions
from .constants import APP_NAME
from .gate import validate
from .git_wrapper import GitRepo
from .pusher import push_if_requested
from .scheduler import CancellationToken, install_signal_handlers, run_interval_loop
from .snapshot import commit_if_dirty
from .squash import MessageProvider, prompt_commit_message, squash_snapshots

logger = logging.getLogger(APP_NAME)


class ExitCode(enum.IntEnum):
    """Process exit codes of a run.

    A completed run exits with OK whether or not anything was squashed, and
    whether or not the optional push succeeded.
    """

    OK = 0
    ERROR = 1
    INVALID = 2
    AMBIGUOUS = 3


def monitor(
    repo: GitRepo,
    options: RunOptions,
    token: CancellationToken,
    message_provider: MessageProvider = prompt_commit_message,
) -> str | None:
    """Runs the branch lifecycle around the snapshot loop on an open repository.

    Args:
        repo (GitRepo): The repository handle, owned by this run.
        options (RunOptions): The validated run configuration.
        token (CancellationToken): Stops monitoring when cancelled.
        message_provider (MessageProvider, optional): Supplies the message of
            the squashed commit.

    Returns:
        str | None: The squashed commit's SHA, or None if nothing changed.

    Raises:
        AmbiguousStateError: If the reserved branch is checked out at start.
    """
    controller = BranchController(repo)
    controller.check_start()

    if options.source_branch:
        controller.checkout_source(options.source_branch)
    if options.branch:
        controller.create_target(options.branch)

    state = controller.capture_start()
    controller.recover_stale()
    controller.acquire()

    logger.debug(f"Checking repo changes with an interval of {options.interval} seconds")
    logger.info(f"Monitoring {options.directory} for changes (Ctrl+C to stop)")
    run_interval_loop(lambda: commit_if_dirty(repo), token, options.interval)

    final_tip = controller.reserved_tip()
    controller.return_to_start(state)
    sha = squash_snapshots(repo, state.start_commit, final_tip, message_provider)
    controller.release()

    push_if_requested(repo, state.start_branch, options.resolved_remote)
    return sha


def run(
    options: RunOptions,
    message_provider: MessageProvider = prompt_commit_message,
    token: CancellationToken | None = None,
    install_signals: Callable[[CancellationToken], Callable[[], None]] | None = None,
) -> ExitCode:
    """Validates the configuration and monitors the repository until cancelled.

    Args:
        options (RunOptions): The run configuration.
        message_provider (MessageProvider, optional): Supplies the message of
            the squashed commit. Defaults to prompting on the console.
        token (CancellationToken | None, optional): Stops monitoring when
            cancelled. Defaults to a fresh token.
        install_signals (optional): Connects the token to process signals and
            returns a function undoing that. Defaults to SIGINT/SIGTERM
            handlers when no token is supplied.

    Returns:
        ExitCode: The outcome of the run.
    """
    if failure := validate(options):
        logger.info(failure.describe(options))
        return ExitCode.INVALID

    if token is None:
        token = CancellationToken()
        install_signals = install_signals or install_signal_handlers
    restore = install_signals(token) if install_signals else None

    try:
        with GitRepo(options.directory) as repo:
            monitor(repo, options, token, message_provider)
    except AmbiguousStateError as e:
        logger.info(str(e))
        return ExitCode.AMBIGUOUS
    except Exception as e:
        logger.exception(f"Git Auto Commit stopped unexpectedly: {e}")
        return ExitCode.ERROR
    finally:
        if restore:
            restore()

    logger.info("Finished auto committing")
    return ExitCode.OK
