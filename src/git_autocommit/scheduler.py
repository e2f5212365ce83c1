"""The interval loop that drives snapshot commits until monitoring is cancelled.

The loop is single-threaded: each tick runs to completion, and cancellation
only cuts short the idle wait between ticks.
"""

import enum
import logging
import signal
import threading
import time
from collections.abc import Callable
from types import FrameType

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)

# Upper bound on how late a wait notices cancellation.
POLL_INTERVAL = 0.1


class WaitOutcome(enum.Enum):
    """How a wait between ticks ended."""

    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class CancellationToken:
    """A one-shot cancellation signal.

    The first `cancel` flips the token; later calls are ignored. Waiting on a
    cancelled token returns immediately.

    `cancel` never blocks, so it is safe to call from a signal handler that
    interrupts a `wait` in progress.
    """

    def __init__(self) -> None:
        # Acquired once by the first cancel and never released.
        self._flag = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._flag.locked()

    def cancel(self) -> bool:
        """Cancels the token.

        Returns:
            bool: True if this call cancelled it, False if it already was.
        """
        return self._flag.acquire(blocking=False)

    def wait(self, timeout: float) -> WaitOutcome:
        """Blocks until the timeout elapses or the token is cancelled."""
        deadline = time.monotonic() + timeout
        while not self.cancelled:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return WaitOutcome.TIMED_OUT
            time.sleep(min(remaining, POLL_INTERVAL))
        return WaitOutcome.CANCELLED


def _handled_signals() -> list[signal.Signals]:
    signals = [signal.SIGINT]
    if hasattr(signal, "SIGTERM"):
        signals.append(signal.SIGTERM)
    return signals


def install_signal_handlers(token: CancellationToken) -> Callable[[], None]:
    """Routes interrupt signals to a cancellation token.

    The first signal cancels the token and restores the default handlers, so a
    second signal terminates the process immediately.

    Args:
        token (CancellationToken): The token to cancel.

    Returns:
        Callable[[], None]: A function restoring the previous handlers. It does
        nothing once a signal has already replaced them.
    """
    signals = _handled_signals()
    previous = {sig: signal.getsignal(sig) for sig in signals}
    fired = False

    def handler(_signum: int, _frame: FrameType | None) -> None:
        nonlocal fired
        if fired:
            return
        fired = True
        for sig in signals:
            signal.signal(sig, signal.SIG_DFL)
        token.cancel()

    for sig in signals:
        signal.signal(sig, handler)

    def restore() -> None:
        if fired:
            return
        for sig, old in previous.items():
            signal.signal(sig, old if old is not None else signal.SIG_DFL)

    return restore


def run_interval_loop(
    tick: Callable[[], object], token: CancellationToken, interval: float
) -> int:
    """Runs `tick` every `interval` seconds until the token is cancelled.

    After cancellation `tick` runs one final time, so the last tick reflects
    the moment monitoring stopped.

    Args:
        tick (Callable[[], object]): The work to perform on each tick.
        token (CancellationToken): Ends the loop when cancelled.
        interval (float): Seconds to wait between ticks.

    Returns:
        int: The number of times `tick` ran.
    """
    ticks = 0
    while True:
        tick()
        ticks += 1
        if token.wait(interval) is WaitOutcome.CANCELLED:
            logger.debug("Cancelled directory watcher")
            break

    tick()
    return ticks + 1
