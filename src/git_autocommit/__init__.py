"""Git Autocommit: Automatic snapshot commits squashed into one on exit.

This package provides the command-line interface and the core logic that
commits a repository's working tree to a temporary branch at a fixed interval
and, once monitoring stops, squashes those snapshots into a single commit
authored by the user.
"""

from . import (
    branches,
    cli,
    config,
    constants,
    gate,
    git_wrapper,
    pusher,
    runner,
    scheduler,
    snapshot,
    squash,
)

__all__ = [
    "branches",
    "cli",
    "config",
    "constants",
    "gate",
    "git_wrapper",
    "pusher",
    "runner",
    "scheduler",
    "snapshot",
    "squash",
]
