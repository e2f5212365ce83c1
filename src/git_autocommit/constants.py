from pathlib import Path

"""Global constants and configuration path definitions for Git Autocommit.

This module defines the application identifiers, the reserved branch layout,
the bot identity used for snapshot commits, and the configuration file paths
used across the application.
"""

# --- Identity ---
APP_NAME = "git-autocommit"
"""str: The human-readable application name."""

RESERVED_BRANCH = "GitAutocommit"
"""str: The branch that receives snapshot commits while monitoring."""

ARCHIVE_NAMESPACE = "autoCommits"
"""str: The branch namespace that stale reserved branches are renamed into."""

BOT_NAME = RESERVED_BRANCH
"""str: Author and committer name for snapshot commits."""

BOT_EMAIL = f"@{RESERVED_BRANCH}"
"""str: Author and committer email for snapshot commits."""

SNAPSHOT_MESSAGE = "Git Auto Commit"
"""str: The message of every snapshot commit."""

# --- Monitoring ---
MIN_INTERVAL = 10
"""int: The smallest accepted commit interval, in seconds."""

DEFAULT_INTERVAL = 60
"""int: The commit interval used when none is configured, in seconds."""

DEFAULT_REMOTE = "origin"
"""str: The remote pushed to when push is enabled without a remote name."""

PROTECTED_BRANCHES = ("main", "master")
"""tuple[str, ...]: Branches that trigger a warning when monitored directly."""

# --- Configuration Paths ---
CONFIG_DIR: Path = Path.home() / ".config/git-autocommit"
"""Path: The directory for user configuration files."""

CONFIG_FILE: Path = CONFIG_DIR / "config.toml"
"""Path: The global configuration file path."""

LOCAL_CONFIG_NAME = "autocommit.toml"
"""str: The per-repository configuration file name."""
