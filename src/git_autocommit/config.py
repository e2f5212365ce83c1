import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .constants import (
    APP_NAME,
    CONFIG_FILE,
    DEFAULT_INTERVAL,
    DEFAULT_REMOTE,
    LOCAL_CONFIG_NAME,
)

logger = logging.getLogger(APP_NAME)


def parse_time(value: int | str) -> int:
    """Converts human-readable time strings (e.g., '90s', '5m') to seconds."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid time format '{value}'")
    if isinstance(value, int):
        return value
    match = re.match(
        r"^(\d+(?:\.\d+)?)\s*(s|sec|m|min|h|hr)?s?$", str(value).strip().lower()
    )
    if not match:
        raise ValueError(f"Invalid time format '{value}'")
    num, unit = float(match.group(1)), match.group(2) or "s"
    multiplier = {"s": 1, "sec": 1, "m": 60, "min": 60, "h": 3600, "hr": 3600}
    return int(num * multiplier[unit])


@dataclass
class CoreConfig:
    """Core application settings.

    Attributes:
        remote_name (str): The remote pushed to when `--push` is given no name.
    """

    remote_name: str = DEFAULT_REMOTE


@dataclass
class MonitorConfig:
    """Monitoring loop settings.

    Attributes:
        interval (int): Seconds between snapshot commits.
        verbose (bool): Whether debug messages are shown.
    """

    interval: int = DEFAULT_INTERVAL
    verbose: bool = False


@dataclass
class Config:
    """Global configuration aggregator.

    Attributes:
        core (CoreConfig): Core settings.
        monitor (MonitorConfig): Monitoring loop settings.
    """

    core: CoreConfig = field(default_factory=CoreConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)

    # Cache for the base global configuration
    _global_cache: "Config | None" = None

    @classmethod
    def load(cls, repo_path: Path | None = None) -> "Config":
        """Loads and merges configuration from defaults, global, and local sources.

        Args:
            repo_path (Path | None): The repository root to search for local config.

        Returns:
            Config: The fully merged configuration object.
        """
        # 1. Load or Retrieve Global Config
        if cls._global_cache is None:
            instance = cls()
            if CONFIG_FILE.exists():
                instance._merge_from_file(CONFIG_FILE)
            cls._global_cache = instance

        # Copy the sections so local overrides never leak into the cache
        instance = replace(
            cls._global_cache,
            core=replace(cls._global_cache.core),
            monitor=replace(cls._global_cache.monitor),
        )

        # 2. Load Local Config (if applicable)
        if repo_path:
            local_toml = repo_path / LOCAL_CONFIG_NAME
            pyproject = repo_path / "pyproject.toml"

            if local_toml.exists():
                instance._merge_from_file(local_toml)
            elif pyproject.exists():
                instance._merge_from_file(pyproject, section="tool.autocommit")

        return instance

    def _merge_from_file(self, path: Path, section: str | None = None) -> None:
        """Parses a TOML file and merges it into the current instance.

        Args:
            path (Path): Path to the TOML file.
            section (str | None): Dot-separated section path (e.g., 'tool.autocommit').
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if section:
                for key in section.split("."):
                    data = data.get(key, {})

            if not data:
                return

            if "core" in data:
                self.core = self._update_dataclass("core", self.core, data["core"])
            if "monitor" in data:
                self.monitor = self._update_dataclass(
                    "monitor", self.monitor, data["monitor"]
                )

        except tomllib.TOMLDecodeError as e:
            logger.error(f"Config syntax error in {path}: {e}")
        except OSError as e:
            logger.warning(f"Failed to load config from {path}: {e}")

    @staticmethod
    def _update_dataclass(section_name: str, instance: Any, updates: dict) -> Any:
        """Updates a dataclass, warning on invalid keys and parsing human-readable formats."""
        valid_keys = instance.__dataclass_fields__.keys()
        filtered_updates = {}

        invalid_keys = set(updates.keys()) - set(valid_keys)
        if invalid_keys:
            logger.warning(
                f"Unknown config keys in [{section_name}]: "
                f"{', '.join(sorted(invalid_keys))}. Ignoring."
            )

        for k, v in updates.items():
            if k not in valid_keys:
                continue

            try:
                if k == "interval":
                    filtered_updates[k] = parse_time(v)
                else:
                    filtered_updates[k] = v
            except ValueError as e:
                logger.warning(
                    f"Config error in [{section_name}].{k}: {e}. Falling back to default."
                )

        return replace(instance, **filtered_updates)


@dataclass(frozen=True)
class RunOptions:
    """The configuration of a single monitoring run.

    Attributes:
        directory (Path): The repository being monitored.
        interval (int): Seconds between snapshot commits.
        source_branch (str | None): Branch to check out and pull before starting.
        branch (str | None): New branch to create and work on.
        push_remote (str | None): Remote to push to afterwards. None disables
            pushing; an empty string selects `default_remote`.
        verbose (bool): Whether debug messages are shown.
        default_remote (str): The remote used when `push_remote` is empty.
    """

    directory: Path
    interval: int = DEFAULT_INTERVAL
    source_branch: str | None = None
    branch: str | None = None
    push_remote: str | None = None
    verbose: bool = False
    default_remote: str = DEFAULT_REMOTE

    @classmethod
    def from_config(cls, config: Config, directory: Path, **overrides: Any) -> "RunOptions":
        """Builds run options from file configuration, letting explicit values win.

        Overrides whose value is None are ignored so unset CLI flags fall back
        to the configuration files.
        """
        values: dict[str, Any] = {
            "interval": config.monitor.interval,
            "verbose": config.monitor.verbose,
            "default_remote": config.core.remote_name,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(directory=directory, **values)

    @property
    def resolved_remote(self) -> str | None:
        """The remote to push to, or None when pushing is disabled."""
        if self.push_remote is None:
            return None
        return self.push_remote.strip() or self.default_remote
