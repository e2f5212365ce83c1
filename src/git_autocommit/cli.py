import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

from .config import Config, RunOptions
from .constants import APP_NAME, DEFAULT_INTERVAL, MIN_INTERVAL, RESERVED_BRANCH
from .runner import ExitCode, run

logger = logging.getLogger(APP_NAME)
console = Console()


def setup_logging(verbose: bool) -> None:
    """Configures the logging subsystem to write to stdout.

    Args:
        verbose (bool): If True, debug messages are shown as well.
    """
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )

    # Replace handlers from a previous call instead of duplicating output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    """Builds the argument parser for the command line."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=(
            "Commit your work automatically on a temporary "
            f"'{RESERVED_BRANCH}' branch and squash it into a single commit "
            "when you stop (Ctrl+C)."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Set output to verbose messages.",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=int,
        default=None,
        help=f"Commit interval in seconds (default: {DEFAULT_INTERVAL}, "
        f"minimum: {MIN_INTERVAL}).",
    )
    parser.add_argument(
        "-d",
        "--directory",
        default=None,
        help="The git repo directory (default: current directory).",
    )
    parser.add_argument(
        "-p",
        "--push",
        nargs="?",
        const="",
        default=None,
        metavar="REMOTE",
        help="Push to REMOTE after squashing (default remote: origin). "
        "If not supplied, the squashed commit is not pushed.",
    )
    parser.add_argument(
        "-b",
        "--branch",
        default=None,
        help="Create a new branch before starting your work. "
        "It's good practice not to work on master, after all!",
    )
    parser.add_argument(
        "-s",
        "--source",
        default=None,
        metavar="BRANCH",
        help="Check out and pull BRANCH before starting.",
    )
    return parser


def options_from_args(args: argparse.Namespace) -> RunOptions:
    """Merges parsed arguments over the file configuration.

    Args:
        args (argparse.Namespace): The parsed command line.

    Returns:
        RunOptions: The configuration of the run.
    """
    directory = Path(args.directory).expanduser() if args.directory else Path.cwd()
    directory = directory.resolve()

    config = Config.load(directory if directory.is_dir() else None)
    return RunOptions.from_config(
        config,
        directory,
        interval=args.interval,
        source_branch=args.source or None,
        branch=args.branch or None,
        push_remote=args.push,
        verbose=args.verbose or None,
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the Git Autocommit CLI."""
    args = build_parser().parse_args(argv)
    # Config loading logs its own warnings.
    setup_logging(args.verbose)
    options = options_from_args(args)
    logger.setLevel(logging.DEBUG if options.verbose else logging.INFO)

    if not args.directory:
        logger.debug("Setting directory to current")

    code = run(options)
    if code is ExitCode.OK:
        console.print("[bold green]✔ Done.[/bold green]")
    sys.exit(int(code))


if __name__ == "__main__":
    main()
