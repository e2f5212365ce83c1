"""Tests for the Command Line Interface (CLI) module."""

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from git_autocommit import cli
from git_autocommit.constants import APP_NAME
from git_autocommit.runner import ExitCode


def _parse(*argv: str):
    return cli.build_parser().parse_args(list(argv))


def test_defaults_leave_values_to_config() -> None:
    args = _parse()

    assert args.interval is None
    assert args.directory is None
    assert args.push is None
    assert args.branch is None
    assert args.source is None
    assert args.verbose is False


def test_push_flag_without_remote_means_default() -> None:
    """Verifies `-p` alone enables pushing to the default remote."""
    assert _parse("-p").push == ""
    assert _parse("--push", "upstream").push == "upstream"


def test_short_flags() -> None:
    args = _parse("-v", "-i", "30", "-d", "/tmp/x", "-b", "feature", "-s", "develop")

    assert args.verbose is True
    assert args.interval == 30
    assert args.directory == "/tmp/x"
    assert args.branch == "feature"
    assert args.source == "develop"


def test_options_merge_file_config(tmp_path: Path) -> None:
    """Verifies that unset flags fall back to the repository's config file."""
    (tmp_path / "autocommit.toml").write_text(
        '[core]\nremote_name = "backup"\n[monitor]\ninterval = "2m"\n'
    )

    options = cli.options_from_args(_parse("-d", str(tmp_path), "-p"))

    assert options.directory == tmp_path.resolve()
    assert options.interval == 120
    assert options.resolved_remote == "backup"
    assert options.verbose is False

    options = cli.options_from_args(_parse("-d", str(tmp_path), "-i", "15", "-v"))
    assert options.interval == 15
    assert options.verbose is True
    assert options.resolved_remote is None


def test_options_default_to_cwd(tmp_path: Path, mocker: MagicMock) -> None:
    mocker.patch.object(Path, "cwd", return_value=tmp_path)

    assert cli.options_from_args(_parse()).directory == tmp_path.resolve()


@pytest.mark.parametrize("code", list(ExitCode))
def test_main_exits_with_run_result(
    tmp_path: Path, mocker: MagicMock, code: ExitCode
) -> None:
    """Verifies that the process exit status mirrors the run's exit code."""
    mocker.patch("git_autocommit.cli.setup_logging")
    mocker.patch("git_autocommit.cli.console")
    run = mocker.patch("git_autocommit.cli.run", return_value=code)

    with pytest.raises(SystemExit) as exc:
        cli.main(["-d", str(tmp_path), "-i", "20"])

    assert exc.value.code == int(code)
    assert run.call_args.args[0].interval == 20


def test_setup_logging_levels() -> None:
    """Verifies that verbose mode enables debug output without stacking handlers."""
    logger = logging.getLogger(APP_NAME)
    saved_handlers, saved_level = list(logger.handlers), logger.level
    try:
        cli.setup_logging(verbose=True)
        cli.setup_logging(verbose=True)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

        cli.setup_logging(verbose=False)
        assert logger.level == logging.INFO
    finally:
        logger.handlers = saved_handlers
        logger.setLevel(saved_level)


def test_config_warnings_use_configured_output(
    tmp_path: Path, mocker: MagicMock, capsys: pytest.CaptureFixture[str]
) -> None:
    """Verifies that a broken config file is reported through the app's formatter."""
    (tmp_path / "autocommit.toml").write_text("[monitor\ninterval = 30\n")
    mocker.patch("git_autocommit.cli.console")
    mocker.patch("git_autocommit.cli.run", return_value=ExitCode.OK)
    logger = logging.getLogger(APP_NAME)
    saved_handlers, saved_level = list(logger.handlers), logger.level
    try:
        with pytest.raises(SystemExit):
            cli.main(["-d", str(tmp_path)])
    finally:
        logger.handlers = saved_handlers
        logger.setLevel(saved_level)

    out = capsys.readouterr().out
    assert "ERROR: Config syntax error in" in out


def test_verbose_from_config_enables_debug(tmp_path: Path, mocker: MagicMock) -> None:
    (tmp_path / "autocommit.toml").write_text("[monitor]\nverbose = true\n")
    mocker.patch("git_autocommit.cli.console")
    mocker.patch("git_autocommit.cli.run", return_value=ExitCode.OK)
    logger = logging.getLogger(APP_NAME)
    saved_handlers, saved_level = list(logger.handlers), logger.level
    try:
        with pytest.raises(SystemExit):
            cli.main(["-d", str(tmp_path)])
        assert logger.level == logging.DEBUG
    finally:
        logger.handlers = saved_handlers
        logger.setLevel(saved_level)
