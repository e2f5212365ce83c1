"""Tests for squashing snapshot commits into a single user commit."""

import logging
from unittest.mock import MagicMock, call

import pytest

from git_autocommit import squash
from git_autocommit.constants import APP_NAME

START = "s" * 40
TIP = "t" * 40


@pytest.fixture
def repo() -> MagicMock:
    repo = MagicMock()
    repo.has_staged_changes.return_value = True
    repo.commit.return_value = "n" * 40
    return repo


def test_nothing_to_squash_skips_prompt(
    repo: MagicMock, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies the no-op path when no snapshot was ever committed."""
    caplog.set_level(logging.INFO, logger=APP_NAME)
    provider = MagicMock()

    assert squash.squash_snapshots(repo, START, START, provider) is None

    provider.assert_not_called()
    repo.reset.assert_not_called()
    repo.commit.assert_not_called()
    assert "didn't commit any changes" in caplog.text


def test_squash_resets_then_commits_as_user(repo: MagicMock) -> None:
    """Verifies hard reset to the last snapshot, mixed reset to start, one commit."""
    author = repo.default_signature.return_value

    sha = squash.squash_snapshots(repo, START, TIP, lambda: "  add and edit a  ")

    assert sha == "n" * 40
    assert repo.method_calls == [
        call.default_signature(),
        call.reset(TIP, mode="hard"),
        call.reset(START, mode="mixed"),
        call.add_all(),
        call.has_staged_changes(),
        call.commit("add and edit a", author, no_verify=True),
    ]


def test_squash_rejects_empty_message(repo: MagicMock) -> None:
    with pytest.raises(ValueError, match="must not be empty"):
        squash.squash_snapshots(repo, START, TIP, lambda: "   ")

    repo.reset.assert_not_called()


def test_changes_that_cancel_out_are_not_committed(
    repo: MagicMock, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that no empty commit is created when the net diff is empty."""
    caplog.set_level(logging.INFO, logger=APP_NAME)
    repo.has_staged_changes.return_value = False

    assert squash.squash_snapshots(repo, START, TIP, lambda: "msg") is None

    repo.reset.assert_called_with(START, mode="mixed")
    repo.commit.assert_not_called()
    assert "cancel each other out" in caplog.text


def test_prompt_repeats_until_non_empty(mocker: MagicMock) -> None:
    """Verifies that the console prompt insists on a message."""
    ask = mocker.patch(
        "git_autocommit.squash.Prompt.ask", side_effect=["", "   ", " Fix bug "]
    )

    assert squash.prompt_commit_message() == "Fix bug"
    assert ask.call_count == 3
