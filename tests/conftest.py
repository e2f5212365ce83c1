import shutil
import subprocess
from pathlib import Path
from typing import Any

import pytest

from git_autocommit.config import Config

GIT_ENV_OVERRIDES = [
    "GIT_AUTHOR_NAME",
    "GIT_AUTHOR_EMAIL",
    "GIT_AUTHOR_DATE",
    "GIT_COMMITTER_NAME",
    "GIT_COMMITTER_EMAIL",
    "GIT_COMMITTER_DATE",
    "GIT_DIR",
    "GIT_WORK_TREE",
    "GIT_INDEX_FILE",
]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, mocker: Any) -> Any:
    """Ensures every test starts with a clean config cache and no global config."""
    Config._global_cache = None
    mocker.patch(
        "git_autocommit.config.CONFIG_FILE", tmp_path / "no-global-config.toml"
    )
    yield
    Config._global_cache = None


def git(repo_path: Path, *args: str) -> str:
    """Runs a git command in `repo_path` and returns its stripped stdout."""
    res = subprocess.run(
        ["git", *args], cwd=repo_path, capture_output=True, text=True, check=True
    )
    return res.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Creates a real repository on 'main' with one commit.

    Global and system git configuration are hidden so the user's settings
    (signing, hooks, default branch) cannot leak into the test.
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    for name in GIT_ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    global_config = tmp_path / "gitconfig"
    global_config.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("HOME", str(tmp_path))

    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    git(repo_path, "init", "--quiet")
    git(repo_path, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo_path, "config", "user.name", "Test User")
    git(repo_path, "config", "user.email", "test@example.com")
    git(repo_path, "config", "commit.gpgsign", "false")

    (repo_path / "README.md").write_text("# project\n")
    (repo_path / ".gitignore").write_text("*.log\n")
    git(repo_path, "add", "-A")
    git(repo_path, "commit", "--quiet", "-m", "Initial commit")
    return repo_path
