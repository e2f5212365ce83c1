import datetime
import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)

_IDENT_RE = re.compile(r"^(?P<name>.*) <(?P<email>.*)> (?P<ts>\d+) (?P<tz>[+-]\d{4})$")

RESET_MODES = ("soft", "mixed", "hard")


@dataclass(frozen=True)
class Signature:
    """An author or committer identity stamped with a point in time.

    Attributes:
        name (str): The display name.
        email (str): The email address.
        when (datetime.datetime): A timezone-aware timestamp.
    """

    name: str
    email: str
    when: datetime.datetime

    @classmethod
    def now(cls, name: str, email: str) -> "Signature":
        """Creates a signature stamped with the current local time."""
        return cls(name, email, datetime.datetime.now().astimezone())

    @classmethod
    def parse_ident(cls, ident: str) -> "Signature":
        """Parses a raw git ident line (`Name <email> 1700000000 +0100`).

        Raises:
            ValueError: If the line is not a valid ident.
        """
        match = _IDENT_RE.match(ident.strip())
        if not match:
            raise ValueError(f"Invalid git ident '{ident}'")
        tz = match.group("tz")
        sign = -1 if tz[0] == "-" else 1
        offset = datetime.timedelta(hours=int(tz[1:3]), minutes=int(tz[3:5]))
        when = datetime.datetime.fromtimestamp(
            int(match.group("ts")), datetime.timezone(sign * offset)
        )
        return cls(match.group("name"), match.group("email"), when)

    @property
    def git_date(self) -> str:
        """The timestamp in git's internal `@<seconds> <offset>` format."""
        return f"@{int(self.when.timestamp())} {self.when.strftime('%z')}"

    def as_env(self) -> dict[str, str]:
        """Builds the environment that makes git use this signature for both roles."""
        return {
            "GIT_AUTHOR_NAME": self.name,
            "GIT_AUTHOR_EMAIL": self.email,
            "GIT_AUTHOR_DATE": self.git_date,
            "GIT_COMMITTER_NAME": self.name,
            "GIT_COMMITTER_EMAIL": self.email,
            "GIT_COMMITTER_DATE": self.git_date,
        }

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class GitRepo:
    """A wrapper around the Git command-line interface for a specific repository.

    The instance is the run's handle on the repository. It can be used as a
    context manager to scope that ownership to a block.

    Attributes:
        path (Path): The file system path to the repository root.
    """

    def __init__(self, path: Path):
        """Initializes the GitRepo instance.

        Args:
            path (Path): The path to the repository root directory.

        Raises:
            ValueError: If the specified path does not contain a .git entry.
        """
        self.path = path
        self._closed = False
        if not (self.path / ".git").exists():
            raise ValueError(f"Not a git repository: {self.path}")

    def __enter__(self) -> "GitRepo":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Releases the handle. Further git calls raise RuntimeError."""
        if not self._closed:
            logger.debug(f"Releasing repository handle for {self.path}")
        self._closed = True

    def _run(
        self, args: list[str], capture: bool = True, env: dict | None = None
    ) -> str:
        """Executes a Git command within the repository context.

        Args:
            args (list[str]): A list of arguments to pass to the git command.
            capture (bool, optional):   Whether to capture and return stdout.
                                        Defaults to True.
            env (Optional[dict], optional): Extra environment variables layered
                                            over the current environment.
                                            Defaults to None.

        Returns:
            str:    The stripped stdout of the command if capture is True,
                    otherwise an empty string.

        Raises:
            RuntimeError: If the handle is closed or git returns a non-zero code.
        """
        if self._closed:
            raise RuntimeError(f"Repository handle for {self.path} is closed")
        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)
        try:
            res = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=capture,
                text=True,
                check=True,
                env=full_env,
                # Out of the terminal's process group: Ctrl+C reaches only us.
                process_group=0,
            )
            return res.stdout.strip() if capture else ""
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"Git error: {e.stderr or e}") from e

    def toplevel(self) -> Path:
        """Returns the absolute root of the working tree containing `path`."""
        return Path(self._run(["rev-parse", "--show-toplevel"]))

    def current_branch(self) -> str:
        """Retrieves the name of the currently checked-out branch.

        Returns:
            str: The name of the current branch, or an empty string when HEAD
                 is detached.
        """
        return self._run(["branch", "--show-current"])

    def head_commit(self) -> str | None:
        """Resolves HEAD to a commit SHA, or None on an unborn branch."""
        return self.rev_parse("HEAD")

    def status_porcelain(self) -> list[str]:
        """Returns the porcelain status of the working tree.

        Untracked files are listed individually and ignored files are left out,
        so each line is one dirty entry.

        Returns:
            list[str]: A list of status lines.
        """
        output = self._run(["status", "--porcelain", "--untracked-files=all"])
        return output.splitlines() if output else []

    def add_all(self) -> None:
        """
        Stages all changes (modified, deleted, and untracked files)
        in the working tree.
        """
        self._run(["add", "-A"], capture=False)

    def has_staged_changes(self) -> bool:
        """Checks whether the index differs from HEAD."""
        try:
            self._run(["diff", "--cached", "--quiet"])
            return False
        except RuntimeError:
            return True

    def commit(
        self, message: str, signature: Signature | None = None, no_verify: bool = False
    ) -> str:
        """Creates a new commit from the index.

        Args:
            message (str): The commit message.
            signature (Signature | None, optional): Author and committer of the
                                        commit. Defaults to git's configured
                                        identity.
            no_verify (bool, optional): Whether to bypass commit hooks
                                        (`--no-verify`). Defaults to False.

        Returns:
            str: The SHA-1 of the new commit.
        """
        cmd = ["commit", "--quiet", "-m", message]
        if no_verify:
            cmd.append("--no-verify")
        env = signature.as_env() if signature else None
        self._run(cmd, env=env)
        sha = self.head_commit()
        if sha is None:
            raise RuntimeError("Commit succeeded but HEAD could not be resolved")
        return sha

    def checkout(self, branch: str, force: bool = False) -> None:
        """Checks out a branch or commit.

        Args:
            branch (str): The target branch name or commit hash.
            force (bool, optional): Whether to force the checkout (discarding changes).
                                    Defaults to False.
        """
        cmd = ["checkout", "--quiet"]
        if force:
            cmd.append("-f")
        cmd.append(branch)
        self._run(cmd)

    def checkout_new_branch(self, name: str) -> None:
        """Creates a branch at the current tip and checks it out."""
        self._run(["checkout", "--quiet", "-b", name])

    def branch_exists(self, name: str) -> bool:
        """Checks whether a local branch exists."""
        return self.rev_parse(f"refs/heads/{name}") is not None

    def create_branch(self, name: str, start: str | None = None) -> None:
        """Creates a branch without checking it out.

        Args:
            name (str): The new branch name.
            start (str | None, optional): The commit to start from. Defaults to HEAD.
        """
        cmd = ["branch", name]
        if start:
            cmd.append(start)
        self._run(cmd)

    def rename_branch(self, old: str, new: str) -> None:
        """Renames a branch, keeping its tip and reflog."""
        self._run(["branch", "-m", old, new])

    def delete_branch(self, name: str) -> None:
        """Force-deletes a local branch, whether or not it is merged."""
        self._run(["branch", "-D", name])

    def reset(self, target: str, mode: str = "mixed") -> None:
        """Moves HEAD (and the current branch) to a target commit.

        Args:
            target (str): The commit SHA or reference.
            mode (str, optional): One of 'soft', 'mixed' or 'hard'.
                                  Defaults to 'mixed'.

        Raises:
            ValueError: If the mode is not a known reset mode.
        """
        if mode not in RESET_MODES:
            raise ValueError(f"Unknown reset mode '{mode}'")
        self._run(["reset", "--quiet", f"--{mode}", target])

    def pull(self) -> None:
        """Pulls the current branch from its tracked remote."""
        self._run(["pull", "--no-edit"])

    def set_upstream(self, branch: str, remote: str) -> None:
        """Points a branch's tracking configuration at a remote branch of the same name.

        Args:
            branch (str): The local branch name.
            remote (str): The remote name (e.g., 'origin').
        """
        self._run(["config", f"branch.{branch}.remote", remote])
        self._run(["config", f"branch.{branch}.merge", f"refs/heads/{branch}"])

    def push(self, remote: str, refspec: str, env: dict | None = None) -> None:
        """Pushes a refspec to a remote.

        Args:
            remote (str): The remote name.
            refspec (str): The refspec to push (e.g., 'refs/heads/a:refs/heads/a').
            env (Optional[dict], optional): Extra environment variables.
        """
        self._run(["push", "--quiet", remote, refspec], env=env)

    def rev_parse(self, rev: str) -> str | None:
        """Resolves a revision (tag, branch, relative ref) to a full SHA-1 hash.

        Args:
            rev (str): The revision to parse (e.g., 'HEAD', 'master').

        Returns:
            Optional[str]:  The full SHA-1 hash,
                            or None if the revision could not be resolved.
        """
        try:
            return self._run(["rev-parse", "--verify", "--quiet", rev]) or None
        except Exception as e:
            logger.debug(f"rev-parse failed for '{rev}': {e}")
            return None

    def tree_of(self, rev: str) -> str | None:
        """Resolves the tree object of a commit."""
        return self.rev_parse(f"{rev}^{{tree}}")

    def write_tree(self) -> str:
        """Creates a tree object from the current index.

        Returns:
            str: The SHA-1 hash of the created tree object.
        """
        return self._run(["write-tree"])

    def default_signature(self) -> Signature:
        """Builds the identity git would use for a commit made right now.

        Honors `GIT_AUTHOR_*` environment overrides, then `user.name` and
        `user.email` from the repository and global configuration.

        Raises:
            RuntimeError: If no identity is configured.
        """
        ident = self._run(["var", "GIT_AUTHOR_IDENT"])
        try:
            return Signature.parse_ident(ident)
        except ValueError as e:
            raise RuntimeError(f"Could not determine commit author: {e}") from e
