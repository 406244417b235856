"""Thin wrapper around the git executable.

Every command runs as a subprocess in the repository directory with its
combined output captured and a bounded timeout. A command that overruns its
timeout is killed and reported as StorageIOError; there is no rollback of
earlier steps (a file may be staged but not committed).
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from git_mailbox.errors import StorageIOError
from git_mailbox.storage.layout import MESSAGES_DIR

logger = logging.getLogger(__name__)

README_CONTENT = """# Encrypted Messages Repository

This repository contains encrypted contact form messages.
DO NOT commit unencrypted messages or encryption keys.
"""

PLACEHOLDER_NAME = ".gitkeep"
REMOTE_NAME = "origin"


class GitDriver:
    """Runs git commands against a single repository.

    Example:
        >>> driver = GitDriver(Path("data/messages"), branch="main")
        >>> driver.init_repository()
        >>> driver.add("messages/2024/03/file.json.enc")
        >>> driver.commit("Add message abc")
    """

    def __init__(
        self,
        repo_path: Path,
        *,
        remote_url: Optional[str] = None,
        branch: str = "main",
        author: str = "",
        email: str = "",
        timeout: float = 30.0,
        git_binary: str = "git",
    ):
        self.repo_path = Path(repo_path)
        self.remote_url = remote_url
        self.branch = branch
        self.author = author
        self.email = email
        self.timeout = timeout
        self.git_binary = git_binary

    def _run(
        self, args: Sequence[str], timeout: Optional[float] = None
    ) -> subprocess.CompletedProcess:
        """Run ``git <args>`` in the repository and capture combined output.

        Raises:
            StorageIOError: If git cannot be started or exceeds the timeout.
        """
        cmd = [self.git_binary, *args]
        logger.debug(f"Running {' '.join(cmd)} in {self.repo_path}")
        try:
            return subprocess.run(
                cmd,
                cwd=self.repo_path,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="surrogateescape",
                timeout=timeout if timeout is not None else self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            output = e.output.decode("utf-8", "replace") if isinstance(e.output, bytes) else e.output
            raise StorageIOError(
                f"git {args[0]} timed out after {e.timeout}s", output=output
            ) from e
        except OSError as e:
            raise StorageIOError(f"failed to run git {args[0]}: {e}") from e

    def _check(self, args: Sequence[str], timeout: Optional[float] = None) -> str:
        """Run a git command and fail on non-zero exit."""
        result = self._run(args, timeout=timeout)
        if result.returncode != 0:
            raise StorageIOError(f"git {args[0]} failed", output=result.stdout)
        return result.stdout

    def is_initialized(self) -> bool:
        return (self.repo_path / ".git").is_dir()

    def init_repository(self) -> bool:
        """Create and bootstrap the repository unless it already exists.

        Bootstrap: ``git init``, HEAD pointed at the configured branch,
        commit identity, README placeholder, ``messages/`` directory, an
        initial commit, and the ``origin`` remote when one is configured.

        Returns:
            True if a new repository was created, False if one existed.

        Raises:
            StorageIOError: If any mandatory step fails.
        """
        if self.is_initialized():
            logger.info(f"Repository already exists at {self.repo_path}")
            return False

        try:
            self.repo_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"failed to create repo directory: {e}") from e

        self._check(["init"])
        self._run(["symbolic-ref", "HEAD", f"refs/heads/{self.branch}"])

        if self.author:
            self.config_set("user.name", self.author)
        if self.email:
            self.config_set("user.email", self.email)

        try:
            (self.repo_path / "README.md").write_text(README_CONTENT, encoding="utf-8")
            messages_dir = self.repo_path / MESSAGES_DIR
            messages_dir.mkdir(parents=True, exist_ok=True)
            # git does not track empty directories
            (messages_dir / PLACEHOLDER_NAME).touch()
        except OSError as e:
            raise StorageIOError(f"failed to write repository skeleton: {e}") from e

        self.add(".")
        self.commit("Initial commit")

        if self.remote_url:
            self.remote_add(REMOTE_NAME, self.remote_url)

        logger.info(f"Repository initialized at {self.repo_path}")
        return True

    def add(self, path: str) -> None:
        """Stage a single path.

        Raises:
            StorageIOError: With git's output on non-zero exit.
        """
        self._check(["add", "--", path])

    def commit(self, message: str) -> None:
        """Commit staged changes.

        Raises:
            StorageIOError: With git's output on non-zero exit.
        """
        self._check(["commit", "-m", message])

    def push(self) -> None:
        """Push the configured branch to ``origin``.

        Raises:
            StorageIOError: With git's output on non-zero exit.
        """
        self._check(["push", REMOTE_NAME, self.branch])
        logger.info(f"Pushed {self.branch} to {REMOTE_NAME}")

    def config_set(self, key: str, value: str) -> None:
        """Set a repository config value; failures are logged and ignored."""
        try:
            result = self._run(["config", key, value])
        except StorageIOError as e:
            logger.debug(f"git config {key} failed: {e}")
            return
        if result.returncode != 0:
            logger.debug(f"git config {key} failed: {result.stdout.strip()}")

    def remote_add(self, name: str, url: str) -> None:
        """Register a remote; failures are logged and ignored."""
        try:
            result = self._run(["remote", "add", name, url])
        except StorageIOError as e:
            logger.warning(f"git remote add {name} failed: {e}")
            return
        if result.returncode != 0:
            logger.warning(f"git remote add {name} failed: {result.stdout.strip()}")

    def uncommitted_paths(self, pathspec: str = MESSAGES_DIR) -> List[str]:
        """List modified or untracked files under a pathspec.

        Returns:
            Repository-relative POSIX paths.

        Raises:
            StorageIOError: If ``git status`` fails.
        """
        # -z keeps paths verbatim (no C-quoting of non-ASCII or special bytes)
        output = self._check(
            ["status", "--porcelain", "-z", "--untracked-files=all", "--", pathspec]
        )
        paths = []
        entries = iter(output.split("\0"))
        for entry in entries:
            if len(entry) < 4:
                continue
            paths.append(entry[3:])
            # Renames and copies are followed by their source path
            if entry[0] in "RC":
                next(entries, None)
        return paths

    def commit_count(self) -> int:
        """Number of commits reachable from HEAD (0 for an empty history)."""
        result = self._run(["rev-list", "--count", "HEAD"])
        if result.returncode != 0:
            return 0
        try:
            return int(result.stdout.strip())
        except ValueError:
            return 0
