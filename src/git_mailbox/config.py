"""Configuration for the git-backed message store.

A StorageConfig is supplied once when the store is constructed and is
immutable afterwards. The encryption key is kept as raw bytes and never
appears in repr() output.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from git_mailbox.crypto import decode_hex_key
from git_mailbox.errors import ValidationError

DEFAULT_BRANCH = "main"
DEFAULT_GIT_TIMEOUT = 30.0

_TRUE_VALUES = {"1", "true", "yes", "on"}


class StorageConfig(BaseModel):
    """Configuration for MessageStore.

    Attributes:
        repo_path: Root of the git repository holding encrypted messages
        remote_url: Remote registered as ``origin`` on first init (optional)
        branch: Branch pushed to the remote
        commit_author: user.name set on a freshly initialized repository
        commit_email: user.email set on a freshly initialized repository
        encryption_key: 32-byte AES-256 key (a 64-char hex string is accepted)
        push_on_write: Push in the background after every committed write
        git_timeout_seconds: Upper bound for a single git invocation

    Example:
        >>> config = StorageConfig(
        ...     repo_path=Path("data/messages"),
        ...     encryption_key=generate_key(),
        ... )
    """

    repo_path: Optional[Path] = None
    remote_url: Optional[str] = None
    branch: str = DEFAULT_BRANCH
    commit_author: str = "Message Store"
    commit_email: str = "messages@localhost"
    encryption_key: Optional[bytes] = Field(None, repr=False)
    push_on_write: bool = False
    git_timeout_seconds: float = Field(DEFAULT_GIT_TIMEOUT, gt=0)

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("repo_path", mode="before")
    @classmethod
    def convert_repo_path(cls, v):
        """Convert string paths to Path objects."""
        if isinstance(v, str):
            return Path(v) if v else None
        return v

    @field_validator("encryption_key", mode="before")
    @classmethod
    def convert_encryption_key(cls, v):
        """Decode hex-encoded keys to raw bytes."""
        if isinstance(v, str):
            return decode_hex_key(v) if v else None
        return v

    @field_validator("remote_url", mode="before")
    @classmethod
    def blank_remote_is_none(cls, v):
        """Treat an empty remote URL as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def push_enabled(self) -> bool:
        """Whether writes should trigger a background push."""
        return self.push_on_write and bool(self.remote_url)

    def validate_for_store(self) -> None:
        """Validate that the options a store needs are present.

        Raises:
            ValidationError: If the repo path or the key is missing.
        """
        if not self.repo_path:
            raise ValidationError("repo path is required")
        if not self.encryption_key:
            raise ValidationError("encryption key is required")

    @classmethod
    def from_env(cls, prefix: str = "MESSAGE_") -> "StorageConfig":
        """Create config from environment variables.

        Environment variables:
            {prefix}REPO_PATH: Repository root
            {prefix}REMOTE_URL: Remote URL for origin
            {prefix}BRANCH: Branch to push
            {prefix}COMMIT_AUTHOR: Commit author name
            {prefix}COMMIT_EMAIL: Commit author email
            {prefix}ENCRYPTION_KEY: 64-character hex key
            {prefix}PUSH_ON_WRITE: "true"/"1"/"yes" to push after each write
            {prefix}GIT_TIMEOUT: Seconds allowed per git command

        Args:
            prefix: Environment variable prefix (default: MESSAGE_)

        Returns:
            StorageConfig with values from environment
        """
        kwargs = {}

        repo_path = os.getenv(f"{prefix}REPO_PATH")
        if repo_path:
            kwargs["repo_path"] = Path(repo_path)

        remote_url = os.getenv(f"{prefix}REMOTE_URL")
        if remote_url:
            kwargs["remote_url"] = remote_url

        branch = os.getenv(f"{prefix}BRANCH")
        if branch:
            kwargs["branch"] = branch

        commit_author = os.getenv(f"{prefix}COMMIT_AUTHOR")
        if commit_author:
            kwargs["commit_author"] = commit_author

        commit_email = os.getenv(f"{prefix}COMMIT_EMAIL")
        if commit_email:
            kwargs["commit_email"] = commit_email

        encryption_key = os.getenv(f"{prefix}ENCRYPTION_KEY")
        if encryption_key:
            kwargs["encryption_key"] = decode_hex_key(encryption_key)

        push_on_write = os.getenv(f"{prefix}PUSH_ON_WRITE")
        if push_on_write:
            kwargs["push_on_write"] = push_on_write.strip().lower() in _TRUE_VALUES

        git_timeout = os.getenv(f"{prefix}GIT_TIMEOUT")
        if git_timeout:
            try:
                kwargs["git_timeout_seconds"] = float(git_timeout)
            except ValueError as e:
                raise ValidationError(f"{prefix}GIT_TIMEOUT must be a number: {e}") from e

        return cls(**kwargs)
