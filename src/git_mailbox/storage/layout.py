"""Date-partitioned file layout for encrypted messages.

Layout (relative to the repository root):

    messages/
      2024/
        03/
          2024-03-15_14-30-05_<id>.json.enc

The path is a pure function of the message identifier and its UTC creation
timestamp, so re-saving a message (status update) overwrites the same file.
The timestamp segment uses hyphens instead of colons for filesystem safety.

Lookup by identifier is a linear scan of the tree. Message volume from a
contact form is low enough that no index is kept.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from git_mailbox.errors import StorageIOError, ValidationError
from git_mailbox.schemas.message import to_utc

MESSAGES_DIR = "messages"
MESSAGE_SUFFIX = ".json.enc"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
ID_SEPARATOR = "_"

# Every field in TIMESTAMP_FORMAT is zero-padded, so the stamp has a fixed width
STAMP_LENGTH = len(datetime(2000, 1, 1).strftime(TIMESTAMP_FORMAT))

_FORBIDDEN_ID_CHARS = ("/", "\\", "\x00")


def validate_message_id(message_id: str) -> None:
    """Reject identifiers that cannot be embedded in a filename.

    Raises:
        ValidationError: If the identifier is empty or contains a path separator.
    """
    if not message_id or not message_id.strip():
        raise ValidationError("message id is required")
    if any(ch in message_id for ch in _FORBIDDEN_ID_CHARS) or message_id in (".", ".."):
        raise ValidationError(f"message id contains path characters: {message_id!r}")


class MessageLayout:
    """Maps message identity and timestamp to paths inside the repository."""

    def __init__(self, repo_path: Path):
        self.repo_path = Path(repo_path)
        self.messages_dir = self.repo_path / MESSAGES_DIR

    def filename(self, message_id: str, timestamp: datetime) -> str:
        validate_message_id(message_id)
        stamp = to_utc(timestamp).strftime(TIMESTAMP_FORMAT)
        return f"{stamp}{ID_SEPARATOR}{message_id}{MESSAGE_SUFFIX}"

    def relative_path(self, message_id: str, timestamp: datetime) -> Path:
        """Repository-relative path for a message.

        Args:
            message_id: Message identifier.
            timestamp: Message creation time.

        Returns:
            ``messages/<YYYY>/<MM>/<YYYY-MM-DD_HH-MM-SS>_<id>.json.enc``
        """
        ts = to_utc(timestamp)
        return (
            Path(MESSAGES_DIR)
            / f"{ts.year:04d}"
            / f"{ts.month:02d}"
            / self.filename(message_id, ts)
        )

    def ensure_path(self, message_id: str, timestamp: datetime) -> Path:
        """Absolute path for a message, with parent directories created.

        Raises:
            StorageIOError: If the directories cannot be created.
        """
        path = self.repo_path / self.relative_path(message_id, timestamp)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"failed to create directory {path.parent}: {e}") from e
        return path

    def to_relative(self, path: Path) -> str:
        """Repository-relative POSIX path, as git expects it."""
        return Path(path).relative_to(self.repo_path).as_posix()

    def iter_message_files(self) -> Iterator[Path]:
        """Yield every message file under ``messages/`` in sorted order.

        Raises:
            StorageIOError: If a directory in the tree cannot be read.
        """
        if not self.messages_dir.exists():
            return

        def _raise(err: OSError) -> None:
            raise err

        try:
            for dirpath, dirnames, filenames in os.walk(self.messages_dir, onerror=_raise):
                dirnames.sort()
                for name in sorted(filenames):
                    if name.endswith(MESSAGE_SUFFIX):
                        yield Path(dirpath) / name
        except OSError as e:
            raise StorageIOError(f"failed to walk {self.messages_dir}: {e}") from e

    def find(self, message_id: str) -> Optional[Path]:
        """Locate the file holding a message.

        Matches the first file named ``<timestamp>_<id>.json.enc``; an id that
        merely ends with the requested one (``x_abc`` for ``abc``) does not match.

        Returns:
            Absolute path, or None when no file matches.

        Raises:
            StorageIOError: If the tree cannot be walked.
        """
        validate_message_id(message_id)
        for path in self.iter_message_files():
            if _id_from_filename(path.name) == message_id:
                return path
        return None


def _id_from_filename(name: str) -> Optional[str]:
    """Extract the identifier from ``<timestamp>_<id>.json.enc``."""
    prefix_len = STAMP_LENGTH + len(ID_SEPARATOR)
    if len(name) <= prefix_len + len(MESSAGE_SUFFIX) or not name.endswith(MESSAGE_SUFFIX):
        return None
    if name[STAMP_LENGTH:prefix_len] != ID_SEPARATOR:
        return None
    try:
        datetime.strptime(name[:STAMP_LENGTH], TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return name[prefix_len : -len(MESSAGE_SUFFIX)]
