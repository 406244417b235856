"""Git-backed encrypted message store.

Each contact message becomes one encrypted file committed to a local git
repository; the commit is the durability boundary. Pushing to a remote is
best-effort replication that runs in the background.

Write path:
1. Encrypt the message (fresh nonce every time)
2. Write the envelope to its date-partitioned path (temp file + rename)
3. ``git add`` + ``git commit``
4. Optionally push in a background thread

Concurrency:
    A single lock serializes every operation, reads included. Writing,
    staging and committing a file happen as one step under that lock.
    Throughput is therefore capped at one git round-trip at a time.

Status updates decrypt, change the status, re-encrypt, and rewrite the file
at the same path. Every update is a new commit; nothing is ever deleted.
"""

import logging
import os
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from git_mailbox.config import StorageConfig
from git_mailbox.crypto import MessageEncryptor
from git_mailbox.errors import (
    MailboxError,
    NotFoundError,
    SerializationError,
    StorageIOError,
    ValidationError,
)
from git_mailbox.events import (
    EventPublisher,
    EventType,
    NullEventPublisher,
    StorageEvent,
)
from git_mailbox.schemas.message import EncryptedMessage, Message, MessageStatus
from git_mailbox.storage.git_driver import GitDriver
from git_mailbox.storage.layout import MESSAGE_SUFFIX, MESSAGES_DIR, MessageLayout

logger = logging.getLogger(__name__)


def parse_status(status: str) -> MessageStatus:
    """Convert a status string to MessageStatus.

    Raises:
        ValidationError: If the status is not one of new, read, replied, closed.
    """
    try:
        return MessageStatus(status)
    except ValueError as e:
        valid = ", ".join(s.value for s in MessageStatus)
        raise ValidationError(f"invalid status {status!r}, must be one of: {valid}") from e


class MessageStore:
    """Encrypted, git-versioned mailbox.

    Example:
        >>> config = StorageConfig(repo_path=Path("data/messages"), encryption_key=key)
        >>> store = MessageStore(config)
        >>> store.save_message(message)
        >>> store.get_message(message.id).status
        <MessageStatus.NEW: 'new'>
    """

    def __init__(
        self,
        config: StorageConfig,
        publisher: Optional[EventPublisher] = None,
    ):
        """Initialize the store and its repository.

        Opening an existing repository also commits any message files left
        uncommitted by an interrupted write.

        Args:
            config: Storage configuration.
            publisher: Sink for storage notifications (default: no-op).

        Raises:
            ValidationError: If the config lacks a repo path or a valid key.
            StorageIOError: If the repository cannot be initialized.
        """
        config.validate_for_store()
        self._config = config
        self._encryptor = MessageEncryptor(config.encryption_key)
        self._layout = MessageLayout(config.repo_path)
        self._git = GitDriver(
            config.repo_path,
            remote_url=config.remote_url,
            branch=config.branch,
            author=config.commit_author,
            email=config.commit_email,
            timeout=config.git_timeout_seconds,
        )
        self._publisher = publisher or NullEventPublisher()
        self._lock = threading.Lock()

        with self._lock:
            created = self._git.init_repository()
            if not created:
                self._reconcile()

    @property
    def config(self) -> StorageConfig:
        return self._config

    @property
    def repo_path(self) -> Path:
        return self._layout.repo_path

    @property
    def git(self) -> GitDriver:
        return self._git

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def save_message(self, message: Message) -> None:
        """Encrypt, write and commit a message.

        Raises:
            ValidationError: If the message id cannot be used as a filename.
            StorageIOError: On any filesystem or git failure.
        """
        with self._lock:
            rel_path = self._write_and_commit(
                message, f"Add message {message.id} from {message.name}"
            )

        self._publish(
            EventType.MESSAGE_STORED,
            {"message_id": message.id, "path": rel_path},
        )
        self._push_async()
        logger.info(f"Saved message {message.id} to {rel_path}")

    def get_message(self, message_id: str) -> Message:
        """Find and decrypt a message by identifier.

        Raises:
            NotFoundError: If no file matches the identifier.
            StorageIOError: If the file cannot be read.
            SerializationError: If the envelope is not valid JSON.
            InvalidFormatError: If ciphertext or nonce is not base64.
            DecryptionError: If authentication fails.
        """
        with self._lock:
            return self._get_unlocked(message_id)

    def list_messages(self, status_filter: str = "") -> List[Message]:
        """Decrypt every stored message, newest first.

        Records that cannot be read, parsed or decrypted are logged and
        skipped so one corrupt file does not hide the rest of the mailbox.

        Args:
            status_filter: Only return messages with this status ("" = all).

        Raises:
            ValidationError: If the filter is not a known status.
            StorageIOError: If the directory walk itself fails.
        """
        wanted = parse_status(status_filter) if status_filter else None

        with self._lock:
            messages = []
            for path in self._layout.iter_message_files():
                try:
                    message = self._read_file(path)
                except MailboxError as e:
                    logger.warning(f"Skipping {path}: {e}")
                    continue

                if wanted is None or message.status == wanted:
                    messages.append(message)

        messages.sort(key=lambda m: m.timestamp, reverse=True)
        return messages

    def update_status(self, message_id: str, status: str) -> None:
        """Change a message's status and commit the rewritten record.

        The record keeps its original timestamp, so it is rewritten at the
        same path; the new version has a fresh nonce and ciphertext.

        Raises:
            ValidationError: If the status is invalid.
            NotFoundError: If no message has this identifier.
            StorageIOError: On any filesystem or git failure.
        """
        new_status = parse_status(status)

        with self._lock:
            message = self._get_unlocked(message_id)
            previous = message.status
            updated = message.model_copy(update={"status": new_status})
            rel_path = self._write_and_commit(
                updated, f"Update message {message_id} status to {new_status.value}"
            )

        self._publish(
            EventType.MESSAGE_STORED,
            {"message_id": message_id, "path": rel_path},
        )
        self._publish(
            EventType.MESSAGE_STATUS_CHANGED,
            {
                "message_id": message_id,
                "from_status": previous.value,
                "to_status": new_status.value,
            },
        )
        self._push_async()
        logger.info(f"Message {message_id} status {previous.value} -> {new_status.value}")

    def push(self) -> bool:
        """Push to the remote synchronously.

        Returns:
            True on success, False if the push failed (failure is logged).
        """
        with self._lock:
            try:
                self._git.push()
            except StorageIOError as e:
                logger.warning(f"Push failed: {e}")
                return False
        return True

    # ------------------------------------------------------------------
    # Internals (callers hold self._lock)
    # ------------------------------------------------------------------

    def _write_and_commit(self, message: Message, commit_message: str) -> str:
        encrypted = self._encryptor.encrypt(message)
        path = self._layout.ensure_path(message.id, message.timestamp)
        self._write_atomic(path, encrypted.to_file_bytes())

        rel_path = self._layout.to_relative(path)
        self._git.add(rel_path)
        self._git.commit(commit_message)
        return rel_path

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with open(tmp_path, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise StorageIOError(f"failed to write encrypted message {path.name}: {e}") from e

    def _get_unlocked(self, message_id: str) -> Message:
        path = self._layout.find(message_id)
        if path is None:
            raise NotFoundError(message_id)
        return self._read_file(path)

    def _read_file(self, path: Path) -> Message:
        try:
            data = path.read_bytes()
        except OSError as e:
            raise StorageIOError(f"failed to read message file {path.name}: {e}") from e

        try:
            encrypted = EncryptedMessage.model_validate_json(data)
        except PydanticValidationError as e:
            raise SerializationError(
                f"failed to unmarshal encrypted message {path.name}: {e}"
            ) from e

        return self._encryptor.decrypt(encrypted)

    def _reconcile(self) -> int:
        """Commit message files left behind by an interrupted write.

        Returns:
            Number of files committed.
        """
        pending = [
            p for p in self._git.uncommitted_paths(MESSAGES_DIR)
            if p.endswith(MESSAGE_SUFFIX)
        ]
        if not pending:
            return 0

        for rel_path in pending:
            self._git.add(rel_path)
        self._git.commit(f"Reconcile {len(pending)} uncommitted message(s)")
        logger.warning(f"Reconciled {len(pending)} uncommitted message file(s)")
        return len(pending)

    def _push_async(self) -> None:
        if not self._config.push_enabled:
            return
        thread = threading.Thread(
            target=self._push_in_background, name="git-mailbox-push", daemon=True
        )
        thread.start()

    def _push_in_background(self) -> None:
        # Runs without the store lock; the local commit already happened.
        try:
            self._git.push()
        except StorageIOError as e:
            logger.warning(f"Background push failed: {e}")
            self._publish(
                EventType.MESSAGE_PUSH_FAILED,
                {"branch": self._config.branch, "error": str(e)},
            )

    def _publish(self, event_type: EventType, payload: dict) -> None:
        try:
            self._publisher.publish(StorageEvent(event_type=event_type, payload=payload))
        except Exception as e:
            logger.warning(f"Event publisher failed for {event_type.value}: {e}")
