"""
Pytest fixtures and configuration for git-mailbox tests.
Provides common test utilities and shared fixtures.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import pytest

from git_mailbox.config import StorageConfig
from git_mailbox.crypto import MessageEncryptor, generate_key
from git_mailbox.schemas.message import Message, MessageStatus
from git_mailbox.storage.message_store import MessageStore
from mailbox_test_helpers import RecordingPublisher, make_message


@pytest.fixture
def key() -> bytes:
    """A fresh 32-byte key."""
    return generate_key()


@pytest.fixture
def encryptor(key: bytes) -> MessageEncryptor:
    """Create an encryptor with a fresh key."""
    return MessageEncryptor(key)


@pytest.fixture
def message() -> Message:
    return make_message()


@pytest.fixture
def repo_path(tmp_path: Path) -> Path:
    """Path for the messages repository (not created yet)."""
    return tmp_path / "messages-repo"


@pytest.fixture
def store_config(repo_path: Path, key: bytes) -> StorageConfig:
    return StorageConfig(
        repo_path=repo_path,
        encryption_key=key,
        branch="main",
        commit_author="Test User",
        commit_email="test@example.com",
        push_on_write=False,
    )


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def store(store_config: StorageConfig, publisher: RecordingPublisher) -> MessageStore:
    """A store on a freshly initialized repository."""
    return MessageStore(store_config, publisher=publisher)


@pytest.fixture
def two_messages() -> List[Message]:
    """An older 'new' message and a newer 'read' message."""
    base = datetime(2024, 3, 15, 14, 30, 5, tzinfo=timezone.utc)
    return [
        make_message("test-msg-123", "Jane Doe", MessageStatus.NEW, base),
        make_message(
            "test-msg-456",
            "Bob Smith",
            MessageStatus.READ,
            base + timedelta(hours=1),
            email="bob@example.com",
            company=None,
            message="Another test",
        ),
    ]
