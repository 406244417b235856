"""
git-mailbox - encrypted, git-versioned storage for contact form messages.

Each submission is encrypted with AES-256-GCM and committed to a local git
repository, which doubles as audit trail and replication mechanism.
"""

__version__ = "0.1.0"

from git_mailbox.config import StorageConfig
from git_mailbox.crypto import MessageEncryptor, generate_key
from git_mailbox.schemas.message import EncryptedMessage, Message, MessageStatus
from git_mailbox.storage.message_store import MessageStore

__all__ = [
    "EncryptedMessage",
    "Message",
    "MessageEncryptor",
    "MessageStatus",
    "MessageStore",
    "StorageConfig",
    "generate_key",
]
