"""Git-backed encrypted storage for contact messages.

Usage:
    from git_mailbox.storage import MessageStore
    from git_mailbox.config import StorageConfig

    store = MessageStore(StorageConfig(repo_path=Path("data/messages"), encryption_key=key))
    store.save_message(message)
    store.list_messages("new")
"""

from git_mailbox.storage.git_driver import GitDriver
from git_mailbox.storage.interfaces import MessageStorage
from git_mailbox.storage.layout import MESSAGE_SUFFIX, MESSAGES_DIR, MessageLayout
from git_mailbox.storage.message_store import MessageStore, parse_status

__all__ = [
    "GitDriver",
    "MESSAGE_SUFFIX",
    "MESSAGES_DIR",
    "MessageLayout",
    "MessageStorage",
    "MessageStore",
    "parse_status",
]
