"""Storage interface consumed by the contact handler and the operator CLI.

Using a protocol lets the contact handler depend on MessageStorage rather
than on the git-backed implementation, so tests can substitute an in-memory
fake.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from git_mailbox.schemas.message import Message


@runtime_checkable
class MessageStorage(Protocol):
    """Protocol for persisting contact messages.

    Implementations must:
    - Never store plaintext
    - Treat a returned save as durable
    - Surface the first hard failure from save and get
    """

    def save_message(self, message: "Message") -> None:
        """Persist a message.

        Raises:
            MailboxError: If the message could not be stored.
        """
        ...

    def get_message(self, message_id: str) -> "Message":
        """Retrieve a message by identifier.

        Raises:
            NotFoundError: If no message has this identifier.
        """
        ...

    def list_messages(self, status_filter: str = "") -> List["Message"]:
        """List messages newest first, optionally filtered by status.

        Unreadable records are skipped rather than failing the listing.
        """
        ...

    def update_status(self, message_id: str, status: str) -> None:
        """Change a message's status, creating a new stored version."""
        ...
