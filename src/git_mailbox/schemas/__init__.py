"""Pydantic schemas for contact messages and their encrypted envelopes."""

from git_mailbox.schemas.message import (
    FORMAT_VERSION,
    EncryptedMessage,
    Message,
    MessageStatus,
)

__all__ = ["FORMAT_VERSION", "EncryptedMessage", "Message", "MessageStatus"]
