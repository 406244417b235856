"""Contact message schemas: the plaintext record and its on-disk envelope.

A Message is what the contact handler submits. An EncryptedMessage is what
lands in the repository: the identifier stays in clear text so a record can
be located without the key, everything else lives inside the ciphertext.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

FORMAT_VERSION = "1.0"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MessageStatus(str, Enum):
    """Lifecycle status of a contact message."""

    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    CLOSED = "closed"


class Message(BaseModel):
    """Plaintext contact form submission."""

    id: str = Field(..., description="Caller-generated unique identifier")
    name: str = Field(..., description="Sender name")
    email: str = Field(..., description="Sender email address")
    company: Optional[str] = Field(None, description="Sender company, if given")
    message: str = Field(..., description="Free-text body")
    ip: str = Field("", description="Client IP address")
    user_agent: str = Field("", description="Client user-agent string")
    timestamp: datetime = Field(default_factory=utc_now, description="Creation time (UTC)")
    status: MessageStatus = Field(MessageStatus.NEW, description="Lifecycle status")

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Store every timestamp as aware UTC."""
        return to_utc(v)

    def to_json_bytes(self) -> bytes:
        """Canonical plaintext serialization used as encryption input."""
        return self.model_dump_json(exclude_none=True).encode("utf-8")


class EncryptedMessage(BaseModel):
    """On-disk envelope for one encrypted message.

    Serialized as indented JSON with fields in declaration order:
    id, ciphertext, nonce, created_at, version.
    """

    id: str
    ciphertext: str = Field(..., description="Standard base64 AES-GCM output")
    nonce: str = Field(..., description="Standard base64 nonce")
    created_at: str = Field(..., description="RFC 3339 creation timestamp")
    version: str = FORMAT_VERSION

    def to_file_bytes(self) -> bytes:
        """Serialize for writing to a ``.json.enc`` file."""
        return self.model_dump_json(indent=2).encode("utf-8")


def format_rfc3339(value: datetime) -> str:
    """Format a timestamp as RFC 3339 in UTC with second precision."""
    return to_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")
