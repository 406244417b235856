"""Exception hierarchy for the encrypted mailbox.

Every error raised by the store, the codec, or the git driver derives from
MailboxError and carries a stable ``code`` so callers (the contact handler,
the operator CLI) can branch on the kind of failure without string matching.

Root causes are always chained (``raise ... from exc``), so ``__cause__``
holds the underlying OSError, subprocess failure, or cryptography error.
"""

from typing import Optional


class MailboxError(Exception):
    """Base exception for mailbox storage errors."""

    code = "MAILBOX_ERROR"


class ValidationError(MailboxError, ValueError):
    """Malformed configuration or input (wrong key length, missing repo path)."""

    code = "VALIDATION_ERROR"


class NotFoundError(MailboxError):
    """No stored message matches the requested identifier."""

    code = "NOT_FOUND"

    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__(f"message not found: {message_id}")


class StorageIOError(MailboxError):
    """Filesystem or git subprocess failure.

    Attributes:
        output: Combined stdout/stderr of the git command, when one ran.
    """

    code = "IO_ERROR"

    def __init__(self, message: str, output: Optional[str] = None):
        self.output = output
        if output:
            message = f"{message}: {output.strip()}"
        super().__init__(message)


class SerializationError(MailboxError):
    """JSON marshal/unmarshal failure on a plaintext message or an envelope."""

    code = "SERIALIZATION_ERROR"


class InvalidFormatError(MailboxError):
    """Stored ciphertext or nonce is not valid base64."""

    code = "INVALID_FORMAT"


class DecryptionError(MailboxError):
    """Authenticated decryption failed (wrong key, tampered data, bad nonce)."""

    code = "DECRYPTION_ERROR"


class InternalError(MailboxError):
    """Cipher construction failed."""

    code = "INTERNAL_ERROR"
