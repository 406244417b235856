"""Per-message authenticated encryption for the mailbox repository.

Each message is encrypted individually with AES-256-GCM so the git history
never contains plaintext: the repository can be mirrored or pushed to a
hosted remote without exposing submissions to anyone lacking the key.

Design:
- Algorithm: AES-256-GCM (confidentiality + integrity in one primitive)
- Key: 32 bytes, held in memory only; provisioning is done out of band
- Nonce: 12 bytes (96 bits), freshly random for every encryption call,
  including re-encryption of the same message on a status update
- Encoding: ciphertext (with the 16-byte tag appended) and nonce are stored
  as standard base64 inside the EncryptedMessage envelope

Key text format (CLI and environment):
    64 hex characters == 32 raw bytes
"""

import base64
import binascii
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import ValidationError as PydanticValidationError

from git_mailbox.errors import (
    DecryptionError,
    InternalError,
    InvalidFormatError,
    SerializationError,
    ValidationError,
)
from git_mailbox.schemas.message import (
    FORMAT_VERSION,
    EncryptedMessage,
    Message,
    format_rfc3339,
)

# Constants
KEY_SIZE = 32  # 256 bits
NONCE_SIZE = 12  # 96 bits (standard for GCM)
HEX_KEY_LENGTH = KEY_SIZE * 2


class MessageEncryptor:
    """AES-256-GCM codec for a single message record.

    Example:
        >>> encryptor = MessageEncryptor(generate_key())
        >>> envelope = encryptor.encrypt(message)
        >>> assert encryptor.decrypt(envelope) == message
    """

    def __init__(self, key: bytes):
        """Initialize the codec.

        Args:
            key: Exactly 32 bytes of key material.

        Raises:
            ValidationError: If the key is not 32 bytes.
        """
        if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
            size = len(key) if key is not None else 0
            raise ValidationError(
                f"encryption key must be {KEY_SIZE} bytes for AES-256, got {size} bytes"
            )
        self._key = bytes(key)

    def _cipher(self) -> AESGCM:
        try:
            return AESGCM(self._key)
        except Exception as e:
            raise InternalError(f"failed to create cipher: {e}") from e

    def encrypt(self, message: Message) -> EncryptedMessage:
        """Encrypt a message into its on-disk envelope.

        Args:
            message: Plaintext message.

        Returns:
            EncryptedMessage with base64 ciphertext and a fresh nonce.

        Raises:
            InternalError: If the cipher cannot be constructed.
            SerializationError: If the message cannot be serialized.
        """
        try:
            plaintext = message.to_json_bytes()
        except (TypeError, ValueError) as e:
            raise SerializationError(f"failed to marshal message: {e}") from e

        nonce = secrets.token_bytes(NONCE_SIZE)
        ciphertext = self._cipher().encrypt(nonce, plaintext, None)

        return EncryptedMessage(
            id=message.id,
            ciphertext=base64.b64encode(ciphertext).decode("ascii"),
            nonce=base64.b64encode(nonce).decode("ascii"),
            created_at=format_rfc3339(message.timestamp),
            version=FORMAT_VERSION,
        )

    def decrypt(self, encrypted: EncryptedMessage) -> Message:
        """Decrypt an envelope back into the plaintext message.

        Args:
            encrypted: Envelope produced by encrypt().

        Returns:
            The original Message.

        Raises:
            InvalidFormatError: If ciphertext or nonce is not valid base64.
            DecryptionError: If authentication fails (wrong key, tampering).
            SerializationError: If the recovered plaintext is not a message.
        """
        try:
            ciphertext = base64.b64decode(encrypted.ciphertext, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidFormatError(f"failed to decode ciphertext: {e}") from e

        try:
            nonce = base64.b64decode(encrypted.nonce, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidFormatError(f"failed to decode nonce: {e}") from e

        cipher = self._cipher()
        try:
            plaintext = cipher.decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise DecryptionError("failed to decrypt message: authentication failed") from e
        except ValueError as e:
            # Nonce of a length GCM does not accept
            raise DecryptionError(f"failed to decrypt message: {e}") from e

        try:
            return Message.model_validate_json(plaintext)
        except PydanticValidationError as e:
            raise SerializationError(f"failed to unmarshal message: {e}") from e


def generate_key() -> bytes:
    """Generate a new 256-bit encryption key.

    Returns:
        32 bytes of cryptographically secure random data.
    """
    return secrets.token_bytes(KEY_SIZE)


def encode_hex_key(key: bytes) -> str:
    """Render a key as 64 lowercase hex characters."""
    return key.hex()


def decode_hex_key(text: str) -> bytes:
    """Parse a 64-character hex key.

    Args:
        text: Hex key, surrounding whitespace ignored.

    Returns:
        32 raw key bytes.

    Raises:
        ValidationError: If the text is not hex or not 32 bytes long.
    """
    cleaned = (text or "").strip()
    try:
        key = bytes.fromhex(cleaned)
    except ValueError as e:
        raise ValidationError(f"invalid hex key: {e}") from e

    if len(key) != KEY_SIZE:
        raise ValidationError(
            f"key must be {KEY_SIZE} bytes ({HEX_KEY_LENGTH} hex characters), "
            f"got {len(cleaned)} characters"
        )
    return key
