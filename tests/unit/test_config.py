"""Unit tests for message store configuration.

Tests:
- Default values
- Key and path conversion
- Environment variable loading
- Store-level validation
"""

import os
from pathlib import Path
from unittest import mock

import pytest
from pydantic import ValidationError as PydanticValidationError

from git_mailbox.config import StorageConfig
from git_mailbox.errors import ValidationError

KEY_HEX = "00112233445566778899aabbccddeeff" * 2


class TestStorageConfigDefaults:
    """Tests for config default values."""

    def test_defaults(self):
        config = StorageConfig()
        assert config.repo_path is None
        assert config.remote_url is None
        assert config.branch == "main"
        assert config.commit_author == "Message Store"
        assert config.commit_email == "messages@localhost"
        assert config.encryption_key is None
        assert config.push_on_write is False
        assert config.git_timeout_seconds == 30.0

    def test_push_disabled_by_default(self):
        """push_enabled requires both the flag and a remote."""
        assert StorageConfig().push_enabled is False
        assert StorageConfig(push_on_write=True).push_enabled is False
        assert StorageConfig(remote_url="git@example.com:m.git").push_enabled is False
        assert StorageConfig(
            push_on_write=True, remote_url="git@example.com:m.git"
        ).push_enabled is True


class TestStorageConfigConversion:
    """Tests for field validators."""

    def test_string_repo_path_becomes_path(self):
        config = StorageConfig(repo_path="data/messages")
        assert config.repo_path == Path("data/messages")

    def test_empty_repo_path_is_none(self):
        assert StorageConfig(repo_path="").repo_path is None

    def test_hex_key_is_decoded(self):
        config = StorageConfig(encryption_key=KEY_HEX)
        assert config.encryption_key == bytes.fromhex(KEY_HEX)

    def test_bytes_key_kept(self):
        key = b"\x01" * 32
        assert StorageConfig(encryption_key=key).encryption_key == key

    def test_invalid_hex_key_rejected(self):
        with pytest.raises(PydanticValidationError):
            StorageConfig(encryption_key="not-hex")

    def test_blank_remote_is_none(self):
        assert StorageConfig(remote_url="   ").remote_url is None

    def test_key_hidden_from_repr(self):
        config = StorageConfig(encryption_key=KEY_HEX)
        assert KEY_HEX not in repr(config)
        assert "encryption_key" not in repr(config)

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(PydanticValidationError):
            StorageConfig(git_timeout_seconds=0)

    def test_unknown_field_rejected(self):
        with pytest.raises(PydanticValidationError):
            StorageConfig(backend="s3")

    def test_config_is_frozen(self):
        config = StorageConfig()
        with pytest.raises(PydanticValidationError):
            config.branch = "other"


class TestValidateForStore:
    """Tests for validate_for_store."""

    def test_valid(self, tmp_path: Path):
        StorageConfig(repo_path=tmp_path, encryption_key=KEY_HEX).validate_for_store()

    def test_missing_repo_path(self):
        with pytest.raises(ValidationError, match="repo path is required"):
            StorageConfig(encryption_key=KEY_HEX).validate_for_store()

    def test_missing_key(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="encryption key is required"):
            StorageConfig(repo_path=tmp_path).validate_for_store()


class TestFromEnv:
    """Tests for environment variable loading."""

    def test_from_env_defaults(self):
        """With no env vars set, defaults apply."""
        with mock.patch.dict(os.environ, {}, clear=True):
            config = StorageConfig.from_env()
        assert config == StorageConfig()

    def test_from_env_all_values(self):
        env = {
            "MESSAGE_REPO_PATH": "/srv/messages",
            "MESSAGE_REMOTE_URL": "git@example.com:messages.git",
            "MESSAGE_BRANCH": "inbox",
            "MESSAGE_COMMIT_AUTHOR": "Contact Form",
            "MESSAGE_COMMIT_EMAIL": "contact@example.com",
            "MESSAGE_ENCRYPTION_KEY": KEY_HEX,
            "MESSAGE_PUSH_ON_WRITE": "true",
            "MESSAGE_GIT_TIMEOUT": "5",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = StorageConfig.from_env()

        assert config.repo_path == Path("/srv/messages")
        assert config.remote_url == "git@example.com:messages.git"
        assert config.branch == "inbox"
        assert config.commit_author == "Contact Form"
        assert config.commit_email == "contact@example.com"
        assert config.encryption_key == bytes.fromhex(KEY_HEX)
        assert config.push_on_write is True
        assert config.git_timeout_seconds == 5.0
        assert config.push_enabled is True

    @pytest.mark.parametrize("value,expected", [("1", True), ("YES", True), ("false", False), ("0", False)])
    def test_push_on_write_parsing(self, value, expected):
        with mock.patch.dict(os.environ, {"MESSAGE_PUSH_ON_WRITE": value}, clear=True):
            assert StorageConfig.from_env().push_on_write is expected

    def test_custom_prefix(self):
        with mock.patch.dict(os.environ, {"INBOX_BRANCH": "mail"}, clear=True):
            assert StorageConfig.from_env(prefix="INBOX_").branch == "mail"

    def test_bad_key_in_env(self):
        with mock.patch.dict(os.environ, {"MESSAGE_ENCRYPTION_KEY": "abcd"}, clear=True):
            with pytest.raises(ValidationError, match="32 bytes"):
                StorageConfig.from_env()

    def test_bad_timeout_in_env(self):
        with mock.patch.dict(os.environ, {"MESSAGE_GIT_TIMEOUT": "soon"}, clear=True):
            with pytest.raises(ValidationError, match="GIT_TIMEOUT"):
                StorageConfig.from_env()
