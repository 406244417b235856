"""Shared helpers for the store commands."""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.logging import RichHandler

from git_mailbox.cli._console import console, print_err
from git_mailbox.config import StorageConfig
from git_mailbox.crypto import decode_hex_key
from git_mailbox.errors import MailboxError
from git_mailbox.storage.message_store import MessageStore

logger = logging.getLogger(__name__)

KEY_ENV_VAR = "MESSAGE_ENCRYPTION_KEY"
REPO_ENV_VAR = "MESSAGE_REPO_PATH"
DEFAULT_REPO = "data/messages"


def ensure_initialized() -> None:
    """Load a .env file from the working directory, if present."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def open_store(
    repo: str,
    key_hex: Optional[str],
    *,
    commit_author: str = "Message Status Tool",
) -> MessageStore:
    """Build a MessageStore from CLI options, exiting with status 1 on error."""
    if not key_hex:
        print_err(f"Encryption key required: use --key or {KEY_ENV_VAR}")
        raise SystemExit(1)

    try:
        key = decode_hex_key(key_hex)
        config = StorageConfig(
            repo_path=Path(repo),
            encryption_key=key,
            commit_author=commit_author,
        )
        return MessageStore(config)
    except MailboxError as e:
        print_err(f"Failed to open message store: {e}")
        raise SystemExit(1)
