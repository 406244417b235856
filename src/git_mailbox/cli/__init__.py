"""CLI package: Typer-based command-line interface.

Usage:
    git-mailbox --help
    python -m git_mailbox.cli list --status new
"""

from git_mailbox.cli._app import app

# Register command modules (side-effect imports)
import git_mailbox.cli.cmd_keys  # noqa: F401
import git_mailbox.cli.cmd_messages  # noqa: F401

__all__ = ["app"]
