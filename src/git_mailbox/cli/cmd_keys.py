"""Key command: provision a new encryption key."""

import typer

from git_mailbox.cli._app import app
from git_mailbox.cli._common import KEY_ENV_VAR
from git_mailbox.cli._console import console, stdout_console
from git_mailbox.crypto import encode_hex_key, generate_key


@app.command("generate-key", help="Generate a new 256-bit message encryption key.")
def generate_key_cmd(ctx: typer.Context):
    """Print a fresh key as 64 hex characters with usage guidance."""
    key_hex = encode_hex_key(generate_key())

    if ctx.obj["json"]:
        stdout_console.print_json(data={"key": key_hex})
        return

    stdout_console.print(key_hex, markup=False, highlight=False, soft_wrap=True)
    if ctx.obj["quiet"]:
        return

    console.print("\n[bold]Usage:[/bold]")
    console.print("1. Add to .env file:")
    console.print(f"   {KEY_ENV_VAR}={key_hex}", markup=False, highlight=False, soft_wrap=True)
    console.print("\n2. Or pass it to the store commands:")
    console.print(f"   git-mailbox list --key {key_hex}", markup=False, highlight=False, soft_wrap=True)
    console.print(
        "\n[yellow]IMPORTANT:[/yellow] Store this key securely! "
        "Messages cannot be decrypted without it."
    )
