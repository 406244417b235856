"""Message commands: list, show and update stored messages."""

from typing import Optional

import typer

from git_mailbox.cli._app import app
from git_mailbox.cli._common import (
    DEFAULT_REPO,
    KEY_ENV_VAR,
    REPO_ENV_VAR,
    open_store,
    setup_logging,
)
from git_mailbox.cli._console import (
    console,
    output_table,
    print_err,
    print_ok,
    print_warn,
    stdout_console,
)
from git_mailbox.errors import MailboxError
from git_mailbox.schemas.message import Message

SUBJECT_WIDTH = 50

REPO_OPTION = typer.Option(
    DEFAULT_REPO, "--repo", envvar=REPO_ENV_VAR, help="Path to messages repository"
)
KEY_OPTION = typer.Option(
    None, "--key", envvar=KEY_ENV_VAR, help="Encryption key in hex format (64 chars)"
)


def _subject(body: str) -> str:
    if len(body) > SUBJECT_WIDTH:
        return body[: SUBJECT_WIDTH - 3] + "..."
    return body


def _summary_row(message: Message) -> dict:
    return {
        "ID": message.id,
        "Date": message.timestamp.strftime("%Y-%m-%d %H:%M"),
        "Name": message.name,
        "Email": message.email,
        "Status": message.status.value,
        "Subject": _subject(message.message),
    }


def _print_message(message: Message) -> None:
    rule = "=" * 37
    sep = "-" * 37
    lines = [
        rule,
        f"Message ID: {message.id}",
        f"Status: {message.status.value}",
        f"Date: {message.timestamp.isoformat()}",
        sep,
        f"From: {message.name} <{message.email}>",
    ]
    if message.company:
        lines.append(f"Company: {message.company}")
    lines += [
        f"IP: {message.ip}",
        f"User Agent: {message.user_agent}",
        sep,
        "Message:",
        message.message,
        rule,
    ]
    for line in lines:
        stdout_console.print(line, markup=False, highlight=False, soft_wrap=True)


@app.command("list", help="Decrypt and list stored messages, newest first.")
def list_cmd(
    ctx: typer.Context,
    repo: str = REPO_OPTION,
    key: Optional[str] = KEY_OPTION,
    status: str = typer.Option(
        "", "--status", help="Filter by status: new, read, replied, closed"
    ),
):
    """List all messages, optionally filtered by status."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    store = open_store(repo, key)
    try:
        messages = store.list_messages(status)
    except MailboxError as e:
        print_err(f"Failed to list messages: {e}")
        raise SystemExit(1)

    if ctx.obj["json"]:
        stdout_console.print_json(
            data=[m.model_dump(mode="json", exclude_none=True) for m in messages]
        )
        return

    output_table([_summary_row(m) for m in messages], ctx=ctx, title="Messages")
    if messages and not ctx.obj["quiet"]:
        console.print(f"\nTotal messages: {len(messages)}")
        console.print("To view a specific message, use: git-mailbox show <message-id>")


@app.command("show", help="Decrypt and print a single message.")
def show_cmd(
    ctx: typer.Context,
    message_id: str = typer.Argument(..., help="Message ID to decrypt"),
    repo: str = REPO_OPTION,
    key: Optional[str] = KEY_OPTION,
):
    """Print one message in full."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    store = open_store(repo, key)
    try:
        message = store.get_message(message_id)
    except MailboxError as e:
        print_err(f"Failed to get message: {e}")
        raise SystemExit(1)

    if ctx.obj["json"]:
        stdout_console.print_json(data=message.model_dump(mode="json", exclude_none=True))
    else:
        _print_message(message)


@app.command("set-status", help="Update the status of a stored message.")
def set_status_cmd(
    ctx: typer.Context,
    message_id: str = typer.Argument(..., help="Message ID to update"),
    status: str = typer.Argument(..., help="New status: new, read, replied, closed"),
    repo: str = REPO_OPTION,
    key: Optional[str] = KEY_OPTION,
    push: bool = typer.Option(False, "--push", help="Push changes to remote"),
):
    """Rewrite a message with a new status and commit it."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    store = open_store(repo, key)
    try:
        store.update_status(message_id, status)
    except MailboxError as e:
        print_err(f"Failed to update status: {e}")
        raise SystemExit(1)

    pushed = store.push() if push else None

    if ctx.obj["json"]:
        stdout_console.print_json(
            data={"message_id": message_id, "status": status, "pushed": pushed}
        )
        return

    print_ok(f"Updated message {message_id} status to: {status}")
    if pushed is False:
        print_warn("Push to remote failed; the change is committed locally")
    elif pushed:
        print_ok("Changes pushed to remote repository")
