from git_mailbox.cli import app

app(prog_name="git-mailbox")
