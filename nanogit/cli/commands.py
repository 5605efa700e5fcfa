"""CLI commands for nanogit."""

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from typer.core import TyperCommand

from nanogit import __logo__, __version__
from nanogit.config.loader import load_config
from nanogit.config.schema import Config
from nanogit.exceptions import IncorrectOperandsError, IntegrityError, SafetyAbort, UserError
from nanogit.repo.repository import Repository
from nanogit.repo.visualize import format_commit_log, format_status

app = typer.Typer(
    name="nanogit",
    help=f"{__logo__} nanogit - a small local version-control system",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} nanogit v{__version__}")
        raise typer.Exit()


def setup_logging(level: str) -> None:
    """Send loguru output to stderr at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level, format="<level>{level: <8}</level> {message}")


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """nanogit - a small local version-control system."""
    setup_logging("DEBUG" if verbose else load_config().log.level)


# ============================================================================
# Helpers
# ============================================================================


def _echo(text: str) -> None:
    """Print pre-formatted text exactly as given."""
    console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True, end="")


@contextmanager
def _reporting_errors() -> Iterator[None]:
    """Turn nanogit errors into printed messages and exit codes."""
    try:
        yield
    except (UserError, SafetyAbort) as e:
        console.print(str(e), markup=False, highlight=False, emoji=False)
        raise typer.Exit()
    except IntegrityError as e:
        console.print(str(e), style="red", markup=False, highlight=False, emoji=False)
        raise typer.Exit(1)


def _open() -> tuple[Repository, Config]:
    config = load_config()
    return Repository.open(Path.cwd(), config), config


# ============================================================================
# Repository setup
# ============================================================================


@app.command()
def init():
    """Create a repository in the current directory."""
    with _reporting_errors():
        Repository.init(Path.cwd(), load_config())


# ============================================================================
# Staging and committing
# ============================================================================


@app.command()
def add(filename: str = typer.Argument(..., help="File to stage")):
    """Stage a file for the next commit."""
    with _reporting_errors():
        repo, _ = _open()
        repo.add(filename)


@app.command()
def commit(message: str = typer.Argument("", help="Commit message")):
    """Record the staged snapshot."""
    with _reporting_errors():
        repo, _ = _open()
        repo.commit(message)


@app.command()
def rm(filename: str = typer.Argument(..., help="File to remove")):
    """Unstage a file, or stage a tracked file for removal."""
    with _reporting_errors():
        repo, _ = _open()
        repo.rm(filename)


# ============================================================================
# History
# ============================================================================


@app.command()
def log():
    """Show the current branch's history."""
    with _reporting_errors():
        repo, config = _open()
        _echo(format_commit_log(repo.log(), config.log.date_format))


@app.command("global-log")
def global_log():
    """Show every commit ever made."""
    with _reporting_errors():
        repo, config = _open()
        _echo(format_commit_log(repo.global_log(), config.log.date_format))


@app.command()
def find(message: str = typer.Argument(..., help="Exact commit message")):
    """Print the IDs of all commits with a given message."""
    with _reporting_errors():
        repo, _ = _open()
        for commit_id in repo.find(message):
            _echo(f"{commit_id}\n")


@app.command()
def status():
    """Show branches, staged changes and working-tree state."""
    with _reporting_errors():
        repo, _ = _open()
        _echo(format_status(repo.status()))


# ============================================================================
# Checkout
# ============================================================================


class SeparatorCommand(TyperCommand):
    """
    Command whose arguments keep the ``--`` separator.

    Click drops the first ``--`` it sees. Putting an extra one in front
    makes it drop that one instead, so the user's separator reaches the
    command as a plain argument.
    """

    def parse_args(self, ctx, args):
        if "--" in args:
            args = ["--", *args]
        return super().parse_args(ctx, args)


@dataclass(frozen=True)
class CheckoutFile:
    filename: str
    commit_prefix: str | None = None


@dataclass(frozen=True)
class CheckoutBranch:
    name: str


CheckoutRequest = CheckoutFile | CheckoutBranch


def parse_checkout(args: list[str]) -> CheckoutRequest:
    """
    Parse checkout operands.

    ``-- <file>``, ``<commit> -- <file>`` and ``<branch>`` are accepted.

    Raises:
        IncorrectOperandsError: Any other shape.
    """
    if len(args) == 2 and args[0] == "--":
        return CheckoutFile(args[1])
    if len(args) == 3 and args[1] == "--":
        return CheckoutFile(args[2], args[0])
    if len(args) == 1 and args[0] != "--":
        return CheckoutBranch(args[0])
    raise IncorrectOperandsError()


@app.command(cls=SeparatorCommand)
def checkout(
    args: list[str] = typer.Argument(
        None, help="-- <file> | <commit> -- <file> | <branch>", metavar="OPERANDS..."
    ),
):
    """Restore a file, or switch branches."""
    with _reporting_errors():
        request = parse_checkout(args or [])
        repo, _ = _open()
        if isinstance(request, CheckoutFile):
            repo.checkout_file(request.filename, request.commit_prefix)
        else:
            repo.checkout_branch(request.name)


@app.command()
def reset(commit_prefix: str = typer.Argument(..., help="Commit ID or prefix")):
    """Check out a commit and move the current branch to it."""
    with _reporting_errors():
        repo, _ = _open()
        repo.reset(commit_prefix)


# ============================================================================
# Branches
# ============================================================================


@app.command()
def branch(name: str = typer.Argument(..., help="New branch name")):
    """Create a branch at the current commit."""
    with _reporting_errors():
        repo, _ = _open()
        repo.branch(name)


@app.command("rm-branch")
def rm_branch(name: str = typer.Argument(..., help="Branch to delete")):
    """Delete a branch pointer."""
    with _reporting_errors():
        repo, _ = _open()
        repo.rm_branch(name)


@app.command()
def merge(name: str = typer.Argument(..., help="Branch to merge in")):
    """Merge a branch into the current branch."""
    with _reporting_errors():
        repo, _ = _open()
        _report_merge(repo.merge(name))


def _report_merge(result) -> None:
    if result.outcome != "merged" or result.has_conflicts:
        console.print(result.describe(), markup=False, highlight=False, emoji=False)


# ============================================================================
# Remotes
# ============================================================================


@app.command("add-remote")
def add_remote(
    name: str = typer.Argument(..., help="Remote name"),
    path: str = typer.Argument(..., help="Path to the remote's repository directory"),
):
    """Register a remote repository."""
    with _reporting_errors():
        repo, _ = _open()
        repo.add_remote(name, path)


@app.command("rm-remote")
def rm_remote(name: str = typer.Argument(..., help="Remote name")):
    """Forget a remote repository."""
    with _reporting_errors():
        repo, _ = _open()
        repo.rm_remote(name)


@app.command()
def push(
    remote: str = typer.Argument(..., help="Remote name"),
    branch_name: str = typer.Argument(..., metavar="BRANCH", help="Remote branch"),
):
    """Push the current commit to a remote branch."""
    with _reporting_errors():
        repo, _ = _open()
        repo.push(remote, branch_name)


@app.command()
def fetch(
    remote: str = typer.Argument(..., help="Remote name"),
    branch_name: str = typer.Argument(..., metavar="BRANCH", help="Remote branch"),
):
    """Copy a remote branch into <remote>/<branch>."""
    with _reporting_errors():
        repo, _ = _open()
        repo.fetch(remote, branch_name)


@app.command()
def pull(
    remote: str = typer.Argument(..., help="Remote name"),
    branch_name: str = typer.Argument(..., metavar="BRANCH", help="Remote branch"),
):
    """Fetch a remote branch and merge it into the current branch."""
    with _reporting_errors():
        repo, _ = _open()
        _report_merge(repo.pull(remote, branch_name))


if __name__ == "__main__":
    app()
