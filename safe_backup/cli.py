"""
Command-line interface for SafeBackup.

Run without a subcommand to get the interactive protocol: a filename
prompt followed by a command prompt. The ``backup``, ``restore`` and
``delete`` subcommands do the same work without prompting for the name.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from safe_backup import __version__
from safe_backup.config import SafeBackupConfig
from safe_backup.dispatch import CommandDispatcher, OperationOutcome
from safe_backup.engine import Command, DeleteTarget
from safe_backup.engine.local import LocalEngine
from safe_backup.errors import SafeBackupError
from safe_backup.oplog import OperationLogger
from safe_backup.paths import PathResolver
from safe_backup.validation import validate

# Set up the console and logger
console = Console()
err_console = Console(stderr=True)
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)
logger = logging.getLogger("safe_backup")

app = typer.Typer(
    help="Back up, restore, or delete one file at a time, safely.",
    add_completion=False,
)


@dataclass
class Session:
    """Per-invocation state built by the callback."""

    dispatcher: CommandDispatcher
    confirm_delete: bool = True


def build_session(
    base_dir: Optional[str] = None,
    log_file: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> Session:
    """
    Assemble the dispatcher from CLI options, environment and config file.

    The base directory is canonicalized here, once, for the whole run.
    """
    config = SafeBackupConfig.load(config_path)
    base = config.resolve_base_dir(base_dir)
    if not base.is_dir():
        log_error(f"Base directory does not exist: {base}")
        raise typer.Exit(1)

    resolver = PathResolver(base)
    oplog = OperationLogger(
        log_file=config.resolve_log_file(resolver.base_dir, log_file),
        log_format=config.log_format,
    )
    dispatcher = CommandDispatcher(resolver, LocalEngine(), oplog)
    return Session(dispatcher=dispatcher, confirm_delete=config.confirm_delete)


def log_error(message: str) -> None:
    """Log an error message to both logger and stderr."""
    logger.debug(message)
    err_console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)
    return None


def report(outcome: OperationOutcome) -> None:
    """Print the outcome and exit with its status on failure."""
    if outcome.ok:
        console.print(escape(outcome.message), soft_wrap=True)
        return
    log_error(f"Error: {outcome.message}")
    raise typer.Exit(outcome.exit_code)


def confirm_delete(name: str) -> bool:
    """Ask the user to type ``yes`` before a delete."""
    answer = typer.prompt(
        f"Are you sure you want to delete {name}? (yes/no)", default="no"
    )
    return answer.strip().lower() == "yes"


def run_delete(
    session: Session, name: str, target: DeleteTarget, assume_yes: bool
) -> None:
    """Delete after confirmation, recording a cancellation as a success."""
    dispatcher = session.dispatcher
    if session.confirm_delete and not assume_yes:
        try:
            resolved = dispatcher.prepare(name)
        except SafeBackupError as e:
            report(dispatcher.reject(name, e))
            return
        victim = (
            resolved.entry_path
            if target is DeleteTarget.ORIGINAL
            else resolved.backup_path
        )
        # A missing file is reported by the engine without asking first.
        if victim.exists() and not confirm_delete(victim.name):
            console.print("Delete cancelled.")
            dispatcher.oplog.record(
                dispatcher.oplog.now(), Command.DELETE, resolved, "cancelled by user"
            )
            return
    report(dispatcher.execute(name, Command.DELETE, target))


def interactive(session: Session) -> None:
    """The two-prompt protocol: filename, then command."""
    dispatcher = session.dispatcher
    console.print("SafeBackup - Secure File Backup Utility")
    console.print("=======================================")

    name = typer.prompt("Please enter your file name", default="", show_default=False)
    name = name.strip()
    try:
        validate(name)
    except SafeBackupError as e:
        report(dispatcher.reject(name, e))

    text = typer.prompt(
        "Please enter your command (backup, restore, delete)",
        default="",
        show_default=False,
    )
    try:
        command = Command.parse(text)
    except SafeBackupError as e:
        report(dispatcher.reject(name, e))
        return

    if command is Command.DELETE:
        run_delete(session, name, DeleteTarget.ORIGINAL, assume_yes=False)
    else:
        report(dispatcher.execute(name, command))


@app.callback(invoke_without_command=True)
def callback(
    ctx: typer.Context,
    base_dir: Annotated[
        Optional[str],
        typer.Option(
            "--base-dir",
            "-d",
            help="Directory files must live in. Uses SAFE_BACKUP_BASE_DIR, "
            "then the config file, then the current directory.",
        ),
    ] = None,
    log_file: Annotated[
        Optional[str],
        typer.Option(
            "--log-file",
            help="Operation log file (relative to the base directory). "
            "Pass an empty string to disable.",
        ),
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a YAML config file."),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable verbose output.")
    ] = False,
    version: Annotated[
        bool,
        typer.Option("--version", help="Show the application version and exit."),
    ] = False,
) -> None:
    """
    SafeBackup: back up, restore, or delete one file at a time.
    """
    if version:
        console.print(f"SafeBackup version: {__version__}")
        raise typer.Exit()

    if verbose:
        logger.setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    if ctx.invoked_subcommand == "version":
        return

    session = build_session(base_dir, log_file, config)
    ctx.obj = session
    oplog = session.dispatcher.oplog
    oplog.note("SafeBackup session started")
    ctx.call_on_close(lambda: oplog.note("SafeBackup session ended"))

    if ctx.invoked_subcommand is None:
        interactive(session)


@app.command()
def backup(
    ctx: typer.Context,
    filename: Annotated[str, typer.Argument(help="File to back up.")],
) -> None:
    """
    Copy FILENAME to FILENAME.bak in the same directory.
    """
    session: Session = ctx.obj
    report(session.dispatcher.execute(filename, Command.BACKUP))


@app.command()
def restore(
    ctx: typer.Context,
    filename: Annotated[str, typer.Argument(help="File to restore.")],
) -> None:
    """
    Copy FILENAME.bak back over FILENAME, keeping the backup.
    """
    session: Session = ctx.obj
    report(session.dispatcher.execute(filename, Command.RESTORE))


@app.command()
def delete(
    ctx: typer.Context,
    filename: Annotated[str, typer.Argument(help="File to delete.")],
    backup_only: Annotated[
        bool,
        typer.Option("--backup", "-b", help="Delete FILENAME.bak instead."),
    ] = False,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")
    ] = False,
) -> None:
    """
    Delete FILENAME, or its backup with --backup. Never both.
    """
    session: Session = ctx.obj
    target = DeleteTarget.BACKUP if backup_only else DeleteTarget.ORIGINAL
    run_delete(session, filename, target, assume_yes=yes)


@app.command()
def version() -> None:
    """Show the application version and exit."""
    console.print(f"SafeBackup version: {__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
