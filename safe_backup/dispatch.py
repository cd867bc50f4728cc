"""
Command dispatch for SafeBackup.

``CommandDispatcher`` runs one request through validation, resolution and
the engine, and turns any ``SafeBackupError`` into an ``OperationOutcome``
carrying an exit code. Every request, accepted or rejected, is recorded
through the injected ``OperationLogger``.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from safe_backup.engine import BaseEngine, Command, DeleteTarget, OperationReport
from safe_backup.errors import SafeBackupError
from safe_backup.oplog import OperationLogger
from safe_backup.paths import PathResolver, ResolvedPath
from safe_backup.validation import validate

logger = logging.getLogger("safe_backup.dispatch")


@dataclass
class OperationOutcome:
    """The result of one dispatched request."""

    command: Optional[Command]
    name: str
    resolved: Optional[ResolvedPath] = None
    report: Optional[OperationReport] = None
    error: Optional[SafeBackupError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.error is None else self.error.exit_code

    @property
    def message(self) -> str:
        """Human-readable description of the outcome."""
        if self.error is not None:
            return str(self.error)
        report = self.report
        if report is None:
            return "Nothing to do."
        if report.command is Command.BACKUP:
            assert report.destination is not None
            return f"Your backup created: {report.destination.name}"
        if report.command is Command.RESTORE:
            return f"File restored from: {report.source.name}"
        return "File deleted."


class CommandDispatcher:
    """Runs commands against single files inside a base directory."""

    def __init__(
        self,
        resolver: PathResolver,
        engine: BaseEngine,
        oplog: OperationLogger,
    ):
        """
        Initialize the dispatcher.

        Args:
            resolver: Resolver pinned to the base directory
            engine: Engine that performs the file operations
            oplog: Sink for operation records
        """
        self.resolver = resolver
        self.engine = engine
        self.oplog = oplog

    def prepare(self, raw_name: str) -> ResolvedPath:
        """Validate and resolve *raw_name*, raising on failure."""
        return self.resolver.resolve(validate(raw_name))

    def execute(
        self,
        raw_name: str,
        command: Union[Command, str],
        target: DeleteTarget = DeleteTarget.ORIGINAL,
    ) -> OperationOutcome:
        """
        Run *command* on *raw_name* and report how it went.

        Args:
            raw_name: Filename as supplied by the user
            command: Command, or command text to be parsed
            target: For deletes, which file to remove

        Returns:
            Outcome with the report on success or the error on failure
        """
        timestamp = self.oplog.now()
        outcome = OperationOutcome(
            command=command if isinstance(command, Command) else None,
            name=raw_name,
        )
        try:
            if outcome.command is None:
                outcome.command = Command.parse(str(command))
            outcome.resolved = self.prepare(raw_name)
            outcome.report = self.engine.run(outcome.command, outcome.resolved, target)
        except SafeBackupError as e:
            outcome.error = e
            logger.debug(f"{outcome.command} {raw_name!r} failed: {e}")

        record_target = outcome.resolved if outcome.resolved is not None else raw_name
        if outcome.report is None:
            status = f"failed: {outcome.message}"
        elif outcome.command is Command.DELETE:
            status = f"ok ({target.value})"
        else:
            status = f"ok ({outcome.report.bytes_copied} bytes)"
        self.oplog.record(timestamp, outcome.command, record_target, status)
        return outcome

    def reject(self, raw_name: str, error: SafeBackupError) -> OperationOutcome:
        """Record and return an outcome for a request refused before dispatch."""
        outcome = OperationOutcome(command=None, name=raw_name, error=error)
        self.oplog.record(
            self.oplog.now(), None, raw_name, f"failed: {outcome.message}"
        )
        return outcome
