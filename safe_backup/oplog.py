"""
Operation log for SafeBackup.

An append-only record of every accepted and rejected operation. Writing the
record is a side channel: a failure to write is reported as a warning and
never reaches the caller.
"""

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

import orjson

from safe_backup.engine import Command
from safe_backup.paths import ResolvedPath

logger = logging.getLogger("safe_backup.oplog")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _printable(text: str) -> str:
    """Escape lone surrogates (undecodable argv bytes) so *text* encodes as UTF-8."""
    return text.encode("utf-8", errors="backslashreplace").decode("utf-8")


class LogFormat(Enum):
    """Line formats for the operation log file."""

    TEXT = "text"
    JSON = "json"


class OperationLogger:
    """Appends timestamped operation records to a log file."""

    def __init__(
        self,
        log_file: Optional[Path] = None,
        log_format: LogFormat = LogFormat.TEXT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the operation logger.

        Args:
            log_file: File to append records to, or None to only emit them
                through the ``safe_backup.oplog`` logger
            log_format: Line format for the file
            clock: Source of timestamps for ``note`` and ``now``
        """
        self.log_file = log_file
        self.log_format = log_format
        self.clock = clock

    def now(self) -> datetime:
        return self.clock()

    def format_line(
        self,
        timestamp: datetime,
        command: str,
        target: str,
        outcome: str,
    ) -> str:
        """Render one record as a single line (without the newline)."""
        if self.log_format is LogFormat.JSON:
            return orjson.dumps(
                {
                    "timestamp": timestamp.strftime(TIMESTAMP_FORMAT),
                    "command": command,
                    "target": target,
                    "outcome": outcome,
                }
            ).decode("utf-8")
        stamp = timestamp.strftime(TIMESTAMP_FORMAT)
        if command == "-" and target == "-":
            return f"[{stamp}] {outcome}"
        return f"[{stamp}] {command} {target}: {outcome}"

    def record(
        self,
        timestamp: datetime,
        command: Optional[Command],
        target: Union[ResolvedPath, Path, str, None],
        outcome: str,
    ) -> None:
        """
        Record one operation. Never raises.

        Args:
            timestamp: When the operation was attempted
            command: The command, or None if the command text was rejected
            target: The resolved path when resolution succeeded, otherwise
                the raw name the user supplied
            outcome: Short status text, e.g. ``ok`` or the error message
        """
        command_text = command.value if command is not None else "-"
        target_text = "-" if target is None else _printable(str(target))
        try:
            line = self.format_line(
                timestamp, command_text, target_text, _printable(outcome)
            )
        except (TypeError, ValueError, orjson.JSONEncodeError) as e:
            logger.warning(f"Could not format operation record: {e}")
            return

        logger.info(line)
        if self.log_file is None:
            return
        try:
            with open(
                self.log_file, "a", encoding="utf-8", errors="backslashreplace"
            ) as f:
                f.write(line + "\n")
        except (OSError, ValueError) as e:
            logger.warning(f"Could not write to log file {self.log_file}: {e}")

    def note(self, message: str) -> None:
        """Record a session event that is not tied to a file."""
        self.record(self.now(), None, None, message)
