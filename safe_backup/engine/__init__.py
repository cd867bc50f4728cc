"""
Engine package for SafeBackup.

This module provides the command types and the base class for engines that
carry out backup, restore and delete on a single resolved file.
"""

import abc
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from safe_backup.errors import UnknownCommandError
from safe_backup.paths import ResolvedPath


class Command(Enum):
    """The closed set of operations SafeBackup performs."""

    BACKUP = "backup"
    RESTORE = "restore"
    DELETE = "delete"

    @classmethod
    def parse(cls, text: str) -> "Command":
        """Turn user text into a ``Command``, or raise ``UnknownCommandError``."""
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise UnknownCommandError(text) from None


class DeleteTarget(Enum):
    """Which of the two files a delete removes."""

    ORIGINAL = "original"
    BACKUP = "backup"


@dataclass
class OperationReport:
    """Represents a completed engine operation."""

    command: Command
    source: Path
    destination: Optional[Path] = None
    bytes_copied: int = 0


class BaseEngine(abc.ABC):
    """Base class for file operation engines."""

    @abc.abstractmethod
    def backup(self, path: ResolvedPath) -> OperationReport:
        """
        Copy the file at *path* onto its backup path.

        Args:
            path: Resolved original file

        Returns:
            Report describing the copy
        """
        pass

    @abc.abstractmethod
    def restore(self, path: ResolvedPath) -> OperationReport:
        """
        Copy the backup of *path* back onto the original.

        Args:
            path: Resolved original file

        Returns:
            Report describing the copy
        """
        pass

    @abc.abstractmethod
    def delete(
        self, path: ResolvedPath, target: DeleteTarget = DeleteTarget.ORIGINAL
    ) -> OperationReport:
        """
        Remove either the original or the backup of *path*.

        Args:
            path: Resolved original file
            target: Which file to remove

        Returns:
            Report naming the removed file
        """
        pass

    def run(
        self,
        command: Command,
        path: ResolvedPath,
        target: DeleteTarget = DeleteTarget.ORIGINAL,
    ) -> OperationReport:
        """Run *command* against *path*."""
        if command is Command.BACKUP:
            return self.backup(path)
        if command is Command.RESTORE:
            return self.restore(path)
        if command is Command.DELETE:
            return self.delete(path, target)
        raise UnknownCommandError(str(command))
