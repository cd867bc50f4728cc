"""
Error taxonomy for SafeBackup.

Every expected failure of validation, resolution or the engine maps to a
subclass of ``SafeBackupError``. The dispatcher catches that base class and
turns it into an outcome; anything else propagates.
"""

from enum import Enum
from pathlib import Path
from typing import Union


class SafeBackupError(Exception):
    """Base class for all SafeBackup failures."""

    exit_code = 1


class ValidationErrorKind(Enum):
    """Reasons a raw filename is rejected."""

    EMPTY = "empty"
    TOO_LONG = "too_long"
    ILLEGAL_SEQUENCE = "illegal_sequence"
    ILLEGAL_CHARACTER = "illegal_character"


_VALIDATION_MESSAGES = {
    ValidationErrorKind.EMPTY: "Filename cannot be empty",
    ValidationErrorKind.TOO_LONG: "Filename too long (max 255 bytes)",
    ValidationErrorKind.ILLEGAL_SEQUENCE: "Filename contains an illegal sequence",
    ValidationErrorKind.ILLEGAL_CHARACTER: "Filename contains invalid characters",
}


class ValidationError(SafeBackupError):
    """Raised when a raw filename fails structural validation."""

    def __init__(self, kind: ValidationErrorKind, raw: str = ""):
        self.kind = kind
        self.raw = raw
        super().__init__(f"Invalid filename: {_VALIDATION_MESSAGES[kind]}")


class PathTraversalError(SafeBackupError):
    """Raised when a name resolves outside the base directory."""

    def __init__(self, name: str, reason: str = "escapes base directory"):
        self.name = name
        self.reason = reason
        super().__init__(f"Path traversal attempt: {name} ({reason})")


class IllegalSequenceError(ValidationError, PathTraversalError):
    """A filename carrying ``..``, NUL or a leading separator.

    It fails validation, and it is also a traversal attempt, so callers
    checking either class see it.
    """

    def __init__(self, raw: str):
        self.kind = ValidationErrorKind.ILLEGAL_SEQUENCE
        self.raw = raw
        self.name = raw
        self.reason = "illegal sequence in filename"
        SafeBackupError.__init__(
            self,
            f"Path traversal attempt: "
            f"{_VALIDATION_MESSAGES[ValidationErrorKind.ILLEGAL_SEQUENCE]}",
        )


class NotFoundError(SafeBackupError):
    """Raised when the file an operation needs does not exist."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"File not found: {self.path.name}")


class OperationIOError(SafeBackupError):
    """Raised when a read, write, rename or unlink fails."""

    def __init__(self, reason: str, path: Union[str, Path, None] = None):
        self.reason = reason
        self.path = Path(path) if path is not None else None
        super().__init__(f"IO Error: {reason}")


class UnknownCommandError(SafeBackupError):
    """Raised when command text does not name a known command."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Unknown command: {text}")
