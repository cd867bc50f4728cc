"""
Filename validation.

Pure string inspection: nothing here touches the filesystem. A
``ValidatedName`` can only exist if its value passed every rule, so code
that takes one never has to re-check the string.
"""

import logging
import re
from dataclasses import dataclass

from safe_backup.errors import (
    IllegalSequenceError,
    ValidationError,
    ValidationErrorKind,
)

logger = logging.getLogger("safe_backup.validation")

MAX_NAME_BYTES = 255

_ALLOWED = re.compile(r"[A-Za-z0-9._-]+")
_SEPARATORS = ("/", "\\")


def check_filename(raw: str) -> None:
    """
    Raise ``ValidationError`` if *raw* is not a safe single filename.

    Rules are applied in order: empty, too long, illegal sequence
    (NUL, ``..``, leading separator), illegal character.
    """
    if not raw:
        raise ValidationError(ValidationErrorKind.EMPTY, raw)

    if len(raw.encode("utf-8", errors="surrogatepass")) > MAX_NAME_BYTES:
        raise ValidationError(ValidationErrorKind.TOO_LONG, raw)

    if "\x00" in raw or ".." in raw or raw.startswith(_SEPARATORS):
        raise IllegalSequenceError(raw)

    if not _ALLOWED.fullmatch(raw):
        raise ValidationError(ValidationErrorKind.ILLEGAL_CHARACTER, raw)


@dataclass(frozen=True)
class ValidatedName:
    """A filename proven to be a safe single path component."""

    value: str

    def __post_init__(self) -> None:
        check_filename(self.value)

    def __str__(self) -> str:
        return self.value


def validate(raw: str) -> ValidatedName:
    """Validate *raw* and return it as a ``ValidatedName``."""
    try:
        return ValidatedName(raw)
    except ValidationError as e:
        logger.debug(f"Rejected filename {raw!r}: {e.kind.value}")
        raise
