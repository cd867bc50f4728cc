"""
Path resolution and containment checking for SafeBackup.

The base directory is canonicalized once, when the resolver is built. Every
``resolve`` call canonicalizes the target afresh against the current
filesystem, so a symlink swapped in between two operations is seen by the
second one.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from safe_backup.errors import PathTraversalError
from safe_backup.validation import ValidatedName

logger = logging.getLogger("safe_backup.paths")

BACKUP_SUFFIX = ".bak"


def canonicalize(path: Union[str, Path]) -> Path:
    """Return the absolute, symlink-free form of *path*."""
    return Path(os.path.realpath(os.path.abspath(path)))


def is_contained(path: Path, base_dir: Path) -> bool:
    """Return True when *path* is a strict descendant of *base_dir*.

    Both paths must be absolute and free of ``..`` segments; the comparison
    is textual, so an unnormalized path is never taken as contained.
    """
    for p in (path, base_dir):
        if not p.is_absolute() or ".." in p.parts:
            return False
    return path != base_dir and path.is_relative_to(base_dir)


@dataclass(frozen=True)
class ResolvedPath:
    """
    A canonical file path inside the base directory, with its backup path.

    Construction fails with ``PathTraversalError`` unless ``path``,
    ``backup_path`` and ``entry`` all lie strictly inside ``base_dir``.
    ``entry`` is the literal directory entry the user named; it differs
    from ``path`` when that entry is a symlink to another file in the base.
    """

    path: Path
    backup_path: Path
    base_dir: Path
    entry: Optional[Path] = None

    def __post_init__(self) -> None:
        if not is_contained(self.path, self.base_dir):
            raise PathTraversalError(str(self.path))
        if not is_contained(self.backup_path, self.base_dir):
            raise PathTraversalError(
                str(self.backup_path), "backup path escapes base directory"
            )
        if self.entry is not None and not is_contained(self.entry, self.base_dir):
            raise PathTraversalError(str(self.entry))

    @property
    def entry_path(self) -> Path:
        """The entry a delete of the original removes."""
        return self.entry if self.entry is not None else self.path

    @property
    def name(self) -> str:
        return self.path.name

    def __str__(self) -> str:
        return str(self.path)


class PathResolver:
    """Resolves validated names against a fixed base directory."""

    def __init__(self, base_dir: Union[str, Path]):
        """
        Initialize the resolver.

        Args:
            base_dir: Directory every resolved path must stay inside. It is
                canonicalized here, so a symlinked base is pinned to its
                target.
        """
        self.base_dir = canonicalize(base_dir)
        logger.debug(f"Base directory: {self.base_dir}")

    def resolve(self, name: ValidatedName) -> ResolvedPath:
        """
        Resolve *name* to a ``ResolvedPath`` inside the base directory.

        Args:
            name: Validated filename

        Returns:
            The resolved path and its backup path

        Raises:
            PathTraversalError: If either path canonicalizes outside the base
        """
        if not isinstance(name, ValidatedName):
            raise TypeError(f"Expected ValidatedName, got {type(name).__name__}")

        target = canonicalize(self.base_dir / name.value)
        if not is_contained(target, self.base_dir):
            logger.warning(f"Blocked traversal: {name} -> {target}")
            raise PathTraversalError(name.value)

        # The backup keeps its literal name so a rename replaces it in place,
        # but whatever it points at must also stay inside the base.
        backup = target.parent / (target.name + BACKUP_SUFFIX)
        if not is_contained(canonicalize(backup), self.base_dir):
            logger.warning(f"Blocked traversal via backup path: {name} -> {backup}")
            raise PathTraversalError(name.value, "backup path escapes base directory")

        return ResolvedPath(
            path=target,
            backup_path=backup,
            base_dir=self.base_dir,
            entry=self.base_dir / name.value,
        )
