"""
Local filesystem engine for SafeBackup.

Backup and restore stream the source into a temporary file created in the
destination's directory, then ``os.replace`` it onto the destination. The
rename is the only visible state change, so the destination is either left
as it was or holds the complete new content.
"""

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path

from safe_backup.engine import BaseEngine, Command, DeleteTarget, OperationReport
from safe_backup.errors import NotFoundError, OperationIOError
from safe_backup.paths import ResolvedPath
from safe_backup.platform import supports_directory_fsync

logger = logging.getLogger("safe_backup.engine.local")

COPY_BUFFER_SIZE = 64 * 1024
# Fixed and short, so the temp name fits wherever the destination name does.
TEMP_PREFIX = ".safe-backup-"


def _fsync_directory(directory: Path) -> None:
    """Flush a rename in *directory* to disk where the platform allows it."""
    if not supports_directory_fsync():
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


class LocalEngine(BaseEngine):
    """Engine operating on files in the local filesystem."""

    def __init__(self, buffer_size: int = COPY_BUFFER_SIZE, fsync: bool = True):
        """
        Initialize the local engine.

        Args:
            buffer_size: Chunk size used when streaming file content
            fsync: Whether to fsync the temp file and directory before and
                after the rename
        """
        self.buffer_size = buffer_size
        self.fsync = fsync

    def _require_file(self, path: Path) -> os.stat_result:
        try:
            st = os.stat(path)
        except FileNotFoundError:
            raise NotFoundError(path) from None
        except OSError as e:
            raise OperationIOError(f"cannot stat {path.name}: {e.strerror}", path)
        if not stat.S_ISREG(st.st_mode):
            raise OperationIOError(f"{path.name} is not a regular file", path)
        return st

    def _atomic_copy(self, source: Path, destination: Path) -> int:
        """
        Copy *source* onto *destination* through a temp file and a rename.

        Returns:
            Number of bytes copied
        """
        source_stat = self._require_file(source)
        directory = destination.parent

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=TEMP_PREFIX, suffix=".tmp", dir=directory
            )
        except OSError as e:
            raise OperationIOError(
                f"cannot create temporary file in {directory}: {e.strerror}",
                destination,
            )

        tmp_path = Path(tmp_name)
        logger.debug(f"Copying {source} -> {destination} via {tmp_path}")
        try:
            with open(fd, "wb") as out, open(source, "rb") as src:
                shutil.copyfileobj(src, out, self.buffer_size)
                out.flush()
                if self.fsync:
                    os.fsync(out.fileno())
                copied = out.tell()
            os.chmod(tmp_path, stat.S_IMODE(source_stat.st_mode))
            os.replace(tmp_path, destination)
        except FileNotFoundError:
            # The source vanished between the stat and the open.
            self._discard(tmp_path)
            raise NotFoundError(source) from None
        except OSError as e:
            self._discard(tmp_path)
            raise OperationIOError(
                f"copying {source.name} to {destination.name} failed: {e}",
                destination,
            ) from e

        if self.fsync:
            try:
                _fsync_directory(directory)
            except OSError as e:
                logger.warning(f"Could not fsync directory {directory}: {e}")
        return copied

    def _discard(self, tmp_path: Path) -> None:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove temporary file {tmp_path}: {e}")

    def backup(self, path: ResolvedPath) -> OperationReport:
        """Write a complete copy of the original to its ``.bak`` file."""
        copied = self._atomic_copy(path.path, path.backup_path)
        logger.info(f"Backed up {path.path} -> {path.backup_path} ({copied} bytes)")
        return OperationReport(
            command=Command.BACKUP,
            source=path.path,
            destination=path.backup_path,
            bytes_copied=copied,
        )

    def restore(self, path: ResolvedPath) -> OperationReport:
        """Copy the ``.bak`` file back over the original, keeping the backup."""
        copied = self._atomic_copy(path.backup_path, path.path)
        logger.info(f"Restored {path.path} from {path.backup_path} ({copied} bytes)")
        return OperationReport(
            command=Command.RESTORE,
            source=path.backup_path,
            destination=path.path,
            bytes_copied=copied,
        )

    def delete(
        self, path: ResolvedPath, target: DeleteTarget = DeleteTarget.ORIGINAL
    ) -> OperationReport:
        """Remove the original or the backup, never both.

        A symlinked original is unlinked itself; the file it points at stays.
        """
        victim = (
            path.entry_path if target is DeleteTarget.ORIGINAL else path.backup_path
        )
        try:
            os.remove(victim)
        except FileNotFoundError:
            raise NotFoundError(victim) from None
        except IsADirectoryError:
            raise OperationIOError(f"{victim.name} is not a regular file", victim)
        except OSError as e:
            raise OperationIOError(
                f"deleting {victim.name} failed: {e.strerror}", victim
            ) from e
        logger.info(f"Deleted {victim}")
        return OperationReport(command=Command.DELETE, source=victim)
