"""
Platform detection helpers for SafeBackup.

Centralizes Windows vs POSIX differences so the engine can call simple
functions instead of scattering ``sys.platform`` checks.
"""

import sys


def is_windows() -> bool:
    """Return True when running on Windows."""
    return sys.platform.startswith("win")


def supports_directory_fsync() -> bool:
    """Return True when a directory can be opened and fsync'd.

    Windows cannot open a directory as a file descriptor, so a rename there
    is made durable by the filesystem alone.
    """
    return not is_windows()
