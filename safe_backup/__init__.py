"""
SafeBackup - back up, restore, or delete one file at a time, safely.

Every filename is validated and contained to a base directory before any
filesystem access, and every write goes through a temp file and a rename.
"""

from importlib.metadata import version as _version

__version__ = _version("safe-backup")
