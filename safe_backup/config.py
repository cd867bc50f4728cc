"""
Configuration file support for SafeBackup.

Loads settings from ``~/.config/safe-backup/config.yaml`` (or
``$XDG_CONFIG_HOME/safe-backup/config.yaml``) and exposes them as a typed
dataclass that the CLI can merge with command-line flags and environment
variables.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from safe_backup.oplog import LogFormat

logger = logging.getLogger("safe_backup.config")

DEFAULT_LOG_FILE = "logfile.txt"


def default_config_path() -> Path:
    """Return the default configuration file path.

    Uses ``$XDG_CONFIG_HOME/safe-backup/config.yaml`` when set, otherwise
    falls back to ``~/.config/safe-backup/config.yaml``.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "safe-backup" / "config.yaml"
    return Path.home() / ".config" / "safe-backup" / "config.yaml"


def read_yaml_mapping(path: Path) -> Dict[str, Any]:
    """Parse *path* as YAML, returning ``{}`` for empty or unreadable files.

    Errors are logged, not raised.
    """
    try:
        text = path.read_text(encoding="utf-8")
        data = yaml.safe_load(text)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config from {path}: {e}")
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.error(f"Config file {path} does not hold a mapping")
        return {}
    return data


@dataclass
class SafeBackupConfig:
    """Top-level configuration loaded from the YAML file."""

    base_dir: Optional[Path] = None
    log_file: Optional[str] = None
    log_format: LogFormat = LogFormat.TEXT
    confirm_delete: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SafeBackupConfig":
        """Construct a ``SafeBackupConfig`` from a parsed YAML dictionary."""
        if not isinstance(data, dict):
            return cls()

        base_dir = data.get("base_dir")
        log_format = LogFormat.TEXT
        if "log_format" in data:
            try:
                log_format = LogFormat(str(data["log_format"]).lower())
            except ValueError:
                logger.warning(
                    "Unknown log_format %r, using text", data["log_format"]
                )

        confirm = data.get("confirm_delete", True)
        if not isinstance(confirm, bool):
            logger.warning("Ignoring non-boolean confirm_delete: %r", confirm)
            confirm = True

        return cls(
            base_dir=Path(base_dir).expanduser() if base_dir else None,
            log_file=data.get("log_file"),
            log_format=log_format,
            confirm_delete=confirm,
        )

    @classmethod
    def from_file(cls, path: Path) -> "SafeBackupConfig":
        """Build a config from the YAML mapping in *path*."""
        return cls.from_dict(read_yaml_mapping(path))

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "SafeBackupConfig":
        """Load *config_path*, or the default file; defaults if it is absent."""
        path = config_path or default_config_path()
        if path.is_file():
            return cls.from_file(path)
        logger.debug(f"No config file at {path}, using defaults")
        return cls()

    def resolve_base_dir(self, override: Optional[str] = None) -> Path:
        """Pick the base directory: *override*, then env, then file, then cwd."""
        chosen = override or os.environ.get("SAFE_BACKUP_BASE_DIR")
        if chosen:
            return Path(chosen).expanduser()
        if self.base_dir is not None:
            return self.base_dir
        return Path.cwd()

    def resolve_log_file(
        self, base_dir: Path, override: Optional[str] = None
    ) -> Optional[Path]:
        """Pick the log file; relative paths are taken from *base_dir*.

        An empty string from any source disables the file sink.
        """
        chosen = override
        if chosen is None:
            chosen = os.environ.get("SAFE_BACKUP_LOG_FILE")
        if chosen is None:
            chosen = self.log_file
        if chosen is None:
            chosen = DEFAULT_LOG_FILE
        if not chosen:
            return None
        path = Path(chosen).expanduser()
        if not path.is_absolute():
            path = base_dir / path
        return path
