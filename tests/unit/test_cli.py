"""
Tests for the CLI module.
"""

from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from safe_backup.cli import app


@pytest.fixture
def runner() -> CliRunner:
    """Fixture to create a CLI runner."""
    return CliRunner()


@pytest.fixture
def base(tmp_path: Path) -> Path:
    directory = tmp_path / "base"
    directory.mkdir()
    return directory


@pytest.fixture
def env(tmp_path: Path) -> Dict[str, Optional[str]]:
    """Keep the user's config file and environment out of the tests."""
    return {
        "XDG_CONFIG_HOME": str(tmp_path / "config"),
        "SAFE_BACKUP_BASE_DIR": None,
        "SAFE_BACKUP_LOG_FILE": None,
    }


def invoke(
    runner: CliRunner,
    env: Dict[str, Optional[str]],
    base: Path,
    args: List[str],
    input: Optional[str] = None,
):
    return runner.invoke(app, ["--base-dir", str(base)] + args, input=input, env=env)


def test_version(runner: CliRunner) -> None:
    """Test the version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "SafeBackup version" in result.output


def test_interactive_backup(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """Piping 'test1.txt' and 'backup' creates test1.txt.bak."""
    (base / "test1.txt").write_text("Test content\n")

    result = invoke(runner, env, base, [], input="test1.txt\nbackup\n")

    assert result.exit_code == 0, result.output
    assert "Your backup created: test1.txt.bak" in result.output
    assert (base / "test1.txt.bak").read_bytes() == b"Test content\n"


def test_interactive_traversal(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path, tmp_path: Path
) -> None:
    """A traversal filename is refused before the command prompt."""
    result = invoke(runner, env, base, [], input="../../etc/passwd\nbackup\n")

    assert result.exit_code == 1
    assert "Path traversal attempt" in result.output
    assert "Please enter your command" not in result.output
    assert not any(p.name.endswith(".bak") for p in tmp_path.rglob("*"))


def test_interactive_unknown_command(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """An unknown command exits non-zero."""
    (base / "a.txt").write_text("x")
    result = invoke(runner, env, base, [], input="a.txt\nshred\n")
    assert result.exit_code == 1
    assert "Unknown command: shred" in result.output


def test_interactive_delete_confirmed(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """Interactive delete asks first and removes the original on 'yes'."""
    (base / "a.txt").write_text("x")
    (base / "a.txt.bak").write_text("x")

    result = invoke(runner, env, base, [], input="a.txt\ndelete\nyes\n")

    assert result.exit_code == 0, result.output
    assert "Are you sure you want to delete a.txt?" in result.output
    assert "File deleted." in result.output
    assert not (base / "a.txt").exists()
    assert (base / "a.txt.bak").exists()


def test_interactive_delete_cancelled(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """Anything but 'yes' cancels the delete."""
    (base / "a.txt").write_text("x")

    result = invoke(runner, env, base, [], input="a.txt\ndelete\nno\n")

    assert result.exit_code == 0
    assert "Delete cancelled." in result.output
    assert (base / "a.txt").exists()
    assert "cancelled by user" in (base / "logfile.txt").read_text()


def test_restore_without_backup(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """restore with no .bak fails with exit 1 and changes nothing."""
    (base / "test2.txt").write_text("as is")

    result = invoke(runner, env, base, ["restore", "test2.txt"])

    assert result.exit_code == 1
    assert "File not found: test2.txt.bak" in result.output
    assert (base / "test2.txt").read_text() == "as is"
    assert not (base / "test2.txt.bak").exists()


def test_backup_then_restore(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """The subcommands round-trip a file's content."""
    original = base / "doc.txt"
    original.write_text("first")

    assert invoke(runner, env, base, ["backup", "doc.txt"]).exit_code == 0
    original.write_text("second")
    result = invoke(runner, env, base, ["restore", "doc.txt"])

    assert result.exit_code == 0
    assert "File restored from: doc.txt.bak" in result.output
    assert original.read_text() == "first"


def test_delete_backup_with_yes(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """delete --backup --yes removes only the backup without prompting."""
    (base / "f.txt").write_text("keep")
    (base / "f.txt.bak").write_text("old")

    result = invoke(runner, env, base, ["delete", "f.txt", "--backup", "--yes"])

    assert result.exit_code == 0
    assert "Are you sure" not in result.output
    assert not (base / "f.txt.bak").exists()
    assert (base / "f.txt").read_text() == "keep"


def test_delete_missing_does_not_prompt(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """A missing file is reported without asking for confirmation."""
    result = invoke(runner, env, base, ["delete", "ghost.txt"])
    assert result.exit_code == 1
    assert "Are you sure" not in result.output
    assert "File not found: ghost.txt" in result.output


def test_operation_log_written(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """Each run appends session and operation records to logfile.txt."""
    (base / "a.txt").write_text("abc")

    invoke(runner, env, base, ["backup", "a.txt"])
    invoke(runner, env, base, ["backup", "bad name"])

    lines = (base / "logfile.txt").read_text().splitlines()
    assert lines[0].endswith("SafeBackup session started")
    assert "backup" in lines[1] and lines[1].endswith("ok (3 bytes)")
    assert lines[2].endswith("SafeBackup session ended")
    assert "failed: Invalid filename" in lines[4]


def test_log_file_disabled(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """An empty --log-file keeps the base directory clean."""
    (base / "a.txt").write_text("abc")
    result = runner.invoke(
        app, ["--base-dir", str(base), "--log-file", "", "backup", "a.txt"], env=env
    )
    assert result.exit_code == 0
    assert sorted(p.name for p in base.iterdir()) == ["a.txt", "a.txt.bak"]


def test_config_file_base_dir(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path, tmp_path: Path
) -> None:
    """The base directory can come from the config file."""
    config = tmp_path / "custom.yaml"
    config.write_text(f'base_dir: "{base}"\nconfirm_delete: false\n')
    (base / "a.txt").write_text("x")

    result = runner.invoke(app, ["--config", str(config), "delete", "a.txt"], env=env)

    assert result.exit_code == 0
    assert not (base / "a.txt").exists()


def test_missing_base_dir(
    runner: CliRunner, env: Dict[str, Optional[str]], tmp_path: Path
) -> None:
    """A base directory that does not exist is an error."""
    result = invoke(runner, env, tmp_path / "nowhere", ["backup", "a.txt"])
    assert result.exit_code == 1
    assert "Base directory does not exist" in result.output


def test_errors_go_to_stderr(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """Error messages are printed on the stderr console, results on stdout."""
    (base / "a.txt").write_text("x")
    with patch("safe_backup.cli.err_console") as mock_err, patch(
        "safe_backup.cli.console"
    ) as mock_out:
        failed = invoke(runner, env, base, ["restore", "a.txt"])
        ok = invoke(runner, env, base, ["backup", "a.txt"])

    assert failed.exit_code == 1
    assert ok.exit_code == 0
    mock_err.print.assert_called_once()
    args, _ = mock_err.print.call_args
    assert "Error: File not found: a.txt.bak" in args[0]
    printed = [call.args[0] for call in mock_out.print.call_args_list]
    assert "Your backup created: a.txt.bak" in printed
    assert not any("Error:" in text for text in printed)


def test_delete_symlink_keeps_target(
    runner: CliRunner, env: Dict[str, Optional[str]], base: Path
) -> None:
    """delete on a symlinked name asks about and removes the link."""
    (base / "real.txt").write_text("keep")
    (base / "alias.txt").symlink_to(base / "real.txt")

    result = invoke(runner, env, base, ["delete", "alias.txt"], input="yes\n")

    assert result.exit_code == 0, result.output
    assert "delete alias.txt?" in result.output
    assert not (base / "alias.txt").is_symlink()
    assert (base / "real.txt").read_text() == "keep"
