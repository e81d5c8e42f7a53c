"""
Tests for the command line interface.

"The command line is where the real work happens." — schema.cx
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from ghbackup import __version__
from ghbackup import config as config_module
from ghbackup.cli import app, backup_once
from ghbackup.errors import GitHubAPIError
from ghbackup.lock import RunLock
from ghbackup.models import Config, MirrorSummary

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from the caller's environment and config file."""
    for name in (
        "GITHUB_SECRET",
        "GITHUB_TOKEN",
        "BACKUP_FOLDER",
        "INTERVAL",
        "GITHUB_HOST",
        "GHBACKUP_LOCK_FILE",
        "GHBACKUP_CONFIG",
        "GHBACKUP_COMMAND_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_FILE", tmp_path / "absent.yaml")


def test_version() -> None:
    """Test --version prints the version."""
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


@patch("ghbackup.cli.MirrorOrchestrator")
def test_run_without_token_fails(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test a missing token exits 1 before anything runs."""
    backup_folder = tmp_path / "mirrors"

    result = runner.invoke(app, ["run", "--backup-folder", str(backup_folder)])

    assert result.exit_code == 1
    assert "GITHUB_SECRET" in result.output
    mock_orchestrator.assert_not_called()
    assert not backup_folder.exists()


@patch("ghbackup.cli.MirrorOrchestrator")
def test_run_success(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test a normal run exits 0 and passes the configuration through."""
    mock_orchestrator.return_value.run.return_value = MirrorSummary()

    result = runner.invoke(
        app,
        ["run", "--backup-folder", str(tmp_path)],
        env={"GITHUB_SECRET": "abc"},
    )

    assert result.exit_code == 0
    config = mock_orchestrator.call_args[0][0]
    assert config.token == "abc"
    assert config.backup_folder == tmp_path
    assert config.dry_run is False


@patch("ghbackup.cli.MirrorOrchestrator")
def test_run_accepts_github_token_fallback(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test GITHUB_TOKEN is used when GITHUB_SECRET is unset."""
    mock_orchestrator.return_value.run.return_value = MirrorSummary()

    result = runner.invoke(app, ["run", "-d", str(tmp_path)], env={"GITHUB_TOKEN": "xyz"})

    assert result.exit_code == 0
    assert mock_orchestrator.call_args[0][0].token == "xyz"


@patch("ghbackup.cli.MirrorOrchestrator")
def test_run_fatal_error_exits_1(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test a run-wide failure exits 1 with its message."""
    mock_orchestrator.return_value.run.side_effect = GitHubAPIError("Error getting authenticated user: bad")

    result = runner.invoke(app, ["run", "-d", str(tmp_path), "--token", "abc"])

    assert result.exit_code == 1
    assert "Error getting authenticated user" in result.output


@patch("ghbackup.cli.MirrorOrchestrator")
def test_run_with_repository_failures_exits_0(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test per-repository failures do not change the exit code."""
    mock_orchestrator.return_value.run.return_value = MirrorSummary(total=2, failed=2)

    result = runner.invoke(app, ["run", "-d", str(tmp_path), "--token", "abc"])

    assert result.exit_code == 0


@patch("ghbackup.cli.MirrorOrchestrator")
def test_run_skipped_while_locked(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test a run is skipped, successfully, if another holds the lock."""
    with RunLock(tmp_path / ".ghbackup.lock"):
        result = runner.invoke(app, ["run", "-d", str(tmp_path), "--token", "abc"])

    assert result.exit_code == 0
    assert "skipping" in result.output
    mock_orchestrator.assert_not_called()


@patch("ghbackup.cli.MirrorOrchestrator")
def test_run_blank_backup_folder_uses_default(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test an empty --backup-folder falls back to /ghbackup, not the current directory."""
    mock_orchestrator.return_value.run.return_value = MirrorSummary()

    result = runner.invoke(
        app,
        ["run", "--token", "abc", "--backup-folder", "", "--lock-file", str(tmp_path / "run.lock")],
    )

    assert result.exit_code == 0
    assert mock_orchestrator.call_args[0][0].backup_folder == Path("/ghbackup")


@patch("ghbackup.cli.MirrorOrchestrator")
def test_run_blank_backup_folder_from_environment(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test a blank BACKUP_FOLDER behaves like an unset one."""
    mock_orchestrator.return_value.run.return_value = MirrorSummary()

    result = runner.invoke(
        app,
        ["run", "--token", "abc", "--lock-file", str(tmp_path / "run.lock")],
        env={"BACKUP_FOLDER": ""},
    )

    assert result.exit_code == 0
    assert mock_orchestrator.call_args[0][0].backup_folder == Path("/ghbackup")


@patch("ghbackup.cli.MirrorOrchestrator")
def test_dry_run_writes_nothing(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test a dry run neither creates the backup folder nor takes the lock."""
    mock_orchestrator.return_value.run.return_value = MirrorSummary()
    backup_folder = tmp_path / "mirrors"

    result = runner.invoke(app, ["run", "--token", "abc", "-d", str(backup_folder), "--dry-run"])

    assert result.exit_code == 0
    assert mock_orchestrator.call_args[0][0].dry_run is True
    assert not backup_folder.exists()


@patch("ghbackup.cli.MirrorOrchestrator")
def test_dry_run_ignores_held_lock(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test a dry run still previews while a real run holds the lock."""
    mock_orchestrator.return_value.run.return_value = MirrorSummary()

    with RunLock(tmp_path / ".ghbackup.lock"):
        result = runner.invoke(app, ["run", "-d", str(tmp_path), "--token", "abc", "--dry-run"])

    assert result.exit_code == 0
    mock_orchestrator.assert_called_once()


def test_run_bad_config_file(tmp_path: Path) -> None:
    """Test an unreadable config file exits 1."""
    result = runner.invoke(
        app, ["run", "--token", "abc", "--config", str(tmp_path / "missing.yaml")]
    )

    assert result.exit_code == 1
    assert "Cannot read config file" in result.output


@patch("ghbackup.cli.MirrorOrchestrator")
def test_backup_once_releases_lock(mock_orchestrator: MagicMock, tmp_path: Path) -> None:
    """Test the lock is free again after a run."""
    mock_orchestrator.return_value.run.return_value = MirrorSummary()
    config = Config(token="abc", backup_folder=tmp_path)

    assert backup_once(config) is True
    with RunLock(config.lock_path) as lock:
        assert lock.locked is True


@patch("ghbackup.cli.BackupScheduler")
def test_daemon_uses_interval_from_environment(mock_scheduler: MagicMock, tmp_path: Path) -> None:
    """Test daemon schedules with INTERVAL seconds."""
    result = runner.invoke(
        app,
        ["daemon", "-d", str(tmp_path)],
        env={"GITHUB_SECRET": "abc", "INTERVAL": "60"},
    )

    assert result.exit_code == 0
    args, kwargs = mock_scheduler.call_args
    assert args[0] == 60
    assert kwargs["run_immediately"] is True
    mock_scheduler.return_value.run.assert_called_once_with()


@patch("ghbackup.cli.BackupScheduler")
def test_daemon_wait_first(mock_scheduler: MagicMock, tmp_path: Path) -> None:
    """Test --wait-first delays the first run."""
    result = runner.invoke(app, ["daemon", "-d", str(tmp_path), "--token", "abc", "--wait-first"])

    assert result.exit_code == 0
    assert mock_scheduler.call_args[0][0] == 3600
    assert mock_scheduler.call_args[1]["run_immediately"] is False


@patch("ghbackup.cli.BackupScheduler")
def test_daemon_without_token_fails(mock_scheduler: MagicMock) -> None:
    """Test the daemon refuses to start without a token."""
    result = runner.invoke(app, ["daemon"])

    assert result.exit_code == 1
    mock_scheduler.assert_not_called()
