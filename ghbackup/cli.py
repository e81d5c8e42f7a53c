"""
ghbackup CLI interface.

"The command line is where the real work happens. Everything else is just theater." — schema.cx
"""

from pathlib import Path

import typer
from dotenv import load_dotenv

from .config import load_config
from .errors import BackupError, ConfigError, LockHeldError
from .lock import RunLock
from .mirror import MirrorOrchestrator, check_credentials
from .models import Config
from .rich_utils import console, print_error, print_success, print_warning
from .scheduler import BackupScheduler

# Load environment variables from .env file if it exists
load_dotenv()

app = typer.Typer(
    name="ghbackup",
    help="Keep bare mirrors of every GitHub repository your token can see.",
    add_completion=False,
)

TOKEN_OPTION = typer.Option(
    None,
    "--token",
    "-t",
    help="GitHub Personal Access Token (prefer the GITHUB_SECRET env var)",
    envvar=["GITHUB_SECRET", "GITHUB_TOKEN"],
    show_envvar=False,
)
BACKUP_FOLDER_OPTION = typer.Option(
    None,
    "--backup-folder",
    "-d",
    help="Directory holding the mirrors (default: /ghbackup)",
    envvar="BACKUP_FOLDER",
)
GITHUB_HOST_OPTION = typer.Option(
    None,
    "--github-host",
    "-H",
    help="GitHub Enterprise hostname (e.g., github.mycompany.com)",
    envvar="GITHUB_HOST",
)
LOCK_FILE_OPTION = typer.Option(
    None,
    "--lock-file",
    help="Lock file preventing overlapping runs (default: <backup-folder>/.ghbackup.lock)",
    envvar="GHBACKUP_LOCK_FILE",
)
CONFIG_FILE_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="YAML settings file (default: ~/.config/ghbackup/config.yaml)",
    envvar="GHBACKUP_CONFIG",
)
TIMEOUT_OPTION = typer.Option(
    None,
    "--command-timeout",
    help="Abort a single git command after this many seconds (default: no limit)",
    envvar="GHBACKUP_COMMAND_TIMEOUT",
)
DRY_RUN_OPTION = typer.Option(
    False,
    "--dry-run",
    help="Preview clone/update decisions without running git",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from . import __version__

        console.print(f"ghbackup version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """
    Mirror every GitHub repository you can access, including LFS objects.
    """
    pass


def _build_config(**kwargs) -> Config:
    """Load configuration, exiting with status 1 on bad settings or a missing token."""
    try:
        config = load_config(**kwargs)
        check_credentials(config)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)
    return config


def backup_once(config: Config) -> bool:
    """
    Run a single locked backup pass.

    Returns False only for run-wide fatal errors. A run skipped because
    another one holds the lock counts as success. A dry run writes nothing,
    so it takes no lock.
    """
    if config.dry_run:
        try:
            MirrorOrchestrator(config).run()
        except BackupError as e:
            print_error(str(e))
            return False
        return True

    try:
        with RunLock(config.lock_path):
            MirrorOrchestrator(config).run()
    except LockHeldError as e:
        print_warning(f"{e}; skipping this run")
        return True
    except BackupError as e:
        print_error(str(e))
        return False
    except OSError as e:
        print_error(f"Cannot use lock file {config.lock_path}: {e}")
        return False
    return True


@app.command()
def run(
    token: str | None = TOKEN_OPTION,
    backup_folder: str | None = BACKUP_FOLDER_OPTION,
    github_host: str | None = GITHUB_HOST_OPTION,
    lock_file: str | None = LOCK_FILE_OPTION,
    config_file: Path | None = CONFIG_FILE_OPTION,
    command_timeout: int | None = TIMEOUT_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    """
    Back up all repositories once and exit.

    Example:
        ghbackup run
        ghbackup run --backup-folder ./mirrors
        ghbackup run --dry-run
    """
    config = _build_config(
        token=token,
        backup_folder=backup_folder,
        github_host=github_host,
        lock_file=lock_file,
        config_file=config_file,
        command_timeout=command_timeout,
        dry_run=dry_run,
    )

    if not backup_once(config):
        raise typer.Exit(1)


@app.command()
def daemon(
    token: str | None = TOKEN_OPTION,
    backup_folder: str | None = BACKUP_FOLDER_OPTION,
    interval: int | None = typer.Option(
        None,
        "--interval",
        "-i",
        help="Seconds between backup runs (default: 3600)",
        envvar="INTERVAL",
    ),
    wait_first: bool = typer.Option(
        False,
        "--wait-first",
        help="Wait one interval before the first run",
    ),
    github_host: str | None = GITHUB_HOST_OPTION,
    lock_file: str | None = LOCK_FILE_OPTION,
    config_file: Path | None = CONFIG_FILE_OPTION,
    command_timeout: int | None = TIMEOUT_OPTION,
) -> None:
    """
    Back up all repositories repeatedly, every INTERVAL seconds.

    "Backups you have to remember to run are backups you won't have." — schema.cx

    Example:
        ghbackup daemon --interval 86400
    """
    config = _build_config(
        token=token,
        backup_folder=backup_folder,
        interval=interval,
        github_host=github_host,
        lock_file=lock_file,
        config_file=config_file,
        command_timeout=command_timeout,
    )

    scheduler = BackupScheduler(
        config.interval,
        lambda: backup_once(config),
        run_immediately=not wait_first,
    )
    scheduler.run()
    print_success("Scheduler stopped")
