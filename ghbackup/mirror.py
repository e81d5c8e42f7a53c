"""
Repository mirroring orchestration.

"One repo at a time. That's how you build an empire." — schema.cx
"""

import subprocess
from pathlib import Path

from rich.markup import escape

from .errors import BackupError, ConfigError, GitHubAPIError
from .filesystem import FileSystem, LocalFileSystem
from .git_utils import CommandRunner, GitOperations, SubprocessRunner
from .github_api import GitHubAPIClient
from .models import Config, MirrorResult, MirrorSummary, Repository
from .rich_utils import (
    console,
    create_summary_table,
    format_action,
    format_repo_name,
    print_error,
    print_info,
    print_success,
    print_warning,
)


def check_credentials(config: Config) -> None:
    """Raise ConfigError unless a token is configured."""
    if not config.token:
        raise ConfigError("GITHUB_SECRET environment variable is not set; a GitHub token is required.")


class MirrorOrchestrator:
    """
    Lists every repository the token can see and mirrors each one.

    Run-wide setup failures raise ``BackupError``. Anything that goes wrong
    for a single repository is recorded in its ``MirrorResult`` and the run
    moves on to the next one.
    """

    def __init__(
        self,
        config: Config,
        api_client: GitHubAPIClient | None = None,
        runner: CommandRunner | None = None,
        fs: FileSystem | None = None,
    ) -> None:
        """Initialize the mirror orchestrator."""
        self.config = config
        self.api_client = api_client
        self.runner = runner or SubprocessRunner(timeout=config.command_timeout)
        self.fs = fs or LocalFileSystem()
        self.git_ops = GitOperations(self.runner, secret=config.token)

    def run(self) -> MirrorSummary:
        """
        Run one backup pass.

        Raises:
            ConfigError: if no token is configured
            BackupError: if the backup folder or global git config cannot be set up
            GitHubAPIError: if the user lookup or the repository listing fails
        """
        check_credentials(self.config)

        root = self.config.backup_folder
        print_info(f"Starting GitHub backup into {root}")

        if not self.config.dry_run:
            try:
                self.fs.makedirs(root)
            except OSError as e:
                raise BackupError(f"Error creating backup folder {root}: {e}") from e

            try:
                self.git_ops.mark_all_directories_safe()
            except subprocess.CalledProcessError as e:
                output = e.output.strip() if isinstance(e.output, str) else ""
                raise BackupError(f"Error setting global git config: {e}\nOutput: {output}") from e
            except (subprocess.SubprocessError, OSError) as e:
                raise BackupError(f"Error setting global git config: {e}") from e

        username, repos = self._discover()
        console.print(f"[green]✓ Found {len(repos)} repositories to back up[/green]\n")

        if self.config.dry_run:
            console.print("[yellow]DRY RUN MODE - No git commands will be run[/yellow]\n")

        summary = MirrorSummary()
        for repo in repos:
            if self.config.dry_run:
                result = self._dry_run_repo(repo)
            else:
                result = self._mirror_single_repo(repo, username)
            summary.add_result(result)
            self._print_result(result)

        self._print_summary(summary)
        return summary

    def _discover(self) -> tuple[str, list[Repository]]:
        """Look up the authenticated login and list its repositories."""
        owns_client = self.api_client is None
        client = self.api_client or GitHubAPIClient(self.config)

        try:
            try:
                username = client.get_authenticated_user()
            except GitHubAPIError as e:
                raise GitHubAPIError(f"Error getting authenticated user: {e}") from e

            print_info(f"Fetching repositories for {username}...")
            try:
                repos = client.list_repositories()
            except GitHubAPIError as e:
                raise GitHubAPIError(f"Error listing repositories: {e}") from e
        finally:
            if owns_client:
                client.close()

        return username, repos

    def _dry_run_repo(self, repo: Repository) -> MirrorResult:
        """Report what would happen to a repository without touching it."""
        dest_path = repo.backup_path(self.config.backup_folder)
        try:
            self.fs.stat(dest_path)
            action = "update"
        except FileNotFoundError:
            action = "clone"
        except OSError as e:
            return MirrorResult(
                repo=repo, success=False, action="failed", error=f"Error checking backup status: {e}"
            )

        console.print(f"{format_action(action)} {escape(repo.full_name)} -> {escape(str(dest_path))}")
        return MirrorResult(repo=repo, success=True, action="skipped", message=f"Dry run: would {action}")

    def _mirror_single_repo(self, repo: Repository, username: str) -> MirrorResult:
        """Clone or update one repository, never raising."""
        dest_path = repo.backup_path(self.config.backup_folder)
        console.print(f"\nBacking up repository: {format_repo_name(repo.full_name)}")

        try:
            try:
                self.fs.stat(dest_path)
            except FileNotFoundError:
                print_info(f"Backup for {repo.full_name} does not exist, cloning...")
                return self._clone(repo, username, dest_path)
            except OSError as e:
                return MirrorResult(
                    repo=repo,
                    success=False,
                    action="failed",
                    error=self.git_ops.redact(f"Error checking backup status: {e}"),
                )

            print_info(f"Backup for {repo.full_name} exists, updating...")
            return self._update(repo, username, dest_path)

        except Exception as e:
            return MirrorResult(repo=repo, success=False, action="failed", error=self.git_ops.redact(str(e)))

    def _clone(self, repo: Repository, username: str, dest_path: Path) -> MirrorResult:
        host = self.config.github_host
        auth_url = repo.authenticated_url(username, self.config.token, host)

        success, message = self.git_ops.clone_mirror(auth_url, dest_path)
        warnings: list[str] = []
        if not success:
            # A killed clone can leave a partial mirror with the token in its config
            if self._exists(dest_path):
                self._deauthenticate(repo, dest_path, warnings)
            return MirrorResult(repo=repo, success=False, action="failed", error=message, warnings=warnings)

        try:
            self._fetch_lfs(repo, dest_path, warnings)
        finally:
            self._deauthenticate(repo, dest_path, warnings)

        return MirrorResult(repo=repo, success=True, action="cloned", message=message, warnings=warnings)

    def _update(self, repo: Repository, username: str, dest_path: Path) -> MirrorResult:
        host = self.config.github_host
        auth_url = repo.authenticated_url(username, self.config.token, host)

        success, message = self.git_ops.set_remote_url(dest_path, auth_url)
        if not success:
            return MirrorResult(repo=repo, success=False, action="failed", error=message)

        warnings: list[str] = []
        try:
            # A failed update still gets its LFS fetch and de-authentication
            update_ok, update_message = self.git_ops.update_mirror(dest_path)
            self._fetch_lfs(repo, dest_path, warnings)
        finally:
            self._deauthenticate(repo, dest_path, warnings)

        if not update_ok:
            return MirrorResult(
                repo=repo, success=False, action="failed", error=update_message, warnings=warnings
            )
        return MirrorResult(
            repo=repo, success=True, action="updated", message=update_message, warnings=warnings
        )

    def _exists(self, path: Path) -> bool:
        try:
            self.fs.stat(path)
        except OSError:
            return False
        return True

    def _fetch_lfs(self, repo: Repository, dest_path: Path, warnings: list[str]) -> None:
        print_info(f"Fetching LFS objects for {repo.full_name}")
        success, message = self.git_ops.fetch_lfs(dest_path)
        if not success:
            print_warning(f"{repo.full_name}: {message}")
            warnings.append(message)

    def _deauthenticate(self, repo: Repository, dest_path: Path, warnings: list[str]) -> None:
        success, message = self.git_ops.set_remote_url(
            dest_path, repo.https_url(self.config.github_host)
        )
        if not success:
            print_warning(f"{repo.full_name}: {message}")
            warnings.append(message)

    def _print_result(self, result: MirrorResult) -> None:
        """Print the result of a mirror operation."""
        if result.success:
            if result.action == "skipped":
                return
            print_success(f"Finished backing up repository: {result.repo.full_name} ({result.action})")
        else:
            print_error(f"{result.repo.full_name}: {result.error}")

    def _print_summary(self, summary: MirrorSummary) -> None:
        """
        Print operation summary.

        "Numbers tell the story. Make sure it's a good one." — schema.cx
        """
        table = create_summary_table("Backup summary")
        table.add_column("Result")
        table.add_column("Count", justify="right")
        table.add_row("Total repositories", str(summary.total))
        table.add_row("[green]Cloned[/green]", str(summary.cloned))
        table.add_row("[blue]Updated[/blue]", str(summary.updated))
        table.add_row("[yellow]Skipped[/yellow]", str(summary.skipped))
        table.add_row("[red]Failed[/red]", str(summary.failed))
        console.print()
        console.print(table)

        if summary.warnings:
            console.print("\n[bold yellow]Warnings:[/bold yellow]")
            for warning in summary.warnings:
                console.print(f"  • {escape(warning)}")

        if summary.errors:
            console.print("\n[bold red]Errors:[/bold red]")
            for error in summary.errors:
                console.print(f"  • {escape(error)}")

        console.print()
        if summary.has_failures:
            print_warning(
                f"GitHub backup completed with failures: {summary.success_count} of "
                f"{summary.total} repositories succeeded."
            )
        else:
            print_success(f"GitHub backup completed: {summary.success_count} repositories succeeded.")
