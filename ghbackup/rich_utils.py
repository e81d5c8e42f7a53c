"""
Rich formatting utilities for consistent terminal output.

"Beauty is in the eye of the beholder. But colors help." — schema.cx
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Centralized console instance
console = Console()


class Colors:
    """Consistent color scheme for the application."""

    SUCCESS = "green"
    ERROR = "red"
    WARNING = "yellow"
    INFO = "cyan"
    MUTED = "dim"
    REPO_NAME = "bold blue"


def print_success(message: str, prefix: str = "✓") -> None:
    """Print a success message in green."""
    console.print(f"[{Colors.SUCCESS}]{prefix} {escape(message)}[/{Colors.SUCCESS}]")


def print_error(message: str, prefix: str = "✗") -> None:
    """Print an error message in red."""
    console.print(f"[{Colors.ERROR}]{prefix} {escape(message)}[/{Colors.ERROR}]")


def print_warning(message: str, prefix: str = "⚠") -> None:
    """Print a warning message in yellow."""
    console.print(f"[{Colors.WARNING}]{prefix} {escape(message)}[/{Colors.WARNING}]")


def print_info(message: str, prefix: str = "→") -> None:
    """Print an info message in cyan."""
    console.print(f"[{Colors.INFO}]{prefix} {escape(message)}[/{Colors.INFO}]")


def print_muted(message: str) -> None:
    """Print a low-priority message."""
    console.print(f"[{Colors.MUTED}]{escape(message)}[/{Colors.MUTED}]")


def format_repo_name(full_name: str) -> str:
    """Format a repository name with consistent styling."""
    return f"[{Colors.REPO_NAME}]{escape(full_name)}[/{Colors.REPO_NAME}]"


def format_action(action: str, color: str | None = None) -> str:
    """Format an action word with appropriate color."""
    if color is None:
        action_lower = action.lower()
        if action_lower in ["clone", "cloned"]:
            color = Colors.SUCCESS
        elif action_lower in ["update", "updated"]:
            color = Colors.INFO
        elif action_lower in ["skip", "skipped"]:
            color = Colors.WARNING
        elif action_lower in ["fail", "failed"]:
            color = Colors.ERROR
        else:
            color = Colors.INFO

    return f"[{color}]{action.upper():8}[/{color}]"


def create_summary_table(title: str) -> Table:
    """Create a styled table for summary statistics."""
    table = Table(title=title, show_header=True, header_style="bold cyan", border_style="cyan")
    return table
