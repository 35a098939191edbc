"""Console output helpers shared by all tool CLIs."""

import functools
import sys
from typing import Any, Callable, Optional

import click
from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[cyan]{message}[/cyan]")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]{message}[/bold green]")


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[bold red]{message}[/bold red]")


def create_table(title: Optional[str] = None) -> Table:
    """
    Create a table with the common look used by all tools.

    Args:
        title: Optional table title

    Returns:
        Empty rich Table
    """
    return Table(title=title, show_header=True, header_style="bold magenta", show_lines=False)


def print_table(table: Table) -> None:
    """Print a rich table."""
    console.print(table)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorate a click command so unexpected errors end with a clean message.

    click's own exceptions (usage errors, Exit) pass through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (click.exceptions.ClickException, click.exceptions.Exit, click.exceptions.Abort):
            raise
        except KeyboardInterrupt:
            error("Interrupted")
            sys.exit(130)
        except Exception as e:
            error(f"Error: {e}")
            sys.exit(1)

    return wrapper
