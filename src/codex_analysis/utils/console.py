"""Rich console helpers for CLI output.

Messages often carry CLI output or file paths, so they are escaped before
being wrapped in markup.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

console = Console()
err_console = Console(stderr=True)


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {escape(message)}")


def print_error(message: str) -> None:
    err_console.print(f"[red]✗[/red] {escape(message)}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {escape(message)}")


def print_info(message: str) -> None:
    console.print(f"[cyan]ℹ[/cyan] {escape(message)}")


def print_header(title: str) -> None:
    console.print(f"\n[bold]{escape(title)}[/bold]")


def print_panel(content: str, title: str | None = None, style: str = "cyan") -> None:
    console.print(Panel(content, title=title, border_style=style))
