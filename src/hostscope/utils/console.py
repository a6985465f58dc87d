"""
hostscope Console Manager

Provides a shared Rich Console for operator-facing output. Status lines go
to the console; diagnostic detail goes to the log.

Usage:
    from hostscope.utils.console import get_console, print_success
    print_success("Report written")
    get_console().print("[info]plain rich markup[/info]")
"""

import threading
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

# Thread-safe singleton
_console: Optional[Console] = None
_lock = threading.Lock()

HOSTSCOPE_THEME = Theme({
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "red bold",
    "heading": "bold magenta",
    "highlight": "bold cyan",
    "dim": "dim white",
    "stage": "bold blue",
})


def get_console(force_terminal: bool = None,
                no_color: bool = None,
                width: int = None) -> Console:
    """
    Get the shared Console instance.

    Args:
        force_terminal: Force terminal mode (for testing)
        no_color: Disable color output
        width: Override console width

    Returns:
        The shared Console instance
    """
    global _console

    if _console is None:
        with _lock:
            if _console is None:
                _console = Console(
                    theme=HOSTSCOPE_THEME,
                    force_terminal=force_terminal,
                    no_color=no_color,
                    width=width,
                    highlight=False,
                    markup=True,
                )

    return _console


def reset_console():
    """Reset the shared console (useful for testing)."""
    global _console
    with _lock:
        _console = None


def _out() -> Console:
    return get_console()


# Convenience functions
def print_success(message: str):
    """Print a success message"""
    _out().print(f"[success]✓ {message}[/success]")


def print_error(message: str):
    """Print an error message"""
    _out().print(f"[error]✗ {message}[/error]")


def print_warning(message: str):
    """Print a warning message"""
    _out().print(f"[warning]⚠ {message}[/warning]")


def print_info(message: str):
    """Print an info message"""
    _out().print(f"[info]ℹ {message}[/info]")


def print_heading(message: str):
    """Print a heading"""
    _out().print(f"\n[heading]{message}[/heading]")
    _out().print("[dim]" + "─" * len(message) + "[/dim]")


def print_stage(stage: str, current: int, total: int):
    """Print a one-line progress marker such as ``[2/4] reliability``"""
    _out().print(f"[stage][{current}/{total}][/stage] {stage.capitalize()}")


def print_scores(performance):
    """Print the score summary of a PerformanceAnalysis"""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Score", style="cyan")
    table.add_column("Value", justify="right")

    labels = (
        ("Overall", performance.system_health_score),
        ("Stability", performance.stability_score),
        ("Performance", performance.performance_score),
        ("Memory", performance.memory_usage_score),
        ("Disk", performance.disk_health_score),
    )
    for label, value in labels:
        table.add_row(label, f"{value:.1f}")

    _out().print(table)
    _out().print(f"Grade: [{performance.health_color}]{performance.health_grade}[/]")
