"""
Rich logging utilities for the narration sync system.
"""

import os
from typing import Optional

from rich.console import Console
from rich.theme import Theme

# Custom theme for narration output
custom_theme = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "step": "blue bold",
        "highlight": "magenta",
        "debug": "dim",
    }
)

# Global console instance
console = Console(theme=custom_theme)


def _debug_enabled() -> bool:
    return os.environ.get("NARRATOR_DEBUG", "").lower() in ("1", "true", "yes")


def debug(message: str) -> None:
    """Print a debug message when NARRATOR_DEBUG is set."""
    if _debug_enabled():
        console.print(f"[debug]·[/debug] {message}", highlight=False)


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]✓[/success] {message}")


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"[error]✗[/error] {message}")


def step(message: str, step_num: Optional[int] = None, total: Optional[int] = None) -> None:
    """Print a step message."""
    if step_num and total:
        console.print(f"[step][{step_num}/{total}][/step] {message}")
    else:
        console.print(f"[step]→[/step] {message}")


def header(message: str) -> None:
    """Print a header message."""
    console.print()
    console.rule(f"[bold]{message}[/bold]")
    console.print()


def line(text: str, begin_ms: int) -> None:
    """Print a narrated line with its begin offset."""
    console.print(f"[highlight]>>>[/highlight] {text} [dim](start={begin_ms}ms)[/dim]")
