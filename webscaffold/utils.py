"""Shared utility functions for webscaffold.

Provides async command execution, npm-safe name handling, and Rich-based
console reporting.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
) -> tuple[int, str, str]:
    """Run a command asynchronously and capture its output.

    Args:
        cmd: Executable followed by its arguments. No shell is involved.
        cwd: Working directory for the child process. ``None`` inherits the
            current process working directory.
        timeout: Maximum wall-clock seconds before the process is killed.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A timed-out command
        reports a return code of ``-1``.

    Raises:
        OSError: If the executable cannot be started.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (
            -1,
            "",
            f"Command timed out after {timeout}s: {format_command(cmd)}",
        )

    stdout_str = stdout_bytes.decode("utf-8", errors="replace").strip()
    stderr_str = stderr_bytes.decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


def format_command(cmd: list[str]) -> str:
    """Return *cmd* as a single printable string."""
    return " ".join(cmd)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def package_name(value: str) -> str:
    """Convert a directory name to a valid npm package name.

    * Lowercases the input.
    * Replaces anything other than ``a-z``, ``0-9``, ``.``, ``_`` and ``-``
      with hyphens.
    * Collapses consecutive hyphens and strips leading dots, underscores
      and hyphens (npm rejects names starting with ``.`` or ``_``).

    Falls back to ``"web-project"`` when nothing usable remains.

    Examples::

        package_name("My Site") -> "my-site"
        package_name("_Draft.v2") -> "draft.v2"
    """
    result = re.sub(r"[^a-z0-9._-]", "-", value.strip().lower())
    result = re.sub(r"-+", "-", result)
    result = result.lstrip("._-").rstrip("-")
    return result or "web-project"


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)  -> "3.7s"
        format_duration(65.2) -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str) -> None:
    """Print a full-width rule announcing the project being scaffolded."""
    console.print()
    console.print(
        Rule(f"[bold bright_green] {escape(title)} [/bold bright_green]", style="bright_green")
    )
    console.print()


def print_step(message: str) -> None:
    """Print a dim progress line for an individual scaffold step."""
    console.print(f"  [dim]-[/dim] {escape(message)}")


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
