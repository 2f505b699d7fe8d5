"""Output formatting system with strict stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- primary data only (the profile table, the JSON outcome,
  the shell wrapper). This is what callers pipe and parse.
* **stderr** -- everything interactive or diagnostic (prompts, spinner,
  status, warnings, errors).
* **TTY detection** -- Rich formatting when stdout is an interactive
  terminal, plain text when piped to another process.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and the
  ``--no-color`` CLI flag.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding format preferences,
   Rich consoles, and quiet/verbose flags. Created once in
   :func:`~awslogin.app.main_callback` and installed via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`error`,
   :func:`debug`, etc.) that delegate to the global ``OutputManager``.

:func:`setup_logging` routes the package's :mod:`logging` records through a
:class:`rich.logging.RichHandler` on the same stderr console.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table


class OutputFormat(str, Enum):
    """Enumeration of supported output formats.

    ``AUTO`` resolves to ``RICH`` when stdout is an interactive TTY and colour
    is not disabled, or to ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Central manager for all CLI output with stdout/stderr discipline.

    Args:
        format: Desired output format. ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential informational messages on stderr.
        verbose: Enable debug-level messages on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def console(self) -> Console:
        """The stderr console used for prompts, spinners and log records."""
        return self._stderr

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    def print_json(self, data: Any) -> None:
        """Print *data* as indented JSON to stdout."""
        self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print tabular data to stdout in the active format.

        * **Rich mode** -- styled :class:`~rich.table.Table`.
        * **JSON mode** -- array of objects keyed by header names.
        * **Plain mode** -- tab-separated values, one row per line.
        """
        if self._format == OutputFormat.JSON:
            self.print_json([dict(zip(headers, row)) for row in rows])

        elif self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))

        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message to stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            if self._no_color:
                print(message, file=sys.stderr, flush=True)
            else:
                self._stderr.print(message, markup=False)

    def warning(self, message: str) -> None:
        """Print a yellow warning to stderr. NOT suppressed by ``--quiet``."""
        if self._no_color:
            print(f"Warning: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print("[yellow]Warning:[/yellow]", end=" ")
            self._stderr.print(message, markup=False)

    def error(self, message: str) -> None:
        """Print a bold-red error to stderr. Never suppressed."""
        if self._no_color:
            print(f"Error: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print("[bold red]Error:[/bold red]", end=" ")
            self._stderr.print(message, markup=False)

    def suggest(self, message: str) -> None:
        """Print a dimmed next-step suggestion to stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            formatted = f"→ {message}"
            if self._no_color:
                print(formatted, file=sys.stderr, flush=True)
            else:
                self._stderr.print(formatted, style="dim", markup=False)

    def debug(self, message: str) -> None:
        """Print a debug message to stderr. Only shown when ``--verbose`` is active."""
        if self._verbose:
            if self._no_color:
                print(f"[debug] {message}", file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[debug] {message}", style="dim", markup=False)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Check if color should be disabled per clig.dev.

    Returns True when NO_COLOR env var is set (any value) or TERM=dumb.
    """
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Attach a :class:`~rich.logging.RichHandler` to the ``awslogin`` logger.

    ``--verbose`` logs at DEBUG, otherwise only warnings are shown.
    Calling this again replaces the previously installed handler.
    """
    logger = logging.getLogger("awslogin")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or get_output().console,
        show_time=False,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def print_data(text: str) -> None:
    """Print raw data to stdout via the global OutputManager."""
    get_output().print_data(text)


def print_json(data: Any) -> None:
    """Print JSON to stdout via the global OutputManager."""
    get_output().print_json(data)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    """Print tabular data to stdout via the global :class:`OutputManager`."""
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    """Print info message to stderr via the global OutputManager."""
    get_output().info(message)


def error(message: str) -> None:
    """Print error to stderr via the global OutputManager."""
    get_output().error(message)


def warning(message: str) -> None:
    """Print warning to stderr via the global OutputManager."""
    get_output().warning(message)


def suggest(message: str) -> None:
    """Print next-step suggestion to stderr via the global OutputManager."""
    get_output().suggest(message)


def debug(message: str) -> None:
    """Print debug message to stderr via the global OutputManager."""
    get_output().debug(message)
