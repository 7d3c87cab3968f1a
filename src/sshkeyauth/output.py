"""Terminal output for the sshkeyauth CLI.

Two streams are kept apart:

* **stdout** carries the ``authenticators`` listing, rendered as a Rich
  table on a terminal, tab-separated lines when piped, or JSON records
  with ``--json``.
* **stderr** carries everything else: the outcome of ``check``, errors,
  ``--verbose`` traces, and log records from the ``sshkeyauth`` loggers.

Colour is disabled by ``--no-color``, ``NO_COLOR`` (any value), or
``TERM=dumb``; in that case stderr lines are written with plain ``print``
and log records go through a plain :class:`logging.StreamHandler`.

The CLI installs one :class:`OutputManager` per invocation with
:func:`set_output`; commands use the module-level helpers.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

_LOGGER_NAME = "sshkeyauth"


class OutputFormat(str, Enum):
    """How the ``authenticators`` listing is rendered on stdout."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when ``NO_COLOR`` is set or ``TERM`` is ``dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    if _is_tty() and not no_color:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


class OutputManager:
    """Per-invocation output settings and the Rich consoles bound to them.

    Args:
        format: Rendering of stdout listings. ``AUTO`` picks ``RICH`` on an
            interactive, colour-capable terminal and ``PLAIN`` otherwise.
        no_color: Disable colour and Rich markup.
        quiet: Drop success and informational lines from stderr.
        verbose: Show debug lines on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._format = _resolve_format(format, self._no_color)
        self._quiet = quiet
        self._verbose = verbose
        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def no_color(self) -> bool:
        return self._no_color

    @property
    def stderr_console(self) -> Console:
        """Console that :func:`configure_logging` hands to :class:`RichHandler`."""
        return self._stderr

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write *rows* to stdout in the resolved format.

        JSON output is a list of objects keyed by *headers*, so scripts can
        read ``sshkeyauth --json authenticators`` without knowing column
        positions. *title* is only shown by the Rich renderer.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            sys.stdout.write(json.dumps(records, indent=2) + "\n")
            sys.stdout.flush()
            return
        if self._format == OutputFormat.PLAIN:
            lines = ["\t".join(headers)] + ["\t".join(row) for row in rows]
            sys.stdout.write("\n".join(lines) + "\n")
            sys.stdout.flush()
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    def _emit(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)

    def info(self, message: str) -> None:
        if not self._quiet:
            self._emit(message, message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._emit(message, f"[green]{message}[/green]")

    def error(self, message: str) -> None:
        """Errors are shown even with ``--quiet``."""
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._emit(f"[debug] {message}", f"[dim]\\[debug] {message}[/dim]")


def configure_logging(level: str | int, output: Optional[OutputManager] = None) -> None:
    """Route ``sshkeyauth`` log records to stderr at *level*.

    A handler installed by an earlier call is replaced; handlers added by
    the embedding application are left alone.

    Args:
        level: A :mod:`logging` level name or number.
        output: Supplies the stderr console and colour setting. Defaults to
            the global instance.
    """
    output = output or get_output()
    package_logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_sshkeyauth", False):
            package_logger.removeHandler(handler)

    if output.no_color:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    else:
        handler = RichHandler(console=output.stderr_console, show_path=False)
    handler._sshkeyauth = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)
    package_logger.setLevel(level)


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the installed instance. Used by the test suite between CLI runs."""
    global _output
    _output = None


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
