"""Terminal output for the CLI: generated source and tables on stdout,
diagnostics on stderr.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- data only: module source printed by ``generate --stdout``
  and the ``inspect`` listings. Safe to redirect into a ``.py`` file or pipe
  into ``jq``.
* **stderr** -- progress and diagnostics: loaded schema, written and
  unchanged files, errors, and (with ``--verbose``) the trace of the
  synthesis pass.
* Rich formatting only when stdout is a terminal; ``NO_COLOR``,
  ``TERM=dumb`` and ``--no-color`` turn colour off.

:class:`OutputManager` holds the settings chosen in
:func:`~rediscodegen.app.main_callback`. The generator reports through the
module-level functions (:func:`debug`, :func:`info`, ...) so it never has to
carry a manager around.
"""

from __future__ import annotations

import enum
import json
import os
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, enum.Enum):
    """How stdout data is rendered.

    ``AUTO`` becomes ``RICH`` on an interactive, colour-capable terminal and
    ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes data to stdout and diagnostics to stderr.

    Args:
        format: Rendering for tables. ``AUTO`` is resolved immediately.
        no_color: Never emit colour or markup.
        quiet: Drop ``info``, ``success`` and ``suggest`` messages.
        verbose: Show ``debug`` messages.
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
            rich = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # --- stdout ---

    def print_source(self, source: str) -> None:
        """Write generated module source to stdout exactly as given.

        Source contains ``[`` and ``]`` (``Optional[tokens.Db]``), so it
        bypasses Rich entirely. A final newline is added when missing.
        """
        sys.stdout.write(source if source.endswith("\n") else source + "\n")
        sys.stdout.flush()

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print a listing in the active format.

        JSON mode prints an array of objects keyed by header; plain mode
        prints tab-separated lines with the header first; Rich mode prints
        a titled table.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_source(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            self.print_source("\n".join("\t".join(line) for line in [headers, *rows]))
            return

        table = Table(title=title, header_style="bold cyan")
        for index, header in enumerate(headers):
            table.add_column(header, no_wrap=index == 0)
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self._stdout.print(table)

    # --- stderr ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, escape(message))

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, f"[green]{escape(message)}[/green]")

    def suggest(self, message: str) -> None:
        """Print a next step (``→ message``). Suppressed by ``--quiet``."""
        if not self._quiet:
            text = f"→ {message}"
            self._diagnostic(text, f"[dim]{escape(text)}[/dim]")

    def warning(self, message: str) -> None:
        """Print a warning. Shown even with ``--quiet``."""
        self._diagnostic(f"Warning: {message}", f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print an error. Always shown."""
        self._diagnostic(f"Error: {message}", f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        """Print a ``[debug]`` trace line when ``--verbose`` is set."""
        if self._verbose:
            self._diagnostic(f"[debug] {message}", f"[dim]\\[debug] {escape(message)}[/dim]")

    def _diagnostic(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` set to anything, or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ---------------------------------------------------------------------------
# Global instance
# ---------------------------------------------------------------------------

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating an ``AUTO`` one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (tests use this between runs)."""
    global _output
    _output = None


def print_source(source: str) -> None:
    get_output().print_source(source)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
