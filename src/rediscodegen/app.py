"""Typer application and console entry point for rediscodegen.

The root :data:`app` carries the global output flags and two sub-commands:
``generate`` (write the binding modules) and the ``inspect`` group
(read-only listings of what a schema produces).

:func:`main` is the ``rediscodegen`` console script. Sub-commands turn
:class:`~rediscodegen.exceptions.RedisCodegenError` into an exit code
themselves; :func:`main` is the last line for anything that escapes them.

See Also:
    :mod:`rediscodegen.exit_codes`: The exit code table.
    :mod:`rediscodegen.output`: The output manager configured here.
"""

from __future__ import annotations

import signal
import sys
import traceback
from typing import Any

import typer

from rediscodegen import __version__
from rediscodegen.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="rediscodegen",
    help="Generate Python client bindings from the Redis command schema.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Sub-commands
# ------------------------------------------------------------------ #

from rediscodegen.commands.generate import generate_command  # noqa: E402
from rediscodegen.commands.inspect import inspect_app  # noqa: E402

app.command("generate")(generate_command)
app.add_typer(inspect_app, name="inspect", help="Inspect what a schema generates.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"rediscodegen {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print inspect listings as JSON."),
    plain_output: bool = typer.Option(
        False, "--plain", help="Print inspect listings as tab-separated text."
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colour."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print warnings, errors, and data."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Trace type synthesis and skipped commands."
    ),
) -> None:
    """Install the output manager for this invocation.

    ``--json`` wins over ``--plain``; with neither, Rich tables are used on
    a terminal and plain text otherwise.
    """
    from rediscodegen.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))


def _setup_signal_handlers() -> None:
    """Exit with :data:`EXIT_INTERRUPTED` on Ctrl-C instead of a traceback."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """Console script entry point.

    A :class:`~rediscodegen.exceptions.RedisCodegenError` that reaches this
    level exits with its ``exit_code``; any other exception prints its
    traceback and exits with :data:`EXIT_GENERIC_FAILURE`.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from rediscodegen.exceptions import RedisCodegenError
        from rediscodegen.output import error

        if isinstance(exc, RedisCodegenError):
            error(str(exc))
            sys.exit(exc.exit_code)
        traceback.print_exc(file=sys.stderr)
        error("Unexpected error; the traceback above has the details.")
        sys.exit(EXIT_GENERIC_FAILURE)
