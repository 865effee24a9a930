"""Generate command -- write the binding modules for a command schema.

Loads the schema, resolves the generation config (defaults, config file,
environment, flags), runs one generation pass per flavor, and writes the
modules to a package directory. With ``--stdout`` a single flavor is
printed instead of written.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from rediscodegen.exceptions import InvalidUsageError, RedisCodegenError
from rediscodegen.models import CollisionPolicy, GenerationMode, OutputFlavor
from rediscodegen.output import debug, error, info, print_source, success, suggest, warning


def generate_command(
    schema: str = typer.Argument(
        ..., help="commands.json path, http(s) URL, or '-' for stdin."
    ),
    out: Optional[Path] = typer.Option(
        None, "--out", "-o", help="Package directory to write the modules into."
    ),
    flavors: Optional[List[OutputFlavor]] = typer.Option(
        None, "--flavor", "-f", help="Module flavor to generate (repeatable). Default: all."
    ),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file (default: ./rediscodegen.json)."
    ),
    runtime_module: Optional[str] = typer.Option(
        None, "--runtime-module", help="Runtime package the generated code imports."
    ),
    on_collision: Optional[CollisionPolicy] = typer.Option(
        None, "--on-collision", help="What to do when two argument shapes derive one type name."
    ),
    ignore_multiple: bool = typer.Option(
        False, "--ignore-multiple", help="Generate single-value signatures for repeating arguments."
    ),
    to_stdout: bool = typer.Option(
        False, "--stdout", help="Print one flavor to stdout instead of writing files."
    ),
    no_init: bool = typer.Option(
        False, "--no-init", help="Do not write the package __init__.py."
    ),
) -> None:
    """Generate Python client bindings from a Redis command schema.

    Writes ``commands.py``, ``command.py``, ``async_commands.py``,
    ``pipeline.py``, ``cluster_pipeline.py`` and ``tokens.py`` (or the
    flavors selected with ``--flavor``) into ``--out``. Files whose content
    did not change are left untouched.

    Example::

        rediscodegen generate commands.json --out src/myredis/generated
        rediscodegen generate commands.json --flavor tokens --stdout
    """
    from rediscodegen.config import resolve_config
    from rediscodegen.generator import generate, generate_all
    from rediscodegen.parser import load_command_set
    from rediscodegen.writer import write_modules

    try:
        if to_stdout:
            if out is not None:
                raise InvalidUsageError("--stdout and --out are mutually exclusive")
            if not flavors or len(flavors) != 1:
                raise InvalidUsageError("--stdout needs exactly one --flavor")
        elif out is None:
            raise InvalidUsageError("--out is required unless --stdout is given")

        config = resolve_config(
            cli_config=config_file,
            cli_runtime_module=runtime_module,
            cli_on_collision=on_collision,
            cli_mode=GenerationMode.IGNORE_MULTIPLE if ignore_multiple else None,
            cli_flavors=flavors,
        )
        debug(f"Runtime module: {config.runtime_module}; collisions: {config.on_type_collision.value}")

        commands = load_command_set(schema)
        info(f"Loaded {len(commands)} commands from {schema}")
        if not any(not config.is_excluded(name) for name in commands):
            warning("No commands left after exclusions; the generated classes will be empty")

        if to_stdout:
            print_source(generate(flavors[0], commands, config))
            return

        assert out is not None
        modules = generate_all(commands, config)
        results = write_modules(modules, out, package_init=not no_init)
    except RedisCodegenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    changed = [result for result in results if result.changed]
    for result in changed:
        success(f"Wrote {result.path}")
    unchanged = len(results) - len(changed)
    if unchanged:
        info(f"{unchanged} file(s) unchanged")
    if changed:
        suggest(f"Provide a '{config.runtime_module}' package for the generated code to import")
