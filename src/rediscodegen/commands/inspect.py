"""Inspect commands -- examine what a schema generates.

Provides the ``rediscodegen inspect`` sub-command group with read-only
commands: the command list as the generator sees it (method names, feature
gates, exclusions, aliases) and the derived argument types. Output is a
table, tab-separated text (``--plain``), or JSON (``--json``).
"""

from __future__ import annotations

from typing import Optional

import typer

from rediscodegen.exceptions import RedisCodegenError
from rediscodegen.output import error, info, print_table


inspect_app = typer.Typer(no_args_is_help=True)


def _load(schema: str, config_file: Optional[str], on_collision=None):  # noqa: ANN001, ANN202
    """Load the schema and resolve config, exiting with the error's code on failure.

    Returns:
        A ``(CommandSet, GenerationConfig)`` tuple.
    """
    from rediscodegen.config import resolve_config
    from rediscodegen.parser import load_command_set

    try:
        config = resolve_config(cli_config=config_file, cli_on_collision=on_collision)
        commands = load_command_set(schema)
    except RedisCodegenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    return commands, config


@inspect_app.command("commands")
def inspect_commands(
    schema: str = typer.Argument(..., help="commands.json path, URL, or '-'."),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file (default: ./rediscodegen.json)."
    ),
) -> None:
    """List commands with their method names, feature gates, and status.

    Commands appear in generation order (group, then name). Legacy aliases
    are listed right after their canonical command.

    Example::

        rediscodegen inspect commands commands.json
        rediscodegen --json inspect commands commands.json
    """
    from rediscodegen.generator.command import build_commands

    commands, config = _load(schema, config_file)
    aliases = {name.upper(): alias for name, alias in config.legacy_aliases.items()}

    headers = ["Command", "Group", "Since", "Method", "Feature", "Status"]
    rows: list[list[str]] = []
    for command in build_commands(commands, config):
        feature = config.feature_for(command.feature_gate_keys()) or "-"
        if config.is_excluded(command.name):
            status = "excluded"
        elif command.definition.is_deprecated:
            status = "deprecated"
        else:
            status = ""
        rows.append([
            command.name,
            command.definition.group.display_name,
            command.definition.since or "-",
            command.method_name(config),
            feature,
            status,
        ])
        alias = aliases.get(command.name.upper())
        if alias and status != "excluded":
            rows.append([
                command.name,
                command.definition.group.display_name,
                command.definition.since or "-",
                alias,
                feature,
                f"alias of {command.method_name(config)}",
            ])

    print_table(headers, rows, title=f"Commands ({len(commands)})")


@inspect_app.command("types")
def inspect_types(
    schema: str = typer.Argument(..., help="commands.json path, URL, or '-'."),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file (default: ./rediscodegen.json)."
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Fail on derived type name collisions."
    ),
) -> None:
    """List the derived argument types the ``tokens`` module will contain.

    Each row shows the type name, its kind (newtype, record, variant), its
    members, and the first argument it was derived from.

    Example::

        rediscodegen inspect types commands.json
        rediscodegen inspect types commands.json --strict
    """
    from rediscodegen.generator.types import describe, synthesize
    from rediscodegen.models import CollisionPolicy

    commands, config = _load(
        schema, config_file, on_collision=CollisionPolicy.ERROR if strict else None
    )
    try:
        registry = synthesize(commands, config)
    except RedisCodegenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not len(registry):
        info("No derived types in this schema.")
        return

    headers = ["Type", "Kind", "Members", "Derived From"]
    rows = [
        [derived.name, derived.kind, describe(derived) or "-", registry.origin(derived.name)]
        for derived in registry
    ]
    print_table(headers, rows, title=f"Derived Types ({len(rows)})")
