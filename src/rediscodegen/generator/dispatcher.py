"""Drive one generation pass per requested output flavor.

:func:`generate` is a pure function of ``(flavor, commands, config)``: it
synthesises the derived types, replays the sorted command traversal through
the flavor's emission rules, and returns the module source. Running it for
several flavors shares no state between the runs.
"""

from __future__ import annotations

from typing import Optional

from rediscodegen.generator import strategies
from rediscodegen.generator.buffer import EmissionBuffer
from rediscodegen.generator.command import build_commands
from rediscodegen.generator.types import emit_types, synthesize
from rediscodegen.models import CommandSet, GenerationConfig, OutputFlavor
from rediscodegen.output import debug


def generate(
    flavor: OutputFlavor,
    commands: CommandSet,
    config: Optional[GenerationConfig] = None,
) -> str:
    """Generate the source of one module.

    The traversal is:

    1. module docstring and imports;
    2. the preface (opens the class);
    3. for the ``tokens`` flavor, every derived type; for the other
       flavors, one method per command in (group, name) order, skipping
       excluded commands, with each legacy alias emitted right after its
       canonical command;
    4. the appendix (closes the class).

    Args:
        flavor: Which module to generate.
        commands: The command schema.
        config: Generation settings; defaults to :class:`GenerationConfig`.

    Returns:
        The module source. Identical inputs give byte-identical output.

    Raises:
        TypeNameCollisionError: Under the ``error`` collision policy.
    """
    config = config or GenerationConfig()
    registry = synthesize(commands, config)
    aliases = {name.upper(): alias for name, alias in config.legacy_aliases.items()}

    buf = EmissionBuffer()
    strategies.imports(flavor, config, buf)
    strategies.preface(flavor, buf)

    match flavor:
        case OutputFlavor.TOKENS:
            emit_types(registry, buf)
        case _:
            for command in build_commands(commands, config):
                if config.is_excluded(command.name):
                    debug(f"{flavor.module_name}: skipping excluded command {command.name}")
                    continue
                strategies.append_command(flavor, command, config, registry, buf)
                alias = aliases.get(command.name.upper())
                if alias:
                    strategies.append_command(
                        flavor, command.as_alias(alias), config, registry, buf
                    )

    strategies.appendix(flavor, buf)
    return buf.getvalue()


def generate_all(
    commands: CommandSet,
    config: Optional[GenerationConfig] = None,
) -> dict[str, str]:
    """Generate every flavor listed in ``config.flavors``.

    Returns:
        Mapping of module name (``async_commands``) to module source, in
        the order of ``config.flavors``.
    """
    config = config or GenerationConfig()
    modules: dict[str, str] = {}
    for flavor in config.flavors:
        modules[flavor.module_name] = generate(flavor, commands, config)
        debug(f"Generated {flavor.module_name}.py ({len(modules[flavor.module_name])} bytes)")
    return modules
