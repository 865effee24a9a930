"""Command schema loading -- read ``commands.json`` into the schema model.

Typical usage::

    from rediscodegen.parser import load_command_set

    commands = load_command_set("commands.json")
    print(len(commands), "commands")

Sub-modules:

* :mod:`~rediscodegen.parser.loader` -- I/O layer (URL, file, stdin),
  format detection, and validation into a
  :class:`~rediscodegen.models.CommandSet`.
"""

from rediscodegen.parser.loader import build_command_set, load_command_set, load_schema

__all__ = ["load_schema", "build_command_set", "load_command_set"]
