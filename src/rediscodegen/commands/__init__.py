"""Built-in CLI sub-commands for rediscodegen.

* :mod:`~rediscodegen.commands.generate` -- generate the binding modules
  from a command schema.
* :mod:`~rediscodegen.commands.inspect` -- list the commands and derived
  types a schema produces, without writing anything.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``inspect``) or a plain callback function
registered directly on the root app (for single commands like
``generate``).
"""
