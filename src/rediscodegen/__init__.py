"""rediscodegen -- Generate Python client bindings from the Redis command schema.

This package reads the Redis ``commands.json`` document (one entry per
command: name, argument tree, metadata) and emits a set of Python modules
implementing client bindings for the whole command set, in six flavors:
blocking mixin methods, command constructors, async methods, pipeline
methods, cluster-pipeline methods, and the derived argument types those
methods accept.

Typical workflow::

    rediscodegen generate commands.json --out src/myredis/generated
    rediscodegen inspect types commands.json

The generated code targets a small runtime package (``redis_runtime`` by
default) that provides argument serialisation and command execution.

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for the command schema and generation config.
    config: Project configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    writer: Writes generated modules to a package directory.
"""

__version__ = "0.1.0"
