"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~rediscodegen.exceptions.RedisCodegenError` subclass.
Build scripts that run the generator can inspect the exit code to tell a
bad schema apart from a bad config file without parsing stderr.

Example::

    $ rediscodegen generate missing.json --out gen/
    $ echo $?
    3   # EXIT_SCHEMA_ERROR -- the schema could not be loaded
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SCHEMA_ERROR = 3
"""The command schema could not be read, parsed, or validated."""

EXIT_CONFIG_ERROR = 4
"""A configuration file was missing or invalid."""

EXIT_GENERATION_ERROR = 5
"""Code generation aborted (for example on a derived type name collision)."""

EXIT_WRITE_ERROR = 6
"""Generated modules could not be written to the output directory."""

EXIT_INTERRUPTED = 130
"""The run was cancelled with Ctrl-C."""
