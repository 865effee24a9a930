"""Exception hierarchy for rediscodegen.

All exceptions inherit from :class:`RedisCodegenError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`rediscodegen.exit_codes`.
The top-level error handler in :func:`rediscodegen.app.main` catches
``RedisCodegenError`` and exits with the appropriate code, while unexpected
exceptions print a traceback and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    RedisCodegenError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- SchemaLoadError         (exit 3)
    +-- ConfigError             (exit 4)
    +-- GenerationError         (exit 5)
    |   +-- TypeNameCollisionError
    +-- OutputWriteError        (exit 6)
"""

from __future__ import annotations

from rediscodegen.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SCHEMA_ERROR,
    EXIT_WRITE_ERROR,
)


class RedisCodegenError(Exception):
    """Base exception for all rediscodegen errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`rediscodegen.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RedisCodegenError):
    """Raised for invalid CLI arguments or contradictory options."""

    exit_code = EXIT_INVALID_USAGE


class SchemaLoadError(RedisCodegenError):
    """Raised when the command schema cannot be read, parsed, or validated."""

    exit_code = EXIT_SCHEMA_ERROR


class ConfigError(RedisCodegenError):
    """Raised for configuration problems (missing or malformed config files)."""

    exit_code = EXIT_CONFIG_ERROR


class GenerationError(RedisCodegenError):
    """Raised when code generation cannot complete."""

    exit_code = EXIT_GENERATION_ERROR


class TypeNameCollisionError(GenerationError):
    """Raised under the ``error`` collision policy when two different argument
    shapes derive the same type name.

    Args:
        name: The derived type name both shapes map to.
        first: Description of the shape registered first.
        second: Description of the conflicting shape.
    """

    def __init__(self, name: str, first: str, second: str):
        super().__init__(
            f"Derived type name '{name}' is used by two different argument shapes: "
            f"{first} and {second}"
        )
        self.name = name


class OutputWriteError(RedisCodegenError):
    """Raised when a generated module cannot be written to disk."""

    exit_code = EXIT_WRITE_ERROR
