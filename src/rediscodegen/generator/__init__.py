"""Code generator -- turn a command schema into Python client bindings.

Typical usage::

    from rediscodegen.generator import generate, generate_all
    from rediscodegen.models import GenerationConfig, OutputFlavor

    source = generate(OutputFlavor.TOKENS, commands, GenerationConfig())
    modules = generate_all(commands)   # {"commands": "...", "tokens": "...", ...}

Sub-modules:

* :mod:`~rediscodegen.generator.naming` -- snake/camel identifier helpers.
* :mod:`~rediscodegen.generator.buffer` -- the indentation-tracking
  :class:`EmissionBuffer`.
* :mod:`~rediscodegen.generator.command` -- the :class:`Command` wrapper:
  method names, docs, feature gates, and parameter mapping.
* :mod:`~rediscodegen.generator.types` -- the argument-shape synthesis
  engine that derives the ``tokens`` module.
* :mod:`~rediscodegen.generator.strategies` -- per-flavor emission rules.
* :mod:`~rediscodegen.generator.dispatcher` -- one pass per flavor.
"""

from rediscodegen.generator.dispatcher import generate, generate_all
from rediscodegen.generator.types import synthesize

__all__ = ["generate", "generate_all", "synthesize"]
