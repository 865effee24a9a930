"""Per-flavor emission rules for the generated modules.

Every flavor shares one traversal (driven by
:func:`~rediscodegen.generator.dispatcher.generate`) and differs only in what
it writes at four points:

* :func:`imports` -- module docstring and imports;
* :func:`preface` -- opens the class (and the module feature gate);
* :func:`append_command` -- one method per command;
* :func:`appendix` -- closes what the preface opened.

The flavors are a closed set (:class:`~rediscodegen.models.OutputFlavor`),
so each of these is a ``match`` over the flavor rather than a strategy
class hierarchy.

+----------------------+-----------------------+-----------------------------------------+
| Flavor               | Class                 | Method body                             |
+======================+=======================+=========================================+
| ``commands``         | ``Commands``          | ``return Cmd.m(...).query(self)``       |
| ``command``          | ``Cmd(BaseCmd)``      | builds ``rv = cls()`` argument by arg   |
| ``async-commands``   | ``AsyncCommands``     | ``return await Cmd.m(...).query_async`` |
| ``pipeline``         | ``Pipeline``          | ``return self.add_command(Cmd.m(...))`` |
| ``cluster-pipeline`` | ``ClusterPipeline``   | ``return self.add_command(Cmd.m(...))`` |
| ``tokens``           | (none)                | derived types only                      |
+----------------------+-----------------------+-----------------------------------------+
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from rediscodegen.generator.buffer import EmissionBuffer
from rediscodegen.generator.command import Command, Parameter, ParamKind
from rediscodegen.generator.types import TypeRegistry, literal
from rediscodegen.models import GenerationConfig, OutputFlavor

TEMPLATE_DIR = Path(__file__).parent / "templates"

_ENV = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


def imports(flavor: OutputFlavor, config: GenerationConfig, buf: EmissionBuffer) -> None:
    """Write the module docstring and import block for *flavor*."""
    runtime = config.runtime_module
    match flavor:
        case OutputFlavor.COMMANDS_TRAIT:
            title = "Blocking Redis commands for connection-like objects."
            description = [
                "Mix :class:`Commands` into a connection class to get one method per",
                "Redis command. Each method builds the command with :class:`Cmd` and",
                "runs it on the connection.",
            ]
            groups = [
                ["from typing import Any, Optional, Sequence"],
                ["from typing_extensions import deprecated"],
                [
                    f"from {runtime}.features import ENABLED_FEATURES",
                    f"from {runtime}.types import ToRedisArgs",
                ],
                ["from . import tokens", "from .command import Cmd"],
            ]
        case OutputFlavor.COMMAND_IMPL:
            title = "Constructors for every Redis command."
            description = [
                "Each classmethod of :class:`Cmd` returns a new command holding the",
                "command name and its arguments, ready to be queried or pipelined.",
            ]
            groups = [
                ["from typing import Optional, Sequence"],
                ["from typing_extensions import deprecated"],
                [
                    f"from {runtime}.cmd import BaseCmd",
                    f"from {runtime}.features import ENABLED_FEATURES",
                    f"from {runtime}.types import ToRedisArgs",
                ],
                ["from . import tokens"],
            ]
        case OutputFlavor.ASYNC_COMMANDS_TRAIT:
            title = "Async Redis commands for connection-like objects."
            description = [
                "Available with the ``aio`` feature. Mix :class:`AsyncCommands` into",
                "an async connection class to get one coroutine method per command.",
            ]
            groups = [
                ["from typing import Any, Optional, Sequence"],
                ["from typing_extensions import deprecated"],
                [
                    f"from {runtime}.features import ENABLED_FEATURES",
                    f"from {runtime}.types import ToRedisArgs",
                ],
                ["from . import tokens", "from .command import Cmd"],
            ]
        case OutputFlavor.PIPELINE:
            title = "Pipeline methods for every Redis command."
            description = [
                "Each method queues the command on the pipeline and returns the",
                "pipeline, so calls can be chained.",
            ]
            groups = [
                ["from typing import Optional, Sequence"],
                ["from typing_extensions import deprecated"],
                [
                    f"from {runtime}.features import ENABLED_FEATURES",
                    f"from {runtime}.pipeline import BasePipeline",
                    f"from {runtime}.types import ToRedisArgs",
                ],
                ["from . import tokens", "from .command import Cmd"],
            ]
        case OutputFlavor.CLUSTER_PIPELINE:
            title = "Cluster pipeline methods for every Redis command."
            description = [
                "Available with the ``cluster`` feature. Each method queues the",
                "command on the cluster pipeline and returns the pipeline.",
            ]
            groups = [
                ["from typing import Optional, Sequence"],
                ["from typing_extensions import deprecated"],
                [
                    f"from {runtime}.cluster_pipeline import BaseClusterPipeline",
                    f"from {runtime}.features import ENABLED_FEATURES",
                    f"from {runtime}.types import ToRedisArgs",
                ],
                ["from . import tokens", "from .command import Cmd"],
            ]
        case OutputFlavor.TOKENS:
            title = "Argument types derived from the Redis command schema."
            description = [
                "Keyword-carrying scalars, argument groups, and one-of choices used by",
                "the command methods. Every type writes itself with",
                "``write_redis_args``.",
            ]
            groups = [
                ["from dataclasses import dataclass", "from typing import Optional, Sequence"],
                [f"from {runtime}.types import RedisWrite, ToRedisArgs, write_redis_args"],
            ]

    header = _ENV.get_template("module_header.py.j2").render(
        title=title,
        description=description,
        import_groups=groups,
    )
    buf.push_lines(header.splitlines())


# ---------------------------------------------------------------------------
# Preface / appendix
# ---------------------------------------------------------------------------


def preface(flavor: OutputFlavor, buf: EmissionBuffer) -> None:
    """Open the enclosing class (and the module-level feature gate, if any)."""
    match flavor:
        case OutputFlavor.COMMANDS_TRAIT:
            _open_class(
                buf,
                "class Commands:",
                [
                    "Implements common Redis commands for connection-like objects.",
                    "",
                    "The host class must provide what :meth:`Cmd.query` needs to send a",
                    "command and decode its reply.",
                ],
            )
        case OutputFlavor.COMMAND_IMPL:
            _open_class(
                buf,
                "class Cmd(BaseCmd):",
                [
                    "A Redis command under construction.",
                    "",
                    "Every classmethod returns a new ``Cmd`` with the command name and",
                    "its arguments already written.",
                ],
            )
        case OutputFlavor.ASYNC_COMMANDS_TRAIT:
            _open_gate(buf, "aio", blank_lines=2)
            _open_class(
                buf,
                "class AsyncCommands:",
                [
                    "Implements common Redis commands over async connection-like objects.",
                    "",
                    "The host class must provide what :meth:`Cmd.query_async` needs.",
                ],
                blank_lines=0,
            )
        case OutputFlavor.PIPELINE:
            _open_class(
                buf,
                "class Pipeline(BasePipeline):",
                ["Queues Redis commands and returns the pipeline for chaining."],
            )
        case OutputFlavor.CLUSTER_PIPELINE:
            _open_gate(buf, "cluster", blank_lines=2)
            _open_class(
                buf,
                "class ClusterPipeline(BaseClusterPipeline):",
                ["Queues Redis commands on a cluster pipeline and returns it for chaining."],
                blank_lines=0,
            )
        case OutputFlavor.TOKENS:
            pass


def appendix(flavor: OutputFlavor, buf: EmissionBuffer) -> None:
    """Close what :func:`preface` opened."""
    match flavor:
        case OutputFlavor.ASYNC_COMMANDS_TRAIT | OutputFlavor.CLUSTER_PIPELINE:
            buf.dedent()
            buf.dedent()
        case OutputFlavor.COMMANDS_TRAIT | OutputFlavor.COMMAND_IMPL | OutputFlavor.PIPELINE:
            buf.dedent()
        case OutputFlavor.TOKENS:
            pass


def _open_class(buf: EmissionBuffer, header: str, doc: list[str], blank_lines: int = 2) -> None:
    for _ in range(blank_lines):
        buf.push_line()
    buf.push_line(header)
    buf.indent()
    buf.push_doc(doc)


def _open_gate(buf: EmissionBuffer, feature: str, blank_lines: int = 1) -> None:
    for _ in range(blank_lines):
        buf.push_line()
    buf.push_line(f"if {literal(feature)} in ENABLED_FEATURES:")
    buf.indent()
    buf.push_line()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def append_command(
    flavor: OutputFlavor,
    command: Command,
    config: GenerationConfig,
    registry: TypeRegistry,
    buf: EmissionBuffer,
) -> None:
    """Emit one method for *command*, behind its feature gate if it has one.

    Aliases (see :meth:`Command.as_alias`) are emitted as deprecated methods
    forwarding to the canonical method.
    """
    feature = config.feature_for(command.feature_gate_keys())
    if feature:
        _open_gate(buf, feature)
    else:
        buf.push_line()

    method = command.method_name(config)
    params = command.parameters(registry)
    named = [p for p in params if p.kind != ParamKind.LITERAL]

    for decorator in _decorators(flavor, command, config):
        buf.push_line(decorator)
    _emit_signature(flavor, method, named, buf)
    with buf.indented():
        buf.push_doc(_docstring(command, config, feature))
        if command.is_alias:
            _emit_forward(flavor, command.alias_of.method_name(config), named, buf)
        else:
            _emit_body(flavor, command, method, params, named, buf)

    if feature:
        buf.dedent()


def _decorators(flavor: OutputFlavor, command: Command, config: GenerationConfig) -> list[str]:
    decorators = []
    if flavor == OutputFlavor.COMMAND_IMPL:
        decorators.append("@classmethod")
    if command.is_alias:
        canonical = command.alias_of.method_name(config)
        decorators.append(f"@deprecated({literal(f'Use {canonical} instead.')})")
    else:
        message = command.deprecation_message()
        if message:
            decorators.append(f"@deprecated({literal(message)})")
    return decorators


def _emit_signature(
    flavor: OutputFlavor, method: str, named: list[Parameter], buf: EmissionBuffer
) -> None:
    match flavor:
        case OutputFlavor.COMMAND_IMPL:
            receiver, returns = "cls", "Cmd"
        case OutputFlavor.PIPELINE:
            receiver, returns = "self", "Pipeline"
        case OutputFlavor.CLUSTER_PIPELINE:
            receiver, returns = "self", "ClusterPipeline"
        case _:
            receiver, returns = "self", "Any"
    keyword = "async def" if flavor == OutputFlavor.ASYNC_COMMANDS_TRAIT else "def"

    if not named:
        buf.push_line(f"{keyword} {method}({receiver}) -> {returns}:")
        return
    buf.push_line(f"{keyword} {method}(")
    with buf.indented():
        buf.push_line(f"{receiver},")
        for param in named:
            buf.push_line(f"{param.render()},")
    buf.push_line(f") -> {returns}:")


def _docstring(command: Command, config: GenerationConfig, feature: Optional[str]) -> list[str]:
    lines = command.documentation()
    if feature:
        lines += ["", f"Available with the ``{feature}`` feature."]
    if command.is_alias:
        lines += ["", f"This is an alias for :meth:`{command.alias_of.method_name(config)}`."]
    return lines


def _call_args(named: list[Parameter]) -> str:
    return ", ".join(p.name for p in named)


def _emit_forward(
    flavor: OutputFlavor, canonical: str, named: list[Parameter], buf: EmissionBuffer
) -> None:
    args = _call_args(named)
    match flavor:
        case OutputFlavor.COMMAND_IMPL:
            buf.push_line(f"return cls.{canonical}({args})")
        case OutputFlavor.ASYNC_COMMANDS_TRAIT:
            buf.push_line(f"return await self.{canonical}({args})")
        case _:
            buf.push_line(f"return self.{canonical}({args})")


def _emit_body(
    flavor: OutputFlavor,
    command: Command,
    method: str,
    params: list[Parameter],
    named: list[Parameter],
    buf: EmissionBuffer,
) -> None:
    call = f"Cmd.{method}({_call_args(named)})"
    match flavor:
        case OutputFlavor.COMMAND_IMPL:
            _emit_builder(command, params, buf)
        case OutputFlavor.COMMANDS_TRAIT:
            buf.push_line(f"return {call}.query(self)")
        case OutputFlavor.ASYNC_COMMANDS_TRAIT:
            buf.push_line(f"return await {call}.query_async(self)")
        case OutputFlavor.PIPELINE | OutputFlavor.CLUSTER_PIPELINE:
            buf.push_line(f"return self.add_command({call})")
        case OutputFlavor.TOKENS:
            raise ValueError("the tokens flavor emits no command methods")


def _emit_builder(command: Command, params: list[Parameter], buf: EmissionBuffer) -> None:
    buf.push_line("rv = cls()")
    for word in command.wire_words:
        buf.push_line(f"rv.arg({literal(word)})")
    for param in params:
        match param.kind:
            case ParamKind.LITERAL:
                buf.push_line(f"rv.arg({literal(param.wire_token)})")
            case ParamKind.FLAG:
                buf.push_line(f"if {param.name}:")
                with buf.indented():
                    buf.push_line(f"rv.arg({literal(param.wire_token)})")
            case ParamKind.VALUE if param.wire_token is not None and param.optional:
                buf.push_line(f"if {param.name} is not None:")
                with buf.indented():
                    buf.push_line(f"rv.arg({literal(param.wire_token)})")
                    buf.push_line(f"rv.arg({param.name})")
            case ParamKind.VALUE if param.wire_token is not None:
                buf.push_line(f"rv.arg({literal(param.wire_token)})")
                buf.push_line(f"rv.arg({param.name})")
            case ParamKind.VALUE:
                buf.push_line(f"rv.arg({param.name})")
    buf.push_line("return rv")
