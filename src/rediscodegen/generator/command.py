"""Command wrapper -- one schema entry plus the facts needed to emit it.

A :class:`Command` pairs a :class:`~rediscodegen.models.CommandDefinition`
with a :class:`~rediscodegen.models.GenerationMode` and an optional exposed
name, and answers the questions every generation strategy asks:

* what is the method called (:meth:`Command.method_name`)?
* what does its docstring say (:meth:`Command.documentation`)?
* is it behind a feature gate (:meth:`Command.feature_gate_keys`)?
* what parameters does it take, and how is each written on the wire
  (:meth:`Command.parameters`)?

**Parameter mapping rules** (one parameter per top-level argument at most):

* ``key``, ``pattern``, ``string`` -> ``ToRedisArgs``; ``integer``,
  ``unix-time`` -> ``int``; ``double`` -> ``float``.
* A tokenized scalar (not repeating) or any ``oneof``/``block`` -> its
  derived type from the ``tokens`` module. The argument's own token is
  written before the value unless the derived type writes it itself.
* An optional ``pure-token`` -> ``bool`` flag; a required one is written
  as a literal with no parameter; one without a token is dropped.
* ``optional`` wraps the type in ``Optional``; ``multiple`` (in ``full``
  mode) wraps it in ``Sequence``.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from rediscodegen.generator.naming import to_snake
from rediscodegen.generator.types import (
    SCALAR_ANNOTATIONS,
    TypeRef,
    TypeRegistry,
    derived_name,
    unique_name,
)
from rediscodegen.models import (
    ArgType,
    CommandArgument,
    CommandDefinition,
    CommandSet,
    GenerationConfig,
    GenerationMode,
)

TOKENS_MODULE_PREFIX = "tokens."

# Names the generated method bodies use themselves.
_RESERVED_PARAM_NAMES = frozenset({"self", "cls", "rv"})


class ParamKind(str, enum.Enum):
    """How a mapped argument appears in the generated method."""

    VALUE = "value"
    FLAG = "flag"
    LITERAL = "literal"


class Parameter(BaseModel):
    """One mapped top-level argument.

    ``LITERAL`` parameters have no Python parameter; the generated body
    always writes ``wire_token``. ``FLAG`` parameters write ``wire_token``
    when true. ``VALUE`` parameters write ``wire_token`` (when set) and then
    the value.
    """

    model_config = ConfigDict(frozen=True)

    kind: ParamKind
    name: str = ""
    annotation: str = ""
    wire_token: Optional[str] = None
    optional: bool = False
    default: Optional[str] = None

    def render(self) -> str:
        """Render as a signature entry (``db: Optional[tokens.Db] = None``)."""
        text = f"{self.name}: {self.annotation}"
        if self.default is not None:
            text += f" = {self.default}"
        return text


class Command:
    """A command definition prepared for emission.

    Args:
        name: The schema command name (``"ACL CAT"``).
        definition: The command's schema entry.
        mode: ``full`` maps repeating arguments to sequences;
            ``ignore-multiple`` maps them to single values.
        exposed_name: Method name to use instead of the derived one.
        alias_of: For an alias produced by :meth:`as_alias`, the canonical
            command it forwards to.
    """

    def __init__(
        self,
        name: str,
        definition: CommandDefinition,
        mode: GenerationMode = GenerationMode.FULL,
        exposed_name: Optional[str] = None,
        alias_of: Optional[Command] = None,
    ) -> None:
        self.name = name
        self.definition = definition
        self.mode = mode
        self.exposed_name = exposed_name
        self.alias_of = alias_of

    def __repr__(self) -> str:
        return f"Command({self.name!r}, mode={self.mode.value!r}, exposed_name={self.exposed_name!r})"

    @property
    def is_alias(self) -> bool:
        return self.alias_of is not None

    @property
    def wire_words(self) -> list[str]:
        """The command name as protocol arguments (``["ACL", "CAT"]``)."""
        return self.name.split()

    def method_name(self, config: GenerationConfig) -> str:
        """Exposed method name: the alias name, an override, or the snake-cased name."""
        if self.exposed_name:
            return self.exposed_name
        for command_name, override in config.name_overrides.items():
            if command_name.upper() == self.name.upper():
                return override
        return to_snake(self.name)

    def as_alias(self, new_name: str) -> Command:
        """Return a renamed copy that forwards to this command."""
        return Command(
            self.name,
            self.definition,
            mode=self.mode,
            exposed_name=new_name,
            alias_of=self,
        )

    def feature_gate_keys(self) -> tuple[str, str]:
        """Feature-gate lookup keys, most specific last.

        Returns ``("group:<group>", "command:<CONTAINER>")``; subcommands
        share their container's key (``ACL CAT`` -> ``command:ACL``).
        """
        container = self.wire_words[0].upper() if self.wire_words else self.name.upper()
        return (f"group:{self.definition.group.value}", f"command:{container}")

    def deprecation_message(self) -> Optional[str]:
        """Message for the ``@deprecated`` decorator, or ``None``."""
        if not self.definition.is_deprecated:
            return None
        if self.definition.deprecated_since:
            return f"Deprecated in redis since redis version {self.definition.deprecated_since}."
        return "Deprecated in redis itself."

    def documentation(self) -> list[str]:
        """Docstring lines describing the command.

        Example::

            COPY

            Copy a key

            Since: Redis 6.2.0
            Group: Generic
            Complexity: O(N) worst case for collections
            CommandFlags:
            * Write: This command may modify data.
            ACL Categories:
            * @keyspace
        """
        d = self.definition
        title = self.name
        if self.mode == GenerationMode.IGNORE_MULTIPLE:
            title += " (single value variant)"

        lines = [title, ""]
        if d.summary:
            lines += [d.summary, ""]
        if d.since:
            lines.append(f"Since: Redis {d.since}")
        lines.append(f"Group: {d.group.display_name}")
        if d.replaced_by:
            lines.append(f"Replaced By: {d.replaced_by}")
        if d.complexity:
            lines.append(f"Complexity: {d.complexity}")
        if d.command_flags:
            lines.append("CommandFlags:")
            lines += [f"* {flag.description}" for flag in d.command_flags]
        if d.acl_categories:
            lines.append("ACL Categories:")
            lines += [f"* {_acl_category(category)}" for category in d.acl_categories]
        return lines

    def parameters(self, registry: TypeRegistry) -> list[Parameter]:
        """Map the top-level arguments to method parameters.

        Duplicate names get a numeric suffix (``key``, ``key1``). Trailing
        optional parameters get defaults (``None``, or ``False`` for flags).

        Args:
            registry: The finished type registry of this pass, used to
                resolve derived parameter types.
        """
        taken: set[str] = set(_RESERVED_PARAM_NAMES)
        params: list[Parameter] = []
        for arg in self.definition.arguments:
            param = map_argument(arg, registry, self.mode)
            if param is None:
                continue
            if param.kind != ParamKind.LITERAL:
                param = param.model_copy(update={"name": unique_name(param.name, taken)})
            params.append(param)

        for index in reversed(range(len(params))):
            param = params[index]
            if param.kind == ParamKind.LITERAL:
                continue
            if param.kind == ParamKind.FLAG:
                params[index] = param.model_copy(update={"default": "False"})
            elif param.optional:
                params[index] = param.model_copy(update={"default": "None"})
            else:
                break
        return params


def map_argument(
    arg: CommandArgument,
    registry: TypeRegistry,
    mode: GenerationMode = GenerationMode.FULL,
) -> Optional[Parameter]:
    """Map one top-level argument to a :class:`Parameter`, or ``None`` to drop it."""
    name = to_snake(arg.name)
    multiple = arg.multiple and mode == GenerationMode.FULL

    if arg.type == ArgType.PURE_TOKEN:
        if arg.token is None:
            return None
        if arg.optional:
            return Parameter(kind=ParamKind.FLAG, name=name, annotation="bool", wire_token=arg.token, optional=True)
        return Parameter(kind=ParamKind.LITERAL, wire_token=arg.token)

    if arg.is_container or (arg.is_scalar and arg.named_token and not multiple):
        type_name = derived_name(arg)
        if type_name in registry:
            ref = TypeRef(annotation=type_name, derived=True, optional=arg.optional, multiple=multiple)
            token = None if registry.writes_own_token(type_name) else arg.token
            return Parameter(
                kind=ParamKind.VALUE,
                name=name,
                annotation=ref.render(TOKENS_MODULE_PREFIX),
                wire_token=token,
                optional=arg.optional,
            )

    ref = TypeRef(
        annotation=SCALAR_ANNOTATIONS.get(arg.type, "ToRedisArgs"),
        optional=arg.optional,
        multiple=multiple,
    )
    return Parameter(
        kind=ParamKind.VALUE,
        name=name,
        annotation=ref.render(),
        wire_token=arg.token,
        optional=arg.optional,
    )


def build_commands(commands: CommandSet, config: GenerationConfig) -> list[Command]:
    """Wrap every schema entry in generation order (group, then name)."""
    return [
        Command(name, definition, mode=config.mode)
        for name, definition in commands.in_generation_order()
    ]


def _acl_category(category: str) -> str:
    return category if category.startswith("@") else f"@{category.lower()}"
