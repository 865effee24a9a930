"""Argument-shape synthesis engine -- derive types from the argument trees.

Many Redis commands take structured arguments: a ``oneof`` (exactly one of
several alternatives, such as ``NX | XX``), a ``block`` (a fixed group such
as ``LIMIT offset count``), or a scalar preceded by a keyword (``DB 3``).
The generated bindings represent each such shape as a small type in the
``tokens`` module, with a ``write_redis_args`` method that serialises it.

The engine works in two phases:

1. **Collect** (:func:`synthesize`) -- walk every command's argument tree
   with a LIFO work list and build an immutable descriptor per shape:

   * ``oneof``  -> :class:`VariantType` (one variant per sub-argument);
   * ``block``  -> :class:`RecordType` (one field per eligible sub-argument);
   * a scalar with a wire token -> :class:`NewType`.

   Descriptors are registered by name in a :class:`TypeRegistry`. Nested
   ``oneof``/``block`` sub-arguments (and tokenized scalars inside blocks)
   are pushed onto the work list and get their own types. Nothing is
   emitted in this phase.

2. **Emit** (:func:`emit_types`) -- walk the finished registry in
   registration order and write each type plus its serialisation body.

Names are derived from the wire token when there is a non-empty one,
otherwise from the argument name. When two different shapes derive the same
name, the registry's :class:`~rediscodegen.models.CollisionPolicy` decides:
``first-wins`` reuses the first registration, ``error`` raises
:class:`~rediscodegen.exceptions.TypeNameCollisionError`.

Shapes the engine has no representation for (``pattern``, ``unix-time``,
marker-less ``pure-token`` fields) are dropped.
"""

from __future__ import annotations

import json
from typing import Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from rediscodegen.exceptions import TypeNameCollisionError
from rediscodegen.generator.buffer import EmissionBuffer
from rediscodegen.generator.naming import to_camel, to_snake
from rediscodegen.models import (
    ArgType,
    CollisionPolicy,
    CommandArgument,
    CommandSet,
    GenerationConfig,
)
from rediscodegen.output import debug


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

SCALAR_ANNOTATIONS: dict[ArgType, str] = {
    ArgType.STRING: "ToRedisArgs",
    ArgType.KEY: "ToRedisArgs",
    ArgType.PATTERN: "ToRedisArgs",
    ArgType.INTEGER: "int",
    ArgType.UNIX_TIME: "int",
    ArgType.DOUBLE: "float",
}
"""Python annotation for each leaf argument type."""

# Field names a record cannot use without shadowing its own machinery.
_RESERVED_FIELD_NAMES = frozenset({"write_redis_args"})

# Names the tokens module imports; a derived type with one of them gets a suffix.
_RESERVED_TYPE_NAMES = frozenset({"Optional", "Sequence", "RedisWrite", "ToRedisArgs"})


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TypeRef(_Frozen):
    """Reference to a value type: a scalar annotation or a derived type name."""

    annotation: str
    derived: bool = False
    optional: bool = False
    multiple: bool = False

    def render(self, module_prefix: str = "") -> str:
        """Render as a Python annotation; *module_prefix* qualifies derived names."""
        text = f"{module_prefix}{self.annotation}" if self.derived else self.annotation
        if self.multiple:
            text = f"Sequence[{text}]"
        if self.optional:
            text = f"Optional[{text}]"
        return text


class FlagField(_Frozen):
    """Boolean record field that writes ``wire_token`` when true."""

    kind: Literal["flag"] = "flag"
    name: str
    wire_token: str
    default: bool = False


class ValueField(_Frozen):
    """Typed record field, optionally preceded by ``prefix_token`` on the wire."""

    kind: Literal["value"] = "value"
    name: str
    type: TypeRef
    prefix_token: Optional[str] = None


RecordField = Union[FlagField, ValueField]


class Marker(_Frozen):
    """Variant that serialises only its wire token."""

    kind: Literal["marker"] = "marker"
    name: str
    wire_token: Optional[str] = None


class Wrapper(_Frozen):
    """Variant carrying one value, written after its wire token."""

    kind: Literal["wrapper"] = "wrapper"
    name: str
    wire_token: Optional[str] = None
    inner: TypeRef


class RecordVariant(_Frozen):
    """Variant carrying a group of fields, written after its wire token."""

    kind: Literal["record"] = "record"
    name: str
    wire_token: Optional[str] = None
    fields: tuple[RecordField, ...] = ()


Variant = Union[Marker, Wrapper, RecordVariant]


class NewType(_Frozen):
    """A single value behind an optional wire token (``DB 3``)."""

    kind: Literal["newtype"] = "newtype"
    name: str
    wire_token: Optional[str] = None
    inner: TypeRef


class RecordType(_Frozen):
    """A group of fields written in declaration order."""

    kind: Literal["record"] = "record"
    name: str
    fields: tuple[RecordField, ...] = ()


class VariantType(_Frozen):
    """A tagged union; exactly one variant is written."""

    kind: Literal["variant"] = "variant"
    name: str
    variants: tuple[Variant, ...] = Field(default=())


DerivedType = Union[NewType, RecordType, VariantType]


def derived_name(arg: CommandArgument) -> str:
    """Name of the type derived for *arg*: its non-empty token, else its name.

    Names that would shadow an import of the ``tokens`` module end in ``Type``.
    """
    name = to_camel(arg.named_token or arg.name)
    return f"{name}Type" if name in _RESERVED_TYPE_NAMES else name


def describe(derived: DerivedType) -> str:
    """One-line summary of a descriptor's members, for ``inspect types``."""
    if isinstance(derived, NewType):
        token = f"{derived.wire_token} " if derived.wire_token else ""
        return f"{token}{derived.inner.render()}"
    if isinstance(derived, RecordType):
        return ", ".join(field.name for field in derived.fields)
    return " | ".join(variant.name for variant in derived.variants)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TypeRegistry:
    """Name-keyed collection of derived types, in registration order.

    Owned by one synthesis pass. Registration never replaces an existing
    entry; what happens on a name clash depends on ``policy``.

    Args:
        policy: Collision policy for two different shapes under one name.
    """

    def __init__(self, policy: CollisionPolicy = CollisionPolicy.FIRST_WINS) -> None:
        self.policy = policy
        self._types: dict[str, DerivedType] = {}
        self._origins: dict[str, str] = {}

    def register(self, derived: DerivedType, origin: str) -> bool:
        """Register *derived*, found at *origin* (``COMMAND.arg.path``).

        Returns:
            ``True`` when the type was newly registered, ``False`` when the
            name was already taken and the existing type is reused.

        Raises:
            TypeNameCollisionError: Under the ``error`` policy, when the
                name is taken by a structurally different type.
        """
        existing = self._types.get(derived.name)
        if existing is None:
            self._types[derived.name] = derived
            self._origins[derived.name] = origin
            debug(f"Registered {derived.kind} type {derived.name} from {origin}")
            return True

        if existing != derived:
            first = self._origins[derived.name]
            if self.policy == CollisionPolicy.ERROR:
                raise TypeNameCollisionError(derived.name, first, origin)
            debug(f"{origin} reuses type {derived.name} registered from {first}")
        return False

    def get(self, name: str) -> Optional[DerivedType]:
        return self._types.get(name)

    def origin(self, name: str) -> str:
        return self._origins[name]

    def writes_own_token(self, name: str) -> bool:
        """Whether the type registered as *name* writes a wire token itself.

        Only :class:`NewType` carries its token; records and unions are
        preceded by the token of the argument that holds them.
        """
        derived = self._types.get(name)
        return isinstance(derived, NewType) and derived.wire_token is not None

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[DerivedType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)


# ---------------------------------------------------------------------------
# Phase 1: collect
# ---------------------------------------------------------------------------


def synthesize(commands: CommandSet, config: GenerationConfig) -> TypeRegistry:
    """Fold every command's argument tree into a :class:`TypeRegistry`.

    Commands are visited in generation order (group, then name), so the
    registry -- and therefore the emitted module -- is deterministic.
    Excluded commands are included: their argument types are still part of
    the ``tokens`` module.

    Args:
        commands: The command schema.
        config: Generation settings; only ``on_type_collision`` is read.

    Returns:
        The finished registry.

    Raises:
        TypeNameCollisionError: Under the ``error`` collision policy.
    """
    registry = TypeRegistry(config.on_type_collision)
    for name, definition in commands.in_generation_order():
        for arg in definition.arguments:
            fold_argument(arg, registry, origin=f"{name}.{arg.name}")
    return registry


def fold_argument(seed: CommandArgument, registry: TypeRegistry, origin: str = "") -> None:
    """Register every type needed by *seed* and its nested arguments.

    The work list is LIFO; nested arguments are pushed in reverse so they
    are classified in source order. Each push moves one level down the
    argument tree, so the loop terminates on any finite tree. Children of a
    shape whose name is already registered are not pushed again.
    """
    worklist: list[tuple[CommandArgument, str]] = [(seed, origin or seed.name)]
    while worklist:
        arg, where = worklist.pop()
        classified = classify(arg)
        if classified is None:
            continue
        derived, children = classified
        if registry.register(derived, where):
            worklist.extend((child, f"{where}.{child.name}") for child in reversed(children))


def classify(arg: CommandArgument) -> Optional[tuple[DerivedType, list[CommandArgument]]]:
    """Build the descriptor for *arg* without registering it.

    Returns:
        ``(descriptor, nested arguments needing their own types)``, or
        ``None`` when *arg* does not derive a type.
    """
    if arg.type == ArgType.ONEOF:
        return _build_variant_type(arg)
    if arg.type == ArgType.BLOCK:
        fields, children = _build_fields(arg.arguments)
        return RecordType(name=derived_name(arg), fields=fields), children
    if arg.is_scalar and arg.named_token:
        inner = TypeRef(annotation=SCALAR_ANNOTATIONS[arg.type])
        return NewType(name=derived_name(arg), wire_token=arg.token, inner=inner), []
    return None


def _build_variant_type(arg: CommandArgument) -> tuple[VariantType, list[CommandArgument]]:
    variants: list[Variant] = []
    children: list[CommandArgument] = []
    taken: set[str] = set()

    for sub in arg.arguments:
        if sub.is_scalar:
            inner = TypeRef(annotation=SCALAR_ANNOTATIONS[sub.type], multiple=sub.multiple)
            variant: Variant = Wrapper(name="", wire_token=sub.token, inner=inner)
        elif sub.type == ArgType.PURE_TOKEN:
            variant = Marker(name="", wire_token=sub.token)
        elif sub.type == ArgType.ONEOF:
            inner = TypeRef(annotation=derived_name(sub), derived=True, multiple=sub.multiple)
            variant = Wrapper(name="", wire_token=sub.token, inner=inner)
            children.append(sub)
        elif sub.type == ArgType.BLOCK:
            fields, nested = _build_fields(sub.arguments)
            variant = RecordVariant(name="", wire_token=sub.token, fields=fields)
            children.extend(nested)
        else:
            continue
        name = unique_name(to_camel(sub.named_token or sub.name), taken)
        variants.append(variant.model_copy(update={"name": name}))

    return VariantType(name=derived_name(arg), variants=tuple(variants)), children


def _build_fields(
    arguments: list[CommandArgument],
) -> tuple[tuple[RecordField, ...], list[CommandArgument]]:
    """Build record fields for a block's sub-arguments.

    * tokenized ``pure-token`` -> boolean flag (default ``False`` when
      optional, ``True`` when required);
    * tokenized scalar, ``oneof`` or ``block`` -> field typed by the derived
      type of its token, which is pushed;
    * tokenless ``oneof`` or ``block`` -> field typed by the derived type of
      its name, which is pushed;
    * tokenless scalar -> plain typed field;
    * anything else is dropped.
    """
    fields: list[RecordField] = []
    children: list[CommandArgument] = []
    taken: set[str] = set(_RESERVED_FIELD_NAMES)

    for sub in arguments:
        if sub.type == ArgType.PURE_TOKEN:
            if sub.token is None:
                continue
            name = unique_name(to_snake(sub.name), taken)
            fields.append(FlagField(name=name, wire_token=sub.token, default=not sub.optional))
            continue

        if sub.is_container or (sub.is_scalar and sub.named_token):
            ref = TypeRef(
                annotation=derived_name(sub),
                derived=True,
                optional=sub.optional,
                multiple=sub.multiple,
            )
            children.append(sub)
        elif sub.is_scalar:
            ref = TypeRef(
                annotation=SCALAR_ANNOTATIONS[sub.type],
                optional=sub.optional,
                multiple=sub.multiple,
            )
        else:
            continue

        name = unique_name(to_snake(sub.name), taken)
        fields.append(ValueField(name=name, type=ref, prefix_token=sub.token))

    return tuple(fields), children


def unique_name(name: str, taken: set[str]) -> str:
    """Return *name*, or *name* with the first free numeric suffix, and claim it."""
    candidate = name
    counter = 1
    while candidate in taken:
        candidate = f"{name}{counter}"
        counter += 1
    taken.add(candidate)
    return candidate


# ---------------------------------------------------------------------------
# Phase 2: emit
# ---------------------------------------------------------------------------


def literal(text: str) -> str:
    """Render *text* as a double-quoted Python string literal."""
    return json.dumps(text)


def emit_types(registry: TypeRegistry, buf: EmissionBuffer) -> None:
    """Write every registered type, in registration order, to *buf*."""
    for derived in registry:
        buf.push_line()
        buf.push_line()
        if isinstance(derived, NewType):
            _emit_newtype(derived, buf)
        elif isinstance(derived, RecordType):
            _emit_record(derived, registry, buf)
        else:
            _emit_variant_type(derived, registry, buf)


def _emit_newtype(derived: NewType, buf: EmissionBuffer) -> None:
    buf.push_line("@dataclass(frozen=True)")
    buf.push_line(f"class {derived.name}:")
    with buf.indented():
        if derived.wire_token is not None:
            buf.push_doc([f"Value written after the ``{derived.wire_token}`` token."])
        else:
            buf.push_doc(["Value written on its own."])
        buf.push_line()
        buf.push_line(f"value: {derived.inner.render()}")
        buf.push_line()
        buf.push_line("def write_redis_args(self, out: RedisWrite) -> None:")
        with buf.indented():
            if derived.wire_token is not None:
                buf.push_line(f"out.write_arg({literal(derived.wire_token)})")
            buf.push_line("write_redis_args(self.value, out)")


def _emit_record(derived: RecordType, registry: TypeRegistry, buf: EmissionBuffer) -> None:
    buf.push_line("@dataclass(frozen=True, kw_only=True)")
    buf.push_line(f"class {derived.name}:")
    with buf.indented():
        buf.push_doc([f"Fields written in order: {describe(derived) or 'none'}."])
        _emit_field_declarations(derived.fields, buf)
        buf.push_line()
        buf.push_line("def write_redis_args(self, out: RedisWrite) -> None:")
        with buf.indented():
            _emit_field_writes(derived.fields, registry, buf)


def _emit_variant_type(derived: VariantType, registry: TypeRegistry, buf: EmissionBuffer) -> None:
    buf.push_line(f"class {derived.name}:")
    with buf.indented():
        buf.push_doc(
            [
                f"Exactly one of: {describe(derived)}.",
                "",
                f"Construct a variant through its class attribute, e.g. ``{derived.name}."
                f"{derived.variants[0].name}(...)``." if derived.variants else "Has no variants.",
            ]
        )
        buf.push_line()
        buf.push_line("def write_redis_args(self, out: RedisWrite) -> None:")
        with buf.indented():
            buf.push_line("match self:")
            with buf.indented():
                for variant in derived.variants:
                    buf.push_line(f"case {derived.name}.{variant.name}():")
                    with buf.indented():
                        _emit_variant_write(variant, registry, buf)
                buf.push_line("case _:")
                with buf.indented():
                    buf.push_line(
                        f'raise TypeError(f"{{type(self).__name__}} is not a variant of '
                        f'{derived.name}")'
                    )

    for variant in derived.variants:
        class_name = f"_{derived.name}{variant.name}"
        buf.push_line()
        buf.push_line()
        if isinstance(variant, RecordVariant):
            buf.push_line("@dataclass(frozen=True, kw_only=True)")
        else:
            buf.push_line("@dataclass(frozen=True)")
        buf.push_line(f"class {class_name}({derived.name}):")
        with buf.indented():
            token = f"``{variant.wire_token}``" if variant.wire_token else variant.name
            buf.push_doc([f"The {token} variant of :class:`{derived.name}`."])
            if isinstance(variant, Wrapper):
                buf.push_line()
                buf.push_line(f"value: {variant.inner.render()}")
            elif isinstance(variant, RecordVariant):
                _emit_field_declarations(variant.fields, buf)
        buf.push_line()
        buf.push_line()
        buf.push_line(f"{derived.name}.{variant.name} = {class_name}")


def _emit_variant_write(variant: Variant, registry: TypeRegistry, buf: EmissionBuffer) -> None:
    wrote = False
    if variant.wire_token is not None:
        if not (isinstance(variant, Wrapper) and _token_is_inner(variant.inner, registry)):
            buf.push_line(f"out.write_arg({literal(variant.wire_token)})")
            wrote = True
    if isinstance(variant, Wrapper):
        buf.push_line("write_redis_args(self.value, out)")
        wrote = True
    elif isinstance(variant, RecordVariant) and variant.fields:
        _emit_field_writes(variant.fields, registry, buf)
        wrote = True
    if not wrote:
        buf.push_line("pass")


def _emit_field_declarations(fields: tuple[RecordField, ...], buf: EmissionBuffer) -> None:
    if not fields:
        return
    buf.push_line()
    for field in fields:
        if isinstance(field, FlagField):
            buf.push_line(f"{field.name}: bool = {field.default}")
        elif field.type.optional:
            buf.push_line(f"{field.name}: {field.type.render()} = None")
        else:
            buf.push_line(f"{field.name}: {field.type.render()}")


def _emit_field_writes(
    fields: tuple[RecordField, ...], registry: TypeRegistry, buf: EmissionBuffer
) -> None:
    if not fields:
        buf.push_line("pass")
        return
    for field in fields:
        attr = f"self.{field.name}"
        if isinstance(field, FlagField):
            buf.push_line(f"if {attr}:")
            with buf.indented():
                buf.push_line(f"out.write_arg({literal(field.wire_token)})")
            continue

        if field.prefix_token is None or _token_is_inner(field.type, registry):
            buf.push_line(f"write_redis_args({attr}, out)")
        elif field.type.optional:
            buf.push_line(f"if {attr} is not None:")
            with buf.indented():
                buf.push_line(f"out.write_arg({literal(field.prefix_token)})")
                buf.push_line(f"write_redis_args({attr}, out)")
        else:
            buf.push_line(f"out.write_arg({literal(field.prefix_token)})")
            buf.push_line(f"write_redis_args({attr}, out)")


def _token_is_inner(ref: TypeRef, registry: TypeRegistry) -> bool:
    """Whether the referenced type already writes the token itself."""
    return ref.derived and registry.writes_own_token(ref.annotation)
