"""Canonical Pydantic models shared across all rediscodegen modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Schema models** -- the in-memory form of the Redis ``commands.json``
document, produced by :mod:`rediscodegen.parser` and consumed by the
generator:
    :class:`CommandGroup`, :class:`CommandFlag`, :class:`DocFlag`,
    :class:`ArgType`, :class:`CommandArgument`, :class:`CommandDefinition`,
    and :class:`CommandSet`.

**Generation models** -- the knobs that steer one generation run:
    :class:`OutputFlavor`, :class:`GenerationMode`, :class:`CollisionPolicy`,
    and :class:`GenerationConfig`.

Unknown keys in the schema document (``key_specs``, ``reply_schema``,
``display_text`` and friends) are ignored; the generator only needs the
fields declared here.
"""

from __future__ import annotations

import enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel


# --- Command metadata enums ---


class CommandGroup(str, enum.Enum):
    """Documentation group of a command.

    Declaration order is significant: generated modules list commands sorted
    by group in this order, then by name.
    """

    GENERIC = "generic"
    STRING = "string"
    LIST = "list"
    SET = "set"
    SORTED_SET = "sorted-set"
    HASH = "hash"
    PUBSUB = "pubsub"
    TRANSACTIONS = "transactions"
    CONNECTION = "connection"
    SERVER = "server"
    SCRIPTING = "scripting"
    HYPERLOGLOG = "hyperloglog"
    CLUSTER = "cluster"
    SENTINEL = "sentinel"
    GEO = "geo"
    STREAM = "stream"
    BITMAP = "bitmap"

    @property
    def order(self) -> int:
        """Position of the group in declaration order."""
        return list(CommandGroup).index(self)

    @property
    def display_name(self) -> str:
        """CamelCase label used in generated documentation (``SortedSet``)."""
        return "".join(part.capitalize() for part in self.value.split("-"))


class CommandFlag(str, enum.Enum):
    """Capability flag attached to a command."""

    ADMIN = "admin"
    ALLOW_BUSY = "allow_busy"
    ASKING = "asking"
    BLOCKING = "blocking"
    DENYOOM = "denyoom"
    FAST = "fast"
    LOADING = "loading"
    MOVABLEKEYS = "movablekeys"
    NO_AUTH = "no_auth"
    NO_ASYNC_LOADING = "no_async_loading"
    NO_MANDATORY_KEYS = "no_mandatory_keys"
    NO_MULTI = "no_multi"
    NOSCRIPT = "noscript"
    PUBSUB = "pubsub"
    RANDOM = "random"
    READONLY = "readonly"
    SORT_FOR_SCRIPT = "sort_for_script"
    SKIP_MONITOR = "skip_monitor"
    SKIP_SLOWLOG = "skip_slowlog"
    STALE = "stale"
    WRITE = "write"

    @property
    def description(self) -> str:
        """One-line description rendered in the ``CommandFlags:`` doc section."""
        return _FLAG_DESCRIPTIONS[self]


_FLAG_DESCRIPTIONS: dict[CommandFlag, str] = {
    CommandFlag.ADMIN: "Admin: This command is an administrative command.",
    CommandFlag.ALLOW_BUSY: (
        "AllowBusy: Permit the command while the server is blocked either by "
        "a script or by a slow module command."
    ),
    CommandFlag.ASKING: (
        "Asking: This command is allowed even during hash slot migration. "
        "This flag is relevant in Redis Cluster deployments."
    ),
    CommandFlag.BLOCKING: "Blocking: This command may block the requesting client.",
    CommandFlag.DENYOOM: (
        "Denyoom: This command is rejected if the server's memory usage is too "
        "high (see the maxmemory configuration directive)."
    ),
    CommandFlag.FAST: (
        "Fast: This command operates in constant or log(N) time. This flag is "
        "used for monitoring latency with the LATENCY command."
    ),
    CommandFlag.LOADING: "Loading: This command is allowed while the database is loading.",
    CommandFlag.MOVABLEKEYS: (
        "Movablekeys: The first key, last key, and step values don't determine "
        "all key positions. Clients need to use COMMAND GETKEYS or key "
        "specifications in this case."
    ),
    CommandFlag.NO_AUTH: "NoAuth: Executing the command doesn't require authentication.",
    CommandFlag.NO_ASYNC_LOADING: (
        "NoAsyncLoading: This command is denied during asynchronous loading "
        "(that is when a replica uses disk-less SWAPDB SYNC, and allows access "
        "to the old dataset)."
    ),
    CommandFlag.NO_MANDATORY_KEYS: (
        "NoMandatoryKeys: This command may accept key name arguments, but "
        "these aren't mandatory."
    ),
    CommandFlag.NO_MULTI: (
        "NoMulti: This command isn't allowed inside the context of a transaction."
    ),
    CommandFlag.NOSCRIPT: "Noscript: This command can't be called from scripts or functions.",
    CommandFlag.PUBSUB: "Pubsub: This command is related to Redis Pub/Sub.",
    CommandFlag.RANDOM: (
        "Random: This command returns random results, which is a concern with "
        "verbatim script replication. As of Redis 7.0, this flag is a command tip."
    ),
    CommandFlag.READONLY: "Readonly: This command doesn't modify data.",
    CommandFlag.SORT_FOR_SCRIPT: (
        "SortForScript: This command's output is sorted when called from a script."
    ),
    CommandFlag.SKIP_MONITOR: "SkipMonitor: This command is not shown in MONITOR's output.",
    CommandFlag.SKIP_SLOWLOG: (
        "SkipSlowlog: This command is not shown in SLOWLOG's output. As of "
        "Redis 7.0, this flag is a command tip."
    ),
    CommandFlag.STALE: "Stale: This command is allowed while a replica has stale data.",
    CommandFlag.WRITE: "Write: This command may modify data.",
}


class DocFlag(str, enum.Enum):
    """Documentation flag; ``deprecated`` marks a deprecated command."""

    DEPRECATED = "deprecated"
    SYSCMD = "syscmd"


# --- Argument tree ---


class ArgType(str, enum.Enum):
    """Shape of a command argument.

    ``PATTERN`` and ``UNIX_TIME`` are accepted when loading but the type
    synthesis engine does not derive types for them.
    """

    STRING = "string"
    INTEGER = "integer"
    DOUBLE = "double"
    KEY = "key"
    PATTERN = "pattern"
    UNIX_TIME = "unix-time"
    PURE_TOKEN = "pure-token"
    ONEOF = "oneof"
    BLOCK = "block"


SCALAR_LEAVES = frozenset({ArgType.STRING, ArgType.INTEGER, ArgType.DOUBLE, ArgType.KEY})
"""Argument types the synthesis engine treats as scalar leaves."""


class CommandArgument(BaseModel):
    """One node of a command's argument tree.

    ``oneof`` and ``block`` arguments own nested ``arguments``; every other
    type is a leaf. ``token`` is the literal keyword written on the wire
    before (or, for ``pure-token``, instead of) the value. An empty-string
    token is a real token (``MIGRATE`` writes ``""`` in place of a key).

    Example::

        CommandArgument(name="db", type=ArgType.INTEGER, token="DB", optional=True)
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: ArgType
    token: Optional[str] = None
    multiple: bool = False
    optional: bool = False
    arguments: list[CommandArgument] = Field(default_factory=list)

    @property
    def named_token(self) -> Optional[str]:
        """The wire token if it is non-empty, else ``None``.

        Derived type and variant names prefer a non-empty token over the
        argument name.
        """
        return self.token or None

    @property
    def is_scalar(self) -> bool:
        """Whether the argument is a scalar leaf (string, integer, double, key)."""
        return self.type in SCALAR_LEAVES

    @property
    def is_container(self) -> bool:
        """Whether the argument is a ``oneof`` or ``block``."""
        return self.type in (ArgType.ONEOF, ArgType.BLOCK)


class CommandDefinition(BaseModel):
    """One entry of the command schema.

    ``history`` is a list of ``[version, change]`` pairs. ACL categories are
    kept as strings and normalised to the ``@category`` form for display.
    """

    summary: str = ""
    since: str = ""
    group: CommandGroup
    complexity: Optional[str] = None
    deprecated_since: Optional[str] = None
    replaced_by: Optional[str] = None
    history: list[tuple[str, str]] = Field(default_factory=list)
    acl_categories: list[str] = Field(default_factory=list)
    arity: int = 0
    arguments: list[CommandArgument] = Field(default_factory=list)
    command_flags: list[CommandFlag] = Field(default_factory=list)
    doc_flags: list[DocFlag] = Field(default_factory=list)
    hints: list[str] = Field(default_factory=list)

    @property
    def is_deprecated(self) -> bool:
        """Whether the ``deprecated`` doc flag is set."""
        return DocFlag.DEPRECATED in self.doc_flags


class CommandSet(RootModel[dict[str, CommandDefinition]]):
    """Ordered mapping of command name to :class:`CommandDefinition`.

    Document order is preserved; the generator sorts on its own.
    """

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, name: str) -> CommandDefinition:
        return self.root[name]

    def __contains__(self, name: object) -> bool:
        return name in self.root

    def items(self):  # noqa: ANN201
        return self.root.items()

    def in_generation_order(self) -> list[tuple[str, CommandDefinition]]:
        """Commands sorted by (group declaration order, command name).

        Every generated module walks commands in this order, which makes
        repeated runs over the same schema byte-identical.
        """
        return sorted(self.root.items(), key=lambda item: (item[1].group.order, item[0]))


# --- Generation settings ---


class OutputFlavor(str, enum.Enum):
    """The six generated module flavors. A closed set; see
    :mod:`rediscodegen.generator.strategies`.
    """

    COMMANDS_TRAIT = "commands"
    COMMAND_IMPL = "command"
    ASYNC_COMMANDS_TRAIT = "async-commands"
    PIPELINE = "pipeline"
    CLUSTER_PIPELINE = "cluster-pipeline"
    TOKENS = "tokens"

    @property
    def module_name(self) -> str:
        """File stem of the generated module (``async_commands``)."""
        return self.value.replace("-", "_")


class GenerationMode(str, enum.Enum):
    """``full`` maps repeating arguments to sequences; ``ignore-multiple``
    generates single-value signatures for them.
    """

    FULL = "full"
    IGNORE_MULTIPLE = "ignore-multiple"


class CollisionPolicy(str, enum.Enum):
    """What to do when two different argument shapes derive the same type name.

    ``FIRST_WINS`` reuses the first registration (the shapes are treated as
    one shared type). ``ERROR`` raises
    :class:`~rediscodegen.exceptions.TypeNameCollisionError`.
    """

    FIRST_WINS = "first-wins"
    ERROR = "error"


# --- Generation defaults ---

DEFAULT_EXCLUSIONS: tuple[str, ...] = (
    "SCAN",
    "HSCAN",
    "SSCAN",
    "ZSCAN",
    "CLIENT KILL",
    "OBJECT",
)
"""Commands whose call shape does not fit one method per command (cursors, filters)."""

DEFAULT_NAME_OVERRIDES: dict[str, str] = {
    "DEL": "delete",
    "MOVE": "move_key",
}
"""Exposed method names that replace the snake-cased command name."""

DEFAULT_LEGACY_ALIASES: dict[str, str] = {
    "GETDEL": "get_del",
    "ZREMRANGEBYLEX": "zrembylex",
}
"""Canonical command name to the deprecated alias emitted after it."""

DEFAULT_FEATURE_GATES: dict[str, str] = {
    "group:geo": "geospatial",
    "group:stream": "streams",
    "command:ACL": "acl",
}
"""Feature gate lookup keyed by ``group:<group>`` or ``command:<container>``."""

DEFAULT_RUNTIME_MODULE = "redis_runtime"


class GenerationConfig(BaseModel):
    """Everything one generation run needs besides the schema itself.

    Passed explicitly into :func:`~rediscodegen.generator.dispatcher.generate`
    so that generation is a pure function of ``(flavor, commands, config)``.
    Built by :func:`~rediscodegen.config.resolve_config` from defaults,
    the project config file, environment variables, and CLI flags.

    Example::

        GenerationConfig(exclusions=["SCAN"], on_type_collision="error")
    """

    exclusions: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUSIONS))
    name_overrides: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_NAME_OVERRIDES)
    )
    legacy_aliases: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_LEGACY_ALIASES)
    )
    feature_gates: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FEATURE_GATES)
    )
    runtime_module: str = DEFAULT_RUNTIME_MODULE
    on_type_collision: CollisionPolicy = CollisionPolicy.FIRST_WINS
    mode: GenerationMode = GenerationMode.FULL
    flavors: list[OutputFlavor] = Field(default_factory=lambda: list(OutputFlavor))

    def is_excluded(self, command_name: str) -> bool:
        """Whether *command_name* is on the exclusion list (case-insensitive)."""
        upper = command_name.upper()
        return any(upper == name.upper() for name in self.exclusions)

    def feature_for(self, keys: tuple[str, ...]) -> Optional[str]:
        """Return the first feature gate found for *keys*, in order."""
        for key in keys:
            feature = self.feature_gates.get(key)
            if feature:
                return feature
        return None


class ProjectConfig(BaseModel):
    """Contents of a ``rediscodegen.json`` config file.

    Every field is optional; unset fields leave the built-in default alone.
    The plain table fields *replace* the default tables, the ``extend_*``
    fields add entries to them. Unknown keys are rejected so that typos do
    not silently fall back to defaults.

    Example::

        {
            "runtime_module": "myredis._runtime",
            "extend_exclusions": ["MONITOR"],
            "extend_name_overrides": {"TYPE": "key_type"},
            "on_type_collision": "error"
        }
    """

    model_config = ConfigDict(extra="forbid")

    exclusions: Optional[list[str]] = None
    name_overrides: Optional[dict[str, str]] = None
    legacy_aliases: Optional[dict[str, str]] = None
    feature_gates: Optional[dict[str, str]] = None
    extend_exclusions: list[str] = Field(default_factory=list)
    extend_name_overrides: dict[str, str] = Field(default_factory=dict)
    extend_legacy_aliases: dict[str, str] = Field(default_factory=dict)
    extend_feature_gates: dict[str, str] = Field(default_factory=dict)
    runtime_module: Optional[str] = None
    on_type_collision: Optional[CollisionPolicy] = None
    mode: Optional[GenerationMode] = None
    flavors: Optional[list[OutputFlavor]] = None


CommandArgument.model_rebuild()
