"""Tests for rediscodegen.generator.command (the Command wrapper).

Covers:
- Method names: snake-casing, overrides, aliases
- Feature gate lookup keys
- Deprecation messages and documentation lines
- Parameter mapping for every argument shape, in both generation modes
- Parameter name de-duplication and trailing defaults
"""

from __future__ import annotations

import pytest

from rediscodegen.generator.command import (
    Command,
    Parameter,
    ParamKind,
    build_commands,
    map_argument,
)
from rediscodegen.generator.types import TypeRegistry, synthesize
from rediscodegen.models import (
    CommandArgument,
    CommandSet,
    GenerationConfig,
    GenerationMode,
)


@pytest.fixture
def registry(commands: CommandSet) -> TypeRegistry:
    return synthesize(commands, GenerationConfig())


def _command(commands: CommandSet, name: str, mode: GenerationMode = GenerationMode.FULL) -> Command:
    return Command(name, commands[name], mode=mode)


def _signature(command: Command, registry: TypeRegistry) -> list[str]:
    return [p.render() for p in command.parameters(registry) if p.kind != ParamKind.LITERAL]


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


class TestMethodName:
    """Exposed method names."""

    def test_snake_cased(self, commands: CommandSet, default_config: GenerationConfig) -> None:
        assert _command(commands, "GET").method_name(default_config) == "get"
        assert _command(commands, "ACL CAT").method_name(default_config) == "acl_cat"
        assert _command(commands, "ZREMRANGEBYLEX").method_name(default_config) == "zremrangebylex"

    def test_overrides(self, commands: CommandSet, default_config: GenerationConfig) -> None:
        assert _command(commands, "DEL").method_name(default_config) == "delete"
        assert _command(commands, "MOVE").method_name(default_config) == "move_key"

    def test_override_lookup_is_case_insensitive(self, commands: CommandSet) -> None:
        config = GenerationConfig(name_overrides={"del": "remove"})
        assert _command(commands, "DEL").method_name(config) == "remove"

    def test_alias(self, commands: CommandSet, default_config: GenerationConfig) -> None:
        canonical = _command(commands, "GETDEL")
        alias = canonical.as_alias("get_del")
        assert alias.is_alias
        assert not canonical.is_alias
        assert alias.alias_of is canonical
        assert alias.method_name(default_config) == "get_del"
        assert alias.wire_words == ["GETDEL"]

    def test_wire_words(self, commands: CommandSet) -> None:
        assert _command(commands, "CLIENT KILL").wire_words == ["CLIENT", "KILL"]

    def test_build_commands(self, commands: CommandSet) -> None:
        config = GenerationConfig(mode=GenerationMode.IGNORE_MULTIPLE)
        built = build_commands(commands, config)
        assert [c.name for c in built][:3] == ["COPY", "DEL", "MIGRATE"]
        assert all(c.mode == GenerationMode.IGNORE_MULTIPLE for c in built)


class TestFeatureGates:
    """Gate lookup keys and resolution."""

    def test_keys(self, commands: CommandSet) -> None:
        assert _command(commands, "ACL CAT").feature_gate_keys() == ("group:server", "command:ACL")
        assert _command(commands, "XADD").feature_gate_keys() == ("group:stream", "command:XADD")

    def test_resolution(self, commands: CommandSet, default_config: GenerationConfig) -> None:
        def gate(name: str):
            return default_config.feature_for(_command(commands, name).feature_gate_keys())

        assert gate("ACL CAT") == "acl"
        assert gate("GEOSEARCH") == "geospatial"
        assert gate("XADD") == "streams"
        assert gate("GET") is None


# ---------------------------------------------------------------------------
# Documentation
# ---------------------------------------------------------------------------


class TestDocumentation:
    """Docstring lines and deprecation messages."""

    def test_copy(self, commands: CommandSet) -> None:
        assert _command(commands, "COPY").documentation() == [
            "COPY",
            "",
            "Copies the value of a key to a new key.",
            "",
            "Since: Redis 6.2.0",
            "Group: Generic",
            "Complexity: O(N) worst case for collections, where N is the number of nested items. O(1) for string values.",
            "CommandFlags:",
            "* Write: This command may modify data.",
            "* Denyoom: This command is rejected if the server's memory usage is too high (see the maxmemory configuration directive).",
            "ACL Categories:",
            "* @keyspace",
            "* @write",
            "* @slow",
        ]

    def test_replaced_by(self, commands: CommandSet) -> None:
        lines = _command(commands, "GEORADIUS").documentation()
        assert "Group: Geo" in lines
        replaced = lines.index(
            "Replaced By: `GEOSEARCH` and `GEOSEARCHSTORE` with the `BYRADIUS` argument"
        )
        assert replaced < next(i for i, line in enumerate(lines) if line.startswith("Complexity:"))

    def test_single_value_title(self, commands: CommandSet) -> None:
        lines = _command(commands, "DEL", GenerationMode.IGNORE_MULTIPLE).documentation()
        assert lines[0] == "DEL (single value variant)"

    def test_group_display_name(self, commands: CommandSet) -> None:
        assert "Group: SortedSet" in _command(commands, "ZADD").documentation()

    def test_acl_categories_normalised(self, make_commands) -> None:
        commands = make_commands({"PING": {"acl_categories": ["FAST", "@connection"]}})
        lines = Command("PING", commands["PING"]).documentation()
        assert lines[-3:] == ["ACL Categories:", "* @fast", "* @connection"]

    def test_minimal_entry(self, make_commands) -> None:
        commands = make_commands({"PING": {}})
        assert Command("PING", commands["PING"]).documentation() == ["PING", "", "Group: Generic"]

    def test_deprecation_message(self, commands: CommandSet, make_commands) -> None:
        assert (
            _command(commands, "GEORADIUS").deprecation_message()
            == "Deprecated in redis since redis version 6.2.0."
        )
        assert _command(commands, "GEOSEARCH").deprecation_message() is None
        old = make_commands({"OLD": {"doc_flags": ["deprecated"]}})
        assert Command("OLD", old["OLD"]).deprecation_message() == "Deprecated in redis itself."


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


class TestParameters:
    """Mapping top-level arguments to method parameters."""

    def test_copy(self, commands: CommandSet, registry: TypeRegistry) -> None:
        assert _signature(_command(commands, "COPY"), registry) == [
            "source: ToRedisArgs",
            "destination: ToRedisArgs",
            "destination_db: Optional[tokens.Db] = None",
            "replace: bool = False",
        ]

    def test_token_written_by_derived_type_is_not_repeated(
        self, commands: CommandSet, registry: TypeRegistry
    ) -> None:
        params = _command(commands, "COPY").parameters(registry)
        assert params[2].wire_token is None
        assert params[3] == Parameter(
            kind=ParamKind.FLAG,
            name="replace",
            annotation="bool",
            wire_token="REPLACE",
            optional=True,
            default="False",
        )

    def test_untokenized_integer_stays_scalar(self, commands: CommandSet, registry: TypeRegistry) -> None:
        assert _signature(_command(commands, "MOVE"), registry) == ["key: ToRedisArgs", "db: int"]

    def test_sort(self, commands: CommandSet, registry: TypeRegistry) -> None:
        command = _command(commands, "SORT")
        assert _signature(command, registry) == [
            "key: ToRedisArgs",
            "by_pattern: Optional[ToRedisArgs] = None",
            "limit: Optional[tokens.Limit] = None",
            "order: Optional[tokens.Order] = None",
            "sorting: bool = False",
            "destination: Optional[tokens.Store] = None",
        ]
        tokens = [p.wire_token for p in command.parameters(registry)]
        assert tokens == [None, "BY", "LIMIT", None, "ALPHA", None]

    def test_only_trailing_optionals_get_defaults(
        self, commands: CommandSet, registry: TypeRegistry
    ) -> None:
        assert _signature(_command(commands, "ZADD"), registry) == [
            "key: ToRedisArgs",
            "condition: Optional[tokens.Condition]",
            "comparison: Optional[tokens.Comparison]",
            "change: bool",
            "increment: bool",
            "data: Sequence[tokens.Data]",
        ]

    def test_keyword_argument_name(self, commands: CommandSet, registry: TypeRegistry) -> None:
        signature = _signature(_command(commands, "GEOSEARCH"), registry)
        assert signature[:3] == ["key: ToRedisArgs", "from_: tokens.From", "by: tokens.By"]
        assert signature[-1] == "withhash: bool = False"

    def test_multiple_full_mode(self, commands: CommandSet, registry: TypeRegistry) -> None:
        assert _signature(_command(commands, "DEL"), registry) == ["key: Sequence[ToRedisArgs]"]
        migrate = _command(commands, "MIGRATE").parameters(registry)
        assert migrate[-1].render() == "keys: Optional[Sequence[ToRedisArgs]] = None"
        assert migrate[-1].wire_token == "KEYS"

    def test_multiple_ignore_mode(self, commands: CommandSet, registry: TypeRegistry) -> None:
        mode = GenerationMode.IGNORE_MULTIPLE
        assert _signature(_command(commands, "DEL", mode), registry) == ["key: ToRedisArgs"]
        assert _signature(_command(commands, "ZADD", mode), registry)[-1] == "data: tokens.Data"
        migrate = _command(commands, "MIGRATE", mode).parameters(registry)
        assert migrate[-1].render() == "keys: Optional[tokens.Keys] = None"
        assert migrate[-1].wire_token is None

    def test_required_pure_token_is_literal(self, make_commands) -> None:
        commands = make_commands(
            {
                "ZRANGE": {
                    "arguments": [
                        {"name": "key", "type": "key"},
                        {"name": "withscores", "type": "pure-token", "token": "WITHSCORES"},
                        {"name": "rev", "type": "pure-token", "token": "REV", "optional": True},
                    ]
                }
            }
        )
        params = Command("ZRANGE", commands["ZRANGE"]).parameters(TypeRegistry())
        assert [p.kind for p in params] == [ParamKind.VALUE, ParamKind.LITERAL, ParamKind.FLAG]
        assert params[1].wire_token == "WITHSCORES"
        assert params[1].name == ""

    def test_tokenless_pure_token_dropped(self) -> None:
        arg = CommandArgument.model_validate({"name": "x", "type": "pure-token"})
        assert map_argument(arg, TypeRegistry()) is None

    def test_duplicate_and_reserved_names(self, make_commands) -> None:
        commands = make_commands(
            {
                "LMOVE": {
                    "arguments": [
                        {"name": "key", "type": "key"},
                        {"name": "key", "type": "key"},
                        {"name": "rv", "type": "string"},
                        {"name": "self", "type": "integer"},
                    ]
                }
            }
        )
        signature = _signature(Command("LMOVE", commands["LMOVE"]), TypeRegistry())
        assert signature == ["key: ToRedisArgs", "key1: ToRedisArgs", "rv1: ToRedisArgs", "self1: int"]

    def test_pattern_and_unix_time(self, make_commands) -> None:
        commands = make_commands(
            {
                "EXPIREAT": {
                    "arguments": [
                        {"name": "key", "type": "key"},
                        {"name": "unix-time-seconds", "type": "unix-time"},
                        {"name": "pattern", "type": "pattern", "token": "MATCH", "optional": True},
                    ]
                }
            }
        )
        command = Command("EXPIREAT", commands["EXPIREAT"])
        assert _signature(command, TypeRegistry()) == [
            "key: ToRedisArgs",
            "unix_time_seconds: int",
            "pattern: Optional[ToRedisArgs] = None",
        ]
        assert command.parameters(TypeRegistry())[2].wire_token == "MATCH"
