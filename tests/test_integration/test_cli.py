"""End-to-end tests for the rediscodegen CLI.

Covers:
- generate: writing a package, unchanged detection, --stdout, --no-init,
  --runtime-module, --ignore-multiple, stdin input, project config files
- Exit codes for usage, schema, config, and collision errors
- inspect commands / inspect types in table, plain, and JSON output
- --version and --help
"""

from __future__ import annotations

import json
import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

from rediscodegen import __version__
from rediscodegen.app import app
from rediscodegen.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_SCHEMA_ERROR,
)

runner = CliRunner()

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
SCHEMA = str(FIXTURES_DIR / "commands.json")

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def _strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


# ---------------------------------------------------------------------------
# Top-level
# ---------------------------------------------------------------------------


class TestTopLevel:
    """Version and help."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"rediscodegen {__version__}"

    def test_help_lists_subcommands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        text = _strip_ansi(result.output)
        assert "generate" in text
        assert "inspect" in text

    def test_generate_help(self) -> None:
        result = runner.invoke(app, ["generate", "--help"])
        assert result.exit_code == 0
        text = _strip_ansi(result.output)
        for option in ("--out", "--flavor", "--runtime-module", "--on-collision", "--stdout"):
            assert option in text


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerate:
    """Writing the generated package."""

    def test_writes_package(self, isolated_config: Path) -> None:
        out = isolated_config / "gen"
        result = runner.invoke(app, ["generate", SCHEMA, "--out", str(out)])

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out.iterdir()) == [
            "__init__.py",
            "async_commands.py",
            "cluster_pipeline.py",
            "command.py",
            "commands.py",
            "pipeline.py",
            "tokens.py",
        ]
        assert "Loaded 17 commands" in result.output
        assert result.output.count("Wrote ") == 7
        assert "Provide a 'redis_runtime' package" in result.output

    def test_second_run_is_unchanged(self, isolated_config: Path) -> None:
        out = isolated_config / "gen"
        runner.invoke(app, ["generate", SCHEMA, "--out", str(out)])
        result = runner.invoke(app, ["generate", SCHEMA, "--out", str(out)])

        assert result.exit_code == 0
        assert "Wrote " not in result.output
        assert "7 file(s) unchanged" in result.output

    def test_selected_flavors_no_init(self, isolated_config: Path) -> None:
        out = isolated_config / "gen"
        result = runner.invoke(
            app,
            ["generate", SCHEMA, "-o", str(out), "-f", "tokens", "-f", "command", "--no-init"],
        )
        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out.iterdir()) == ["command.py", "tokens.py"]

    def test_stdout(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app, ["--quiet", "generate", SCHEMA, "--stdout", "--flavor", "tokens"]
        )
        assert result.exit_code == 0, result.output
        assert result.output.startswith('"""Argument types derived from the Redis command schema.')
        assert "class Db:" in result.output
        assert not (isolated_config / "tokens.py").exists()

    def test_runtime_module_flag(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app,
            ["-q", "generate", SCHEMA, "--stdout", "-f", "command", "--runtime-module", "myredis._rt"],
        )
        assert result.exit_code == 0, result.output
        assert "from myredis._rt.cmd import BaseCmd" in result.output

    def test_runtime_module_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REDISCODEGEN_RUNTIME_MODULE", "envredis")
        result = runner.invoke(app, ["-q", "generate", SCHEMA, "--stdout", "-f", "pipeline"])
        assert result.exit_code == 0, result.output
        assert "from envredis.pipeline import BasePipeline" in result.output

    def test_ignore_multiple(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app, ["-q", "generate", SCHEMA, "--stdout", "-f", "commands", "--ignore-multiple"]
        )
        assert result.exit_code == 0, result.output
        assert "DEL (single value variant)" in result.output

    def test_schema_from_stdin(self, isolated_config: Path) -> None:
        schema = json.dumps({"PING": {"group": "connection", "summary": "Returns the server's liveliness response."}})
        result = runner.invoke(
            app, ["-q", "generate", "-", "--stdout", "-f", "commands"], input=schema
        )
        assert result.exit_code == 0, result.output
        assert "    def ping(self) -> Any:\n" in result.output

    def test_warns_when_everything_is_excluded(self, isolated_config: Path) -> None:
        schema = isolated_config / "scan.json"
        schema.write_text(json.dumps({"SCAN": {"group": "generic"}}))
        result = runner.invoke(app, ["-q", "generate", str(schema), "--out", "gen"])
        assert result.exit_code == 0, result.output
        assert "Warning: No commands left after exclusions" in result.output

    def test_project_config(self, isolated_config: Path) -> None:
        (isolated_config / "rediscodegen.json").write_text(
            json.dumps({"runtime_module": "myredis._rt", "extend_exclusions": ["GET"]})
        )
        result = runner.invoke(app, ["-q", "generate", SCHEMA, "--stdout", "-f", "commands"])
        assert result.exit_code == 0, result.output
        assert "from myredis._rt.features import ENABLED_FEATURES" in result.output
        assert "def get(" not in result.output
        assert "def getdel(" in result.output

    def test_verbose_reports_reused_types(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["-v", "generate", SCHEMA, "--stdout", "-f", "tokens"])
        assert result.exit_code == 0
        assert "[debug] XADD.trim.count reuses type Limit registered from SORT.limit" in result.output


class TestGenerateErrors:
    """Exit codes for failures."""

    def test_out_required(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["generate", SCHEMA])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "--out is required" in result.output

    def test_stdout_and_out_conflict(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app, ["generate", SCHEMA, "--stdout", "-f", "tokens", "--out", "gen"]
        )
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "mutually exclusive" in result.output

    def test_stdout_needs_one_flavor(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["generate", SCHEMA, "--stdout"])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "exactly one --flavor" in result.output

    def test_unknown_flavor(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["generate", SCHEMA, "--stdout", "-f", "sync-commands"])
        assert result.exit_code == 2

    def test_missing_schema(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["generate", "nope.json", "--out", "gen"])
        assert result.exit_code == EXIT_SCHEMA_ERROR
        assert not (isolated_config / "gen").exists()

    def test_invalid_schema(self, isolated_config: Path) -> None:
        bad = isolated_config / "bad.json"
        bad.write_text(json.dumps({"GET": {"group": "no-such-group"}}))
        result = runner.invoke(app, ["generate", str(bad), "--out", "gen"])
        assert result.exit_code == EXIT_SCHEMA_ERROR
        assert "GET" in result.output

    def test_missing_config(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["generate", SCHEMA, "--out", "gen", "--config", "missing.json"])
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Config file not found" in result.output

    def test_invalid_config(self, isolated_config: Path) -> None:
        (isolated_config / "rediscodegen.json").write_text(json.dumps({"exclude": ["GET"]}))
        result = runner.invoke(app, ["generate", SCHEMA, "--out", "gen"])
        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_collision_error_policy(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app, ["generate", SCHEMA, "--out", "gen", "--on-collision", "error"]
        )
        assert result.exit_code == EXIT_GENERATION_ERROR
        assert "Derived type name 'Limit'" in result.output
        assert not (isolated_config / "gen").exists()


# ---------------------------------------------------------------------------
# inspect
# ---------------------------------------------------------------------------


class TestInspectCommands:
    """The command listing."""

    def _rows(self) -> list[dict[str, str]]:
        result = runner.invoke(app, ["--json", "inspect", "commands", SCHEMA])
        assert result.exit_code == 0, result.output
        return json.loads(result.output)

    def test_json_rows(self, isolated_config: Path) -> None:
        rows = self._rows()
        assert len(rows) == 19
        assert rows[0] == {
            "Command": "COPY",
            "Group": "Generic",
            "Since": "6.2.0",
            "Method": "copy",
            "Feature": "-",
            "Status": "",
        }

    def test_status_and_features(self, isolated_config: Path) -> None:
        by_method = {row["Method"]: row for row in self._rows()}
        assert by_method["scan"]["Status"] == "excluded"
        assert by_method["client_kill"]["Status"] == "excluded"
        assert by_method["georadius"]["Status"] == "deprecated"
        assert by_method["georadius"]["Feature"] == "geospatial"
        assert by_method["xadd"]["Feature"] == "streams"
        assert by_method["acl_cat"]["Feature"] == "acl"
        assert by_method["delete"]["Command"] == "DEL"

    def test_alias_rows(self, isolated_config: Path) -> None:
        rows = self._rows()
        methods = [row["Method"] for row in rows]
        assert methods.index("get_del") == methods.index("getdel") + 1
        assert rows[methods.index("get_del")]["Status"] == "alias of getdel"

    def test_plain(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--plain", "inspect", "commands", SCHEMA])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "Command\tGroup\tSince\tMethod\tFeature\tStatus"
        assert "SCAN\tGeneric\t2.8.0\tscan\t-\texcluded" in lines

    def test_missing_schema(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["inspect", "commands", "nope.json"])
        assert result.exit_code == EXIT_SCHEMA_ERROR


class TestInspectTypes:
    """The derived type listing."""

    def test_plain(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--plain", "inspect", "types", SCHEMA])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "Type\tKind\tMembers\tDerived From"
        assert lines[1] == "Db\tnewtype\tDB int\tCOPY.destination-db"
        assert "Limit\trecord\toffset, count\tSORT.limit" in lines
        assert "Condition\tvariant\tNx | Xx\tZADD.condition" not in lines

    def test_json(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--json", "inspect", "types", SCHEMA])
        assert result.exit_code == 0, result.output
        rows = json.loads(result.output)
        assert len(rows) == 27
        by_name = {row["Type"]: row for row in rows}
        assert by_name["Condition"]["Derived From"] == "SET.condition"
        assert by_name["Unit"]["Members"] == "M | Km | Ft | Mi"

    def test_strict_reports_collision(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["inspect", "types", SCHEMA, "--strict"])
        assert result.exit_code == EXIT_GENERATION_ERROR
        assert "SORT.limit and XADD.trim.count" in result.output

    def test_no_types(self, isolated_config: Path) -> None:
        schema = isolated_config / "ping.json"
        schema.write_text(json.dumps({"PING": {"group": "connection"}}))
        result = runner.invoke(app, ["inspect", "types", str(schema)])
        assert result.exit_code == 0
        assert "No derived types in this schema." in result.output
