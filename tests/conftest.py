"""Shared test fixtures for rediscodegen.

Provides reusable fixtures for loading the command schema fixture, building
small ad-hoc schemas, isolating configuration, managing output state, and
running CLI commands. These fixtures are automatically discovered by pytest
and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from rediscodegen.models import CommandSet, GenerationConfig
from rediscodegen.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"
COMMANDS_JSON = FIXTURES_DIR / "commands.json"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Schema fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def commands_raw() -> dict[str, Any]:
    """Load the raw commands.json fixture (a subset of the real schema)."""
    with open(COMMANDS_JSON) as f:
        return json.load(f)


@pytest.fixture
def commands(commands_raw: dict[str, Any]) -> CommandSet:
    """The commands.json fixture validated into a CommandSet."""
    return CommandSet.model_validate(commands_raw)


@pytest.fixture
def make_commands():
    """Factory building a CommandSet from plain dicts.

    Every entry defaults to the ``generic`` group so tests only spell out
    what they care about::

        commands = make_commands({"GET": {"arguments": [...]}})
    """

    def _make(entries: dict[str, dict[str, Any]]) -> CommandSet:
        return CommandSet.model_validate(
            {name: {"group": "generic", **entry} for name, entry in entries.items()}
        )

    return _make


@pytest.fixture
def default_config() -> GenerationConfig:
    """The built-in generation config."""
    return GenerationConfig()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Clears all REDISCODEGEN_* environment variables and changes the
    working directory to tmp_path, so no project ``rediscodegen.json`` is
    picked up by accident.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    for var in ["REDISCODEGEN_CONFIG", "REDISCODEGEN_RUNTIME_MODULE"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Install a verbose, colourless OutputManager so debug lines are printed."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
