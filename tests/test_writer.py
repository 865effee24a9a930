"""Tests for rediscodegen.writer.

Covers:
- write_modules: file layout, __init__.py, unchanged detection
- render_init
- atomic_write cleanup on failure
- OutputWriteError on unwritable targets
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from rediscodegen.exceptions import OutputWriteError
from rediscodegen.exit_codes import EXIT_WRITE_ERROR
from rediscodegen.writer import atomic_write, render_init, write_modules

MODULES = {
    "tokens": '"""Tokens."""\n',
    "command": '"""Command."""\n',
}


class TestRenderInit:
    """The package __init__.py."""

    def test_sorted_imports(self) -> None:
        source = render_init(["tokens", "command", "async_commands"])
        assert source.endswith("from . import async_commands, command, tokens\n")
        assert source.startswith('"""Redis client bindings generated by rediscodegen')
        compile(source, "__init__.py", "exec")


class TestWriteModules:
    """Writing generated modules to a directory."""

    def test_writes_files(self, tmp_path: Path) -> None:
        out = tmp_path / "gen" / "redis_bindings"
        results = write_modules(MODULES, out)

        assert [r.path.name for r in results] == ["tokens.py", "command.py", "__init__.py"]
        assert all(r.changed for r in results)
        assert (out / "tokens.py").read_text(encoding="utf-8") == MODULES["tokens"]
        assert "from . import command, tokens" in (out / "__init__.py").read_text(encoding="utf-8")

    def test_no_init(self, tmp_path: Path) -> None:
        results = write_modules(MODULES, tmp_path, package_init=False)
        assert len(results) == 2
        assert not (tmp_path / "__init__.py").exists()

    def test_empty_modules_write_no_init(self, tmp_path: Path) -> None:
        assert write_modules({}, tmp_path) == []
        assert not (tmp_path / "__init__.py").exists()

    def test_unchanged_files_not_rewritten(self, tmp_path: Path) -> None:
        write_modules(MODULES, tmp_path)
        tokens = tmp_path / "tokens.py"
        os.utime(tokens, (1_000_000, 1_000_000))

        results = write_modules(MODULES, tmp_path)
        assert not any(r.changed for r in results)
        assert tokens.stat().st_mtime == 1_000_000

    def test_changed_file_rewritten(self, tmp_path: Path) -> None:
        write_modules(MODULES, tmp_path)
        results = write_modules({**MODULES, "tokens": '"""Tokens v2."""\n'}, tmp_path)
        changed = {r.path.name: r.changed for r in results}
        assert changed == {"tokens.py": True, "command.py": False, "__init__.py": False}

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        write_modules(MODULES, tmp_path)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["__init__.py", "command.py", "tokens.py"]

    def test_unwritable_target(self, tmp_path: Path) -> None:
        blocker = tmp_path / "taken"
        blocker.write_text("not a directory", encoding="utf-8")

        with pytest.raises(OutputWriteError, match="Cannot write generated modules") as exc_info:
            write_modules(MODULES, blocker / "pkg")
        assert exc_info.value.exit_code == EXIT_WRITE_ERROR


class TestAtomicWrite:
    """Temp file plus rename."""

    def test_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "mod.py"
        atomic_write(target, "x = 1\n")
        assert target.read_text(encoding="utf-8") == "x = 1\n"

    def test_cleans_up_on_failure(self, tmp_path: Path) -> None:
        target = tmp_path / "mod.py"
        with patch("rediscodegen.writer.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write(target, "x = 1\n")
        assert list(tmp_path.iterdir()) == []
