"""Write generated modules into a package directory.

Each module becomes ``<out_dir>/<name>.py`` and an ``__init__.py`` imports
the generated submodules. Files whose content is already identical are left
untouched, so regenerating an unchanged schema does not disturb file
timestamps (or build tools watching them). Changed files are replaced
atomically (:func:`atomic_write`).
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rediscodegen.exceptions import OutputWriteError
from rediscodegen.output import debug

_INIT_DOCSTRING = '"""Redis client bindings generated by rediscodegen; do not edit."""'


@dataclass(frozen=True)
class WriteResult:
    """Outcome for one file: where it is and whether its content changed."""

    path: Path
    changed: bool


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
            newline="\n",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def render_init(module_names: list[str]) -> str:
    """Source of the package ``__init__.py`` importing *module_names*."""
    names = ", ".join(sorted(module_names))
    return f"{_INIT_DOCSTRING}\n\nfrom . import {names}\n"


def write_modules(
    modules: dict[str, str],
    out_dir: Path,
    package_init: bool = True,
) -> list[WriteResult]:
    """Write every module in *modules* to *out_dir*.

    Args:
        modules: Mapping of module name to source, as returned by
            :func:`~rediscodegen.generator.dispatcher.generate_all`.
        out_dir: Target package directory; created if missing.
        package_init: Also write ``__init__.py`` importing the modules.

    Returns:
        One :class:`WriteResult` per file, in write order.

    Raises:
        OutputWriteError: If the directory or a file cannot be written.
    """
    files = {f"{name}.py": source for name, source in modules.items()}
    if package_init and modules:
        files["__init__.py"] = render_init(list(modules))

    results: list[WriteResult] = []
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        for filename, source in files.items():
            path = out_dir / filename
            if path.is_file() and path.read_text(encoding="utf-8") == source:
                debug(f"Unchanged: {path}")
                results.append(WriteResult(path=path, changed=False))
                continue
            atomic_write(path, source)
            debug(f"Wrote {path}")
            results.append(WriteResult(path=path, changed=True))
    except OSError as exc:
        raise OutputWriteError(f"Cannot write generated modules to {out_dir}: {exc}") from exc
    return results
