"""Configuration loading and precedence resolution.

The generator itself never reads configuration from the environment: it
receives a :class:`~rediscodegen.models.GenerationConfig` value. This module
builds that value for the CLI:

* **Defaults** -- the built-in tables in :mod:`rediscodegen.models`
  (exclusion list, name overrides, legacy aliases, feature gates).
* **Project config** -- ``./rediscodegen.json`` in the working directory,
  or the file named by ``$REDISCODEGEN_CONFIG`` or ``--config``. See
  :class:`~rediscodegen.models.ProjectConfig` for the accepted keys.
* **Environment variables** -- ``REDISCODEGEN_RUNTIME_MODULE``.
* **CLI flags** -- highest precedence.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from rediscodegen.exceptions import ConfigError
from rediscodegen.models import (
    CollisionPolicy,
    GenerationConfig,
    GenerationMode,
    OutputFlavor,
    ProjectConfig,
)

_PROJECT_CONFIG_FILENAME = "rediscodegen.json"
ENV_CONFIG = "REDISCODEGEN_CONFIG"
ENV_RUNTIME_MODULE = "REDISCODEGEN_RUNTIME_MODULE"


# --- Config files ---


def load_config_file(path: Path) -> ProjectConfig:
    """Load and validate a project config file.

    Args:
        path: Path to a JSON config file.

    Returns:
        The validated :class:`~rediscodegen.models.ProjectConfig`.

    Raises:
        ConfigError: If the file does not exist, is not valid JSON, or
            fails validation (including unknown keys).
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc


def find_config_file(cli_config: Optional[str] = None) -> Optional[Path]:
    """Locate the config file to use, if any.

    Precedence (high to low): the ``--config`` flag, ``$REDISCODEGEN_CONFIG``,
    ``./rediscodegen.json``. An explicitly named file must exist; the
    project file is optional.

    Args:
        cli_config: Value of the ``--config`` flag.

    Returns:
        Path to the config file, or ``None`` when no file applies.

    Raises:
        ConfigError: If an explicitly named file does not exist.
    """
    explicit = cli_config or os.environ.get(ENV_CONFIG)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        return path

    project = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if project.is_file():
        return project
    return None


def apply_project_config(base: GenerationConfig, project: ProjectConfig) -> GenerationConfig:
    """Layer a :class:`ProjectConfig` over *base*.

    Table fields set in the file replace the base tables; ``extend_*``
    fields are merged on top afterwards, so a file may both replace and
    extend the same table.

    Returns:
        A new :class:`GenerationConfig`; *base* is not modified.
    """
    exclusions = list(project.exclusions if project.exclusions is not None else base.exclusions)
    for name in project.extend_exclusions:
        if name not in exclusions:
            exclusions.append(name)

    def _table(replace: Optional[dict[str, str]], current: dict[str, str], extra: dict[str, str]) -> dict[str, str]:
        merged = dict(replace if replace is not None else current)
        merged.update(extra)
        return merged

    update: dict = {
        "exclusions": exclusions,
        "name_overrides": _table(
            project.name_overrides, base.name_overrides, project.extend_name_overrides
        ),
        "legacy_aliases": _table(
            project.legacy_aliases, base.legacy_aliases, project.extend_legacy_aliases
        ),
        "feature_gates": _table(
            project.feature_gates, base.feature_gates, project.extend_feature_gates
        ),
    }
    if project.runtime_module is not None:
        update["runtime_module"] = project.runtime_module
    if project.on_type_collision is not None:
        update["on_type_collision"] = project.on_type_collision
    if project.mode is not None:
        update["mode"] = project.mode
    if project.flavors is not None:
        update["flavors"] = list(project.flavors)
    return base.model_copy(update=update)


# --- Precedence resolution ---


def resolve_config(
    cli_config: Optional[str] = None,
    cli_runtime_module: Optional[str] = None,
    cli_on_collision: Optional[CollisionPolicy] = None,
    cli_mode: Optional[GenerationMode] = None,
    cli_flavors: Optional[list[OutputFlavor]] = None,
) -> GenerationConfig:
    """Resolve the effective generation config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_*`` arguments)
        2. Environment variables (``REDISCODEGEN_RUNTIME_MODULE``)
        3. Config file (``--config``, ``$REDISCODEGEN_CONFIG``, or
           ``./rediscodegen.json``)
        4. Built-in defaults

    Returns:
        The resolved :class:`~rediscodegen.models.GenerationConfig`.

    Raises:
        ConfigError: If a config file is missing or invalid.
    """
    config = GenerationConfig()

    path = find_config_file(cli_config)
    if path is not None:
        config = apply_project_config(config, load_config_file(path))

    env_runtime = os.environ.get(ENV_RUNTIME_MODULE)
    if env_runtime:
        config = config.model_copy(update={"runtime_module": env_runtime})

    update: dict = {}
    if cli_runtime_module is not None:
        update["runtime_module"] = cli_runtime_module
    if cli_on_collision is not None:
        update["on_type_collision"] = cli_on_collision
    if cli_mode is not None:
        update["mode"] = cli_mode
    if cli_flavors:
        update["flavors"] = list(cli_flavors)
    if update:
        config = config.model_copy(update=update)

    return config
