"""Load the Redis command schema from a URL, local file, or stdin.

This module handles all I/O for fetching a raw ``commands.json`` document
and turning it into a validated :class:`~rediscodegen.models.CommandSet`.
JSON and YAML are both accepted, with automatic format detection.

The public functions are:

* :func:`load_schema` -- Load and parse a raw document from any supported
  source into a plain dictionary.
* :func:`build_command_set` -- Validate a raw dictionary into a
  :class:`~rediscodegen.models.CommandSet`.
* :func:`load_command_set` -- Both of the above in one call.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from rediscodegen.exceptions import SchemaLoadError
from rediscodegen.models import CommandSet


def load_command_set(source: str) -> CommandSet:
    """Load and validate a command schema from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The validated :class:`~rediscodegen.models.CommandSet`.

    Raises:
        SchemaLoadError: If the source cannot be loaded, parsed, or validated.
    """
    return build_command_set(load_schema(source))


def load_schema(source: str) -> dict[str, Any]:
    """Load a raw command schema from URL, file path, or stdin ('-').

    Supports JSON and YAML formats.
    Auto-detects format from content/extension.

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed document as a dictionary keyed by command name.

    Raises:
        SchemaLoadError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def build_command_set(raw: dict[str, Any]) -> CommandSet:
    """Validate a raw schema dictionary into a :class:`CommandSet`.

    Document order is preserved. Validation errors are reported with the
    offending command name so that a broken entry in a large schema is easy
    to find.

    Args:
        raw: Mapping of command name to command definition.

    Returns:
        The validated command set.

    Raises:
        SchemaLoadError: If any entry fails validation.
    """
    try:
        return CommandSet.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise SchemaLoadError(
            f"Invalid command schema at '{location}': {first['msg']}"
            f" ({exc.error_count()} error(s) in total)"
        ) from exc


def _load_from_stdin() -> dict[str, Any]:
    """Read the schema from stdin.

    Raises:
        SchemaLoadError: If stdin is empty or content cannot be parsed.
    """
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SchemaLoadError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SchemaLoadError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch the schema from a URL. Supports JSON and YAML responses.

    Raises:
        SchemaLoadError: If the URL cannot be fetched or content cannot be parsed.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SchemaLoadError(
            f"HTTP {exc.response.status_code} fetching schema from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SchemaLoadError(f"Failed to fetch schema from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load the schema from a local file.

    Supports .json, .yaml, and .yml extensions. Falls back to content-based
    detection if the extension is not recognized.

    Raises:
        SchemaLoadError: If the file cannot be read or content cannot be parsed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SchemaLoadError(f"Schema file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaLoadError(f"Failed to read schema file {path}: {exc}") from exc

    if not content.strip():
        raise SchemaLoadError(f"Schema file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and much
    faster on a document the size of ``commands.json``.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Returns:
        The parsed dictionary.

    Raises:
        SchemaLoadError: If the content cannot be parsed as either format,
            or does not hold a mapping at the top level.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise SchemaLoadError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        return _require_mapping(result)

    msg = "Failed to parse schema as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise SchemaLoadError(msg)


def _require_mapping(result: Any) -> dict[str, Any]:
    """Reject documents whose top level is not a mapping of commands."""
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SchemaLoadError(f"Schema must be a JSON/YAML object (got {kind})")
    return result
