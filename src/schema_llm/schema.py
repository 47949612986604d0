"""Loading and structural validation of provider schema documents."""

from __future__ import annotations

import copy
import json
import logging
import os
from collections.abc import Mapping
from importlib import resources
from typing import Any, Union

from schema_llm.errors import SchemaError

SchemaSource = Union[str, os.PathLike, Mapping[str, Any]]

REQUIRED_FIELDS = ("provider", "api", "request_template", "message_format", "response_format")

_logger = logging.getLogger(__name__)


def load_schema(source: SchemaSource) -> dict[str, Any]:
    """Load and validate a schema from a path, a package resource or a parsed mapping.

    String locations are tried as filesystem paths first, then as resources
    relative to the ``schema_llm`` package (``"schemas/claude.json"`` resolves
    to the bundled Claude schema).
    """
    if isinstance(source, Mapping):
        schema = copy.deepcopy(dict(source))
    else:
        schema = _parse(_read(os.fspath(source)))

    validate_schema(schema)
    return schema


def validate_schema(schema: Mapping[str, Any]) -> None:
    """Check the fields every schema must declare; raise SchemaError on the first gap."""
    for field in REQUIRED_FIELDS:
        if field not in schema:
            raise SchemaError(f"Missing required schema field: {field}", field=field)

    if not _has(schema["api"], "endpoint"):
        raise SchemaError("Missing API endpoint in schema", field="api.endpoint")

    message_format = schema["message_format"]
    if not _has(message_format, "structure"):
        raise SchemaError("Invalid message format in schema", field="message_format.structure")
    if not _has(message_format, "content_types"):
        raise SchemaError("Invalid message format in schema", field="message_format.content_types")

    success = schema["response_format"].get("success") if isinstance(schema["response_format"], Mapping) else None
    if not _has(success, "text_path"):
        raise SchemaError("Invalid response format in schema", field="response_format.success.text_path")


def bundled_schema_directory() -> str:
    """Return the directory holding the schemas shipped with the package."""
    return str(resources.files("schema_llm").joinpath("schemas"))


def _has(node: Any, key: str) -> bool:
    return isinstance(node, Mapping) and key in node


def _read(location: str) -> str:
    if os.path.isfile(location):
        _logger.debug("Loading schema from file %s", location)
        try:
            with open(location, encoding="utf-8") as fh:
                return fh.read()
        except OSError as exc:
            raise SchemaError(f"Failed to open schema file: {location}") from exc

    resource = resources.files("schema_llm").joinpath(location.lstrip("/"))
    if resource.is_file():
        _logger.debug("Loading schema from package resource %s", location)
        return resource.read_text(encoding="utf-8")

    raise SchemaError(f"Failed to open schema file: {location}")


def _parse(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"Failed to parse schema JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise SchemaError("Failed to parse schema JSON: top level value must be an object")
    return data
