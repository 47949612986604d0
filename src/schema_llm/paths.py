"""Key/index path traversal over parsed JSON trees."""

from __future__ import annotations

import math
from typing import Any

from schema_llm.errors import PathResolutionError

ARRAY_INDEX = "array index"
OBJECT_KEY = "object key"


def _is_index(segment: str) -> bool:
    return segment.isascii() and segment.isdigit()


def resolve_path(tree: Any, segments: list[str]) -> Any:
    """Follow ``segments`` through ``tree`` and return the node they point at.

    Digit-only segments index into lists, every other segment is a dict key.
    """
    current = tree
    for segment in segments:
        if _is_index(segment):
            index = int(segment)
            if not isinstance(current, list) or index >= len(current):
                raise PathResolutionError(segment, ARRAY_INDEX)
            current = current[index]
        else:
            if not isinstance(current, dict) or segment not in current:
                raise PathResolutionError(segment, OBJECT_KEY)
            current = current[segment]
    return current


def parse_path(path: Any) -> list[str]:
    """Convert a schema path array such as ``["content", 0, "text"]`` to segments."""
    if not isinstance(path, list):
        return []

    segments: list[str] = []
    for element in path:
        if isinstance(element, str):
            segments.append(element)
        elif isinstance(element, bool):
            # JSON booleans are not numbers
            continue
        elif isinstance(element, int):
            segments.append(str(element))
        elif isinstance(element, float) and math.isfinite(element):
            segments.append(str(int(element)))
    return segments
