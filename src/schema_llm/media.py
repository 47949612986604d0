"""Base64 helpers for multimodal attachments."""

from __future__ import annotations

import base64
import os
import string

from schema_llm.errors import MediaError

MAX_IMAGE_SIZE = 10 * 1024 * 1024

_BASE64_CHARS = frozenset(string.ascii_letters + string.digits + "+/=")


def encode(data: bytes) -> str:
    """Return the standard base64 encoding of ``data``."""
    return base64.b64encode(data).decode("ascii")


def encode_file(path: str | os.PathLike[str]) -> str:
    """Read an image file and return it base64 encoded."""
    path_str = os.fspath(path)
    if not os.path.isfile(path_str):
        raise MediaError(f"Image file does not exist: {path_str}", path=path_str)

    size = os.path.getsize(path_str)
    if size > MAX_IMAGE_SIZE:
        raise MediaError(f"Image file too large: {size} bytes", path=path_str)

    with open(path_str, "rb") as fh:
        return encode(fh.read())


def is_base64(data: str | None) -> bool:
    """Heuristically decide whether ``data`` is already base64 (or a base64 data URI)."""
    if not data:
        return False

    if data.startswith("data:") and ";base64," in data:
        return True

    padding = 0
    length = 0
    for char in data:
        if char.isspace():
            continue
        if char not in _BASE64_CHARS:
            return False
        if char == "=":
            padding += 1
            if padding > 2:
                return False
        length += 1

    return length % 4 == 0 and padding != 1
