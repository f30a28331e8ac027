from __future__ import annotations

import json
import os
import threading
from typing import Any

LOCK = threading.Lock()


def safe_join(*parts: str) -> str:
    """Joins path components and validates against path traversal attacks.

    Args:
        *parts: Path components to join

    Returns:
        Normalized safe path

    Raises:
        ValueError: If path contains traversal attempts (..)
    """
    # Check both forward and backward slashes for cross-platform security
    for part in parts:
        path_parts = part.replace("\\", "/").split("/")
        if ".." in path_parts:
            raise ValueError(f"Path traversal blocked: {part}")

    p = os.path.normpath(os.path.join(*parts))
    return p


def _load(path: str) -> list[dict[str, Any]]:
    """Loads JSON array from file, returns empty list if file doesn't exist."""
    if not os.path.exists(path):
        return []
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _dump(path: str, data: list[dict[str, Any]]) -> None:
    """Atomically writes JSON array to file using temp + rename."""
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    os.replace(tmp, path)


def atomic_write_bytes(path: str, content: bytes) -> None:
    """Atomically writes binary content to file using temp + rename.

    Parent directories are created when missing.
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp = path + ".tmp"
    with open(tmp, "wb") as f:
        f.write(content)
    os.replace(tmp, path)


def append_json_line(
    path: str, item: dict[str, Any], schema: dict[str, Any] | None = None
) -> None:
    """Thread-safe append of a single item to JSON array file.

    Args:
        path: Path to JSON file
        item: Dictionary to append
        schema: Optional validation schema with "required" keys list

    Raises:
        ValueError: If item is missing required schema fields
    """
    if schema and "required" in schema:
        for key in schema["required"]:
            if key not in item:
                raise ValueError(
                    f"Schema validation failed: missing required key '{key}' in item"
                )

    with LOCK:
        data = _load(path)
        data.append(item)
        _dump(path, data)


def read_json(path: str) -> list[dict[str, Any]]:
    """Thread-safe read of JSON array file."""
    with LOCK:
        return _load(path)
