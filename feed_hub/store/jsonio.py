"""JSON document IO shared by the category store, history and index."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


class InvalidDocument(ValueError):
    """A JSON document exists but cannot be used."""


def read_json_object(path: Path) -> dict[str, Any] | None:
    """Read a JSON object from ``path``.

    Returns:
        The decoded object, or None if the file does not exist

    Raises:
        InvalidDocument: If the file is unreadable, not UTF-8, not JSON, or not an object
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise InvalidDocument(f"{type(exc).__name__}: {exc}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidDocument(f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidDocument(f"expected an object, got {type(data).__name__}")
    return data


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write ``data`` as pretty-printed UTF-8 JSON, replacing ``path`` atomically.

    The document is written to a sibling temp file first, so readers never
    see a half-written file. OSError propagates to the caller.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        tmp_path.write_text(
            f"{json.dumps(data, ensure_ascii=False, indent=2)}\n",
            encoding="utf-8",
        )
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
