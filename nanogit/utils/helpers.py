"""Filesystem helpers shared by the repository modules."""

import json
from pathlib import Path
from typing import Any


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def read_json(path: Path, default: Any = None) -> Any:
    """
    Read a JSON document.

    Args:
        path: File to read.
        default: Value returned when the file is missing or empty.

    Returns:
        The decoded document.
    """
    if not path.exists():
        return default
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return default
    return json.loads(text)


def write_json(path: Path, data: Any) -> None:
    """Write a JSON document with sorted keys."""
    ensure_dir(path.parent)
    path.write_text(
        json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False),
        encoding="utf-8"
    )


def prune_empty_dirs(path: Path, stop: Path) -> None:
    """Remove empty parent directories of ``path`` up to (not including) ``stop``."""
    parent = path.parent
    while parent != stop and parent.exists() and not any(parent.iterdir()):
        parent.rmdir()
        parent = parent.parent
