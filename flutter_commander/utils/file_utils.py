"""File helpers for screenshots and other captured artifacts."""

from __future__ import annotations

import time
from pathlib import Path


def ensure_directory(directory_path: str) -> str:
    """Create *directory_path* if needed and return it as an absolute path."""
    path = Path(directory_path).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return str(path)


def get_timestamp_ms() -> int:
    return int(time.time() * 1000)


def save_bytes(data: bytes, filepath: str) -> str:
    """Write *data* to *filepath*, creating parent directories.

    Returns:
        The path written to.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return str(path)
