"""Utility functions for flutter-commander."""

from .file_utils import ensure_directory, get_timestamp_ms, save_bytes

__all__ = [
    "ensure_directory",
    "get_timestamp_ms",
    "save_bytes",
]
