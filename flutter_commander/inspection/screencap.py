"""Screenshot capture and a coarse visual state summary."""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING, Optional

from ..core.config import config
from ..core.logger import log
from ..utils.file_utils import ensure_directory, get_timestamp_ms, save_bytes
from .tree_normalizer import TreeNormalizer

if TYPE_CHECKING:
    from ..core.device import AdbClient


async def capture_screenshot(adb: AdbClient, capture_dir: Optional[str] = None) -> str:
    """Capture the screen with ``exec-out screencap`` and return the saved PNG path.

    Raises:
        ADBError: If the device could not produce a screenshot.

    """
    directory = ensure_directory(capture_dir or config.capture_dir)
    path = os.path.join(directory, f"screenshot_{get_timestamp_ms()}.png")

    png_bytes = await asyncio.to_thread(adb.take_screenshot)
    save_bytes(png_bytes, path)
    log.debug(f"Screenshot captured: {path}")
    return path


async def analyze_visual_state(
    adb: AdbClient,
    normalizer: TreeNormalizer,
    capture_dir: Optional[str] = None,
) -> str:
    screenshot_path = await capture_screenshot(adb, capture_dir)

    tree_summary = "Tree unavailable"
    try:
        tree = await normalizer.get_tree()
        tree_summary = f"Root: {tree.type} (Children: {len(tree.children or [])})"
    except Exception as e:
        log.debug(f"Visual state analysis without tree: {e}")

    return (
        "Visual State Analysis:\n"
        f"Screenshot saved at: {screenshot_path}\n"
        f"Semantic Tree: {tree_summary}"
    )
