"""Device interaction built on top of the semantic tree."""

from __future__ import annotations

import asyncio
from typing import Optional

from ..core.config import config
from ..core.device import AdbClient
from ..core.exceptions import ElementNotFoundError
from ..core.logger import log
from ..inspection.filters import normalize_dump_tree
from ..inspection.models import SemanticNode
from ..inspection.tree_normalizer import TreeNormalizer

KEYCODE_ENTER = 66

SCROLL_DIRECTIONS = ("up", "down", "left", "right")

DIALOG_LABELS: dict[str, tuple[str, ...]] = {
    "accept": ("Allow", "While using the app", "Only this time", "OK", "Yes", "Accept"),
    "deny": ("Deny", "Don't allow", "Don’t allow", "No", "Cancel"),
}


class InteractionService:
    """Taps, typing, scrolling and system dialogs for the agent."""

    def __init__(self, adb: AdbClient, normalizer: TreeNormalizer):
        """Initialize the interaction service.

        Args:
            adb: Device command bridge.
            normalizer: Semantic tree source used to resolve finders.
        """
        self.adb = adb
        self.normalizer = normalizer

    async def tap_element(
        self,
        finder: Optional[str] = None,
        x: Optional[int] = None,
        y: Optional[int] = None,
        timeout_ms: Optional[int] = None,
    ) -> str:
        """Tap at coordinates, or at the centre of the first node matching *finder*.

        Raises:
            ValueError: If neither a finder nor both coordinates are given.
            ElementNotFoundError: If *finder* does not appear before the timeout.
        """
        if x is not None and y is not None:
            await asyncio.to_thread(self.adb.tap, x, y)
            return f"Tapped at {x},{y}"

        if not finder:
            raise ValueError("Must provide either finder or x,y coordinates")

        element = await self.normalizer.find(finder, timeout_ms)
        if element is None:
            raise ElementNotFoundError(f"Element '{finder}' not found")

        if element.rect.is_empty():
            log.warning(f"Element '{finder}' has no bounds, tapping its origin")
        center_x, center_y = element.rect.center()
        await asyncio.to_thread(self.adb.tap, center_x, center_y)
        return f"Tapped '{finder}' at {center_x},{center_y}"

    async def input_text(self, text: str, submit: bool = False) -> str:
        await asyncio.to_thread(self.adb.input_text, text)
        if submit:
            await asyncio.to_thread(self.adb.key_event, KEYCODE_ENTER)
        return f"Input text '{text}' (submit={submit})"

    async def scroll_to(self, direction: str, finder: Optional[str] = None) -> str:
        """Swipe across 40% of the screen; with a finder, keep going until it shows up.

        "down" reveals content below, so the finger moves up.
        """
        if direction not in SCROLL_DIRECTIONS:
            raise ValueError(f"Unknown scroll direction: {direction}")

        screen = await asyncio.to_thread(self.adb.get_screen_size)
        center_x, center_y = screen.center()
        dy = int(screen.height * 0.4)
        dx = int(screen.width * 0.4)

        x1, y1, x2, y2 = center_x, center_y, center_x, center_y
        if direction == "down":
            y1, y2 = center_y + dy, center_y - dy
        elif direction == "up":
            y1, y2 = center_y - dy, center_y + dy
        elif direction == "right":
            x1, x2 = center_x + dx, center_x - dx
        else:
            x1, x2 = center_x - dx, center_x + dx

        if finder is None:
            await asyncio.to_thread(self.adb.swipe, x1, y1, x2, y2)
            return f"Scrolled {direction}"

        for attempt in range(1, config.max_scroll_attempts + 1):
            if await self.normalizer.query(finder):
                return f"Found '{finder}' after {attempt - 1} scroll(s) {direction}"
            await asyncio.to_thread(self.adb.swipe, x1, y1, x2, y2)

        if await self.normalizer.query(finder):
            return f"Found '{finder}' after {config.max_scroll_attempts} scroll(s) {direction}"
        raise ElementNotFoundError(
            f"Element '{finder}' not found after {config.max_scroll_attempts} scroll(s) {direction}"
        )

    async def handle_system_dialog(self, action: str) -> str:
        """Tap the accept or deny button of a native permission dialog.

        Native dialogs sit above the Flutter view, so this always reads the
        accessibility dump rather than the inspector.
        """
        labels = DIALOG_LABELS.get(action)
        if labels is None:
            raise ValueError(f"Unknown dialog action: {action}")

        xml_content = await asyncio.to_thread(self.adb.dump_window_hierarchy)
        tree = normalize_dump_tree(xml_content)

        button = self._find_dialog_button(tree, labels)
        if button is None:
            raise ElementNotFoundError(f"Could not find button for action '{action}'")

        x, y = button.rect.center()
        await asyncio.to_thread(self.adb.tap, x, y)
        log.info(f"System dialog handled ({action}) via '{button.text}'")
        return f"Tapped '{button.text}' at {x},{y}"

    @staticmethod
    def _find_dialog_button(tree: SemanticNode, labels: tuple[str, ...]) -> Optional[SemanticNode]:
        nodes = [node for node in tree.iter_nodes() if node.text]
        for label in labels:
            wanted = label.casefold()
            for node in nodes:
                if node.text.strip().casefold() == wanted:
                    return node
        return None

    async def inject_file(self, source_path: str, target_path: str) -> str:
        await asyncio.to_thread(self.adb.push, source_path, target_path)
        return f"Injected file {source_path} to {target_path}"
