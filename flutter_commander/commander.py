"""FlutterCommander: wiring of the device bridge, dev session and inspection services."""

from __future__ import annotations

from typing import Callable, Optional

from .automation.interaction import InteractionService
from .core.device import AdbClient
from .core.flutter_runner import FlutterRunner
from .core.logger import log
from .core.rpc_client import RpcClient
from .core.session_manager import SessionManager
from .inspection.screencap import analyze_visual_state, capture_screenshot
from .inspection.tree_normalizer import TreeNormalizer


class FlutterCommander:
    """Single entry point an agent surface talks to."""

    def __init__(
        self,
        adb: Optional[AdbClient] = None,
        runner_factory: Callable[[], FlutterRunner] = FlutterRunner,
        rpc_client_factory: Callable[[], RpcClient] = RpcClient,
    ) -> None:
        self.adb = adb or AdbClient()
        self.session = SessionManager(runner_factory)
        self.normalizer = TreeNormalizer(self.session, self.adb, rpc_client_factory)
        self.interaction = InteractionService(self.adb, self.normalizer)

    async def take_screenshot(self) -> str:
        return await capture_screenshot(self.adb)

    async def analyze_visual_state(self) -> str:
        return await analyze_visual_state(self.adb, self.normalizer)

    async def shutdown(self) -> None:
        """Stop the dev session so no flutter process outlives the commander."""
        result = await self.session.stop()
        log.info(f"Commander shutdown: {result}")
