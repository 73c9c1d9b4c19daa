"""Semantic tree acquisition and element search."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Callable, Optional

from ..core.config import config
from ..core.exceptions import ADBError, FlutterCommanderError, TreeUnavailableError
from ..core.logger import log
from ..core.rpc_client import RpcClient
from ..core.session_manager import SessionManager
from .filters import normalize_dump_tree, normalize_live_tree
from .models import SemanticNode

if TYPE_CHECKING:
    from ..core.device import WindowDumpProvider


def search_tree(node: SemanticNode, criteria: str) -> Optional[SemanticNode]:
    """Depth-first, pre-order search; text is tested before type at every node."""
    if node.text and criteria in node.text:
        return node
    if criteria in node.type:
        return node
    if node.children:
        for child in node.children:
            found = search_tree(child, criteria)
            if found:
                return found
    return None


class TreeNormalizer:
    """Produces one semantic tree from whichever source is available."""

    def __init__(
        self,
        session: SessionManager,
        dump_provider: Optional[WindowDumpProvider] = None,
        rpc_client_factory: Callable[[], RpcClient] = RpcClient,
        poll_interval_ms: Optional[int] = None,
    ) -> None:
        """Initialize the normalizer.

        Args:
            session: Source of the live process and VM Service endpoint.
            dump_provider: Fallback accessibility dump source (usually an ``AdbClient``).
            rpc_client_factory: Builds a fresh client for every live acquisition.
            poll_interval_ms: Delay between ``find`` cycles.

        """
        self.session = session
        self.dump_provider = dump_provider
        self._rpc_client_factory = rpc_client_factory
        self.poll_interval_ms = poll_interval_ms or config.find_poll_interval_ms

    async def get_tree(self) -> SemanticNode:
        """Return the current semantic tree.

        The live inspector is used when a session is running and has announced
        its endpoint; otherwise, or when that fails, the accessibility dump.

        Raises:
            TreeUnavailableError: If neither source yields a usable root.

        """
        endpoint = self.session.endpoint
        if self.session.runner is not None and endpoint:
            try:
                return await self._get_live_tree(endpoint)
            except FlutterCommanderError as e:
                log.warning(f"Inspector tree unavailable ({e}), falling back to accessibility dump")

        return await self._get_dump_tree()

    async def _get_live_tree(self, endpoint: str) -> SemanticNode:
        start = time.monotonic()
        client = self._rpc_client_factory()
        try:
            await client.connect(endpoint)
            raw_tree = await client.get_root_widget_summary_tree()
        finally:
            await client.disconnect()

        tree = normalize_live_tree(raw_tree)
        log.log_performance("inspector tree", (time.monotonic() - start) * 1000)
        return tree

    async def _get_dump_tree(self) -> SemanticNode:
        if self.dump_provider is None:
            raise TreeUnavailableError("No active dev session and no accessibility dump provider configured")

        try:
            xml_content = await asyncio.to_thread(self.dump_provider.dump_window_hierarchy)
        except ADBError as e:
            raise TreeUnavailableError(f"Accessibility dump failed: {e}") from e

        return normalize_dump_tree(xml_content)

    async def query(self, criteria: str) -> Optional[SemanticNode]:
        """One acquisition plus search; acquisition errors count as no match."""
        try:
            tree = await self.get_tree()
        except Exception as e:
            log.debug(f"Tree acquisition failed while searching for {criteria!r}: {e}")
            return None
        return search_tree(tree, criteria)

    async def find(self, criteria: str, timeout_ms: Optional[int] = None) -> Optional[SemanticNode]:
        """Poll the tree until a node matches *criteria* or *timeout_ms* elapses."""
        if timeout_ms is None:
            timeout_ms = config.find_default_timeout_ms
        deadline = time.monotonic() + timeout_ms / 1000

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                found = await asyncio.wait_for(self.query(criteria), timeout=remaining)
            except asyncio.TimeoutError:
                break
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            if found:
                return found
            await asyncio.sleep(min(self.poll_interval_ms / 1000, remaining))

        log.debug(f"No element matching {criteria!r} within {timeout_ms}ms")
        return None
