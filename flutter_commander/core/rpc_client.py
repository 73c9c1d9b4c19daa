"""JSON-RPC 2.0 client for the Dart VM Service websocket.

Requests are correlated with responses purely by ``id``. Every pending
request is settled exactly once, by whichever comes first of its response,
its deadline, or the connection going away; settling always starts by
popping the entry from ``_pending`` so the losing paths find nothing to do.
Messages without an ``id`` are stream notifications and are discarded.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import time
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

from .config import config
from .exceptions import (
    ConnectionClosedError,
    NotConnectedError,
    RequestTimeoutError,
    RpcConnectionError,
    RpcError,
)
from .logger import log


@dataclass
class PendingRequest:
    """Bookkeeping for one in-flight call."""

    method: str
    future: asyncio.Future
    timer: asyncio.TimerHandle
    started: float


class RpcClient:
    """Request/response correlator over a persistent websocket."""

    def __init__(self, request_timeout_ms: Optional[int] = None) -> None:
        self.request_timeout_ms = request_timeout_ms or config.rpc_request_timeout_ms
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._reader: Optional[asyncio.Task] = None
        self._next_id = 1
        self._pending: dict[int, PendingRequest] = {}

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def connect(self, uri: str) -> None:
        """Open the websocket to *uri*, closing any previous connection first.

        Raises:
            RpcConnectionError: If the handshake fails.

        """
        if self._ws is not None or self._session is not None:
            await self.disconnect()

        session = aiohttp.ClientSession()
        try:
            ws = await session.ws_connect(uri, max_msg_size=0)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            await session.close()
            log.error(f"VM Service WebSocket error: {e}")
            raise RpcConnectionError(f"Failed to connect to VM Service at {uri}: {e}") from e

        self._session = session
        self._ws = ws
        self._reader = asyncio.create_task(self._read_loop(ws))
        log.debug(f"Connected to VM Service at {uri}")

    async def disconnect(self) -> None:
        """Close the socket and fail every pending request."""
        ws, self._ws = self._ws, None
        session, self._session = self._session, None
        reader, self._reader = self._reader, None

        self._fail_pending()

        if ws is not None:
            await ws.close()
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
        if session is not None:
            await session.close()

    async def call(self, method: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Send a request and wait for its ``result``.

        Raises:
            NotConnectedError: If called before ``connect`` succeeded.
            RequestTimeoutError: If no response arrives before the deadline.
            RpcError: If the server answers with an ``error`` member.
            ConnectionClosedError: If the connection goes away first.

        """
        ws = self._ws
        if ws is None or ws.closed:
            raise NotConnectedError()

        request_id = self._next_id
        self._next_id += 1
        envelope = {"jsonrpc": "2.0", "method": method, "params": params, "id": request_id}

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        timer = loop.call_later(self.request_timeout_ms / 1000, self._expire, request_id)
        self._pending[request_id] = PendingRequest(method, future, timer, time.monotonic())

        try:
            await ws.send_str(json.dumps(envelope))
        except (aiohttp.ClientError, ConnectionError, RuntimeError) as e:
            pending = self._pending.pop(request_id, None)
            if pending is not None:
                pending.timer.cancel()
            raise RpcConnectionError(f"Failed to send {method}: {e}") from e

        return await future

    async def get_root_widget_summary_tree(self) -> Any:
        """Fetch the widget inspector's summary tree for the root widget."""
        result = await self.call(
            config.inspector_method,
            {"objectGroup": config.inspector_object_group},
        )
        # Service extensions answer inside an ``_extensionType`` envelope
        if isinstance(result, dict) and result.get("type") == "_extensionType" and isinstance(result.get("result"), dict):
            return result["result"]
        return result

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------
    def _expire(self, request_id: int) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return
        log.warning(f"{pending.method} (id={request_id}) timed out after {self.request_timeout_ms}ms")
        if not pending.future.done():
            pending.future.set_exception(RequestTimeoutError(self.request_timeout_ms))

    def _fail_pending(self) -> None:
        pending, self._pending = self._pending, {}
        for request in pending.values():
            request.timer.cancel()
            if not request.future.done():
                request.future.set_exception(ConnectionClosedError())

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                self._handle_message(msg.data)
            elif msg.type == aiohttp.WSMsgType.BINARY:
                self._handle_message(msg.data.decode("utf-8", errors="replace"))
            elif msg.type == aiohttp.WSMsgType.ERROR:
                log.error(f"VM Service WebSocket error: {ws.exception()}")
                break

        # The peer went away; nothing pending can be answered any more
        if self._ws is ws:
            self._fail_pending()

    def _handle_message(self, data: str) -> None:
        try:
            message = json.loads(data)
        except ValueError as e:
            log.warning(f"Failed to parse VM Service message: {e}")
            return

        if not isinstance(message, dict):
            log.warning(f"Ignoring non-object VM Service message: {type(message).__name__}")
            return

        if "id" not in message:
            log.debug(f"Ignoring VM Service event {message.get('method')}")
            return

        try:
            pending = self._pending.pop(message["id"], None)
        except TypeError:
            pending = None
        if pending is None:
            log.debug(f"Ignoring response for unknown or expired request id {message['id']!r}")
            return

        pending.timer.cancel()
        log.log_rpc(pending.method, message["id"], (time.monotonic() - pending.started) * 1000)
        if pending.future.done():
            return
        if message.get("error") is not None:
            pending.future.set_exception(RpcError(message["error"]))
        else:
            pending.future.set_result(message.get("result"))
