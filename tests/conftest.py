"""Shared fakes and fixtures for the flutter-commander test suite."""

from __future__ import annotations

import asyncio
import json
import os
from typing import Any, Awaitable, Callable, Optional

# Keep test runs from writing rotating log files into the checkout
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest_asyncio  # noqa: E402
from aiohttp import WSMsgType, web  # noqa: E402
from aiohttp.test_utils import TestServer  # noqa: E402

from flutter_commander.core.exceptions import ADBError  # noqa: E402
from flutter_commander.inspection.models import Rect  # noqa: E402

SAMPLE_WINDOW_DUMP = """<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
<hierarchy rotation="0">
    <node index="0" text="" class="android.widget.FrameLayout" bounds="[0,0][1080,2400]">
        <node index="0" text="Native Button" class="android.widget.Button" clickable="true" bounds="[100,100][300,200]" />
    </node>
</hierarchy>
"""


PERMISSION_DIALOG = """<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
<hierarchy rotation="0">
  <node class="android.widget.FrameLayout" bounds="[0,0][1080,2400]">
    <node class="android.widget.TextView" text="Allow Demo to access your location?" bounds="[100,800][980,950]" />
    <node class="android.widget.Button" text="Deny" clickable="true" bounds="[200,1000][500,1150]" />
    <node class="android.widget.Button" text="ALLOW" clickable="true" bounds="[600,1000][900,1150]" />
  </node>
</hierarchy>
"""


def debug_port_line(uri: str) -> bytes:
    return (json.dumps({"event": "app.debugPort", "params": {"wsUri": uri}}) + "\n").encode()


class FakeRunner:
    """Stands in for ``FlutterRunner``; stdout is fed by the test."""

    def __init__(self) -> None:
        self.stdout = asyncio.StreamReader()
        self.stderr = None
        self.pid = 4242
        self.logs: list[str] = []
        self.is_running = False

    async def spawn(self, args) -> None:
        self.is_running = True
        self.logs.append(f"spawn: {' '.join(args)}")
        self.stdout.feed_data(b'{"event":"daemon.connected","params":{"version":"1.2.3","pid":12345}}\n')

    async def stop(self) -> None:
        self.is_running = False
        self.logs.append("stop")
        self.stdout.feed_eof()

    async def hot_reload(self) -> str:
        self.logs.append("hotReload")
        return ""

    async def hot_restart(self) -> None:
        self.logs.append("hotRestart")

    def announce(self, uri: str) -> None:
        self.stdout.feed_data(debug_port_line(uri))


class FakeAdb:
    """Records device commands instead of running adb."""

    def __init__(self, window_dump: str = SAMPLE_WINDOW_DUMP) -> None:
        self.window_dump = window_dump
        self.dump_error: Optional[Exception] = None
        self.screen = Rect(0, 0, 1080, 1920)
        self.logs: list[str] = []
        self.dump_calls = 0

    def dump_window_hierarchy(self) -> str:
        self.dump_calls += 1
        if self.dump_error is not None:
            raise self.dump_error
        return self.window_dump

    def tap(self, x, y) -> None:
        self.logs.append(f"tap: {x},{y}")

    def input_text(self, text: str) -> None:
        self.logs.append(f"input: {text}")

    def key_event(self, key_code) -> None:
        self.logs.append(f"key: {key_code}")

    def swipe(self, x1, y1, x2, y2, duration: int = 500) -> None:
        self.logs.append(f"swipe: {x1},{y1} -> {x2},{y2}")

    def push(self, local: str, remote: str) -> None:
        self.logs.append(f"push: {local} -> {remote}")

    def get_screen_size(self) -> Rect:
        return self.screen

    def take_screenshot(self) -> bytes:
        if self.dump_error is not None:
            raise ADBError("screencap failed")
        return b"\x89PNG\r\n\x1a\nfake"


RequestHandler = Callable[[web.WebSocketResponse, dict[str, Any]], Awaitable[None]]


class InspectorServer:
    """In-process websocket server speaking just enough JSON-RPC for the tests."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.on_request: Optional[RequestHandler] = None
        self.connections = 0
        self.sockets: list[web.WebSocketResponse] = []
        self._server: Optional[TestServer] = None

    @property
    def uri(self) -> str:
        return f"ws://{self._server.host}:{self._server.port}/ws"

    async def _handle(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self.connections += 1
        self.sockets.append(ws)
        async for msg in ws:
            if msg.type != WSMsgType.TEXT:
                continue
            payload = json.loads(msg.data)
            self.requests.append(payload)
            if self.on_request is not None:
                await self.on_request(ws, payload)
        return ws

    async def start(self) -> None:
        app = web.Application()
        app.router.add_get("/ws", self._handle)
        self._server = TestServer(app, host="127.0.0.1")
        await self._server.start_server()

    async def drop_connections(self) -> None:
        for ws in self.sockets:
            await ws.close()

    async def close(self) -> None:
        await self.drop_connections()
        await self._server.close()


def reply_with(result: Any) -> RequestHandler:
    async def handler(ws: web.WebSocketResponse, request: dict[str, Any]) -> None:
        await ws.send_json({"jsonrpc": "2.0", "id": request["id"], "result": result})

    return handler


@pytest_asyncio.fixture
async def inspector_server():
    server = InspectorServer()
    await server.start()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def fake_runner():
    return FakeRunner()


@pytest_asyncio.fixture
async def fake_adb():
    return FakeAdb()
