"""Dev session management: one ``flutter run --machine`` process at a time.

The session's stdout is parsed into daemon events by a producer task and
handed to a consumer task over a bounded queue. The consumer records the VM
Service websocket URI announced by ``app.debugPort``, which the inspection
layer reads through :attr:`SessionManager.endpoint`.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Callable, Optional

from .config import config
from .exceptions import NoActiveSessionError
from .flutter_runner import FlutterRunner
from .logger import log
from .stream_parser import iter_stream_events

DEBUG_PORT_EVENT = "app.debugPort"

# Queue sentinel marking the end of the stdout stream
_EOF = object()


class SessionManager:
    """Owns the dev session process and the endpoint it announces."""

    def __init__(self, runner_factory: Callable[[], FlutterRunner] = FlutterRunner) -> None:
        """Initialize the session manager.

        Args:
            runner_factory: Builds a fresh runner for every session.

        """
        self._runner_factory = runner_factory
        self._runner: Optional[FlutterRunner] = None
        self._device_id: Optional[str] = None
        self._endpoint: Optional[str] = None
        self._endpoint_ready = asyncio.Event()
        self._tasks: list[asyncio.Task] = []
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def runner(self) -> Optional[FlutterRunner]:
        return self._runner

    @property
    def endpoint(self) -> Optional[str]:
        return self._endpoint

    @property
    def device_id(self) -> Optional[str]:
        return self._device_id

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self, device_id: str) -> str:
        """Start a dev session on *device_id*, replacing any running one.

        Raises:
            ProcessSpawnError: If the flutter process cannot be launched.

        """
        async with self._lock:
            if self._runner is not None:
                await self._stop_locked()

            self._device_id = device_id
            self._endpoint = None
            self._endpoint_ready.clear()

            runner = self._runner_factory()
            await runner.spawn(["run", "--machine", "-d", device_id])
            self._runner = runner
            self._start_channel(runner)

            log.log_session_event("started", {"device_id": device_id, "pid": getattr(runner, "pid", None)})
            return f"Dev session started on {device_id}"

    async def stop(self) -> str:
        """Stop the running session, if any."""
        async with self._lock:
            if self._runner is None:
                return "No active session"
            await self._stop_locked()
            return "Dev session stopped"

    async def _stop_locked(self) -> None:
        runner = self._runner
        self._runner = None
        self._endpoint = None
        self._endpoint_ready.clear()

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if runner is not None:
            await runner.stop()
        log.log_session_event("stopped", {"device_id": self._device_id})

    async def hot_reload(self, reason: str = "agent request") -> str:
        if self._runner is None:
            raise NoActiveSessionError()
        log.info(f"Hot reload requested: {reason}")
        error = await self._runner.hot_reload()
        if error:
            return f"Hot Reload failed: {error}"
        return "Hot Reload successful"

    async def hot_restart(self) -> str:
        if self._runner is None:
            raise NoActiveSessionError()
        await self._runner.hot_restart()
        return "Hot Restart successful"

    async def wait_for_endpoint(self, timeout: float) -> Optional[str]:
        """Wait up to *timeout* seconds for the VM Service URI to be announced."""
        try:
            await asyncio.wait_for(self._endpoint_ready.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        return self._endpoint

    # ------------------------------------------------------------------
    # Event channel
    # ------------------------------------------------------------------
    def _start_channel(self, runner: FlutterRunner) -> None:
        queue: asyncio.Queue = asyncio.Queue(maxsize=config.event_queue_size)
        self._tasks = [
            asyncio.create_task(self._produce_events(runner, queue)),
            asyncio.create_task(self._consume_events(runner, queue)),
        ]
        if runner.stderr is not None:
            self._tasks.append(asyncio.create_task(self._drain_stderr(runner.stderr)))

    async def _produce_events(self, runner: FlutterRunner, queue: asyncio.Queue) -> None:
        try:
            if runner.stdout is not None:
                async for event in iter_stream_events(runner.stdout):
                    await queue.put(event)
        finally:
            # The consumer may already be gone when the session is being torn down
            with contextlib.suppress(asyncio.QueueFull):
                queue.put_nowait(_EOF)

    async def _consume_events(self, runner: FlutterRunner, queue: asyncio.Queue) -> None:
        while True:
            event = await queue.get()
            if event is _EOF:
                log.log_session_event("output closed", {"device_id": self._device_id})
                await self._forget_runner(runner)
                return
            self.handle_event(event)

    async def _forget_runner(self, runner: FlutterRunner) -> None:
        """Drop *runner* once its output has closed, unless a newer session replaced it."""
        async with self._lock:
            if self._runner is not runner:
                return
            self._runner = None
            self._endpoint = None
            self._endpoint_ready.clear()
            self._tasks = []
            log.log_session_event("exited", {"device_id": self._device_id})

    async def _drain_stderr(self, reader: asyncio.StreamReader) -> None:
        while True:
            line = await reader.readline()
            if not line:
                return
            text = line.decode("utf-8", errors="replace").rstrip()
            if text:
                log.debug(f"flutter stderr: {text}")

    def handle_event(self, event: Any) -> None:
        """Apply one daemon event. ``flutter --machine`` wraps events in a JSON array."""
        if isinstance(event, list):
            for item in event:
                self.handle_event(item)
            return
        if not isinstance(event, dict):
            return

        if event.get("event") == DEBUG_PORT_EVENT:
            params = event.get("params")
            ws_uri = params.get("wsUri") if isinstance(params, dict) else None
            if isinstance(ws_uri, str) and ws_uri:
                self._endpoint = ws_uri
                self._endpoint_ready.set()
                log.success(f"VM Service available at {ws_uri}")
