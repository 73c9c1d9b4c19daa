"""Process wrapper around the ``flutter`` CLI."""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

import psutil

from .config import config
from .exceptions import ProcessSpawnError
from .logger import log


class FlutterRunner:
    """Owns a single ``flutter`` child process and its pipes."""

    def __init__(self, flutter_path: Optional[str] = None) -> None:
        self.flutter_path = flutter_path or config.flutter_path
        self._process: Optional[asyncio.subprocess.Process] = None

    async def spawn(self, args: Sequence[str]) -> None:
        """Launch ``flutter`` with *args*.

        Raises:
            ProcessSpawnError: If the executable cannot be started.

        """
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.flutter_path,
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            log.error(f"Failed to start flutter process: {e}")
            raise ProcessSpawnError(f"Failed to start {self.flutter_path}: {e}") from e

        log.debug(f"Spawned {self.flutter_path} {' '.join(args)} (pid={self._process.pid})")

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def stdout(self) -> Optional[asyncio.StreamReader]:
        return self._process.stdout if self._process else None

    @property
    def stderr(self) -> Optional[asyncio.StreamReader]:
        return self._process.stderr if self._process else None

    async def _write(self, command: str) -> bool:
        if not self.is_running or self._process.stdin is None:
            return False
        try:
            self._process.stdin.write(command.encode("utf-8"))
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            log.warning(f"Could not write to flutter stdin: {e}")
            return False
        return True

    async def hot_reload(self) -> str:
        """Ask the running app to hot reload. Returns an error string, empty on success."""
        if not await self._write("r"):
            return "Process not running"
        return ""

    async def hot_restart(self) -> None:
        await self._write("R")

    async def stop(self) -> None:
        """Terminate the process and everything it spawned."""
        process = self._process
        self._process = None
        if process is None or process.returncode is not None:
            return

        # flutter run forks the Dart tooling and adb log readers
        try:
            children = psutil.Process(process.pid).children(recursive=True)
        except psutil.NoSuchProcess:
            children = []

        for child in children:
            try:
                child.terminate()
            except psutil.NoSuchProcess:
                pass
        try:
            process.terminate()
        except ProcessLookupError:
            return

        timeout = config.process_stop_timeout
        _, alive = await asyncio.to_thread(psutil.wait_procs, children, timeout=timeout)
        for child in alive:
            try:
                child.kill()
            except psutil.NoSuchProcess:
                pass

        try:
            await asyncio.wait_for(process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            log.warning(f"flutter process {process.pid} ignored SIGTERM, killing it")
            process.kill()
            await process.wait()
