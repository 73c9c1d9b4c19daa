"""Tests for the flutter process wrapper, using a Python child as a stand-in CLI."""

from __future__ import annotations

import sys

import pytest

from flutter_commander.core.exceptions import ProcessSpawnError
from flutter_commander.core.flutter_runner import FlutterRunner

# Echoes every stdin byte back as a daemon-style JSON line
ECHO_DAEMON = (
    "import json, sys\n"
    "print(json.dumps({'event': 'daemon.connected'}), flush=True)\n"
    "while True:\n"
    "    ch = sys.stdin.read(1)\n"
    "    if not ch:\n"
    "        break\n"
    "    print(json.dumps({'event': 'stdin', 'params': {'key': ch}}), flush=True)\n"
)


async def test_spawn_failure_raises():
    runner = FlutterRunner(flutter_path="/nonexistent/flutter")
    with pytest.raises(ProcessSpawnError):
        await runner.spawn(["run", "--machine"])
    assert not runner.is_running


async def test_hot_reload_and_restart_write_single_keys():
    runner = FlutterRunner(flutter_path=sys.executable)
    await runner.spawn(["-c", ECHO_DAEMON])
    try:
        assert runner.is_running
        assert b"daemon.connected" in await runner.stdout.readline()

        assert await runner.hot_reload() == ""
        assert b'"key": "r"' in await runner.stdout.readline()

        await runner.hot_restart()
        assert b'"key": "R"' in await runner.stdout.readline()
    finally:
        await runner.stop()


async def test_stop_terminates_and_is_idempotent():
    runner = FlutterRunner(flutter_path=sys.executable)
    await runner.spawn(["-c", ECHO_DAEMON])
    pid = runner.pid

    await runner.stop()

    assert pid is not None
    assert not runner.is_running
    assert runner.pid is None
    await runner.stop()
    assert await runner.hot_reload() == "Process not running"
