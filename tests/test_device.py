"""Tests for the adb bridge with ``subprocess.run`` replaced by a recorder."""

from __future__ import annotations

import subprocess

import pytest

from flutter_commander.core import device
from flutter_commander.core.device import AdbClient
from flutter_commander.core.exceptions import ADBError
from flutter_commander.inspection.models import Rect


class Recorder:
    def __init__(self, outputs=None, returncode=0):
        self.outputs = list(outputs or [])
        self.returncode = returncode
        self.commands: list[list[str]] = []

    def __call__(self, cmd, **kwargs):
        self.commands.append(cmd)
        stdout = self.outputs.pop(0) if self.outputs else ""
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=stdout, stderr="boom")


@pytest.fixture
def recorder(monkeypatch):
    rec = Recorder()
    monkeypatch.setattr(device.subprocess, "run", rec)
    return rec


def test_commands_target_serial(recorder):
    AdbClient(serial="emulator-5554", adb_path="adb").tap(10, 20)
    assert recorder.commands == [["adb", "-s", "emulator-5554", "shell", "input tap 10 20"]]


def test_input_text_escapes_shell_characters(recorder):
    AdbClient(adb_path="adb").input_text("it's $5 now")
    assert recorder.commands[0][-1] == 'input text "it\\\'s%s\\$5%snow"'


def test_screen_size_prefers_override(recorder):
    recorder.outputs = ["Physical size: 1080x2400\nOverride size: 720x1600"]
    assert AdbClient(adb_path="adb").get_screen_size() == Rect(0, 0, 720, 1600)


def test_screen_size_unparseable(recorder):
    recorder.outputs = ["no size here"]
    with pytest.raises(ADBError):
        AdbClient(adb_path="adb").get_screen_size()


def test_dump_window_hierarchy_reads_back_file(recorder):
    recorder.outputs = ["UI hierchary dumped to: /data/local/tmp/window_dump.xml", "<hierarchy />"]

    assert AdbClient(adb_path="adb").dump_window_hierarchy() == "<hierarchy />"
    assert recorder.commands[0][-1].startswith("uiautomator dump ")
    assert recorder.commands[1][-1].startswith("cat ")


def test_list_devices(recorder):
    recorder.outputs = ["List of devices attached\nemulator-5554\tdevice\nR58M\tunauthorized\n\n"]
    assert AdbClient.list_devices(adb_path="adb") == ["emulator-5554"]


def test_nonzero_exit_raises(monkeypatch):
    monkeypatch.setattr(device.subprocess, "run", Recorder(returncode=1))
    with pytest.raises(ADBError, match="exited with 1"):
        AdbClient(adb_path="adb").push("a.txt", "/sdcard/a.txt")


def test_timeout_raises(monkeypatch):
    def timeout(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, 1)

    monkeypatch.setattr(device.subprocess, "run", timeout)
    with pytest.raises(ADBError, match="timed out"):
        AdbClient(adb_path="adb").shell("wm size")


def test_missing_adb_binary_raises():
    with pytest.raises(ADBError):
        AdbClient(adb_path="/nonexistent/adb").shell("echo hi")
