from __future__ import annotations

import re
import subprocess
from typing import Optional, Protocol, Sequence

from ..inspection.models import Rect
from .config import config
from .exceptions import ADBError
from .logger import log

_SCREEN_SIZE_PATTERN = re.compile(r"(\d+)x(\d+)")
_SHELL_SPECIAL_CHARS = re.compile(r"""([\\"'`$()<>|&;*])""")


class WindowDumpProvider(Protocol):
    """Anything able to return the raw accessibility (uiautomator) XML dump."""

    def dump_window_hierarchy(self) -> str: ...


class AdbClient:
    """Lightweight wrapper around `adb` for interacting with a single Android device.

    Only a running ``adb`` binary (bundled with the Android SDK) is required.
    When ``serial`` is ``None`` commands go to the only connected device.
    """

    def __init__(self, serial: Optional[str] = None, adb_path: Optional[str] = None):
        self.serial = serial
        self.adb_path = adb_path or config.resolve_adb_path()

    # ---------------------------------------------------------------------
    # Factory helpers
    # ---------------------------------------------------------------------
    @classmethod
    def list_devices(cls, adb_path: Optional[str] = None) -> list[str]:
        """Return a list of connected device/emulator serial numbers."""
        output = cls(adb_path=adb_path)._run(["devices"])
        lines = output.strip().splitlines()[1:]  # Skip the header
        serials: list[str] = []
        for line in lines:
            if not line.strip():
                continue
            parts = line.split("\t")
            if len(parts) >= 2 and parts[1] == "device":
                serials.append(parts[0])
        return serials

    # ---------------------------------------------------------------------
    # Core commands
    # ---------------------------------------------------------------------
    def _command(self, args: Sequence[str]) -> list[str]:
        cmd = [self.adb_path]
        if self.serial:
            cmd.extend(["-s", self.serial])
        cmd.extend(args)
        return cmd

    def _run(self, args: Sequence[str]) -> str:
        cmd = self._command(args)
        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=config.adb_command_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ADBError(f"ADB command timed out: {' '.join(args)}") from e
        except OSError as e:
            raise ADBError(f"Could not run adb at {self.adb_path}: {e}") from e

        if result.returncode != 0:
            raise ADBError(f"ADB Error: {' '.join(args)} exited with {result.returncode} (Stderr: {result.stderr.strip()})")
        return result.stdout.strip()

    def _run_binary(self, args: Sequence[str]) -> bytes:
        cmd = self._command(args)
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=config.adb_command_timeout)  # noqa: S603
        except subprocess.TimeoutExpired as e:
            raise ADBError(f"ADB command timed out: {' '.join(args)}") from e
        except OSError as e:
            raise ADBError(f"Could not run adb at {self.adb_path}: {e}") from e

        if result.returncode != 0:
            raise ADBError(f"ADB Error: {' '.join(args)} exited with {result.returncode}")
        return result.stdout

    def shell(self, command: str) -> str:
        """Execute an ADB shell command and return stdout as a string."""
        return self._run(["shell", command])

    def install(self, apk_path: str, *, clean: bool = False, grant_permissions: bool = False) -> None:
        """Install an APK on the device."""
        args = ["install"]
        if clean:
            args.append("-r")  # Reinstall (replace existing)
        if grant_permissions:
            args.append("-g")
        args.append(apk_path)
        self._run(args)

    def uninstall(self, package_name: str) -> None:
        self._run(["uninstall", package_name])

    def push(self, local: str, remote: str) -> None:
        """Push a file or directory to the device."""
        self._run(["push", local, remote])

    def pull(self, remote: str, local: str) -> None:
        """Pull a file or directory from the device."""
        self._run(["pull", remote, local])

    # ---------------------------------------------------------------------
    # Interaction
    # ---------------------------------------------------------------------
    def tap(self, x: int, y: int) -> None:
        self.shell(f"input tap {x} {y}")

    def input_text(self, text: str) -> None:
        escaped = _SHELL_SPECIAL_CHARS.sub(r"\\\1", text).replace(" ", "%s")
        self.shell(f'input text "{escaped}"')

    def key_event(self, key_code: int | str) -> None:
        self.shell(f"input keyevent {key_code}")

    def swipe(self, x1: int, y1: int, x2: int, y2: int, duration: int = 500) -> None:
        self.shell(f"input swipe {x1} {y1} {x2} {y2} {duration}")

    # ---------------------------------------------------------------------
    # Info
    # ---------------------------------------------------------------------
    def get_screen_size(self) -> Rect:
        """Return the screen as a rect anchored at the origin."""
        output = self.shell("wm size")
        # "Override size" wins over "Physical size" when both are reported
        matches = _SCREEN_SIZE_PATTERN.findall(output)
        if not matches:
            raise ADBError("Could not determine screen size")
        width, height = matches[-1]
        return Rect(0, 0, int(width), int(height))

    def take_screenshot(self) -> bytes:
        png_bytes = self._run_binary(["exec-out", "screencap", "-p"])
        if not png_bytes.startswith(b"\x89PNG"):
            # Older devices may return Windows line endings; normalize them
            png_bytes = png_bytes.replace(b"\r\n", b"\n")
        return png_bytes

    def dump_window_hierarchy(self) -> str:
        """Dump the accessibility hierarchy to the device and read it back."""
        log.debug("Dumping window hierarchy via uiautomator ...")
        self.shell(f"uiautomator dump {config.window_dump_path}")
        return self.shell(f"cat {config.window_dump_path}")

    # ---------------------------------------------------------------------
    # Convenience
    # ---------------------------------------------------------------------
    def __repr__(self) -> str:  # pragma: no cover - string representation only
        return f"<AdbClient serial={self.serial!r}>"
