"""Exception hierarchy shared by the session, RPC and inspection layers."""

from __future__ import annotations

from typing import Any


class FlutterCommanderError(Exception):
    """Base class for every error raised by flutter-commander."""


class ADBError(FlutterCommanderError, RuntimeError):
    """Custom exception raised when an ADB-related error occurs."""


class ProcessSpawnError(FlutterCommanderError):
    """The development process could not be launched."""


class NoActiveSessionError(FlutterCommanderError):
    """A session operation was requested while no process is running."""

    def __init__(self, message: str = "No active dev session") -> None:
        super().__init__(message)


class RpcConnectionError(FlutterCommanderError, ConnectionError):
    """The VM Service socket could not be opened or written to."""


class NotConnectedError(RpcConnectionError):
    """A request was issued before ``connect`` succeeded."""

    def __init__(self, message: str = "Not connected to VM Service") -> None:
        super().__init__(message)


class ConnectionClosedError(RpcConnectionError):
    """The socket closed while a request was still pending."""

    def __init__(self, message: str = "Connection closed") -> None:
        super().__init__(message)


class RequestTimeoutError(FlutterCommanderError, TimeoutError):
    """No response arrived for a request before its deadline."""

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Request timed out after {timeout_ms}ms")


class RpcError(FlutterCommanderError):
    """The VM Service answered a request with an ``error`` member."""

    def __init__(self, error: Any) -> None:
        self.error = error
        if isinstance(error, dict):
            self.code = error.get("code")
            self.message = str(error.get("message", error))
        else:
            self.code = None
            self.message = str(error)
        super().__init__(self.message)


class TreeUnavailableError(FlutterCommanderError):
    """Neither the inspector nor the accessibility dump produced a usable tree."""


class ElementNotFoundError(FlutterCommanderError):
    """No node of the semantic tree matched a finder."""
