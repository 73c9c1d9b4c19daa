"""Core components of flutter-commander: configuration, logging, device and session plumbing."""

from .config import Config, config
from .logger import Logger, log
from .exceptions import (
    ADBError,
    ConnectionClosedError,
    ElementNotFoundError,
    FlutterCommanderError,
    NoActiveSessionError,
    NotConnectedError,
    ProcessSpawnError,
    RequestTimeoutError,
    RpcConnectionError,
    RpcError,
    TreeUnavailableError,
)
from .device import AdbClient, WindowDumpProvider
from .stream_parser import StreamEventParser, iter_stream_events
from .flutter_runner import FlutterRunner
from .session_manager import SessionManager
from .rpc_client import RpcClient

__all__ = [
    "ADBError",
    "AdbClient",
    "Config",
    "ConnectionClosedError",
    "ElementNotFoundError",
    "FlutterCommanderError",
    "FlutterRunner",
    "Logger",
    "NoActiveSessionError",
    "NotConnectedError",
    "ProcessSpawnError",
    "RequestTimeoutError",
    "RpcClient",
    "RpcConnectionError",
    "RpcError",
    "SessionManager",
    "StreamEventParser",
    "TreeUnavailableError",
    "WindowDumpProvider",
    "config",
    "iter_stream_events",
    "log",
]
