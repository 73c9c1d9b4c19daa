"""flutter-commander structured logging system."""

from __future__ import annotations

import os
import sys
from typing import Any

from loguru import logger

from .config import config

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


class Logger:
    """Structured logging for the session, RPC and inspection layers."""

    def __init__(self, name: str = "FlutterCommander") -> None:
        """Initialize and configure a *Loguru* logger instance."""
        self.name = name
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Install the console sink and, when enabled, the rotating file sinks."""
        logger.remove()

        # stderr keeps stdout free for tools that print trees as JSON
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=config.log_level, colorize=True)

        if not config.log_to_file:
            return

        os.makedirs(config.log_dir, exist_ok=True)
        self._add_file_sink("session_{time:YYYY-MM-DD}.log", "DEBUG", "14 days")
        self._add_file_sink("errors_{time:YYYY-MM-DD}.log", "ERROR", "60 days")

    @staticmethod
    def _add_file_sink(pattern: str, level: str, retention: str) -> None:
        logger.add(
            os.path.join(config.log_dir, pattern),
            format=FILE_FORMAT,
            level=level,
            rotation="1 day",
            retention=retention,
            compression="zip",
        )

    def _emit(self, level: str, message: str, **kwargs: Any) -> None:
        # depth=2 reports the caller of info()/debug()/..., not this helper
        logger.opt(depth=2).log(level, f"[{self.name}] {message}", **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._emit("INFO", message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._emit("DEBUG", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._emit("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._emit("ERROR", message, **kwargs)

    def success(self, message: str, **kwargs: Any) -> None:
        self._emit("SUCCESS", message, **kwargs)

    def log_session_event(self, event: str, details: dict[str, Any] | None = None) -> None:
        """Log a dev session lifecycle event, e.g. ``started`` or ``output closed``."""
        message = f"SESSION: {event}"
        if details:
            message += " | " + ", ".join(f"{key}={value}" for key, value in details.items())
        self.info(message)

    def log_rpc(self, method: str, request_id: int, duration_ms: float) -> None:
        """Log a completed VM Service round trip."""
        self.debug(f"RPC: {method} (id={request_id}) answered in {duration_ms:.2f}ms")

    def log_performance(self, operation: str, duration_ms: float) -> None:
        self.debug(f"PERFORMANCE: {operation} took {duration_ms:.2f}ms")


# Global logger instance
log = Logger()
