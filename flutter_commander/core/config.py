"""Configuration management for the flutter-commander framework."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables
load_dotenv()


class Config(BaseSettings):
    """Configuration class for flutter-commander."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore unexpected env vars rather than raising errors
    )

    # Toolchain Configuration
    flutter_path: str = Field(default="flutter", description="Path to the flutter executable")
    adb_path: str = Field(default="adb", description="Path to the adb executable")
    android_device_id: str = Field(default="emulator-5554")
    adb_command_timeout: int = Field(default=30, description="Seconds before an adb command is abandoned")
    window_dump_path: str = Field(default="/data/local/tmp/window_dump.xml")

    # Dev session / process output
    stream_buffer_limit: int = Field(default=1024 * 1024, description="Max bytes buffered without a newline")
    stream_chunk_size: int = Field(default=4096)
    event_queue_size: int = Field(default=256)
    process_stop_timeout: float = Field(default=5.0)

    # VM Service / inspector
    rpc_request_timeout_ms: int = Field(default=5000)
    inspector_method: str = Field(default="ext.flutter.inspector.getRootWidgetSummaryTree")
    inspector_object_group: str = Field(default="flutter-commander")

    # Element search
    find_poll_interval_ms: int = Field(default=500)
    find_default_timeout_ms: int = Field(default=5000)
    max_scroll_attempts: int = Field(default=5)

    # Framework Configuration
    capture_dir: str = Field(default="captures")
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")
    log_to_file: bool = Field(default=True)
    sdk_root: Optional[str] = Field(default=None, description="Android SDK root, used to locate adb")

    # API Configuration
    api_host: str = Field(default="localhost")
    api_port: int = Field(default=8000)
    cors_origins: list[str] = Field(default=["http://localhost:3000"])

    def validate_config(self) -> bool:
        """Validate configuration values."""
        if self.rpc_request_timeout_ms <= 0:
            raise ValueError("RPC request timeout must be positive")

        if self.find_poll_interval_ms <= 0:
            raise ValueError("Find poll interval must be positive")

        if self.stream_buffer_limit <= 0:
            raise ValueError("Stream buffer limit must be positive")

        if self.adb_command_timeout <= 0:
            raise ValueError("ADB command timeout must be positive")

        return True

    def resolve_adb_path(self) -> str:
        """Return the adb executable, preferring the SDK platform-tools copy when configured."""
        if self.sdk_root and self.adb_path == "adb":
            candidate = os.path.join(self.sdk_root, "platform-tools", "adb")
            if os.path.exists(candidate):
                return candidate
        return self.adb_path


# Global configuration instance
try:
    config = Config()
except Exception as e:
    print(f"Warning: Could not load configuration: {e}")
    # Fall back to defaults, ignoring the broken environment
    config = Config.model_construct()
