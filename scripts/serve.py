#!/usr/bin/env python3
"""
flutter-commander HTTP server
=============================

Exposes dev session control, semantic tree inspection and device interaction
over REST so an agent can drive a Flutter app running on an Android device.

Usage:
    python scripts/serve.py --host 127.0.0.1 --port 8000
"""

import argparse
import sys
from pathlib import Path

import uvicorn

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from flutter_commander.api import create_app  # noqa: E402
from flutter_commander.core.config import config  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="flutter-commander HTTP server")
    parser.add_argument("--host", default=config.api_host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=config.api_port, help="Port to bind to")
    args = parser.parse_args()

    config.validate_config()
    uvicorn.run(create_app(), host=args.host, port=args.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
