"""FastAPI endpoints for flutter-commander.

This sub-package provides REST API endpoints for:
- Dev session control (start, stop, hot reload/restart)
- Semantic tree inspection and element search
- Device interaction
"""

from .app import create_app
from .routes import inspection_router, interaction_router, session_router

__all__ = [
    "create_app",
    "inspection_router",
    "interaction_router",
    "session_router",
]
