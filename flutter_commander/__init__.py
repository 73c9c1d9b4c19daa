"""flutter-commander: dev session control and UI inspection of Flutter apps for agents."""

__version__ = "0.1.0"

from .commander import FlutterCommander
from .inspection.models import Rect, SemanticNode

__all__ = [
    "FlutterCommander",
    "Rect",
    "SemanticNode",
    "__version__",
]
