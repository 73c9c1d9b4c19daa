"""UI inspection for flutter-commander.

This sub-package turns the widget inspector tree or the accessibility dump
into one canonical semantic tree and searches it.
"""

from .models import Rect, SemanticNode
from .filters import normalize_dump_tree, normalize_live_tree, parse_bounds
from .tree_normalizer import TreeNormalizer, search_tree

__all__ = [
    "Rect",
    "SemanticNode",
    "TreeNormalizer",
    "normalize_dump_tree",
    "normalize_live_tree",
    "parse_bounds",
    "search_tree",
]
