"""Device interaction on top of the semantic tree."""

from .interaction import InteractionService

__all__ = [
    "InteractionService",
]
