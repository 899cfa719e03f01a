"""Use cases for creating, delivering and reading notifications."""

from .dispatch import MAX_TITLE_LENGTH, DispatchService

__all__ = ["DispatchService", "MAX_TITLE_LENGTH"]
