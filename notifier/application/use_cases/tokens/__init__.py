"""Use cases for maintaining registered device tokens."""

from .evict_stale_tokens import evict_stale_tokens

__all__ = ["evict_stale_tokens"]
