"""Aggregate application use cases."""

from .notifications import DispatchService
from .tokens import evict_stale_tokens

__all__ = [
    "DispatchService",
    "evict_stale_tokens",
]
