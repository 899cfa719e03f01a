"""Conversion of notification payloads into push provider data bags."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any


def to_string_map(data: Mapping[str, Any] | None) -> dict[str, str]:
    """Flatten ``data`` into the ``str -> str`` mapping push providers accept.

    ``None`` becomes an empty mapping. String values are kept verbatim and every
    other value is rendered as compact JSON, so ``5`` becomes ``"5"``, ``True``
    becomes ``"true"`` and nested objects keep a parseable representation.
    """

    if not data:
        return {}

    flattened: dict[str, str] = {}
    for key, value in data.items():
        if isinstance(value, str):
            flattened[str(key)] = value
        else:
            flattened[str(key)] = json.dumps(
                value, separators=(",", ":"), ensure_ascii=False, default=str
            )
    return flattened


__all__ = ["to_string_map"]
