"""Helpers for reading wire payloads that mix snake_case and camelCase keys.

Each response type declares an alias table: an ordered tuple of accepted key
names per logical field. :func:`pick_fields` resolves a whole table at once so
the accepted aliases are visible next to the type that consumes them.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

AliasTable = Mapping[str, Tuple[str, ...]]


def is_record(value: Any) -> bool:
    return isinstance(value, Mapping)


def get_any(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first non-null value among ``keys``."""
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


def pick_fields(raw: Mapping[str, Any], table: AliasTable) -> Dict[str, Optional[Any]]:
    return {field: get_any(raw, *aliases) for field, aliases in table.items()}
