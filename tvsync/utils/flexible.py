"""
Flexible scalar parsing

Xtream-style servers are inconsistent about JSON types: the same field may
arrive as an integer, a numeric string or a boolean depending on the panel
version. Each parser below is a fixed decision table that never raises and
falls back to a default instead.

    input            int field      str field      int-list field
    ---------------  -------------  -------------  ----------------------
    int              value          str(value)     [value]
    integral float   int(value)     str(int(v))    [int(value)]
    numeric string   int(value)     value          [int(value)]
    other string     default        value          []
    bool             1 / 0          default        []
    list             default        default        per element, else []
    anything else    default        default        []

Integers outside the signed 64-bit range count as unparseable.
"""
from typing import Any

# Stored integers are SQLite INTEGER columns (signed 64-bit)
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def _coerce_int(value: Any) -> int | None:
    """Return value as an int, or None when it has no in-range integer reading."""
    # bool is an int subclass, so it has to be checked first
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        parsed = int(value)
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    return parsed if INT_MIN <= parsed <= INT_MAX else None


def parse_flexible_int(value: Any, default: int = 0) -> int:
    """Parse an integer field that may arrive as int, numeric string or bool."""
    parsed = _coerce_int(value)
    return default if parsed is None else parsed


def parse_flexible_str(value: Any, default: str = "") -> str:
    """Parse an identifier field that may arrive as string or number."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return default


def parse_flexible_int_list(value: Any) -> list[int]:
    """Parse a list-of-int field that may also arrive as a single int or string."""
    if isinstance(value, list):
        parsed = [_coerce_int(item) for item in value]
        if any(item is None or isinstance(raw, bool) for item, raw in zip(parsed, value)):
            return []
        return parsed
    if isinstance(value, bool):
        return []
    single = _coerce_int(value)
    return [] if single is None else [single]


def parse_optional_text(value: Any) -> str:
    """Parse a free-text field; null, missing and non-scalar values become ''."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return parse_flexible_str(value, default=str(value))
    return ""
