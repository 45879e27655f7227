"""
Field lookup for raw Megaplan records.

A field specifier is either a `$.`-prefixed dot path walked through the nested
record (`$.Category1000084CustomFieldFinalnayaStoimost.valueInMain`) or a plain
custom-field id looked up in the record's flat `customFields` map (`1008`).
Missing data always resolves to an empty string, never an exception.
"""
from __future__ import annotations

import math
import re
from typing import Any, Iterable, Optional

PATH_PREFIX = "$."
_NUMBER_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def is_blank(value: Any) -> bool:
    """Falsy in the upstream sense: None, False, 0, empty string or NaN. Empty dicts/lists are not blank."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    return False


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, dict):
        return current.get(segment)
    if isinstance(current, list) and segment.isdecimal() and segment.isascii():
        index = int(segment)
        return current[index] if index < len(current) else None
    return None


def get_path(obj: Any, segments: Iterable[str], default: Any = None) -> Any:
    """Walk `segments` through nested dicts/lists; return `default` on the first missing hop."""
    current = obj
    for segment in segments:
        if current is None:
            return default
        current = _step(current, segment)
    return default if current is None else current


def get_name(obj: Any, *path: str) -> str:
    """`obj.<path>.name` as a string, or ''."""
    name = get_path(obj, (*path, "name"))
    return "" if is_blank(name) else str(name)


def resolve(record: Any, specifier: Optional[str]) -> Any:
    """Return the scalar value addressed by `specifier`, unwrapping monetary `{value: ...}` objects."""
    if not specifier:
        return ""

    if specifier.startswith(PATH_PREFIX):
        value = record
        for segment in specifier[len(PATH_PREFIX):].split("."):
            if value is None:
                return ""
            value = _step(value, segment)

        if isinstance(value, dict) and "value" in value:
            unwrapped = value["value"]
            return "" if unwrapped is None else unwrapped
        return "" if is_blank(value) else value

    custom_fields = record.get("customFields") if isinstance(record, dict) else None
    if not isinstance(custom_fields, dict):
        return ""
    value = custom_fields.get(specifier)
    return "" if is_blank(value) else value


def parse_amount(value: Any) -> float:
    """
    Lenient numeric parse: numbers pass through, strings contribute their leading
    numeric prefix ("12.5 руб" -> 12.5), anything else (or NaN/inf) is 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_PREFIX.match(value)
        if not match:
            return 0.0
        try:
            number = float(match.group(1))
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0
