"""Helpers shared by the per-source transformers."""

from collections.abc import Iterable
from typing import Any, TypeVar

from satvik_catalog.exceptions import MalformedRecordError
from satvik_catalog.models.catalog import UnifiedBrand, UnifiedCategory

T = TypeVar("T", UnifiedBrand, UnifiedCategory)

UNKNOWN_BRAND = UnifiedBrand(id="unknown", name="Unknown")
UNCATEGORIZED = UnifiedCategory(id="uncategorized", name="Uncategorized")


def require_id(record: Any, source: str, *keys: str, kind: str = "record") -> str:
    """Return the first non-empty id among ``keys`` or raise MalformedRecordError."""
    if not isinstance(record, dict):
        raise MalformedRecordError(
            f"{source} {kind} is not an object",
            source=source,
        )
    for key in keys:
        value = record.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    raise MalformedRecordError(
        f"{source} {kind} is missing required field '{keys[0]}'",
        source=source,
        field=keys[0],
        record=record,
    )


def text(value: Any) -> str:
    """Coerce an optional text field to a string, defaulting to empty."""
    if value is None:
        return ""
    return str(value)


def optional_text(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def string_list(value: Any) -> list[str]:
    """Coerce an optional list field to a list of non-empty strings."""
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value if v is not None and str(v).strip()]


_TRUE_STRINGS = frozenset({"true", "yes", "y", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "n", "off", "0"})


def optional_bool(value: Any) -> bool | None:
    """Coerce a flag from a bool, number or string; absent or unrecognized values give None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def flag(value: Any, default: bool) -> bool:
    """Coerce a flag, using ``default`` when it is absent or unrecognized."""
    result = optional_bool(value)
    return default if result is None else result


def optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def dedupe_by_id(items: Iterable[T]) -> list[T]:
    """Keep the first entity seen for each id, preserving order."""
    seen: set[str] = set()
    unique: list[T] = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            unique.append(item)
    return unique
