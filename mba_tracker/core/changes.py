"""Field-level diffs between two snapshots of an entity.

``compute_changes`` is what the service layer feeds into the audit trail after
an update. It compares only the fields it is told to track and only reports the
ones whose values differ, as ``{"field": {"old": ..., "new": ...}}``.
"""
from __future__ import annotations

import enum
import numbers
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional


class _Missing:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

Changes = dict[str, dict[str, Any]]


def normalize_value(value: Any) -> Any:
    """Reduce a value to a JSON-friendly primitive that compares by value.

    Decimals (and any other non-float real number) become floats, dates and
    datetimes become ISO strings and enum members become their value.
    Everything else, ``MISSING`` included, is returned untouched.
    """
    if value is None or value is MISSING:
        return value
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, numbers.Real)):
        return float(value)
    return value


def _field_name(field: Any) -> str:
    if isinstance(field, enum.Enum):
        return str(field.value)
    return str(field)


def _read(snapshot: Any, name: str) -> Any:
    if isinstance(snapshot, Mapping):
        return snapshot.get(name, MISSING)
    return getattr(snapshot, name, MISSING)


def _same(old: Any, new: Any) -> bool:
    # bool is an int subclass; True must not match 1
    if isinstance(old, bool) or isinstance(new, bool):
        return type(old) is type(new) and old == new
    return old == new


def _stored(value: Any) -> Any:
    return None if value is MISSING else value


def compute_changes(
    previous: Optional[Any],
    current: Any,
    fields: Iterable[Any],
) -> Optional[Changes]:
    """Diff ``previous`` against ``current`` over ``fields``.

    Snapshots may be mappings or objects exposing the fields as attributes.
    Returns ``None`` when there is no previous snapshot (creates are not
    diffed) or when none of the tracked fields changed. A field missing from
    one side counts as a change even against ``None``; it is stored as
    ``None`` in the result.
    """
    if previous is None:
        return None

    changes: Changes = {}
    for field in fields:
        name = _field_name(field)
        old = normalize_value(_read(previous, name))
        new = normalize_value(_read(current, name))
        if not _same(old, new):
            changes[name] = {"old": _stored(old), "new": _stored(new)}

    return changes or None
