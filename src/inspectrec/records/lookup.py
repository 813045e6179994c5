"""Case-insensitive lookups over an in-memory record list.

Records are kept in insertion order. When a key matches more than one
record (possible only for hand-edited files) the first match wins.
"""

from __future__ import annotations

from typing import Optional, Sequence

from inspectrec.records.models import InspectionRecord


def _norm(value: str) -> str:
    return str(value or "").strip().casefold()


def _matches(record: InspectionRecord, key: str) -> bool:
    return _norm(record.inspection_id) == key or _norm(record.car_reg) == key


def find_exact(records: Sequence[InspectionRecord], key: str) -> Optional[int]:
    """Index of the first record whose ID or registration equals *key*."""
    k = _norm(key)
    if not k:
        return None
    for i, record in enumerate(records):
        if _matches(record, k):
            return i
    return None


def find_substring(records: Sequence[InspectionRecord], key: str) -> list[int]:
    k = _norm(key)
    if not k:
        return []
    return [
        i
        for i, record in enumerate(records)
        if k in _norm(record.inspection_id) or k in _norm(record.car_reg)
    ]


def find_conflict(
    records: Sequence[InspectionRecord],
    key: str,
    exclude: Optional[int] = None,
) -> Optional[int]:
    """Like :func:`find_exact` but ignores the record at *exclude*."""
    k = _norm(key)
    if not k:
        return None
    for i, record in enumerate(records):
        if i != exclude and _matches(record, k):
            return i
    return None


def remove_at(records: Sequence[InspectionRecord], index: int) -> list[InspectionRecord]:
    """Return a new list without ``records[index]``; order is kept."""
    if not 0 <= index < len(records):
        raise IndexError(f"record index out of range: {index}")
    return [*records[:index], *records[index + 1 :]]
