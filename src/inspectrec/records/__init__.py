"""Inspection record validation, persistence and lookup.

Records live in a flat comma-separated file (one per line, no header).
The file is created with sample data the first time it is loaded.
"""

from __future__ import annotations

from .codec import format_line, parse_line
from .lookup import find_conflict, find_exact, find_substring, remove_at
from .models import FieldKind, InspectionRecord, OperationResult, ResultCode
from .service import RecordService
from .store import RecordStore, load, save
from .validators import Validators, days_in_month, is_leap_year, validate_field

__all__ = [
    "FieldKind",
    "InspectionRecord",
    "OperationResult",
    "RecordService",
    "RecordStore",
    "ResultCode",
    "Validators",
    "days_in_month",
    "find_conflict",
    "find_exact",
    "find_substring",
    "format_line",
    "is_leap_year",
    "load",
    "parse_line",
    "remove_at",
    "save",
    "validate_field",
]
