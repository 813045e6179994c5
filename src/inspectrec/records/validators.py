"""Field grammars for inspection records.

All checks return plain values; malformed input never raises.

Grammars (see :class:`inspectrec.config.Grammar`):

- ``strict``: identifier is one uppercase letter plus three digits
  (``A001``), registration is three uppercase letters plus four digits
  (``ABC0001``); all-zero numeric suffixes are rejected.
- ``lenient``: identifier and registration are 1..N ASCII letters/digits
  of either case.
"""

from __future__ import annotations

import re
from typing import Optional

from inspectrec.config import FieldLimits, Grammar, limits_for
from inspectrec.records.models import FieldKind, InspectionRecord

__all__ = [
    "Validators",
    "days_in_month",
    "fits_limits",
    "is_leap_year",
    "validate_field",
]

_STRICT_ID = re.compile(r"[A-Z][0-9]{3}")
_STRICT_REG = re.compile(r"[A-Z]{3}[0-9]{4}")
_ALNUM = re.compile(r"[A-Za-z0-9]+")

# sscanf("%d/%d/%d")-like: blanks may precede each number.
_DATE = re.compile(r"\s*([0-9]{1,2})/\s*([0-9]{1,2})/\s*([0-9]+)\s*", re.ASCII)
_DATE_CHARS = re.compile(r"[0-9/\s]*", re.ASCII)

_THIRTY_DAY_MONTHS = frozenset({4, 6, 9, 11})


def is_leap_year(year: int) -> bool:
    if year % 400 == 0:
        return True
    if year % 100 == 0:
        return False
    return year % 4 == 0


def days_in_month(month: int, year: int) -> int:
    if month == 2:
        return 29 if is_leap_year(year) else 28
    if month in _THIRTY_DAY_MONTHS:
        return 30
    return 31


class Validators:
    """Validators bound to one grammar and its length limits."""

    def __init__(self, grammar: Grammar = Grammar.STRICT, limits: Optional[FieldLimits] = None):
        self.grammar = Grammar(grammar)
        self.limits = limits or limits_for(self.grammar)

    # ── identifier / registration ────────────────────────────────────

    def validate_identifier(self, value: str) -> bool:
        if not isinstance(value, str) or not value or len(value) > self.limits.id_max_len:
            return False
        if self.grammar is Grammar.STRICT:
            return bool(_STRICT_ID.fullmatch(value)) and value[1:] != "000"
        return bool(_ALNUM.fullmatch(value))

    def validate_registration(self, value: str) -> bool:
        if not isinstance(value, str) or not value or len(value) > self.limits.reg_max_len:
            return False
        if self.grammar is Grammar.STRICT:
            return bool(_STRICT_REG.fullmatch(value)) and value[3:] != "0000"
        return bool(_ALNUM.fullmatch(value))

    # ── owner ────────────────────────────────────────────────────────

    def validate_owner_name(self, value: str) -> bool:
        if not isinstance(value, str) or not value or len(value) > self.limits.owner_max_len:
            return False
        has_letter = False
        for ch in value:
            if ch.isascii() and ch.isalpha():
                has_letter = True
            elif ch != " ":
                return False
        return has_letter

    # ── date ─────────────────────────────────────────────────────────

    def validate_date(self, value: str) -> tuple[bool, str]:
        """Check a ``D/M/Y`` date and return ``(ok, "DD/MM/YYYY")``.

        The normalised string is empty when the date is rejected.
        """
        if not isinstance(value, str) or not _DATE_CHARS.fullmatch(value):
            return False, ""
        m = _DATE.fullmatch(value)
        if not m:
            return False, ""
        # Any year with more than four significant digits is out of range.
        year_digits = m.group(3).lstrip("0")
        if len(year_digits) > 4:
            return False, ""
        day, month, year = int(m.group(1)), int(m.group(2)), int(year_digits or "0")
        if not self.limits.min_year <= year <= self.limits.max_year:
            return False, ""
        if not 1 <= month <= 12:
            return False, ""
        if not 1 <= day <= days_in_month(month, year):
            return False, ""
        return True, f"{day:02d}/{month:02d}/{year:04d}"

    # ── dispatch ─────────────────────────────────────────────────────

    def validate_field(self, kind: FieldKind, value: str) -> bool:
        kind = FieldKind(kind)
        if kind is FieldKind.INSPECTION_ID:
            return self.validate_identifier(value)
        if kind is FieldKind.CAR_REG:
            return self.validate_registration(value)
        if kind is FieldKind.OWNER:
            return self.validate_owner_name(value)
        return self.validate_date(value)[0]

    def field_error(self, kind: FieldKind, value: str) -> Optional[str]:
        """Return why *value* is not a valid *kind*, or ``None`` if it is."""
        if self.validate_field(kind, value):
            return None
        kind = FieldKind(kind)
        lim = self.limits
        strict = self.grammar is Grammar.STRICT
        if kind is FieldKind.INSPECTION_ID:
            if strict:
                return "Invalid InspectionID: use 1 uppercase letter + 3 digits, not 000 (e.g. A001)"
            return f"Invalid InspectionID: use letters and digits only (1-{lim.id_max_len} chars)"
        if kind is FieldKind.CAR_REG:
            if strict:
                return "Invalid CarRegNumber: use 3 uppercase letters + 4 digits, not 0000 (e.g. ABC0001)"
            return f"Invalid CarRegNumber: use letters and digits only (1-{lim.reg_max_len} chars)"
        if kind is FieldKind.OWNER:
            return f"Invalid OwnerName: use letters and spaces only (1-{lim.owner_max_len} chars)"
        return f"Invalid InspectionDate: use a real DD/MM/YYYY date between {lim.min_year} and {lim.max_year}"

    def fits_limits(self, record: InspectionRecord) -> bool:
        return fits_limits(record, self.limits)


def fits_limits(record: InspectionRecord, limits: FieldLimits) -> bool:
    """Length check only; grammar is not re-validated."""
    return (
        len(record.inspection_id) <= limits.id_max_len
        and len(record.car_reg) <= limits.reg_max_len
        and len(record.owner) <= limits.owner_max_len
        and len(record.date) <= limits.date_max_len
    )


def validate_field(kind: FieldKind, value: str, grammar: Grammar = Grammar.STRICT) -> bool:
    return Validators(grammar).validate_field(kind, value)
