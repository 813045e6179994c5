"""Add / update / delete / search over a :class:`RecordStore`.

Every call reloads the file, applies at most one mutation and rewrites the
whole file. Outcomes are returned as :class:`OperationResult`; nothing here
raises for bad input, conflicts, a full store or I/O failures.

Confirmation prompts are the caller's job: by the time :meth:`add` or
:meth:`delete` runs the user has already agreed.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from inspectrec.config import Settings
from inspectrec.logs.audit import AuditLog
from inspectrec.records.lookup import find_conflict, find_exact, find_substring, remove_at
from inspectrec.records.models import FieldKind, InspectionRecord, OperationResult, ResultCode
from inspectrec.records.store import RecordStore
from inspectrec.records.validators import Validators

logger = logging.getLogger(__name__)

SAVE_FAILED = "Error saving file. Changes may be lost."


def _clean(value: Optional[str]) -> str:
    return str(value or "").strip()


class RecordService:
    def __init__(
        self,
        store: RecordStore,
        validators: Optional[Validators] = None,
        audit: Optional[AuditLog] = None,
    ):
        self.store = store
        self.validators = validators or Validators()
        self.audit = audit

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecordService":
        store = RecordStore(
            settings.data_path,
            capacity=settings.capacity,
            limits=settings.limits,
            lock=settings.lock,
        )
        audit = AuditLog(path=str(settings.audit_path)) if settings.audit_path else None
        return cls(store, Validators(settings.grammar, settings.limits), audit)

    # ── reads ────────────────────────────────────────────────────────

    def list_records(self) -> list[InspectionRecord]:
        return self.store.load()

    def get(self, key: str) -> Optional[InspectionRecord]:
        records = self.store.load()
        idx = find_exact(records, _clean(key))
        return records[idx] if idx is not None else None

    def search(self, key: str, substring: bool = False) -> OperationResult:
        """Find records by identifier or registration, ignoring case."""
        key = _clean(key)
        records = self.store.load()
        if substring:
            hits = [records[i] for i in find_substring(records, key)]
        else:
            idx = find_exact(records, key)
            hits = [records[idx]] if idx is not None else []
        if not hits:
            return OperationResult.failure(ResultCode.NOT_FOUND, f"No record found for '{key}'.")
        return OperationResult.success(
            f"{len(hits)} match(es) found.",
            records=[r.to_dict() for r in hits],
        )

    def check_capacity(self) -> OperationResult:
        """Let callers refuse an add before asking for any field."""
        count = len(self.store.load())
        if count >= self.store.capacity:
            return OperationResult.failure(
                ResultCode.CAPACITY,
                f"Max records reached ({self.store.capacity}).",
            )
        return OperationResult.success(f"{self.store.capacity - count} slot(s) free.")

    # ── mutations ────────────────────────────────────────────────────

    def add(self, inspection_id: str, car_reg: str, owner: str, date: str) -> OperationResult:
        values = {
            FieldKind.INSPECTION_ID: _clean(inspection_id),
            FieldKind.CAR_REG: _clean(car_reg),
            FieldKind.OWNER: _clean(owner),
            FieldKind.DATE: _clean(date),
        }
        with self.store.locked():
            records = self.store.load()
            if len(records) >= self.store.capacity:
                result = OperationResult.failure(
                    ResultCode.CAPACITY,
                    f"Max records reached ({self.store.capacity}).",
                )
                return self._audited("add", result, values[FieldKind.INSPECTION_ID])

            for kind, value in values.items():
                reason = self.validators.field_error(kind, value)
                if reason:
                    result = OperationResult.failure(ResultCode.INVALID_FIELD, reason, field_kind=kind)
                    return self._audited("add", result, values[FieldKind.INSPECTION_ID])

            for kind in (FieldKind.INSPECTION_ID, FieldKind.CAR_REG):
                if find_exact(records, values[kind]) is not None:
                    result = OperationResult.failure(
                        ResultCode.CONFLICT,
                        f"'{values[kind]}' already exists as an InspectionID or CarRegNumber.",
                        field_kind=kind,
                    )
                    return self._audited("add", result, values[FieldKind.INSPECTION_ID])

            _, normalized = self.validators.validate_date(values[FieldKind.DATE])
            record = InspectionRecord(
                inspection_id=values[FieldKind.INSPECTION_ID],
                car_reg=values[FieldKind.CAR_REG],
                owner=values[FieldKind.OWNER],
                date=normalized,
            )
            records.append(record)
            failure = self._persist(records)
            if failure is not None:
                return self._audited("add", failure, record.inspection_id)

        logger.info("Added record %s / %s", record.inspection_id, record.car_reg)
        return self._audited("add", OperationResult.success("Record added and saved.", record), record.inspection_id)

    def update(
        self,
        key: str,
        inspection_id: Optional[str] = None,
        car_reg: Optional[str] = None,
        owner: Optional[str] = None,
        date: Optional[str] = None,
    ) -> OperationResult:
        """Replace the supplied fields of the record matching *key*.

        Blank or ``None`` values keep the current field. Identifier and
        registration may be set to any value not used by ANOTHER record.
        Nothing is written unless every supplied field is valid.
        """
        key = _clean(key)
        supplied = {
            kind: _clean(value)
            for kind, value in (
                (FieldKind.INSPECTION_ID, inspection_id),
                (FieldKind.CAR_REG, car_reg),
                (FieldKind.OWNER, owner),
                (FieldKind.DATE, date),
            )
            if _clean(value)
        }

        with self.store.locked():
            records = self.store.load()
            idx = find_exact(records, key)
            if idx is None:
                return self._audited("update", OperationResult.failure(ResultCode.NOT_FOUND, f"No record found for '{key}'."), key)

            changes: dict[str, str] = {}
            for kind, value in supplied.items():
                reason = self.validators.field_error(kind, value)
                if reason:
                    result = OperationResult.failure(ResultCode.INVALID_FIELD, reason, field_kind=kind)
                    return self._audited("update", result, key)
                if kind in (FieldKind.INSPECTION_ID, FieldKind.CAR_REG):
                    if find_conflict(records, value, exclude=idx) is not None:
                        result = OperationResult.failure(
                            ResultCode.CONFLICT,
                            f"'{value}' already exists in another record.",
                            field_kind=kind,
                        )
                        return self._audited("update", result, key)
                if kind is FieldKind.DATE:
                    value = self.validators.validate_date(value)[1]
                changes[kind.value] = value

            updated = dataclasses.replace(records[idx], **changes)
            records[idx] = updated
            failure = self._persist(records)
            if failure is not None:
                return self._audited("update", failure, key)

        logger.info("Updated record %s (%s)", updated.inspection_id, ", ".join(changes) or "no changes")
        return self._audited("update", OperationResult.success("Record successfully updated.", updated), key)

    def delete(self, key: str) -> OperationResult:
        key = _clean(key)
        with self.store.locked():
            records = self.store.load()
            idx = find_exact(records, key)
            if idx is None:
                return self._audited("delete", OperationResult.failure(ResultCode.NOT_FOUND, f"No record found for '{key}'."), key)
            removed = records[idx]
            failure = self._persist(remove_at(records, idx))
            if failure is not None:
                return self._audited("delete", failure, key)

        logger.info("Deleted record %s / %s", removed.inspection_id, removed.car_reg)
        return self._audited("delete", OperationResult.success("Successfully deleted and saved.", removed), key)

    def _persist(self, records: list[InspectionRecord]) -> Optional[OperationResult]:
        """Save *records*, or return the failure to report instead."""
        store = self.store
        if store.read_failed:
            logger.warning("Not rewriting %s: it could not be read", store.path)
            return OperationResult.failure(
                ResultCode.STORAGE_ERROR,
                f"{store.path} could not be read; refusing to overwrite it.",
            )
        if store.skipped:
            logger.warning("Not rewriting %s: %d record(s) were not loaded", store.path, store.skipped)
            return OperationResult.failure(
                ResultCode.STORAGE_ERROR,
                f"{store.skipped} record(s) in {store.path} could not be loaded "
                "(field too long or over capacity); refusing to rewrite the file.",
            )
        if not store.save(records):
            return OperationResult.failure(ResultCode.STORAGE_ERROR, SAVE_FAILED)
        return None

    def _audited(self, operation: str, result: OperationResult, key: str) -> OperationResult:
        if self.audit is not None:
            self.audit.log_operation(
                operation,
                ok=result.ok,
                code=result.code.value,
                key=key,
                record=result.record,
            )
        return result
