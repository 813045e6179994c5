"""Record and operation result types."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldKind(str, Enum):
    """The four persisted fields, in file order."""

    INSPECTION_ID = "inspection_id"
    CAR_REG = "car_reg"
    OWNER = "owner"
    DATE = "date"


@dataclass(frozen=True)
class InspectionRecord:
    inspection_id: str
    car_reg: str
    owner: str
    date: str

    def fields(self) -> tuple[str, str, str, str]:
        return (self.inspection_id, self.car_reg, self.owner, self.date)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class ResultCode(str, Enum):
    OK = "ok"
    INVALID_FIELD = "invalid_field"
    CONFLICT = "conflict"
    CAPACITY = "capacity"
    NOT_FOUND = "not_found"
    STORAGE_ERROR = "storage_error"


class OperationResult(BaseModel):
    """Outcome of a record operation.

    ``reason`` is meant for humans; callers branch on ``ok`` and ``code``.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool = Field(..., description="Whether the operation succeeded")
    code: ResultCode = Field(default=ResultCode.OK)
    reason: str = Field(default="", description="Human-readable outcome")
    field_kind: Optional[FieldKind] = Field(default=None, description="Offending field, if any")
    record: Optional[Dict[str, str]] = Field(default=None, description="Affected record")
    records: List[Dict[str, str]] = Field(default_factory=list, description="Matched records")

    @classmethod
    def success(cls, reason: str = "", record: Optional[InspectionRecord] = None, **kw: Any) -> "OperationResult":
        return cls(ok=True, code=ResultCode.OK, reason=reason, record=record.to_dict() if record else None, **kw)

    @classmethod
    def failure(cls, code: ResultCode, reason: str, **kw: Any) -> "OperationResult":
        return cls(ok=False, code=code, reason=reason, **kw)
