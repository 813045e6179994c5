from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class AuditLog:
    """Append-only JSONL trail of record mutations."""

    path: str

    def log_operation(
        self,
        operation: str,
        ok: bool,
        code: str,
        key: str = "",
        record: Optional[dict[str, Any]] = None,
        **extra_fields: Any,
    ) -> None:
        entry: dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            "operation": operation,
            "ok": ok,
            "code": code,
        }
        if key:
            entry["key"] = key
        if record:
            entry["record"] = record
        entry.update(extra_fields)

        # A failed audit write never fails the operation itself.
        try:
            p = Path(self.path)
            p.parent.mkdir(parents=True, exist_ok=True)
            with p.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as exc:
            logger.warning("Cannot append to audit log %s: %s", self.path, exc)

    def tail(self, n: int = 20) -> list[dict[str, Any]]:
        p = Path(self.path)
        if not p.exists():
            return []
        # read all and slice; audit files stay small
        lines = p.read_text(encoding="utf-8").splitlines()
        out: list[dict[str, Any]] = []
        for line in lines[-max(1, n) :]:
            try:
                out.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return out
