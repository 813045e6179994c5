from __future__ import annotations

from .audit import AuditLog

__all__ = ["AuditLog"]
