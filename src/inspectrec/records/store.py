"""Flat-file persistence for inspection records.

The whole collection is read on every operation and rewritten on every
mutation. Only one process is expected to use the file at a time;
:meth:`RecordStore.locked` adds an advisory lock around a read-modify-write
span but gives no isolation against writers that ignore it.
"""

from __future__ import annotations

import fcntl
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from inspectrec.config import DEFAULT_CAPACITY, FieldLimits, Grammar, limits_for
from inspectrec.records.codec import format_line, parse_line
from inspectrec.records.models import InspectionRecord
from inspectrec.records.validators import fits_limits

logger = logging.getLogger(__name__)

__all__ = ["RecordStore", "SAMPLE_LINES", "load", "save"]


SAMPLE_LINES = (
    "I001,ABC1234,John Doe,01/08/2025",
    "I002,XYZ5678,Jane Smith,03/08/2025",
    "I003,DEF1112,Junho Kim,05/08/2025",
    "I004,HIJ5060,Jordan Brown,07/08/2025",
    "I005,MYW5791,Justin Jackson,09/08/2025",
    "I006,ZBA7777,Zephyr Diaz,11/08/2025",
    "I007,QWE6006,Gale Norton,13/08/2025",
    "I008,MNO7788,Fiora Campbell,15/08/2025",
    "I009,JQR1111,Astarion Williams,17/08/2025",
    "I010,STR9633,Wyll Phillips,19/08/2025",
    "I011,WIS4002,Halsin Walker,21/08/2025",
    "I012,MSL5533,Karlach Harris,23/08/2025",
    "I013,LGD9889,Furuya Wataru,25/08/2025",
    "I014,FVA3022,Taeho Park,27/08/2025",
    "I015,SDH9966,Minju Hwang,29/08/2025",
    "I016,THZ5050,Shen Howard,31/08/2025",
    "I017,ZAQ4446,Mateo Ramos,02/09/2025",
    "I018,XHU1267,Luciana Esposito,04/09/2025",
    "I019,SOL2233,Kunibert Schneider,06/09/2025",
    "I020,GEN8047,Leon Lee,08/09/2025",
)


def _atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        Path(tmp_name).replace(path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class RecordStore:
    """Handle on one data file.

    Args:
        path: Location of the data file.
        capacity: Maximum number of records kept in memory.
        limits: Field length limits enforced on load and save.
        lock: Take an advisory lock in :meth:`locked`.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        capacity: int = DEFAULT_CAPACITY,
        limits: Optional[FieldLimits] = None,
        lock: bool = True,
    ):
        if capacity <= 0:
            raise ValueError("capacity must be a positive integer")
        self.path = Path(path)
        self.capacity = capacity
        self.limits = limits or limits_for(Grammar.STRICT)
        self.lock = lock
        self.skipped = 0
        self.read_failed = False

    def __repr__(self) -> str:
        return f"RecordStore(path={str(self.path)!r}, capacity={self.capacity})"

    def ensure_bootstrap(self) -> bool:
        """Write the sample records if the file is missing.

        Returns True only when the samples were written.
        """
        if self.path.exists():
            return False
        try:
            _atomic_write_text(self.path, "".join(f"{line}\n" for line in SAMPLE_LINES))
        except OSError as exc:
            logger.warning("Cannot create data file %s: %s", self.path, exc)
            return False
        logger.info("Created %s with %d sample records", self.path, len(SAMPLE_LINES))
        return True

    def load(self) -> list[InspectionRecord]:
        """Read up to ``capacity`` records; never raises for I/O problems.

        Records left out for an oversized field or for exceeding
        ``capacity`` are counted in :attr:`skipped`. Malformed lines are not.
        """
        self.ensure_bootstrap()
        self.skipped = 0
        self.read_failed = False
        records: list[InspectionRecord] = []
        overflow = 0
        try:
            with self.path.open("r", encoding="utf-8") as f:
                for lineno, line in enumerate(f, 1):
                    record = parse_line(line)
                    if record is None:
                        if line.strip():
                            logger.debug("Skipping malformed line %d in %s", lineno, self.path)
                        continue
                    if not fits_limits(record, self.limits):
                        logger.warning("Skipping line %d in %s: field exceeds its maximum length", lineno, self.path)
                        self.skipped += 1
                        continue
                    if len(records) >= self.capacity:
                        overflow += 1
                        continue
                    records.append(record)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read data file %s: %s", self.path, exc)
            self.read_failed = True
            return []
        if overflow:
            logger.warning("%s holds %d records beyond capacity %d; ignored", self.path, overflow, self.capacity)
            self.skipped += overflow
        return records

    def save(self, records: Sequence[InspectionRecord]) -> bool:
        """Overwrite the file with *records*, in order. Returns success."""
        if len(records) > self.capacity:
            logger.warning("Refusing to save %d records (capacity %d)", len(records), self.capacity)
            return False
        for record in records:
            if not fits_limits(record, self.limits):
                logger.warning("Refusing to save %s: field exceeds its maximum length", record.inspection_id)
                return False
        try:
            _atomic_write_text(self.path, "".join(f"{format_line(r)}\n" for r in records))
        except OSError as exc:
            logger.warning("Cannot write data file %s: %s", self.path, exc)
            return False
        logger.debug("Saved %d records to %s", len(records), self.path)
        return True

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold an exclusive advisory lock on ``<path>.lock``.

        Falls back to running unlocked if the lock file cannot be opened.
        """
        if not self.lock:
            yield
            return
        lock_path = self.path.with_name(self.path.name + ".lock")
        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            f = lock_path.open("a")
        except OSError as exc:
            logger.warning("Cannot open lock file %s, continuing unlocked: %s", lock_path, exc)
            yield
            return
        with f:
            fcntl.flock(f, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)


def load(
    path: str | os.PathLike[str],
    capacity: int = DEFAULT_CAPACITY,
    limits: Optional[FieldLimits] = None,
) -> list[InspectionRecord]:
    return RecordStore(path, capacity=capacity, limits=limits, lock=False).load()


def save(
    path: str | os.PathLike[str],
    records: Sequence[InspectionRecord],
    capacity: int = DEFAULT_CAPACITY,
    limits: Optional[FieldLimits] = None,
) -> bool:
    return RecordStore(path, capacity=capacity, limits=limits, lock=False).save(records)
