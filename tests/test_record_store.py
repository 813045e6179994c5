"""Tests for the flat-file record store."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from inspectrec.config import Grammar, limits_for
from inspectrec.records import store as store_mod
from inspectrec.records.models import InspectionRecord
from inspectrec.records.store import SAMPLE_LINES, RecordStore, load, save


class TestBootstrap:
    def test_missing_file_gets_twenty_samples(self, store: RecordStore, data_file: Path):
        assert not data_file.exists()
        records = store.load()
        assert data_file.exists()
        assert len(records) == 20
        assert records[0] == InspectionRecord("I001", "ABC1234", "John Doe", "01/08/2025")
        assert records[-1].inspection_id == "I020"

    def test_sample_ids_are_consecutive(self):
        ids = [line.split(",")[0] for line in SAMPLE_LINES]
        assert ids == [f"I{n:03d}" for n in range(1, 21)]

    def test_bootstrap_is_idempotent(self, store: RecordStore, data_file: Path):
        assert store.ensure_bootstrap() is True
        data_file.write_text("I009,ABC9999,Someone Else,01/01/2025\n", encoding="utf-8")
        assert store.ensure_bootstrap() is False
        assert data_file.read_text(encoding="utf-8") == "I009,ABC9999,Someone Else,01/01/2025\n"

    def test_existing_empty_file_is_not_bootstrapped(self, store: RecordStore, data_file: Path):
        data_file.write_text("", encoding="utf-8")
        assert store.load() == []

    def test_bootstrap_creates_parent_dirs(self, tmp_path: Path):
        s = RecordStore(tmp_path / "nested" / "dir" / "data.csv")
        assert len(s.load()) == 20


class TestLoad:
    def test_malformed_line_is_dropped(self, store: RecordStore, data_file: Path):
        data_file.write_text("I001,ABC1234,John Doe,01/08/2025\nI002,XYZ5678\n", encoding="utf-8")
        records = store.load()
        assert len(records) == 1
        assert records[0].inspection_id == "I001"

    def test_crlf_and_blank_lines(self, store: RecordStore, data_file: Path):
        data_file.write_bytes(b"I001,ABC1234,John Doe,01/08/2025\r\n\r\nI002,XYZ5678,Jane Smith,03/08/2025\r\n")
        records = store.load()
        assert [r.inspection_id for r in records] == ["I001", "I002"]
        assert records[0].date == "01/08/2025"

    def test_capacity_limits_loaded_records(self, data_file: Path):
        data_file.write_text("".join(f"{line}\n" for line in SAMPLE_LINES), encoding="utf-8")
        s = RecordStore(data_file, capacity=5)
        assert len(s.load()) == 5

    def test_oversized_field_is_skipped_not_truncated(self, store: RecordStore, data_file: Path):
        data_file.write_text(
            "I0011,ABC1234,John Doe,01/08/2025\nI002,XYZ5678,Jane Smith,03/08/2025\n",
            encoding="utf-8",
        )
        records = store.load()
        assert [r.inspection_id for r in records] == ["I002"]
        assert store.skipped == 1

    def test_records_past_capacity_are_counted(self, data_file: Path):
        data_file.write_text("".join(f"{line}\n" for line in SAMPLE_LINES), encoding="utf-8")
        s = RecordStore(data_file, capacity=5)
        s.load()
        assert s.skipped == 15

    def test_exactly_full_file_with_trailing_blanks(self, data_file: Path, caplog):
        data_file.write_text("".join(f"{line}\n" for line in SAMPLE_LINES) + "\n\n", encoding="utf-8")
        s = RecordStore(data_file, capacity=20)
        with caplog.at_level("WARNING"):
            assert len(s.load()) == 20
        assert s.skipped == 0
        assert "beyond capacity" not in caplog.text

    def test_malformed_lines_are_not_counted(self, store: RecordStore, data_file: Path):
        data_file.write_text("I001,ABC1234\nI002,XYZ5678,Jane Smith,03/08/2025\n", encoding="utf-8")
        store.load()
        assert store.skipped == 0
        assert store.read_failed is False

    def test_unreadable_file_gives_empty_list(self, store: RecordStore, data_file: Path, caplog):
        data_file.mkdir()  # a directory cannot be opened for reading as text
        with caplog.at_level("WARNING"):
            assert store.load() == []
        assert "Cannot read data file" in caplog.text

    def test_undecodable_file_gives_empty_list(self, store: RecordStore, data_file: Path):
        data_file.write_bytes(b"\xff\xfe\x00bad")
        assert store.load() == []
        assert store.read_failed is True


class TestSave:
    def test_save_then_load_is_identity(self, store: RecordStore):
        records = store.load()
        assert store.save(records) is True
        assert store.load() == records

    def test_written_format(self, store: RecordStore, data_file: Path):
        recs = [
            InspectionRecord("A001", "ABC0001", "Ada Byron", "10/12/2025"),
            InspectionRecord("B002", "DEF0002", "Alan Turing", "23/06/2012"),
        ]
        assert store.save(recs) is True
        assert data_file.read_bytes() == b"A001,ABC0001,Ada Byron,10/12/2025\nB002,DEF0002,Alan Turing,23/06/2012\n"

    def test_save_empty_collection(self, store: RecordStore, data_file: Path):
        store.load()
        assert store.save([]) is True
        assert data_file.read_text(encoding="utf-8") == ""
        assert store.load() == []

    def test_save_refuses_oversized_field(self, store: RecordStore, data_file: Path):
        store.load()
        before = data_file.read_text(encoding="utf-8")
        bad = [InspectionRecord("A001", "ABC0001", "x" * 41, "10/12/2025")]
        assert store.save(bad) is False
        assert data_file.read_text(encoding="utf-8") == before

    def test_save_refuses_over_capacity(self, data_file: Path):
        s = RecordStore(data_file, capacity=1)
        recs = [
            InspectionRecord("A001", "ABC0001", "Ada", "10/12/2025"),
            InspectionRecord("A002", "ABC0002", "Bob", "10/12/2025"),
        ]
        assert s.save(recs) is False

    def test_write_failure_keeps_previous_file(self, store: RecordStore, data_file: Path, monkeypatch):
        store.load()
        before = data_file.read_text(encoding="utf-8")

        def boom(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(store_mod.os, "fsync", boom)
        assert store.save([InspectionRecord("A001", "ABC0001", "Ada", "10/12/2025")]) is False
        assert data_file.read_text(encoding="utf-8") == before
        leftovers = [p for p in data_file.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_lenient_limits_allow_longer_fields(self, data_file: Path):
        s = RecordStore(data_file, limits=limits_for(Grammar.LENIENT))
        recs = [InspectionRecord("inspection42", "reg42", "A" * 60, "01/01/2000")]
        assert s.save(recs) is True
        assert s.load() == recs


class TestLock:
    def test_locked_creates_lock_file(self, store: RecordStore, data_file: Path):
        with store.locked():
            assert (data_file.parent / "users_data.csv.lock").exists()

    def test_lock_disabled(self, data_file: Path):
        s = RecordStore(data_file, lock=False)
        with s.locked():
            pass
        assert not (data_file.parent / "users_data.csv.lock").exists()

    def test_lock_is_reentrant_across_handles_sequentially(self, data_file: Path):
        a = RecordStore(data_file)
        b = RecordStore(data_file)
        with a.locked():
            a.save([])
        with b.locked():
            assert b.load() == []


class TestModuleHelpers:
    def test_load_and_save_functions(self, data_file: Path):
        records = load(data_file)
        assert len(records) == 20
        assert save(data_file, records[:3]) is True
        assert load(data_file) == records[:3]

    def test_capacity_must_be_positive(self, data_file: Path):
        with pytest.raises(ValueError):
            RecordStore(data_file, capacity=0)

    def test_accepts_str_path(self, data_file: Path):
        s = RecordStore(os.fspath(data_file))
        assert s.path == data_file
