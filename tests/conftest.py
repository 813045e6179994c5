from __future__ import annotations

from pathlib import Path

import pytest

from inspectrec.records.service import RecordService
from inspectrec.records.store import RecordStore


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path: Path):
    """Keep tests away from the real ~/.config and INSPECTREC_* variables."""
    for name in (
        "INSPECTREC_DATA_PATH",
        "INSPECTREC_GRAMMAR",
        "INSPECTREC_CAPACITY",
        "INSPECTREC_AUDIT_PATH",
        "INSPECTREC_LOCK",
        "INSPECTREC_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "users_data.csv"


@pytest.fixture
def store(data_file: Path) -> RecordStore:
    return RecordStore(data_file)


@pytest.fixture
def service(store: RecordStore) -> RecordService:
    return RecordService(store)


@pytest.fixture
def empty_service(data_file: Path) -> RecordService:
    """Service over an existing but empty file (no sample bootstrap)."""
    data_file.write_text("", encoding="utf-8")
    return RecordService(RecordStore(data_file))
