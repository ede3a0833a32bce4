"""
Pytest configuration and shared fixtures for StillFace tests.
"""

import datetime
import os

import pytest

from stillface.adapters.sqlite_adapter import SQLiteAdapter
from stillface.core import config
from stillface.domain import StillFaceDAO
from stillface.shared.types import Code, ImportData, Tag


class CountingAdapter(SQLiteAdapter):
    """In-memory SQLite adapter that counts physical connects and closes."""

    def __init__(self):
        super().__init__({"database": ":memory:"})
        self.connects = 0
        self.disconnects = 0

    def connect(self) -> None:
        self.connects += 1
        super().connect()

    def disconnect(self) -> None:
        self.disconnects += 1
        super().disconnect()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep STILLFACE_* variables and a stray .env out of every test."""
    for name in list(os.environ):
        if name.upper().startswith("STILLFACE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "_settings", None)


@pytest.fixture
def db_path(tmp_path):
    """Return a path for a fresh SQLite database file."""
    return tmp_path / "data" / "stillface.db"


@pytest.fixture
def sqlite_adapter(db_path):
    """Return an unconnected adapter for a new SQLite file."""
    adapter = SQLiteAdapter({"database": str(db_path), "create": True})
    yield adapter
    adapter.dispose()


@pytest.fixture
def dao(sqlite_adapter):
    """Return a DAO over a SQLite file with the tables created."""
    dao = StillFaceDAO(sqlite_adapter)
    assert dao.create_tables()
    return dao


@pytest.fixture
def counting_adapter():
    adapter = CountingAdapter()
    yield adapter
    adapter.dispose()


@pytest.fixture
def counting_dao(counting_adapter):
    """Return a DAO over an in-memory store, tables created, counters reset."""
    dao = StillFaceDAO(counting_adapter)
    assert dao.create_tables()
    counting_adapter.connects = 0
    counting_adapter.disconnects = 0
    return dao


@pytest.fixture
def sample_import():
    """Return the import used throughout the docs: s01.mp4."""
    return ImportData(
        filename="s01.mp4",
        year=2020,
        family_id=3,
        participant_number=1,
        alias="fam3-p1",
        date=datetime.date(2020, 1, 5),
    )


@pytest.fixture
def sample_codes():
    return [Code(name="Smile"), Code(name="Cry"), Code(name="Gaze aversion")]


@pytest.fixture
def sample_tags():
    return [Tag(value="reviewed"), Tag(value="ambiguous")]
