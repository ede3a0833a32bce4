"""
Tests for DAO connection discipline, row mapping and failure values.
"""

import threading

import pytest

from stillface.adapters.base import ConnectionError
from stillface.adapters.sqlite_adapter import SQLiteAdapter
from stillface.domain import INSERT_FAILED, StillFaceDAO
from stillface.domain.dao import map_code_data_row, map_code_row, map_import_row
from stillface.shared.exceptions import ErrorCode, MappingError
from stillface.shared.types import Code, CodeData, Tag


class TestConnectionDiscipline:
    """Tests for per-operation sessions and the connection lock."""

    def test_each_operation_opens_and_closes(self, counting_dao, counting_adapter):
        """Test that an unlocked DAO uses one session per call."""
        counting_dao.get_code()
        counting_dao.get_tag()
        assert counting_adapter.connects == 2
        assert counting_adapter.disconnects == 2
        assert not counting_adapter.is_connected()

    def test_locked_calls_share_one_session(self, counting_dao, counting_adapter):
        """Test that lock/unlock keeps one connection across calls."""
        counting_dao.lock_connection()
        assert counting_dao.connection_locked
        counting_dao.get_code()
        counting_dao.get_tag()
        counting_dao.get_import_data()
        assert counting_adapter.connects == 1
        assert counting_adapter.disconnects == 0
        assert counting_adapter.is_connected()

        counting_dao.unlock_connection()
        assert not counting_dao.connection_locked
        assert counting_adapter.is_connected()

        counting_dao.close_connection()
        assert counting_adapter.disconnects == 1
        assert not counting_adapter.is_connected()

    def test_close_is_skipped_while_locked(self, counting_dao, counting_adapter):
        counting_dao.lock_connection()
        counting_dao.open_connection()
        counting_dao.close_connection()
        assert counting_adapter.is_connected()
        counting_dao.unlock_connection()
        counting_dao.close_connection()

    def test_lock_is_single_layer(self, counting_dao):
        """Test that locking twice and unlocking once unlocks."""
        counting_dao.lock_connection()
        counting_dao.lock_connection()
        counting_dao.unlock_connection()
        assert not counting_dao.connection_locked

    def test_locked_session_context(self, counting_dao, counting_adapter):
        with counting_dao.locked_session() as dao:
            dao.get_code()
            dao.get_tag()
        assert counting_adapter.connects == 1
        assert counting_adapter.disconnects == 1
        assert not counting_dao.connection_locked

    def test_unlock_from_other_thread_ignored(self, counting_dao):
        """Test that only the locking thread can unlock."""
        counting_dao.lock_connection()
        worker = threading.Thread(target=counting_dao.unlock_connection)
        worker.start()
        worker.join()
        assert counting_dao.connection_locked
        counting_dao.unlock_connection()
        assert not counting_dao.connection_locked

    def test_other_threads_wait_for_lock(self, counting_dao):
        """Test that a locked session is exclusive to its thread."""
        results = []
        counting_dao.lock_connection()
        worker = threading.Thread(target=lambda: results.append(counting_dao.insert_new_tag(Tag(value="later"))))
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
        assert results == []

        counting_dao.unlock_connection()
        worker.join(timeout=5)
        assert not worker.is_alive()
        assert results and results[0] != INSERT_FAILED


class TestFailureValues:
    """Tests for the documented failure value of each operation kind."""

    @pytest.fixture
    def empty_dao(self):
        """DAO over a store without the StillFace tables."""
        adapter = SQLiteAdapter({"database": ":memory:"})
        yield StillFaceDAO(adapter)
        adapter.dispose()

    def test_insert_failure(self, empty_dao, caplog):
        assert empty_dao.insert_new_code(Code(name="Smile")) == INSERT_FAILED
        assert "insert_new_code failed" in caplog.text

    def test_select_failure_differs_from_empty(self, empty_dao, counting_dao):
        """Test that a failed select is not reported as 'no rows'."""
        failed = empty_dao.get_code()
        assert not failed.ok
        assert not failed.empty
        assert failed.error.code == ErrorCode.ERR_STATEMENT_FAILED

        empty = counting_dao.get_code()
        assert empty.ok
        assert empty.empty

    def test_update_and_delete_failure(self, empty_dao):
        assert empty_dao.update_existing_tag(Tag(id=1, value="x")) is False
        assert empty_dao.delete_existing_tag(Tag(id=1, value="x")) is False

    def test_unsaved_record_update_fails(self, counting_dao, caplog):
        """Test that updating a record without an id fails without raising."""
        assert counting_dao.update_existing_code(Code(name="Smile")) is False
        assert ErrorCode.ERR_RECORD_INVALID.value in caplog.text

    def test_update_absent_id_fails(self, counting_dao):
        """Test that an update matching no row is a failure."""
        assert counting_dao.update_existing_code(Code(id=42, name="Smile")) is False
        assert counting_dao.delete_existing_code(Code(id=42, name="Smile")) is False

    def test_connection_failure(self, counting_dao, counting_adapter, monkeypatch, caplog):
        """Test that a failed connect is contained and logged."""
        def refuse():
            raise ConnectionError("refused", engine="sqlite")

        monkeypatch.setattr(counting_adapter, "connect", refuse)
        outcome = counting_dao.get_tag()
        assert not outcome.ok
        assert outcome.error.code == ErrorCode.ERR_CONNECTION_FAILED
        assert "get_tag failed" in caplog.text

    def test_is_database_initialized(self, counting_dao, empty_dao):
        assert counting_dao.is_database_initialized()
        assert not empty_dao.is_database_initialized()


class TestRowMapping:
    """Tests for row -> record mapping."""

    def test_map_code_row(self):
        assert map_code_row({"cid": 3, "name": "Smile"}) == Code(id=3, name="Smile")

    def test_map_import_row(self):
        row = {"iid": 1, "filename": "s01.mp4", "syear": 2014, "fid": 7, "pid": 2, "alias": "", "date": None}
        data = map_import_row(row)
        assert data.family_id == 7
        assert data.participant_number == 2

    def test_map_code_data_row_embeds_code(self):
        row = {"did": 5, "iid": 1, "time": 100, "duration": 20, "cid": 3, "comment": "", "name": "Smile"}
        assert map_code_data_row(row) == CodeData(
            id=5, import_id=1, time=100, duration=20, code=Code(id=3, name="Smile")
        )

    def test_missing_column(self):
        with pytest.raises(MappingError) as exc:
            map_code_row({"cid": 3})
        assert exc.value.details["column"] == "name"

    def test_invalid_value(self):
        """Test that a row with an out-of-range value is a mapping error."""
        row = {"did": 5, "iid": 1, "time": -1, "duration": 20, "cid": 3, "comment": "", "name": "Smile"}
        with pytest.raises(MappingError):
            map_code_data_row(row)
