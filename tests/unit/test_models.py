"""
Tests for StillFace records and database modes.
"""

import pytest
from pydantic import ValidationError

from stillface.shared.types import Code, CodeData, DatabaseMode, ImportData, Tag


class TestRecords:
    """Tests for record construction and invariants."""

    def test_new_record_has_no_id(self):
        """Test that an unsaved record is distinguishable from id 0."""
        code = Code(name="Smile")
        assert code.id is None
        assert not code.is_stored
        assert Code(id=0, name="(none)").is_stored

    def test_records_are_immutable(self):
        tag = Tag(id=1, value="reviewed")
        with pytest.raises(ValidationError):
            tag.value = "other"
        renamed = tag.model_copy(update={"value": "checked"})
        assert renamed.id == 1
        assert renamed.value == "checked"
        assert tag.value == "reviewed"

    def test_code_data_interval(self):
        """Test that a coded interval runs from time to time + duration."""
        data = CodeData(import_id=1, time=1500, duration=250, code=Code(id=2, name="Smile"))
        assert data.end == 1750
        assert data.comment == ""

    def test_negative_values_rejected(self):
        """Test that negative times, durations and ids are invalid."""
        code = Code(id=1, name="Smile")
        with pytest.raises(ValidationError):
            CodeData(import_id=1, time=-1, duration=10, code=code)
        with pytest.raises(ValidationError):
            CodeData(import_id=1, time=0, duration=-5, code=code)
        with pytest.raises(ValidationError):
            Code(id=-3, name="Smile")

    def test_import_defaults(self):
        data = ImportData(filename="s01.mp4", year=2014, family_id=7, participant_number=2)
        assert data.alias == ""
        assert data.date is None

    def test_str_uses_label(self):
        assert str(Code(name="Smile")) == "Smile"
        assert str(Tag(value="reviewed")) == "reviewed"


class TestDatabaseMode:
    """Tests for mode parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("sqlite", DatabaseMode.SQLITE),
        ("SQLite3", DatabaseMode.SQLITE),
        ("mysql", DatabaseMode.MYSQL),
        ("mariadb", DatabaseMode.MYSQL),
        ("postgres", DatabaseMode.POSTGRES),
        ("postgresql", DatabaseMode.POSTGRES),
        (DatabaseMode.POSTGRES, DatabaseMode.POSTGRES),
    ])
    def test_parse(self, value, expected):
        assert DatabaseMode.parse(value) == expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            DatabaseMode.parse("oracle")
