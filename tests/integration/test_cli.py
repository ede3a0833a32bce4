"""
Tests for the stillface command line.
"""

import json

import pytest
from click.testing import CliRunner

from stillface.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, db_path):
    """Run the CLI against the test database file."""
    def _invoke(*args, input=None):
        return runner.invoke(cli, ["--database", str(db_path), *args], obj={}, input=input)
    return _invoke


class TestDatabaseCommands:
    """Tests for stillface db ..."""

    def test_status_before_init(self, invoke):
        result = invoke("--json", "db", "status")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["mode"] == "sqlite"
        assert data["initialized"] is False

    def test_init_then_status(self, invoke):
        """Test that db init creates the four tables."""
        result = invoke("db", "init")
        assert result.exit_code == 0
        assert "sf_imports" in result.output

        result = invoke("--json", "db", "status")
        data = json.loads(result.stdout)
        assert data["initialized"] is True
        assert data["counts"] == {"imports": 0, "codes": 0, "tags": 0, "code data": 0}

    def test_init_twice(self, invoke):
        invoke("db", "init")
        result = invoke("db", "init")
        assert result.exit_code == 0
        assert "already initialized" in result.output

    def test_drop_requires_confirmation(self, invoke):
        invoke("db", "init")
        result = invoke("db", "drop", input="n\n")
        assert result.exit_code != 0

        result = invoke("db", "drop", "--yes")
        assert result.exit_code == 0
        data = json.loads(invoke("--json", "db", "status").stdout)
        assert data["initialized"] is False


class TestCodeAndTagCommands:
    """Tests for stillface codes/tags ..."""

    def test_add_and_list_codes(self, invoke):
        """Test that added codes are listed in name order."""
        for name in ("Smile", "Cry", "Gaze aversion"):
            result = invoke("codes", "add", name)
            assert result.exit_code == 0, result.output
            assert "Added code" in result.output

        result = invoke("--json", "codes", "list")
        assert result.exit_code == 0
        assert [c["name"] for c in json.loads(result.stdout)] == ["Cry", "Gaze aversion", "Smile"]

        result = invoke("codes", "list")
        assert "Gaze aversion" in result.output

    def test_add_and_list_tags(self, invoke):
        assert invoke("tags", "add", "reviewed").exit_code == 0
        assert invoke("tags", "add", "[ambiguous]").exit_code == 0

        data = json.loads(invoke("--json", "tags", "list").stdout)
        assert [t["value"] for t in data] == ["[ambiguous]", "reviewed"]

    def test_empty_lists(self, invoke):
        assert "No codes defined" in invoke("codes", "list").output
        assert "No tags defined" in invoke("tags", "list").output
        assert "No imports found" in invoke("imports", "list").output


class TestErrors:
    """Tests for configuration errors reported by the CLI."""

    def test_server_mode_without_credentials(self, runner):
        """Test that an incomplete server config exits with a structured error."""
        result = runner.invoke(cli, ["--mode", "postgres", "db", "status"], obj={})
        assert result.exit_code == 1
        assert "ERR_4001" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "stillface" in result.output
