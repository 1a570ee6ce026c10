"""
Tests for the CLI commands that do not need a terminal game.
"""

from typer.testing import CliRunner

from cli import main
from core.domain.errors import PersistenceError
from core.services.persistence import STORAGE_KEY, PersistenceStore

from .conftest import MemoryStore

runner = CliRunner()


class _ReadOnlyStore(MemoryStore):
    def remove(self, key: str) -> None:
        raise PersistenceError(f"Cannot remove {key}: read-only file system")


class TestDiscard:
    def test_clears_saved_game(self, monkeypatch):
        memory = MemoryStore()
        memory.data[STORAGE_KEY] = "{}"
        monkeypatch.setattr(main, "build_store", lambda settings: PersistenceStore(memory))

        result = runner.invoke(main.app, ["discard"])

        assert result.exit_code == 0
        assert "Saved game discarded." in result.output
        assert memory.data == {}

    def test_unwritable_state_dir(self, monkeypatch):
        monkeypatch.setattr(main, "build_store", lambda settings: PersistenceStore(_ReadOnlyStore()))

        result = runner.invoke(main.app, ["discard"])

        assert result.exit_code == 1
        assert "Could not discard the saved game" in result.output
        assert not isinstance(result.exception, PersistenceError)
