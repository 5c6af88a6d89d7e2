"""
Tests for cross-step state persistence.
"""

import json

import pytest

from haxekit.core.exceptions import StateError
from haxekit.core.state import StepState


@pytest.fixture
def state_file(tmp_path):
    return tmp_path / ".haxekit" / "state.json"


class TestStepState:
    def test_missing_value_is_empty_string(self, state_file):
        assert StepState(state_file).get_state("PRIMARY_KEY") == ""

    def test_values_survive_a_new_instance(self, state_file):
        """Test the post step, a new process, sees what setup saved."""
        StepState(state_file).save_state("PRIMARY_KEY", "haxelib-cache-linux64-haxe4.0.5-abc")

        assert (
            StepState(state_file).get_state("PRIMARY_KEY")
            == "haxelib-cache-linux64-haxe4.0.5-abc"
        )

    def test_values_are_stored_as_strings(self, state_file, tmp_path):
        state = StepState(state_file)
        state.save_state("HAXELIB_PATH", tmp_path / "haxe" / "lib")

        assert state.get_state("HAXELIB_PATH") == str(tmp_path / "haxe" / "lib")

    def test_document_format(self, state_file):
        StepState(state_file).save_state("PRIMARY_KEY", "k")

        data = json.loads(state_file.read_text())
        assert data == {"version": 1, "values": {"PRIMARY_KEY": "k"}}

    def test_overwrite(self, state_file):
        state = StepState(state_file)
        state.save_state("RESTORE_RESULT", "a")
        state.save_state("RESTORE_RESULT", "b")

        assert state.get_state("RESTORE_RESULT") == "b"

    def test_clear(self, state_file):
        state = StepState(state_file)
        state.save_state("PRIMARY_KEY", "k")

        state.clear()

        assert not state_file.exists()
        assert state.get_state("PRIMARY_KEY") == ""

    def test_clear_without_file(self, state_file):
        StepState(state_file).clear()

    def test_unsupported_format(self, state_file):
        state_file.parent.mkdir(parents=True)
        state_file.write_text(json.dumps({"PRIMARY_KEY": "k"}))

        with pytest.raises(StateError, match="Unsupported state file format"):
            StepState(state_file).get_state("PRIMARY_KEY")

    def test_invalid_json(self, state_file):
        state_file.parent.mkdir(parents=True)
        state_file.write_text("{")

        with pytest.raises(StateError, match="Failed to read"):
            StepState(state_file).get_state("PRIMARY_KEY")

    def test_default_location(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GITHUB_WORKSPACE", str(tmp_path))
        assert StepState().state_file == tmp_path / ".haxekit" / "state.json"
