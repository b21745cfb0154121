import io

import pytest

from storyscript import config
from storyscript.runtime import Runtime

def test_defaults() -> None:
    assert config.Settings.Runtime.START_LABEL == "Start"
    assert "scene" in config.Settings.Lexer.COMMAND_VERBS
    assert config.Settings.Interpreter.MAX_SILENT_STEPS > 0

def test_merge() -> None:
    a = {"x": 1, "nested": {"y": "a", "z": [1]}}
    config.merge(a, {"x": 2, "nested": {"y": "b"}, "new": True})
    assert a == {"x": 2, "nested": {"y": "b", "z": [1]}, "new": True}

    with pytest.raises(ValueError):
        config.merge({"x": 1}, {"x": "one"})

def test_load_config_override(restore_config) -> None:
    settings = config.load_config(io.StringIO('[Runtime]\nSTART_LABEL = "Prologue"\n'))

    assert settings is config.Settings
    assert config.Settings.Runtime.START_LABEL == "Prologue"
    # untouched sections keep their defaults
    assert config.Settings.Interpreter.MAX_SILENT_STEPS == 10000
    assert Runtime().current_label == "Prologue"

def test_load_config_from_path(tmp_path, restore_config) -> None:
    path = tmp_path / "override.toml"
    path.write_text('[Lexer]\nCOMMAND_VERBS = ["fade"]\n')

    config.load_config(str(path))
    assert config.Settings.Lexer.COMMAND_VERBS == ["fade"]

def test_merge_conflict_names_key() -> None:
    with pytest.raises(ValueError, match="Interpreter.MAX_SILENT_STEPS"):
        config.merge({"Interpreter": {"MAX_SILENT_STEPS": 1}}, {"Interpreter": {"MAX_SILENT_STEPS": "many"}})

@pytest.mark.parametrize("override", [
    '[Runtime]\nSTART_LABEL = "  "\n',
    '[Interpreter]\nMAX_SILENT_STEPS = 0\n',
    '[Interpreter]\nMAX_TRACE_NODES = -1\n',
    '[Lexer]\nCOMMAND_VERBS = ["fade out"]\n',
    '[Engine]\nFETCH_TIMEOUT = 0.0\n',
])
def test_invalid_settings(override:str, restore_config) -> None:
    with pytest.raises(ValueError):
        config.load_config(io.StringIO(override))
    # a bad override leaves the current settings alone
    assert config.Settings.Runtime.START_LABEL == "Start"
